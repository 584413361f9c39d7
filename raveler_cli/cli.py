import logging
import sys

import click

import raveler
from raveler.config import MAX_Z

class Tuple3(click.ParamType):
  """A command line option type consisting of 3 comma-separated integers."""
  name = 'tuple3'
  def convert(self, value, param, ctx):
    if isinstance(value, str):
      try:
        value = tuple(map(int, value.split(',')))
      except ValueError:
        self.fail(f"'{value}' does not contain a comma delimited list of 3 integers.")
      if len(value) != 3:
        self.fail(f"'{value}' does not contain a comma delimited list of 3 integers.")
    return value

def configure_logging(log_level:str) -> None:
  logging.basicConfig(
    level=getattr(logging, log_level.upper(), logging.INFO),
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
  )

@click.command()
@click.option('-o', "--outdir", default=None, help="Output directory (or cloud path) for slab files.")
@click.option('-u', "--url", default=None, help="DVID labelblk endpoint to POST slabs to, e.g. http://dvidserver.com/api/node/653/dataname")
@click.option('-c', "--compress", "compression", default="none", type=click.Choice(["none", "lz4", "lz", "gzip", "deflate"]), help="Compression for output slabs.", show_default=True)
@click.option("--slab", default="512,512,32", type=Tuple3(), help="Size of each label slab in voxels as x,y,z. z is also the number of slices buffered.", show_default=True)
@click.option("--roi", default=None, help="Path to a ROI JSON of block spans sorted in ascending order.")
@click.option("--roi-block-size", default=32, help="Size of each ROI block in voxels.", show_default=True)
@click.option("--body-offset", default=0, help="Offset added to body labels, e.g. if 1000 all body labels are incremented by 1000.", show_default=True)
@click.option("--minz", "min_z", default=0, help="Starting Z slice to process.", show_default=True)
@click.option("--maxz", "max_z", default=MAX_Z, help="Ending Z slice to process.")
@click.option('-n', "--dry-run", default=False, is_flag=True, help="Don't write files or send requests to DVID.", show_default=True)
@click.option("--strict", default=False, is_flag=True, help="Abort if a superpixel is missing from the mapping files instead of setting it to body 0.", show_default=True)
@click.option('-p', "--progress", default=False, is_flag=True, help="Show a progress bar.", show_default=True)
@click.option("--log-level", default="INFO", help="Logging level.", show_default=True)
@click.option("--script", default=None, help="Generate an SGE batch script at this path instead of exporting. Requires --outdir.")
@click.option("--files-per-job", default=None, type=int, help="Number of Z slices assigned to one cluster job when using --script. Default: 5 slabs.")
@click.option("--binpath", default=None, help="Directory containing raveler-export for script creation.")
@click.argument("sp_to_seg")
@click.argument("seg_to_body")
@click.argument("sp_dir")
def main(
  outdir, url, compression, slab,
  roi, roi_block_size, body_offset,
  min_z, max_z, dry_run, strict, progress,
  log_level, script, files_per_job, binpath,
  sp_to_seg, seg_to_body, sp_dir,
):
  """
  Convert Raveler superpixel images and maps into a
  series of compressed body label slabs.

  SP_TO_SEG: superpixel -> segment map\n
  SEG_TO_BODY: segment -> body map\n
  SP_DIR: directory of superpixel PNGs

  We assume there is enough RAM to hold both mapping files.
  """
  configure_logging(log_level)

  config = raveler.ExportConfig(
    slab_x=slab[0], slab_y=slab[1], slab_z=slab[2],
    roi_block_size=roi_block_size,
    body_offset=body_offset,
    min_z=min_z, max_z=max_z,
    compression=compression,
    dry_run=dry_run,
    outdir=outdir, url=url,
    roi=roi,
    strict=strict,
    progress=progress,
  )

  try:
    config.validate()
    if script:
      njobs = raveler.generate_script(
        script, sp_to_seg, seg_to_body, sp_dir, config,
        files_per_job=files_per_job, binpath=binpath,
      )
      print(f"raveler-export: wrote {njobs} jobs to {script}")
      return

    raveler.process_raveler_export(sp_to_seg, seg_to_body, sp_dir, config)
  except FileNotFoundError as err:
    print(f"raveler-export: File \"{err.filename}\" does not exist.")
    sys.exit(1)
  except raveler.RavelerError as err:
    print(f"raveler-export: {err}")
    sys.exit(1)
