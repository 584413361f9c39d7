"""
Split an export into SGE cluster jobs.

Jobs are cut only at Z window boundaries so that no two jobs
write the same slab.
"""
from typing import List, Optional
import logging
import os
import shlex

from .config import ExportConfig
from .export import list_superpixel_images
from .exceptions import ConfigError
from .lib import window_start

logger = logging.getLogger(__name__)

def export_options(config:ExportConfig) -> List[str]:
  """Command line options that differ from the defaults."""
  defaults = ExportConfig()
  options = []
  if config.slab_shape != defaults.slab_shape:
    options.append("--slab {},{},{}".format(*config.slab_shape))
  if config.roi:
    options.append(f"--roi {shlex.quote(config.roi)}")
  if config.roi_block_size != defaults.roi_block_size:
    options.append(f"--roi-block-size {config.roi_block_size}")
  if config.body_offset != defaults.body_offset:
    options.append(f"--body-offset {config.body_offset}")
  if config.compression != defaults.compression:
    options.append(f"--compress {config.compression}")
  if config.url:
    options.append(f"--url {shlex.quote(config.url)}")
  if config.strict:
    options.append("--strict")
  if config.dry_run:
    options.append("--dry-run")
  return options

def plan_jobs(zs:List[int], depth:int, files_per_job:int) -> List[tuple]:
  """
  Group ascending Z slices into (zstart, zlast) jobs each
  holding at least files_per_job slices (except the last),
  cutting only between Z windows.
  """
  jobs = []
  zstart = None
  zoffset = None
  count = 0
  for z in zs:
    if zstart is None:
      zstart = z
    elif window_start(z, depth) != zoffset and count >= files_per_job:
      jobs.append((zstart, zoffset + depth - 1))
      zstart = z
      count = 0
    zoffset = window_start(z, depth)
    count += 1

  if count > 0:
    jobs.append((zstart, zoffset + depth - 1))
  return jobs

def generate_script(
  script:str,
  sp_to_seg:str, seg_to_body:str, sp_dir:str,
  config:ExportConfig,
  files_per_job:Optional[int] = None,
  binpath:Optional[str] = None,
) -> int:
  """
  Write a batch script with one qsub line per job.

  Returns: number of jobs written
  """
  if not config.outdir:
    raise ConfigError("Script output requires an output directory as well.")

  if files_per_job is None:
    files_per_job = config.slab_z * 5

  executable = "raveler-export"
  if binpath:
    executable = os.path.join(binpath, executable)

  images = list_superpixel_images(sp_dir, config.min_z, config.max_z)
  jobs = plan_jobs([ z for z, path in images ], config.slab_z, files_per_job)
  options = " ".join(export_options(config))

  logger.info(f"Generating batch script: {script}")
  with open(script, 'wt') as f:
    for jobnum, (zstart, zlast) in enumerate(jobs):
      args = " ".join(( shlex.quote(x) for x in (sp_to_seg, seg_to_body, sp_dir) ))
      cmd = (
        f"{executable} {options} --minz {zstart} --maxz {zlast} "
        f"--outdir {shlex.quote(config.outdir)} {args}"
      )
      cmd = " ".join(cmd.split())
      jobname = f"ravelerexport-{jobnum}"
      f.write(
        f"qsub -pe batch 16 -N {jobname} -j y -o {jobname}.log -b y -cwd -V '{cmd} > {jobname}.out'\n"
      )

  return len(jobs)
