from typing import NamedTuple, Optional, Tuple

from .exceptions import ConfigError
from .codec import get_codec

MAX_Z = 2 ** 31 - 1

class ExportConfig(NamedTuple):
  """
  Settings shared by every stage of an export.

  slab_x, slab_y: in-plane size of each delivered slab in voxels
  slab_z: Z thickness of a slab and the depth of the layer buffer
  roi_block_size: edge length in voxels of one ROI block
  body_offset: added to every non-zero body id, used to merge
    label spaces from independently processed exports
  min_z, max_z: inclusive range of Z slices to process
  compression: 'none', 'lz4' or 'gzip' (aliases 'lz' and 'deflate')
  dry_run: log intended writes without performing any I/O
  outdir: local directory or cloud path receiving slab files
  url: DVID labelblk endpoint, e.g. http://server/api/node/uuid/name
  roi: path to a JSON ROI of sorted [z, y, x0, x1] block spans
  strict: treat superpixels missing from the mapping as fatal
  progress: show a progress bar over the input images
  """
  slab_x:int = 512
  slab_y:int = 512
  slab_z:int = 32
  roi_block_size:int = 32
  body_offset:int = 0
  min_z:int = 0
  max_z:int = MAX_Z
  compression:str = "none"
  dry_run:bool = False
  outdir:Optional[str] = None
  url:Optional[str] = None
  roi:Optional[str] = None
  strict:bool = False
  progress:bool = False

  @property
  def slab_shape(self) -> Tuple[int,int,int]:
    return (self.slab_x, self.slab_y, self.slab_z)

  def validate(self) -> "ExportConfig":
    if min(self.slab_shape) < 1:
      raise ConfigError(f"Slab dimensions must be >= 1. Got: {self.slab_shape}")
    if self.roi_block_size < 1:
      raise ConfigError(f"ROI block size must be >= 1. Got: {self.roi_block_size}")
    if self.body_offset < 0:
      raise ConfigError(f"Body offset must be non-negative. Got: {self.body_offset}")
    if self.min_z > self.max_z:
      raise ConfigError(f"minz ({self.min_z}) is greater than maxz ({self.max_z}).")
    if not self.outdir and not self.url:
      raise ConfigError("Must specify an output directory and/or a DVID url for output.")
    get_codec(self.compression)
    return self
