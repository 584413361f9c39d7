from typing import Optional
from enum import IntEnum
import logging

import numpy as np

from .exceptions import BodyOffsetOverflow, DimensionMismatch
from .lib import window_start
from .mapping import MAX_UINT64, SuperpixelBodyMap
from .roi import Roi
from .superpixel import decode_superpixels

logger = logging.getLogger(__name__)

class LayerState(IntEnum):
  EMPTY = 0
  ACCUMULATING = 1
  FLUSHING = 2

class LayerAccumulator:
  """
  Collects body ids for slab_z consecutive Z slices.

  Slices must arrive in ascending Z order. When a slice
  belongs to a different Z window than the buffered one,
  the buffer is handed to the writer, zeroed in place and
  reused for the new window. Call finish() after the last
  slice to write any remaining data.

  writer: anything with write_layer(layer, zoffset)
  """
  def __init__(
    self,
    config,
    sp2body:SuperpixelBodyMap,
    writer,
    roi:Optional[Roi] = None,
  ):
    self.depth = config.slab_z
    self.roi_block_size = config.roi_block_size
    self.body_offset = config.body_offset
    self.strict = config.strict
    self.sp2body = sp2body
    self.writer = writer
    self.roi = roi

    self.layer = None
    self.state = LayerState.EMPTY
    self.zoffset = 0
    self.slices_in_buffer = 0
    self.num_flushes = 0
    self.num_missing = 0

  def window_start(self, z:int) -> int:
    return window_start(z, self.depth)

  def add_image(self, z:int, img, name:Optional[str] = None) -> None:
    """Decode a superpixel image and add it as slice z."""
    labels = decode_superpixels(img)
    self.add_labels(z, labels.T, name=name)

  def add_labels(self, z:int, labels:np.ndarray, name:Optional[str] = None) -> None:
    """
    Add slice z given superpixel labels as an (nx, ny) array.
    """
    nx, ny = labels.shape

    if self.layer is None:
      self.layer = np.zeros((nx, ny, self.depth), dtype=np.uint64, order="F")
    elif self.layer.shape[:2] != (nx, ny):
      raise DimensionMismatch(
        f"superpixel image changes sizes: expected {self.layer.shape[0]} x {self.layer.shape[1]} "
        f"and got {nx} x {ny}: {name or f'z={z}'}"
      )

    if self.slices_in_buffer and self.window_start(z) != self.zoffset:
      self.flush()

    self.zoffset = self.window_start(z)
    self.state = LayerState.ACCUMULATING

    if self.roi is not None:
      mask = self.roi.pixel_mask(z, nx, ny, self.roi_block_size)
      labels = np.where(mask, labels, 0)

    bodies, missing = self.sp2body.remap_slice(z, labels, strict=self.strict)
    for label in missing:
      logger.warning(
        f"Could not find superpixel ({z}, {label}) in mapping files. Setting to body 0."
      )
    self.num_missing += len(missing)

    if self.body_offset:
      nonzero = bodies != 0
      if nonzero.any() and int(bodies[nonzero].max()) > MAX_UINT64 - self.body_offset:
        raise BodyOffsetOverflow(
          f"body {int(bodies[nonzero].max())} of slice {z} plus offset {self.body_offset} exceeds uint64"
        )
      bodies[nonzero] += np.uint64(self.body_offset)

    self.layer[:,:,z - self.zoffset] = bodies
    self.slices_in_buffer += 1

  def flush(self) -> None:
    if self.layer is None or self.slices_in_buffer == 0:
      return

    self.state = LayerState.FLUSHING
    self.writer.write_layer(self.layer, self.zoffset)
    self.layer[:] = 0
    self.slices_in_buffer = 0
    self.num_flushes += 1
    self.state = LayerState.ACCUMULATING

  def finish(self) -> None:
    """Write out whatever remains in the buffer."""
    if self.slices_in_buffer:
      self.flush()
