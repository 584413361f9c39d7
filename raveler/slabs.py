from typing import Iterator, Sequence, Tuple
import logging

import numpy as np

from .codec import Codec

logger = logging.getLogger(__name__)

def tiles(nx:int, ny:int, slab_x:int, slab_y:int) -> Iterator[Tuple[slice, slice]]:
  """
  Partition an nx by ny plane into non-overlapping boxes of
  at most slab_x by slab_y, clipped at the far edges.
  """
  for y in range(0, ny, slab_y):
    for x in range(0, nx, slab_x):
      yield (
        slice(x, min(x + slab_x, nx)),
        slice(y, min(y + slab_y, ny)),
      )

def serialize(tile:np.ndarray) -> bytes:
  """Little endian uint64 bytes in (z, y, x) order, x varying fastest."""
  return np.asarray(tile).astype('<u8', copy=False).tobytes('F')

def deserialize(binary:bytes, shape:Tuple[int,int,int]) -> np.ndarray:
  arr = np.frombuffer(binary, dtype='<u8')
  return arr.reshape(shape, order="F").astype(np.uint64, copy=False)

class SlabWriter:
  """Cuts a filled layer into slabs and hands each to the sinks."""
  def __init__(self, config, codec:Codec, sinks:Sequence):
    self.slab_x = config.slab_x
    self.slab_y = config.slab_y
    self.codec = codec
    self.sinks = list(sinks)
    self.num_slabs = 0

  def write_layer(self, layer:np.ndarray, zoffset:int) -> int:
    nx, ny, nz = layer.shape
    count = 0
    for xs, ys in tiles(nx, ny, self.slab_x, self.slab_y):
      tile = layer[xs, ys, :]
      offset = (xs.start, ys.start, zoffset)
      self.write_slab(tile, offset)
      count += 1

    logger.info(f"Wrote {count} slabs for z {zoffset} - {zoffset + nz - 1}")
    return count

  def write_slab(self, tile:np.ndarray, offset:Tuple[int,int,int]) -> bytes:
    binary = self.codec.compress(serialize(tile))
    for sink in self.sinks:
      sink.put(binary, tile.shape, offset)
    self.num_slabs += 1
    return binary
