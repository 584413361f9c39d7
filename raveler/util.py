from typing import Tuple

import os

import numpy as np

from .codec import codec_for_extension
from .lib import parse_slab_filename
from .slabs import deserialize

def load_slab(path:str) -> Tuple[np.ndarray, Tuple[int,int,int]]:
  """
  Load a slab written by FileSink.

  Returns: (uint64 array of shape (sx, sy, sz), (ox, oy, oz))
  """
  shape, offset, ext = parse_slab_filename(path)
  codec = codec_for_extension(ext)

  with open(path, 'rb') as f:
    binary = f.read()

  nbytes = 8 * shape[0] * shape[1] * shape[2]
  return deserialize(codec.decompress(binary, nbytes), shape), offset

def load_volume(outdir:str) -> Tuple[np.ndarray, Tuple[int,int,int]]:
  """
  Assemble every slab in outdir into one array covering
  their bounding box.

  Returns: (volume, minimum corner)
  """
  slabs = []
  for filename in sorted(os.listdir(outdir)):
    if filename.startswith("bodies-"):
      slabs.append(load_slab(os.path.join(outdir, filename)))

  if not slabs:
    return np.zeros((0,0,0), dtype=np.uint64), (0,0,0)

  minpt = np.min([ offset for arr, offset in slabs ], axis=0)
  maxpt = np.max([ np.add(offset, arr.shape) for arr, offset in slabs ], axis=0)

  volume = np.zeros(maxpt - minpt, dtype=np.uint64, order="F")
  for arr, offset in slabs:
    x, y, z = np.subtract(offset, minpt)
    sx, sy, sz = arr.shape
    volume[x:x+sx, y:y+sy, z:z+sz] = arr

  return volume, tuple(int(v) for v in minpt)
