from typing import Tuple

import gzip
import io
import lzma
import os
import re

from .exceptions import FilenameParseError

SLICE_REGEXP = re.compile(r'(\d+)\.png$')
SLAB_REGEXP = re.compile(
  r'bodies-(\d+)x(\d+)x(\d+)-(\d+)_(\d+)_(\d+)\.dat(\.[a-z0-9]+)?$'
)

def window_start(z:int, depth:int) -> int:
  """Returns the first Z of the depth-thick window containing z."""
  return (z // depth) * depth

def parse_slice_z(path:str) -> int:
  """Parse the Z slice from digits immediately preceding .png"""
  match = SLICE_REGEXP.search(os.path.basename(path))
  if match is None:
    raise FilenameParseError(f"Unable to parse a Z slice from filename {path!r}")
  return int(match.group(1))

def slab_filename(shape:Tuple[int,int,int], offset:Tuple[int,int,int], extension:str = "") -> str:
  sx, sy, sz = shape
  ox, oy, oz = offset
  return f"bodies-{sx}x{sy}x{sz}-{ox}_{oy}_{oz}.dat{extension}"

def parse_slab_filename(path:str):
  """Returns (shape, offset, extension) encoded in a slab filename."""
  match = SLAB_REGEXP.search(os.path.basename(path))
  if match is None:
    raise FilenameParseError(f"{path!r} is not a slab filename.")
  vals = [ int(x) for x in match.groups()[:6] ]
  return tuple(vals[:3]), tuple(vals[3:]), (match.group(7) or "")

def open_text(filelike):
  """
  Open a path or pass through a text stream.

  Paths ending in .gz, .xz or .lzma are decompressed
  on the fly.
  """
  if hasattr(filelike, 'read'):
    if isinstance(filelike, io.TextIOBase):
      return filelike
    return io.TextIOWrapper(filelike, encoding="utf8")

  filelike = os.fspath(filelike)
  ext = os.path.splitext(filelike)[1]
  if ext == '.gz':
    return gzip.open(filelike, 'rt', encoding="utf8")
  elif ext in ('.lzma', '.xz'):
    return lzma.open(filelike, 'rt', encoding="utf8")
  return open(filelike, 'rt', encoding="utf8")

def source_name(filelike) -> str:
  if hasattr(filelike, 'read'):
    return str(getattr(filelike, 'name', '<stream>'))
  return os.fspath(filelike)
