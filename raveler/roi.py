"""
Regions of interest described as run-length spans of blocks.

A span (z, y, x0, x1) includes blocks x0 through x1 (inclusive)
in block row y of block plane z. A ROI is a list of spans sorted
ascending by (z, y, x0) with no overlap within a row, which is
how DVID serves ROIs.

Membership is answered by a cursor that only moves forward, so
a complete raster sweep over N blocks costs O(N + S) instead of
O(N log S) for S spans.
"""
from typing import Optional, Sequence, Tuple
from collections import namedtuple
import json
import os

import numpy as np

from .exceptions import RoiFormatError, RoiOrderError

Span = namedtuple('Span', [ 'z', 'y', 'x0', 'x1' ])

def span_less_than_block(span:Span, bx:int, by:int, bz:int) -> bool:
  if span.z != bz:
    return span.z < bz
  if span.y != by:
    return span.y < by
  return span.x1 < bx

def seek(
  spans:Sequence[Span], cursor:int,
  bx:int, by:int, bz:int,
) -> Tuple[int, bool]:
  """
  Advance cursor past every span that lies before block
  (bx, by, bz) and report whether the span now under the
  cursor contains the block.

  Blocks must be queried in ascending (z, y, x) order for
  the answer to be correct.

  Returns: (cursor, included)
  """
  nspans = len(spans)
  while cursor < nspans and span_less_than_block(spans[cursor], bx, by, bz):
    cursor += 1

  if cursor >= nspans:
    return cursor, False

  span = spans[cursor]
  included = (
    span.z == bz and span.y == by
    and span.x0 <= bx <= span.x1
  )
  return cursor, included

class RoiCursor:
  """Forward-only membership test over a sorted span list."""
  def __init__(self, spans:Sequence[Span], index:int = 0):
    self.spans = spans
    self.index = index
    self._last = None

  def advance(self, bx:int, by:int, bz:int) -> bool:
    block = (bz, by, bx)
    if self._last is not None and block < self._last:
      raise RoiOrderError(
        f"ROI blocks must be queried in ascending raster order. "
        f"Got (x,y,z) {(bx,by,bz)} after {self._last[::-1]}"
      )
    self._last = block
    self.index, included = seek(self.spans, self.index, bx, by, bz)
    return included

  @property
  def exhausted(self) -> bool:
    return self.index >= len(self.spans)

def validate_spans(spans:Sequence[Span]) -> None:
  prev = None
  for i, span in enumerate(spans):
    if span.x0 > span.x1:
      raise RoiFormatError(f"Span {i} {tuple(span)} has x0 > x1.")
    if min(span) < 0:
      raise RoiFormatError(f"Span {i} {tuple(span)} has negative coordinates.")
    if prev is not None:
      if (span.z, span.y, span.x0) < (prev.z, prev.y, prev.x0):
        raise RoiFormatError(
          f"Spans are not sorted ascending by (z, y, x0): span {i} {tuple(span)} follows {tuple(prev)}"
        )
      if span.z == prev.z and span.y == prev.y and span.x0 <= prev.x1:
        raise RoiFormatError(
          f"Span {i} {tuple(span)} overlaps {tuple(prev)}"
        )
    prev = span

class Roi:
  def __init__(self, spans:Sequence[Sequence[int]]):
    self.spans = [ Span(*[ int(v) for v in span ]) for span in spans ]
    validate_spans(self.spans)

    self._plane_cursor = 0
    self._plane_z = None
    self._cache_key = None
    self._cache_mask = None

  def __len__(self):
    return len(self.spans)

  def contains(self, bx:int, by:int, bz:int) -> bool:
    """Independent membership test for a single block."""
    for span in self.spans:
      if span.z == bz and span.y == by and span.x0 <= bx <= span.x1:
        return True
    return False

  def _plane_start(self, bz:int) -> int:
    """Index of the first span with z >= bz."""
    if self._plane_z is None or bz < self._plane_z:
      self._plane_cursor = 0
    self._plane_z = bz

    nspans = len(self.spans)
    while self._plane_cursor < nspans and self.spans[self._plane_cursor].z < bz:
      self._plane_cursor += 1
    return self._plane_cursor

  def block_mask(self, bz:int, nbx:int, nby:int) -> np.ndarray:
    """
    Boolean (nbx, nby) array of the blocks of plane bz that
    are inside the ROI. Consecutive calls for the same plane
    reuse the previous sweep.
    """
    key = (bz, nbx, nby)
    if key == self._cache_key:
      return self._cache_mask

    mask = np.zeros((nbx, nby), dtype=bool, order="F")
    cursor = RoiCursor(self.spans, self._plane_start(bz))
    for by in range(nby):
      for bx in range(nbx):
        mask[bx, by] = cursor.advance(bx, by, bz)
        if cursor.exhausted:
          break
      if cursor.exhausted:
        break

    self._cache_key = key
    self._cache_mask = mask
    return mask

  def pixel_mask(self, z:int, nx:int, ny:int, block_size:int) -> np.ndarray:
    """Boolean (nx, ny) array of the pixels of slice z inside the ROI."""
    nbx = (nx + block_size - 1) // block_size
    nby = (ny + block_size - 1) // block_size
    mask = self.block_mask(z // block_size, nbx, nby)
    mask = np.repeat(np.repeat(mask, block_size, axis=0), block_size, axis=1)
    return mask[:nx, :ny]

  def __repr__(self):
    return f"Roi(spans={len(self.spans)})"

def load_roi(source) -> Optional[Roi]:
  """
  Load a ROI from a JSON file containing a list of
  [z, y, x0, x1] spans or from an in-memory list of spans.
  """
  if source is None or isinstance(source, Roi):
    return source
  if isinstance(source, (str, os.PathLike)):
    with open(source, 'rt') as f:
      try:
        spans = json.load(f)
      except json.JSONDecodeError as err:
        raise RoiFormatError(f"Unable to parse ROI JSON {source}: {err}")
  else:
    spans = source

  if not isinstance(spans, list):
    raise RoiFormatError("ROI must be a list of [z, y, x0, x1] spans.")
  for span in spans:
    if not isinstance(span, (list, tuple)) or len(span) != 4:
      raise RoiFormatError(f"ROI span {span!r} is not of the form [z, y, x0, x1].")

  return Roi(spans)
