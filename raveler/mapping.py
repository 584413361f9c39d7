"""
Loading the Raveler superpixel -> segment -> body tables.

Raveler exports describe bodies with two text files:

  superpixel_to_segment_map.txt: <slice> <superpixel> <segment>
  segment_to_body_map.txt: <segment> <body>

These are composed into a single (slice, superpixel) -> body
table after which the segment table is no longer needed.
"""
from typing import Dict, Iterator, List, Optional, Tuple, Union
from collections import namedtuple
import logging

import numpy as np
import fastremap

from .exceptions import (
  MalformedRecord, SuperpixelRangeError,
  UnresolvedSegment, UnresolvedSuperpixel,
)
from .lib import open_text, source_name

logger = logging.getLogger(__name__)

Superpixel = namedtuple('Superpixel', [ 'slice', 'label' ])

MAX_SUPERPIXEL = 0xFFFFFF
MAX_UINT32 = int(np.iinfo(np.uint32).max)
MAX_UINT64 = int(np.iinfo(np.uint64).max)

def _records(filelike, nfields:int) -> Iterator[Tuple[int, List[int], str]]:
  """Yields (lineno, values, line) for each data line."""
  name = source_name(filelike)
  opened = not hasattr(filelike, 'read')
  f = open_text(filelike)
  try:
    for lineno, line in enumerate(f, start=1):
      if line.strip() == "" or line[0] in (' ', '#'):
        continue
      fields = line.split()
      if len(fields) != nfields:
        raise MalformedRecord(name, lineno, line)
      try:
        values = [ int(field) for field in fields ]
      except ValueError:
        raise MalformedRecord(name, lineno, line)
      if any(( val < 0 or val > MAX_UINT64 for val in values )):
        raise MalformedRecord(name, lineno, line)
      yield lineno, values, line
  finally:
    if opened:
      f.close()

def load_segment_body_map(filelike) -> Dict[int,int]:
  """Load the segment -> body map from a path or text stream."""
  name = source_name(filelike)
  seg2body = {}
  for i, (lineno, (segment, body), line) in enumerate(_records(filelike, 2), start=1):
    seg2body[segment] = body
    if i % 100000 == 0:
      logger.info(f"Loaded {i} lines of segment->body map")

  logger.info(f"Loaded segment->body map: {name} ({len(seg2body)} segments)")
  return seg2body

class SuperpixelBodyMap:
  """
  Immutable (slice, superpixel) -> body table.

  Entries are grouped by slice so that a whole image
  can be remapped in a single pass.
  """
  def __init__(self, slices:Optional[Dict[int, Dict[int,int]]] = None):
    self._slices = slices or {}
    self._len = sum(( len(m) for m in self._slices.values() ))

  def __len__(self) -> int:
    return self._len

  def __contains__(self, key) -> bool:
    slc, label = key
    return label in self._slices.get(slc, {})

  def __getitem__(self, key) -> int:
    slc, label = key
    if label == 0:
      return 0
    try:
      return self._slices[slc][label]
    except KeyError:
      raise KeyError(Superpixel(slc, label))

  def get(self, key, default:Optional[int] = None) -> Optional[int]:
    try:
      return self[key]
    except KeyError:
      return default

  def slice_mapping(self, slc:int) -> Dict[int,int]:
    return self._slices.get(slc, {})

  def remap_slice(
    self, slc:int, labels:np.ndarray,
    strict:bool = False,
  ) -> Tuple[np.ndarray, List[int]]:
    """
    Convert an array of superpixel labels from slice slc
    to body ids.

    Label 0 always becomes body 0. Labels absent from the
    table become body 0 and are returned in the missing list
    unless strict is set, in which case UnresolvedSuperpixel
    is raised.

    Returns: (bodies as uint64, missing labels)
    """
    table = self.slice_mapping(slc)
    uniq = fastremap.unique(labels)

    mapping = { 0: 0 }
    missing = []
    for label in uniq:
      label = int(label)
      if label == 0:
        continue
      body = table.get(label)
      if body is None:
        missing.append(label)
        body = 0
      mapping[label] = body

    if strict and missing:
      raise UnresolvedSuperpixel(
        f"Could not find superpixels {missing[:10]} (slice {slc}) in mapping files."
      )

    bodies = labels.astype(np.uint64)
    bodies = fastremap.remap(bodies, mapping, preserve_missing_labels=False, in_place=True)
    return bodies.astype(np.uint64, copy=False), missing

  def __repr__(self):
    return f"SuperpixelBodyMap(slices={len(self._slices)}, superpixels={len(self)})"

def load_superpixel_body_map(
  filelike,
  seg2body:Dict[int,int],
  segment_source:Union[str,None] = None,
) -> SuperpixelBodyMap:
  """
  Compose the superpixel -> segment map read from filelike
  with seg2body into a SuperpixelBodyMap.

  segment_source: name of the segment -> body source,
    used in error messages.
  """
  name = source_name(filelike)
  segment_source = segment_source or "the segment->body map"

  logger.info(f"Processing superpixel->segment map: {name}")

  slices = {}
  num_loaded = 0
  for lineno, (slc, superpixel, segment), line in _records(filelike, 3):
    if superpixel == 0:
      continue
    if superpixel > MAX_SUPERPIXEL:
      raise SuperpixelRangeError(
        f"Error in line {lineno} of {name}: superpixel id {superpixel} exceeds 24-bit value!"
      )
    if slc > MAX_UINT32:
      raise MalformedRecord(name, lineno, line)

    try:
      body = seg2body[segment]
    except KeyError:
      raise UnresolvedSegment(
        f"Segment ({segment}) of slice {slc} in {name} not found in {segment_source}"
      )

    slice_map = slices.get(slc)
    if slice_map is None:
      slice_map = slices[slc] = {}
    slice_map[superpixel] = body

    num_loaded += 1
    if num_loaded % 1000000 == 0:
      logger.info(f"Loaded {num_loaded} superpixel->body mappings")

  sp2body = SuperpixelBodyMap(slices)
  logger.info(f"Loaded {len(sp2body)} superpixel->body mappings from {name}")
  return sp2body
