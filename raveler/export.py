from typing import List, Optional, Tuple
import logging
import os
import time

from PIL import Image
from tqdm import tqdm

from .codec import get_codec
from .config import ExportConfig
from .exceptions import DuplicateSliceError, UnsupportedImageType
from .layer import LayerAccumulator
from .lib import parse_slice_z, source_name
from .mapping import load_segment_body_map, load_superpixel_body_map
from .roi import load_roi
from .sinks import make_sinks
from .slabs import SlabWriter

logger = logging.getLogger(__name__)

def list_superpixel_images(
  sp_dir:str,
  min_z:int = 0,
  max_z:Optional[int] = None,
) -> List[Tuple[int, str]]:
  """
  Find superpixel PNGs beneath sp_dir and return (z, path)
  pairs in ascending Z order, restricted to [min_z, max_z].
  """
  images = {}
  for root, dirs, files in os.walk(sp_dir):
    dirs.sort()
    for filename in sorted(files):
      path = os.path.join(root, filename)
      if os.path.splitext(filename)[1] != '.png':
        logger.info(f"Skipping non-PNG file: {path}")
        continue

      z = parse_slice_z(path)
      if z < min_z or (max_z is not None and z > max_z):
        continue
      if z in images:
        raise DuplicateSliceError(
          f"Both {images[z]} and {path} contain Z slice {z}."
        )
      images[z] = path

  return sorted(images.items())

def process_raveler_export(
  sp_to_seg,
  seg_to_body,
  sp_dir:str,
  config:ExportConfig,
  session=None,
) -> LayerAccumulator:
  """
  Convert a Raveler export into body label slabs.

  sp_to_seg: superpixel -> segment map (path or text stream)
  seg_to_body: segment -> body map (path or text stream)
  sp_dir: directory of superpixel PNGs, one per Z slice
  config: ExportConfig describing slabs and destinations
  session: optional requests.Session used for DVID

  Returns: the LayerAccumulator, for its counters
  """
  config.validate()
  start = time.time()

  seg2body = load_segment_body_map(seg_to_body)
  sp2body = load_superpixel_body_map(
    sp_to_seg, seg2body,
    segment_source=source_name(seg_to_body),
  )
  del seg2body
  logger.info(f"Built superpixel->body map: {time.time() - start:.1f}s")

  roi = load_roi(config.roi)
  codec = get_codec(config.compression)
  sinks = make_sinks(config, codec, session=session)
  writer = SlabWriter(config, codec, sinks)
  accumulator = LayerAccumulator(config, sp2body, writer, roi=roi)

  images = list_superpixel_images(sp_dir, config.min_z, config.max_z)
  logger.info(f"Found {len(images)} superpixel images in z range [{config.min_z}, {config.max_z}]")

  for z, path in tqdm(images, disable=(not config.progress), desc="Superpixel Images"):
    logger.debug(f"Processing {path}...")
    with Image.open(path) as img:
      if img.format != "PNG":
        raise UnsupportedImageType(f"superpixel image {path} was not PNG formatted (got {img.format})")
      accumulator.add_image(z, img, name=path)

  accumulator.finish()

  logger.info(
    f"Wrote {writer.num_slabs} slabs from {len(images)} images "
    f"({accumulator.num_missing} unresolved superpixels): {time.time() - start:.1f}s"
  )
  return accumulator
