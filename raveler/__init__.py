"""Convert Raveler superpixel exports into body label slabs.

A Raveler export is a directory of superpixel images, one
per Z slice, together with two text maps:

  superpixel -> segment (per slice)
  segment -> body

The maps are composed into a single superpixel -> body
table. Each image is decoded into superpixel ids (16-bit
grayscale intensities or 24-bit RGB encoded ids), optionally
masked by a ROI given as sorted block spans, converted to
body ids and accumulated into a layer that is slab_z slices
thick.

Each time the Z window changes the layer is cut into
slab_x by slab_y by slab_z slabs of little endian uint64
body ids which are compressed (none, lz4, or gzip) and
written to a directory and/or POSTed to a DVID labelblk
instance, waiting out server overload responses.
"""
from .config import ExportConfig
from .codec import Codec, NoCompression, Lz4Codec, GzipCodec, get_codec
from .exceptions import (
  RavelerError, ConfigError,
  MalformedRecord, SuperpixelRangeError,
  UnresolvedSegment, UnresolvedSuperpixel,
  RoiFormatError, RoiOrderError,
  UnsupportedImageType, UnsupportedColorModel,
  UnknownSuperpixelFormat, DimensionMismatch,
  FilenameParseError, DuplicateSliceError,
  UnknownCompressionMode, DeliveryError,
  BodyOffsetOverflow,
)
from .layer import LayerAccumulator, LayerState
from .lib import window_start
from .mapping import (
  Superpixel, SuperpixelBodyMap,
  load_segment_body_map, load_superpixel_body_map,
)
from .roi import Span, Roi, RoiCursor, seek, load_roi
from .sinks import FileSink, DvidSink
from .slabs import SlabWriter, tiles, serialize, deserialize
from .superpixel import (
  SuperpixelFormat, superpixel_id,
  image_format, decode_superpixels,
)
from .export import process_raveler_export, list_superpixel_images
from .script import generate_script
from .util import load_slab, load_volume
