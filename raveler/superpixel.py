"""
Decoding Raveler superpixel ids from image pixels.

From the Raveler documentation:
  16-bit: pixel intensity is the superpixel id
  32-bit: superpixel id = R + (256 * G) + (65536 * B)
"""
from typing import Union
from enum import IntEnum

import numpy as np

from .exceptions import (
  UnsupportedImageType, UnsupportedColorModel,
  UnknownSuperpixelFormat,
)

class SuperpixelFormat(IntEnum):
  NONE = 0
  BITS16 = 1
  BITS24 = 2

GRAY16_MODES = ('I;16', 'I;16L', 'I;16B', 'I;16N', 'I')
RGB_MODES = ('RGB', 'RGBA', 'RGBa')

def superpixel_id(color, fmt:SuperpixelFormat) -> int:
  """Decode a single pixel sample into a superpixel id."""
  if fmt == SuperpixelFormat.BITS24:
    if (
      not isinstance(color, (tuple, list, np.ndarray))
      or len(color) not in (3, 4)
      or any(( int(c) < 0 or int(c) > 255 for c in color ))
    ):
      raise UnsupportedColorModel(
        f"Expected an 8-bit RGB or RGBA sample, got {type(color).__name__}: {color!r}"
      )
    r, g, b = ( int(c) for c in color[:3] )
    return r | (g << 8) | (b << 16)
  elif fmt == SuperpixelFormat.BITS16:
    if not isinstance(color, (int, np.integer)) or isinstance(color, bool):
      raise UnsupportedColorModel(
        f"Expected a 16-bit grayscale sample, got {type(color).__name__}: {color!r}"
      )
    return int(color) & 0xFFFF
  raise UnknownSuperpixelFormat(f"Unknown superpixel format {fmt!r}")

def _rawmode(img):
  """Pixel layout of a not yet loaded Pillow image as stored in the file."""
  for tile in (getattr(img, "tile", None) or []):
    args = tile[3]
    if isinstance(args, tuple):
      args = args[0] if args else None
    if isinstance(args, str):
      return args
  return None

def image_format(img) -> SuperpixelFormat:
  """
  Determine the superpixel format of an entire image from
  its type. Accepts Pillow images and numpy arrays.
  """
  if isinstance(img, np.ndarray):
    if img.ndim == 2 and img.dtype == np.uint16:
      return SuperpixelFormat.BITS16
    elif img.ndim == 3 and img.dtype == np.uint8 and img.shape[2] in (3, 4):
      return SuperpixelFormat.BITS24
    raise UnsupportedImageType(
      f"Unable to decode superpixel array of dtype {img.dtype} and shape {img.shape}"
    )

  mode = getattr(img, "mode", None)
  if mode in GRAY16_MODES:
    return SuperpixelFormat.BITS16
  elif mode in RGB_MODES:
    rawmode = _rawmode(img)
    if rawmode and ";16" in rawmode:
      raise UnsupportedImageType(
        f"Unable to decode superpixel image with 16 bits per channel (mode: {mode}, rawmode: {rawmode})"
      )
    return SuperpixelFormat.BITS24
  raise UnsupportedImageType(
    f"Unable to decode superpixel image of type {type(img).__name__} (mode: {mode})"
  )

def decode_superpixels(img, fmt:Union[SuperpixelFormat,None] = None) -> np.ndarray:
  """
  Decode every pixel of an image into superpixel ids.

  Returns: uint32 array of shape (height, width)
  """
  if fmt is None:
    fmt = image_format(img)

  arr = np.asarray(img)

  if fmt == SuperpixelFormat.BITS16:
    if arr.ndim != 2:
      raise UnsupportedColorModel(f"Expected single channel 16-bit pixels. Got shape: {arr.shape}")
    if arr.dtype != np.uint16 and arr.size and (arr.min() < 0 or arr.max() > 0xFFFF):
      raise UnsupportedColorModel(
        f"Expected 16-bit grayscale values. Got values in [{arr.min()}, {arr.max()}]"
      )
    return arr.astype(np.uint32)
  elif fmt == SuperpixelFormat.BITS24:
    if arr.ndim != 3 or arr.shape[2] not in (3, 4) or arr.dtype != np.uint8:
      raise UnsupportedColorModel(
        f"Expected 8-bit RGB or RGBA pixels. Got dtype {arr.dtype} and shape {arr.shape}"
      )
    rgb = arr[:,:,:3].astype(np.uint32)
    return rgb[:,:,0] | (rgb[:,:,1] << 8) | (rgb[:,:,2] << 16)

  raise UnknownSuperpixelFormat(f"Unknown superpixel format {fmt!r}")
