"""
Byte stream codecs applied to serialized slabs.

Each codec exposes compress and decompress plus the
name sent to DVID and the extension used for files.
New formats only need a subclass and a registry entry.
"""
from typing import Dict, Type

import gzip

import lz4.block

from .exceptions import UnknownCompressionMode

class Codec:
  name = ""
  extension = ""

  def compress(self, data:bytes) -> bytes:
    raise NotImplementedError()

  def decompress(self, data:bytes, nbytes:int) -> bytes:
    raise NotImplementedError()

  def __repr__(self):
    return f"{self.__class__.__name__}()"

class NoCompression(Codec):
  name = "none"
  extension = ""

  def compress(self, data:bytes) -> bytes:
    return bytes(data)

  def decompress(self, data:bytes, nbytes:int) -> bytes:
    return bytes(data)

class Lz4Codec(Codec):
  """Raw LZ4 blocks without a size prefix, as DVID expects them."""
  name = "lz4"
  extension = ".lz4"

  def compress(self, data:bytes) -> bytes:
    return lz4.block.compress(data, store_size=False)

  def decompress(self, data:bytes, nbytes:int) -> bytes:
    return lz4.block.decompress(data, uncompressed_size=nbytes)

class GzipCodec(Codec):
  name = "gzip"
  extension = ".gz"

  def __init__(self, compresslevel:int = 6):
    self.compresslevel = compresslevel

  def compress(self, data:bytes) -> bytes:
    return gzip.compress(data, compresslevel=self.compresslevel)

  def decompress(self, data:bytes, nbytes:int) -> bytes:
    return gzip.decompress(data)

CODECS:Dict[str, Type[Codec]] = {
  "none": NoCompression,
  "lz4": Lz4Codec,
  "lz": Lz4Codec,
  "gzip": GzipCodec,
  "deflate": GzipCodec,
}

def get_codec(mode:str) -> Codec:
  try:
    return CODECS[mode.lower()]()
  except (KeyError, AttributeError):
    raise UnknownCompressionMode(
      f"Unknown compression mode {mode!r}. Expected one of: {', '.join(CODECS)}"
    )

def codec_for_extension(ext:str) -> Codec:
  for kls in CODECS.values():
    if kls.extension == ext:
      return kls()
  raise UnknownCompressionMode(f"No codec writes files with extension {ext!r}.")
