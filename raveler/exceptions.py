class RavelerError(Exception):
  pass

class ConfigError(RavelerError):
  pass

class MalformedRecord(RavelerError):
  def __init__(self, source:str, lineno:int, line:str):
    self.source = source
    self.lineno = lineno
    self.line = line
    super().__init__(
      f"Unable to parse line {lineno} of {source}: {line.rstrip()!r}"
    )

class SuperpixelRangeError(RavelerError):
  pass

class UnresolvedSegment(RavelerError):
  pass

class UnresolvedSuperpixel(RavelerError):
  pass

class RoiFormatError(RavelerError):
  pass

class RoiOrderError(RavelerError):
  pass

class UnsupportedImageType(RavelerError):
  pass

class UnsupportedColorModel(RavelerError):
  pass

class UnknownSuperpixelFormat(RavelerError):
  pass

class DimensionMismatch(RavelerError):
  pass

class FilenameParseError(RavelerError):
  pass

class DuplicateSliceError(RavelerError):
  pass

class UnknownCompressionMode(RavelerError):
  pass

class DeliveryError(RavelerError):
  pass

class BodyOffsetOverflow(RavelerError):
  pass
