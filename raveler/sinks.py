"""
Destinations for compressed slabs.

FileSink writes one file per slab into a local directory or
any cloud path supported by CloudFiles. DvidSink POSTs each
slab to a DVID labelblk instance and waits out 503 (server
overloaded) responses with a randomized backoff.
"""
from typing import Callable, Optional, Tuple
import logging
import os
import random
import time

import requests
from cloudfiles import CloudFiles

from .codec import Codec
from .exceptions import ConfigError, DeliveryError
from .lib import slab_filename

logger = logging.getLogger(__name__)

Vec3 = Tuple[int,int,int]

class Sink:
  def __init__(self, codec:Codec, dry_run:bool = False):
    self.codec = codec
    self.dry_run = dry_run
    self.num_written = 0

  def put(self, data:bytes, shape:Vec3, offset:Vec3) -> None:
    raise NotImplementedError()

class FileSink(Sink):
  def __init__(self, outdir:str, codec:Codec, dry_run:bool = False):
    super().__init__(codec, dry_run)
    self.outdir = outdir

    if "://" in outdir:
      self.cloudpath = outdir
    else:
      outdir = os.path.abspath(outdir)
      if os.path.exists(outdir) and not os.path.isdir(outdir):
        raise ConfigError(f"Supplied output path ({outdir}) is not a directory.")
      if not os.path.exists(outdir) and not dry_run:
        logger.info(f"Creating output directory: {outdir}")
        os.makedirs(outdir, exist_ok=True)
      self.cloudpath = "file://" + outdir

    self.cf = None if dry_run else CloudFiles(self.cloudpath)

  def filename(self, shape:Vec3, offset:Vec3) -> str:
    return slab_filename(shape, offset, self.codec.extension)

  def put(self, data:bytes, shape:Vec3, offset:Vec3) -> None:
    filename = self.filename(shape, offset)
    if self.dry_run:
      logger.info(f"Dry run: would write {len(data)} bytes to {self.cloudpath}/{filename}")
      return

    self.cf.put(
      filename, data,
      content_type="application/octet-stream",
      compress=None,
    )
    self.num_written += 1
    logger.debug(f"Wrote {len(data)} bytes to {self.cloudpath}/{filename}")

class DvidSink(Sink):
  """
  Sends slabs to {url}/raw/0_1_2/{sx}_{sy}_{sz}/{ox}_{oy}_{oz}

  url: labelblk instance endpoint, e.g.
    http://dvid.example.org/api/node/3f8c/segmentation
  """
  OVERLOADED = 503
  BACKOFF_RANGE = (30, 59)

  def __init__(
    self, url:str, codec:Codec,
    dry_run:bool = False,
    session:Optional[requests.Session] = None,
    sleep:Callable[[float], None] = time.sleep,
  ):
    super().__init__(codec, dry_run)
    self.url = url.rstrip('/')
    self.session = session or requests.Session()
    self.sleep = sleep

  def endpoint(self, shape:Vec3, offset:Vec3) -> str:
    size = '_'.join(( str(int(s)) for s in shape ))
    corner = '_'.join(( str(int(o)) for o in offset ))
    return f"{self.url}/raw/0_1_2/{size}/{corner}"

  def params(self) -> dict:
    if self.codec.name == "none":
      return {}
    return { "compression": self.codec.name }

  def put(self, data:bytes, shape:Vec3, offset:Vec3) -> None:
    url = self.endpoint(shape, offset)
    params = self.params()

    if self.dry_run:
      logger.info(f"Dry run: would POST {len(data)} bytes to {url} {params}")
      return

    attempt = 0
    while True:
      attempt += 1
      try:
        r = self.session.post(url, data=data, params=params)
      except requests.RequestException as err:
        raise DeliveryError(f"Unable to POST slab to {url}: {err}")

      if r.status_code == self.OVERLOADED:
        wait = random.randint(*self.BACKOFF_RANGE)
        logger.warning(
          f"DVID reports it is overloaded (attempt {attempt}) for {url}. Retrying in {wait} seconds."
        )
        self.sleep(wait)
        continue

      if not (200 <= r.status_code < 300):
        raise DeliveryError(
          f"POST to {url} failed with status {r.status_code}: {r.text[:500]}"
        )
      break

    self.num_written += 1
    logger.debug(f"Posted {len(data)} bytes to {url}")

def make_sinks(config, codec:Codec, session:Optional[requests.Session] = None):
  sinks = []
  if config.outdir:
    sinks.append(FileSink(config.outdir, codec, dry_run=config.dry_run))
  if config.url:
    sinks.append(DvidSink(config.url, codec, dry_run=config.dry_run, session=session))
  return sinks
