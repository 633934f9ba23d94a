# -*- coding: utf-8 -*-
"""Streams remote files to disk.

Response bodies are never held in memory: they are written chunk by chunk to a file first, then
decoded from there. Each ``streamed_download`` works in a private temporary directory, so
sidecar files GDAL writes next to a download (such as GML ``.gfs`` schemas) go with it. The
directory is removed on every exit path, including KeyboardInterrupt; one that cannot be removed
is logged as orphaned.
"""

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from urllib.parse import urlparse

import requests

from ..config import get_default_config
from ..core.exceptions import DestinationExists, NetworkError, ServiceError
from ..io.raster import read_raster, read_raster_bands
from ..io.vector import read_vector

logger = logging.getLogger(__name__)

_ERROR_BODY_LIMIT = 1000


def new_session(config=None):
    """Create a requests session carrying the configured User-Agent and extra headers."""
    config = config or get_default_config()
    session = requests.Session()
    session.headers.update({"User-Agent": config.user_agent, **config.extra_headers})
    return session


def _describe(url, params):
    described = {"url": url}
    if params:
        described.update(params)
    return described


def _stream_to_file(session, url, params, fileobj, config, operation):
    """Issue a GET and copy the body into ``fileobj``; returns the number of bytes written."""
    described = _describe(url, params)
    logger.debug("GET %s params=%s", url, params)
    written = 0
    try:
        with session.get(url, params=params, stream=True, timeout=config.timeout) as response:
            if response.status_code >= 400:
                body = response.text[:_ERROR_BODY_LIMIT].strip()
                raise ServiceError(
                    operation,
                    described,
                    f"HTTP {response.status_code} {response.reason}" + (f": {body}" if body else ""),
                )
            for chunk in response.iter_content(chunk_size=config.chunk_size):
                if chunk:
                    fileobj.write(chunk)
                    written += len(chunk)
    except requests.exceptions.RequestException as e:
        raise NetworkError(operation, described, str(e)) from e
    return written


def _remove_temporary(path):
    try:
        if os.path.isdir(path):
            shutil.rmtree(path)
        else:
            os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove temporary %s, it is orphaned: %s", path, e)


def _temporary_name(url, suffix):
    name = os.path.basename(urlparse(url).path)
    if suffix and name.lower().endswith(suffix.lower()):
        return name
    return "download" + suffix


@contextmanager
def streamed_download(url, params=None, suffix="", session=None, config=None, operation="download"):
    """Download ``url`` into a file in a scoped temporary directory and yield its path.

    Parameters:
    -----------
    url : str
        Resource or service endpoint
    params : dict, optional
        Query-string parameters
    suffix : str
        Extension for the temporary file, so drivers can be resolved from it
    session : requests.Session, optional
        Session to issue the request with
    config : Config, optional
        Timeout, chunk size and temporary directory
    operation : str
        Name reported in errors

    Yields:
    -------
    path : str
        Path of the downloaded file; its directory is removed when the block exits
    """
    config = config or get_default_config()
    session = session or new_session(config)
    directory = tempfile.mkdtemp(prefix="spatialio_", dir=config.temp_root)
    path = os.path.join(directory, _temporary_name(url, suffix))
    try:
        with open(path, "wb") as f:
            written = _stream_to_file(session, url, params, f, config, operation)
        logger.info("Downloaded %d bytes from %s", written, url)
        yield path
    finally:
        _remove_temporary(directory)


def download(url, destination, overwrite=False, params=None, session=None, config=None):
    """Stream a remote file (e.g. from a geoportal) to ``destination``.

    The body is written to a temporary file next to the destination and moved into place only
    once complete, so an interrupted download never leaves a partial file behind.

    Parameters:
    -----------
    url : str
        URL of the file
    destination : str or os.PathLike
        Where to save it
    overwrite : bool
        Replace an existing file at ``destination``

    Returns:
    --------
    destination : str
    """
    config = config or get_default_config()
    destination = os.fspath(destination)
    if os.path.exists(destination) and not overwrite:
        raise DestinationExists("download", {"url": url, "destination": destination}, "pass overwrite=True to replace it")

    parent = os.path.dirname(destination) or "."
    os.makedirs(parent, exist_ok=True)
    session = session or new_session(config)

    fd, partial = tempfile.mkstemp(prefix=".spatialio_", suffix=".part", dir=parent)
    try:
        with os.fdopen(fd, "wb") as f:
            written = _stream_to_file(session, url, params, f, config, "download")
        os.replace(partial, destination)
    finally:
        _remove_temporary(partial)

    logger.info("Saved %d bytes from %s to %s", written, url, destination)
    return destination


def _suffix_of(url):
    return os.path.splitext(urlparse(url).path)[1].lower()


def read_remote_vector(url, layer=None, driver=None, options=None, member=None, session=None, config=None):
    """Download a remote vector file to a scoped temporary file and read it.

    Parameters:
    -----------
    url : str
        URL of the file; zipped sources (``.zip``) are read without unpacking
    layer, driver, options :
        As for ``read_vector``
    member : str, optional
        Path inside a zip archive; defaults to the first readable member

    Returns:
    --------
    dataset : VectorDataset
    """
    with streamed_download(url, suffix=_suffix_of(url), session=session, config=config, operation="read_remote_vector") as path:
        locator = f"{path}/{member}" if member else path
        dataset = read_vector(locator, layer=layer, driver=driver, options=options)
    dataset.source = url
    return dataset


def read_remote_raster(url, band=None, driver=None, member=None, session=None, config=None):
    """Download a remote raster to a scoped temporary file and read one band, or all bands when ``band`` is None."""
    with streamed_download(url, suffix=_suffix_of(url), session=session, config=config, operation="read_remote_raster") as path:
        locator = f"{path}/{member}" if member else path
        if band is None:
            dataset = read_raster_bands(locator, driver=driver)
        else:
            dataset = read_raster(locator, band=band, driver=driver)
    dataset.source = url
    return dataset
