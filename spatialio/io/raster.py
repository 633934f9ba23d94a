# -*- coding: utf-8 -*-
"""Handles raster input and output for GeoTIFF, ASCII grid, GeoPackage and R native rasters.

Reading returns RasterDataset objects whose bands share one header. Writing takes an explicit storage
type from a fixed set (LOG1S, INT1S ... FLT8S). Values are cast with numpy and an undersized type
silently wraps or truncates: picking a type wide enough for the data is up to the caller, and
``datatype_for`` suggests the narrowest one that fits.
"""

import logging
import os
from contextlib import contextmanager
from enum import Enum

import numpy as np
import rasterio
from rasterio.errors import RasterioError, RasterioIOError

from ..config import get_default_config
from ..core.dataset import RasterDataset, crs_to_string
from ..core.exceptions import (
    BandIndexOutOfRange,
    DestinationExists,
    ParseError,
    SourceNotFound,
    SpatialIOError,
    UnsupportedFormat,
)
from ..core.formats import RASTER, is_remote, local_path, resolve_archive_member, resolve_driver, to_gdal_path
from ..utils.helpers import parse_options

logger = logging.getLogger(__name__)


class DataType(Enum):
    """Raster storage types: (numpy dtype, bits per cell)."""

    LOG1S = ("uint8", 1)
    INT1S = ("int8", 8)
    INT1U = ("uint8", 8)
    INT2S = ("int16", 16)
    INT2U = ("uint16", 16)
    INT4S = ("int32", 32)
    INT4U = ("uint32", 32)
    FLT4S = ("float32", 32)
    FLT8S = ("float64", 64)

    @property
    def dtype(self):
        return np.dtype(self.value[0])

    @property
    def nbits(self):
        return self.value[1]

    @classmethod
    def parse(cls, value):
        """Accept a DataType, its name ("INT2U") or a numpy dtype name ("uint16", "bool")."""
        if isinstance(value, cls):
            return value
        name = str(value).strip()
        if name.upper() in cls.__members__:
            return cls[name.upper()]
        if name.lower() == "bool":
            return cls.LOG1S
        try:
            dtype = np.dtype(name.lower())
        except TypeError:
            dtype = None
        for member in cls:
            if dtype is not None and member.dtype == dtype and member.nbits == dtype.itemsize * 8:
                return member
        raise ValueError(f"Unknown raster data type '{value}'; use one of {', '.join(cls.__members__)}")


_INTEGER_ORDER = (DataType.INT1U, DataType.INT1S, DataType.INT2U, DataType.INT2S, DataType.INT4U, DataType.INT4S)


def datatype_for(data):
    """Suggest the narrowest storage type able to hold every value in ``data``.

    Parameters:
    -----------
    data : numpy.ndarray or RasterDataset
        Cell values

    Returns:
    --------
    datatype : DataType
    """
    if isinstance(data, RasterDataset):
        data = data.data
    data = np.asarray(data)

    if data.dtype == bool:
        return DataType.LOG1S

    if np.issubdtype(data.dtype, np.integer):
        low, high = (int(data.min()), int(data.max())) if data.size else (0, 0)
        for candidate in _INTEGER_ORDER:
            info = np.iinfo(candidate.dtype)
            if info.min <= low and high <= info.max:
                return candidate
        return DataType.FLT8S

    if data.dtype.itemsize <= 4:
        return DataType.FLT4S
    finite = data[np.isfinite(data)]
    if finite.size and np.abs(finite).max() > np.finfo(np.float32).max:
        return DataType.FLT8S
    if np.array_equal(finite.astype(np.float32).astype(data.dtype), finite):
        return DataType.FLT4S
    return DataType.FLT8S


@contextmanager
def _open_raster(source, driver, operation, params):
    """Open a raster for reading, mapping rasterio failures to spatialio errors."""
    locator = os.fspath(source)
    if not (is_remote(locator) or locator.startswith("/vsi")) and not os.path.exists(local_path(locator)):
        raise SourceNotFound(operation, params, f"No such file or directory: '{local_path(locator)}'")
    locator = resolve_archive_member(locator, RASTER)

    resolved = resolve_driver(locator, driver, kind=RASTER)
    open_kwargs = {"driver": resolved.name} if driver is not None else {}

    try:
        src = rasterio.open(to_gdal_path(locator), **open_kwargs)
    except RasterioIOError as e:
        if is_remote(locator):
            raise SourceNotFound(operation, params, str(e)) from e
        raise ParseError(operation, params, str(e)) from e

    try:
        with src:
            yield src
    except RasterioIOError as e:
        # opened fine but the cell data is truncated or corrupt
        raise ParseError(operation, params, str(e)) from e


def _band_name(src, index):
    description = src.descriptions[index - 1]
    return description if description else f"band_{index}"


def read_raster(source, band=1, driver=None):
    """Read a single band of a raster file.

    Parameters:
    -----------
    source : str or os.PathLike
        Path, URL or GDAL virtual path of the raster
    band : int
        1-based band index, band 1 by default
    driver : str, optional
        Driver name overriding auto-detection

    Returns:
    --------
    dataset : RasterDataset
        Single-band dataset with the file's transform, CRS and nodata value
    """
    params = {"source": os.fspath(source), "band": band, "driver": driver}
    with _open_raster(source, driver, "read_raster", params) as src:
        if isinstance(band, bool) or not isinstance(band, (int, np.integer)) or not 1 <= band <= src.count:
            raise BandIndexOutOfRange("read_raster", params, f"file has {src.count} band(s)")
        data = src.read(int(band))
        dataset = RasterDataset(
            data,
            src.transform,
            crs=src.crs,
            nodata=src.nodata,
            band_names=[_band_name(src, band)],
            driver=src.driver,
            source=os.fspath(source),
        )

    logger.info("Read band %d of %s (%dx%d, %s)", band, source, dataset.width, dataset.height, dataset.dtype)
    return dataset


def read_raster_bands(source, driver=None):
    """Read every band of a raster file into one multi-band dataset, preserving band order.

    Parameters:
    -----------
    source : str or os.PathLike
        Path, URL or GDAL virtual path of the raster
    driver : str, optional
        Driver name overriding auto-detection

    Returns:
    --------
    dataset : RasterDataset
    """
    params = {"source": os.fspath(source), "driver": driver}
    with _open_raster(source, driver, "read_raster_bands", params) as src:
        data = src.read()
        dataset = RasterDataset(
            data,
            src.transform,
            crs=src.crs,
            nodata=src.nodata,
            band_names=[_band_name(src, i) for i in range(1, src.count + 1)],
            driver=src.driver,
            source=os.fspath(source),
        )

    logger.info("Read %d band(s) of %s (%dx%d)", dataset.count, source, dataset.width, dataset.height)
    return dataset


def raster_info(source, driver=None):
    """Return the raster header without reading any cells."""
    params = {"source": os.fspath(source), "driver": driver}
    with _open_raster(source, driver, "raster_info", params) as src:
        return {
            "driver": src.driver,
            "width": src.width,
            "height": src.height,
            "count": src.count,
            "dtypes": list(src.dtypes),
            "res": src.res,
            "transform": src.transform,
            "crs": crs_to_string(src.crs),
            "nodata": src.nodata,
            "bounds": tuple(src.bounds),
            "band_names": [_band_name(src, i) for i in range(1, src.count + 1)],
        }


def _remove_raster(destination, driver):
    os.remove(destination)
    sidecars = [destination + ".aux.xml", destination + ".ovr"]
    if driver.name == "RRASTER":
        sidecars.append(os.path.splitext(destination)[0] + ".gri")
    if driver.name == "AAIGrid":
        sidecars.append(os.path.splitext(destination)[0] + ".prj")
    for sidecar in sidecars:
        if os.path.exists(sidecar):
            os.remove(sidecar)


def write_raster(dataset, destination, datatype=None, driver=None, options=None, overwrite=False, config=None):
    """Write a raster dataset to a file.

    Parameters:
    -----------
    dataset : RasterDataset
        Data to write; every band is written in order
    destination : str or os.PathLike
        Path to the output raster file
    datatype : DataType or str, optional
        Storage type (LOG1S, INT1S, INT1U, INT2S, INT2U, INT4S, INT4U, FLT4S, FLT8S).
        Defaults to ``config.default_raster_datatype``, FLT4S unless configured otherwise.
    driver : str, optional
        Driver name; inferred from the extension when omitted
    options : list of str or dict, optional
        Creation options, e.g. ``["COMPRESS=DEFLATE"]``
    overwrite : bool
        Replace an existing file at ``destination``
    config : Config, optional
        Settings to take the default datatype from; the package defaults when omitted

    Returns:
    --------
    destination : str
        The path written to
    """
    destination = os.fspath(destination)
    resolved = resolve_driver(destination, driver, kind=RASTER)
    if datatype is None:
        datatype = (config or get_default_config()).default_raster_datatype
    datatype = DataType.parse(datatype)
    creation = parse_options(options)
    params = {"destination": destination, "driver": resolved.name, "datatype": datatype.name}

    if resolved.max_bands is not None and dataset.count > resolved.max_bands:
        raise UnsupportedFormat(
            "write_raster", params, f"{resolved.name} stores at most {resolved.max_bands} band(s); got {dataset.count}"
        )

    if os.path.exists(destination):
        if not overwrite:
            raise DestinationExists("write_raster", params, "destination already exists; pass overwrite=True")
        _remove_raster(destination, resolved)
        logger.info("Removed existing %s", destination)

    parent = os.path.dirname(destination)
    if parent:
        os.makedirs(parent, exist_ok=True)

    if datatype is DataType.LOG1S:
        data = dataset.data.astype(bool).astype(np.uint8)
        if resolved.name == "GTiff":
            creation.setdefault("NBITS", "1")
    else:
        data = dataset.data.astype(datatype.dtype)

    try:
        with rasterio.open(
            destination,
            "w",
            driver=resolved.name,
            height=dataset.height,
            width=dataset.width,
            count=dataset.count,
            dtype=datatype.dtype.name,
            crs=dataset.rasterio_crs,
            transform=dataset.transform,
            nodata=dataset.nodata,
            **creation,
        ) as dst:
            dst.write(data)
            if resolved.name in ("GTiff", "RRASTER"):
                for idx, name in enumerate(dataset.band_names, start=1):
                    dst.set_band_description(idx, name)
    except (RasterioError, ValueError) as e:
        raise SpatialIOError("write_raster", params, str(e)) from e

    logger.info("Wrote %d band(s) to %s as %s (driver %s)", dataset.count, destination, datatype.name, resolved.name)
    return destination
