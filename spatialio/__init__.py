# -*- coding: utf-8 -*-
# spatialio/__init__.py

"""
spatialio: read, write, fetch and render geographic vector and raster data
==========================================================================

spatialio is a thin layer over geopandas, rasterio and requests for the everyday
chores of geographic data I/O.

Key features:
- Driver resolution by file extension or explicit name
- Vector reading and writing with layer selection and driver options
- Raster reading and writing with explicit storage types
- Web Feature / Coverage Service queries streamed to disk
- Map and histogram rendering to image files
"""

__version__ = "0.1.0"

from .config import Config, get_default_config
from .core.dataset import UNKNOWN_CRS, RasterDataset, VectorDataset, stack
from .core.exceptions import (
    BandIndexOutOfRange,
    DestinationExists,
    LayerNotFound,
    NetworkError,
    ParseError,
    ServiceError,
    SourceNotFound,
    SpatialIOError,
    UnknownType,
    UnsupportedFormat,
)
from .core.formats import Driver, DriverRegistry, resolve_driver, supported_drivers, to_gdal_path

from .io.raster import DataType, datatype_for, raster_info, read_raster, read_raster_bands, write_raster
from .io.vector import layer_info, list_layers, read_vector, write_vector

from .logging_config import setup_logging

from .remote.capabilities import Capabilities, parse_capabilities
from .remote.download import download, read_remote_raster, read_remote_vector, streamed_download
from .remote.ows import OWSClient

from .utils.helpers import create_sample_raster, create_sample_vector, parse_options, summarize
from .viz.charts import plot_histogram
from .viz.maps import plot_raster, plot_vector, save_figure
