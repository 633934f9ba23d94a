# -*- coding: utf-8 -*-
"""Defines the in-memory vector and raster datasets returned by every reader.

A VectorDataset wraps a GeoDataFrame: an ordered table of features sharing one schema and one CRS.
A RasterDataset wraps a (bands, height, width) numpy array together with the header every band
shares (transform, CRS, nodata). Both are owned by the caller; nothing is cached between calls.

A dataset read from a source without CRS metadata reports the CRS as ``"unknown"``. It is never
guessed and never defaulted to a geographic CRS.
"""

import uuid

import geopandas as gpd
import numpy as np
import pandas as pd
from rasterio.crs import CRS
from rasterio.transform import array_bounds

from .exceptions import BandIndexOutOfRange

UNKNOWN_CRS = "unknown"


def crs_to_string(crs):
    """Return an authority string (``EPSG:4326``) or WKT for a CRS, or ``"unknown"`` when absent.

    Parameters:
    -----------
    crs : pyproj.CRS, rasterio.crs.CRS, str or None
        CRS object or identifier
    """
    if crs is None or crs == UNKNOWN_CRS:
        return UNKNOWN_CRS
    if isinstance(crs, str):
        return crs if crs else UNKNOWN_CRS
    authority = crs.to_authority() if hasattr(crs, "to_authority") else None
    if authority:
        return f"{authority[0]}:{authority[1]}"
    return crs.to_wkt()


class VectorDataset:
    """An ordered sequence of features (attribute row plus geometry) read from one layer."""

    def __init__(self, objects, name=None, driver=None, source=None):
        """Initialize a VectorDataset.

        Parameters:
        -----------
        objects : geopandas.GeoDataFrame or pandas.DataFrame
            Feature table. A plain DataFrame (a source without geometry) is wrapped as-is.
        name : str, optional
            Layer name. If None, a unique name will be generated.
        driver : str, optional
            Driver the dataset was decoded with
        source : str, optional
            Locator the dataset was read from
        """
        if not isinstance(objects, gpd.GeoDataFrame):
            objects = gpd.GeoDataFrame(pd.DataFrame(objects))
        self.id = str(uuid.uuid4())
        self.name = name if name else f"layer_{self.id[:8]}"
        self.objects = objects
        self.driver = driver
        self.source = source
        self.metadata = {}

    @property
    def has_geometry(self):
        """Whether the feature table has an active geometry column."""
        return self.objects._geometry_column_name in self.objects.columns

    @property
    def crs(self):
        if not self.has_geometry:
            return UNKNOWN_CRS
        return crs_to_string(self.objects.crs)

    @property
    def has_crs(self):
        return self.crs != UNKNOWN_CRS

    @property
    def columns(self):
        """Attribute column names, geometry excluded."""
        geometry_name = self.objects._geometry_column_name if self.has_geometry else None
        return [col for col in self.objects.columns if col != geometry_name]

    @property
    def geometry_types(self):
        """Unique geometry type names, in order of first appearance."""
        if not self.has_geometry:
            return []
        types = self.objects.geometry.geom_type.dropna()
        return list(pd.unique(types))

    @property
    def bounds(self):
        if not self.has_geometry or len(self.objects) == 0:
            return None
        return tuple(float(v) for v in self.objects.total_bounds)

    def copy(self):
        """Create an independent copy of this dataset.

        Returns:
        --------
        dataset_copy : VectorDataset
            Copy of this dataset
        """
        new_dataset = VectorDataset(self.objects.copy(), name=self.name, driver=self.driver, source=self.source)
        new_dataset.metadata = self.metadata.copy()
        return new_dataset

    def __len__(self):
        return len(self.objects)

    def __str__(self):
        """String representation of the dataset."""
        types = ", ".join(self.geometry_types) or "none"
        return f"VectorDataset '{self.name}' (driver: {self.driver}, features: {len(self)}, geometry: {types}, crs: {self.crs})"


class RasterDataset:
    """A stack of bands sharing a single raster header."""

    def __init__(self, data, transform, crs=None, nodata=None, band_names=None, driver=None, source=None):
        """Initialize a RasterDataset.

        Parameters:
        -----------
        data : numpy.ndarray
            Cell values shaped (bands, height, width); a 2-D array becomes one band
        transform : affine.Affine
            Affine transformation shared by every band
        crs : rasterio.crs.CRS or str, optional
            Coordinate reference system; None is recorded as "unknown"
        nodata : int or float, optional
            No data value
        band_names : list of str, optional
            One name per band, defaults to band_1..band_n
        driver : str, optional
            Driver the dataset was decoded with
        source : str, optional
            Locator the dataset was read from
        """
        data = np.asarray(data)
        if data.ndim == 2:
            data = data.reshape(1, *data.shape)
        if data.ndim != 3:
            raise ValueError(f"Raster data must be 2-D or 3-D, got shape {data.shape}")

        if band_names is None:
            band_names = [f"band_{i + 1}" for i in range(data.shape[0])]
        if len(band_names) != data.shape[0]:
            raise ValueError(f"Got {len(band_names)} band names for {data.shape[0]} bands")

        self.data = data
        self.transform = transform
        self.crs = crs_to_string(crs)
        self.nodata = nodata
        self.band_names = list(band_names)
        self.driver = driver
        self.source = source
        self.metadata = {}

    @property
    def count(self):
        return self.data.shape[0]

    @property
    def height(self):
        return self.data.shape[1]

    @property
    def width(self):
        return self.data.shape[2]

    @property
    def dtype(self):
        return self.data.dtype

    @property
    def res(self):
        return (abs(self.transform.a), abs(self.transform.e))

    @property
    def bounds(self):
        west, south, east, north = array_bounds(self.height, self.width, self.transform)
        return (west, south, east, north)

    @property
    def has_crs(self):
        return self.crs != UNKNOWN_CRS

    @property
    def rasterio_crs(self):
        """The CRS as a rasterio object, None when unknown."""
        return CRS.from_user_input(self.crs) if self.has_crs else None

    @property
    def header(self):
        """The spatial header fields every band shares."""
        return {
            "width": self.width,
            "height": self.height,
            "count": self.count,
            "res": self.res,
            "transform": self.transform,
            "crs": self.crs,
            "nodata": self.nodata,
        }

    def band(self, index):
        """Return one band as a single-band dataset.

        Parameters:
        -----------
        index : int
            1-based band index

        Returns:
        --------
        dataset : RasterDataset
        """
        if not 1 <= index <= self.count:
            raise BandIndexOutOfRange(
                "band",
                {"index": index, "source": self.source},
                f"dataset has {self.count} band(s)",
            )
        return RasterDataset(
            self.data[index - 1 : index].copy(),
            self.transform,
            crs=self.crs,
            nodata=self.nodata,
            band_names=[self.band_names[index - 1]],
            driver=self.driver,
            source=self.source,
        )

    def copy(self):
        new_dataset = RasterDataset(
            self.data.copy(),
            self.transform,
            crs=self.crs,
            nodata=self.nodata,
            band_names=list(self.band_names),
            driver=self.driver,
            source=self.source,
        )
        new_dataset.metadata = self.metadata.copy()
        return new_dataset

    def __str__(self):
        return (
            f"RasterDataset ({self.count} band(s), {self.width}x{self.height}, dtype: {self.dtype}, "
            f"driver: {self.driver}, crs: {self.crs})"
        )


def stack(datasets):
    """Combine raster datasets into one multi-band dataset, preserving order.

    Parameters:
    -----------
    datasets : list of RasterDataset
        Datasets with identical width, height, transform and CRS

    Returns:
    --------
    stacked : RasterDataset
    """
    if not datasets:
        raise ValueError("Nothing to stack")

    first = datasets[0]
    for other in datasets[1:]:
        if (other.width, other.height, other.transform, other.crs) != (first.width, first.height, first.transform, first.crs):
            raise ValueError(f"Raster header mismatch: {other.header} differs from {first.header}")

    data = np.concatenate([ds.data for ds in datasets], axis=0)
    names = [name for ds in datasets for name in ds.band_names]
    return RasterDataset(data, first.transform, crs=first.crs, nodata=first.nodata, band_names=names, driver=first.driver)
