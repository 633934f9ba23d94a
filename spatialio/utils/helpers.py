# -*- coding: utf-8 -*-
"""Helpers , Aren't they useful ?"""

import geopandas as gpd
import numpy as np
import pandas as pd
from rasterio.transform import from_origin
from shapely.geometry import LineString, MultiPolygon, Point, box

from ..core.dataset import RasterDataset, VectorDataset

CONTINENTS = ["Africa", "Asia", "Europe", "North America", "Oceania", "South America"]


def parse_options(options):
    """Normalize driver options to a dict of upper-case keys.

    Parameters:
    -----------
    options : list of str, dict or None
        Either ``["KEY=VALUE", ...]`` as GDAL documents them, or a mapping

    Returns:
    --------
    parsed : dict
        Mapping of option names to string values
    """
    if not options:
        return {}
    if isinstance(options, str):
        options = [options]
    if isinstance(options, dict):
        items = options.items()
    else:
        items = []
        for option in options:
            if "=" not in option:
                raise ValueError(f"Driver option '{option}' is not of the form KEY=VALUE")
            key, value = option.split("=", 1)
            items.append((key, value))

    parsed = {}
    for key, value in items:
        key = str(key).strip().upper()
        if not key:
            raise ValueError("Driver option with an empty name")
        if isinstance(value, bool):
            value = "YES" if value else "NO"
        parsed[key] = str(value).strip()
    return parsed


def create_sample_vector(n_features=177, seed=42):
    """Create a synthetic world-like polygon dataset in EPSG:4326.

    Every fourth feature is a two-part MultiPolygon so that readers and writers see mixed
    polygon / multipolygon geometry, as in real country boundaries.

    Parameters:
    -----------
    n_features : int
        Number of "countries" to create
    seed : int
        Random seed for the attribute values

    Returns:
    --------
    dataset : VectorDataset
        Dataset named "world"
    """
    rng = np.random.default_rng(seed)
    columns = 20
    cell_w, cell_h = 360.0 / columns, 170.0 / (n_features // columns + 1)

    records = []
    geometries = []
    for i in range(n_features):
        col, row = i % columns, i // columns
        minx = -180.0 + col * cell_w
        miny = -85.0 + row * cell_h
        main = box(minx + 0.5, miny + 0.5, minx + cell_w * 0.6, miny + cell_h - 0.5)
        if i % 4 == 0:
            island = box(minx + cell_w * 0.7, miny + 0.5, minx + cell_w - 0.5, miny + cell_h * 0.4)
            geometries.append(MultiPolygon([main, island]))
        else:
            geometries.append(main)
        records.append(
            {
                "iso_a2": f"C{i:03d}",
                "name_long": f"Country {i}",
                "continent": CONTINENTS[i % len(CONTINENTS)],
                "pop": int(rng.integers(10_000, 100_000_000)),
                "area_km2": float(rng.uniform(1_000, 1_000_000)),
            }
        )

    gdf = gpd.GeoDataFrame(pd.DataFrame(records), geometry=geometries, crs="EPSG:4326")
    return VectorDataset(gdf, name="world", source="sample:world")


def create_sample_points(n_points=10, seed=0, crs="EPSG:4326"):
    """Create bike-station style point features in EPSG:4326."""
    rng = np.random.default_rng(seed)
    lon = rng.uniform(-0.2, 0.0, n_points)
    lat = rng.uniform(51.45, 51.55, n_points)
    gdf = gpd.GeoDataFrame(
        {
            "id": np.arange(1, n_points + 1),
            "name": [f"station {i + 1}" for i in range(n_points)],
            "nbikes": rng.integers(0, 40, n_points),
        },
        geometry=[Point(x, y) for x, y in zip(lon, lat, strict=False)],
        crs=crs,
    )
    return VectorDataset(gdf, name="points", source="sample:points")


def create_sample_lines(n_lines=5, crs="EPSG:4326"):
    lines = [LineString([(i, 0), (i + 1, 1), (i + 2, 0)]) for i in range(n_lines)]
    gdf = gpd.GeoDataFrame({"route": [f"r{i}" for i in range(n_lines)]}, geometry=lines, crs=crs)
    return VectorDataset(gdf, name="routes", source="sample:routes")


def create_sample_raster(bands=4, width=64, height=48, dtype="float32", seed=0, crs="EPSG:32633"):
    """Create a synthetic multi-band image (e.g. B, G, R, NIR) for testing.

    Returns:
    --------
    dataset : RasterDataset
        Dataset with 10 m cells anchored at (500000, 5500000)
    """
    rng = np.random.default_rng(seed)
    yy, xx = np.mgrid[0:height, 0:width]
    data = np.empty((bands, height, width), dtype=dtype)
    for b in range(bands):
        gradient = (xx + yy * (b + 1)) / (width + height * (b + 1))
        data[b] = (gradient * 100 + rng.normal(0, 1, (height, width))).astype(dtype)

    transform = from_origin(500000.0, 5500000.0, 10.0, 10.0)
    return RasterDataset(data, transform, crs=crs, source="sample:raster")


def summarize(dataset):
    """Summarize a vector or raster dataset as a plain dict.

    Parameters:
    -----------
    dataset : VectorDataset or RasterDataset
        Dataset to summarize

    Returns:
    --------
    summary : dict
        Dictionary with counts, CRS and schema information
    """
    if isinstance(dataset, VectorDataset):
        return {
            "kind": "vector",
            "name": dataset.name,
            "driver": dataset.driver,
            "feature_count": len(dataset),
            "geometry_types": dataset.geometry_types,
            "columns": dataset.columns,
            "crs": dataset.crs,
            "bounds": dataset.bounds,
        }
    if isinstance(dataset, RasterDataset):
        return {
            "kind": "raster",
            "driver": dataset.driver,
            "band_count": dataset.count,
            "band_names": dataset.band_names,
            "width": dataset.width,
            "height": dataset.height,
            "res": dataset.res,
            "dtype": str(dataset.dtype),
            "crs": dataset.crs,
            "nodata": dataset.nodata,
            "bounds": dataset.bounds,
        }
    raise TypeError(f"Cannot summarize object of type {type(dataset).__name__}")
