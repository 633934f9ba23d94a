# -*- coding: utf-8 -*-
"""Manages vector data I/O for Shapefile, GeoJSON, KML, GPX, CSV, GeoPackage and SQLite sources.

Decoding and encoding are delegated to geopandas with the pyogrio engine. This module only decides
which driver and layer to use, forwards driver options, and turns library failures into the
spatialio error kinds with the library's own diagnostic text attached.
"""

import json
import logging
import os
import re
import shutil
import struct

import geopandas as gpd
import pyogrio
from pyogrio.errors import CRSError, DataLayerError, DataSourceError, FeatureError, FieldError, GeometryError
from pyproj.exceptions import CRSError as ProjCRSError
from shapely import wkt
from shapely.errors import GEOSException
from shapely.geometry import shape

from ..core.dataset import VectorDataset
from ..core.exceptions import (
    DestinationExists,
    LayerNotFound,
    ParseError,
    SourceNotFound,
    SpatialIOError,
    UnsupportedFormat,
)
from ..core.formats import (
    VECTOR,
    connection_prefix,
    is_remote,
    local_path,
    resolve_archive_member,
    resolve_driver,
    to_gdal_path,
)
from ..utils.helpers import parse_options

logger = logging.getLogger(__name__)

_WKT_PATTERN = re.compile(
    r"^\s*(SRID=(?P<srid>\d+);)?\s*((MULTI)?(POINT|LINESTRING|POLYGON)|GEOMETRYCOLLECTION)\s*(ZM|Z|M)?\s*(\(|EMPTY\b)",
    re.IGNORECASE,
)

_SHAPEFILE_SIDECARS = (".shp", ".shx", ".dbf", ".prj", ".cpg", ".qix", ".sbn", ".sbx", ".shp.xml")

# per-driver dataset creation defaults; caller options win
_DATASET_DEFAULTS = {"GPX": {"GPX_USE_EXTENSIONS": "YES"}}

# GPX always exposes its five fixed layers, most of them empty
_FIRST_NON_EMPTY_LAYER = ("GPX",)

# failures decoding or encoding individual fields, geometries or features
_CONTENT_ERRORS = (CRSError, FeatureError, FieldError, GeometryError)


def _is_geometry_text(source):
    if not isinstance(source, str):
        return False
    stripped = source.lstrip()
    return stripped.startswith("{") or bool(_WKT_PATTERN.match(stripped))


def _check_source(locator, operation, params):
    if is_remote(locator) or locator.startswith("/vsi") or connection_prefix(locator):
        return
    if not os.path.exists(local_path(locator)):
        raise SourceNotFound(operation, params, f"No such file or directory: '{local_path(locator)}'")


def _decode_error(exc, locator, operation, params):
    """Map a pyogrio open failure: unreachable sources are not found, local ones are malformed."""
    if is_remote(locator) or connection_prefix(locator):
        return SourceNotFound(operation, params, str(exc))
    return ParseError(operation, params, str(exc))


def _read_geometry_text(text, operation):
    """Decode raw WKT/EWKT or GeoJSON text into a dataset."""
    params = {"source": text if len(text) <= 80 else text[:77] + "..."}
    stripped = text.strip()

    if stripped.startswith("{"):
        try:
            data = json.loads(stripped)
            if data.get("type") == "FeatureCollection":
                gdf = gpd.GeoDataFrame.from_features(data["features"])
            elif data.get("type") == "Feature":
                gdf = gpd.GeoDataFrame.from_features([data])
            else:
                gdf = gpd.GeoDataFrame(geometry=[shape(data)])
        except (ValueError, KeyError, TypeError, AttributeError, GEOSException) as e:
            raise ParseError(operation, params, f"Invalid GeoJSON text: {e}") from e

        # only an explicit named crs member is honoured, GeoJSON text is otherwise CRS-less
        crs_member = data.get("crs")
        if crs_member is not None:
            properties = crs_member.get("properties") if isinstance(crs_member, dict) else None
            crs_name = properties.get("name") if isinstance(properties, dict) else None
            if not isinstance(crs_name, str):
                raise ParseError(operation, params, f"Invalid GeoJSON crs member: {crs_member!r}")
            try:
                gdf = gdf.set_crs(crs_name)
            except ProjCRSError as e:
                raise ParseError(operation, params, f"Invalid GeoJSON crs member: {e}") from e
        return VectorDataset(gdf, name="geojson", driver="GeoJSON", source="<text>")

    match = _WKT_PATTERN.match(stripped)
    srid = match.group("srid") if match else None
    body = stripped.split(";", 1)[1] if srid else stripped
    try:
        geometry = wkt.loads(body)
    except (GEOSException, ValueError) as e:
        raise ParseError(operation, params, f"Invalid WKT: {e}") from e

    gdf = gpd.GeoDataFrame(geometry=[geometry], crs=f"EPSG:{srid}" if srid else None)
    return VectorDataset(gdf, name="wkt", driver="WKT", source="<text>")


def _open_path(locator, driver=None):
    """GDAL path for a locator; an explicit driver with a connection prefix is forced on GDAL."""
    gdal_path = to_gdal_path(locator)
    if driver is not None:
        forced = resolve_driver(locator, driver, kind=VECTOR)
        if forced.open_prefix and not gdal_path.upper().startswith(forced.open_prefix.upper()):
            gdal_path = forced.open_prefix + gdal_path
    return gdal_path


def layer_info(source, driver=None):
    """Describe the layers of a vector source without reading any features.

    Parameters:
    -----------
    source : str or os.PathLike
        Path, folder, URL or virtual path
    driver : str, optional
        Driver name overriding format detection

    Returns:
    --------
    info : pandas.DataFrame
        One row per layer with "name" and "geometry_type" columns, in file order
    """
    locator = os.fspath(source)
    params = {"source": locator, "driver": driver}
    _check_source(locator, "list_layers", params)
    locator = resolve_archive_member(locator, VECTOR)

    try:
        info = gpd.list_layers(_open_path(locator, driver))
    except (DataSourceError, DataLayerError) as e:
        raise _decode_error(e, locator, "list_layers", params) from e

    logger.debug("%s has %d layer(s)", locator, len(info))
    return info


def list_layers(source, driver=None):
    """Return the ordered list of layer names in a vector source.

    Only the layer table is read. Remote sources go through GDAL's /vsicurl/ handler,
    which fetches the needed byte ranges instead of the whole file.

    Parameters:
    -----------
    source : str or os.PathLike
        Path, folder, URL or virtual path
    driver : str, optional
        Driver name overriding format detection

    Returns:
    --------
    names : list of str
        Layer names; index 0 is the layer read_vector returns by default
    """
    return layer_info(source, driver=driver)["name"].tolist()


def _first_non_empty(gdal_path, layers):
    for name in layers:
        if pyogrio.read_info(gdal_path, layer=name, force_feature_count=True)["features"] > 0:
            return name
    return layers[0]


def _select_layer(layers, layer, locator, gdal_path, driver):
    params = {"source": locator, "layer": layer}
    if not layers:
        raise ParseError("read_vector", params, "source contains no layers")
    if layer is None:
        if driver.name in _FIRST_NON_EMPTY_LAYER:
            return _first_non_empty(gdal_path, layers)
        return layers[0]
    if isinstance(layer, int):
        if not 0 <= layer < len(layers):
            raise LayerNotFound("read_vector", params, f"layer index out of range; source has {len(layers)} layer(s)")
        return layers[layer]
    if layer not in layers:
        raise LayerNotFound("read_vector", params, f"available layers: {', '.join(layers)}")
    return layer


def _check_shapefile_length(locator, layer_name, params):
    """Raise ParseError when a local .shp or .shx is shorter than its header says.

    GDAL trusts the .shx offsets, so a cut .shp would otherwise come back as features
    with null geometry.
    """
    if is_remote(locator) or locator.startswith("/vsi") or ".zip/" in locator.lower():
        return
    path = os.path.join(locator, layer_name + ".shp") if os.path.isdir(locator) else locator
    if not os.path.isfile(path):
        return
    stem, extension = os.path.splitext(path)
    index_extension = ".SHX" if extension.isupper() else ".shx"
    for part in (path, stem + index_extension):
        if not os.path.isfile(part):
            continue
        with open(part, "rb") as f:
            header = f.read(100)
        actual = os.path.getsize(part)
        if len(header) < 100:
            raise ParseError("read_vector", params, f"{os.path.basename(part)} is truncated: header is incomplete")
        # file length is stored big-endian in 16-bit words
        declared = struct.unpack(">i", header[24:28])[0] * 2
        if actual < declared:
            raise ParseError(
                "read_vector",
                params,
                f"{os.path.basename(part)} is truncated: header declares {declared} bytes, file has {actual}",
            )


def read_vector(source, layer=None, driver=None, options=None):
    """Read one layer of a vector source into a VectorDataset.

    Parameters:
    -----------
    source : str or os.PathLike
        File path, folder of shapefiles, URL, GDAL virtual path, connection string,
        or raw geometry text (WKT/EWKT or GeoJSON)
    layer : str or int, optional
        Layer name or 0-based index; defaults to the first layer, or for GPX files
        to the first layer holding features
    driver : str, optional
        Driver name overriding the one inferred from the extension. CSV is forced on
        GDAL through its ``CSV:`` prefix; for other drivers the source must be
        recognised as that format, otherwise ParseError is raised.
    options : list of str or dict, optional
        Driver open options, e.g. ``["X_POSSIBLE_NAMES=lon", "Y_POSSIBLE_NAMES=lat"]``
        or ``["GEOM_POSSIBLE_NAMES=WKT"]`` for CSV files

    Returns:
    --------
    dataset : VectorDataset
        Features of the layer; ``dataset.driver`` holds the driver the source was read with
    """
    if _is_geometry_text(source):
        return _read_geometry_text(source, "read_vector")

    locator = os.fspath(source)
    open_options = parse_options(options)
    params = {"source": locator, "layer": layer, "driver": driver, "options": open_options or None}

    _check_source(locator, "read_vector", params)
    locator = resolve_archive_member(locator, VECTOR)
    resolved = resolve_driver(locator, driver, kind=VECTOR)
    gdal_path = _open_path(locator, driver)

    layers = list_layers(locator, driver=driver)
    layer_name = _select_layer(layers, layer, locator, gdal_path, resolved)

    try:
        if driver is not None:
            opened_with = pyogrio.read_info(gdal_path, layer=layer_name, **open_options)["driver"]
            if opened_with.lower() != resolved.name.lower():
                raise ParseError("read_vector", params, f"source was recognised as {opened_with}, not {resolved.name}")
        if resolved.name == "ESRI Shapefile":
            _check_shapefile_length(locator, layer_name, params)
        gdf = gpd.read_file(gdal_path, layer=layer_name, engine="pyogrio", **open_options)
    except DataSourceError as e:
        raise _decode_error(e, locator, "read_vector", params) from e
    except DataLayerError as e:
        raise ParseError("read_vector", params, str(e)) from e

    dataset = VectorDataset(gdf, name=layer_name, driver=resolved.name, source=locator)
    logger.info("Read %d feature(s) from %s (layer %s, driver %s)", len(dataset), locator, layer_name, resolved.name)
    if not dataset.has_crs:
        logger.debug("%s carries no CRS; recorded as unknown", locator)
    return dataset


def _remove_destination(destination, driver):
    if os.path.isdir(destination):
        shutil.rmtree(destination)
    elif driver.name == "ESRI Shapefile":
        stem = os.path.splitext(destination)[0]
        for suffix in _SHAPEFILE_SIDECARS:
            if os.path.exists(stem + suffix):
                os.remove(stem + suffix)
    else:
        os.remove(destination)
    logger.info("Removed existing %s", destination)


def _as_geodataframe(dataset):
    if isinstance(dataset, VectorDataset):
        return dataset.objects, dataset.name
    if isinstance(dataset, gpd.GeoDataFrame):
        return dataset, None
    raise TypeError(f"Expected a VectorDataset or GeoDataFrame, got {type(dataset).__name__}")


def write_vector(
    dataset,
    destination,
    driver=None,
    layer=None,
    overwrite=False,
    replace_layer=False,
    options=None,
    dataset_options=None,
):
    """Write a vector dataset to a file.

    Existing data is preserved unless a flag says otherwise: writing to an existing
    single-layer file, or to a layer that already exists in a GeoPackage/SQLite container,
    raises DestinationExists. Adding a new layer to an existing GeoPackage/SQLite container
    is allowed; KML, GML and GPX files are written in one pass and cannot take new layers.
    GPX files are written with GPX_USE_EXTENSIONS=YES unless ``dataset_options`` says otherwise,
    so attributes outside the GPX schema survive.

    Parameters:
    -----------
    dataset : VectorDataset or geopandas.GeoDataFrame
        Data to write
    destination : str or os.PathLike
        Path to the output vector file
    driver : str, optional
        Driver name; inferred from the extension when omitted
    layer : str, optional
        Layer name for multi-layer containers; defaults to the dataset name or file stem
    overwrite : bool
        Delete the entire destination (all layers, shapefile sidecars) before writing
    replace_layer : bool
        Replace only the target layer; single-layer formats are rewritten
    options : list of str or dict, optional
        Layer creation options, e.g. ``["GEOMETRY=AS_WKT"]`` or ``["GEOMETRY=AS_XY"]`` for CSV
    dataset_options : list of str or dict, optional
        Dataset creation options

    Returns:
    --------
    destination : str
        The path written to
    """
    gdf, dataset_name = _as_geodataframe(dataset)
    destination = os.fspath(destination)
    resolved = resolve_driver(destination, driver, kind=VECTOR)
    layer_options = parse_options(options)
    creation_options = {**_DATASET_DEFAULTS.get(resolved.name, {}), **parse_options(dataset_options)}

    layer_name = layer
    if layer_name is None and resolved.multi_layer:
        layer_name = dataset_name or os.path.splitext(os.path.basename(destination))[0]

    params = {"destination": destination, "driver": resolved.name, "layer": layer_name}

    if os.path.exists(destination):
        if overwrite:
            _remove_destination(destination, resolved)
        elif resolved.updatable:
            if layer_name in list_layers(destination):
                if not replace_layer:
                    raise DestinationExists(
                        "write_vector", params, "layer already exists; pass replace_layer=True or overwrite=True"
                    )
                logger.info("Replacing layer %s in %s", layer_name, destination)
        elif replace_layer:
            _remove_destination(destination, resolved)
        elif resolved.multi_layer:
            raise DestinationExists(
                "write_vector", params, f"{resolved.name} files cannot take new layers in place; pass overwrite=True"
            )
        else:
            raise DestinationExists("write_vector", params, "destination already exists; pass overwrite=True")

    parent = os.path.dirname(destination)
    if parent:
        os.makedirs(parent, exist_ok=True)

    kwargs = {}
    if layer_name is not None:
        kwargs["layer"] = layer_name
    if layer_options:
        kwargs["layer_options"] = layer_options
    if creation_options:
        kwargs["dataset_options"] = creation_options

    try:
        gdf.to_file(destination, driver=resolved.name, engine="pyogrio", **kwargs)
    except _CONTENT_ERRORS as e:
        raise UnsupportedFormat("write_vector", params, f"{resolved.name} cannot store this data: {e}") from e
    except (DataSourceError, DataLayerError) as e:
        raise SpatialIOError("write_vector", params, str(e)) from e

    logger.info("Wrote %d feature(s) to %s (driver %s)", len(gdf), destination, resolved.name)
    return destination
