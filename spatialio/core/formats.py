# -*- coding: utf-8 -*-
"""Resolves file extensions and explicit driver names to GDAL/OGR drivers.

The dispatcher is a registry of Driver records rather than a chain of conditionals, so a new
format is one ``register`` call. Lookups are pure apart from two filesystem peeks: telling a folder
of shapefiles from an ordinary path, and listing a zip archive in ``resolve_archive_member``.

Precedence
----------
1. An explicit driver name always wins (case-insensitive).
2. Otherwise the file extension chooses. When several drivers of the requested kind claim
   the same extension, the one with the highest ``priority`` wins, ties going to the driver
   registered first. ``.grd`` therefore resolves to RRASTER before GSBG (Golden Software
   binary grid), and ``.gpkg`` to GPKG for both vector and raster use.
"""

import logging
import os
import zipfile
from dataclasses import dataclass, field
from urllib.parse import urlparse

from .exceptions import ParseError, UnsupportedFormat

logger = logging.getLogger(__name__)

VECTOR = "vector"
RASTER = "raster"

_ARCHIVE_EXTENSIONS = (".zip",)

CONNECTION_PREFIXES = {"PG:": "PostgreSQL"}


@dataclass(frozen=True)
class Driver:
    """A codec able to decode and/or encode one file format.

    Attributes:
    -----------
    name : str
        GDAL/OGR short driver name, passed through to pyogrio or rasterio
    kind : str
        "vector" or "raster"
    extensions : tuple of str
        Lower-case file extensions including the leading dot
    multi_layer : bool
        Whether one file can hold several named layers
    updatable : bool
        Whether layers can be added to or replaced in an existing file without rewriting it
    max_bands : int or None
        Upper bound on raster bands, None when unbounded
    priority : int
        Tie-break rank among drivers claiming the same extension
    open_prefix : str
        GDAL connection prefix forcing this driver on open, e.g. "CSV:"; empty when GDAL has none
    description : str
        Human-readable format name
    """

    name: str
    kind: str
    extensions: tuple = field(default_factory=tuple)
    multi_layer: bool = False
    updatable: bool = False
    max_bands: int = None
    priority: int = 0
    open_prefix: str = ""
    description: str = ""


class DriverRegistry:
    """Registry mapping driver names and extensions to Driver records."""

    def __init__(self):
        self._drivers = []

    def register(self, driver):
        """Add a driver; a driver with the same name and kind is replaced in place."""
        for idx, existing in enumerate(self._drivers):
            if existing.name == driver.name and existing.kind == driver.kind:
                self._drivers[idx] = driver
                return driver
        self._drivers.append(driver)
        return driver

    def drivers(self, kind=None):
        """Return registered drivers in registration order, optionally filtered by kind."""
        return [d for d in self._drivers if kind is None or d.kind == kind]

    def names(self, kind=None):
        """Return the unique driver names, in registration order."""
        seen = []
        for driver in self.drivers(kind):
            if driver.name not in seen:
                seen.append(driver.name)
        return seen

    def by_name(self, name, kind=None):
        """Look up a driver by its name.

        Parameters:
        -----------
        name : str
            Driver name, compared case-insensitively
        kind : str, optional
            Restrict to "vector" or "raster" drivers

        Returns:
        --------
        driver : Driver
        """
        wanted = name.lower()
        for driver in self.drivers(kind):
            if driver.name.lower() == wanted:
                return driver
        raise UnsupportedFormat(
            "resolve_driver",
            {"driver": name, "kind": kind},
            f"no registered driver named '{name}'; available: {', '.join(self.names(kind))}",
        )

    def by_extension(self, extension, kind=None):
        """Return the highest-priority driver claiming an extension."""
        extension = extension.lower()
        if extension and not extension.startswith("."):
            extension = "." + extension
        candidates = [d for d in self.drivers(kind) if extension in d.extensions]
        if not candidates:
            raise UnsupportedFormat(
                "resolve_driver",
                {"extension": extension or None, "kind": kind},
                "no registered driver handles this extension",
            )
        # sorted() is stable, so equal priorities keep registration order
        best = sorted(candidates, key=lambda d: -d.priority)[0]
        if len(candidates) > 1:
            logger.debug(
                "Extension %s is claimed by %s; using %s",
                extension,
                [d.name for d in candidates],
                best.name,
            )
        return best

    def resolve(self, locator, driver=None, kind=None):
        """Resolve a locator or explicit driver name to a Driver.

        Parameters:
        -----------
        locator : str or os.PathLike
            File path, folder path, URL or GDAL virtual path
        driver : str, optional
            Explicit driver name; takes precedence over the extension
        kind : str, optional
            "vector" or "raster"; needed to disambiguate containers such as GPKG

        Returns:
        --------
        driver : Driver
            The resolved driver

        Raises:
        -------
        UnsupportedFormat
            When neither the driver name nor the extension matches a registered driver
        """
        if driver is not None:
            return self.by_name(driver, kind)

        prefix = connection_prefix(locator)
        if prefix is not None:
            return self.by_name(CONNECTION_PREFIXES[prefix], kind)

        path = _strip_locator(locator)
        if kind in (None, VECTOR) and os.path.isdir(path):
            if any(name.lower().endswith(".shp") for name in os.listdir(path)):
                return self.by_name("ESRI Shapefile", VECTOR)

        try:
            return self.by_extension(extension_of(locator), kind)
        except UnsupportedFormat as exc:
            raise UnsupportedFormat("resolve_driver", {"locator": str(locator), "kind": kind}, exc.detail) from exc


def _strip_locator(locator):
    locator = os.fspath(locator)
    for prefix in ("/vsicurl/", "/vsizip/", "/vsigzip/"):
        while locator.startswith(prefix):
            locator = locator[len(prefix) :]
    if locator.startswith(("http://", "https://")):
        locator = urlparse(locator).path
    return locator


def extension_of(locator):
    """Return the lower-case extension a driver should be chosen by.

    For a path inside an archive (``data.zip/roads.shp``) the inner extension is used; for a
    bare archive the extension of the archive name minus the archive suffix is tried
    (``roads.shp.zip`` → ``.shp``).
    """
    path = _strip_locator(locator)
    lowered = path.lower()
    for archive in _ARCHIVE_EXTENSIONS:
        marker = archive + "/"
        if marker in lowered:
            path = path[lowered.rindex(marker) + len(marker) :]
            break
        if lowered.endswith(archive):
            path = path[: -len(archive)]
            break
    return os.path.splitext(path)[1].lower()


def connection_prefix(locator):
    """Return the connection-string prefix (``"PG:"``) a locator starts with, or None."""
    locator = os.fspath(locator)
    for prefix in CONNECTION_PREFIXES:
        if locator.upper().startswith(prefix):
            return prefix
    return None


def local_path(locator):
    """Path on disk that must exist for a locator, e.g. the archive for ``data.zip/roads.shp``."""
    locator = os.fspath(locator)
    lowered = locator.lower()
    if ".zip/" in lowered:
        return locator[: lowered.index(".zip/") + len(".zip")]
    return locator


def resolve_archive_member(locator, kind=None):
    """Point a bare local ``.zip`` locator at the first member a registered driver can read.

    ``roads.zip`` holding ``roads/roads.shp`` becomes ``roads.zip/roads/roads.shp``; any other
    locator is returned unchanged.
    """
    locator = os.fspath(locator)
    if not locator.lower().endswith(".zip") or not os.path.isfile(locator):
        return locator
    try:
        with zipfile.ZipFile(locator) as archive:
            members = [name for name in archive.namelist() if not name.endswith("/")]
    except zipfile.BadZipFile as e:
        raise ParseError("resolve_driver", {"locator": locator, "kind": kind}, str(e)) from e
    for member in members:
        extension = os.path.splitext(member)[1].lower()
        if any(extension in d.extensions for d in registry.drivers(kind)):
            return f"{locator}/{member}"
    raise UnsupportedFormat(
        "resolve_driver",
        {"locator": locator, "kind": kind},
        f"archive holds no member with a registered extension: {', '.join(members[:10])}",
    )


def is_remote(locator):
    """True for http(s) URLs and /vsicurl/ paths."""
    locator = os.fspath(locator)
    return locator.startswith(("http://", "https://", "/vsicurl/"))


def to_gdal_path(locator):
    """Convert a URL or zip archive locator into a GDAL virtual file system path.

    Remote files go through ``/vsicurl/`` so GDAL fetches only the byte ranges it needs;
    zip archives go through ``/vsizip/`` so they are read without unpacking.
    """
    locator = os.fspath(locator)
    if locator.startswith("/vsi"):
        return locator
    lowered = locator.lower()
    is_zip = lowered.endswith(".zip") or ".zip/" in lowered
    if locator.startswith(("http://", "https://")):
        locator = "/vsicurl/" + locator
    if is_zip:
        locator = "/vsizip/" + locator
    return locator


def _default_registry():
    registry = DriverRegistry()

    # vector
    registry.register(Driver("ESRI Shapefile", VECTOR, (".shp",), description="ESRI Shapefile"))
    registry.register(Driver("GeoJSON", VECTOR, (".geojson", ".json"), description="GeoJSON"))
    registry.register(Driver("KML", VECTOR, (".kml",), multi_layer=True, description="Keyhole Markup Language"))
    registry.register(Driver("GPX", VECTOR, (".gpx",), multi_layer=True, description="GPS Exchange Format"))
    registry.register(
        Driver("CSV", VECTOR, (".csv",), open_prefix="CSV:", description="Comma separated values with XY or WKT columns")
    )
    registry.register(
        Driver("GPKG", VECTOR, (".gpkg",), multi_layer=True, updatable=True, priority=10, description="GeoPackage")
    )
    registry.register(
        Driver("SQLite", VECTOR, (".sqlite",), multi_layer=True, updatable=True, description="SQLite / SpatiaLite")
    )
    registry.register(Driver("GML", VECTOR, (".gml",), multi_layer=True, description="Geography Markup Language"))
    registry.register(Driver("FlatGeobuf", VECTOR, (".fgb",), description="FlatGeobuf"))
    # connection strings only, e.g. "PG:dbname=gis"
    registry.register(
        Driver("PostgreSQL", VECTOR, (), multi_layer=True, updatable=True, description="PostgreSQL / PostGIS")
    )

    # raster
    registry.register(Driver("GTiff", RASTER, (".tif", ".tiff"), priority=10, description="GeoTIFF"))
    registry.register(Driver("AAIGrid", RASTER, (".asc",), max_bands=1, description="Arc/Info ASCII Grid"))
    registry.register(Driver("GPKG", RASTER, (".gpkg",), priority=10, description="GeoPackage raster tiles"))
    registry.register(Driver("RRASTER", RASTER, (".grd",), priority=10, description="R raster native format"))
    registry.register(Driver("GSBG", RASTER, (".grd",), max_bands=1, description="Golden Software Binary Grid"))

    return registry


registry = _default_registry()


def resolve_driver(locator, driver=None, kind=None):
    """Resolve a driver from the default registry. See ``DriverRegistry.resolve``."""
    resolved = registry.resolve(locator, driver=driver, kind=kind)
    logger.debug("Resolved %s (driver=%s, kind=%s) to %s", locator, driver, kind, resolved.name)
    return resolved


def supported_drivers(kind=None):
    """List the names of the drivers in the default registry."""
    return registry.names(kind)
