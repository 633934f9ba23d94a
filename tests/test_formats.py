# -*- coding: utf-8 -*-
"""Tests for driver resolution and locator handling."""

import zipfile

import pytest

from spatialio.core.exceptions import ParseError, UnsupportedFormat
from spatialio.core.formats import (
    RASTER,
    VECTOR,
    Driver,
    DriverRegistry,
    extension_of,
    local_path,
    resolve_archive_member,
    resolve_driver,
    supported_drivers,
    to_gdal_path,
)


@pytest.mark.parametrize(
    "locator, kind, expected",
    [
        ("world.shp", None, "ESRI Shapefile"),
        ("world.geojson", None, "GeoJSON"),
        ("world.json", None, "GeoJSON"),
        ("WORLD.GPKG", VECTOR, "GPKG"),
        ("tracks.gpx", None, "GPX"),
        ("places.kml", None, "KML"),
        ("stations.csv", None, "CSV"),
        ("db.sqlite", None, "SQLite"),
        ("dem.tif", None, "GTiff"),
        ("dem.TIFF", RASTER, "GTiff"),
        ("dem.asc", None, "AAIGrid"),
        ("https://example.org/data/roads.geojson?token=abc", None, "GeoJSON"),
        ("/vsicurl/https://example.org/dem.tif", None, "GTiff"),
        ("PG:dbname=gis host=localhost", None, "PostgreSQL"),
    ],
)
def test_resolve_by_extension(locator, kind, expected):
    assert resolve_driver(locator, kind=kind).name == expected


def test_grd_prefers_r_raster_over_golden_software():
    assert resolve_driver("elevation.grd").name == "RRASTER"
    assert resolve_driver("elevation.grd", kind=RASTER).name == "RRASTER"


def test_gpkg_resolves_per_kind():
    vector = resolve_driver("data.gpkg", kind=VECTOR)
    raster = resolve_driver("data.gpkg", kind=RASTER)
    assert (vector.name, vector.kind) == ("GPKG", VECTOR)
    assert (raster.name, raster.kind) == ("GPKG", RASTER)
    # without a kind the vector container is assumed
    assert resolve_driver("data.gpkg").kind == VECTOR


def test_explicit_driver_overrides_extension():
    assert resolve_driver("elevation.grd", driver="GSBG").name == "GSBG"
    assert resolve_driver("export.txt", driver="csv").name == "CSV"


def test_unknown_extension_is_unsupported():
    with pytest.raises(UnsupportedFormat) as excinfo:
        resolve_driver("notes.docx")
    assert excinfo.value.operation == "resolve_driver"
    assert excinfo.value.params["locator"] == "notes.docx"


def test_unknown_driver_name_lists_available_drivers():
    with pytest.raises(UnsupportedFormat, match="GTiff"):
        resolve_driver("dem.tif", driver="NoSuchDriver", kind=RASTER)


def test_kind_filters_candidates():
    with pytest.raises(UnsupportedFormat):
        resolve_driver("dem.tif", kind=VECTOR)


def test_folder_of_shapefiles_resolves_to_shapefile(tmp_path):
    (tmp_path / "roads.shp").write_bytes(b"")
    assert resolve_driver(tmp_path).name == "ESRI Shapefile"


def test_registry_priority_and_registration_order():
    registry = DriverRegistry()
    registry.register(Driver("First", RASTER, (".dat",)))
    registry.register(Driver("Second", RASTER, (".dat",)))
    assert registry.by_extension(".dat").name == "First"

    registry.register(Driver("Third", RASTER, (".dat",), priority=5))
    assert registry.by_extension("dat").name == "Third"

    # re-registering replaces in place
    registry.register(Driver("First", RASTER, (".dat",), priority=9))
    assert registry.by_extension(".dat").name == "First"
    assert registry.names() == ["First", "Second", "Third"]


def test_supported_drivers():
    assert "GTiff" in supported_drivers(RASTER)
    assert "GTiff" not in supported_drivers(VECTOR)
    assert supported_drivers().count("GPKG") == 1


@pytest.mark.parametrize(
    "locator, expected",
    [
        ("data/roads.shp", ".shp"),
        ("data/archive.zip/roads/roads.shp", ".shp"),
        ("roads.shp.zip", ".shp"),
        ("https://host/path/dem.TIF?x=1", ".tif"),
        ("/vsizip/data/archive.zip/dem.tif", ".tif"),
        ("no_extension", ""),
    ],
)
def test_extension_of(locator, expected):
    assert extension_of(locator) == expected


def test_to_gdal_path():
    assert to_gdal_path("data/world.gpkg") == "data/world.gpkg"
    assert to_gdal_path("https://host/world.gpkg") == "/vsicurl/https://host/world.gpkg"
    assert to_gdal_path("data/roads.zip") == "/vsizip/data/roads.zip"
    assert to_gdal_path("https://host/roads.zip/roads.shp") == "/vsizip//vsicurl/https://host/roads.zip/roads.shp"
    assert to_gdal_path("/vsizip/already.zip") == "/vsizip/already.zip"


def test_local_path_points_at_archive():
    assert local_path("data/roads.zip/roads/roads.shp") == "data/roads.zip"
    assert local_path("data/roads.shp") == "data/roads.shp"


def test_resolve_archive_member(tmp_path):
    archive = tmp_path / "roads.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("README.txt", "not data")
        zf.writestr("roads/roads.shp", b"")

    assert resolve_archive_member(str(archive), VECTOR) == f"{archive}/roads/roads.shp"
    with pytest.raises(UnsupportedFormat):
        resolve_archive_member(str(archive), RASTER)


def test_resolve_archive_member_bad_zip(tmp_path):
    archive = tmp_path / "broken.zip"
    archive.write_bytes(b"PK\x03\x04 this is not a zip")
    with pytest.raises(ParseError):
        resolve_archive_member(str(archive))


def test_resolve_archive_member_leaves_other_locators_alone():
    assert resolve_archive_member("world.gpkg") == "world.gpkg"
    assert resolve_archive_member("missing.zip") == "missing.zip"
