# -*- coding: utf-8 -*-
"""Tests for reading and writing raster data."""

import os

import numpy as np
import pytest
from rasterio.transform import from_origin

from spatialio.config import Config
from spatialio.core.dataset import RasterDataset, stack
from spatialio.core.exceptions import BandIndexOutOfRange, DestinationExists, ParseError, SourceNotFound, UnsupportedFormat
from spatialio.io.raster import DataType, datatype_for, raster_info, read_raster, read_raster_bands, write_raster

UNIT_TRANSFORM = from_origin(0.0, 2.0, 1.0, 1.0)


@pytest.fixture
def tif(image, tmp_path):
    path = tmp_path / "image.tif"
    write_raster(image, path)
    return path


def test_single_band_file_band_one(image, tmp_path):
    path = tmp_path / "band.tif"
    write_raster(image.band(2), path)

    dataset = read_raster(path)
    assert dataset.count == 1
    assert (dataset.height, dataset.width) == (image.height, image.width)
    np.testing.assert_allclose(dataset.data[0], image.data[1], rtol=1e-6)
    assert dataset.crs == "EPSG:32633"
    assert dataset.transform == image.transform
    assert dataset.driver == "GTiff"


def test_read_selected_band(image, tif):
    dataset = read_raster(tif, band=3)
    np.testing.assert_allclose(dataset.data[0], image.data[2], rtol=1e-6)
    assert dataset.band_names == ["band_3"]


@pytest.mark.parametrize("band", [0, 5, -1, True])
def test_band_out_of_range(tif, band):
    with pytest.raises(BandIndexOutOfRange) as excinfo:
        read_raster(tif, band=band)
    assert "4 band(s)" in str(excinfo.value)


def test_read_all_bands_in_order(image, tif):
    dataset = read_raster_bands(tif)
    assert dataset.count == 4
    assert dataset.band_names == ["band_1", "band_2", "band_3", "band_4"]
    for index in range(4):
        np.testing.assert_allclose(dataset.data[index], image.data[index], rtol=1e-6)


def test_raster_info_reads_header_only(tif):
    info = raster_info(tif)
    assert info["count"] == 4
    assert (info["width"], info["height"]) == (32, 24)
    assert info["crs"] == "EPSG:32633"
    assert info["res"] == (10.0, 10.0)
    assert info["dtypes"] == ["float32"] * 4


def test_explicit_datatype(image, tmp_path):
    path = tmp_path / "int.tif"
    write_raster(image, path, datatype="INT2S")
    assert read_raster(path).dtype == np.int16


def test_default_datatype_comes_from_config(image, tmp_path):
    path = tmp_path / "configured.tif"
    write_raster(image, path, config=Config(default_raster_datatype="INT2U"))
    assert read_raster(path).dtype == np.uint16

    explicit = tmp_path / "explicit.tif"
    write_raster(image, explicit, datatype="FLT8S", config=Config(default_raster_datatype="INT2U"))
    assert read_raster(explicit).dtype == np.float64


def test_logical_datatype(tmp_path):
    mask = RasterDataset(
        np.array([[0, 3, 0], [1, 0, 7]], dtype="int32"),
        UNIT_TRANSFORM,
        crs="EPSG:4326",
    )
    path = tmp_path / "mask.tif"
    write_raster(mask, path, datatype=DataType.LOG1S)

    back = read_raster(path)
    np.testing.assert_array_equal(back.data[0], [[0, 1, 0], [1, 0, 1]])


def test_existing_destination_is_protected(image, tif):
    with pytest.raises(DestinationExists):
        write_raster(image, tif)

    write_raster(image.band(1), tif, overwrite=True)
    assert read_raster_bands(tif).count == 1


def test_ascii_grid_single_band(image, tmp_path):
    path = tmp_path / "band.asc"
    write_raster(image.band(1), path)

    dataset = read_raster(path)
    assert dataset.driver == "AAIGrid"
    assert dataset.count == 1
    np.testing.assert_allclose(dataset.data[0], image.data[0], rtol=1e-5)


def test_ascii_grid_rejects_multiple_bands(image, tmp_path):
    with pytest.raises(UnsupportedFormat, match="at most 1 band"):
        write_raster(image, tmp_path / "image.asc")
    assert not os.path.exists(tmp_path / "image.asc")


def test_r_raster_multi_band(image, tmp_path):
    path = tmp_path / "image.grd"
    write_raster(image, path)

    dataset = read_raster_bands(path)
    assert dataset.driver == "RRASTER"
    assert dataset.count == 4


def test_missing_raster(tmp_path):
    with pytest.raises(SourceNotFound):
        read_raster(tmp_path / "missing.tif")


def test_garbage_raster_is_a_parse_error(tmp_path):
    path = tmp_path / "garbage.tif"
    path.write_bytes(b"definitely not a tiff" * 50)

    with pytest.raises(ParseError):
        read_raster(path)


def test_truncated_raster_is_a_parse_error(image, tif):
    size = os.path.getsize(tif)
    with open(tif, "r+b") as f:
        f.truncate(size // 3)

    with pytest.raises(ParseError):
        read_raster_bands(tif)


def test_unknown_extension(image, tmp_path):
    with pytest.raises(UnsupportedFormat):
        write_raster(image, tmp_path / "image.xyz")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("INT2U", DataType.INT2U),
        ("flt8s", DataType.FLT8S),
        ("uint16", DataType.INT2U),
        ("uint8", DataType.INT1U),
        ("int8", DataType.INT1S),
        ("float32", DataType.FLT4S),
        ("bool", DataType.LOG1S),
        (DataType.INT4S, DataType.INT4S),
    ],
)
def test_datatype_parse(value, expected):
    assert DataType.parse(value) is expected


@pytest.mark.parametrize("value", ["int64", "complex128", "not-a-type"])
def test_datatype_parse_rejects_unknown(value):
    with pytest.raises(ValueError):
        DataType.parse(value)


def test_datatype_members_are_distinct():
    assert len(DataType) == 9
    assert DataType.LOG1S is not DataType.INT1U
    assert DataType.LOG1S.nbits == 1


@pytest.mark.parametrize(
    "values, expected",
    [
        (np.array([True, False]), DataType.LOG1S),
        (np.array([0, 255]), DataType.INT1U),
        (np.array([-1, 100]), DataType.INT1S),
        (np.array([0, 60000]), DataType.INT2U),
        (np.array([-300, 300]), DataType.INT2S),
        (np.array([0, 70000]), DataType.INT4U),
        (np.array([-40000, 5]), DataType.INT4S),
        (np.array([2**40]), DataType.FLT8S),
        (np.array([0.5, 1.25], dtype="float32"), DataType.FLT4S),
        (np.array([0.5, 1.25]), DataType.FLT4S),
        (np.array([0.1]), DataType.FLT8S),
        (np.array([1e300]), DataType.FLT8S),
    ],
)
def test_datatype_for(values, expected):
    assert datatype_for(values) is expected


def test_band_and_stack(image):
    first, second = image.band(1), image.band(2)
    stacked = stack([second, first])
    assert stacked.band_names == ["band_2", "band_1"]
    np.testing.assert_array_equal(stacked.data[0], image.data[1])

    with pytest.raises(BandIndexOutOfRange):
        image.band(0)


def test_stack_rejects_mismatched_headers(image):
    other = RasterDataset(np.zeros((2, 2)), image.transform, crs=image.crs)
    with pytest.raises(ValueError, match="mismatch"):
        stack([image, other])


def test_unknown_crs_is_kept_unknown(tmp_path):
    dataset = RasterDataset(np.ones((3, 3), dtype="uint8"), UNIT_TRANSFORM)
    assert dataset.crs == "unknown"

    path = tmp_path / "nocrs.tif"
    write_raster(dataset, path, datatype="INT1U")
    assert read_raster(path).crs == "unknown"
