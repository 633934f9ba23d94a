# -*- coding: utf-8 -*-
"""Tests for the command-line interface."""

import json

import pytest

from spatialio.cli import build_parser, main
from spatialio.io.raster import read_raster_bands, write_raster
from spatialio.io.vector import list_layers, read_vector, write_vector


@pytest.fixture
def world_gpkg(world, points, tmp_path):
    path = tmp_path / "world.gpkg"
    write_vector(world, path)
    write_vector(points, path, layer="stations")
    return path


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage: spatialio" in capsys.readouterr().out


def test_layers(world_gpkg, capsys):
    assert main(["layers", str(world_gpkg)]) == 0
    out = capsys.readouterr().out
    assert "world\t" in out
    assert "stations\tPoint" in out


def test_info_vector(world_gpkg, capsys):
    assert main(["-q", "info", str(world_gpkg), "--layer", "stations"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["kind"] == "vector"
    assert summary["name"] == "stations"
    assert summary["crs"] == "EPSG:4326"


def test_info_raster(image, tmp_path, capsys):
    path = tmp_path / "image.tif"
    write_raster(image, path)

    assert main(["info", str(path), "--quiet"]) == 0
    info = json.loads(capsys.readouterr().out)
    assert info["count"] == 4
    assert info["driver"] == "GTiff"


def test_convert_vector(world_gpkg, tmp_path):
    destination = tmp_path / "stations.csv"
    args = ["convert", str(world_gpkg), str(destination), "--layer", "stations", "-o", "GEOMETRY=AS_XY"]
    assert main(args) == 0
    assert destination.read_text().splitlines()[0].startswith("X,Y")

    # second run without --overwrite is refused
    assert main(args) == 1
    assert main(args + ["--overwrite"]) == 0


def test_convert_into_geopackage_layer(world_gpkg, tmp_path):
    destination = tmp_path / "out.gpkg"
    assert main(["convert", str(world_gpkg), str(destination), "--output-layer", "countries"]) == 0
    assert list_layers(destination) == ["countries"]
    assert main(["convert", str(world_gpkg), str(destination), "--output-layer", "countries"]) == 1
    assert main(["convert", str(world_gpkg), str(destination), "--output-layer", "countries", "--replace-layer"]) == 0


def test_convert_raster_with_datatype(image, tmp_path):
    source = tmp_path / "image.tif"
    write_raster(image, source)
    destination = tmp_path / "image.grd"

    assert main(["convert", str(source), str(destination), "--datatype", "INT2S"]) == 0
    converted = read_raster_bands(destination)
    assert converted.count == 4
    assert converted.dtype == "int16"


def test_convert_uses_configured_datatype(image, tmp_path):
    source = tmp_path / "image.tif"
    write_raster(image, source)
    config = tmp_path / "spatialio.yaml"
    config.write_text("default_raster_datatype: FLT8S\n")

    destination = tmp_path / "copy.tif"
    assert main(["convert", str(source), str(destination), "--config", str(config)]) == 0
    assert read_raster_bands(destination).dtype == "float64"


def test_missing_source_exits_with_error(tmp_path, capsys):
    assert main(["info", str(tmp_path / "missing.gpkg")]) == 1
    assert "read_vector failed" in capsys.readouterr().err


def test_malformed_option(world_gpkg, tmp_path, capsys):
    assert main(["convert", str(world_gpkg), str(tmp_path / "x.csv"), "-o", "GEOMETRY"]) == 1
    assert "KEY=VALUE" in capsys.readouterr().err


def test_render(world_gpkg, tmp_path):
    destination = tmp_path / "world.png"
    assert main(["render", str(world_gpkg), str(destination), "--column", "pop"]) == 0
    assert destination.stat().st_size > 0
    assert main(["render", str(world_gpkg), str(destination)]) == 1


def test_fetch(fake_session, fake_response, monkeypatch, tmp_path):
    body = (
        '{"type": "FeatureCollection", "features": [{"type": "Feature", "properties": {"F_CODE": "27"},'
        ' "geometry": {"type": "Point", "coordinates": [1, 2]}}]}'
    )
    capabilities = (
        '<WFS_Capabilities version="1.1.0" xmlns="http://www.opengis.net/wfs">'
        "<FeatureTypeList><FeatureType><Name>area:FAO_AREAS</Name></FeatureType></FeatureTypeList>"
        "</WFS_Capabilities>"
    )
    session = fake_session({"GetCapabilities": fake_response(capabilities), "GetFeature": fake_response(body)})
    monkeypatch.setattr("spatialio.remote.ows.new_session", lambda config: session)

    destination = tmp_path / "areas.geojson"
    argv = [
        "fetch",
        "https://www.fao.org/fishery/geoserver/wfs",
        "area:FAO_AREAS",
        str(destination),
        "--filter",
        "F_CODE='27'",
        "--format",
        "application/json",
        "--version",
        "1.1.0",
    ]
    assert main(argv) == 0
    assert len(read_vector(destination)) == 1
    assert session.calls[-1]["params"]["cql_filter"] == "F_CODE='27'"


def test_parser_accepts_global_flags_after_subcommand():
    args = build_parser().parse_args(["layers", "x.gpkg", "-v", "--log-file", "run.log"])
    assert args.verbose is True
    assert args.log_file == "run.log"


def test_capabilities(fake_session, fake_response, monkeypatch, capsys):
    capabilities = (
        '<WFS_Capabilities version="1.0.0" xmlns="http://www.opengis.net/wfs">'
        "<Service><Title>Fishery areas</Title></Service>"
        "<Capability><Request><GetCapabilities/><GetFeature/></Request></Capability>"
        "<FeatureTypeList><FeatureType><Name>area:FAO_AREAS</Name><Title>FAO areas</Title></FeatureType>"
        "</FeatureTypeList></WFS_Capabilities>"
    )
    session = fake_session({"GetCapabilities": fake_response(capabilities)})
    monkeypatch.setattr("spatialio.remote.ows.new_session", lambda config: session)

    assert main(["capabilities", "https://www.fao.org/fishery/geoserver/wfs"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines()[0] == "WFS 1.0.0 Fishery areas"
    assert "Operations: GetCapabilities, GetFeature" in out
    assert "  area:FAO_AREAS\tFAO areas" in out


def test_capabilities_service_error(fake_session, fake_response, monkeypatch, capsys):
    session = fake_session({"GetCapabilities": fake_response("down", status_code=503, reason="Service Unavailable")})
    monkeypatch.setattr("spatialio.remote.ows.new_session", lambda config: session)

    assert main(["capabilities", "https://example.org/wcs", "--service", "WCS"]) == 1
    assert "HTTP 503" in capsys.readouterr().err
