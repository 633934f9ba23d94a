"""
Command-line interface for spatialio.

Provides argparse-based subcommands for inspecting, converting, fetching and rendering
geographic vector and raster data.

Usage:
    spatialio layers data/world.gpkg
    spatialio info data/elevation.tif
    spatialio convert data/world.gpkg out/world.shp --layer world --overwrite
    spatialio capabilities https://www.fao.org/fishery/geoserver/wfs
    spatialio fetch https://www.fao.org/fishery/geoserver/wfs area:FAO_AREAS_ERASE areas.gpkg \\
        --filter "F_CODE='27'"
    spatialio render data/world.gpkg world.png --column pop
"""

import argparse
import json
import sys
from typing import Optional

from .config import Config
from .core.exceptions import SpatialIOError
from .core.formats import RASTER, VECTOR, resolve_archive_member, resolve_driver
from .io.raster import raster_info, read_raster_bands, write_raster
from .io.vector import layer_info, read_vector, write_vector
from .logging_config import setup_logging
from .remote.ows import SERVICES, OWSClient
from .utils.helpers import parse_options, summarize
from .viz.maps import plot_raster, plot_vector, save_figure


def setup_logging_from_args(args: argparse.Namespace) -> None:
    """
    Configure logging based on command-line arguments.

    Args:
        args: Parsed command-line arguments with verbose, quiet, log_file
    """
    if getattr(args, "quiet", False):
        verbosity = -1  # WARNING
    elif getattr(args, "verbose", False):
        verbosity = 1  # DEBUG
    else:
        verbosity = 0  # INFO

    setup_logging(verbosity=verbosity, log_file=getattr(args, "log_file", None))


def load_config(config_path: Optional[str]) -> Config:
    """
    Load configuration from file.

    Args:
        config_path: Path to config file (YAML or JSON)

    Returns:
        Loaded Config, or the defaults when no path was given
    """
    if config_path is None:
        return Config()

    try:
        return Config.load_from_file(config_path)
    except (OSError, ValueError, TypeError) as e:
        print(f"Error loading config from {config_path}: {e}", file=sys.stderr)
        sys.exit(1)


def _kind_of(source: str, driver: Optional[str], kind: Optional[str]) -> str:
    """Decide whether ``source`` is read as vector or raster data."""
    if kind is not None:
        return kind
    return resolve_driver(resolve_archive_member(source), driver).kind


def _print_json(value) -> None:
    print(json.dumps(value, indent=2, default=str))


def cmd_layers(args: argparse.Namespace) -> int:
    """Handle 'layers' subcommand."""
    info = layer_info(args.source, driver=args.driver)
    for row in info.itertuples(index=False):
        print(f"{row.name}\t{row.geometry_type}")
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    """Handle 'info' subcommand."""
    if _kind_of(args.source, args.driver, args.kind) == RASTER:
        _print_json(raster_info(args.source, driver=args.driver))
    else:
        dataset = read_vector(args.source, layer=args.layer, driver=args.driver)
        _print_json(summarize(dataset))
    return 0


def cmd_convert(args: argparse.Namespace) -> int:
    """Handle 'convert' subcommand."""
    config = load_config(args.config)
    options = parse_options(args.option)

    if _kind_of(args.source, None, args.kind) == RASTER:
        dataset = read_raster_bands(args.source)
        written = write_raster(
            dataset,
            args.destination,
            datatype=args.datatype,
            driver=args.driver,
            options=options,
            overwrite=args.overwrite,
            config=config,
        )
    else:
        dataset = read_vector(args.source, layer=args.layer)
        written = write_vector(
            dataset,
            args.destination,
            driver=args.driver,
            layer=args.output_layer,
            overwrite=args.overwrite,
            replace_layer=args.replace_layer,
            options=options,
        )

    print(f"Wrote {written}")
    return 0


def cmd_capabilities(args: argparse.Namespace) -> int:
    """Handle 'capabilities' subcommand."""
    config = load_config(args.config)
    client = OWSClient(args.url, service=args.service, version=args.version, config=config)
    capabilities = client.get_capabilities()

    print(f"{capabilities.service} {capabilities.version or ''} {capabilities.title or ''}".strip())
    print("Operations: " + ", ".join(capabilities.operations))
    if capabilities.output_formats:
        print("Formats: " + ", ".join(capabilities.output_formats))
    for name in capabilities.type_names:
        title = capabilities.type_titles.get(name)
        print(f"  {name}\t{title}" if title else f"  {name}")
    return 0


def cmd_fetch(args: argparse.Namespace) -> int:
    """Handle 'fetch' subcommand."""
    config = load_config(args.config)
    client = OWSClient(args.url, service=args.service, version=args.version, config=config)

    if client.service == "WFS":
        dataset = client.fetch_features(
            args.type_name,
            cql_filter=args.filter,
            srs_name=args.srs,
            max_features=args.max_features,
            output_format=args.format,
        )
        written = write_vector(dataset, args.destination, overwrite=args.overwrite)
    else:
        dataset = client.fetch_coverage(args.type_name, fmt=args.format or "image/tiff", subset=args.subset)
        written = write_raster(dataset, args.destination, overwrite=args.overwrite, config=config)

    print(f"Wrote {written}")
    return 0


def cmd_render(args: argparse.Namespace) -> int:
    """Handle 'render' subcommand."""
    config = load_config(args.config)

    if _kind_of(args.source, None, args.kind) == RASTER:
        dataset = read_raster_bands(args.source)
        rgb = tuple(args.rgb) if args.rgb else None
        fig = plot_raster(dataset, band=args.band, rgb_bands=rgb, title=args.title, config=config)
    else:
        dataset = read_vector(args.source, layer=args.layer)
        fig = plot_vector(dataset, column=args.column, title=args.title, config=config)

    written = save_figure(fig, args.destination, overwrite=args.overwrite, config=config)
    print(f"Wrote {written}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with every subcommand."""
    parser = argparse.ArgumentParser(
        prog="spatialio",
        description="Read, write, fetch and render geographic vector and raster data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    def _add_common_globalish_args(p: argparse.ArgumentParser) -> None:
        """Add args that also work after the subcommand token."""
        p.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Enable DEBUG logging")
        p.add_argument(
            "-q", "--quiet", action="store_true", default=argparse.SUPPRESS, help="Suppress INFO logging (WARNING+ only)"
        )
        p.add_argument("--log-file", type=str, default=argparse.SUPPRESS, help="Write logs to file")
        p.add_argument("--config", type=str, default=argparse.SUPPRESS, help="Configuration file (YAML or JSON)")

    def _add_kind_arg(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--kind",
            choices=[VECTOR, RASTER],
            default=None,
            help="Treat the source as vector or raster data (default: from the extension)",
        )

    _add_common_globalish_args(parser)
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ========================================================================
    # layers subcommand
    # ========================================================================
    parser_layers = subparsers.add_parser("layers", help="List the layers of a vector source")
    _add_common_globalish_args(parser_layers)
    parser_layers.add_argument("source", help="Vector file, folder, URL or virtual path")
    parser_layers.add_argument("--driver", type=str, default=None, help="Driver name overriding format detection")
    parser_layers.set_defaults(func=cmd_layers)

    # ========================================================================
    # info subcommand
    # ========================================================================
    parser_info = subparsers.add_parser("info", help="Describe a vector or raster source")
    _add_common_globalish_args(parser_info)
    _add_kind_arg(parser_info)
    parser_info.add_argument("source", help="Vector or raster source")
    parser_info.add_argument("--layer", type=str, default=None, help="Layer name (vector only)")
    parser_info.add_argument("--driver", type=str, default=None, help="Driver name overriding the extension")
    parser_info.set_defaults(func=cmd_info)

    # ========================================================================
    # convert subcommand
    # ========================================================================
    parser_convert = subparsers.add_parser("convert", help="Convert a source to another format")
    _add_common_globalish_args(parser_convert)
    _add_kind_arg(parser_convert)
    parser_convert.add_argument("source", help="Vector or raster source")
    parser_convert.add_argument("destination", help="Output path; the extension picks the driver")
    parser_convert.add_argument("--layer", type=str, default=None, help="Layer to read (vector only)")
    parser_convert.add_argument("--output-layer", type=str, default=None, help="Layer name to write (vector only)")
    parser_convert.add_argument("--driver", type=str, default=None, help="Output driver overriding the extension")
    parser_convert.add_argument(
        "--datatype", type=str, default=None, help="Raster storage type, e.g. INT2S or FLT4S (raster only)"
    )
    parser_convert.add_argument("--overwrite", action="store_true", help="Replace an existing destination")
    parser_convert.add_argument(
        "--replace-layer", action="store_true", help="Replace an existing layer of a multi-layer container"
    )
    parser_convert.add_argument(
        "-o",
        "--option",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Driver creation option (repeatable), e.g. -o GEOMETRY=AS_WKT",
    )
    parser_convert.set_defaults(func=cmd_convert)

    # ========================================================================
    # capabilities subcommand
    # ========================================================================
    parser_caps = subparsers.add_parser("capabilities", help="List what a WFS/WCS endpoint advertises")
    _add_common_globalish_args(parser_caps)
    parser_caps.add_argument("url", help="Service endpoint")
    parser_caps.add_argument("--service", choices=SERVICES, default="WFS", help="Service type (default: WFS)")
    parser_caps.add_argument("--version", dest="version", type=str, default=None, help="Protocol version")
    parser_caps.set_defaults(func=cmd_capabilities)

    # ========================================================================
    # fetch subcommand
    # ========================================================================
    parser_fetch = subparsers.add_parser("fetch", help="Fetch features or a coverage and save it")
    _add_common_globalish_args(parser_fetch)
    parser_fetch.add_argument("url", help="Service endpoint")
    parser_fetch.add_argument("type_name", help="Feature type (WFS) or coverage id (WCS)")
    parser_fetch.add_argument("destination", help="Output path; the extension picks the driver")
    parser_fetch.add_argument("--service", choices=SERVICES, default="WFS", help="Service type (default: WFS)")
    parser_fetch.add_argument("--version", dest="version", type=str, default=None, help="Protocol version")
    parser_fetch.add_argument("--filter", type=str, default=None, help="CQL filter expression (WFS only)")
    parser_fetch.add_argument("--srs", type=str, default=None, help="Output CRS, e.g. EPSG:4326 (WFS only)")
    parser_fetch.add_argument("--max-features", type=int, default=None, help="Feature limit (WFS only)")
    parser_fetch.add_argument("--format", type=str, default=None, help="Response format requested from the server")
    parser_fetch.add_argument(
        "--subset", action="append", default=None, help="Subset expression, e.g. 'Lat(40,45)' (WCS only, repeatable)"
    )
    parser_fetch.add_argument("--overwrite", action="store_true", help="Replace an existing destination")
    parser_fetch.set_defaults(func=cmd_fetch)

    # ========================================================================
    # render subcommand
    # ========================================================================
    parser_render = subparsers.add_parser("render", help="Draw a source as a map image")
    _add_common_globalish_args(parser_render)
    _add_kind_arg(parser_render)
    parser_render.add_argument("source", help="Vector or raster source")
    parser_render.add_argument("destination", help="Image path (.png, .jpg, .svg, .pdf, .tif)")
    parser_render.add_argument("--layer", type=str, default=None, help="Layer to draw (vector only)")
    parser_render.add_argument("--column", type=str, default=None, help="Attribute to color by (vector only)")
    parser_render.add_argument("--band", type=int, default=1, help="Band to draw (raster only, default: 1)")
    parser_render.add_argument(
        "--rgb", type=int, nargs=3, metavar=("R", "G", "B"), default=None, help="Bands for an RGB composite"
    )
    parser_render.add_argument("--title", type=str, default=None, help="Figure title")
    parser_render.add_argument("--overwrite", action="store_true", help="Replace an existing image")
    parser_render.set_defaults(func=cmd_render)

    return parser


def main(argv=None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    for name in ("verbose", "quiet", "log_file", "config"):
        if not hasattr(args, name):
            setattr(args, name, None)

    setup_logging_from_args(args)

    try:
        return args.func(args)
    except SpatialIOError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Invalid argument: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
