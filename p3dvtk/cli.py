"""
Command line entry point: convert a Plot3D grid to a VTK XML unstructured grid.

Usage:
    plot3d-to-vtu grid.xyz grid.vtu
    plot3d-to-vtu grid.p2d grid.vtu --dimensions 2 --ascii-input --ascii-output
    plot3d-to-vtu grid.x grid.vtu --config converter.yaml
"""

import argparse
import sys
from pathlib import Path

from loguru import logger

from .config import ConverterConfig, apply_cli_overrides, load_yaml
from .convert import convert_plot3d_to_vtu
from .errors import Plot3DVtkError
from .utils.logging import setup_logging


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plot3d-to-vtu",
        description="Convert a Plot3D structured grid to a VTK XML unstructured grid.",
    )
    parser.add_argument("input", help="Plot3D grid file")
    parser.add_argument("output", help="Output .vtu file")
    parser.add_argument("--config", type=str, default=None,
                        help="YAML configuration file")

    grid = parser.add_argument_group("input")
    grid.add_argument("--dimensions", type=int, choices=(2, 3), default=None,
                      help="Grid dimensionality")
    grid.add_argument("--binary-input", dest="binary", action="store_const",
                      const=True, default=None, help="Fortran unformatted input")
    grid.add_argument("--ascii-input", dest="binary", action="store_const",
                      const=False, help="Formatted text input")
    grid.add_argument("--single-block", dest="single_block", action="store_const",
                      const=True, default=None, help="File has no block-count header")

    out = parser.add_argument_group("output")
    out.add_argument("--ascii-output", dest="ascii_output", action="store_const",
                     const=True, default=None, help="Write values as text")
    out.add_argument("--inline", dest="appended", action="store_const",
                     const=False, default=None, help="Inline binary data arrays")
    out.add_argument("--appended", dest="appended", action="store_const",
                     const=True, help="Appended binary data (default)")
    out.add_argument("--precision", type=int, default=None,
                     help="Significant digits for text output")

    parser.add_argument("--log-level", dest="log_level", default=None,
                        help="DEBUG, INFO, WARNING, ...")
    return parser


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)

    try:
        config = load_yaml(args.config) if args.config else ConverterConfig()
        config = apply_cli_overrides(config, args)
    except (FileNotFoundError, Plot3DVtkError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    setup_logging(level=config.logging.level, show_time=config.logging.show_time)

    if not Path(args.input).exists():
        logger.error(f"Input file not found: {args.input}")
        return 2

    try:
        convert_plot3d_to_vtu(args.input, args.output, config)
    except Plot3DVtkError as e:
        logger.error(f"Conversion failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
