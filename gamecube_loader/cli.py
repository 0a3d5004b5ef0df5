#!/usr/bin/env python3
"""
GameCube Loader

Command-line interface for inspecting Nintendo GameCube DOL and REL binaries.

Usage:
    gamecube-loader <binary> [--map <linker-map>] [--config <config.json>] [--output <report.json>] [--debug]
    gamecube-loader -h | --help
    gamecube-loader --version

Arguments:
    binary             Path to a DOL, REL or Yaz0 compressed REL

Options:
    --map              CodeWarrior linker map to apply
    --config           Path to config.json
    --output           Write a JSON report of segments and labels
    --debug            Verbose logging
    -h --help          Show this help message
    --version          Show version
"""

import sys
import argparse
import logging
from pathlib import Path

from . import __version__
from .config import Config
from .loader import LoadResult, UnsupportedFormatError, load_file
from .host import MemoryProgram
from .output.image_json import ImageJson


def setup_logging(debug: bool):
    """Setup logging configuration"""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s',
        force=True
    )


def print_summary(result: LoadResult, program: MemoryProgram) -> None:
    """Print the detected format, segments and symbol counts."""
    kind = result.format.value if result.format else "unknown"
    if result.compressed:
        kind += " (Yaz0)"
    print(f"Format: {kind}")

    print(f"Segments: {len(program.segments)}")
    for segment in program.segments:
        print(f"  {segment.name:<8} 0x{segment.address:08X}-0x{segment.end:08X} "
              f"{segment.permissions} size 0x{segment.size:X}")

    if result.image_error:
        print(f"ERROR: {result.image_error}")

    if result.map_result is not None:
        print(f"Symbols parsed: {len(result.map_result.symbols)}")
        print(f"Labels created: {len(program.labels)}")
        diagnostics = len(result.map_result.diagnostics)
        if result.apply_result is not None:
            diagnostics += len(result.apply_result.diagnostics)
        if diagnostics:
            print(f"Map diagnostics: {diagnostics}")
    elif result.symbol_error:
        print(f"ERROR: {result.symbol_error}")


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="GameCube Loader - Load DOL and REL binaries and apply linker map symbols",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('binary', help='DOL, REL or Yaz0 compressed REL file')
    parser.add_argument('--map', type=str, help='CodeWarrior linker map')
    parser.add_argument('--config', type=str, help='Path to config.json')
    parser.add_argument('--output', type=str, help='Write a JSON report to this path')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--version', action='version', version=f'gamecube_loader {__version__}')

    args = parser.parse_args(argv)
    setup_logging(args.debug)

    config_path = Path(args.config) if args.config else None
    try:
        config = Config.load(config_path)
    except ValueError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    binary_path = Path(args.binary)
    if not binary_path.is_file():
        print(f"ERROR: {binary_path} not found")
        sys.exit(1)

    if args.map and not Path(args.map).is_file():
        print(f"ERROR: {args.map} not found")
        sys.exit(1)

    print(f"Loading {binary_path}...")
    try:
        result, program = load_file(binary_path, args.map, config)
    except UnsupportedFormatError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print_summary(result, program)

    if args.output:
        print("Writing report...")
        ImageJson.from_program(result, program).save(args.output)
        print("Done!")

    if not result.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
