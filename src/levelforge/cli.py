"""
levelforge command line.

Generates one level with either generator and optionally writes it as JSON:

    levelforge bsp --width 40 --height 30 --seed 42 -o dungeon.json
    levelforge wfc --tileset office --seed 7 --save-preset "small office"
    levelforge wfc --preset "small office" --seed 8
"""

import argparse
import logging
import sys
from dataclasses import fields
from typing import List, Optional

from levelforge import presets
from levelforge.errors import LevelIOError
from levelforge.generators.bsp.bsp_generator import BSPGenerationParams
from levelforge.generators.wfc.tilesets import TilesetLibrary
from levelforge.generators.wfc.wfc_generator import WFCGenerationParams
from levelforge.pipeline.level_session import LevelSession

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_GENERATION_FAILED = 1
EXIT_BAD_PARAMETERS = 2

_PARAM_TYPES = {
    'bsp': BSPGenerationParams,
    'wfc': WFCGenerationParams,
}


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--width', type=int, help='Grid width in tiles')
    parser.add_argument('--height', type=int, help='Grid height in tiles')
    parser.add_argument('--depth', type=int, help='Vertical extent of the level bounds')
    parser.add_argument('--seed', type=int, help='Random seed (default: time-derived)')
    parser.add_argument('--preset', type=str, help='Start from a saved preset')
    parser.add_argument('--save-preset', type=str, metavar='NAME',
                        help='Save the effective parameters as a preset')
    parser.add_argument('--output', '-o', type=str, help='Write the level as JSON')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='levelforge',
        description='Procedural level layout generation (BSP rooms or WFC tiles)'
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='algorithm', required=True)

    bsp = subparsers.add_parser('bsp', help='Rooms and corridors by recursive partitioning')
    _add_common_arguments(bsp)
    bsp.add_argument('--min-room-size', type=int, dest='min_room_size')
    bsp.add_argument('--max-room-size', type=int, dest='max_room_size')
    bsp.add_argument('--corridor-width', type=int, dest='corridor_width')
    bsp.add_argument('--theme', type=str)
    bsp.add_argument('--doors', action='store_const', const=True, dest='place_doors',
                     help='Turn corridor openings in room walls into doors')

    wfc = subparsers.add_parser('wfc', help='Tiles by constraint propagation')
    _add_common_arguments(wfc)
    wfc.add_argument('--tileset', type=str, choices=TilesetLibrary.names())
    wfc.add_argument('--max-iterations', type=int, dest='max_iterations')
    wfc.add_argument('--backtrack-limit', type=int, dest='backtrack_limit')
    return parser


def _resolve_params(args: argparse.Namespace):
    """Defaults, then preset values, then explicit command-line values."""
    param_type = _PARAM_TYPES[args.algorithm]
    values = param_type().to_dict()

    if args.preset:
        preset = presets.load_preset(args.preset)
        if preset is None:
            raise ValueError(f"Preset not found: {args.preset}")
        if preset.algorithm != args.algorithm:
            raise ValueError(f"Preset {args.preset!r} is for {preset.algorithm}, not {args.algorithm}")
        values.update(preset.params)

    for f in fields(param_type):
        explicit = getattr(args, f.name, None)
        if explicit is not None:
            values[f.name] = explicit
    return param_type.from_dict(values)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        params = _resolve_params(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_PARAMETERS

    logger.debug("Resolved %s params: %s", args.algorithm, params.to_dict())

    session = LevelSession()
    if args.algorithm == 'bsp':
        result = session.generate_bsp(params)
    else:
        result = session.generate_wfc(params)

    if not result.success:
        for error in result.errors:
            print(f"Error: {error}", file=sys.stderr)
        if result.failure_kind == 'parameter_error':
            return EXIT_BAD_PARAMETERS
        return EXIT_GENERATION_FAILED

    level = result.level
    print(f"{level.name}: {len(level.objects)} objects, seed {level.generation_seed}")

    # Saved only after a successful run
    if args.save_preset:
        try:
            presets.save_preset(args.save_preset, params)
        except OSError as e:
            print(f"Error: Failed to save preset: {e}", file=sys.stderr)
            return EXIT_GENERATION_FAILED

    if args.output:
        try:
            path = session.save_level(args.output)
        except LevelIOError as e:
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_GENERATION_FAILED
        print(f"Written: {path}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
