"""
Command-line interface for the orrery.

Usage:
    # World positions of every body after 2.5 simulated years
    python -m orrery positions --time 2.5

    # The catalog, grouped by category
    python -m orrery bodies

    # Replay the grand tour on a virtual clock (finishes instantly)
    python -m orrery tour --tour grand_tour --virtual

    # Animated preview focused on Saturn
    python -m orrery animate --select saturn --frames 600
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

import numpy as np

from orrery.bodies import grouped_bodies, load_bodies_data, CATEGORY_LABELS
from orrery.config import OrreryConfig, make_config
from orrery.scene import SolarSystemScene
from orrery.tour.clock import ManualClock
from orrery.tour.engine import TourOutcome
from orrery.tour.script import GRAND_TOUR_ID, available_tours

logger = logging.getLogger('orrery')


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--catalog",
        type=str,
        default=None,
        help="Body catalog CSV (default: the packaged catalog).",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=None,
        help="Frames per second of the frame loop (default: 30).",
    )
    parser.add_argument(
        "--time-scale",
        type=float,
        default=None,
        help="Initial time scale, 0 to 5 in steps of 0.5 (default: 1.0).",
    )


def _setup_positions_parser(subparsers) -> argparse.ArgumentParser:
    parser = subparsers.add_parser('positions', help='Print world positions (AU, render space) at a time')
    _add_common_arguments(parser)
    parser.add_argument(
        "--time",
        type=float,
        default=0.0,
        help="Elapsed simulated years since mount (default: 0).",
    )
    parser.add_argument(
        "--body",
        nargs="+",
        default=None,
        help="Restrict the output to these body ids.",
    )
    return parser


def _setup_bodies_parser(subparsers) -> argparse.ArgumentParser:
    parser = subparsers.add_parser('bodies', help='List the catalog grouped by category')
    _add_common_arguments(parser)
    return parser


def _setup_tour_parser(subparsers) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        'tour',
        help='Run a guided tour headless',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Grand tour, virtual time, 2 second narration clips
  python -m orrery tour --virtual --clip-duration 2

  # A single body, in real time
  python -m orrery tour --tour jupiter
""",
    )
    _add_common_arguments(parser)
    parser.add_argument(
        "--tour",
        type=str,
        default=GRAND_TOUR_ID,
        help=f"Tour id: '{GRAND_TOUR_ID}' or a body id (default: {GRAND_TOUR_ID}).",
    )
    parser.add_argument(
        "--virtual",
        action="store_true",
        help="Run on a virtual clock instead of waiting in real time.",
    )
    parser.add_argument(
        "--clip-duration",
        type=float,
        default=None,
        help="Duration of every simulated audio clip in seconds (default: 5).",
    )
    parser.add_argument(
        "--max-frames",
        type=int,
        default=None,
        help="Stop the tour after this many frames.",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List the available tours and exit.",
    )
    return parser


def _setup_animate_parser(subparsers) -> argparse.ArgumentParser:
    parser = subparsers.add_parser('animate', help='Animated matplotlib preview')
    _add_common_arguments(parser)
    parser.add_argument(
        "--frames",
        type=int,
        default=300,
        help="Number of frames (default: 300).",
    )
    parser.add_argument(
        "--select",
        type=str,
        default=None,
        help="Body id to select (the camera flies to it).",
    )
    parser.add_argument(
        "--save",
        type=str,
        default=None,
        help="Write the animation to this file instead of showing it.",
    )
    return parser


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='orrery',
        description="Interactive solar-system orrery with scripted guided tours.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug).",
    )
    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    subparsers.required = True

    _setup_positions_parser(subparsers)
    _setup_bodies_parser(subparsers)
    _setup_tour_parser(subparsers)
    _setup_animate_parser(subparsers)
    return parser


def _config_from_args(args) -> OrreryConfig:
    return make_config(
        fps=args.fps,
        time_scale=args.time_scale,
        clip_duration_s=getattr(args, 'clip_duration', None),
        catalog_path=args.catalog,
    )


def run_positions(args) -> int:
    config = _config_from_args(args)
    bodies = load_bodies_data(config.catalog_path)
    scene = SolarSystemScene(bodies)
    scene.update(args.time)

    ids = args.body or scene.order
    unknown = [b for b in ids if b not in scene]
    if unknown:
        logger.error("Unknown body id(s): %s", ', '.join(unknown))
        return 2

    print(f"t = {args.time:.4f} yr")
    print(f"{'body':<14} {'x':>14} {'y':>14} {'z':>14} {'r':>12}")
    for body_id in ids:
        p = scene.world_position(body_id)
        print(f"{body_id:<14} {p[0]:14.8f} {p[1]:14.8f} {p[2]:14.8f} {np.linalg.norm(p):12.6f}")
    return 0


def run_bodies(args) -> int:
    config = _config_from_args(args)
    bodies = load_bodies_data(config.catalog_path)
    for category, members in grouped_bodies(bodies).items():
        print(f"{CATEGORY_LABELS[category]} ({len(members)})")
        for body in members:
            period = body.get_period('year')
            period_str = f"{period:10.4f} yr" if period else f"{'-':>13}"
            radius_str = f"{body.mean_radius_km:10.1f} km" if body.mean_radius_km else f"{'-':>13}"
            parent = f"  around {body.parent_id}" if body.parent_id else ''
            print(f"  {body.id:<14} {str(body):<28} {period_str} {radius_str}{parent}")
    return 0


def run_tour(args) -> int:
    from orrery.app import Orrery, drive

    config = _config_from_args(args)
    if args.list:
        bodies = load_bodies_data(config.catalog_path)
        for tour_id in available_tours(bodies):
            print(tour_id)
        return 0

    async def _main() -> TourOutcome | None:
        if args.virtual:
            orrery = Orrery(config, clock=ManualClock())
            return await drive(orrery, orrery.run_tour(args.tour, max_frames=args.max_frames))
        orrery = Orrery(config)
        try:
            return await orrery.run_tour(args.tour, max_frames=args.max_frames)
        finally:
            await orrery.aclose()

    try:
        outcome = asyncio.run(_main())
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130

    if outcome is None:
        logger.error("Tour '%s' could not be started", args.tour)
        return 2
    print(f"Tour '{args.tour}': {outcome.value}")
    return 0 if outcome is TourOutcome.COMPLETED else 1


def run_animate(args) -> int:
    from orrery.anim import animate
    from orrery.app import Orrery

    orrery = Orrery(_config_from_args(args))
    if args.select and args.select not in orrery.bodies:
        logger.error("Unknown body id: %s", args.select)
        return 2
    animate(orrery, n_frames=args.frames, select=args.select, save_path=args.save)
    return 0


COMMANDS = {
    'positions': run_positions,
    'bodies': run_bodies,
    'tour': run_tour,
    'animate': run_animate,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    return COMMANDS[args.command](args)


if __name__ == '__main__':
    sys.exit(main())
