"""Text demo for the grid editor engine.

Run with: `python -m grideditor --shapes I O L`

Spawns the requested catalog shapes at the first free positions, prints the
resulting grid and the exported state.
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from . import PlacementSession, render_grid
from .config import GridConfig
from .logging_config import setup_logging


LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    defaults = GridConfig()
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--rows", type=int, default=defaults.rows, help="grid rows")
    parser.add_argument("--cols", type=int, default=defaults.cols, help="grid columns")
    parser.add_argument(
        "--shapes",
        nargs="*",
        default=["I", "O", "L"],
        help="catalog ids to spawn, in order",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(getattr(logging, args.log_level))

    session = PlacementSession.from_config(GridConfig(rows=args.rows, cols=args.cols))
    for shape_id in args.shapes:
        shape = session.spawn_shape(shape_id)
        if shape is not None:
            LOGGER.info("Placed %s at %s", shape.id, tuple(shape.position))

    for line in render_grid(session):
        print(line)
    state = session.export_state()
    print(state["shapes"])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
