"""Utility helpers for the grid editor."""

from __future__ import annotations

from typing import List

from .session import PlacementSession


EMPTY_CELL = "."
OVERLAP_CELL = "*"


def render_grid(session: PlacementSession) -> List[str]:
    """Return one text line per grid row describing the placed shapes.

    Empty cells are ``.``, cells covered by a single shape show that shape's
    catalog id and cells covered by several shapes show ``*``.  The picture is
    built from the shape list rather than the grid so overlaps stay visible.
    """

    grid = session.grid
    canvas = [[EMPTY_CELL] * grid.cols for _ in range(grid.rows)]
    for shape in session.shapes:
        label = shape.shape_id[:1] or "?"
        for row, col in shape.blocks():
            if grid.is_out_of_bounds(row, col):
                continue
            canvas[row][col] = label if canvas[row][col] == EMPTY_CELL else OVERLAP_CELL
    return ["".join(row) for row in canvas]
