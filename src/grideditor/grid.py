"""Occupancy grid recording which shape instance owns each cell."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .shapes import PixelPosition, PlacedShape, Position, ShapeMatrix, occupied_offsets


LOGGER = logging.getLogger(__name__)

GridCell = Optional[str]
Cells = NDArray[np.object_]


class PlacementReason(str, Enum):
    """Why a placement is or is not acceptable."""

    VALID = "valid"
    OUT_OF_BOUNDS = "out-of-bounds"
    COLLISION = "collision"


class PlacementOutcome(str, Enum):
    """Result of committing a shape to the grid.

    Bounds and collision failures are kept apart: forcing may override a
    collision but never a placement that leaves the grid.
    """

    PLACED = "placed"
    FORCED_OVER_COLLISION = "forced-over-collision"
    REJECTED_COLLISION = "rejected-collision"
    REJECTED_OUT_OF_BOUNDS = "rejected-out-of-bounds"

    @property
    def placed(self) -> bool:
        return self in (PlacementOutcome.PLACED, PlacementOutcome.FORCED_OVER_COLLISION)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: PlacementReason
    conflicting_cells: Tuple[Position, ...] = ()


def create_empty_cells(rows: int, cols: int) -> Cells:
    """Return a new ``rows x cols`` grid with every cell empty."""

    return np.full((rows, cols), None, dtype=object)


class OccupancyGrid:
    """Fixed-size grid of cell ownership.

    Each cell holds ``None`` or the id of the :class:`PlacedShape` occupying
    it.  The grid never resizes; build a new instance for other dimensions.
    """

    def __init__(self, rows: int, cols: int) -> None:
        if rows <= 0 or cols <= 0:
            raise ValueError("Grid dimensions must be positive")
        self.rows = rows
        self.cols = cols
        self._cells: Cells = create_empty_cells(rows, cols)

    def cells(self) -> List[List[GridCell]]:
        """Return a copy of the grid as nested lists."""

        return self._cells.tolist()

    def is_out_of_bounds(self, row: int, col: int) -> bool:
        return not (0 <= row < self.rows and 0 <= col < self.cols)

    def get_cell(self, row: int, col: int) -> GridCell:
        """Return the owner of ``(row, col)``; ``None`` for cells off the grid."""

        if self.is_out_of_bounds(row, col):
            return None
        return self._cells[row, col]

    def get_shape_cells(self, shape_id: str) -> List[Position]:
        """Return every cell currently owned by ``shape_id`` in row-major order."""

        owned = np.argwhere(self._cells == shape_id)
        return [Position(int(r), int(c)) for r, c in owned]

    def validate_placement(
        self,
        matrix: ShapeMatrix,
        position: Tuple[int, int],
        exclude_id: Optional[str] = None,
    ) -> ValidationResult:
        """Check whether ``matrix`` fits at ``position``.

        Cells owned by ``exclude_id`` are treated as empty, which lets a shape
        be validated against the grid while it still occupies it.  Any cell
        leaving the grid makes the reason ``OUT_OF_BOUNDS`` even when other
        cells collide as well.
        """

        row, col = position
        conflicts: List[Position] = []
        out_of_bounds = False
        for dr, dc in occupied_offsets(matrix):
            target = Position(row + dr, col + dc)
            if self.is_out_of_bounds(*target):
                out_of_bounds = True
                conflicts.append(target)
                continue
            owner = self._cells[target.row, target.col]
            if owner is not None and owner != exclude_id:
                conflicts.append(target)

        if out_of_bounds:
            return ValidationResult(False, PlacementReason.OUT_OF_BOUNDS, tuple(conflicts))
        if conflicts:
            return ValidationResult(False, PlacementReason.COLLISION, tuple(conflicts))
        return ValidationResult(True, PlacementReason.VALID)

    def commit(self, shape: PlacedShape, force: bool = False) -> PlacementOutcome:
        """Write ``shape`` into the grid and report what happened.

        Validation does not exclude the shape's own cells; remove the shape
        first when moving it.  With ``force`` colliding cells are overwritten.
        Out-of-bounds placements are always rejected.
        """

        validation = self.validate_placement(shape.matrix, shape.position)
        if validation.reason is PlacementReason.OUT_OF_BOUNDS:
            return PlacementOutcome.REJECTED_OUT_OF_BOUNDS
        if validation.reason is PlacementReason.COLLISION and not force:
            return PlacementOutcome.REJECTED_COLLISION

        self.remove_shape(shape.id)
        blocks = shape.blocks()
        rows = [r for r, _ in blocks]
        cols = [c for _, c in blocks]
        self._cells[rows, cols] = shape.id

        if validation.reason is PlacementReason.COLLISION:
            LOGGER.debug(
                "Forced %s over %d occupied cell(s)", shape.id, len(validation.conflicting_cells)
            )
            return PlacementOutcome.FORCED_OVER_COLLISION
        return PlacementOutcome.PLACED

    def place_shape(self, shape: PlacedShape, force: bool = False) -> bool:
        """Place ``shape`` and return ``True`` on success.  See :meth:`commit`."""

        return self.commit(shape, force=force).placed

    def remove_shape(self, shape_id: str) -> None:
        """Clear every cell owned by ``shape_id``."""

        self._cells[self._cells == shape_id] = None

    def check_shape_overlap(self, shape: PlacedShape, all_shapes: Iterable[PlacedShape]) -> bool:
        """Return ``True`` if ``shape`` shares a cell with any other shape.

        The test is purely geometric over ``all_shapes``; the grid contents are
        not consulted since forced placements keep only the last writer.
        """

        own = set(shape.blocks())
        for other in all_shapes:
            if other.id == shape.id:
                continue
            if own.intersection(other.blocks()):
                return True
        return False

    def reset(self) -> None:
        """Empty every cell."""

        self._cells = create_empty_cells(self.rows, self.cols)

    @staticmethod
    def snap_to_grid(pixel_x: float, pixel_y: float, cell_size: float) -> Position:
        """Return the cell containing the pixel coordinate.  No clamping."""

        return Position(math.floor(pixel_y / cell_size), math.floor(pixel_x / cell_size))

    @staticmethod
    def grid_to_pixel(position: Tuple[int, int], cell_size: float) -> PixelPosition:
        row, col = position
        return PixelPosition(col * cell_size, row * cell_size)

    def serialize(self) -> str:
        """Return the raw cell matrix as JSON."""

        return json.dumps(self.cells())

    def parse_cells(self, data: str) -> Optional[Cells]:
        """Parse serialized cells, returning ``None`` if they do not fit this grid."""

        try:
            parsed = json.loads(data)
        except (TypeError, ValueError, RecursionError):
            return None
        if not isinstance(parsed, list) or len(parsed) != self.rows:
            return None
        cells = create_empty_cells(self.rows, self.cols)
        for r, row in enumerate(parsed):
            if not isinstance(row, list) or len(row) != self.cols:
                return None
            for c, value in enumerate(row):
                if value is not None and not isinstance(value, str):
                    return None
                cells[r, c] = value
        return cells

    def deserialize(self, data: str) -> bool:
        """Restore the grid from :meth:`serialize` output.

        Returns ``False`` and leaves the grid untouched when ``data`` is not a
        matrix of this grid's dimensions.
        """

        cells = self.parse_cells(data)
        if cells is None:
            LOGGER.debug("Rejected serialized grid for a %dx%d grid", self.rows, self.cols)
            return False
        self._cells = cells
        return True
