"""Editor session: placed shapes, drag handling and state snapshots.

:class:`PlacementSession` owns the ordered list of placed shapes and the
:class:`~grideditor.grid.OccupancyGrid` they live on.  Every mutation goes
through the session so the grid and the shape list cannot drift apart, and
the ``has_overlap`` flag of every shape is recomputed after each change.

Dragging follows a fixed protocol::

    session.drag_start(shape_id)            # lifts the shape off the grid
    session.drag_move(shape_id, position)   # pure query, call on every move
    session.drag_end(shape_id, position)    # commits, repositions or removes

Only one shape may be dragged at a time.  That is a precondition for callers
and is not enforced.

Overlapping drops are accepted and only flagged through ``has_overlap``.  A
drop that leaves the grid triggers a row-major search for the first free spot;
if there is none the shape is removed from the session.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .config import DEFAULT_COLS, DEFAULT_ROWS, GridConfig
from .grid import OccupancyGrid, PlacementReason, ValidationResult
from .shapes import PlacedShape, Position, ShapeMatrix, get_shape_by_id


LOGGER = logging.getLogger(__name__)


class DragOutcome(str, Enum):
    """How a drag ended.  Callers surface these to the user."""

    COMMITTED = "committed"
    REPOSITIONED = "repositioned"
    REMOVED_GRID_FULL = "removed-grid-full"
    RESTORED = "restored"
    IGNORED = "ignored"


@dataclass(frozen=True)
class DragResult:
    outcome: DragOutcome
    shape: Optional[PlacedShape] = None
    position: Optional[Position] = None


class PlacementSession:
    """Mutable state of one grid editor."""

    def __init__(
        self,
        rows: int = DEFAULT_ROWS,
        cols: int = DEFAULT_COLS,
        *,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._grid = OccupancyGrid(rows, cols)
        self._shapes: List[PlacedShape] = []
        self._dragging_id: Optional[str] = None
        self._clock = clock or time.time

    @classmethod
    def from_config(
        cls, config: GridConfig, *, clock: Optional[Callable[[], float]] = None
    ) -> "PlacementSession":
        return cls(config.rows, config.cols, clock=clock)

    # Queries ----------------------------------------------------------
    @property
    def grid(self) -> OccupancyGrid:
        return self._grid

    @property
    def shapes(self) -> List[PlacedShape]:
        """Snapshots of the placed shapes in insertion order.

        The returned objects are copies; moving one does not touch the grid.
        Use the drag methods to move shapes.
        """

        return [shape.moved_to(shape.position) for shape in self._shapes]

    @property
    def dragging_id(self) -> Optional[str]:
        return self._dragging_id

    @property
    def overlap_count(self) -> int:
        return sum(1 for shape in self._shapes if shape.has_overlap)

    def get_shape(self, shape_id: str) -> Optional[PlacedShape]:
        """Return a snapshot of ``shape_id`` or ``None`` if it is not placed."""

        shape = self._find(shape_id)
        return None if shape is None else shape.moved_to(shape.position)

    def find_first_available_position(self, matrix: ShapeMatrix) -> Optional[Position]:
        """Return the first fully valid position for ``matrix`` in reading order."""

        for row in range(self._grid.rows):
            for col in range(self._grid.cols):
                if self._grid.validate_placement(matrix, (row, col)).valid:
                    return Position(row, col)
        return None

    # Internal helpers -------------------------------------------------
    def _find(self, shape_id: str) -> Optional[PlacedShape]:
        for shape in self._shapes:
            if shape.id == shape_id:
                return shape
        return None

    def _refresh_overlaps(self) -> None:
        for shape in self._shapes:
            shape.has_overlap = self._grid.check_shape_overlap(shape, self._shapes)

    def _commit(self, shape: PlacedShape, position: Position) -> bool:
        """Force ``shape`` onto the grid at ``position`` and record the move."""

        if not self._grid.place_shape(shape.moved_to(position), force=True):
            return False
        shape.position = Position(*position)
        self._refresh_overlaps()
        return True

    def _discard(self, shape_id: str) -> None:
        self._grid.remove_shape(shape_id)
        self._shapes = [shape for shape in self._shapes if shape.id != shape_id]
        self._refresh_overlaps()

    def new_instance_id(self, shape_id: str) -> str:
        """Return an unused instance id of the form ``<shape_id>-<millis>``."""

        base = f"{shape_id}-{int(self._clock() * 1000)}"
        instance_id = base
        suffix = 1
        while self._find(instance_id) is not None:
            instance_id = f"{base}-{suffix}"
            suffix += 1
        return instance_id

    # Mutations --------------------------------------------------------
    def add_shape(self, shape: PlacedShape) -> bool:
        """Place ``shape`` where it stands, without forcing.

        No alternative position is searched; on failure nothing changes and the
        caller may retry elsewhere.  Instance ids must be unique within the
        session; a shape whose id is already placed is rejected.  The session
        keeps its own copy of ``shape``.
        """

        if self._find(shape.id) is not None:
            LOGGER.warning("Rejected %s: instance id already placed", shape.id)
            return False
        if not self._grid.place_shape(shape):
            return False
        self._shapes.append(shape.moved_to(shape.position))
        self._refresh_overlaps()
        LOGGER.debug("Added %s at %s", shape.id, tuple(shape.position))
        return True

    def spawn_shape(self, shape_id: str) -> Optional[PlacedShape]:
        """Create an instance of catalog shape ``shape_id`` at the first free spot."""

        definition = get_shape_by_id(shape_id)
        if definition is None:
            LOGGER.warning("Unknown shape id %r", shape_id)
            return None

        instance_id = self.new_instance_id(definition.id)
        for row in range(self._grid.rows):
            for col in range(self._grid.cols):
                shape = PlacedShape.from_definition(definition, instance_id, (row, col))
                if self.add_shape(shape):
                    return self.get_shape(instance_id)

        LOGGER.warning("Grid full: no room for shape %s", definition.id)
        return None

    def remove_shape(self, shape_id: str) -> None:
        """Remove ``shape_id`` from the grid and the shape list.  Unknown ids are ignored."""

        if self._dragging_id == shape_id:
            self._dragging_id = None
        self._discard(shape_id)

    def drag_start(self, shape_id: str) -> bool:
        """Lift ``shape_id`` off the grid so it cannot collide with itself."""

        if self._find(shape_id) is None:
            return False
        if self._dragging_id is not None and self._dragging_id != shape_id:
            LOGGER.warning(
                "Drag of %s started while %s is still dragging", shape_id, self._dragging_id
            )
        self._dragging_id = shape_id
        self._grid.remove_shape(shape_id)
        return True

    def drag_move(self, shape_id: str, position: Tuple[int, int]) -> ValidationResult:
        """Validate ``shape_id`` at ``position`` without changing anything."""

        shape = self._find(shape_id)
        if shape is None:
            return ValidationResult(False, PlacementReason.COLLISION)
        return self._grid.validate_placement(shape.matrix, position, exclude_id=shape_id)

    def drag_end(self, shape_id: str, position: Tuple[int, int]) -> DragResult:
        """Drop ``shape_id`` at ``position``.

        In-bounds drops always commit, colliding or not.  Out-of-bounds drops
        move the shape to the first free position in reading order, or remove
        it when the grid has no room left.
        """

        self._dragging_id = None
        shape = self._find(shape_id)
        if shape is None:
            return DragResult(DragOutcome.IGNORED)

        previous = shape.position
        drop = Position(*position)
        validation = self._grid.validate_placement(shape.matrix, drop)

        if validation.reason is PlacementReason.OUT_OF_BOUNDS:
            available = self.find_first_available_position(shape.matrix)
            if available is None:
                self._discard(shape_id)
                LOGGER.error("Removed %s: grid full, no position available", shape_id)
                return DragResult(DragOutcome.REMOVED_GRID_FULL, shape.moved_to(previous))
            if self._commit(shape, available):
                LOGGER.warning(
                    "Dropped %s out of bounds at %s; moved to %s",
                    shape_id,
                    tuple(drop),
                    tuple(available),
                )
                return DragResult(DragOutcome.REPOSITIONED, shape.moved_to(available), available)
        elif self._commit(shape, drop):
            return DragResult(DragOutcome.COMMITTED, shape.moved_to(drop), drop)

        self._grid.place_shape(shape.moved_to(previous), force=True)
        LOGGER.warning("Could not place %s; restored at %s", shape_id, tuple(previous))
        return DragResult(DragOutcome.RESTORED, shape.moved_to(previous), previous)

    def reset(self) -> None:
        self._grid.reset()
        self._shapes = []
        self._dragging_id = None

    # Snapshots --------------------------------------------------------
    def export_state(self) -> Dict[str, str]:
        """Return the grid and the shape list as JSON strings."""

        return {
            "grid": self._grid.serialize(),
            "shapes": json.dumps([shape.to_dict() for shape in self._shapes]),
        }

    def import_state(self, grid_data: str, shapes_data: str) -> bool:
        """Restore a snapshot from :meth:`export_state`.

        Both payloads are checked before anything changes; on malformed input
        the current state is kept and ``False`` is returned.  Besides being
        well formed, every shape must lie on the grid and every occupied cell
        must belong to a listed shape that covers it.
        """

        cells = self._grid.parse_cells(grid_data)
        if cells is None:
            LOGGER.warning(
                "Import rejected: grid data does not match a %dx%d grid",
                self._grid.rows,
                self._grid.cols,
            )
            return False
        try:
            raw_shapes = json.loads(shapes_data)
            if not isinstance(raw_shapes, list):
                raise ValueError("Shape data must be a list")
            shapes = [PlacedShape.from_dict(item) for item in raw_shapes]
        except (KeyError, TypeError, ValueError, RecursionError) as exc:
            LOGGER.warning("Import rejected: malformed shape data (%s)", exc)
            return False
        if len({shape.id for shape in shapes}) != len(shapes):
            LOGGER.warning("Import rejected: duplicate shape ids")
            return False

        footprints = {shape.id: set(shape.blocks()) for shape in shapes}
        for shape_id, blocks in footprints.items():
            if any(self._grid.is_out_of_bounds(row, col) for row, col in blocks):
                LOGGER.warning("Import rejected: shape %s lies outside the grid", shape_id)
                return False
        for row, line in enumerate(cells.tolist()):
            for col, owner in enumerate(line):
                if owner is not None and (row, col) not in footprints.get(owner, ()):
                    LOGGER.warning(
                        "Import rejected: cell (%d, %d) does not match shape %s", row, col, owner
                    )
                    return False

        self._grid.deserialize(grid_data)
        self._shapes = shapes
        self._dragging_id = None
        self._refresh_overlaps()
        return True
