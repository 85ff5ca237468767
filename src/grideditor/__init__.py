"""Placement engine for a drag-and-drop grid editor."""

from .config import GridConfig
from .grid import OccupancyGrid, PlacementOutcome, PlacementReason, ValidationResult
from .shapes import (
    SHAPE_DEFINITIONS,
    PixelPosition,
    PlacedShape,
    Position,
    ShapeDefinition,
    get_shape_by_id,
    rotate_matrix,
)
from .session import DragOutcome, DragResult, PlacementSession
from .utils import render_grid

__all__ = [
    "GridConfig",
    "OccupancyGrid",
    "PlacementOutcome",
    "PlacementReason",
    "ValidationResult",
    "SHAPE_DEFINITIONS",
    "PixelPosition",
    "PlacedShape",
    "Position",
    "ShapeDefinition",
    "get_shape_by_id",
    "rotate_matrix",
    "DragOutcome",
    "DragResult",
    "PlacementSession",
    "render_grid",
]
