"""Grid dimensions and cell geometry used by the editor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


# Default editor board: 8 rows by 5 columns of 50px cells with a 5px gap.
DEFAULT_ROWS = 8
DEFAULT_COLS = 5
DEFAULT_CELL_SIZE = 50
DEFAULT_CELL_GAP = 5


@dataclass(frozen=True)
class GridConfig:
    """Fixed configuration for one editor grid."""

    rows: int = DEFAULT_ROWS
    cols: int = DEFAULT_COLS
    cell_size: int = DEFAULT_CELL_SIZE
    cell_gap: int = DEFAULT_CELL_GAP

    def __post_init__(self) -> None:
        if self.rows <= 0 or self.cols <= 0:
            raise ValueError("Grid dimensions must be positive")
        if self.cell_size <= 0:
            raise ValueError("Cell size must be positive")
        if self.cell_gap < 0:
            raise ValueError("Cell gap cannot be negative")

    @property
    def total_cell_size(self) -> int:
        """Distance in pixels between the origins of two neighbouring cells."""

        return self.cell_size + self.cell_gap

    def canvas_size(self) -> Tuple[int, int]:
        """Return ``(width, height)`` of the drawn grid in pixels.

        The trailing gap after the last row and column is not drawn.
        """

        step = self.total_cell_size
        return self.cols * step - self.cell_gap, self.rows * step - self.cell_gap
