"""Shape definitions and placed shape instances.

A shape is described by a small rectangular matrix of ``0``/``1`` values where
``1`` marks an occupied cell relative to the shape's own top-left corner.  The
catalog below is static data consumed by the editor; instances placed on the
grid carry their own copy of the matrix so they never alias the catalog.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

ShapeMatrix = Tuple[Tuple[int, ...], ...]


class Position(NamedTuple):
    """Grid coordinate ``(row, col)``.  Nothing guarantees it is on the grid."""

    row: int
    col: int


class PixelPosition(NamedTuple):
    x: float
    y: float


def as_matrix(matrix: Sequence[Sequence[int]]) -> ShapeMatrix:
    """Return ``matrix`` as an immutable tuple-of-tuples.

    Raises:
        ValueError: If the matrix is empty, ragged or holds values other than
            ``0`` and ``1``.
    """

    rows = tuple(tuple(int(value) for value in row) for row in matrix)
    if not rows or not rows[0]:
        raise ValueError("Shape matrix must not be empty")
    width = len(rows[0])
    for row in rows:
        if len(row) != width:
            raise ValueError("Shape matrix must be rectangular")
        if any(value not in (0, 1) for value in row):
            raise ValueError("Shape matrix may only contain 0 and 1")
    return rows


def occupied_offsets(matrix: ShapeMatrix) -> List[Tuple[int, int]]:
    """Return the ``(row, col)`` offsets of the occupied cells in ``matrix``."""

    return [
        (r, c)
        for r, row in enumerate(matrix)
        for c, value in enumerate(row)
        if value
    ]


def rotate_matrix(matrix: Sequence[Sequence[int]]) -> ShapeMatrix:
    """Return ``matrix`` rotated 90 degrees clockwise.

    The rotated matrix has the original column count as its row count.  This is
    a pure helper; nothing in the editor rotates placed shapes.
    """

    source = as_matrix(matrix)
    height = len(source)
    width = len(source[0])
    return tuple(
        tuple(source[row][col] for row in range(height - 1, -1, -1))
        for col in range(width)
    )


@dataclass(frozen=True)
class ShapeDefinition:
    """Catalog entry describing one kind of shape."""

    id: str
    name: str
    matrix: ShapeMatrix
    color: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "matrix", as_matrix(self.matrix))


@dataclass
class PlacedShape:
    """A shape instance living on the grid.

    ``has_overlap`` is derived state: the session recomputes it after every
    mutation and callers should treat it as read-only.
    """

    id: str
    shape_id: str
    position: Position
    matrix: ShapeMatrix
    color: str
    has_overlap: bool = False

    def __post_init__(self) -> None:
        self.position = Position(*self.position)
        self.matrix = as_matrix(self.matrix)

    @classmethod
    def from_definition(
        cls, definition: ShapeDefinition, instance_id: str, position: Tuple[int, int]
    ) -> "PlacedShape":
        return cls(
            id=instance_id,
            shape_id=definition.id,
            position=Position(*position),
            matrix=definition.matrix,
            color=definition.color,
        )

    def moved_to(self, position: Tuple[int, int]) -> "PlacedShape":
        """Return a copy of this shape at ``position``."""

        return PlacedShape(
            id=self.id,
            shape_id=self.shape_id,
            position=Position(*position),
            matrix=self.matrix,
            color=self.color,
            has_overlap=self.has_overlap,
        )

    def blocks(self) -> List[Position]:
        """Return the absolute grid cells occupied by this shape."""

        row, col = self.position
        return [Position(row + dr, col + dc) for dr, dc in occupied_offsets(self.matrix)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "shape_id": self.shape_id,
            "position": {"row": self.position.row, "col": self.position.col},
            "matrix": [list(row) for row in self.matrix],
            "color": self.color,
            "has_overlap": self.has_overlap,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlacedShape":
        """Build a shape from :meth:`to_dict` output.

        Raises:
            KeyError, TypeError, ValueError: If ``data`` is malformed.
        """

        position = data["position"]
        instance_id = data["id"]
        shape_id = data["shape_id"]
        if not isinstance(instance_id, str) or not isinstance(shape_id, str):
            raise TypeError("Shape ids must be strings")
        return cls(
            id=instance_id,
            shape_id=shape_id,
            position=Position(int(position["row"]), int(position["col"])),
            matrix=data["matrix"],
            color=str(data["color"]),
            has_overlap=bool(data.get("has_overlap", False)),
        )


# Static catalog shipped with the editor, in palette order.
SHAPE_DEFINITIONS: Tuple[ShapeDefinition, ...] = (
    ShapeDefinition("I", "Gems", ((1, 1, 1, 1),), "#00f0f0"),
    ShapeDefinition("F", "Oscar", ((1,), (1,)), "#00ff00"),
    ShapeDefinition("Q", "Potion", ((0, 1, 0), (1, 1, 1), (1, 1, 1)), "#f5d2f2"),
    ShapeDefinition("G", "G-Shape", ((1,),), "#0000ff"),
    ShapeDefinition("L", "L-Shape", ((1, 1, 1), (1, 0, 0)), "#f0a000"),
    ShapeDefinition("O", "O-Shape", ((1, 1), (1, 1)), "#f0f000"),
    ShapeDefinition("Z", "Z-Shape", ((1, 1), (0, 1)), "#f00000"),
    ShapeDefinition("J", "J-Shape", ((1, 0, 0), (1, 1, 1)), "#0000f0"),
)

_CATALOG: Dict[str, ShapeDefinition] = {shape.id: shape for shape in SHAPE_DEFINITIONS}


def get_shape_by_id(shape_id: str) -> Optional[ShapeDefinition]:
    """Return the catalog entry for ``shape_id`` or ``None`` if unknown."""

    return _CATALOG.get(shape_id)
