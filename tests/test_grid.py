from __future__ import annotations

import pytest

from grideditor.grid import OccupancyGrid, PlacementOutcome, PlacementReason
from grideditor.shapes import PlacedShape, Position


I_MATRIX = ((1, 1, 1, 1),)
O_MATRIX = ((1, 1), (1, 1))
Q_MATRIX = ((0, 1, 0), (1, 1, 1), (1, 1, 1))


def _shape(instance_id: str, matrix, position) -> PlacedShape:
    return PlacedShape(instance_id, instance_id[:1], position, matrix, "#000000")


def test_valid_placement_stamps_exact_cells() -> None:
    grid = OccupancyGrid(8, 5)
    shape = _shape("Q-1", Q_MATRIX, (2, 1))

    result = grid.validate_placement(shape.matrix, shape.position)
    assert result.valid is True
    assert result.reason is PlacementReason.VALID
    assert result.conflicting_cells == ()

    assert grid.place_shape(shape) is True
    assert set(grid.get_shape_cells("Q-1")) == set(shape.blocks())
    # The zero cell in the matrix stays empty.
    assert grid.get_cell(2, 1) is None
    assert grid.get_cell(2, 2) == "Q-1"


def test_place_then_overlap_scenario() -> None:
    grid = OccupancyGrid(8, 5)
    bar = _shape("I-1", I_MATRIX, (0, 0))
    square = _shape("O-1", O_MATRIX, (0, 2))

    assert grid.place_shape(bar) is True
    assert grid.place_shape(square, force=True) is True

    shapes = [bar, square]
    assert grid.check_shape_overlap(bar, shapes) is True
    assert grid.check_shape_overlap(square, shapes) is True
    # Last writer owns the shared cells.
    assert grid.get_cell(0, 2) == "O-1"
    assert grid.get_cell(0, 3) == "O-1"
    assert grid.get_cell(0, 1) == "I-1"


def test_out_of_bounds_scenario() -> None:
    grid = OccupancyGrid(8, 5)
    bar = _shape("I-1", I_MATRIX, (0, 3))

    result = grid.validate_placement(bar.matrix, bar.position)
    assert result.valid is False
    assert result.reason is PlacementReason.OUT_OF_BOUNDS
    assert Position(0, 6) in result.conflicting_cells
    assert Position(0, 5) in result.conflicting_cells

    before = grid.serialize()
    assert grid.place_shape(bar, force=True) is False
    assert grid.serialize() == before


def test_out_of_bounds_takes_precedence_over_collision() -> None:
    grid = OccupancyGrid(8, 5)
    assert grid.place_shape(_shape("G-1", ((1,),), (0, 3)))

    result = grid.validate_placement(I_MATRIX, (0, 2))
    assert result.reason is PlacementReason.OUT_OF_BOUNDS
    # The colliding cell is reported together with the off-grid ones.
    assert set(result.conflicting_cells) == {Position(0, 3), Position(0, 5)}


def test_collision_rejected_unless_forced() -> None:
    grid = OccupancyGrid(8, 5)
    assert grid.place_shape(_shape("O-1", O_MATRIX, (0, 0)))
    intruder = _shape("O-2", O_MATRIX, (1, 1))

    result = grid.validate_placement(intruder.matrix, intruder.position)
    assert result.reason is PlacementReason.COLLISION
    assert result.conflicting_cells == (Position(1, 1),)

    assert grid.commit(intruder) is PlacementOutcome.REJECTED_COLLISION
    assert grid.get_shape_cells("O-2") == []
    assert grid.commit(intruder, force=True) is PlacementOutcome.FORCED_OVER_COLLISION
    assert grid.get_cell(1, 1) == "O-2"


def test_out_of_bounds_outcome_is_distinct() -> None:
    grid = OccupancyGrid(8, 5)
    shape = _shape("O-1", O_MATRIX, (7, 0))
    outcome = grid.commit(shape, force=True)
    assert outcome is PlacementOutcome.REJECTED_OUT_OF_BOUNDS
    assert outcome.placed is False


def test_exclude_id_ignores_own_cells() -> None:
    grid = OccupancyGrid(8, 5)
    square = _shape("O-1", O_MATRIX, (0, 0))
    grid.place_shape(square)

    assert grid.validate_placement(O_MATRIX, (1, 1)).reason is PlacementReason.COLLISION
    assert grid.validate_placement(O_MATRIX, (1, 1), exclude_id="O-1").valid is True


def test_place_moves_existing_shape() -> None:
    grid = OccupancyGrid(8, 5)
    square = _shape("O-1", O_MATRIX, (0, 0))
    grid.place_shape(square)
    assert grid.place_shape(square.moved_to((5, 3))) is True
    assert grid.get_shape_cells("O-1") == [(5, 3), (5, 4), (6, 3), (6, 4)]


def test_remove_shape_is_idempotent() -> None:
    grid = OccupancyGrid(8, 5)
    grid.place_shape(_shape("O-1", O_MATRIX, (0, 0)))
    grid.place_shape(_shape("I-1", I_MATRIX, (4, 0)))

    grid.remove_shape("O-1")
    once = grid.cells()
    grid.remove_shape("O-1")
    assert grid.cells() == once
    assert grid.get_shape_cells("I-1") == [(4, 0), (4, 1), (4, 2), (4, 3)]

    grid.remove_shape("missing")
    assert grid.cells() == once


def test_overlap_is_symmetric_and_geometric() -> None:
    grid = OccupancyGrid(8, 5)
    a = _shape("L-1", ((1, 1, 1), (1, 0, 0)), (3, 0))
    b = _shape("F-1", ((1,), (1,)), (3, 2))
    c = _shape("G-1", ((1,),), (7, 4))
    shapes = [a, b, c]
    # Nothing is on the grid; overlap only depends on the shape list.
    assert grid.check_shape_overlap(a, shapes) is True
    assert grid.check_shape_overlap(b, shapes) is True
    assert grid.check_shape_overlap(c, shapes) is False
    assert grid.check_shape_overlap(a, [a]) is False


def test_reset_clears_everything() -> None:
    grid = OccupancyGrid(3, 3)
    grid.place_shape(_shape("O-1", O_MATRIX, (1, 1)))
    grid.reset()
    assert grid.cells() == [[None] * 3 for _ in range(3)]


def test_serialize_round_trip() -> None:
    grid = OccupancyGrid(8, 5)
    grid.place_shape(_shape("I-1", I_MATRIX, (0, 0)))
    grid.place_shape(_shape("O-1", O_MATRIX, (0, 2)), force=True)
    data = grid.serialize()

    restored = OccupancyGrid(8, 5)
    assert restored.deserialize(data) is True
    for row in range(8):
        for col in range(5):
            assert restored.get_cell(row, col) == grid.get_cell(row, col)


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        "{}",
        "[[null, null]]",
        '[["a"], ["b"]]',
        "[[1, null], [null, null]]",
        "[" * 100000,
    ],
)
def test_deserialize_rejects_malformed_data(payload: str) -> None:
    grid = OccupancyGrid(2, 2)
    grid.place_shape(_shape("G-1", ((1,),), (1, 1)))
    before = grid.cells()

    assert grid.deserialize(payload) is False
    assert grid.cells() == before


def test_coordinate_conversions() -> None:
    assert OccupancyGrid.snap_to_grid(149.9, 50.0, 50) == Position(1, 2)
    assert OccupancyGrid.snap_to_grid(-1, 10, 50) == Position(0, -1)
    assert OccupancyGrid.grid_to_pixel((3, 2), 50) == (100, 150)


def test_get_cell_outside_grid_is_none() -> None:
    grid = OccupancyGrid(2, 2)
    assert grid.get_cell(-1, 0) is None
    assert grid.get_cell(0, 2) is None
    assert grid.is_out_of_bounds(2, 0) is True


def test_non_positive_dimensions_rejected() -> None:
    with pytest.raises(ValueError):
        OccupancyGrid(0, 5)
