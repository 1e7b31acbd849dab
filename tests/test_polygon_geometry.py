import pytest

from backend.utils.polygon_geometry import (
    close_polygon,
    coords_to_points,
    find_rois_at,
    is_drawable,
    is_point_in_polygon,
)

SQUARE = [0, 0, 10, 0, 10, 10, 0, 10]


def test_point_inside_square():
    assert is_point_in_polygon(5, 5, SQUARE)


def test_point_outside_square():
    assert not is_point_in_polygon(15, 15, SQUARE)
    assert not is_point_in_polygon(-1, 5, SQUARE)


def test_boundary_point_is_consistent():
    first = is_point_in_polygon(10, 5, SQUARE)
    assert all(is_point_in_polygon(10, 5, SQUARE) == first for _ in range(5))


def test_closed_and_open_polygons_agree():
    closed = close_polygon(SQUARE)
    for point in [(5, 5), (15, 15), (0.5, 9.5), (9.9, 0.1), (5, -3)]:
        assert is_point_in_polygon(*point, closed) == is_point_in_polygon(*point, SQUARE)


def test_horizontal_edges_do_not_divide_by_zero():
    # ray at the height of both horizontal edges
    assert is_point_in_polygon(5, 0, SQUARE) in (True, False)
    assert is_point_in_polygon(5, 10, SQUARE) in (True, False)


def test_concave_polygon():
    u_shape = [0, 0, 30, 0, 30, 30, 20, 30, 20, 10, 10, 10, 10, 30, 0, 30]
    assert is_point_in_polygon(5, 20, u_shape)
    assert not is_point_in_polygon(15, 20, u_shape)
    assert is_point_in_polygon(25, 20, u_shape)


@pytest.mark.parametrize("coords", [[], [1], [1, 2], [1, 2, 3]])
def test_degenerate_input_is_outside(coords):
    assert not is_point_in_polygon(1, 2, coords)


def test_find_rois_at_fans_out_in_collection_order():
    rois = {
        "B": [0, 0, 20, 0, 20, 20, 0, 20],
        "X": [100, 100, 110, 100, 110, 110],
        "A": SQUARE,
    }
    assert find_rois_at(5, 5, rois) == ["B", "A"]
    assert find_rois_at(50, 50, rois) == []


def test_helpers():
    assert coords_to_points([1, 2, 3, 4, 5]) == [(1, 2), (3, 4)]
    assert close_polygon([1, 2, 3, 4, 5, 6]) == [1, 2, 3, 4, 5, 6, 1, 2]
    assert close_polygon([]) == []
    assert is_drawable([0, 0, 1, 0, 1, 1])
    assert not is_drawable([0, 0, 1, 0])
