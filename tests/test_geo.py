from __future__ import annotations

import pytest

from helpers import LISBON, SAO_PAULO
from spoof_guard.borders import BRAZIL
from spoof_guard.geo import BoundaryPolygon, haversine_m, point_in_polygon

SQUARE = ((0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0), (0.0, 0.0))


def test_haversine_one_degree_on_equator():
    assert haversine_m(0.0, 0.0, 0.0, 1.0) == pytest.approx(111_194.9, abs=1.0)
    assert haversine_m(*SAO_PAULO, *SAO_PAULO) == 0.0


def test_square_containment():
    assert point_in_polygon(5.0, 5.0, SQUARE) is True
    assert point_in_polygon(15.0, 5.0, SQUARE) is False
    assert point_in_polygon(5.0, -1.0, SQUARE) is False


def test_far_away_point_is_outside_brazil():
    assert BRAZIL.contains(90.0, 0.0) is False
    assert BRAZIL.contains(*LISBON) is False
    # Buenos Aires
    assert BRAZIL.contains(-34.6037, -58.3816) is False


def test_interior_points_are_inside_brazil():
    assert BRAZIL.contains(*BRAZIL.vertex_centroid()) is True
    # Brasilia
    assert BRAZIL.contains(-15.7939, -47.8828) is True
    assert BRAZIL.contains(*SAO_PAULO) is True


def test_from_vertices_closes_ring():
    poly = BoundaryPolygon.from_vertices([[0, 0], [0, 10], [10, 10], [10, 0]], name="square")
    assert poly.vertices[0] == poly.vertices[-1]
    assert len(poly.vertices) == 5
    assert poly.vertex_centroid() == (5.0, 5.0)
    assert poly.bounding_box() == (0.0, 0.0, 10.0, 10.0)
    assert poly.contains(5.0, 5.0)


def test_from_vertices_keeps_closed_ring():
    poly = BoundaryPolygon.from_vertices(SQUARE)
    assert poly.vertices == SQUARE


@pytest.mark.parametrize(
    "vertices",
    [
        [[0, 0], [1, 1]],
        [[0, 0], [0, 0], [1, 1], [0, 0]],
        [[0, 0], [1, 1], [2]],
        [[0, 0], [1, 1], [95, 0]],
    ],
)
def test_from_vertices_rejects_bad_rings(vertices):
    with pytest.raises(ValueError):
        BoundaryPolygon.from_vertices(vertices)
