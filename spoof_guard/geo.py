"""Geospatial utilities (no external dependencies)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

EARTH_RADIUS_M = 6_371_000.0  # mean Earth radius in meters


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute Haversine distance in meters between two lat/lon points.

    Args:
        lat1: Latitude 1 in degrees.
        lon1: Longitude 1 in degrees.
        lat2: Latitude 2 in degrees.
        lon2: Longitude 2 in degrees.

    Returns:
        Distance in meters.
    """

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def point_in_polygon(lat: float, lon: float, vertices: Sequence[tuple[float, float]]) -> bool:
    """Ray-casting containment test.

    A ray is cast from the point along the latitude axis; every edge whose endpoints
    strictly straddle the point's longitude, and which the ray actually reaches,
    toggles the inside flag. Points exactly on a vertex or edge get whatever answer
    the arithmetic gives.

    Args:
        lat: Point latitude in degrees.
        lon: Point longitude in degrees.
        vertices: Polygon ring as (lat, lon) pairs.

    Returns:
        True if the point is inside.
    """

    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        lat_i, lon_i = vertices[i]
        lat_j, lon_j = vertices[j]
        if (lon_i > lon) != (lon_j > lon):
            cross_lat = (lat_j - lat_i) * (lon - lon_i) / (lon_j - lon_i) + lat_i
            if lat < cross_lat:
                inside = not inside
        j = i
    return inside


@dataclass(frozen=True, slots=True)
class BoundaryPolygon:
    """An immutable closed ring of (lat, lon) vertices used as a territorial geofence.

    Build it with ``from_vertices`` so the ring is validated and closed.
    """

    vertices: tuple[tuple[float, float], ...]
    name: str = ""

    @classmethod
    def from_vertices(cls, vertices: Iterable[Sequence[float]], name: str = "") -> BoundaryPolygon:
        """Validate a vertex list and close the ring if needed.

        Args:
            vertices: (lat, lon) pairs. The first vertex may or may not be repeated at the end.
            name: Optional label used in logs.

        Returns:
            BoundaryPolygon.

        Raises:
            ValueError: If a vertex is malformed or there are fewer than 3 distinct vertices.
        """

        ring: list[tuple[float, float]] = []
        for idx, v in enumerate(vertices):
            if len(v) != 2:
                raise ValueError(f"boundary vertex #{idx} must be a [lat, lon] pair, got {v!r}")
            lat, lon = float(v[0]), float(v[1])
            if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
                raise ValueError(f"boundary vertex #{idx} out of range: ({lat}, {lon})")
            ring.append((lat, lon))

        if len(set(ring)) < 3:
            raise ValueError("boundary polygon needs at least 3 distinct vertices")
        if ring[0] != ring[-1]:
            ring.append(ring[0])
        return cls(vertices=tuple(ring), name=name)

    def contains(self, lat: float, lon: float) -> bool:
        """Check whether a point lies inside the boundary."""

        return point_in_polygon(lat, lon, self.vertices)

    def vertex_centroid(self) -> tuple[float, float]:
        """Arithmetic mean of the distinct ring vertices (closing vertex excluded)."""

        pts = self.vertices[:-1]
        n = float(len(pts))
        return sum(p[0] for p in pts) / n, sum(p[1] for p in pts) / n

    def bounding_box(self) -> tuple[float, float, float, float]:
        """Return (min_lat, min_lon, max_lat, max_lon)."""

        lats = [p[0] for p in self.vertices]
        lons = [p[1] for p in self.vertices]
        return min(lats), min(lons), max(lats), max(lons)
