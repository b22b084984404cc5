"""Built-in territorial boundaries."""

from __future__ import annotations

from typing import Final

from spoof_guard.geo import BoundaryPolygon

# Simplified outline of Brazil, counter-clockwise from the northern tip.
# Coarse on purpose: the territory check runs rarely and only has to tell countries apart.
BRAZIL_VERTICES: Final[tuple[tuple[float, float], ...]] = (
    (5.27178, -60.21161),  # Monte Caburai
    (4.5, -51.0),  # Amapa coast
    (0.0, -47.0),  # Amazon mouth
    (-2.5, -40.0),  # Ceara
    (-5.0, -35.0),  # Ponta do Seixas
    (-10.0, -35.5),  # Alagoas / Sergipe
    (-18.0, -39.0),  # Bahia coast
    (-23.0, -41.0),  # Cabo Frio
    (-25.5, -48.0),  # Parana coast
    (-33.75, -53.0),  # Chui
    (-30.0, -57.5),  # Argentina / Uruguay
    (-25.5, -54.5),  # Foz do Iguacu
    (-22.5, -58.0),  # Paraguay
    (-19.0, -57.5),  # Pantanal
    (-16.0, -60.0),  # Bolivia
    (-12.0, -65.0),  # Rondonia
    (-10.0, -70.0),  # Acre
    (-7.5, -73.9),  # Serra da Contamana
    (-4.0, -70.0),  # Colombia
    (1.0, -67.0),  # Cabeca do Cachorro
    (5.27178, -60.21161),
)

BRAZIL: Final[BoundaryPolygon] = BoundaryPolygon.from_vertices(BRAZIL_VERTICES, name="brazil")
