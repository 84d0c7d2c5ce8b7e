"""
Square grid geometry for the Nemeths map.

The map is a ``size x size`` square grid addressed by ``(x, y)`` with the
origin in the top-left corner.  Territory ids are derived from coordinates
(``id = x * size + y``), so neighbourhoods are computed arithmetically and
never stored.

Distances:
----------
- Chebyshev distance ``max(|dx|, |dy|)`` defines the concentric zone bands
  and the minimum spacing between starting positions.
- Manhattan distance ``|dx| + |dy|`` is the number of 4-directional steps
  between two tiles.

Neighbour order:
----------------
4-directional neighbours are always produced north, south, west, east.
Breadth-first searches over the grid depend on this order for
reproducibility.
"""

from __future__ import annotations

from collections.abc import Iterator

# (dx, dy) offsets: north, south, west, east
ORTHOGONAL_OFFSETS: tuple[tuple[int, int], ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))

DIAGONAL_OFFSETS: tuple[tuple[int, int], ...] = ((-1, -1), (1, -1), (-1, 1), (1, 1))


def chebyshev_distance(x1: int, y1: int, x2: int, y2: int) -> int:
    """
    Chebyshev (king-move) distance between two tiles.

    Example:
        >>> chebyshev_distance(0, 0, 3, -5)
        5
    """
    return max(abs(x1 - x2), abs(y1 - y2))


def manhattan_distance(x1: int, y1: int, x2: int, y2: int) -> int:
    """
    Manhattan (rook-step) distance between two tiles.

    Example:
        >>> manhattan_distance(0, 0, 3, -5)
        8
    """
    return abs(x1 - x2) + abs(y1 - y2)


def in_bounds(x: int, y: int, size: int) -> bool:
    """Return True when ``(x, y)`` lies on a ``size x size`` grid."""
    return 0 <= x < size and 0 <= y < size


def edge_distance(x: int, y: int, size: int) -> int:
    """
    Number of tiles between ``(x, y)`` and the nearest map edge.

    Example:
        >>> edge_distance(2, 50, 100)
        2
        >>> edge_distance(99, 50, 100)
        0
    """
    return min(x, y, size - 1 - x, size - 1 - y)


def is_near_edge(x: int, y: int, size: int, buffer: int) -> bool:
    """Return True when ``(x, y)`` is closer than ``buffer`` tiles to an edge."""
    return edge_distance(x, y, size) < buffer


def coord_to_id(x: int, y: int, size: int) -> int:
    """Dense territory id for a coordinate."""
    return x * size + y


def id_to_coord(territory_id: int, size: int) -> tuple[int, int]:
    """Inverse of :func:`coord_to_id`."""
    return divmod(territory_id, size)


def neighbors4(x: int, y: int, size: int) -> Iterator[tuple[int, int]]:
    """
    Yield in-bounds orthogonal neighbours in north, south, west, east order.

    Example:
        >>> list(neighbors4(0, 0, 10))
        [(0, 1), (1, 0)]
    """
    for dx, dy in ORTHOGONAL_OFFSETS:
        nx, ny = x + dx, y + dy
        if in_bounds(nx, ny, size):
            yield nx, ny


def neighbors8(x: int, y: int, size: int) -> Iterator[tuple[int, int]]:
    """Yield in-bounds orthogonal then diagonal neighbours."""
    for dx, dy in ORTHOGONAL_OFFSETS + DIAGONAL_OFFSETS:
        nx, ny = x + dx, y + dy
        if in_bounds(nx, ny, size):
            yield nx, ny
