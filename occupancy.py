"""
Tile occupancy predicates shared by the engine and the pathfinder.
Evaluated fresh on every call against the current entity collections.
"""

import math
from typing import Iterable, Any

import numpy as np

from map_generator import Terrain


def in_bounds(x: int, y: int, terrain: np.ndarray) -> bool:
    height, width = terrain.shape
    return 0 <= x < width and 0 <= y < height


def _on_tile(entities: Iterable[Any], x: int, y: int) -> bool:
    return any(e.x == x and e.y == y for e in entities)


def _unit_on_tile(units: Iterable[Any], x: int, y: int) -> bool:
    return any(math.floor(u.x) == x and math.floor(u.y) == y for u in units)


def is_buildable(x: int, y: int, terrain: np.ndarray, trees: Iterable[Any], buildings: Iterable[Any],
                 constructions: Iterable[Any], units: Iterable[Any]) -> bool:
    """True when a new construction may be placed on (x, y).

    Units block only when standing exactly on the tile coordinates.
    """
    if not in_bounds(x, y, terrain):
        return False
    if terrain[y, x] == Terrain.WATER.value:
        return False
    if _on_tile(trees, x, y):
        return False
    if _on_tile(buildings, x, y):
        return False
    if _on_tile(constructions, x, y):
        return False
    # Exact match on continuous coordinates, not floored
    if _on_tile(units, x, y):
        return False
    return True


def is_walkable(x: int, y: int, terrain: np.ndarray, trees: Iterable[Any], buildings: Iterable[Any],
                constructions: Iterable[Any], units: Iterable[Any]) -> bool:
    """True when a unit may enter (x, y); units block the tile they are floored onto."""
    if not in_bounds(x, y, terrain):
        return False
    if terrain[y, x] == Terrain.WATER.value:
        return False
    if _on_tile(trees, x, y):
        return False
    if _on_tile(buildings, x, y):
        return False
    if _on_tile(constructions, x, y):
        return False
    if _unit_on_tile(units, x, y):
        return False
    return True


def is_occupied(x: int, y: int, trees: Iterable[Any], buildings: Iterable[Any],
                constructions: Iterable[Any], units: Iterable[Any]) -> bool:
    """True when any entity sits on (x, y); terrain is not considered."""
    return (_on_tile(buildings, x, y) or _on_tile(constructions, x, y)
            or _unit_on_tile(units, x, y) or _on_tile(trees, x, y))
