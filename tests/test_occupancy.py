"""Tests for the tile occupancy predicates."""

from types import SimpleNamespace

import numpy as np

from map_generator import Terrain
from occupancy import in_bounds, is_buildable, is_occupied, is_walkable


def make_terrain():
    terrain = np.zeros((6, 6), dtype=int)
    terrain[0, 5] = Terrain.WATER.value
    terrain[1, 1] = Terrain.DESERT.value
    return terrain


def at(x, y):
    return SimpleNamespace(x=x, y=y)


def test_in_bounds():
    terrain = make_terrain()
    assert in_bounds(0, 0, terrain)
    assert in_bounds(5, 5, terrain)
    assert not in_bounds(-1, 0, terrain)
    assert not in_bounds(0, 6, terrain)


def test_empty_land_is_buildable_and_walkable():
    terrain = make_terrain()
    for x, y in [(0, 0), (1, 1), (3, 4)]:
        assert is_buildable(x, y, terrain, [], [], [], [])
        assert is_walkable(x, y, terrain, [], [], [], [])


def test_water_and_out_of_bounds_block_everything():
    terrain = make_terrain()
    for x, y in [(5, 0), (-1, 2), (2, 6)]:
        assert not is_buildable(x, y, terrain, [], [], [], [])
        assert not is_walkable(x, y, terrain, [], [], [], [])


def test_entities_block_their_tile():
    terrain = make_terrain()
    assert not is_buildable(2, 2, terrain, [at(2, 2)], [], [], [])
    assert not is_buildable(2, 2, terrain, [], [at(2, 2)], [], [])
    assert not is_buildable(2, 2, terrain, [], [], [at(2, 2)], [])
    assert not is_walkable(2, 2, terrain, [at(2, 2)], [], [], [])
    assert not is_walkable(2, 2, terrain, [], [at(2, 2)], [], [])
    assert not is_walkable(2, 2, terrain, [], [], [at(2, 2)], [])
    assert is_buildable(3, 2, terrain, [at(2, 2)], [at(2, 2)], [at(2, 2)], [])


def test_units_use_exact_coordinates_for_building_and_floored_for_walking():
    terrain = make_terrain()
    units = [at(2.5, 2.5)]
    assert is_buildable(2, 2, terrain, [], [], [], units)
    assert not is_walkable(2, 2, terrain, [], [], [], units)

    units = [at(2, 2)]
    assert not is_buildable(2, 2, terrain, [], [], [], units)
    assert not is_walkable(2, 2, terrain, [], [], [], units)


def test_is_occupied_ignores_terrain():
    assert not is_occupied(5, 0, [], [], [], [])
    assert is_occupied(1, 1, [at(1, 1)], [], [], [])
    assert is_occupied(1, 1, [], [], [], [at(1.9, 1.2)])
    assert not is_occupied(1, 1, [], [at(1, 2)], [at(2, 1)], [])
