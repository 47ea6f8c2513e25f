"""Tests for terrain and tree generation."""

import random

import numpy as np
import pytest

from map_generator import (
    TREE_BUFFER_ZONE,
    WATER_MAX_DEPTH,
    MapGenerator,
    Terrain,
    TreeSpecies,
    _ensure_np_rng,
    count_terrain_neighbors,
)


def test_generate_map_shape_and_values():
    terrain = MapGenerator(30, rng=1).generate_map()
    assert terrain.shape == (30, 30)
    assert set(np.unique(terrain)) <= {t.value for t in Terrain}


def test_same_seed_reproduces_map_and_trees():
    first = MapGenerator(25, rng=42)
    second = MapGenerator(25, rng=42)
    terrain_a = first.generate_map()
    terrain_b = second.generate_map()
    assert np.array_equal(terrain_a, terrain_b)
    assert first.generate_trees(terrain_a) == second.generate_trees(terrain_b)


def test_invalid_map_size():
    with pytest.raises(ValueError):
        MapGenerator(0)


def test_rng_coercion():
    generator = np.random.default_rng(3)
    assert _ensure_np_rng(generator) is generator
    assert isinstance(_ensure_np_rng(random.Random(3)), np.random.Generator)
    assert isinstance(_ensure_np_rng(np.random.RandomState(3)), np.random.Generator)
    assert isinstance(_ensure_np_rng(None), np.random.Generator)
    with pytest.raises(TypeError):
        _ensure_np_rng("seed")


def test_count_terrain_neighbors_clips_at_edges():
    terrain = np.zeros((3, 3), dtype=int)
    counts = count_terrain_neighbors(terrain, Terrain.GRASS)
    assert counts[0, 0] == 4
    assert counts[0, 1] == 6
    assert counts[1, 1] == 9


def test_smoothing_removes_isolated_desert_and_keeps_water():
    terrain = np.zeros((5, 5), dtype=int)
    terrain[2, 2] = Terrain.DESERT.value
    terrain[0, 0] = Terrain.WATER.value

    smoothed = MapGenerator(5, rng=0).smooth_terrain(terrain)

    assert smoothed[2, 2] == Terrain.GRASS.value
    assert smoothed[0, 0] == Terrain.WATER.value
    # Input is left untouched
    assert terrain[2, 2] == Terrain.DESERT.value


def test_smoothing_ties_go_to_lowest_terrain_value():
    terrain = np.zeros((2, 2), dtype=int)
    terrain[0, 1] = Terrain.DESERT.value
    terrain[1, 1] = Terrain.DESERT.value
    smoothed = MapGenerator(2, rng=0).smooth_terrain(terrain)
    # Every 2x2 window holds two grass and two desert cells
    assert (smoothed == Terrain.GRASS.value).all()


def test_water_body_stays_within_depth_cap():
    generator = MapGenerator(21, rng=7)
    terrain = np.zeros((21, 21), dtype=int)
    generator.create_water_body(terrain, 10, 10)

    assert terrain[10, 10] == Terrain.WATER.value
    for y, x in np.argwhere(terrain == Terrain.WATER.value):
        assert abs(x - 10) + abs(y - 10) <= WATER_MAX_DEPTH


def test_water_body_ignores_out_of_bounds_seed():
    terrain = np.zeros((5, 5), dtype=int)
    MapGenerator(5, rng=0).create_water_body(terrain, -1, 2)
    assert not (terrain == Terrain.WATER.value).any()


def test_trees_respect_buffer_and_terrain():
    generator = MapGenerator(40, rng=11)
    terrain = generator.generate_map()
    trees = generator.generate_trees(terrain)
    assert trees

    low, high = TREE_BUFFER_ZONE, 40 - TREE_BUFFER_ZONE
    for tree in trees:
        assert low <= tree.x < high and low <= tree.y < high
        cell = terrain[tree.y, tree.x]
        if tree.species == TreeSpecies.PALM:
            assert cell == Terrain.DESERT.value
        else:
            assert cell == Terrain.GRASS.value
        if tree.species == TreeSpecies.WILLOW:
            window = terrain[tree.y - 1:tree.y + 2, tree.x - 1:tree.x + 2]
            assert (window == Terrain.WATER.value).any()


def test_no_trees_on_water():
    terrain = np.full((10, 10), Terrain.WATER.value, dtype=int)
    assert MapGenerator(10, rng=0).generate_trees(terrain) == []
