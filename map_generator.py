"""
Procedural terrain and tree generation for the isometric map.
Produces a square terrain grid (grass, desert, water) and decorative trees.
"""

import numpy as np
import random
from enum import Enum
from typing import List, Optional, Any
from dataclasses import dataclass

DESERT_REGIONS_MIN = 2
DESERT_REGIONS_MAX = 4
DESERT_RADIUS_MIN = 3
DESERT_RADIUS_MAX = 6
DESERT_EDGE_WIDTH = 2
DESERT_EDGE_CHANCE = 0.6

WATER_SEED_CHANCE = 0.03
WATER_SPREAD_CHANCE = 0.5
WATER_SPREAD_DECAY = 0.1
WATER_MAX_DEPTH = 4

TREE_BUFFER_ZONE = 2
PINE_CHANCE = 0.06
PALM_CHANCE = 0.03
WILLOW_CHANCE = 0.08


def _ensure_np_rng(rng: Optional[Any] = None) -> np.random.Generator:
    """Coerce various RNG inputs into a numpy Generator instance."""
    if isinstance(rng, np.random.Generator):
        return rng
    if isinstance(rng, np.random.RandomState):
        seed = rng.randint(0, 2 ** 32 - 1)
        return np.random.default_rng(seed)
    if isinstance(rng, random.Random):
        seed = rng.randint(0, 2 ** 32 - 1)
        return np.random.default_rng(seed)
    if isinstance(rng, int):
        return np.random.default_rng(rng)
    if rng is None:
        return np.random.default_rng()
    raise TypeError(f"Unsupported RNG type: {type(rng)!r}")


class Terrain(Enum):
    GRASS = 0
    DESERT = 1
    WATER = 2


class TreeSpecies(Enum):
    PINE = 'pine'
    PALM = 'palm'
    WILLOW = 'willow'


@dataclass
class Tree:
    """Decorative tree; blocks its tile for building and movement."""
    x: int
    y: int
    species: TreeSpecies


def count_terrain_neighbors(terrain: np.ndarray, terrain_type: Terrain) -> np.ndarray:
    """Count cells of ``terrain_type`` in each 3x3 neighbourhood, centre included, clipped at the edges."""
    height, width = terrain.shape
    mask_int = (terrain == terrain_type.value).astype(int)
    counts = np.zeros((height, width), dtype=int)

    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            src_y_start = max(0, dy)
            src_y_end = min(height, height + dy)
            dst_y_start = max(0, -dy)
            dst_y_end = min(height, height - dy)

            src_x_start = max(0, dx)
            src_x_end = min(width, width + dx)
            dst_x_start = max(0, -dx)
            dst_x_end = min(width, width - dx)

            counts[dst_y_start:dst_y_end, dst_x_start:dst_x_end] += mask_int[src_y_start:src_y_end, src_x_start:src_x_end]

    return counts


class MapGenerator:
    """
    Terrain generator: desert regions, flood-filled water bodies, a smoothing
    pass and terrain-dependent tree placement.
    """

    def __init__(self, map_size: int, rng: Optional[Any] = None):
        if map_size <= 0:
            raise ValueError(f"map_size must be positive, got {map_size}")
        self.map_size = map_size
        self.rng = _ensure_np_rng(rng)

    def generate_map(self) -> np.ndarray:
        """Return a ``map_size`` x ``map_size`` int grid indexed ``[y, x]`` holding Terrain values."""
        terrain = np.full((self.map_size, self.map_size), Terrain.GRASS.value, dtype=int)

        self._add_desert_regions(terrain)
        self._add_water_bodies(terrain)

        return self.smooth_terrain(terrain)

    def _add_desert_regions(self, terrain: np.ndarray) -> None:
        num_regions = int(self.rng.integers(DESERT_REGIONS_MIN, DESERT_REGIONS_MAX + 1))
        ys, xs = np.ogrid[:self.map_size, :self.map_size]

        for _ in range(num_regions):
            center_x = int(self.rng.integers(0, self.map_size))
            center_y = int(self.rng.integers(0, self.map_size))
            radius = int(self.rng.integers(DESERT_RADIUS_MIN, DESERT_RADIUS_MAX + 1))

            dist_from_center = np.sqrt((xs - center_x) ** 2 + (ys - center_y) ** 2)
            core = dist_from_center < radius
            edge = (dist_from_center >= radius) & (dist_from_center < radius + DESERT_EDGE_WIDTH)
            soft_edge = edge & (self.rng.random(terrain.shape) < DESERT_EDGE_CHANCE)

            terrain[core | soft_edge] = Terrain.DESERT.value

    def _add_water_bodies(self, terrain: np.ndarray) -> None:
        seeds = self.rng.random(terrain.shape) < WATER_SEED_CHANCE
        # argwhere yields (y, x) pairs in row-major order
        for y, x in np.argwhere(seeds):
            self.create_water_body(terrain, int(x), int(y))

    def create_water_body(self, terrain: np.ndarray, start_x: int, start_y: int) -> None:
        """Flood-fill water from a seed, spreading with probability decaying per hop."""
        stack = [(start_x, start_y, 0)]
        directions = [(-1, 0), (1, 0), (0, -1), (0, 1)]

        while stack:
            x, y, depth = stack.pop()
            if not (0 <= x < self.map_size and 0 <= y < self.map_size):
                continue
            if terrain[y, x] == Terrain.WATER.value:
                continue

            terrain[y, x] = Terrain.WATER.value

            if depth >= WATER_MAX_DEPTH:
                continue

            spread_chance = WATER_SPREAD_CHANCE - depth * WATER_SPREAD_DECAY
            children = []
            for dx, dy in directions:
                if self.rng.random() < spread_chance:
                    children.append((x + dx, y + dy, depth + 1))
            # Reversed so the first direction is expanded first
            stack.extend(reversed(children))

    def smooth_terrain(self, terrain: np.ndarray) -> np.ndarray:
        """Replace each land cell by the plurality type of its neighbourhood; water is kept as is."""
        counts = np.stack([count_terrain_neighbors(terrain, t) for t in Terrain])
        # argmax returns the first maximum, so ties go to the lowest terrain value
        plurality = np.argmax(counts, axis=0)
        return np.where(terrain == Terrain.WATER.value, Terrain.WATER.value, plurality).astype(int)

    def generate_trees(self, terrain: np.ndarray) -> List[Tree]:
        trees: List[Tree] = []
        low = TREE_BUFFER_ZONE
        high = self.map_size - TREE_BUFFER_ZONE

        for y in range(low, high):
            for x in range(low, high):
                cell = terrain[y, x]

                if cell == Terrain.GRASS.value and self.rng.random() < PINE_CHANCE:
                    trees.append(Tree(x, y, TreeSpecies.PINE))
                elif cell == Terrain.DESERT.value and self.rng.random() < PALM_CHANCE:
                    trees.append(Tree(x, y, TreeSpecies.PALM))
                elif cell == Terrain.GRASS.value:
                    if self._has_water_nearby(terrain, x, y) and self.rng.random() < WILLOW_CHANCE:
                        trees.append(Tree(x, y, TreeSpecies.WILLOW))

        return trees

    def _has_water_nearby(self, terrain: np.ndarray, x: int, y: int) -> bool:
        low = TREE_BUFFER_ZONE
        high = self.map_size - TREE_BUFFER_ZONE
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                nx, ny = x + dx, y + dy
                if low <= nx < high and low <= ny < high and terrain[ny, nx] == Terrain.WATER.value:
                    return True
        return False
