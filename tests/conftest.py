import numpy as np
import pytest

from game_config import GameConfig
from game_engine import StateManager
from map_generator import Terrain


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


class StubMapGenerator:
    """Returns a fixed terrain grid and tree list."""

    def __init__(self, terrain, trees=None):
        self.terrain = np.asarray(terrain, dtype=int)
        self.trees = list(trees or [])

    def generate_map(self):
        return self.terrain.copy()

    def generate_trees(self, terrain):
        return list(self.trees)


def flat_generator(size: int, value: Terrain = Terrain.GRASS, trees=None) -> StubMapGenerator:
    return StubMapGenerator(np.full((size, size), value.value, dtype=int), trees)


def make_state_manager(size: int = 10, generator=None, clock=None) -> StateManager:
    generator = generator or flat_generator(size)
    sm = StateManager(config=GameConfig(map_size=size), map_generator=generator, clock=clock or FakeClock())
    sm.initialize_state()
    return sm


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def state_manager(clock):
    return make_state_manager(10, clock=clock)
