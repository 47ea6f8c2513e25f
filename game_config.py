"""
Game configuration for the isometric strategy core.
Build/train timings, map size and movement tuning consumed by the engine.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

MAP_SIZE = 50

# Milliseconds
DEFAULT_BUILD_TIME = 30000
DEFAULT_TRAIN_TIME = 10000

BUILD_TIMES: Dict[str, int] = {
    'house': 30000,
    'barrack': 60000,
    'town_center': 120000,
}

TRAIN_TIMES: Dict[str, int] = {
    'villager': 1000,
    'soldier': 10000,
}

TRAINABLE_UNITS: Dict[str, Tuple[str, ...]] = {
    'town_center': ('villager',),
    'barrack': ('soldier',),
    'house': (),
}

UNIT_SPEED = 0.05  # tiles per tick
BUILDER_DISTANCE = 1.0
NEAREST_WALKABLE_RADIUS = 5
SPAWN_SEARCH_RADIUS = 3
FRAME_INTERVAL = 1.0 / 60.0  # seconds


def _tag(value) -> str:
    return getattr(value, 'value', value)


@dataclass
class GameConfig:
    """Tunable constants for one game session."""
    map_size: int = MAP_SIZE
    build_times: Dict[str, int] = field(default_factory=lambda: dict(BUILD_TIMES))
    train_times: Dict[str, int] = field(default_factory=lambda: dict(TRAIN_TIMES))
    trainable_units: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: dict(TRAINABLE_UNITS))
    unit_speed: float = UNIT_SPEED
    builder_distance: float = BUILDER_DISTANCE
    nearest_walkable_radius: int = NEAREST_WALKABLE_RADIUS
    spawn_search_radius: int = SPAWN_SEARCH_RADIUS
    frame_interval: float = FRAME_INTERVAL

    def __post_init__(self):
        if self.map_size <= 0:
            raise ValueError(f"map_size must be positive, got {self.map_size}")

    def build_time_for(self, building_type) -> int:
        return self.build_times.get(_tag(building_type), DEFAULT_BUILD_TIME)

    def train_time_for(self, unit_type) -> int:
        return self.train_times.get(_tag(unit_type), DEFAULT_TRAIN_TIME)

    def can_train(self, building_type, unit_type) -> bool:
        return _tag(unit_type) in self.trainable_units.get(_tag(building_type), ())
