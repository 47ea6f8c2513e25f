"""
Random commander for autoplay and soak runs of the isometric strategy core.
"""

import numpy as np
from typing import Any, List, Optional

from game_engine import BuildingType, StateManager, UnitType
from map_generator import _ensure_np_rng


class RandomAgent:
    """
    Issues at most one random command per call through the public command
    surface of a StateManager: train a villager, place a house next to a
    villager, or send an idle unit somewhere.
    """

    def __init__(self, rng: Optional[Any] = None, move_chance: float = 0.05,
                 build_chance: float = 0.01, train_chance: float = 0.02,
                 build_radius: int = 3):
        self.rng = _ensure_np_rng(rng)
        self.move_chance = move_chance
        self.build_chance = build_chance
        self.train_chance = train_chance
        self.build_radius = build_radius

    def act(self, state_manager: StateManager) -> Optional[str]:
        """Issue one command and return its name, or None when the agent passes."""
        roll = float(self.rng.random())

        if roll < self.train_chance:
            if self._train(state_manager):
                return 'train'
        elif roll < self.train_chance + self.build_chance:
            if self._build(state_manager):
                return 'build'
        elif roll < self.train_chance + self.build_chance + self.move_chance:
            if self._move(state_manager):
                return 'move'
        return None

    def _train(self, state_manager: StateManager) -> bool:
        busy = {(item.building_x, item.building_y) for item in state_manager.training_queue}
        town_centers = [
            b for b in state_manager.buildings
            if b.building_type == BuildingType.TOWN_CENTER and (b.x, b.y) not in busy
        ]
        if not town_centers:
            return False
        building = town_centers[int(self.rng.integers(0, len(town_centers)))]
        return state_manager.queue_unit_training(building, UnitType.VILLAGER) is not None

    def _build(self, state_manager: StateManager) -> bool:
        villagers = self._idle_units(state_manager, builders_only=True)
        if not villagers:
            return False
        villager = villagers[int(self.rng.integers(0, len(villagers)))]
        vx, vy = villager.tile

        offsets = np.arange(-self.build_radius, self.build_radius + 1)
        x = vx + int(self.rng.choice(offsets))
        y = vy + int(self.rng.choice(offsets))
        return state_manager.place_construction(x, y, BuildingType.HOUSE, builder=villager) is not None

    def _move(self, state_manager: StateManager) -> bool:
        units = self._idle_units(state_manager)
        if not units:
            return False
        unit = units[int(self.rng.integers(0, len(units)))]
        x = int(self.rng.integers(0, state_manager.map_size))
        y = int(self.rng.integers(0, state_manager.map_size))
        state_manager.command_unit_move(unit, x, y)
        return True

    @staticmethod
    def _idle_units(state_manager: StateManager, builders_only: bool = False) -> List[Any]:
        # Units still walking to or working on a site are left alone
        return [
            u for u in state_manager.units
            if u.is_idle() and not u.has_build_target()
            and (u.unit_type.can_build or not builders_only)
        ]
