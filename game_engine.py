"""
Isometric Strategy Game Engine
Authoritative game state: buildings, units, construction sites and the
training queue, advanced once per rendered frame.
"""

import itertools
import logging
import math
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
from dataclasses import dataclass

import numpy as np

from game_config import GameConfig
from map_generator import MapGenerator, Tree
from occupancy import is_buildable, is_occupied, is_walkable
from pathfinder import Pathfinder

logger = logging.getLogger(__name__)

# N, E, S, W, then NE, SE, SW, NW
ADJACENT_OFFSETS = [
    (0, -1), (1, 0), (0, 1), (-1, 0),
    (1, -1), (1, 1), (-1, 1), (-1, -1),
]


class BuildingType(Enum):
    HOUSE = 'house'
    BARRACK = 'barrack'
    TOWN_CENTER = 'town_center'


class UnitType(Enum):
    VILLAGER = 'villager'    # Gathers and constructs
    SOLDIER = 'soldier'      # Trained at the barrack

    @property
    def can_build(self) -> bool:
        return self is UnitType.VILLAGER


class InitializationError(RuntimeError):
    """No buildable tile exists for the mandatory starting town center."""


@dataclass
class Building:
    """A finished building occupying one tile."""
    x: int
    y: int
    building_type: BuildingType


@dataclass
class Construction:
    """A building site; progresses only while a builder stands close by."""
    x: int
    y: int
    building_type: BuildingType
    build_time: float
    start_time: float = 0.0
    last_update_time: float = 0.0
    total_elapsed_time: float = 0.0
    progress: float = 0.0
    builder_id: Optional[int] = None
    is_paused: bool = False

    def is_completed(self) -> bool:
        return self.total_elapsed_time >= self.build_time


@dataclass
class Unit:
    """A unit on continuous map coordinates."""
    unit_id: int
    unit_type: UnitType
    x: float
    y: float
    target_x: Optional[int] = None
    target_y: Optional[int] = None
    path: Optional[List[Tuple[int, int]]] = None
    current_waypoint: int = 0
    build_target_x: Optional[int] = None
    build_target_y: Optional[int] = None

    @property
    def tile(self) -> Tuple[int, int]:
        return math.floor(self.x), math.floor(self.y)

    def has_target(self) -> bool:
        return self.target_x is not None and self.target_y is not None

    def has_build_target(self) -> bool:
        return self.build_target_x is not None and self.build_target_y is not None

    def clear_build_target(self) -> None:
        self.build_target_x = None
        self.build_target_y = None

    def is_idle(self) -> bool:
        return not self.path and not self.has_target()


@dataclass
class TrainingItem:
    building_x: int
    building_y: int
    unit_type: UnitType
    start_time: float
    train_time: float
    progress: float = 0.0


def _monotonic_ms() -> float:
    return time.perf_counter() * 1000.0


class StateManager:
    """
    Core simulation state for the isometric strategy game.

    Owns every entity collection. Callers issue commands and then advance the
    simulation once per frame with ``update_game_state`` (or the three
    ``update_*`` steps in order).
    """

    def __init__(self, map_size: Optional[int] = None, map_generator: Optional[Any] = None,
                 config: Optional[GameConfig] = None, clock: Optional[Callable[[], float]] = None):
        self.config = config or GameConfig()
        self.map_size = map_size if map_size is not None else self.config.map_size
        if self.map_size <= 0:
            raise ValueError(f"map_size must be positive, got {self.map_size}")
        self.map_generator = map_generator or MapGenerator(self.map_size)
        self._clock = clock or _monotonic_ms
        self._unit_ids = itertools.count(1)

        # Game state
        self.terrain = np.zeros((self.map_size, self.map_size), dtype=int)
        self.trees: List[Tree] = []
        self.buildings: List[Building] = []
        self.units: List[Unit] = []
        self.constructions: List[Construction] = []
        self.training_queue: List[TrainingItem] = []

        # Selection state
        self.selected_building: Optional[Building] = None
        self.selected_unit: Optional[Unit] = None
        self.selected_building_type: Optional[BuildingType] = None
        self.hovered_tile: Optional[Tuple[int, int]] = None

        self.pathfinder = Pathfinder(self.map_size, self.is_tile_walkable,
                                     self.config.nearest_walkable_radius)

    def initialize_state(self) -> Building:
        """Generate terrain and trees, then place the starting town center.

        Raises InitializationError when no tile on the map is buildable.
        """
        self.terrain = np.asarray(self.map_generator.generate_map(), dtype=int)
        self.trees = list(self.map_generator.generate_trees(self.terrain))
        self.buildings = []
        self.units = []
        self.constructions = []
        self.training_queue = []
        self.clear_selections()
        return self._place_initial_town_center()

    def _place_initial_town_center(self) -> Building:
        search_radius = self.map_size // 4
        center_x = self.map_size // 2
        center_y = self.map_size // 2

        for r in range(search_radius + 1):
            for dx in range(-r, r + 1):
                for dy in range(-r, r + 1):
                    if abs(dx) != r and abs(dy) != r:
                        continue
                    x, y = center_x + dx, center_y + dy
                    if self.is_tile_buildable(x, y):
                        logger.info("Placed initial town center at (%d, %d)", x, y)
                        return self.add_building(x, y, BuildingType.TOWN_CENTER)

        logger.warning("No spot near the center for the town center, searching the whole map")
        for y in range(self.map_size):
            for x in range(self.map_size):
                if self.is_tile_buildable(x, y):
                    logger.info("Placed initial town center at (%d, %d) (fallback)", x, y)
                    return self.add_building(x, y, BuildingType.TOWN_CENTER)

        logger.error("Could not find any location for the initial town center")
        raise InitializationError(
            f"No buildable tile on the {self.map_size}x{self.map_size} map for the initial town center"
        )

    # --- Buildings and construction sites ---

    def add_building(self, x: int, y: int, building_type) -> Building:
        building = Building(x, y, BuildingType(building_type))
        self.buildings.append(building)
        logger.info("Added %s building at (%d, %d)", building.building_type.value, x, y)
        return building

    def add_construction(self, x: int, y: int, building_type, build_time: float) -> Construction:
        """Open a construction site. The tile is assumed to have been checked with ``is_tile_buildable``."""
        now = self._clock()
        construction = Construction(x, y, BuildingType(building_type), build_time,
                                    start_time=now, last_update_time=now)
        self.constructions.append(construction)
        logger.info("Added construction site for %s at (%d, %d)", construction.building_type.value, x, y)
        return construction

    def place_construction(self, x: int, y: int, building_type,
                           builder: Optional[Unit] = None) -> Optional[Construction]:
        """Place a site on a buildable tile and send a villager to stand next to it.

        Returns None, leaving the state untouched, when the tile cannot be
        built on or the villager has nowhere to stand.
        """
        building_type = BuildingType(building_type)
        if not self.is_tile_buildable(x, y):
            logger.info("Cannot build %s at (%d, %d)", building_type.value, x, y)
            return None

        stand_tile = None
        if builder is not None and builder.unit_type.can_build:
            stand_tile = self.find_adjacent_build_tile(x, y)
            if stand_tile is None:
                logger.info("No space for a builder next to (%d, %d)", x, y)
                return None

        construction = self.add_construction(x, y, building_type, self.config.build_time_for(building_type))

        if stand_tile is not None:
            self.command_unit_move(builder, *stand_tile)
            builder.build_target_x = x
            builder.build_target_y = y
        return construction

    def update_constructions(self) -> None:
        now = self._clock()
        completed: List[Construction] = []
        remaining: List[Construction] = []

        for construction in self.constructions:
            builder = self.find_builder_for_construction(construction)
            time_since_update = now - construction.last_update_time

            if builder is not None:
                construction.builder_id = builder.unit_id
                if construction.is_paused:
                    construction.is_paused = False
                    logger.info("Construction resumed at (%d, %d)", construction.x, construction.y)

                construction.total_elapsed_time += time_since_update
                if construction.is_completed():
                    construction.progress = 1.0
                    completed.append(construction)
                    continue
                construction.progress = construction.total_elapsed_time / construction.build_time
            elif not construction.is_paused:
                construction.is_paused = True
                logger.info("Construction paused at (%d, %d)", construction.x, construction.y)

            # Stamped even while paused so idle time is never credited later
            construction.last_update_time = now
            remaining.append(construction)

        self.constructions = remaining

        for construction in completed:
            for unit in self.units:
                if unit.build_target_x == construction.x and unit.build_target_y == construction.y:
                    unit.clear_build_target()
            self.add_building(construction.x, construction.y, construction.building_type)

    def find_builder_for_construction(self, construction: Construction) -> Optional[Unit]:
        """First builder-capable unit within ``builder_distance`` of the site."""
        for unit in self.units:
            if not unit.unit_type.can_build:
                continue
            distance = math.hypot(unit.x - construction.x, unit.y - construction.y)
            if distance <= self.config.builder_distance:
                return unit
        return None

    # --- Units ---

    def add_unit(self, x: float, y: float, unit_type) -> Unit:
        unit = Unit(next(self._unit_ids), UnitType(unit_type), x, y)
        self.units.append(unit)
        logger.info("Added %s unit %d at (%s, %s)", unit.unit_type.value, unit.unit_id, x, y)
        return unit

    def update_units(self, speed: float) -> None:
        for unit in self.units:
            if unit.path:
                waypoint_x, waypoint_y = unit.path[unit.current_waypoint]
                if self._step_towards(unit, waypoint_x, waypoint_y, speed):
                    unit.current_waypoint += 1
                    if unit.current_waypoint >= len(unit.path):
                        unit.path = None
                        unit.current_waypoint = 0
                        self._on_arrival(unit)
            elif unit.has_target():
                # Direct movement, used when no path could be found
                if self._step_towards(unit, unit.target_x, unit.target_y, speed):
                    self._on_arrival(unit)

    @staticmethod
    def _step_towards(unit: Unit, x: float, y: float, speed: float) -> bool:
        """Move ``unit`` by ``speed`` towards (x, y); snap and return True once within reach."""
        dx = x - unit.x
        dy = y - unit.y
        distance = math.hypot(dx, dy)

        if distance <= speed:
            unit.x = x
            unit.y = y
            return True

        unit.x += (dx / distance) * speed
        unit.y += (dy / distance) * speed
        return False

    def _on_arrival(self, unit: Unit) -> None:
        if unit.has_build_target():
            construction = self.get_construction_at(unit.build_target_x, unit.build_target_y)
            if construction is not None:
                # The build target is kept while the unit stays assigned
                construction.builder_id = unit.unit_id
                construction.is_paused = False
            else:
                unit.clear_build_target()

        unit.target_x = None
        unit.target_y = None
        logger.debug("Unit %d reached (%s, %s)", unit.unit_id, unit.x, unit.y)

    def command_unit_move(self, unit: Optional[Unit], target_x: int, target_y: int) -> None:
        if unit is None:
            return

        for construction in self.constructions:
            if construction.builder_id == unit.unit_id:
                construction.is_paused = True
                construction.builder_id = None
        unit.clear_build_target()

        start_x, start_y = unit.tile
        path = self.pathfinder.find_path(start_x, start_y, target_x, target_y)

        unit.target_x = target_x
        unit.target_y = target_y
        unit.current_waypoint = 0
        if path:
            unit.path = path
            logger.info("Unit %d moving to (%d, %d) along %d waypoints",
                        unit.unit_id, target_x, target_y, len(path))
        else:
            unit.path = None
            logger.warning("No path found to (%d, %d) for unit %d, using direct movement",
                           target_x, target_y, unit.unit_id)

    def command_unit_build(self, unit: Optional[Unit], construction_x: int, construction_y: int) -> None:
        if unit is None or not unit.unit_type.can_build:
            return

        if self.get_construction_at(construction_x, construction_y) is None:
            logger.info("No construction found at (%d, %d)", construction_x, construction_y)
            return

        self.command_unit_move(unit, construction_x, construction_y)
        unit.build_target_x = construction_x
        unit.build_target_y = construction_y
        logger.info("Unit %d commanded to build at (%d, %d)", unit.unit_id, construction_x, construction_y)

    # --- Training queue ---

    def add_training_item(self, building_x: int, building_y: int, unit_type, train_time: float) -> TrainingItem:
        item = TrainingItem(building_x, building_y, UnitType(unit_type), self._clock(), train_time)
        self.training_queue.append(item)
        logger.info("Added %s to training queue from (%d, %d)", item.unit_type.value, building_x, building_y)
        return item

    def queue_unit_training(self, building: Optional[Building], unit_type,
                            train_time: Optional[float] = None) -> Optional[TrainingItem]:
        """Queue a unit at a building that is able to train it; None otherwise."""
        if building is None:
            return None
        unit_type = UnitType(unit_type)
        if not self.config.can_train(building.building_type, unit_type):
            logger.info("%s cannot train %s", building.building_type.value, unit_type.value)
            return None
        if train_time is None:
            train_time = self.config.train_time_for(unit_type)
        return self.add_training_item(building.x, building.y, unit_type, train_time)

    def update_training_queue(self) -> None:
        now = self._clock()
        trained: List[Tuple[int, int, UnitType]] = []
        remaining: List[TrainingItem] = []

        for item in self.training_queue:
            elapsed = now - item.start_time
            if elapsed >= item.train_time:
                spawn_point = self.find_spawn_point(item.building_x, item.building_y)
                if spawn_point is not None:
                    trained.append((spawn_point[0], spawn_point[1], item.unit_type))
                else:
                    logger.warning("Could not find spawn point for %s near (%d, %d)",
                                   item.unit_type.value, item.building_x, item.building_y)
            else:
                item.progress = elapsed / item.train_time
                remaining.append(item)

        self.training_queue = remaining

        for x, y, unit_type in trained:
            self.add_unit(x, y, unit_type)

    def find_spawn_point(self, building_x: int, building_y: int) -> Optional[Tuple[int, int]]:
        """First buildable tile on the rings of radius 1..spawn_search_radius around the building."""
        for radius in range(1, self.config.spawn_search_radius + 1):
            for dx in range(-radius, radius + 1):
                for dy in range(-radius, radius + 1):
                    if abs(dx) != radius and abs(dy) != radius:
                        continue
                    x, y = building_x + dx, building_y + dy
                    if self.is_tile_buildable(x, y):
                        return x, y
        return None

    def find_adjacent_build_tile(self, build_x: int, build_y: int) -> Optional[Tuple[int, int]]:
        for dx, dy in ADJACENT_OFFSETS:
            x, y = build_x + dx, build_y + dy
            if self.is_tile_buildable(x, y):
                return x, y
        return None

    # --- Per-frame step ---

    def update_game_state(self, speed: Optional[float] = None) -> None:
        """Advance the simulation by one frame."""
        self.update_constructions()
        self.update_training_queue()
        self.update_units(self.config.unit_speed if speed is None else speed)

    # --- Selection ---

    def set_selected_building(self, building: Optional[Building]) -> None:
        self.selected_building = building
        if building is not None:
            self.selected_unit = None

    def set_selected_unit(self, unit: Optional[Unit]) -> None:
        self.selected_unit = unit
        if unit is not None:
            self.selected_building = None
            # Build mode stays on for a villager only
            if not unit.unit_type.can_build:
                self.selected_building_type = None

    def set_selected_building_type(self, building_type) -> None:
        if building_type is not None:
            building_type = BuildingType(building_type)

        if building_type == self.selected_building_type:
            self.selected_building_type = None
        else:
            self.selected_building_type = building_type

        # Entering build mode keeps a selected villager only
        if self.selected_building_type is not None:
            self.selected_building = None
            if self.selected_unit is not None and not self.selected_unit.unit_type.can_build:
                self.selected_unit = None
        logger.info("Selected building type: %s",
                    self.selected_building_type.value if self.selected_building_type else None)

    def clear_selections(self) -> None:
        self.selected_building = None
        self.selected_unit = None
        self.selected_building_type = None

    def set_hovered_tile(self, tile: Optional[Tuple[int, int]]) -> None:
        self.hovered_tile = tile

    # --- Queries ---

    def is_tile_buildable(self, x: int, y: int) -> bool:
        return is_buildable(x, y, self.terrain, self.trees, self.buildings, self.constructions, self.units)

    def is_tile_walkable(self, x: int, y: int) -> bool:
        return is_walkable(x, y, self.terrain, self.trees, self.buildings, self.constructions, self.units)

    def is_tile_occupied(self, x: int, y: int) -> bool:
        return is_occupied(x, y, self.trees, self.buildings, self.constructions, self.units)

    def get_construction_at(self, x: int, y: int) -> Optional[Construction]:
        return next((c for c in self.constructions if c.x == x and c.y == y), None)

    def get_building_at(self, x: int, y: int) -> Optional[Building]:
        return next((b for b in self.buildings if b.x == x and b.y == y), None)

    def get_unit_at(self, x: int, y: int) -> Optional[Unit]:
        return next((u for u in self.units if u.tile == (x, y)), None)

    def get_unit_by_id(self, unit_id: int) -> Optional[Unit]:
        return next((u for u in self.units if u.unit_id == unit_id), None)

    def get_state(self) -> Dict[str, Any]:
        """Snapshot of the game state for rendering and input handling."""
        return {
            'map_size': self.map_size,
            'terrain': self.terrain.copy(),
            'trees': list(self.trees),
            'buildings': list(self.buildings),
            'units': list(self.units),
            'constructions': list(self.constructions),
            'training_queue': list(self.training_queue),
            'selected_building': self.selected_building,
            'selected_unit': self.selected_unit,
            'selected_building_type': self.selected_building_type,
            'hovered_tile': self.hovered_tile,
        }
