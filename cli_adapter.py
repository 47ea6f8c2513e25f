"""
CLI front end for the isometric strategy core.
Stands in for the renderer and input handler: ASCII map, text commands,
real-time stepping and random autoplay.
"""

import argparse
import logging
import sys
import time
from collections import Counter
from typing import Any, Callable, Dict, List, Optional, Tuple

from game_config import GameConfig
from game_engine import BuildingType, InitializationError, StateManager, UnitType
from map_generator import MapGenerator, Terrain, TreeSpecies
from random_policy import RandomAgent

logger = logging.getLogger(__name__)

TERRAIN_SYMBOLS = {
    Terrain.GRASS.value: '.',
    Terrain.DESERT.value: ':',
    Terrain.WATER.value: '~',
}

TREE_SYMBOLS = {
    TreeSpecies.PINE: 't',
    TreeSpecies.PALM: 'p',
    TreeSpecies.WILLOW: 'w',
}

BUILDING_SYMBOLS = {
    BuildingType.HOUSE: 'H',
    BuildingType.BARRACK: 'B',
    BuildingType.TOWN_CENTER: 'C',
}

UNIT_SYMBOLS = {
    UnitType.VILLAGER: 'V',
    UnitType.SOLDIER: 'S',
}


def _format_cell(symbol: str) -> str:
    if len(symbol) == 0:
        return "  "
    if len(symbol) == 1:
        return f"{symbol} "
    return symbol[:2]


def compose_cell_symbols(state: Dict[str, Any]) -> List[List[str]]:
    """Per-tile symbols layered terrain < tree < construction/building < unit."""
    terrain = state['terrain']
    size = state['map_size']
    cells = [[TERRAIN_SYMBOLS.get(int(terrain[y, x]), '?') for x in range(size)] for y in range(size)]

    for tree in state['trees']:
        cells[tree.y][tree.x] = TREE_SYMBOLS.get(tree.species, 't')
    for construction in state['constructions']:
        # Lowercase letter plus a marker while the site is paused
        symbol = BUILDING_SYMBOLS.get(construction.building_type, '?').lower()
        cells[construction.y][construction.x] = symbol + ('_' if construction.is_paused else '+')
    for building in state['buildings']:
        cells[building.y][building.x] = BUILDING_SYMBOLS.get(building.building_type, '?')
    for unit in state['units']:
        x, y = unit.tile
        if 0 <= x < size and 0 <= y < size:
            cells[y][x] = UNIT_SYMBOLS.get(unit.unit_type, 'U') + ('*' if unit is state['selected_unit'] else '')

    return cells


def render_ascii_map(state: Dict[str, Any], with_panels: bool = True) -> str:
    """Bordered grid, two characters per tile, optionally followed by the legend and info panel."""
    size = state['map_size']
    horizontal_border = "+" + "+".join(["--" for _ in range(size)]) + "+"
    lines = [horizontal_border]
    for row in compose_cell_symbols(state):
        lines.append("|" + "|".join(_format_cell(symbol) for symbol in row) + "|")
    lines.append(horizontal_border)
    if with_panels:
        lines.append(render_legend())
        lines.append(render_info_panel(state))
    return "\n".join(lines)


def render_legend() -> str:
    return "\n".join([
        "Legend:",
        "  Terrain: .=grass, :=desert, ~=water",
        "  Trees: t=pine, p=palm, w=willow",
        "  Buildings: H=house, B=barrack, C=town center",
        "  Sites: lowercase building letter, '+' building, '_' paused",
        "  Units: V=villager, S=soldier, '*' = selected",
    ])


def render_info_panel(state: Dict[str, Any]) -> str:
    lines = ["--- Selection ---"]
    building = state['selected_building']
    unit = state['selected_unit']
    build_mode = state['selected_building_type']
    lines.append(f"Building: {building.building_type.value} at ({building.x}, {building.y})" if building else "Building: None")
    lines.append(f"Unit: {unit.unit_type.value} #{unit.unit_id} at ({unit.x:.2f}, {unit.y:.2f})" if unit else "Unit: None")
    lines.append(f"Build mode: {build_mode.value if build_mode else 'off'}")

    unit_counter = Counter(u.unit_type.value for u in state['units'])
    building_counter = Counter(b.building_type.value for b in state['buildings'])
    lines.append("\n--- Units ---")
    lines.append(", ".join(f"{count} {name}" for name, count in unit_counter.most_common()) or "None")
    lines.append("\n--- Buildings ---")
    lines.append(", ".join(f"{count} {name}" for name, count in building_counter.most_common()) or "None")

    lines.append("\n--- Constructions ---")
    if state['constructions']:
        for c in state['constructions']:
            status = "paused" if c.is_paused else "building"
            lines.append(f"{c.building_type.value} at ({c.x}, {c.y}): {c.progress:.0%} ({status})")
    else:
        lines.append("None")

    lines.append("\n--- Training ---")
    if state['training_queue']:
        for item in state['training_queue']:
            lines.append(f"{item.unit_type.value} at ({item.building_x}, {item.building_y}): {item.progress:.0%}")
    else:
        lines.append("None")

    return "\n".join(lines)


def parse_tile(text: str) -> Optional[Tuple[int, int]]:
    """Parse ``"x y"`` or ``"x,y"`` into a tile, None if malformed."""
    parts = text.replace(',', ' ').split()
    if len(parts) != 2:
        return None
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return None


class CLIAdapter:
    """Interactive text loop over one StateManager."""

    def __init__(self, state_manager: StateManager, agent: Optional[RandomAgent] = None,
                 input_fn: Optional[Callable[[str], str]] = None,
                 sleep_fn: Optional[Callable[[float], None]] = None):
        self.state_manager = state_manager
        self.agent = agent or RandomAgent()
        self.input_fn = input_fn or input
        self.sleep_fn = sleep_fn or time.sleep

    def show_menu(self):
        print("\n" + "=" * 50)
        print("ISOMETRIC STRATEGY CORE")
        print("=" * 50)
        print("1. Show map")
        print("2. Select unit")
        print("3. Select building")
        print("4. Toggle build mode")
        print("5. Place construction (build mode)")
        print("6. Move selected unit")
        print("7. Send selected villager to a construction")
        print("8. Train unit at selected building")
        print("9. Advance ticks")
        print("a. Autoplay ticks")
        print("c. Clear selections")
        print("l. Show legend")
        print("q. Quit")
        print("=" * 50)

    def show_map(self):
        print(render_ascii_map(self.state_manager.get_state()))

    def _ask_tile(self, prompt: str) -> Optional[Tuple[int, int]]:
        tile = parse_tile(self.input_fn(prompt))
        if tile is None:
            print("Please enter a tile as 'x y'.")
        return tile

    def _ask_int(self, prompt: str) -> Optional[int]:
        try:
            return int(self.input_fn(prompt).strip())
        except ValueError:
            print("Please enter a valid number.")
            return None

    def select_unit(self):
        for unit in self.state_manager.units:
            print(f"{unit.unit_id}: {unit.unit_type.value} at ({unit.x:.2f}, {unit.y:.2f})")
        unit_id = self._ask_int("Unit id: ")
        if unit_id is None:
            return
        unit = self.state_manager.get_unit_by_id(unit_id)
        if unit is None:
            print("No such unit.")
            return
        self.state_manager.set_selected_unit(unit)
        self._leave_build_mode()

    def select_building(self):
        tile = self._ask_tile("Building tile (x y): ")
        if tile is None:
            return
        building = self.state_manager.get_building_at(*tile)
        if building is None:
            print("No building on that tile.")
            return
        self.state_manager.set_selected_building(building)
        self._leave_build_mode()

    def _leave_build_mode(self):
        if self.state_manager.selected_building_type is not None:
            self.state_manager.set_selected_building_type(None)

    def toggle_build_mode(self):
        options = [BuildingType.HOUSE, BuildingType.BARRACK]
        for i, building_type in enumerate(options):
            print(f"{i}: {building_type.value}")
        choice = self._ask_int("Building type: ")
        if choice is None or not (0 <= choice < len(options)):
            print("Invalid selection.")
            return
        self.state_manager.set_selected_building_type(options[choice])

    def place_construction(self):
        building_type = self.state_manager.selected_building_type
        if building_type is None:
            print("Enter build mode first.")
            return
        tile = self._ask_tile("Construction tile (x y): ")
        if tile is None:
            return
        self.state_manager.set_hovered_tile(tile)
        construction = self.state_manager.place_construction(
            tile[0], tile[1], building_type, builder=self.state_manager.selected_unit)
        if construction is None:
            print("Cannot build here.")

    def move_unit(self):
        unit = self.state_manager.selected_unit
        if unit is None:
            print("Select a unit first.")
            return
        tile = self._ask_tile("Target tile (x y): ")
        if tile is None:
            return
        self.state_manager.command_unit_move(unit, *tile)

    def build_with_unit(self):
        unit = self.state_manager.selected_unit
        if unit is None or not unit.unit_type.can_build:
            print("Select a villager first.")
            return
        tile = self._ask_tile("Construction tile (x y): ")
        if tile is None:
            return
        if self.state_manager.get_construction_at(*tile) is None:
            print("No construction on that tile.")
            return
        self.state_manager.command_unit_build(unit, *tile)

    def train_unit(self):
        building = self.state_manager.selected_building
        if building is None:
            print("Select a building first.")
            return
        trainable = self.state_manager.config.trainable_units.get(building.building_type.value, ())
        if not trainable:
            print(f"A {building.building_type.value} cannot train units.")
            return
        for i, unit_type in enumerate(trainable):
            print(f"{i}: {unit_type}")
        choice = self._ask_int("Unit type: ")
        if choice is None or not (0 <= choice < len(trainable)):
            print("Invalid selection.")
            return
        self.state_manager.queue_unit_training(building, trainable[choice])

    def advance(self, ticks: int, autoplay: bool = False):
        """Step the simulation in real time, one tick per frame interval."""
        for _ in range(ticks):
            if autoplay:
                self.agent.act(self.state_manager)
            self.state_manager.update_game_state()
            self.sleep_fn(self.state_manager.config.frame_interval)

    def run(self):
        print("Welcome to the isometric strategy core!")

        while True:
            self.show_menu()
            choice = self.input_fn("Enter your choice: ").strip().lower()

            if choice == '1':
                self.show_map()
            elif choice == '2':
                self.select_unit()
            elif choice == '3':
                self.select_building()
            elif choice == '4':
                self.toggle_build_mode()
            elif choice == '5':
                self.place_construction()
            elif choice == '6':
                self.move_unit()
            elif choice == '7':
                self.build_with_unit()
            elif choice == '8':
                self.train_unit()
            elif choice in ('9', 'a'):
                ticks = self._ask_int("Ticks: ")
                if ticks is not None and ticks > 0:
                    self.advance(ticks, autoplay=(choice == 'a'))
                    self.show_map()
            elif choice == 'c':
                self.state_manager.clear_selections()
            elif choice == 'l':
                print(render_legend())
            elif choice == 'q':
                print("Goodbye!")
                break
            else:
                print("Invalid choice. Please try again.")


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {text!r}")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return value


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Isometric strategy core (text front end)")
    parser.add_argument("--map-size", type=_positive_int, default=GameConfig().map_size)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log-level", type=str.upper, default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    args = parser.parse_args(argv)

    logging.basicConfig(stream=sys.stdout, level=args.log_level)

    config = GameConfig(map_size=args.map_size)
    state_manager = StateManager(config=config, map_generator=MapGenerator(args.map_size, rng=args.seed))
    try:
        state_manager.initialize_state()
    except InitializationError as exc:
        print(f"Initialization failed: {exc}")
        return 1
    logger.info("Started %dx%d game (seed=%s)", args.map_size, args.map_size, args.seed)

    CLIAdapter(state_manager, agent=RandomAgent(rng=args.seed)).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
