"""Soak tests driving the engine with the random commander."""

from conftest import FakeClock, make_state_manager
from game_engine import BuildingType, UnitType
from map_generator import MapGenerator
from random_policy import RandomAgent


def check_invariants(sm):
    ids = [u.unit_id for u in sm.units]
    assert len(ids) == len(set(ids))

    building_tiles = [(b.x, b.y) for b in sm.buildings]
    construction_tiles = [(c.x, c.y) for c in sm.constructions]
    assert len(building_tiles) == len(set(building_tiles))
    assert len(construction_tiles) == len(set(construction_tiles))
    assert not set(building_tiles) & set(construction_tiles)

    for x, y in building_tiles + construction_tiles:
        assert 0 <= x < sm.map_size and 0 <= y < sm.map_size
    for construction in sm.constructions:
        assert 0.0 <= construction.progress <= 1.0
    for item in sm.training_queue:
        assert 0.0 <= item.progress <= 1.0


def test_agent_passes_when_nothing_rolls():
    sm = make_state_manager(8)
    agent = RandomAgent(rng=0, move_chance=0.0, build_chance=0.0, train_chance=0.0)
    assert agent.act(sm) is None


def test_agent_trains_at_idle_town_center():
    sm = make_state_manager(8)
    agent = RandomAgent(rng=0, move_chance=0.0, build_chance=0.0, train_chance=1.0)
    assert agent.act(sm) == 'train'
    assert sm.training_queue[0].unit_type == UnitType.VILLAGER
    # The only town center is busy now
    assert agent.act(sm) is None


def test_agent_moves_idle_unit():
    sm = make_state_manager(8)
    villager = sm.add_unit(1, 1, 'villager')
    agent = RandomAgent(rng=1, move_chance=1.0, build_chance=0.0, train_chance=0.0)
    assert agent.act(sm) == 'move'
    assert villager.has_target()


def test_soak_on_flat_map():
    clock = FakeClock()
    sm = make_state_manager(12, clock=clock)
    agent = RandomAgent(rng=5, move_chance=0.2, build_chance=0.2, train_chance=0.2)

    for _ in range(400):
        agent.act(sm)
        clock.advance(250)
        sm.update_game_state()
        check_invariants(sm)

    assert sm.units
    assert sum(b.building_type == BuildingType.TOWN_CENTER for b in sm.buildings) == 1


def test_soak_on_generated_map():
    clock = FakeClock()
    sm = make_state_manager(20, generator=MapGenerator(20, rng=9), clock=clock)
    agent = RandomAgent(rng=9, move_chance=0.1, build_chance=0.05, train_chance=0.1)

    for _ in range(300):
        agent.act(sm)
        clock.advance(100)
        sm.update_game_state()
        check_invariants(sm)

    water = {(x, y) for x in range(20) for y in range(20) if sm.terrain[y, x] == 2}
    assert not {(b.x, b.y) for b in sm.buildings} & water
