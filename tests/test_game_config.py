import pytest

from game_config import DEFAULT_BUILD_TIME, DEFAULT_TRAIN_TIME, GameConfig
from game_engine import BuildingType, UnitType


def test_defaults():
    config = GameConfig()
    assert config.map_size == 50
    assert config.build_time_for(BuildingType.HOUSE) == 30000
    assert config.build_time_for('town_center') == 120000
    assert config.train_time_for(UnitType.VILLAGER) == 1000
    assert config.unit_speed == 0.05


def test_unknown_types_fall_back():
    config = GameConfig()
    assert config.build_time_for('castle') == DEFAULT_BUILD_TIME
    assert config.train_time_for('knight') == DEFAULT_TRAIN_TIME


def test_trainable_units():
    config = GameConfig()
    assert config.can_train(BuildingType.TOWN_CENTER, UnitType.VILLAGER)
    assert config.can_train('barrack', 'soldier')
    assert not config.can_train('barrack', 'villager')
    assert not config.can_train('house', 'villager')


def test_tables_are_per_instance():
    first = GameConfig()
    first.build_times['house'] = 5
    assert GameConfig().build_times['house'] == 30000


def test_invalid_map_size():
    with pytest.raises(ValueError):
        GameConfig(map_size=0)
