"""Tests for configuration validation and the clock."""

import pytest

from agrosim.core.clock import SimClock
from agrosim.core.config import ModelConfig
from agrosim.core.errors import ConfigurationError


def test_defaults_are_valid():
    assert ModelConfig().validate() == ModelConfig()


@pytest.mark.parametrize("changes", [
    {"land_constraint_mode": "bogus"},
    {"psi": 0.95, "epsilon": 0.1},
    {"psi": 0.05, "epsilon": 0.1},
    {"epsilon": 0.0},
    {"memory_length": 0},
    {"wheat_req": 0.0},
    {"labor_per_hectare": -1.0},
    {"labor_elasticity": 0.6, "water_elasticity": 0.5},
    {"working_age": (65, 15)},
    {"fertile_age": (15, 200)},
    {"survival_gamma": (0.0, 0.1)},
])
def test_invalid_options_fail_fast(changes):
    with pytest.raises(ConfigurationError):
        ModelConfig(**changes).validate()


def test_replace_validates():
    config = ModelConfig().replace(land_constraint_mode="step")
    assert config.land_constraint_mode == "step"
    with pytest.raises(ConfigurationError):
        ModelConfig().replace(memory_length=-3)


def test_config_is_immutable():
    with pytest.raises(Exception):
        ModelConfig().fallow = False


def test_as_dict():
    assert ModelConfig().as_dict()["land_constraint_mode"] == "asymptote"


def test_clock_advances_by_years():
    clock = SimClock(start_year=1000)
    assert clock.step == 0
    clock.advance()
    clock.advance()
    assert clock.step == 2
    assert clock.year == 1002
