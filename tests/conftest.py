"""Shared fixtures for the simulation tests."""

import itertools

import numpy as np
import pytest

from agrosim.agents.household import Household
from agrosim.agents.individual import Individual
from agrosim.agents.vital_rates import VitalRates, default_vital_rates
from agrosim.core.config import ModelConfig


@pytest.fixture
def config():
    return ModelConfig()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def ids():
    return itertools.count(1000)


@pytest.fixture
def vital_rates():
    return default_vital_rates()


@pytest.fixture
def immortal_rates():
    """Everyone survives; every fertile occupant gives birth every year."""
    n = ModelConfig().max_age + 1
    return VitalRates.from_arrays(np.full(n, 2.0), np.zeros(n))


def make_household(ages, config, household_id=0, **kwargs):
    hh = Household(
        household_id=household_id,
        occupants=[Individual(individual_id=i, age=a) for i, a in enumerate(ages)],
        **kwargs,
    )
    hh.recompute_aggregates(config)
    return hh


@pytest.fixture
def household_factory(config):
    def factory(ages, **kwargs):
        return make_household(ages, config, **kwargs)
    return factory
