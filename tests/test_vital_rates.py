"""Tests for vital-rate tables and food-sensitivity curves."""

import numpy as np
import pytest

from agrosim.agents.vital_rates import (
    VitalRates,
    default_vital_rates,
    fertility_reduction,
    survival_reduction,
)
from agrosim.core.config import FERTILE_AGE_RANGE, MAX_AGE, ModelConfig
from agrosim.core.errors import ConfigurationError

FERTILITY = ModelConfig().fertility_gamma
SURVIVAL = ModelConfig().survival_gamma


class TestTables:
    def test_default_tables_cover_every_age(self, vital_rates):
        assert vital_rates.max_age == MAX_AGE
        assert vital_rates.fertility.shape == vital_rates.mortality.shape

    def test_nobody_outlives_the_table(self, vital_rates):
        assert vital_rates.mortality[-1] == 1.0

    def test_mortality_within_unit_interval(self, vital_rates):
        assert np.all((vital_rates.mortality >= 0) & (vital_rates.mortality <= 1))

    def test_infants_die_more_than_young_adults(self, vital_rates):
        assert vital_rates.mortality[0] > vital_rates.mortality[25]

    def test_fertility_limited_to_fertile_ages(self, vital_rates):
        lo, hi = FERTILE_AGE_RANGE
        assert np.all(vital_rates.fertility[:lo] == 0)
        assert np.all(vital_rates.fertility[hi:] == 0)
        assert vital_rates.fertility[27] > 0

    def test_lookup_miss_is_certain_death(self, vital_rates):
        rates = vital_rates.mortality_rate([5, MAX_AGE + 1, MAX_AGE + 40])
        assert rates[0] < 1.0
        assert rates[1] == 1.0
        assert rates[2] == 1.0

    def test_lookup_miss_is_infertile(self, vital_rates):
        assert vital_rates.fertility_rate([MAX_AGE + 3])[0] == 0.0

    def test_tables_are_read_only(self, vital_rates):
        with pytest.raises(ValueError):
            vital_rates.mortality[3] = 0.5

    def test_from_arrays_validates(self):
        with pytest.raises(ConfigurationError):
            VitalRates.from_arrays([0.1, 0.2], [0.1])
        with pytest.raises(ConfigurationError):
            VitalRates.from_arrays([0.1], [1.5])
        with pytest.raises(ConfigurationError):
            VitalRates.from_arrays([], [])


class TestFoodSensitivity:
    @pytest.mark.parametrize("curve,params", [
        (fertility_reduction, FERTILITY),
        (survival_reduction, SURVIVAL),
    ])
    def test_fully_fed_keeps_baseline(self, curve, params):
        assert curve(1.0, *params) == 1.0

    @pytest.mark.parametrize("curve,params", [
        (fertility_reduction, FERTILITY),
        (survival_reduction, SURVIVAL),
    ])
    def test_no_food_means_zero(self, curve, params):
        assert curve(0.0, *params) == 0.0

    @pytest.mark.parametrize("curve,params", [
        (fertility_reduction, FERTILITY),
        (survival_reduction, SURVIVAL),
    ])
    def test_monotone_and_bounded(self, curve, params):
        values = curve(np.linspace(0, 1, 101), *params)
        assert np.all(np.diff(values) >= 0)
        assert np.all((values >= 0) & (values <= 1))

    def test_surplus_does_not_raise_rates(self):
        assert fertility_reduction(1.7, 4.0, 0.1) == 1.0

    def test_mild_shortage_costs_little_survival(self):
        assert survival_reduction(0.9, *SURVIVAL) > 0.95

    def test_halved_rations_cut_survival_hard(self):
        assert survival_reduction(0.5, *SURVIVAL) < 0.7
        assert survival_reduction(0.5, *SURVIVAL) < survival_reduction(0.8, *SURVIVAL)

    def test_scalar_in_scalar_out(self):
        assert isinstance(fertility_reduction(0.5, 4.0, 0.1), float)
