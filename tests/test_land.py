"""Tests for land requirement and the land-constraint policies."""

import numpy as np
import pytest

from agrosim.core.config import MAX_LAND_REQUIREMENT
from agrosim.core.errors import ConfigurationError
from agrosim.world.land import (
    LandConstraint,
    constrain_land,
    land_requirement,
    max_cultivable_land,
    potential_land,
)


class TestPotentialLand:
    def test_formula(self):
        # 300 days * 0.5 * 4 laborers * 2 (fallow) / 50 days per ha
        assert potential_land(4, 0.5, fallow=True) == pytest.approx(24.0)

    def test_fallow_doubles(self):
        assert potential_land(4, 0.5, fallow=True) == pytest.approx(2 * potential_land(4, 0.5, fallow=False))


class TestMaxCultivableLand:
    def test_unlimited_ignores_area(self):
        assert max_cultivable_land(4, 0.5, 1.0, mode="unlimited") == pytest.approx(24.0)

    def test_step_caps_at_area(self):
        assert max_cultivable_land(4, 0.5, 10.0, mode="step") == pytest.approx(10.0)
        assert max_cultivable_land(4, 0.5, 100.0, mode="step") == pytest.approx(24.0)

    def test_asymptote_zero_at_zero_potential(self):
        assert constrain_land(0.0, 50.0, LandConstraint.ASYMPTOTE) == 0.0

    def test_asymptote_strictly_increasing_and_bounded(self):
        area = 50.0
        potentials = np.linspace(0.0, 200.0, 401)
        values = [constrain_land(p, area, LandConstraint.ASYMPTOTE) for p in potentials]
        assert all(b > a for a, b in zip(values, values[1:]))
        assert all(v <= area for v in values)

    def test_asymptote_never_exceeds_potential(self):
        for p in (0.1, 1.0, 10.0, 100.0):
            assert constrain_land(p, 20.0, LandConstraint.ASYMPTOTE) <= p

    @pytest.mark.parametrize("mode", ["step", "asymptote"])
    def test_no_area_no_land(self, mode):
        assert max_cultivable_land(10, 1.0, 0.0, mode=mode) == 0.0

    def test_unknown_mode_rejected(self):
        with pytest.raises(ConfigurationError):
            max_cultivable_land(4, 0.5, 10.0, mode="bogus")

    def test_parse_accepts_enum(self):
        assert LandConstraint.parse(LandConstraint.STEP) is LandConstraint.STEP


class TestLandRequirement:
    def test_formula(self):
        # 250 kg * 6 people * 1.2 / 1000 kg/ha * 2 (fallow)
        req = land_requirement(6, 1000.0, fallow=True)
        assert req.hectares == pytest.approx(3.6)
        assert not req.capped

    def test_without_fallow(self):
        assert land_requirement(6, 1000.0, fallow=False).hectares == pytest.approx(1.8)

    def test_zero_yield_is_capped(self):
        req = land_requirement(6, 0.0)
        assert req.hectares == MAX_LAND_REQUIREMENT
        assert req.capped

    def test_nobody_needs_nothing(self):
        assert land_requirement(0, 0.0).hectares == 0.0
