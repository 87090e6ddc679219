"""All tunable constants for the agropastoral household simulation.

Every magic number in the codebase must reference this file.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace

from agrosim.core.errors import ConfigurationError

# =============================================================================
# TIME
# =============================================================================
STEPS_PER_YEAR: int = 1
DEFAULT_YEARS: int = 500

# =============================================================================
# DEMOGRAPHY
# =============================================================================
MAX_AGE: int = 99
WORKING_AGE_RANGE: tuple[int, int] = (15, 65)   # [lo, hi)
FERTILE_AGE_RANGE: tuple[int, int] = (15, 50)   # [lo, hi)
SEED_AGE_RANGE: tuple[int, int] = (0, 60)       # random seed ages, [lo, hi)

# Siler hazard for the default mortality table (pre-industrial level)
SILER_A1: float = 0.175
SILER_B1: float = 1.40
SILER_A2: float = 0.00368
SILER_A3: float = 0.000075
SILER_B3: float = 0.0917

# Gaussian age-specific fertility schedule (births per woman per year)
FERTILITY_PEAK: float = 0.45
FERTILITY_PEAK_AGE: float = 27.0
FERTILITY_SPREAD: float = 7.0

# Gamma-CDF food-sensitivity curves (shape, scale)
FERTILITY_GAMMA_SHAPE: float = 4.0
FERTILITY_GAMMA_SCALE: float = 0.1
SURVIVAL_GAMMA_SHAPE: float = 6.0
SURVIVAL_GAMMA_SCALE: float = 0.08

# =============================================================================
# CLIMATE / YIELD
# =============================================================================
MAX_YIELD: float = 1000.0        # kg/ha at normalised precipitation 1.0
YIELD_LOG_SLOPE: float = 0.51    # a in max_yield * (a ln(p) + b)
YIELD_LOG_INTERCEPT: float = 1.0  # b
FERTILITY_LOG_SLOPE: float = 0.19  # c in y * (c ln(fertility/100) + 1)
DEFAULT_SOIL_FERTILITY: float = 100.0

# =============================================================================
# FOOD
# =============================================================================
WHEAT_REQ: float = 250.0          # kg per person per year
SOWING_RATE: float = 80.0         # kg seed per hectare
SEED_PROPORTION: float = 0.2
FALLOW_HARVEST_SHARE: float = 0.5  # only half the land produces under fallow
INITIAL_STORAGE: float = 0.0

# =============================================================================
# LABOUR / LAND
# =============================================================================
LABOR_PER_HECTARE: float = 50.0   # person-days per hectare per year
MAX_LABOR: float = 300.0          # person-days per laborer per year
HECTARES_PER_KM2: float = 100.0
MAX_LAND_REQUIREMENT: float = 1.0e9  # cap used when yield is zero
LAND_CONSTRAINT_MODES: tuple[str, ...] = ("unlimited", "step", "asymptote")

# =============================================================================
# INFRASTRUCTURE / UTILITY
# =============================================================================
PSI: float = 0.3        # maintenance labour at half capacity
EPSILON: float = 0.1    # half-width of the performance ramp
MAX_CAPACITY: float = 1.0
LABOR_ELASTICITY: float = 0.3   # j
WATER_ELASTICITY: float = 0.2   # k

# =============================================================================
# SETTLEMENT DEFAULTS
# =============================================================================
DEFAULT_PRECIPITATION: float = 1.0
DEFAULT_RUNOFF: float = 0.2
DEFAULT_CULTIVABLE_AREA: float = 1.0   # km^2
DEFAULT_ARABLE_PROPORTION: float = 1.0
DEFAULT_OCCUPANTS: int = 6
DEFAULT_OCCUPANT_AGE: int = 25

# =============================================================================
# LOGGING
# =============================================================================
DROUGHT_LOG_THRESHOLD: float = 0.75  # precipitation below this fraction of baseline is logged


@dataclass(frozen=True)
class ModelConfig:
    """Immutable model parameters shared by every household and replicate."""

    max_yield: float = MAX_YIELD
    yield_log_slope: float = YIELD_LOG_SLOPE
    yield_log_intercept: float = YIELD_LOG_INTERCEPT
    fertility_log_slope: float = FERTILITY_LOG_SLOPE
    wheat_req: float = WHEAT_REQ
    sowing_rate: float = SOWING_RATE
    seed_proportion: float = SEED_PROPORTION
    labor_per_hectare: float = LABOR_PER_HECTARE
    max_labor: float = MAX_LABOR
    psi: float = PSI
    epsilon: float = EPSILON
    max_capacity: float = MAX_CAPACITY
    labor_elasticity: float = LABOR_ELASTICITY
    water_elasticity: float = WATER_ELASTICITY
    memory_length: int = 1
    fallow: bool = True
    land_constraint_mode: str = "asymptote"
    food_sensitivity: bool = True
    max_age: int = MAX_AGE
    working_age: tuple[int, int] = WORKING_AGE_RANGE
    fertile_age: tuple[int, int] = FERTILE_AGE_RANGE
    fertility_gamma: tuple[float, float] = (FERTILITY_GAMMA_SHAPE, FERTILITY_GAMMA_SCALE)
    survival_gamma: tuple[float, float] = (SURVIVAL_GAMMA_SHAPE, SURVIVAL_GAMMA_SCALE)

    def validate(self) -> "ModelConfig":
        """Fail fast on options that can only be a caller mistake."""
        if self.land_constraint_mode not in LAND_CONSTRAINT_MODES:
            raise ConfigurationError(
                f"unknown land_constraint_mode {self.land_constraint_mode!r}; "
                f"expected one of {LAND_CONSTRAINT_MODES}"
            )
        if self.epsilon <= 0:
            raise ConfigurationError(f"epsilon must be positive, got {self.epsilon}")
        if self.psi - self.epsilon < 0 or self.psi + self.epsilon > 1:
            raise ConfigurationError(
                f"psi +/- epsilon must lie within [0, 1], got "
                f"[{self.psi - self.epsilon}, {self.psi + self.epsilon}]"
            )
        for name in ("max_yield", "wheat_req", "labor_per_hectare", "max_labor", "max_capacity"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("sowing_rate", "seed_proportion"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.labor_elasticity <= 0 or self.water_elasticity < 0:
            raise ConfigurationError("labour elasticity must be positive and water elasticity non-negative")
        if self.labor_elasticity + self.water_elasticity >= 1:
            raise ConfigurationError("labor_elasticity + water_elasticity must be below 1")
        if self.memory_length < 1:
            raise ConfigurationError(f"memory_length must be at least 1, got {self.memory_length}")
        if self.max_age < 1:
            raise ConfigurationError(f"max_age must be at least 1, got {self.max_age}")
        for name in ("working_age", "fertile_age"):
            lo, hi = getattr(self, name)
            if not 0 <= lo < hi <= self.max_age + 1:
                raise ConfigurationError(f"{name} range {lo, hi} is not within [0, {self.max_age + 1}]")
        for name in ("fertility_gamma", "survival_gamma"):
            shape, scale = getattr(self, name)
            if shape <= 0 or scale <= 0:
                raise ConfigurationError(f"{name} shape and scale must be positive")
        return self

    def replace(self, **changes) -> "ModelConfig":
        """Return a validated copy with some options changed."""
        return replace(self, **changes).validate()

    def as_dict(self) -> dict:
        return asdict(self)
