"""
Centralized pytest fixtures for the semi-markov-projection test suite.

Fixture Categories:
1. Bases - Market and technical intensity models
2. Policies - Example policy and a shortened variant for fast tests
3. Projections - Session-scoped pipeline results (expensive)
4. Constant-rate models - Closed-form checks
"""

from functools import partial

import pytest

from semi_markov_projection.engines.grid import DurationTimeGrid
from semi_markov_projection.loaders.bases import market_basis_intensities, technical_basis
from semi_markov_projection.loaders.portfolio import create_example_policy
from semi_markov_projection.models.intensities import TransitionIntensityModel
from semi_markov_projection.models.policy import Policy
from semi_markov_projection.models.states import Gender, State
from semi_markov_projection.projection.projection_input import (
    ProjectionInput,
    build_projection_input,
)

MONTHLY = 1.0 / 12.0
QUARTERLY = 0.25


def constant_rate(rate: float, age: float, duration: float) -> float:
    """Age and duration independent intensity."""
    return rate


def constant_model(
    transitions: dict[State, dict[State, float]],
) -> TransitionIntensityModel:
    """Model with the same constant intensities for both genders."""
    by_from = {
        from_state: {to_state: partial(constant_rate, rate) for to_state, rate in targets.items()}
        for from_state, targets in transitions.items()
    }
    return TransitionIntensityModel({gender: by_from for gender in Gender})


@pytest.fixture
def make_constant_model():
    """Factory for constant-rate models: {from: {to: rate}} -> model."""
    return constant_model


# =============================================================================
# BASES
# =============================================================================

@pytest.fixture(scope="session")
def market_model() -> TransitionIntensityModel:
    """Market basis intensities."""
    return market_basis_intensities()


@pytest.fixture(scope="session")
def technical() -> tuple[TransitionIntensityModel, float]:
    """Technical basis intensities and interest."""
    return technical_basis()


@pytest.fixture(scope="session")
def monthly_grid() -> DurationTimeGrid:
    """Monthly grid used by the example portfolio."""
    return DurationTimeGrid(MONTHLY)


@pytest.fixture(scope="session")
def quarterly_grid() -> DurationTimeGrid:
    """Quarterly grid; 0.25 is exact in binary."""
    return DurationTimeGrid(QUARTERLY)


# =============================================================================
# POLICIES
# =============================================================================

@pytest.fixture(scope="session")
def example_policy() -> Policy:
    """Age 30, male, expiry 90, active with 5 years of sojourn."""
    return create_example_policy()


@pytest.fixture(scope="session")
def short_policy() -> Policy:
    """Example policy with a 30-year horizon."""
    return create_example_policy(policy_id="short", expiry_age=30.0)


# =============================================================================
# PROJECTIONS
# =============================================================================

@pytest.fixture(scope="session")
def short_projection(
    market_model: TransitionIntensityModel,
    technical: tuple[TransitionIntensityModel, float],
    short_policy: Policy,
    monthly_grid: DurationTimeGrid,
) -> ProjectionInput:
    """Full pipeline on the shortened example policy."""
    technical_model, interest = technical
    return build_projection_input(
        market_model,
        technical_model,
        {short_policy.policy_id: short_policy},
        interest,
        monthly_grid,
    )


@pytest.fixture(scope="session")
def example_projection(
    market_model: TransitionIntensityModel,
    technical: tuple[TransitionIntensityModel, float],
    example_policy: Policy,
    monthly_grid: DurationTimeGrid,
) -> ProjectionInput:
    """Full pipeline on the example policy (slow)."""
    technical_model, interest = technical
    return build_projection_input(
        market_model,
        technical_model,
        {example_policy.policy_id: example_policy},
        interest,
        monthly_grid,
    )
