"""
Tests for portfolio-wide technical reserves - projection/portfolio_reserves.py.

[T1] V_O(t) = Σ_standard V_O[j](t) p_j(t) + Σ_free-policy V_O+[j'](t) ρp_j(t)
[T1] V_B(t) = Σ_{j not a surrender state} V_B[j'](t) p_j(t)
"""

import numpy as np
import pytest

from semi_markov_projection.engines.ragged import RaggedArray
from semi_markov_projection.engines.reserve import ReserveViews
from semi_markov_projection.models.states import State
from semi_markov_projection.projection.portfolio_reserves import (
    portfolio_wide_bonus_reserves,
    portfolio_wide_original_reserves,
)


def last_column_table(values: list[float]) -> RaggedArray:
    """Table whose largest-duration entries are ``values``."""
    table = RaggedArray([t + 1 for t in range(len(values))])
    for t, value in enumerate(values):
        table[t][-1] = value
    return table.freeze()


def flat(value: float, n: int = 3) -> np.ndarray:
    return np.full(n, value)


@pytest.fixture
def views() -> ReserveViews:
    zeros = flat(0.0)
    original = {State.ACTIVE: flat(10.0), State.DISABLED: flat(30.0),
                State.DEAD: zeros, State.SURRENDER: zeros}
    positive = {State.ACTIVE: flat(20.0), State.DISABLED: flat(40.0),
                State.DEAD: zeros, State.SURRENDER: zeros}
    bonus = {State.ACTIVE: flat(1.0), State.DISABLED: flat(2.0),
             State.DEAD: zeros, State.SURRENDER: zeros}
    return ReserveViews(original={"p": original}, original_positive={"p": positive},
                        bonus={"p": bonus})


@pytest.fixture
def probabilities() -> dict:
    return {
        "p": {
            State.ACTIVE: last_column_table([1.0, 0.5, 0.25]),
            State.DISABLED: last_column_table([0.0, 0.25, 0.25]),
            State.DEAD: last_column_table([0.0, 0.0, 0.25]),
            State.SURRENDER: last_column_table([0.0, 0.125, 0.125]),
            State.FREE_POLICY_ACTIVE: last_column_table([0.0, 0.125, 0.125]),
            State.FREE_POLICY_SURRENDER: last_column_table([0.0, 0.0, 0.0]),
        }
    }


class TestOriginalReserves:
    """Standard states weighted by p, free-policy states by ρp."""

    def test_weighted_sum(self, views, probabilities) -> None:
        rho = {"p": {State.FREE_POLICY_ACTIVE: last_column_table([0.0, 0.0625, 0.0625])}}
        result = portfolio_wide_original_reserves(views, probabilities, rho)
        np.testing.assert_allclose(
            result["p"],
            [10.0, 10.0 * 0.5 + 30.0 * 0.25 + 20.0 * 0.0625, 10.0 * 0.25 + 30.0 * 0.25 + 1.25],
        )

    def test_free_policy_states_use_rho_table(self, views, probabilities) -> None:
        """Without rho-modified tables, free-policy states contribute nothing."""
        result = portfolio_wide_original_reserves(views, probabilities, {"p": {}})
        np.testing.assert_allclose(result["p"], [10.0, 12.5, 10.0])


class TestBonusReserves:
    """All states except the surrender states, weighted by p."""

    def test_weighted_sum(self, views, probabilities) -> None:
        result = portfolio_wide_bonus_reserves(views, probabilities)
        # Free policy Active carries the Active bonus reserve
        np.testing.assert_allclose(
            result["p"], [1.0, 0.5 + 2.0 * 0.25 + 0.125, 0.25 + 0.5 + 0.125]
        )


class TestExamplePolicy:
    """Portfolio-wide reserves of the shortened example policy."""

    def test_starts_at_active_reserve(self, short_projection) -> None:
        combined = short_projection.reserve_views.original["short"][State.ACTIVE]
        reserves = short_projection.portfolio_wide_original_reserves["short"]
        assert reserves[0] == pytest.approx(combined[0], rel=1e-15)

    def test_terminal_reserve_is_zero(self, short_projection) -> None:
        assert short_projection.portfolio_wide_original_reserves["short"][-1] == 0.0
        assert short_projection.portfolio_wide_bonus_reserves["short"][-1] == 0.0
