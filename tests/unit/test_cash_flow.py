"""
Tests for CashFlowAggregator - engines/cash_flow.py.

[T1] One exit by surrender at constant rate σ, all mass at the largest
     duration, benefit rate b and reserve V paid on surrender:
     ΔCF[t] = (b + σV) · h · (1 - σh)^t
"""

import numpy as np
import pytest

from semi_markov_projection.engines.cash_flow import SURRENDER_STATES, CashFlowAggregator
from semi_markov_projection.engines.probability import ProbabilityEngine
from semi_markov_projection.engines.reserve import ReserveViews
from semi_markov_projection.models.policy import Policy
from semi_markov_projection.models.products import Product
from semi_markov_projection.models.states import (
    BONUS_POSITIVE,
    ORIGINAL_POSITIVE,
    Gender,
    State,
)

SIGMA = 0.1
MU = 0.05
BENEFIT = 100.0
RESERVE = 40.0
BONUS_RESERVE = 25.0
LUMP_SUM = 1000.0
N_POINTS = 9


def benefit(age: float, duration: float) -> float:
    return BENEFIT


def make_policy(payments: dict) -> Policy:
    return Policy(
        policy_id="p",
        age=0.0,
        gender=Gender.MALE,
        expiry_age=2.0,
        initial_state=State.ACTIVE,
        payments=payments,
        initial_duration=1.0,
    )


def flat_views(value: float = RESERVE) -> ReserveViews:
    reserves = {"p": {State.ACTIVE: np.full(N_POINTS, value)}}
    return ReserveViews(original=reserves, original_positive=reserves, bonus=reserves)


def project(model, policy, grid):
    policies = {"p": policy}
    probabilities = ProbabilityEngine(model, policies, grid).calculate()
    return CashFlowAggregator(model, policies, grid), probabilities


class TestSurrenderClosedForm:
    """Benefits plus reserve paid on surrender."""

    @pytest.fixture
    def surrender_model(self, make_constant_model):
        return make_constant_model({State.ACTIVE: {State.SURRENDER: SIGMA}})

    def test_increments(self, surrender_model, quarterly_grid) -> None:
        policy = make_policy(
            {ORIGINAL_POSITIVE: Product(market_continuous={State.ACTIVE: benefit})}
        )
        aggregator, probabilities = project(surrender_model, policy, quarterly_grid)
        increments = aggregator.standard_increments(
            policy, probabilities["p"], flat_views().original["p"]
        )

        h = quarterly_grid.step_size
        expected = [0.0] + [
            (BENEFIT + SIGMA * RESERVE) * h * (1 - SIGMA * h) ** t for t in range(1, N_POINTS)
        ]
        np.testing.assert_allclose(increments, expected, rtol=1e-12)

    def test_cumulative_flows(self, surrender_model, quarterly_grid) -> None:
        policy = make_policy(
            {ORIGINAL_POSITIVE: Product(market_continuous={State.ACTIVE: benefit})}
        )
        aggregator, probabilities = project(surrender_model, policy, quarterly_grid)
        cash_flows = aggregator.calculate_original(probabilities, {"p": {}}, flat_views())

        assert cash_flows["p"][0] == 0.0
        assert len(cash_flows["p"]) == N_POINTS
        assert np.all(np.diff(cash_flows["p"]) > 0.0)

    def test_surrender_reserve_is_averaged(self, surrender_model, quarterly_grid) -> None:
        """The payout uses the reserve at the step midpoint."""
        policy = make_policy({})
        aggregator, probabilities = project(surrender_model, policy, quarterly_grid)
        reserve = np.arange(N_POINTS, dtype=np.float64)
        increments = aggregator.state_increments(
            policy,
            State.ACTIVE,
            probabilities["p"][State.ACTIVE],
            {State.ACTIVE: reserve},
            (),
        )

        h = quarterly_grid.step_size
        assert increments[1] == pytest.approx(SIGMA * 0.5 * h * (1 - SIGMA * h), rel=1e-12)

    def test_bonus_pays_bonus_reserve_on_surrender(
        self, surrender_model, quarterly_grid
    ) -> None:
        """Bonus flows pay σ·V_B, not the original reserve, on surrender."""
        policy = make_policy(
            {BONUS_POSITIVE: Product(market_continuous={State.ACTIVE: benefit})}
        )
        aggregator, probabilities = project(surrender_model, policy, quarterly_grid)
        views = ReserveViews(
            original=flat_views().original,
            original_positive=flat_views().original_positive,
            bonus=flat_views(BONUS_RESERVE).bonus,
        )
        cash_flows = aggregator.calculate_bonus(probabilities, views)

        h = quarterly_grid.step_size
        expected = np.cumsum([0.0] + [
            (BENEFIT + SIGMA * BONUS_RESERVE) * h * (1 - SIGMA * h) ** t
            for t in range(1, N_POINTS)
        ])
        np.testing.assert_allclose(cash_flows["p"], expected, rtol=1e-12)

    def test_bonus_surrender_without_bonus_payments(self, surrender_model, quarterly_grid) -> None:
        """The surrender payout alone, with no bonus benefit rate."""
        policy = make_policy({})
        aggregator, probabilities = project(surrender_model, policy, quarterly_grid)
        increments = aggregator.bonus_increments(
            policy, probabilities["p"], flat_views(BONUS_RESERVE).bonus["p"]
        )

        h = quarterly_grid.step_size
        assert increments[0] == 0.0
        assert increments[2] == pytest.approx(
            SIGMA * BONUS_RESERVE * h * (1 - SIGMA * h) ** 2, rel=1e-12
        )


class TestPaymentsPerState:
    """Which payments each stream collects."""

    def test_market_jump_payment(self, make_constant_model, quarterly_grid) -> None:
        model = make_constant_model({State.ACTIVE: {State.DEAD: MU}})
        product = Product(market_jump={State.ACTIVE: {State.DEAD: lambda age, d: LUMP_SUM}})
        policy = make_policy({ORIGINAL_POSITIVE: product})
        aggregator, probabilities = project(model, policy, quarterly_grid)
        increments = aggregator.standard_increments(
            policy, probabilities["p"], flat_views().original["p"]
        )

        h = quarterly_grid.step_size
        assert increments[3] == pytest.approx(MU * LUMP_SUM * h * (1 - MU * h) ** 3, rel=1e-12)

    def test_bonus_skips_surrender_states(self, make_constant_model, quarterly_grid) -> None:
        model = make_constant_model({State.ACTIVE: {State.SURRENDER: SIGMA}})
        in_surrender = Product(market_continuous={State.SURRENDER: benefit})
        policy = make_policy({ORIGINAL_POSITIVE: in_surrender, BONUS_POSITIVE: in_surrender})
        aggregator, probabilities = project(model, policy, quarterly_grid)
        views = flat_views(0.0)

        original = aggregator.calculate_original(probabilities, {"p": {}}, views)
        bonus = aggregator.calculate_bonus(probabilities, views)

        assert original["p"][-1] > 0.0
        np.testing.assert_array_equal(bonus["p"], np.zeros(N_POINTS))

    def test_free_policy_states_use_active_payments(
        self, make_constant_model, quarterly_grid
    ) -> None:
        model = make_constant_model({
            State.ACTIVE: {State.FREE_POLICY_ACTIVE: SIGMA},
            State.FREE_POLICY_ACTIVE: {State.FREE_POLICY_DEAD: MU},
        })
        policy = make_policy(
            {ORIGINAL_POSITIVE: Product(market_continuous={State.ACTIVE: benefit})}
        )
        policies = {"p": policy}
        engine = ProbabilityEngine(model, policies, quarterly_grid)
        probabilities = engine.calculate()
        rho_probabilities = engine.calculate_rho(probabilities, {"p": np.ones(N_POINTS)})
        aggregator = CashFlowAggregator(model, policies, quarterly_grid)

        increments = aggregator.free_policy_increments(
            policy, rho_probabilities["p"], flat_views().original_positive["p"]
        )

        free_policy = rho_probabilities["p"][State.FREE_POLICY_ACTIVE].last_column()
        h = quarterly_grid.step_size
        np.testing.assert_allclose(increments[1:], BENEFIT * h * free_policy[1:], rtol=1e-12)
        assert increments[0] == 0.0

    def test_no_payments_give_zero_flows(self, make_constant_model, quarterly_grid) -> None:
        model = make_constant_model({State.ACTIVE: {State.DEAD: MU}})
        policy = make_policy({})
        aggregator, probabilities = project(model, policy, quarterly_grid)
        cash_flows = aggregator.calculate_original(probabilities, {"p": {}}, flat_views())
        np.testing.assert_array_equal(cash_flows["p"], np.zeros(N_POINTS))


def test_surrender_states() -> None:
    assert SURRENDER_STATES == (State.SURRENDER, State.FREE_POLICY_SURRENDER)


class TestExamplePolicy:
    """Cash flows of the shortened example policy."""

    def test_premiums_dominate_before_pension(self, short_projection) -> None:
        """Only premiums and disability benefits fall before age 60."""
        cash_flows = short_projection.market_original_cash_flows["short"]
        assert cash_flows[0] == 0.0
        assert cash_flows[-1] < 0.0

    def test_bonus_is_zero_before_pension(self, short_projection) -> None:
        np.testing.assert_array_equal(
            short_projection.market_bonus_cash_flows["short"], np.zeros(361)
        )
