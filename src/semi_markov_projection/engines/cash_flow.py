"""
Expected market cash flows from occupation probabilities and reserves.

Theory
------
[T1] Expected payments in state j over (t - h, t]:

     Σ_u [ b_j(x + (t-½)h, (u-½)h)
           + Σ_k μ_jk(x + (t-½)h, (u-½)h) b_jk(x + (t-½)h, (u-½)h) ]
         · (p_j(t, u) - p_j(t, u-1)) · h

[T1] On surrender the policyholder receives the technical reserve of the
     pre-transition state, so b_{j,surrender} = V_j(t - ½h).

Standard states use the combined original reserve and the standard
probability table. Free-policy states use the benefit-only reserve, the
benefit payments of the mirrored standard state and the rho-modified
table. Bonus flows use the bonus reserve and the standard table over
every state except the surrender states. Results are running totals.
"""

from collections.abc import Mapping, Sequence
from functools import partial

import numpy as np

from ..config.settings import ExecutionConfig
from ..models.intensities import TransitionIntensityModel
from ..models.policy import Policy
from ..models.products import Product
from ..models.states import (
    BONUS_POSITIVE,
    ORIGINAL_NEGATIVE,
    ORIGINAL_POSITIVE,
    State,
    StateCollection,
    states_in,
    to_reserve_state,
)
from .batch import map_policies
from .grid import DurationTimeGrid
from .probability import PolicyProbabilities, ProbabilityTable
from .ragged import RaggedArray
from .reserve import ReserveViews, StateReserves

SURRENDER_STATES: tuple[State, ...] = (State.SURRENDER, State.FREE_POLICY_SURRENDER)


class CashFlowAggregator:
    """
    Cumulative expected market cash flows per policy.

    Parameters
    ----------
    intensities : TransitionIntensityModel
        Market basis intensities, also used for surrender payouts
    policies : Mapping[str, Policy]
        Portfolio keyed by policy id
    grid : DurationTimeGrid, optional
        Time/duration grid. Must match the probability tables.
    execution : ExecutionConfig, optional
        Per-policy parallelism settings
    """

    def __init__(
        self,
        intensities: TransitionIntensityModel,
        policies: Mapping[str, Policy],
        grid: DurationTimeGrid | None = None,
        execution: ExecutionConfig | None = None,
    ):
        self.intensities = intensities
        self.policies = policies
        self.grid = grid or DurationTimeGrid()
        self.execution = execution

    def calculate_original(
        self,
        probabilities: ProbabilityTable,
        rho_probabilities: ProbabilityTable,
        reserves: ReserveViews,
    ) -> dict[str, np.ndarray]:
        """
        Cumulative original cash flows: standard states plus free-policy states.

        Parameters
        ----------
        probabilities : ProbabilityTable
            Standard occupation probabilities
        rho_probabilities : ProbabilityTable
            Rho-modified free-policy probabilities
        reserves : ReserveViews
            Reserve views from the technical reserve engine

        Returns
        -------
        dict[str, ndarray]
            Running total of expected original payments per policy
        """
        return map_policies(
            partial(self._original_entry, probabilities, rho_probabilities, reserves),
            self.policies.values(),
            self.execution,
            label="original cash flows",
        )

    def calculate_bonus(
        self,
        probabilities: ProbabilityTable,
        reserves: ReserveViews,
    ) -> dict[str, np.ndarray]:
        """Cumulative bonus cash flows per policy."""
        return map_policies(
            partial(self._bonus_entry, probabilities, reserves),
            self.policies.values(),
            self.execution,
            label="bonus cash flows",
        )

    def _original_entry(
        self,
        probabilities: ProbabilityTable,
        rho_probabilities: ProbabilityTable,
        reserves: ReserveViews,
        policy: Policy,
    ) -> np.ndarray:
        policy_id = policy.policy_id
        return np.cumsum(
            self.standard_increments(
                policy, probabilities[policy_id], reserves.original[policy_id]
            )
            + self.free_policy_increments(
                policy, rho_probabilities[policy_id], reserves.original_positive[policy_id]
            )
        )

    def _bonus_entry(
        self, probabilities: ProbabilityTable, reserves: ReserveViews, policy: Policy
    ) -> np.ndarray:
        return np.cumsum(
            self.bonus_increments(
                policy, probabilities[policy.policy_id], reserves.bonus[policy.policy_id]
            )
        )

    # -------------------------------------------------------------------------
    # Per-policy increments
    # -------------------------------------------------------------------------

    def standard_increments(
        self,
        policy: Policy,
        probabilities: PolicyProbabilities,
        reserves: StateReserves,
    ) -> np.ndarray:
        """Expected original payments per time step in the standard states."""
        products = (policy.product(ORIGINAL_POSITIVE), policy.product(ORIGINAL_NEGATIVE))
        states = [
            s for s in states_in(StateCollection.STANDARD_WITH_SURRENDER) if s in probabilities
        ]
        return self._sum_states(policy, states, probabilities, reserves, products)

    def free_policy_increments(
        self,
        policy: Policy,
        rho_probabilities: PolicyProbabilities,
        positive_reserves: StateReserves,
    ) -> np.ndarray:
        """Expected reduced benefits per time step in the free-policy states."""
        states = [
            s
            for s in states_in(StateCollection.FREE_POLICY_WITH_SURRENDER)
            if s in rho_probabilities
        ]
        products = (policy.product(ORIGINAL_POSITIVE),)
        return self._sum_states(policy, states, rho_probabilities, positive_reserves, products)

    def bonus_increments(
        self,
        policy: Policy,
        probabilities: PolicyProbabilities,
        bonus_reserves: StateReserves,
    ) -> np.ndarray:
        """Expected bonus payments per time step over all non-surrender states."""
        states = [
            s
            for s in states_in(StateCollection.ALL)
            if s in probabilities and s not in SURRENDER_STATES
        ]
        products = (policy.product(BONUS_POSITIVE),)
        return self._sum_states(policy, states, probabilities, bonus_reserves, products)

    def _sum_states(
        self,
        policy: Policy,
        states: Sequence[State],
        probabilities: Mapping[State, RaggedArray],
        reserves: StateReserves,
        products: Sequence[Product],
    ) -> np.ndarray:
        n_time_points = self.grid.number_of_time_points(policy)
        increments = np.zeros(n_time_points)
        for state in states:
            increments += self.state_increments(
                policy, state, probabilities[state], reserves, products
            )
        return increments

    def state_increments(
        self,
        policy: Policy,
        state: State,
        table: RaggedArray,
        reserves: StateReserves,
        products: Sequence[Product],
    ) -> np.ndarray:
        """
        Expected payments in ``state`` per time step, zero at index 0.

        Parameters
        ----------
        policy : Policy
            Policy supplying age, gender and horizon
        state : State
            Occupied state
        table : RaggedArray
            Occupation probabilities of ``state``
        reserves : StateReserves
            Reserves per standard state paid out on surrender
        products : Sequence[Product]
            Products whose market payments are summed; free-policy states
            use the payments of their mirrored standard state

        Returns
        -------
        ndarray
            Expected payment per time step
        """
        n_time_points = len(table)
        increments = np.zeros(n_time_points)
        gender = policy.gender
        payment_state = to_reserve_state(state)

        continuous = [p.market_continuous[payment_state] for p in products
                      if payment_state in p.market_continuous]
        jumps = []
        for target in self.intensities.targets(gender, state):
            intensity = self.intensities.intensity(gender, state, target)
            if target in SURRENDER_STATES:
                jumps.append((intensity, None))
                continue
            payment_target = to_reserve_state(target)
            if payment_target is payment_state:
                continue
            for product in products:
                lump_sum = product.market_jump.get(payment_state, {}).get(payment_target)
                if lump_sum is not None:
                    jumps.append((intensity, lump_sum))

        if not continuous and not jumps:
            return increments

        reserve = reserves.get(payment_state)
        h = self.grid.step_size
        for t in range(1, n_time_points):
            row = table[t]
            mass = row[1:] - row[:-1]
            age = policy.age + policy.initial_time + self.grid.index_to_time(t - 0.5)
            durations = [self.grid.index_to_time(u - 0.5) for u in range(1, len(row))]
            surrender_value = (
                0.5 * (reserve[t - 1] + reserve[t]) if reserve is not None else 0.0
            )

            payments = np.zeros(len(durations))
            for payment in continuous:
                payments += [payment(age, d) for d in durations]
            for intensity, lump_sum in jumps:
                rates = np.array([intensity(age, d) for d in durations], dtype=np.float64)
                if lump_sum is None:
                    payments += surrender_value * rates
                else:
                    payments += rates * [lump_sum(age, d) for d in durations]

            increments[t] = np.sum(payments * mass) * h

        return increments
