"""
Forward solver for semi-Markov occupation probabilities.

Theory
------
[T1] p_j(t, u) = P(Z(t) = j, D(t) <= u | Z(0) = z0, D(0) = d0), where D is
     the sojourn time in the current state.
[T1] Kolmogorov forward integro-differential equations along the
     characteristic (t, u) -> (t + h, u + h):

     p_j(t+h, u+h) = p_j(t, u)
                     - ∫_0^u μ_j·(x+t, s) p_j(t, ds) h
                     + Σ_{l≠j} ∫_0^∞ μ_lj(x+t, s) p_l(t, ds) h

     Entering j resets the duration, so inflow is spread over every
     duration u >= h. Integrals are midpoint Riemann sums over the
     duration increments of the previous time row.

Rho-modified probabilities weight paid-up conversions by the free-policy
factor ρ at the time of conversion, so that summing free-policy
probabilities against standard payments yields the reduced free-policy
benefits.
"""

from collections.abc import Mapping
from functools import partial

import numpy as np

from ..config.settings import ExecutionConfig
from ..models.intensities import TransitionIntensityModel
from ..models.policy import Policy
from ..models.states import (
    Gender,
    State,
    StateCollection,
    is_free_policy_state,
    states_in,
)
from .batch import map_policies
from .grid import DurationTimeGrid
from .ragged import RaggedArray

PolicyProbabilities = dict[State, RaggedArray]
ProbabilityTable = dict[str, PolicyProbabilities]


class InvalidInitialStateError(ValueError):
    """Raised when rho-modified probabilities start outside Active/Disabled."""

    pass


class _MidpointRates:
    """
    Intensities of one time step evaluated on the duration midpoints.

    Each off-diagonal intensity is evaluated once per step; the diagonal is
    the sum of the raw outflow curves in registration order.

    [T1] An explicit step moves μ_j·h of the mass at each duration out of j.
         Where μ_j·h > 1 (extreme ages) every outflow curve of j is scaled
         by 1/(μ_j·h): all of the mass leaves in one step, split over the
         targets in proportion to their intensities. Rows stay non-negative
         and inflows still equal outflows.
    """

    def __init__(
        self,
        model: TransitionIntensityModel,
        gender: Gender,
        age: float,
        durations: list[float],
        step_size: float,
    ):
        self._model = model
        self._gender = gender
        self._age = age
        self._durations = durations
        self._step_size = step_size
        self._raw: dict[tuple[State, State], np.ndarray] = {}
        self._exit_scale: dict[State, np.ndarray | None] = {}
        self._cache: dict[tuple[State, State], np.ndarray] = {}

    def curve(self, from_state: State, to_state: State) -> np.ndarray:
        key = (from_state, to_state)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        scale = self._scale(from_state)
        if from_state is to_state:
            values = self._total_outflow(from_state)
            if scale is not None:
                values = np.minimum(values, 1.0 / self._step_size)
        else:
            values = self._raw_curve(from_state, to_state)
            if scale is not None:
                values = values * scale
        self._cache[key] = values
        return values

    def _raw_curve(self, from_state: State, to_state: State) -> np.ndarray:
        key = (from_state, to_state)
        values = self._raw.get(key)
        if values is None:
            intensity = self._model.intensity(self._gender, from_state, to_state)
            values = np.array(
                [intensity(self._age, duration) for duration in self._durations],
                dtype=np.float64,
            )
            self._raw[key] = values
        return values

    def _total_outflow(self, state: State) -> np.ndarray:
        values = np.zeros(len(self._durations))
        for target in self._model.targets(self._gender, state):
            values = values + self._raw_curve(state, target)
        return values

    def _scale(self, state: State) -> np.ndarray | None:
        """Per-duration scaling of the outflows of ``state``, None when μh <= 1."""
        if state not in self._exit_scale:
            exit_fraction = self._total_outflow(state) * self._step_size
            if np.any(exit_fraction > 1.0):
                self._exit_scale[state] = np.where(
                    exit_fraction > 1.0, 1.0 / np.maximum(exit_fraction, 1.0), 1.0
                )
            else:
                self._exit_scale[state] = None
        return self._exit_scale[state]


class ProbabilityEngine:
    """
    Occupation probabilities p[state][t][u] for a portfolio.

    Parameters
    ----------
    intensities : TransitionIntensityModel
        Market basis intensities (duration dependent)
    policies : Mapping[str, Policy]
        Portfolio keyed by policy id
    grid : DurationTimeGrid, optional
        Time/duration grid. Defaults to the configured step size.
    execution : ExecutionConfig, optional
        Per-policy parallelism settings

    Examples
    --------
    >>> engine = ProbabilityEngine(market_basis_intensities(), example_policies())
    >>> probabilities = engine.calculate()
    >>> probabilities["policy1"][State.ACTIVE].last(1)
    0.9889314944965978
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
        self.state_space = intensities.state_space
        self.rho_state_space = tuple(
            sorted(
                (
                    state
                    for state in states_in(StateCollection.FREE_POLICY_WITH_SURRENDER)
                    if state in self.state_space
                ),
                key=lambda s: s.value,
            )
        )

    # -------------------------------------------------------------------------
    # Allocation
    # -------------------------------------------------------------------------

    def allocate(
        self, policy: Policy, states: tuple[State, ...], seed_initial_state: bool = True
    ) -> PolicyProbabilities:
        """
        Allocate zeroed ragged tables for ``states``.

        With ``seed_initial_state`` the initial state gets probability one at
        the largest duration index of time zero.
        """
        n_time_points = self.grid.number_of_time_points(policy)
        row_lengths = self.grid.row_lengths(policy.initial_duration, n_time_points)
        tables = {state: RaggedArray(row_lengths) for state in states}
        if seed_initial_state and n_time_points > 0 and policy.initial_state in tables:
            tables[policy.initial_state][0][-1] = 1.0
        return tables

    def validate(self, rho: bool = False) -> None:
        """
        Check every policy before any work is dispatched.

        Parameters
        ----------
        rho : bool
            Also require the initial state rho-modified probabilities need

        Raises
        ------
        AlignmentError
            If any policy is not aligned to the step size
        InvalidInitialStateError
            If ``rho`` and a policy does not start in ACTIVE or DISABLED
        """
        for policy in self.policies.values():
            if rho:
                self._validate_rho_initial_state(policy)
            self.grid.number_of_time_points(policy)

    def _validate_rho_initial_state(self, policy: Policy) -> None:
        if policy.initial_state not in states_in(StateCollection.RHO_MODIFIED_FROM):
            raise InvalidInitialStateError(
                f"Policy {policy.policy_id}: initial state must be ACTIVE or DISABLED to "
                f"calculate rho-modified probabilities, got {policy.initial_state.name}"
            )

    # -------------------------------------------------------------------------
    # Standard probabilities
    # -------------------------------------------------------------------------

    def calculate(self) -> ProbabilityTable:
        """
        Occupation probabilities for every policy.

        Returns
        -------
        ProbabilityTable
            policy id → state → ragged [t][u] table (read-only)

        Raises
        ------
        AlignmentError
            If any policy is not aligned to the step size
        """
        self.validate()

        return map_policies(
            self.calculate_policy,
            self.policies.values(),
            self.execution,
            label="probabilities",
        )

    def calculate_policy(self, policy: Policy) -> PolicyProbabilities:
        """Occupation probabilities of a single policy."""
        tables = self.allocate(policy, self.state_space)
        n_time_points = len(next(iter(tables.values()))) if tables else 0

        for t in range(1, n_time_points):
            rates = self._midpoint_rates(policy, t)
            for j in self.state_space:
                row = tables[j][t]
                for l in self.intensities.sources(policy.gender, j):
                    self._add_transition(row, tables[l][t - 1], rates.curve(l, j), j is l)
                row[1:] += tables[j][t - 1]

        for table in tables.values():
            table.freeze()
        return tables

    # -------------------------------------------------------------------------
    # Rho-modified probabilities
    # -------------------------------------------------------------------------

    def calculate_rho(
        self,
        probabilities: ProbabilityTable,
        free_policy_factor: Mapping[str, np.ndarray],
    ) -> ProbabilityTable:
        """
        Rho-modified free-policy probabilities for every policy.

        Parameters
        ----------
        probabilities : ProbabilityTable
            Standard probabilities from :meth:`calculate`
        free_policy_factor : Mapping[str, ndarray]
            ρ per policy over the time index

        Returns
        -------
        ProbabilityTable
            policy id → free-policy state → ragged [t][u] table (read-only)

        Raises
        ------
        InvalidInitialStateError
            If a policy does not start in ACTIVE or DISABLED
        AlignmentError
            If any policy is not aligned to the step size
        """
        self.validate(rho=True)

        return map_policies(
            partial(self._calculate_rho_entry, probabilities, free_policy_factor),
            self.policies.values(),
            self.execution,
            label="rho-modified probabilities",
        )

    def _calculate_rho_entry(
        self,
        probabilities: ProbabilityTable,
        free_policy_factor: Mapping[str, np.ndarray],
        policy: Policy,
    ) -> PolicyProbabilities:
        return self.calculate_rho_policy(
            policy, probabilities[policy.policy_id], free_policy_factor[policy.policy_id]
        )

    def calculate_rho_policy(
        self,
        policy: Policy,
        probabilities: Mapping[State, RaggedArray],
        free_policy_factor: np.ndarray,
    ) -> PolicyProbabilities:
        """
        Rho-modified probabilities of a single policy.

        Conversions from a standard state into the free-policy states use the
        standard probability increments scaled by ½(ρ[t-1] + ρ[t]); all other
        terms use the rho-modified table itself. Every target state starts
        from a fresh accumulator.
        """
        self._validate_rho_initial_state(policy)
        tables = self.allocate(policy, self.rho_state_space, seed_initial_state=False)
        n_time_points = self.grid.number_of_time_points(policy)
        if len(free_policy_factor) < n_time_points:
            raise ValueError(
                f"Policy {policy.policy_id}: free policy factor has {len(free_policy_factor)} "
                f"points, expected at least {n_time_points}"
            )

        for t in range(1, n_time_points):
            rates = self._midpoint_rates(policy, t)
            rho_mid = 0.5 * (free_policy_factor[t - 1] + free_policy_factor[t])
            for j in self.rho_state_space:
                row = tables[j][t]
                for l in self.intensities.sources(policy.gender, j):
                    if is_free_policy_state(l):
                        self._add_transition(
                            row, tables[l][t - 1], rates.curve(l, j), j is l
                        )
                    else:
                        self._add_transition(
                            row, probabilities[l][t - 1], rates.curve(l, j), False,
                            scale=rho_mid,
                        )
                row[1:] += tables[j][t - 1]

        for table in tables.values():
            table.freeze()
        return tables

    # -------------------------------------------------------------------------
    # Step helpers
    # -------------------------------------------------------------------------

    def _midpoint_rates(self, policy: Policy, t: int) -> _MidpointRates:
        """Intensities at time midpoint t - ½ for the previous row's durations."""
        previous_max = self.grid.duration_support_index(policy.initial_duration, t - 1)
        age = policy.age + policy.initial_time + self.grid.index_to_time(t - 0.5)
        durations = [
            policy.initial_duration + self.grid.index_to_time(u - 0.5)
            for u in range(1, previous_max + 1)
        ]
        return _MidpointRates(
            self.intensities, policy.gender, age, durations, self.grid.step_size
        )

    def _add_transition(
        self,
        row: np.ndarray,
        previous: np.ndarray,
        intensity: np.ndarray,
        outflow: bool,
        scale: float = 1.0,
    ) -> None:
        """
        Add one source's contribution to the current row.

        ``integral[u]`` is the mass that left ``previous`` from durations below
        u. Outflow subtracts it per duration; inflow adds the full integral
        to every duration >= 1.
        """
        integral = np.cumsum((previous[1:] - previous[:-1]) * intensity * self.grid.step_size)
        if outflow:
            row[2:] -= integral
        else:
            total = integral[-1] if len(integral) else 0.0
            row[1:] += total * scale if scale != 1.0 else total
