"""
Technical reserves by backward Thiele recursion.

Theory
------
[T1] Thiele's differential equation on the technical basis (no duration
     dependence):

     dV_j/dt = r V_j - b_j - Σ_{k≠j} μ_jk (b_jk + V_k - V_j)

[T1] Backward Euler from the terminal condition V_j(T) = 0, with
     intensities and payments at the step midpoint t_mid = x + (i + ½)h:

     V_j[i] = V_j[i+1] + h · ( b_j - (r + μ_j·) V_j[i+1]
                               + Σ_{k≠j} μ_jk (V_k[i+1] + b_jk) )

[T1] Free-policy factor ρ(t) = (V⁺ + V⁻) / V⁺ in Active: the fraction of
     the benefit reserve that remains funded when premiums stop.

Dead has no reserve. Each (payment stream, sign) is solved independently.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np

from ..config.settings import SETTINGS, ExecutionConfig
from ..models.intensities import TransitionIntensityModel
from ..models.policy import Policy
from ..models.products import Product
from ..models.states import (
    BONUS_POSITIVE,
    ORIGINAL_NEGATIVE,
    ORIGINAL_POSITIVE,
    PaymentKey,
    State,
    StateCollection,
    states_in,
)
from .batch import map_policies
from .grid import DurationTimeGrid

logger = logging.getLogger(__name__)

StateReserves = dict[State, np.ndarray]
PolicyReserves = dict[PaymentKey, StateReserves]
ReserveTable = dict[str, PolicyReserves]

RESERVE_KEYS: tuple[PaymentKey, ...] = (ORIGINAL_POSITIVE, ORIGINAL_NEGATIVE, BONUS_POSITIVE)


@dataclass(frozen=True)
class ReserveViews:
    """
    Reserves per policy and standard state, as consumed by cash flows.

    Dead and Surrender always carry zero reserves.

    Attributes
    ----------
    original : dict[str, StateReserves]
        Combined original reserve V_O+ + V_O-
    original_positive : dict[str, StateReserves]
        Benefit-only original reserve V_O+ (free-policy states)
    bonus : dict[str, StateReserves]
        Bonus reserve V_B+
    """

    original: dict[str, StateReserves]
    original_positive: dict[str, StateReserves]
    bonus: dict[str, StateReserves]


class ReserveEngine:
    """
    Technical reserves per policy, payment key and state.

    Parameters
    ----------
    intensities : TransitionIntensityModel
        Technical basis intensities (duration is evaluated at 0)
    policies : Mapping[str, Policy]
        Portfolio keyed by policy id
    interest : float, optional
        Technical interest rate. Defaults to SETTINGS.technical.interest.
    grid : DurationTimeGrid, optional
        Time grid. Defaults to the configured step size.
    execution : ExecutionConfig, optional
        Per-policy parallelism settings

    Examples
    --------
    >>> model, interest = technical_basis()
    >>> engine = ReserveEngine(model, example_policies(), interest)
    >>> reserves = engine.calculate()
    >>> factor = engine.free_policy_factor(reserves)
    """

    def __init__(
        self,
        intensities: TransitionIntensityModel,
        policies: Mapping[str, Policy],
        interest: float | None = None,
        grid: DurationTimeGrid | None = None,
        execution: ExecutionConfig | None = None,
    ):
        self.intensities = intensities
        self.policies = policies
        self.interest = SETTINGS.technical.interest if interest is None else interest
        self.grid = grid or DurationTimeGrid()
        self.execution = execution
        self.state_space = intensities.state_space
        self.reserve_states = tuple(s for s in self.state_space if s is not State.DEAD)

    def calculate(self) -> ReserveTable:
        """
        Technical reserves for every policy.

        Returns
        -------
        ReserveTable
            policy id → (stream, sign) → state → reserve over time index

        Raises
        ------
        AlignmentError
            If any policy is not aligned to the step size
        """
        for policy in self.policies.values():
            self.grid.number_of_time_points(policy)

        reserves = map_policies(
            self.calculate_policy,
            self.policies.values(),
            self.execution,
            label="technical reserves",
        )
        # Arrays returned by worker processes arrive writeable
        for policy_reserves in reserves.values():
            for state_reserves in policy_reserves.values():
                for values in state_reserves.values():
                    values.flags.writeable = False
        return reserves

    def calculate_policy(self, policy: Policy) -> PolicyReserves:
        """Reserves of one policy for the original and bonus payment keys."""
        keys = RESERVE_KEYS + tuple(k for k in policy.payments if k not in RESERVE_KEYS)
        return {key: self.calculate_payment(policy, policy.product(key)) for key in keys}

    def calculate_payment(self, policy: Policy, product: Product) -> StateReserves:
        """
        Backward recursion for one product.

        Parameters
        ----------
        policy : Policy
            Policy supplying age, gender and horizon
        product : Product
            Payments on the technical basis

        Returns
        -------
        StateReserves
            Reserve per state over the time index, terminal value 0
        """
        n_time_points = self.grid.number_of_time_points(policy)
        reserves = {state: np.zeros(n_time_points) for state in self.state_space}
        gender = policy.gender
        h = self.grid.step_size

        for i in range(n_time_points - 2, -1, -1):
            time = policy.age + policy.initial_time + self.grid.index_to_time(i + 0.5)
            for j in self.reserve_states:
                following = reserves[j][i + 1]
                value = product.technical_rate(j, time) - (
                    self.interest + self.intensities.total_outflow(gender, j)(time, 0.0)
                ) * following

                for k in self.intensities.targets(gender, j):
                    lump_sum = product.technical_lump_sum(j, k)
                    target_value = reserves[k][i + 1] if k in reserves else 0.0
                    if lump_sum is not None:
                        target_value = target_value + lump_sum(time)
                    value += target_value * self.intensities.intensity(gender, j, k)(time, 0.0)

                reserves[j][i] = value * h + following

        for values in reserves.values():
            values.flags.writeable = False
        return reserves

    # -------------------------------------------------------------------------
    # Derived outputs
    # -------------------------------------------------------------------------

    def free_policy_factor(self, reserves: ReserveTable) -> dict[str, np.ndarray]:
        """
        ρ per policy over the time index.

        ρ[t] = (V_A,O+[t] + V_A,O-[t]) / V_A,O+[t], or 1.0 where the benefit
        reserve is exactly zero (e.g. at the terminal time).
        """
        factors = {}
        for policy_id, policy_reserves in reserves.items():
            positive = policy_reserves[ORIGINAL_POSITIVE][State.ACTIVE]
            n_zero = int(np.count_nonzero(positive == 0.0))
            if n_zero > 1:
                logger.debug(
                    f"Policy {policy_id}: benefit reserve is zero at {n_zero} time points, "
                    f"free policy factor set to 1.0 there"
                )
            factors[policy_id] = calculate_free_policy_factor(
                positive, policy_reserves[ORIGINAL_NEGATIVE][State.ACTIVE]
            )
        return factors

    def reserve_views(self, reserves: ReserveTable) -> ReserveViews:
        """Combined, benefit-only and bonus reserves per standard state."""
        original: dict[str, StateReserves] = {}
        original_positive: dict[str, StateReserves] = {}
        bonus: dict[str, StateReserves] = {}

        for policy_id, policy_reserves in reserves.items():
            positive = policy_reserves[ORIGINAL_POSITIVE]
            negative = policy_reserves[ORIGINAL_NEGATIVE]
            original[policy_id] = _standard_view(
                {state: positive[state] + negative[state] for state in positive}
            )
            original_positive[policy_id] = _standard_view(positive)
            bonus[policy_id] = _standard_view(policy_reserves[BONUS_POSITIVE])

        return ReserveViews(original=original, original_positive=original_positive, bonus=bonus)


def calculate_free_policy_factor(positive: np.ndarray, negative: np.ndarray) -> np.ndarray:
    """
    Free-policy factor from Active benefit and premium reserves.

    Parameters
    ----------
    positive : ndarray
        Active reserve of the original benefits
    negative : ndarray
        Active reserve of the original premiums

    Returns
    -------
    ndarray
        (positive + negative) / positive, 1.0 where positive == 0. Ratios
        beyond the float range (a subnormal benefit reserve against a
        finite premium reserve) saturate to ±inf without a warning.

    Examples
    --------
    >>> calculate_free_policy_factor(np.array([10.0, 0.0]), np.array([-4.0, 0.0]))
    array([0.6, 1. ])
    """
    factor = np.ones(len(positive))
    nonzero = positive != 0.0
    with np.errstate(over="ignore"):
        factor[nonzero] = (positive[nonzero] + negative[nonzero]) / positive[nonzero]
    return factor


def _standard_view(reserves: Mapping[State, np.ndarray]) -> StateReserves:
    n_time_points = len(next(iter(reserves.values()))) if reserves else 0
    view = {}
    for state in states_in(StateCollection.STANDARD_WITH_SURRENDER):
        if state in (State.DEAD, State.SURRENDER) or state not in reserves:
            values = np.zeros(n_time_points)
        else:
            values = np.array(reserves[state], dtype=np.float64)
        values.flags.writeable = False
        view[state] = values
    return view
