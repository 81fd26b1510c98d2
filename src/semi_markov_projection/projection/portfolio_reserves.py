"""
Portfolio-wide technical reserves.

The technical basis has no duration, so the expected reserve at time t is
the state reserve weighted by the probability of occupying the state with
any duration, p[state][t][u_max]:

[T1] V_O(t) = Σ_{Active, Disabled, Dead} V_O[j](t) p_j(t)
              + Σ_{FP Active, FP Disabled, FP Dead} V_O+[j'](t) ρp_j(t)
[T1] V_B(t) = Σ_{j not a surrender state} V_B[j'](t) p_j(t)

where j' is the standard state mirrored by j. Surrender and death states
carry zero reserves.
"""

import numpy as np

from ..engines.cash_flow import SURRENDER_STATES
from ..engines.probability import ProbabilityTable
from ..engines.reserve import ReserveViews
from ..models.states import State, StateCollection, states_in, to_reserve_state


def portfolio_wide_original_reserves(
    reserves: ReserveViews,
    probabilities: ProbabilityTable,
    rho_probabilities: ProbabilityTable,
) -> dict[str, np.ndarray]:
    """
    Expected original technical reserve per policy over the time index.

    Parameters
    ----------
    reserves : ReserveViews
        Combined and benefit-only reserves per standard state
    probabilities : ProbabilityTable
        Standard occupation probabilities
    rho_probabilities : ProbabilityTable
        Rho-modified free-policy probabilities

    Returns
    -------
    dict[str, ndarray]
        Portfolio-wide original reserve per policy
    """
    result = {}
    for policy_id, combined in reserves.original.items():
        positive = reserves.original_positive[policy_id]
        total = np.zeros(len(combined[State.ACTIVE]))
        for state in states_in(StateCollection.STANDARD):
            total += combined[state] * probabilities[policy_id][state].last_column()
        for state in states_in(StateCollection.FREE_POLICY):
            if state in rho_probabilities[policy_id]:
                total += (
                    positive[to_reserve_state(state)]
                    * rho_probabilities[policy_id][state].last_column()
                )
        result[policy_id] = total
    return result


def portfolio_wide_bonus_reserves(
    reserves: ReserveViews,
    probabilities: ProbabilityTable,
) -> dict[str, np.ndarray]:
    """Expected bonus technical reserve per policy over the time index."""
    result = {}
    for policy_id, bonus in reserves.bonus.items():
        total = np.zeros(len(bonus[State.ACTIVE]))
        for state, table in probabilities[policy_id].items():
            if state in SURRENDER_STATES:
                continue
            total += bonus[to_reserve_state(state)] * table.last_column()
        result[policy_id] = total
    return result
