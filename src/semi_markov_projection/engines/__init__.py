"""
Numerical engines: grid, forward probabilities, backward reserves and
cash-flow aggregation.
"""

from .batch import map_policies
from .cash_flow import SURRENDER_STATES, CashFlowAggregator
from .grid import AlignmentError, DurationTimeGrid
from .probability import (
    InvalidInitialStateError,
    PolicyProbabilities,
    ProbabilityEngine,
    ProbabilityTable,
)
from .ragged import RaggedArray
from .reserve import (
    RESERVE_KEYS,
    PolicyReserves,
    ReserveEngine,
    ReserveTable,
    ReserveViews,
    StateReserves,
    calculate_free_policy_factor,
)

__all__ = [
    # Grid
    "DurationTimeGrid",
    "AlignmentError",
    "RaggedArray",
    # Probabilities
    "ProbabilityEngine",
    "ProbabilityTable",
    "PolicyProbabilities",
    "InvalidInitialStateError",
    # Reserves
    "ReserveEngine",
    "ReserveTable",
    "PolicyReserves",
    "StateReserves",
    "ReserveViews",
    "RESERVE_KEYS",
    "calculate_free_policy_factor",
    # Cash flows
    "CashFlowAggregator",
    "SURRENDER_STATES",
    # Execution
    "map_policies",
]
