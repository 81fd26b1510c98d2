"""
Centralized tolerance framework for the semi-Markov engines.

All tolerances are derived from precision requirements, not ad hoc tuning.

Tolerance Tiers:
    Tier 1 (Analytical): Machine-precision achievable, deterministic results
    Tier 2 (Oracle): Comparison against an independent ODE solver
    Tier 3 (Golden): Snapshot regression against stored outputs

References:
    [T1] Higham (2002) "Accuracy and Stability of Numerical Algorithms"
    [T1] Buchardt, Møller & Schmidt (2015) "Cash flows and policyholder
         behaviour in the semi-Markov life insurance setup"
"""

from typing import Final

# =============================================================================
# Tier 1: Analytical Tolerances (Deterministic)
# =============================================================================

#: Occupation probabilities at maximal duration sum to one.
#: Tolerance: ~1e-12 allows for float64 accumulation over ~1000 time steps
NORMALIZATION_TOLERANCE: Final[float] = 1e-12

#: Regression of the first occupation probabilities of the example policy.
#: Tolerance: a few ulps around 1.0
REGRESSION_TOLERANCE: Final[float] = 1e-15

#: Diagonal intensity equals the sum of the registered outflows.
INTENSITY_CONSISTENCY_TOLERANCE: Final[float] = 1e-15

#: Closed-form comparisons of recursions (constant rates)
RECURSION_TOLERANCE: Final[float] = 1e-10

#: Distance from an integer at which (expiry - start)/h still counts as aligned.
#: Absorbs the rounding of step sizes such as 1/12 that are not exact in binary
ALIGNMENT_TOLERANCE: Final[float] = 1e-9


# =============================================================================
# Tier 2: Oracle Tolerances
# =============================================================================

#: First-order Euler grid (h = 1/12) against an adaptive ODE solver.
#: Local error O((μh)^2), accumulated over 60 steps
EULER_DISCRETIZATION_TOLERANCE: Final[float] = 1e-2


# =============================================================================
# Tier 3: Golden Tolerances
# =============================================================================

#: Golden file regression (snapshot) testing
GOLDEN_RELATIVE_TOLERANCE: Final[float] = 1e-12


# =============================================================================
# Domain-Specific Bounds
# =============================================================================

#: Sanity bound for any registered market intensity over the policy domain
INTENSITY_UPPER_BOUND: Final[float] = 10.0


# =============================================================================
# Tolerance Registry (For Dynamic Access)
# =============================================================================

TOLERANCE_REGISTRY: dict[str, float] = {
    # Tier 1: Analytical
    "normalization": NORMALIZATION_TOLERANCE,
    "regression": REGRESSION_TOLERANCE,
    "intensity_consistency": INTENSITY_CONSISTENCY_TOLERANCE,
    "recursion": RECURSION_TOLERANCE,
    "alignment": ALIGNMENT_TOLERANCE,
    # Tier 2: Oracle
    "euler_discretization": EULER_DISCRETIZATION_TOLERANCE,
    # Tier 3: Golden
    "golden_relative": GOLDEN_RELATIVE_TOLERANCE,
    # Domain-Specific
    "intensity_upper_bound": INTENSITY_UPPER_BOUND,
}


def get_tolerance(name: str) -> float:
    """
    Get tolerance by name from registry.

    Parameters
    ----------
    name : str
        Tolerance name (see TOLERANCE_REGISTRY keys)

    Returns
    -------
    float
        Tolerance value

    Raises
    ------
    KeyError
        If tolerance name not found
    """
    if name not in TOLERANCE_REGISTRY:
        available = ", ".join(sorted(TOLERANCE_REGISTRY.keys()))
        raise KeyError(f"Unknown tolerance '{name}'. Available: {available}")
    return TOLERANCE_REGISTRY[name]
