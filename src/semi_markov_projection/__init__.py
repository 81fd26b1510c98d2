"""
semi-markov-projection: Occupation probabilities, technical reserves and
market cash flows for multi-state life insurance.

Quick Start
-----------
>>> from semi_markov_projection import (
...     build_projection_input, example_policies, market_basis_intensities, technical_basis,
... )
>>> technical, interest = technical_basis()
>>> projection = build_projection_input(
...     market_basis_intensities(), technical, example_policies(), interest
... )
>>> projection.cash_flow_frame().head()

Version: 0.1.0
"""

__version__ = "0.1.0"

# =============================================================================
# Models
# =============================================================================
from semi_markov_projection.models.states import (
    BONUS_POSITIVE,
    ORIGINAL_NEGATIVE,
    ORIGINAL_POSITIVE,
    Gender,
    PaymentStream,
    Sign,
    State,
    StateCollection,
)
from semi_markov_projection.models.intensities import TransitionIntensityModel
from semi_markov_projection.models.products import (
    Product,
    create_deferred_disability_annuity,
    create_life_annuity,
    create_premium_payment,
    sum_products,
)
from semi_markov_projection.models.policy import Policy

# =============================================================================
# Engines
# =============================================================================
from semi_markov_projection.engines.grid import AlignmentError, DurationTimeGrid
from semi_markov_projection.engines.probability import (
    InvalidInitialStateError,
    ProbabilityEngine,
)
from semi_markov_projection.engines.reserve import ReserveEngine, ReserveViews
from semi_markov_projection.engines.cash_flow import CashFlowAggregator

# =============================================================================
# Loaders
# =============================================================================
from semi_markov_projection.loaders.bases import market_basis_intensities, technical_basis
from semi_markov_projection.loaders.portfolio import create_example_policy, example_policies

# =============================================================================
# Projection
# =============================================================================
from semi_markov_projection.projection.discounting import (
    BondPricer,
    ConstantRateBondPricer,
    discounted_reserve,
)
from semi_markov_projection.projection.projection_input import (
    ProjectionInput,
    build_projection_input,
)

# =============================================================================
# Configuration
# =============================================================================
from semi_markov_projection.config.settings import SETTINGS, Settings

__all__ = [
    "__version__",
    # Models
    "State",
    "Gender",
    "PaymentStream",
    "Sign",
    "StateCollection",
    "ORIGINAL_POSITIVE",
    "ORIGINAL_NEGATIVE",
    "BONUS_POSITIVE",
    "TransitionIntensityModel",
    "Product",
    "sum_products",
    "create_life_annuity",
    "create_premium_payment",
    "create_deferred_disability_annuity",
    "Policy",
    # Engines
    "DurationTimeGrid",
    "AlignmentError",
    "ProbabilityEngine",
    "InvalidInitialStateError",
    "ReserveEngine",
    "ReserveViews",
    "CashFlowAggregator",
    # Loaders
    "market_basis_intensities",
    "technical_basis",
    "create_example_policy",
    "example_policies",
    # Projection
    "BondPricer",
    "ConstantRateBondPricer",
    "discounted_reserve",
    "ProjectionInput",
    "build_projection_input",
    # Configuration
    "SETTINGS",
    "Settings",
]
