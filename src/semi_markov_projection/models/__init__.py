"""
Static model inputs: state space, transition intensities, products and
policies.
"""

from .intensities import (
    IntensityFunction,
    IntensityRegistration,
    TotalOutflow,
    TransitionIntensityModel,
    zero_intensity,
)
from .policy import Policy
from .products import (
    Product,
    ProductCollection,
    SummedPayment,
    create_deferred_disability_annuity,
    create_life_annuity,
    create_premium_payment,
    sum_products,
)
from .states import (
    BONUS_POSITIVE,
    ORIGINAL_NEGATIVE,
    ORIGINAL_POSITIVE,
    Gender,
    PaymentKey,
    PaymentStream,
    Sign,
    State,
    StateCollection,
    greater_than_indicator,
    is_free_policy_state,
    less_than_indicator,
    states_in,
    to_reserve_state,
    to_standard_state,
)

__all__ = [
    # States
    "State",
    "Gender",
    "PaymentStream",
    "Sign",
    "PaymentKey",
    "StateCollection",
    "ORIGINAL_POSITIVE",
    "ORIGINAL_NEGATIVE",
    "BONUS_POSITIVE",
    "is_free_policy_state",
    "to_standard_state",
    "to_reserve_state",
    "states_in",
    "less_than_indicator",
    "greater_than_indicator",
    # Intensities
    "IntensityFunction",
    "IntensityRegistration",
    "TotalOutflow",
    "TransitionIntensityModel",
    "zero_intensity",
    # Products
    "Product",
    "ProductCollection",
    "SummedPayment",
    "sum_products",
    "create_life_annuity",
    "create_premium_payment",
    "create_deferred_disability_annuity",
    # Policy
    "Policy",
]
