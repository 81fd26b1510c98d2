"""
Input construction: intensity bases and the example portfolio.
"""

from .bases import (
    market_basis_intensities,
    market_basis_registrations,
    technical_basis,
    technical_basis_registrations,
)
from .portfolio import EXAMPLE_POLICY_ID, create_example_policy, example_policies

__all__ = [
    # Bases
    "market_basis_intensities",
    "market_basis_registrations",
    "technical_basis",
    "technical_basis_registrations",
    # Portfolio
    "EXAMPLE_POLICY_ID",
    "create_example_policy",
    "example_policies",
]
