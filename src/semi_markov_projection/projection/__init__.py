"""
Projection inputs: portfolio-wide reserves, market discounting and the
full pipeline.
"""

from .discounting import (
    BondPricer,
    ConstantRateBondPricer,
    MarketAsset,
    MarketScenarioSource,
    discounted_reserve,
)
from .portfolio_reserves import portfolio_wide_bonus_reserves, portfolio_wide_original_reserves
from .projection_input import ProjectionInput, build_projection_input

__all__ = [
    # Discounting
    "BondPricer",
    "ConstantRateBondPricer",
    "MarketAsset",
    "MarketScenarioSource",
    "discounted_reserve",
    # Portfolio reserves
    "portfolio_wide_original_reserves",
    "portfolio_wide_bonus_reserves",
    # Pipeline
    "ProjectionInput",
    "build_projection_input",
]
