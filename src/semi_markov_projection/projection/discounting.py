"""
Market reserves by discounting cumulative cash flows.

Theory
------
[T1] V(t0) = Σ_{i >= t0} P(r(t0), t0·h, (i + ½)h) · (CF[i+1] - CF[i])

where CF is a running total of expected payments on the calculation grid
and P(r, t, T) the zero-coupon bond price given the short rate r at t.

Scenario simulation and bond-price models live outside this package; they
are consumed through the protocols below.
"""

import math
from enum import Enum
from typing import Protocol

import numpy as np


class MarketAsset(Enum):
    """Simulated market series."""

    SHORT_RATE = "short_rate"
    RISKY_ASSET = "risky_asset"


class MarketScenarioSource(Protocol):
    """Protocol for economic scenario generators."""

    def simulate_market(self) -> dict[MarketAsset, np.ndarray]:
        """One market path per asset over the calculation grid."""
        ...


class BondPricer(Protocol):
    """Protocol for zero-coupon bond prices P(r, t, T)."""

    def price(self, short_rate: float, t: float, maturity: float) -> float:
        """Price at t of a unit paid at ``maturity``."""
        ...

    def derivative(self, short_rate: float, t: float, maturity: float) -> float:
        """∂P/∂r."""
        ...


class ConstantRateBondPricer:
    """
    Bond prices under a deterministic constant short rate.

    [T1] P(r, t, T) = exp(-r (T - t)); the short rate argument is the rate.

    Examples
    --------
    >>> ConstantRateBondPricer().price(0.0, 0.0, 10.0)
    1.0
    """

    def price(self, short_rate: float, t: float, maturity: float) -> float:
        return math.exp(-short_rate * (maturity - t))

    def derivative(self, short_rate: float, t: float, maturity: float) -> float:
        return -(maturity - t) * math.exp(-short_rate * (maturity - t))


def discounted_reserve(
    cash_flows: np.ndarray,
    time_index: int,
    short_rate: float,
    bond_pricer: BondPricer,
    step_size: float,
) -> float:
    """
    Market value at ``time_index`` of the remaining cumulative cash flows.

    Parameters
    ----------
    cash_flows : ndarray
        Running total of expected payments
    time_index : int
        Valuation index t0
    short_rate : float
        Short rate at the valuation time
    bond_pricer : BondPricer
        Zero-coupon bond prices
    step_size : float
        Grid step in years

    Returns
    -------
    float
        Σ_{i >= t0} P(r, t0·h, (i + ½)h) · (CF[i+1] - CF[i])

    Raises
    ------
    ValueError
        If ``time_index`` lies outside the cash-flow grid
    """
    if not 0 <= time_index < max(len(cash_flows), 1):
        raise ValueError(
            f"time_index must be in [0, {len(cash_flows)}), got {time_index}"
        )
    valuation_time = time_index * step_size
    reserve = 0.0
    for i in range(time_index, len(cash_flows) - 1):
        discount = bond_pricer.price(short_rate, valuation_time, (i + 0.5) * step_size)
        reserve += discount * (cash_flows[i + 1] - cash_flows[i])
    return reserve
