"""
One-call projection pipeline.

technical basis → reserves → free-policy factor → market probabilities
(standard and rho-modified) → cash flows and portfolio-wide reserves.

The result bundles every table a balance-sheet projection consumes, plus
pandas views for inspection.
"""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np
import pandas as pd

from ..config.settings import ExecutionConfig
from ..engines.cash_flow import CashFlowAggregator
from ..engines.grid import DurationTimeGrid
from ..engines.probability import ProbabilityEngine, ProbabilityTable
from ..engines.reserve import ReserveEngine, ReserveTable, ReserveViews, StateReserves
from ..models.intensities import TransitionIntensityModel
from ..models.policy import Policy
from ..models.states import PaymentStream
from .discounting import BondPricer, discounted_reserve
from .portfolio_reserves import portfolio_wide_bonus_reserves, portfolio_wide_original_reserves

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectionInput:
    """
    Every table produced for a portfolio.

    Attributes
    ----------
    policies : dict[str, Policy]
        Portfolio keyed by policy id
    step_size : float
        Grid step in years
    probabilities : ProbabilityTable
        Standard occupation probabilities
    rho_probabilities : ProbabilityTable
        Rho-modified free-policy probabilities
    technical_reserves : ReserveTable
        Reserves per payment key and state
    free_policy_factor : dict[str, ndarray]
        ρ per policy
    reserve_views : ReserveViews
        Combined, benefit-only and bonus reserves per standard state
    portfolio_wide_original_reserves : dict[str, ndarray]
        Expected original technical reserve
    portfolio_wide_bonus_reserves : dict[str, ndarray]
        Expected bonus technical reserve
    market_original_cash_flows : dict[str, ndarray]
        Running total of expected original payments
    market_bonus_cash_flows : dict[str, ndarray]
        Running total of expected bonus payments
    """

    policies: dict[str, Policy]
    step_size: float
    probabilities: ProbabilityTable
    rho_probabilities: ProbabilityTable
    technical_reserves: ReserveTable
    free_policy_factor: dict[str, np.ndarray]
    reserve_views: ReserveViews
    portfolio_wide_original_reserves: dict[str, np.ndarray]
    portfolio_wide_bonus_reserves: dict[str, np.ndarray]
    market_original_cash_flows: dict[str, np.ndarray]
    market_bonus_cash_flows: dict[str, np.ndarray]

    @property
    def bonus_technical_reserves(self) -> dict[str, StateReserves]:
        """Bonus reserves per policy and standard state."""
        return self.reserve_views.bonus

    def times(self, policy_id: str) -> np.ndarray:
        """Calendar time of every time index of a policy."""
        policy = self.policies[policy_id]
        n_time_points = len(self.free_policy_factor[policy_id])
        return policy.initial_time + np.arange(n_time_points) * self.step_size

    def occupation_frame(self, policy_id: str) -> pd.DataFrame:
        """
        State occupation at the largest duration, one row per time index.

        Columns are the state names; rho-modified free-policy columns carry
        a ``rho_`` prefix.
        """
        data: dict[str, np.ndarray] = {"time": self.times(policy_id)}
        for state, table in self.probabilities[policy_id].items():
            data[state.name.lower()] = table.last_column()
        for state, table in self.rho_probabilities[policy_id].items():
            data[f"rho_{state.name.lower()}"] = table.last_column()
        return pd.DataFrame(data)

    def cash_flow_frame(self) -> pd.DataFrame:
        """Cash flows, portfolio-wide reserves and ρ for every policy, long format."""
        frames = []
        for policy_id in self.policies:
            frames.append(
                pd.DataFrame(
                    {
                        "policy_id": policy_id,
                        "time": self.times(policy_id),
                        "original_cash_flow": self.market_original_cash_flows[policy_id],
                        "bonus_cash_flow": self.market_bonus_cash_flows[policy_id],
                        "original_reserve": self.portfolio_wide_original_reserves[policy_id],
                        "bonus_reserve": self.portfolio_wide_bonus_reserves[policy_id],
                        "free_policy_factor": self.free_policy_factor[policy_id],
                    }
                )
            )
        if not frames:
            return pd.DataFrame()
        return pd.concat(frames, ignore_index=True)

    def market_reserve(
        self,
        policy_id: str,
        bond_pricer: BondPricer,
        short_rate: float,
        time_index: int = 0,
        stream: PaymentStream = PaymentStream.ORIGINAL,
    ) -> float:
        """Market value of the remaining cash flows of one stream."""
        cash_flows = (
            self.market_original_cash_flows
            if stream is PaymentStream.ORIGINAL
            else self.market_bonus_cash_flows
        )
        return discounted_reserve(
            cash_flows[policy_id], time_index, short_rate, bond_pricer, self.step_size
        )


def build_projection_input(
    market_intensities: TransitionIntensityModel,
    technical_intensities: TransitionIntensityModel,
    policies: Mapping[str, Policy],
    interest: float | None = None,
    grid: DurationTimeGrid | None = None,
    execution: ExecutionConfig | None = None,
) -> ProjectionInput:
    """
    Run the full pipeline for a portfolio.

    Parameters
    ----------
    market_intensities : TransitionIntensityModel
        Market basis (duration dependent)
    technical_intensities : TransitionIntensityModel
        Technical basis
    policies : Mapping[str, Policy]
        Portfolio keyed by policy id
    interest : float, optional
        Technical interest. Defaults to SETTINGS.technical.interest.
    grid : DurationTimeGrid, optional
        Shared grid of every engine
    execution : ExecutionConfig, optional
        Per-policy parallelism settings

    Returns
    -------
    ProjectionInput
        Every produced table

    Raises
    ------
    AlignmentError
        If any policy is not aligned to the step size
    InvalidInitialStateError
        If any policy starts outside Active/Disabled
    """
    grid = grid or DurationTimeGrid()
    start_time = time.time()
    logger.info(f"Building projection input for {len(policies)} policies")

    # Every table needs the same preconditions; fail before any engine runs
    probability_engine = ProbabilityEngine(market_intensities, policies, grid, execution)
    probability_engine.validate(rho=True)

    reserve_engine = ReserveEngine(technical_intensities, policies, interest, grid, execution)
    technical_reserves = reserve_engine.calculate()
    free_policy_factor = reserve_engine.free_policy_factor(technical_reserves)
    reserve_views = reserve_engine.reserve_views(technical_reserves)

    probabilities = probability_engine.calculate()
    rho_probabilities = probability_engine.calculate_rho(probabilities, free_policy_factor)

    aggregator = CashFlowAggregator(market_intensities, policies, grid, execution)
    original_cash_flows = aggregator.calculate_original(
        probabilities, rho_probabilities, reserve_views
    )
    bonus_cash_flows = aggregator.calculate_bonus(probabilities, reserve_views)

    result = ProjectionInput(
        policies=dict(policies),
        step_size=grid.step_size,
        probabilities=probabilities,
        rho_probabilities=rho_probabilities,
        technical_reserves=technical_reserves,
        free_policy_factor=free_policy_factor,
        reserve_views=reserve_views,
        portfolio_wide_original_reserves=portfolio_wide_original_reserves(
            reserve_views, probabilities, rho_probabilities
        ),
        portfolio_wide_bonus_reserves=portfolio_wide_bonus_reserves(
            reserve_views, probabilities
        ),
        market_original_cash_flows=original_cash_flows,
        market_bonus_cash_flows=bonus_cash_flows,
    )
    logger.info(f"Built projection input in {time.time() - start_time:.2f}s")
    return result
