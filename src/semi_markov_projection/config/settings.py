"""
Frozen configuration settings for the semi-Markov projection.

All configuration is immutable (frozen dataclasses) so that the same
settings object can be shared by concurrently running per-policy tasks.
"""

import os
from dataclasses import dataclass


def _resolve_n_workers() -> int | None:
    """
    Resolve the worker count with environment variable override.

    Priority:
    1. SEMI_MARKOV_WORKERS environment variable (if set)
    2. Default: None (executor picks a worker count)

    Returns
    -------
    int or None
        Number of worker threads for the per-policy map
    """
    env_value = os.environ.get("SEMI_MARKOV_WORKERS")
    if not env_value:
        return None
    n_workers = int(env_value)
    if n_workers <= 0:
        raise ValueError(f"SEMI_MARKOV_WORKERS must be positive, got {env_value}")
    return n_workers


# =============================================================================
# Grid Configuration
# =============================================================================

@dataclass(frozen=True)
class GridConfig:
    """
    Immutable time/duration grid configuration.

    Attributes
    ----------
    step_size : float
        Step in years shared by time and duration axes. Ages, expiry ages and
        initial durations must be multiples of it.
    """

    step_size: float = 1.0 / 12.0  # Monthly [T1]


# =============================================================================
# Technical Basis Configuration
# =============================================================================

@dataclass(frozen=True)
class TechnicalBasisConfig:
    """
    Immutable technical (regulatory) basis configuration.

    Attributes
    ----------
    interest : float
        Continuously compounded technical interest rate
    """

    interest: float = 0.02  # [T2: Danish FSA technical basis]


# =============================================================================
# Product Configuration
# =============================================================================

@dataclass(frozen=True)
class ProductConfig:
    """
    Immutable product definition defaults.

    Attributes
    ----------
    pension_age : float
        Age at which premiums stop and the life annuity starts
    disability_deferral : float
        Years of disability before the deferred disability annuity pays
    """

    pension_age: float = 67.0
    disability_deferral: float = 1.0


# =============================================================================
# Execution Configuration
# =============================================================================

@dataclass(frozen=True)
class ExecutionConfig:
    """
    Immutable execution configuration for the per-policy map.

    Attributes
    ----------
    parallel : bool
        Dispatch policies to a worker pool instead of a plain loop
    use_processes : bool
        Use a process pool instead of a thread pool. Every intensity and
        payment function must then pickle (module-level functions and
        functools.partial do, lambdas do not).
    n_workers : int, optional
        Worker count (None = executor default). Override with
        SEMI_MARKOV_WORKERS.
    """

    parallel: bool = False
    use_processes: bool = False
    n_workers: int | None = None  # type: ignore[assignment]  # Set in __post_init__

    def __post_init__(self) -> None:
        """Initialize n_workers from the environment when not given."""
        # Frozen dataclass workaround: use object.__setattr__
        if self.n_workers is None:
            object.__setattr__(self, "n_workers", _resolve_n_workers())


# =============================================================================
# Master Configuration
# =============================================================================

@dataclass(frozen=True)
class Settings:
    """
    Master frozen configuration combining all sub-configs.

    Usage
    -----
    >>> from semi_markov_projection.config.settings import SETTINGS
    >>> SETTINGS.grid.step_size
    0.08333333333333333
    """

    grid: GridConfig = GridConfig()
    technical: TechnicalBasisConfig = TechnicalBasisConfig()
    product: ProductConfig = ProductConfig()
    execution: ExecutionConfig = ExecutionConfig()


# Singleton instance - import this
SETTINGS = Settings()
