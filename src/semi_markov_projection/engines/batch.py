"""
Per-policy map used by every engine.

Each policy's computation reads only shared immutable inputs and writes
only the tables it allocates itself, so policies can run concurrently
without synchronization. Results keep the input order of the policies.

Threads share the inputs without copying but run the pure-Python
intensity evaluations one at a time. Processes run them in parallel at
the cost of pickling the engine and its inputs into every worker.
"""

import logging
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from typing import TypeVar

from ..config.settings import SETTINGS, ExecutionConfig
from ..models.policy import Policy

logger = logging.getLogger(__name__)

T = TypeVar("T")


def map_policies(
    function: Callable[[Policy], T],
    policies: Iterable[Policy],
    execution: ExecutionConfig | None = None,
    label: str = "policies",
) -> dict[str, T]:
    """
    Apply ``function`` to every policy, optionally on a worker pool.

    Parameters
    ----------
    function : Callable[[Policy], T]
        Pure per-policy computation. Must pickle when
        ``execution.use_processes`` is set.
    policies : Iterable[Policy]
        Policies to process
    execution : ExecutionConfig, optional
        Parallelism settings. Defaults to SETTINGS.execution.
    label : str
        Name used in log messages

    Returns
    -------
    dict[str, T]
        Result per policy id, in input order

    Raises
    ------
    Exception
        The first per-policy failure; no partial result is returned
    """
    execution = execution or SETTINGS.execution
    policies = list(policies)
    start_time = time.time()
    logger.info(f"Calculating {label} for {len(policies)} policies")

    if execution.parallel and len(policies) > 1:
        results: dict[str, T] = {}
        executor_class = (
            ProcessPoolExecutor if execution.use_processes else ThreadPoolExecutor
        )
        with executor_class(max_workers=execution.n_workers) as executor:
            future_to_policy = {
                executor.submit(function, policy): policy for policy in policies
            }
            for future in as_completed(future_to_policy):
                policy = future_to_policy[future]
                results[policy.policy_id] = future.result()
                logger.debug(f"  Completed {label}: {policy.policy_id}")
        ordered = {policy.policy_id: results[policy.policy_id] for policy in policies}
    else:
        ordered = {}
        for policy in policies:
            ordered[policy.policy_id] = function(policy)
            logger.debug(f"  Completed {label}: {policy.policy_id}")

    logger.info(f"Calculated {label} in {time.time() - start_time:.2f}s")
    return ordered
