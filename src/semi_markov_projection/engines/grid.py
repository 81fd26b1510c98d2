"""
Shared time/duration indexing for every calculator.

Theory
------
[T1] Time index t ↔ time t·h, duration index u ↔ sojourn u·h.
[T1] Sojourn in the currently occupied state cannot exceed the elapsed
     time plus the sojourn already accumulated at the initial time, so row
     t of a duration table has initial_duration/h + t + 1 entries.
"""

import math

from ..config.settings import SETTINGS
from ..config.tolerances import ALIGNMENT_TOLERANCE
from ..models.policy import Policy


class AlignmentError(ValueError):
    """Raised when ages or expiry ages are not multiples of the step size."""

    pass


class DurationTimeGrid:
    """
    Equidistant time × duration grid with step ``step_size``.

    Parameters
    ----------
    step_size : float, optional
        Step in years. Defaults to SETTINGS.grid.step_size (monthly).

    Examples
    --------
    >>> grid = DurationTimeGrid(1.0 / 12.0)
    >>> grid.duration_support_index(initial_duration=5.0, time_index=3)
    63
    """

    def __init__(self, step_size: float | None = None):
        step_size = SETTINGS.grid.step_size if step_size is None else step_size
        if step_size <= 0:
            raise ValueError(f"step_size must be positive, got {step_size}")
        self.step_size = step_size

    def __repr__(self) -> str:
        return f"DurationTimeGrid(step_size={self.step_size!r})"

    def number_of_time_points(self, policy: Policy, start_time: float | None = None) -> int:
        """
        Number of time points from ``start_time`` to the policy expiry.

        One point is added for time zero.

        Parameters
        ----------
        policy : Policy
            Policy whose expiry age closes the horizon
        start_time : float, optional
            Start of the horizon. Defaults to the policy's initial time.

        Returns
        -------
        int
            Number of time points, 0 if the horizon is already past

        Raises
        ------
        AlignmentError
            If (expiry_age - start_time) is not a multiple of the step size,
            up to ALIGNMENT_TOLERANCE
        """
        start_time = policy.initial_time if start_time is None else start_time
        ratio = (policy.expiry_age - start_time) / self.step_size
        value = round(ratio) + 1
        if not math.isclose(ratio, value - 1, rel_tol=0.0, abs_tol=ALIGNMENT_TOLERANCE):
            raise AlignmentError(
                f"Policy {policy.policy_id}: either expiry age ({policy.expiry_age}) or "
                f"start time ({start_time}) is not a multiple of step size {self.step_size}"
            )
        return max(value, 0)

    def duration_support_index(self, initial_duration: float, time_index: int) -> int:
        """Largest duration index reachable at ``time_index``."""
        return round(initial_duration / self.step_size) + time_index

    def row_lengths(self, initial_duration: float, n_time_points: int) -> list[int]:
        """Ragged row lengths of a duration table with ``n_time_points`` rows."""
        return [
            self.duration_support_index(initial_duration, t) + 1
            for t in range(n_time_points)
        ]

    def index_to_time(self, index: float) -> float:
        """Time in years of a (possibly fractional) index."""
        return index * self.step_size
