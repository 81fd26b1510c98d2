"""
Policy record.

Immutable; ages, expiry age, initial time and initial duration are in
years and are expected to lie on the step-size grid.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field

from .products import Product
from .states import Gender, PaymentKey, State


@dataclass(frozen=True)
class Policy:
    """
    Multi-state life insurance policy.

    Attributes
    ----------
    policy_id : str
        Policy identifier
    age : float
        Age at time zero
    gender : Gender
        Policyholder gender (selects the intensity table)
    expiry_age : float
        End of the projection horizon on the time axis of the grid; the
        number of time points is (expiry_age - start_time) / h + 1
    initial_state : State
        State occupied at the initial time
    payments : Mapping[PaymentKey, Product]
        Product per (payment stream, sign)
    initial_duration : float
        Sojourn time in the initial state at the initial time
    initial_time : float
        Time at which the projection starts

    Raises
    ------
    ValueError
        If age exceeds expiry age, or durations/times are negative
    """

    policy_id: str
    age: float
    gender: Gender
    expiry_age: float
    initial_state: State
    payments: Mapping[PaymentKey, Product] = field(default_factory=dict)
    initial_duration: float = 0.0
    initial_time: float = 0.0

    def __post_init__(self) -> None:
        """Validate policy data."""
        if self.age > self.expiry_age:
            raise ValueError(
                f"Policy {self.policy_id}: age ({self.age}) can't be larger than "
                f"expiry age ({self.expiry_age})"
            )
        if self.initial_duration < 0:
            raise ValueError(
                f"Policy {self.policy_id}: initial_duration must be >= 0, "
                f"got {self.initial_duration}"
            )
        if self.initial_time < 0:
            raise ValueError(
                f"Policy {self.policy_id}: initial_time must be >= 0, got {self.initial_time}"
            )

    @property
    def start_age(self) -> float:
        """Age at the initial time."""
        return self.age + self.initial_time

    def product(self, key: PaymentKey) -> Product:
        """Product for a payment key; an empty product when not held."""
        return self.payments.get(key, _EMPTY_PRODUCT)


_EMPTY_PRODUCT = Product()
