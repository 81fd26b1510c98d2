"""
Example portfolio.

One male policyholder aged 30, active with five years of sojourn, holding
a life annuity of 1000 from pension age and a 1-year deferred disability
annuity of 500, financed by a premium of 200 per year until pension age.
The bonus stream is a life annuity of 1000 per unit of bonus.
"""

from ..models.policy import Policy
from ..models.products import (
    create_deferred_disability_annuity,
    create_life_annuity,
    create_premium_payment,
    sum_products,
)
from ..models.states import (
    BONUS_POSITIVE,
    ORIGINAL_NEGATIVE,
    ORIGINAL_POSITIVE,
    Gender,
    State,
)

EXAMPLE_POLICY_ID = "policy1"


def create_example_policy(
    policy_id: str = EXAMPLE_POLICY_ID,
    age: float = 30.0,
    gender: Gender = Gender.MALE,
    expiry_age: float = 120.0 - 30.0,
    initial_state: State = State.ACTIVE,
    initial_duration: float = 5.0,
) -> Policy:
    """
    Build the example policy.

    Parameters
    ----------
    policy_id : str
        Policy identifier
    age : float
        Age at time zero
    gender : Gender
        Policyholder gender
    expiry_age : float
        End of the projection horizon
    initial_state : State
        State at time zero
    initial_duration : float
        Sojourn in the initial state at time zero

    Returns
    -------
    Policy
        Policy with original benefits, premiums and bonus payments
    """
    life_annuity = create_life_annuity(1000)
    payments = {
        ORIGINAL_POSITIVE: sum_products([
            life_annuity,
            create_deferred_disability_annuity(500),
        ]),
        ORIGINAL_NEGATIVE: sum_products([create_premium_payment(-200)]),
        BONUS_POSITIVE: life_annuity,
    }
    return Policy(
        policy_id=policy_id,
        age=age,
        gender=gender,
        expiry_age=expiry_age,
        initial_state=initial_state,
        payments=payments,
        initial_duration=initial_duration,
    )


def example_policies() -> dict[str, Policy]:
    """Example portfolio keyed by policy id."""
    policy = create_example_policy()
    return {policy.policy_id: policy}
