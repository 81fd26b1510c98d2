"""
State space and payment keys of the multi-state life insurance model.

Free-policy (paid-up) states mirror the standard states. They are entered
only from Active or Disabled through a paid-up conversion, after which the
policyholder stays in the free-policy half of the state space.
"""

from enum import Enum


class State(Enum):
    """Policy states. The value is the ordinal used for array indexing."""

    ACTIVE = 0
    DISABLED = 1
    DEAD = 2
    SURRENDER = 3
    FREE_POLICY_ACTIVE = 4
    FREE_POLICY_DISABLED = 5
    FREE_POLICY_DEAD = 6
    FREE_POLICY_SURRENDER = 7


class Gender(Enum):
    """Policyholder gender; intensities are gender specific."""

    MALE = "male"
    FEMALE = "female"


class PaymentStream(Enum):
    """Original guaranteed payments or bonus payments."""

    ORIGINAL = "original"
    BONUS = "bonus"


class Sign(Enum):
    """Benefits (positive) or premiums (negative)."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


class StateCollection(Enum):
    """Named subsets of the state space."""

    STANDARD = "standard"
    STANDARD_WITH_SURRENDER = "standard_with_surrender"
    FREE_POLICY = "free_policy"
    FREE_POLICY_WITH_SURRENDER = "free_policy_with_surrender"
    RHO_MODIFIED_FROM = "rho_modified_from"
    ALL = "all"


PaymentKey = tuple[PaymentStream, Sign]

ORIGINAL_POSITIVE: PaymentKey = (PaymentStream.ORIGINAL, Sign.POSITIVE)
ORIGINAL_NEGATIVE: PaymentKey = (PaymentStream.ORIGINAL, Sign.NEGATIVE)
BONUS_POSITIVE: PaymentKey = (PaymentStream.BONUS, Sign.POSITIVE)

_FREE_POLICY_TO_STANDARD: dict[State, State] = {
    State.FREE_POLICY_ACTIVE: State.ACTIVE,
    State.FREE_POLICY_DISABLED: State.DISABLED,
    State.FREE_POLICY_DEAD: State.DEAD,
    State.FREE_POLICY_SURRENDER: State.SURRENDER,
}

_COLLECTIONS: dict[StateCollection, tuple[State, ...]] = {
    StateCollection.STANDARD: (State.ACTIVE, State.DEAD, State.DISABLED),
    StateCollection.STANDARD_WITH_SURRENDER: (
        State.ACTIVE, State.DEAD, State.DISABLED, State.SURRENDER,
    ),
    StateCollection.FREE_POLICY: (
        State.FREE_POLICY_ACTIVE, State.FREE_POLICY_DEAD, State.FREE_POLICY_DISABLED,
    ),
    StateCollection.FREE_POLICY_WITH_SURRENDER: (
        State.FREE_POLICY_ACTIVE, State.FREE_POLICY_DEAD, State.FREE_POLICY_DISABLED,
        State.FREE_POLICY_SURRENDER,
    ),
    StateCollection.RHO_MODIFIED_FROM: (State.ACTIVE, State.DISABLED),
    StateCollection.ALL: tuple(State),
}


def is_free_policy_state(state: State) -> bool:
    """Whether ``state`` belongs to the paid-up half of the state space."""
    return state in _FREE_POLICY_TO_STANDARD


def to_standard_state(state: State) -> State:
    """
    Map a free-policy state to its standard counterpart.

    Parameters
    ----------
    state : State
        A free-policy state

    Returns
    -------
    State
        The mirrored standard state

    Raises
    ------
    ValueError
        If ``state`` is not a free-policy state
    """
    try:
        return _FREE_POLICY_TO_STANDARD[state]
    except KeyError:
        raise ValueError(f"{state.name} is not a free policy state") from None


def to_reserve_state(state: State) -> State:
    """Standard state whose technical reserve applies to ``state``."""
    if is_free_policy_state(state):
        return to_standard_state(state)
    return state


def states_in(collection: StateCollection) -> tuple[State, ...]:
    """States belonging to a named collection."""
    return _COLLECTIONS[collection]


def less_than_indicator(x: float, y: float) -> float:
    """1.0 if x <= y, otherwise 0.0."""
    return 1.0 if x <= y else 0.0


def greater_than_indicator(x: float, y: float) -> float:
    """1.0 if x >= y, otherwise 0.0."""
    return 1.0 if x >= y else 0.0
