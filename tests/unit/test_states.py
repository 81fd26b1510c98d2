"""
Tests for the state space - models/states.py.
"""

import pytest

from semi_markov_projection.models.states import (
    State,
    StateCollection,
    greater_than_indicator,
    is_free_policy_state,
    less_than_indicator,
    states_in,
    to_reserve_state,
    to_standard_state,
)


class TestFreePolicyMapping:
    """Tests for the free-policy ↔ standard mirror."""

    @pytest.mark.parametrize(
        "free_policy_state, standard_state",
        [
            (State.FREE_POLICY_ACTIVE, State.ACTIVE),
            (State.FREE_POLICY_DISABLED, State.DISABLED),
            (State.FREE_POLICY_DEAD, State.DEAD),
            (State.FREE_POLICY_SURRENDER, State.SURRENDER),
        ],
    )
    def test_to_standard_state(self, free_policy_state: State, standard_state: State) -> None:
        """Each free-policy state mirrors one standard state."""
        assert to_standard_state(free_policy_state) is standard_state
        assert to_reserve_state(free_policy_state) is standard_state

    @pytest.mark.parametrize("state", [State.ACTIVE, State.DISABLED, State.DEAD, State.SURRENDER])
    def test_standard_state_raises(self, state: State) -> None:
        """Standard states have no standard counterpart."""
        with pytest.raises(ValueError, match="not a free policy state"):
            to_standard_state(state)

    def test_to_reserve_state_keeps_standard_states(self) -> None:
        """Standard states carry their own reserve."""
        assert to_reserve_state(State.DISABLED) is State.DISABLED

    def test_is_free_policy_state(self) -> None:
        """Half of the state space is paid-up."""
        assert sum(is_free_policy_state(s) for s in State) == 4
        assert not is_free_policy_state(State.ACTIVE)


class TestCollections:
    """Tests for named state collections."""

    def test_standard(self) -> None:
        assert set(states_in(StateCollection.STANDARD)) == {
            State.ACTIVE, State.DEAD, State.DISABLED,
        }

    def test_free_policy_with_surrender(self) -> None:
        assert all(
            is_free_policy_state(s)
            for s in states_in(StateCollection.FREE_POLICY_WITH_SURRENDER)
        )
        assert len(states_in(StateCollection.FREE_POLICY_WITH_SURRENDER)) == 4

    def test_rho_sources(self) -> None:
        assert states_in(StateCollection.RHO_MODIFIED_FROM) == (State.ACTIVE, State.DISABLED)

    def test_all(self) -> None:
        assert states_in(StateCollection.ALL) == tuple(State)

    def test_ordinals(self) -> None:
        """Ordinals are dense and start at zero."""
        assert [s.value for s in State] == list(range(8))


class TestIndicators:
    """Tests for age indicators (both inclusive)."""

    def test_less_than_inclusive(self) -> None:
        assert less_than_indicator(67.0, 67.0) == 1.0
        assert less_than_indicator(67.5, 67.0) == 0.0

    def test_greater_than_inclusive(self) -> None:
        assert greater_than_indicator(67.0, 67.0) == 1.0
        assert greater_than_indicator(66.5, 67.0) == 0.0
