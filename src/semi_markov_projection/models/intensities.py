"""
Transition intensity model for the semi-Markov state process.

Theory
------
[T1] μ_jk(x, u) = rate of jumping from j to k at age x after a sojourn of
     length u in j.
[T1] μ_j·(x, u) = Σ_{k≠j} μ_jk(x, u) = total rate of leaving j.

The table is a fixed len(State) × len(State) grid of callables per gender.
Unregistered transitions hold a shared zero function and the diagonal
holds the total outflow, derived once from the registered off-diagonal
entries. The model is immutable after construction and safe to share
between concurrently running per-policy tasks.
"""

from collections.abc import Callable, Iterable, Mapping

import numpy as np

from .states import Gender, State

IntensityFunction = Callable[[float, float], float]
IntensityRegistration = tuple[Gender, State, State, IntensityFunction]


def zero_intensity(age: float, duration: float) -> float:
    """Rate of an unregistered transition."""
    return 0.0


class TotalOutflow:
    """
    Diagonal intensity μ_j·, the sum of the registered outflows of j.

    Components are summed in registration order.
    """

    __slots__ = ("components",)

    def __init__(self, components: tuple[IntensityFunction, ...]):
        self.components = components

    def __call__(self, age: float, duration: float) -> float:
        return sum(component(age, duration) for component in self.components)


class TransitionIntensityModel:
    """
    Gender-keyed table of age/duration dependent transition intensities.

    Parameters
    ----------
    intensities : Mapping[Gender, Mapping[State, Mapping[State, IntensityFunction]]]
        Off-diagonal intensities, gender → from state → to state → function.
        Diagonal entries are derived and must not be supplied.

    Examples
    --------
    >>> model = TransitionIntensityModel({
    ...     Gender.MALE: {State.ACTIVE: {State.DEAD: lambda x, u: 0.01}},
    ... })
    >>> model.intensity(Gender.MALE, State.ACTIVE, State.ACTIVE)(40.0, 0.0)
    0.01
    """

    def __init__(
        self,
        intensities: Mapping[Gender, Mapping[State, Mapping[State, IntensityFunction]]],
    ):
        n_states = len(State)
        tables: dict[Gender, tuple[tuple[IntensityFunction, ...], ...]] = {}
        registered: dict[Gender, np.ndarray] = {}
        targets: dict[Gender, dict[State, tuple[State, ...]]] = {}
        seen_states: set[State] = set()

        for gender, by_from in intensities.items():
            table: list[list[IntensityFunction]] = [
                [zero_intensity] * n_states for _ in range(n_states)
            ]
            mask = np.zeros((n_states, n_states), dtype=bool)
            gender_targets: dict[State, tuple[State, ...]] = {}

            for from_state, by_to in by_from.items():
                if from_state in by_to:
                    raise ValueError(
                        f"Diagonal intensity {from_state.name} -> {from_state.name} "
                        f"for {gender.name} is derived and must not be registered"
                    )
                outflow_states = tuple(by_to.keys())
                for to_state in outflow_states:
                    table[from_state.value][to_state.value] = by_to[to_state]
                    mask[from_state.value, to_state.value] = True
                    seen_states.add(to_state)
                if outflow_states:
                    table[from_state.value][from_state.value] = TotalOutflow(
                        tuple(by_to[to_state] for to_state in outflow_states)
                    )
                    mask[from_state.value, from_state.value] = True
                gender_targets[from_state] = outflow_states
                seen_states.add(from_state)

            mask.flags.writeable = False
            tables[gender] = tuple(tuple(row) for row in table)
            registered[gender] = mask
            targets[gender] = gender_targets

        self._tables = tables
        self._registered = registered
        self._targets = targets
        self._state_space = tuple(sorted(seen_states, key=lambda s: s.value))

    @classmethod
    def from_registrations(
        cls, registrations: Iterable[IntensityRegistration]
    ) -> "TransitionIntensityModel":
        """
        Build a model from flat (gender, from, to, function) records.

        Registration order is kept; it fixes the summation order of the
        derived diagonal.
        """
        nested: dict[Gender, dict[State, dict[State, IntensityFunction]]] = {}
        for gender, from_state, to_state, function in registrations:
            nested.setdefault(gender, {}).setdefault(from_state, {})[to_state] = function
        return cls(nested)

    @property
    def genders(self) -> tuple[Gender, ...]:
        """Genders with a registered table."""
        return tuple(self._tables)

    @property
    def state_space(self) -> tuple[State, ...]:
        """Every state appearing in a registered transition, by ordinal."""
        return self._state_space

    def _gender_table(self, gender: Gender) -> tuple[tuple[IntensityFunction, ...], ...]:
        try:
            return self._tables[gender]
        except KeyError:
            raise KeyError(f"No intensities registered for gender {gender.name}") from None

    def intensity(self, gender: Gender, from_state: State, to_state: State) -> IntensityFunction:
        """Intensity function; zero for unregistered transitions."""
        return self._gender_table(gender)[from_state.value][to_state.value]

    def total_outflow(self, gender: Gender, state: State) -> IntensityFunction:
        """Derived diagonal μ_j· of ``state``."""
        return self.intensity(gender, state, state)

    def has_transition(self, gender: Gender, from_state: State, to_state: State) -> bool:
        """Whether ``from_state -> to_state`` is registered (diagonal: has outflows)."""
        self._gender_table(gender)
        return bool(self._registered[gender][from_state.value, to_state.value])

    def targets(self, gender: Gender, state: State) -> tuple[State, ...]:
        """Off-diagonal outflow targets of ``state`` in registration order."""
        self._gender_table(gender)
        return self._targets[gender].get(state, ())

    def sources(self, gender: Gender, to_state: State) -> tuple[State, ...]:
        """States l with a registered l -> ``to_state`` intensity, by ordinal."""
        self._gender_table(gender)
        column = self._registered[gender][:, to_state.value]
        return tuple(state for state in State if column[state.value])
