"""
Occupation probabilities vs an adaptive ODE solver.

[T1] With duration-independent intensities the semi-Markov model reduces to
     a Markov chain: dp/dt = p Q(x + t), solved here by scipy's RK45.
     The forward scheme is first order, so agreement is O(μh).
"""

import numpy as np
import pytest
from scipy.integrate import solve_ivp

from semi_markov_projection.config.tolerances import EULER_DISCRETIZATION_TOLERANCE
from semi_markov_projection.engines.grid import DurationTimeGrid
from semi_markov_projection.engines.probability import ProbabilityEngine
from semi_markov_projection.models.policy import Policy
from semi_markov_projection.models.states import Gender, State

STATES = (State.ACTIVE, State.DISABLED, State.DEAD)


def generator(model, gender: Gender, age: float) -> np.ndarray:
    """Intensity matrix Q(age) over Active, Disabled, Dead."""
    q = np.zeros((len(STATES), len(STATES)))
    for i, from_state in enumerate(STATES):
        for j, to_state in enumerate(STATES):
            if i != j:
                q[i, j] = model.intensity(gender, from_state, to_state)(age, 0.0)
        q[i, i] = -q[i].sum()
    return q


def kolmogorov_forward(model, policy: Policy, times: np.ndarray) -> np.ndarray:
    initial = np.array([1.0 if s is policy.initial_state else 0.0 for s in STATES])
    solution = solve_ivp(
        lambda t, p: p @ generator(model, policy.gender, policy.age + t),
        (times[0], times[-1]),
        initial,
        t_eval=times,
        rtol=1e-10,
        atol=1e-12,
    )
    assert solution.success
    return solution.y


@pytest.fixture(scope="module")
def markov_model(technical):
    model, _ = technical
    return model


class TestMarkovReduction:
    """Duration-independent intensities against Kolmogorov's forward ODE."""

    @pytest.mark.validation
    @pytest.mark.parametrize("initial_state", [State.ACTIVE, State.DISABLED])
    def test_occupation_matches_ode(self, markov_model, monthly_grid, initial_state) -> None:
        policy = Policy(
            policy_id="p",
            age=40.0,
            gender=Gender.MALE,
            expiry_age=40.0,
            initial_state=initial_state,
            initial_duration=1.0,
        )
        probabilities = ProbabilityEngine(markov_model, {"p": policy}, monthly_grid).calculate()
        n_time_points = monthly_grid.number_of_time_points(policy)
        times = np.arange(n_time_points) * monthly_grid.step_size
        expected = kolmogorov_forward(markov_model, policy, times)

        for i, state in enumerate(STATES):
            np.testing.assert_allclose(
                probabilities["p"][state].last_column(),
                expected[i],
                atol=EULER_DISCRETIZATION_TOLERANCE,
                err_msg=f"{state.name} occupation deviates from the ODE",
            )

    @pytest.mark.validation
    def test_error_shrinks_with_step(self, markov_model) -> None:
        """Halving the step roughly halves the error of the first-order scheme."""
        policy = Policy(
            policy_id="p",
            age=20.0,
            gender=Gender.FEMALE,
            expiry_age=20.0,
            initial_state=State.ACTIVE,
        )
        errors = []
        for step_size in (0.5, 0.25):
            grid = DurationTimeGrid(step_size)
            probabilities = ProbabilityEngine(markov_model, {"p": policy}, grid).calculate()
            n_time_points = grid.number_of_time_points(policy)
            times = np.arange(n_time_points) * step_size
            expected = kolmogorov_forward(markov_model, policy, times)
            dead = probabilities["p"][State.DEAD].last_column()
            errors.append(np.max(np.abs(dead - expected[2])))

        assert errors[1] < 0.75 * errors[0]
