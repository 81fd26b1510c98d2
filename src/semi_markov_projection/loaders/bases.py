"""
Intensity bases: market (semi-Markov) and technical (Markov).

Theory
------
[T1] Gompertz–Makeham in base 10: μ(x) = a + 10^(b·x + c - 10)
[T1] Market disability and mortality are gender specific; reactivation and
     disabled mortality depend on the sojourn in disability (≤ 2 years vs
     longer). Surrender stops at 60, paid-up conversion at pension age.
[T1] Free-policy states mirror the standard transitions with the same
     intensities.
[T1] Makeham terms are capped at INTENSITY_CAP: beyond age ~105 they grow
     past any rate an explicit monthly step can resolve.
[T2] Market basis: Danish FSA benchmark (2020). Technical basis: Danish
     FSA filed technical basis, unisex, 2% technical interest.
"""

from functools import partial

from ..config.settings import SETTINGS
from ..models.intensities import IntensityRegistration, TransitionIntensityModel
from ..models.states import Gender, State, less_than_indicator

# =============================================================================
# Parametric forms
# =============================================================================


def makeham(a: float, b: float, c: float, age: float, duration: float) -> float:
    """a + 10^(b·age + c - 10); duration is ignored."""
    return a + 10.0 ** (b * age + c - 10)


def floored_makeham(
    a: float, b: float, c: float, floor: float, age: float, duration: float
) -> float:
    """Makeham intensity bounded below by ``floor``."""
    return max(makeham(a, b, c, age, duration), floor)


def capped(intensity, cap: float, age: float, duration: float) -> float:
    """``intensity`` bounded above by ``cap``."""
    return min(intensity(age, duration), cap)


def linear_surrender(
    level: float, slope: float, from_age: float, until_age: float, age: float, duration: float
) -> float:
    """Surrender rate falling linearly after ``from_age``; zero after ``until_age``."""
    return (level - slope * max(age - from_age, 0)) * less_than_indicator(age, until_age)


def constant_until(rate: float, until_age: float, age: float, duration: float) -> float:
    """Constant rate until ``until_age``."""
    return rate * less_than_indicator(age, until_age)


def reactivation(
    short: tuple[float, float, float],
    long: tuple[float, float, float],
    threshold: float,
    age: float,
    duration: float,
) -> float:
    """
    Duration-dependent reactivation max(0, a - b·max(age, c)).

    ``short`` applies while duration <= ``threshold``, ``long`` after.
    """
    a, b, c = short if duration <= threshold else long
    return max(0.0, a - b * max(age, c))


def disabled_mortality(
    short: tuple[float, float, float],
    long: tuple[float, float, float],
    threshold: float,
    age: float,
    duration: float,
) -> float:
    """Duration-dependent Makeham mortality of the disabled."""
    a, b, c = short if duration <= threshold else long
    return makeham(a, b, c, age, duration)


# =============================================================================
# Market basis
# =============================================================================

INTENSITY_CAP = 10.0  # Per year; keeps μh < 1 on a monthly grid

SELECT_PERIOD = 2.0  # Years of disability with select reactivation/mortality

ACTIVE_DISABLED_FLOOR = 1e-4

_MARKET_PARAMETERS: dict[Gender, dict[str, tuple[float, ...]]] = {
    Gender.MALE: {
        "active_disabled": (0.000075, 0.0386, 5.371456),
        "active_dead": (0.000069, 0.049553, 4.776691),
        "reactivation_short": (0.485408, 0.006058, 24),
        "reactivation_long": (0.103816, 0.001861, 29),
        "disabled_dead_short": (0.019292, 0.047961, 6.030109),
        "disabled_dead_long": (0.010339, 0.05049, 5.070927),
    },
    Gender.FEMALE: {
        "active_disabled": (-0.000908, 0.026539, 6.591359),
        "active_dead": (0.000049, 0.049055, 4.667086),
        "reactivation_short": (0.751028, 0.010992, 24),
        "reactivation_long": (0.155466, 0.003030, 29),
        "disabled_dead_short": (-0.182547, 0.00345, 9.166944),
        "disabled_dead_long": (0.005539, 0.076478, 3.266007),
    },
}


def market_basis_registrations(
    pension_age: float | None = None,
) -> list[IntensityRegistration]:
    """
    Market basis as flat (gender, from, to, intensity) records.

    Order per gender: Active outflows, Disabled outflows, then the
    free-policy mirrors. The order fixes the diagonal summation order.
    """
    pension_age = SETTINGS.product.pension_age if pension_age is None else pension_age
    surrender = partial(linear_surrender, 0.0522, 0.0011, 30, 60)
    paid_up = partial(constant_until, 0.08, pension_age)

    registrations: list[IntensityRegistration] = []
    for gender, parameters in _MARKET_PARAMETERS.items():
        active_disabled = partial(
            capped,
            partial(floored_makeham, *parameters["active_disabled"], ACTIVE_DISABLED_FLOOR),
            INTENSITY_CAP,
        )
        active_dead = partial(
            capped, partial(makeham, *parameters["active_dead"]), INTENSITY_CAP
        )
        disabled_active = partial(
            reactivation,
            parameters["reactivation_short"],
            parameters["reactivation_long"],
            SELECT_PERIOD,
        )
        disabled_dead = partial(
            capped,
            partial(
                disabled_mortality,
                parameters["disabled_dead_short"],
                parameters["disabled_dead_long"],
                SELECT_PERIOD,
            ),
            INTENSITY_CAP,
        )
        registrations.extend([
            (gender, State.ACTIVE, State.DISABLED, active_disabled),
            (gender, State.ACTIVE, State.DEAD, active_dead),
            (gender, State.ACTIVE, State.SURRENDER, surrender),
            (gender, State.ACTIVE, State.FREE_POLICY_ACTIVE, paid_up),
            (gender, State.DISABLED, State.ACTIVE, disabled_active),
            (gender, State.DISABLED, State.DEAD, disabled_dead),
            (gender, State.FREE_POLICY_ACTIVE, State.FREE_POLICY_DISABLED, active_disabled),
            (gender, State.FREE_POLICY_ACTIVE, State.FREE_POLICY_DEAD, active_dead),
            (gender, State.FREE_POLICY_ACTIVE, State.FREE_POLICY_SURRENDER, surrender),
            (gender, State.FREE_POLICY_DISABLED, State.FREE_POLICY_ACTIVE, disabled_active),
            (gender, State.FREE_POLICY_DISABLED, State.FREE_POLICY_DEAD, disabled_dead),
        ])
    return registrations


def market_basis_intensities(pension_age: float | None = None) -> TransitionIntensityModel:
    """
    Market basis transition intensities for both genders.

    Parameters
    ----------
    pension_age : float, optional
        Age after which paid-up conversion stops. Defaults to
        SETTINGS.product.pension_age.

    Returns
    -------
    TransitionIntensityModel
        Duration-dependent model over all eight states

    Examples
    --------
    >>> model = market_basis_intensities()
    >>> model.intensity(Gender.MALE, State.ACTIVE, State.SURRENDER)(65.0, 0.0)
    0.0
    """
    return TransitionIntensityModel.from_registrations(market_basis_registrations(pension_age))


# =============================================================================
# Technical basis
# =============================================================================

TECHNICAL_ACTIVE_DISABLED = (0.000400, 0.048, 5.26)
TECHNICAL_MORTALITY = (0.000600, 0.040, 5.6)


def technical_basis_registrations() -> list[IntensityRegistration]:
    """Unisex technical basis as flat records, identical for both genders."""
    active_disabled = partial(
        capped, partial(makeham, *TECHNICAL_ACTIVE_DISABLED), INTENSITY_CAP
    )
    mortality = partial(capped, partial(makeham, *TECHNICAL_MORTALITY), INTENSITY_CAP)
    registrations: list[IntensityRegistration] = []
    for gender in Gender:
        registrations.extend([
            (gender, State.ACTIVE, State.DISABLED, active_disabled),
            (gender, State.ACTIVE, State.DEAD, mortality),
            (gender, State.DISABLED, State.DEAD, mortality),
        ])
    return registrations


def technical_basis(
    interest: float | None = None,
) -> tuple[TransitionIntensityModel, float]:
    """
    Technical basis intensities and technical interest.

    Returns
    -------
    tuple[TransitionIntensityModel, float]
        Model over Active, Disabled, Dead and the interest rate (default
        SETTINGS.technical.interest)
    """
    interest = SETTINGS.technical.interest if interest is None else interest
    return (
        TransitionIntensityModel.from_registrations(technical_basis_registrations()),
        interest,
    )
