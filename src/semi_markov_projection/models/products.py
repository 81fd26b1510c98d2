"""
Insurance products as state-wise payment functions.

A product holds continuous payment rates per state and lump sums per
transition, once on the technical basis (functions of time only) and once
on the market basis (functions of time and sojourn duration). Products
compose by pointwise summation per state and per transition.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from functools import partial

from ..config.settings import SETTINGS
from .states import State, greater_than_indicator, less_than_indicator

TechnicalPayment = Callable[[float], float]
MarketPayment = Callable[[float, float], float]


class ProductCollection(Enum):
    """Catalogue of product shapes."""

    LIFE_ANNUITY = "life_annuity"
    PREMIUM = "premium"
    DEFERRED_DISABILITY_ANNUITY = "deferred_disability_annuity"
    SUM_OF_PRODUCTS = "sum_of_products"


class SummedPayment:
    """Pointwise sum of payment functions, summed in the order given."""

    __slots__ = ("components",)

    def __init__(self, components: tuple[Callable[..., float], ...]):
        self.components = components

    def __call__(self, *args: float) -> float:
        return sum(component(*args) for component in self.components)


@dataclass(frozen=True)
class Product:
    """
    Payment functions of one product.

    Attributes
    ----------
    technical_continuous : Mapping[State, TechnicalPayment]
        b_j(t) on the technical basis
    technical_jump : Mapping[State, Mapping[State, TechnicalPayment]]
        b_jk(t) on the technical basis
    market_continuous : Mapping[State, MarketPayment]
        b_j(t, u) on the market basis
    market_jump : Mapping[State, Mapping[State, MarketPayment]]
        b_jk(t, u) on the market basis
    collection : ProductCollection
        Product shape, for diagnostics
    """

    technical_continuous: Mapping[State, TechnicalPayment] = field(default_factory=dict)
    technical_jump: Mapping[State, Mapping[State, TechnicalPayment]] = field(default_factory=dict)
    market_continuous: Mapping[State, MarketPayment] = field(default_factory=dict)
    market_jump: Mapping[State, Mapping[State, MarketPayment]] = field(default_factory=dict)
    collection: ProductCollection = ProductCollection.SUM_OF_PRODUCTS

    def technical_rate(self, state: State, time: float) -> float:
        """Technical continuous payment in ``state``; 0 when absent."""
        payment = self.technical_continuous.get(state)
        return payment(time) if payment is not None else 0.0

    def market_rate(self, state: State, time: float, duration: float) -> float:
        """Market continuous payment in ``state``; 0 when absent."""
        payment = self.market_continuous.get(state)
        return payment(time, duration) if payment is not None else 0.0

    def technical_lump_sum(self, from_state: State, to_state: State) -> TechnicalPayment | None:
        """Technical jump payment function, None when absent."""
        return self.technical_jump.get(from_state, {}).get(to_state)

    def __add__(self, other: "Product") -> "Product":
        return sum_products([self, other])


def _sum_state_payments(
    mappings: Iterable[Mapping[State, Callable[..., float]]],
) -> dict[State, Callable[..., float]]:
    grouped: dict[State, list[Callable[..., float]]] = {}
    for mapping in mappings:
        for state, payment in mapping.items():
            grouped.setdefault(state, []).append(payment)
    return {state: SummedPayment(tuple(payments)) for state, payments in grouped.items()}


def _sum_jump_payments(
    mappings: Iterable[Mapping[State, Mapping[State, Callable[..., float]]]],
) -> dict[State, dict[State, Callable[..., float]]]:
    grouped: dict[State, list[Mapping[State, Callable[..., float]]]] = {}
    for mapping in mappings:
        for from_state, by_to in mapping.items():
            grouped.setdefault(from_state, []).append(by_to)
    return {from_state: _sum_state_payments(parts) for from_state, parts in grouped.items()}


def sum_products(products: Iterable[Product]) -> Product:
    """
    Combine products by pointwise summation per state and per transition.

    Parameters
    ----------
    products : Iterable[Product]
        Products to combine

    Returns
    -------
    Product
        Product whose payments are the sums of the input payments
    """
    products = list(products)
    return Product(
        technical_continuous=_sum_state_payments(p.technical_continuous for p in products),
        technical_jump=_sum_jump_payments(p.technical_jump for p in products),
        market_continuous=_sum_state_payments(p.market_continuous for p in products),
        market_jump=_sum_jump_payments(p.market_jump for p in products),
        collection=ProductCollection.SUM_OF_PRODUCTS,
    )


# =============================================================================
# Product Factories
# =============================================================================

def _from_age(value: float, start_age: float, age: float) -> float:
    return greater_than_indicator(age, start_age) * value


def _until_age(value: float, end_age: float, age: float) -> float:
    return less_than_indicator(age, end_age) * value


def _ignore_duration(payment: TechnicalPayment, age: float, duration: float) -> float:
    return payment(age)


def _deferred_until_age(
    value: float, end_age: float, deferral: float, age: float, duration: float
) -> float:
    return less_than_indicator(age, end_age) * greater_than_indicator(duration, deferral) * value


def create_life_annuity(value: float, pension_age: float | None = None) -> Product:
    """
    Life annuity paying ``value`` per year from pension age while alive.

    Pays in Active and Disabled on both bases.
    """
    pension_age = SETTINGS.product.pension_age if pension_age is None else pension_age
    technical = partial(_from_age, value, pension_age)
    market = partial(_ignore_duration, technical)
    return Product(
        technical_continuous={State.ACTIVE: technical, State.DISABLED: technical},
        market_continuous={State.ACTIVE: market, State.DISABLED: market},
        collection=ProductCollection.LIFE_ANNUITY,
    )


def create_premium_payment(value: float, pension_age: float | None = None) -> Product:
    """
    Continuous premium ``value`` (negative) per year until pension age.

    Premiums are paid in Active and Disabled; the deferred disability
    annuity, not a waiver, covers disability.
    """
    pension_age = SETTINGS.product.pension_age if pension_age is None else pension_age
    technical = partial(_until_age, value, pension_age)
    market = partial(_ignore_duration, technical)
    return Product(
        technical_continuous={State.ACTIVE: technical, State.DISABLED: technical},
        market_continuous={State.ACTIVE: market, State.DISABLED: market},
        collection=ProductCollection.PREMIUM,
    )


def create_deferred_disability_annuity(
    value: float,
    pension_age: float | None = None,
    deferral: float | None = None,
) -> Product:
    """
    Disability annuity running until pension age or reactivation.

    On the market basis it pays only after ``deferral`` years of disability
    and restarts the deferral on every new disablement. The technical basis
    has no duration, so it pays from the moment of disablement.
    """
    pension_age = SETTINGS.product.pension_age if pension_age is None else pension_age
    deferral = SETTINGS.product.disability_deferral if deferral is None else deferral
    return Product(
        technical_continuous={State.DISABLED: partial(_until_age, value, pension_age)},
        market_continuous={
            State.DISABLED: partial(_deferred_until_age, value, pension_age, deferral)
        },
        collection=ProductCollection.DEFERRED_DISABILITY_ANNUITY,
    )
