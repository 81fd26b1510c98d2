"""
Tests for Tolerance Framework - config/tolerances.py.

Verifies tolerance values, tier ordering and the tolerance registry.
"""

import pytest

from semi_markov_projection.config.tolerances import (
    EULER_DISCRETIZATION_TOLERANCE,
    GOLDEN_RELATIVE_TOLERANCE,
    INTENSITY_CONSISTENCY_TOLERANCE,
    INTENSITY_UPPER_BOUND,
    NORMALIZATION_TOLERANCE,
    RECURSION_TOLERANCE,
    REGRESSION_TOLERANCE,
    TOLERANCE_REGISTRY,
    get_tolerance,
)


class TestToleranceValues:
    """Tests for the tolerance constants."""

    def test_analytical_tier_is_tight(self) -> None:
        assert NORMALIZATION_TOLERANCE <= 1e-12
        assert REGRESSION_TOLERANCE <= NORMALIZATION_TOLERANCE
        assert INTENSITY_CONSISTENCY_TOLERANCE <= NORMALIZATION_TOLERANCE

    def test_tier_ordering(self) -> None:
        """Oracle comparisons are looser than closed-form recursions."""
        assert RECURSION_TOLERANCE < EULER_DISCRETIZATION_TOLERANCE
        assert GOLDEN_RELATIVE_TOLERANCE <= RECURSION_TOLERANCE

    def test_intensity_bound(self) -> None:
        assert INTENSITY_UPPER_BOUND == 10.0


class TestToleranceRegistry:
    """Tests for dynamic tolerance lookup."""

    def test_registry_matches_constants(self) -> None:
        assert TOLERANCE_REGISTRY["normalization"] == NORMALIZATION_TOLERANCE
        assert TOLERANCE_REGISTRY["euler_discretization"] == EULER_DISCRETIZATION_TOLERANCE

    @pytest.mark.parametrize("name", list(TOLERANCE_REGISTRY))
    def test_get_tolerance(self, name: str) -> None:
        assert get_tolerance(name) == TOLERANCE_REGISTRY[name]

    def test_unknown_tolerance_raises(self) -> None:
        with pytest.raises(KeyError, match="Unknown tolerance 'bogus'"):
            get_tolerance("bogus")

    def test_all_positive(self) -> None:
        assert all(value > 0 for value in TOLERANCE_REGISTRY.values())
