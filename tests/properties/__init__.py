"""
Property-based testing using Hypothesis.

This package contains property tests that verify model invariants hold
across randomly generated inputs.

Modules:
    test_intensity_properties: Market basis bounds and diagonal consistency
    test_probability_properties: Normalization, non-negativity, monotonicity in duration
    test_reserve_properties: Free-policy factor and reserve recursion invariants
"""
