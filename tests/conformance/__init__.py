"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the wall engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_atomicity.py - Failed purchases leave no trace
2. test_exclusivity.py - Sold blocks are never claimed twice
3. test_pricing_properties.py - Monotone demand pricing and bulk discounts
4. test_mapping.py - Coordinate mapper is a bijection
5. test_determinism.py - Replay and clone reproduce state exactly

These tests use hypothesis for property-based testing.
"""
