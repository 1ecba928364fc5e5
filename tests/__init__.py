"""Test suite for infofield.

This package contains:
- Unit tests for constants, the value type, grid addressing and perturbations
- Engine property tests (boundedness, determinism, locality, boundary modes)
- Smoke tests for the runner and CLI
"""
