"""
Core domain models, mathematical primitives, and invariants.

This module contains the foundational building blocks (curve math, ledger,
access control, configuration) that the lifecycle, vesting and creation
components are built on.
"""
