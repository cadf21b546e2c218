"""
Test suite for launchpad

Contains:
- tests/unit/          : Unit tests for individual modules
"""
