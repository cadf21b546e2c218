"""Vesting — блокировка pre-purchase токенов создателя (Burn / Cliff / Linear)."""

from .engine import ScheduleSpec, VestingEngine, compute_claimable

__all__ = [
    "ScheduleSpec",
    "VestingEngine",
    "compute_claimable",
]
