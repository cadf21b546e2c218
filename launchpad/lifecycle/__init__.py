"""Lifecycle — торговля по bonding curve и статусы актива.

- UNCREATED → TRADING → PENDING_GRADUATION → GRADUATED
- PAUSED / BLACKLISTED как side-states TRADING
- Graduation: перенос ликвидности в пул с вечной блокировкой LP
"""

from .state_machine import (
    ALLOWED_TRANSITIONS,
    BuyResult,
    GraduationResult,
    LifecycleStateMachine,
    SellResult,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "LifecycleStateMachine",
    "BuyResult",
    "SellResult",
    "GraduationResult",
]
