"""
Launchpad — fair-launch выпуск токенов с торговлей по bonding curve.

- core: curve math, ledger, access control, конфигурация, JSON контракты
- lifecycle: торговля и статусы актива до graduation
- vesting: блокировка pre-purchase создателя
- creation: выпуск актива по подписанному запросу
"""

from launchpad.core.access import AccessControl, Role
from launchpad.core.config import FeeConfig, FeeRecipients, LaunchpadParams
from launchpad.core.ledger import BURN_SINK, Ledger
from launchpad.creation import CreationOrchestrator
from launchpad.lifecycle import LifecycleStateMachine
from launchpad.system import Launchpad
from launchpad.vesting import VestingEngine

__version__ = "0.1.0"

__all__ = [
    "AccessControl",
    "Role",
    "FeeConfig",
    "FeeRecipients",
    "LaunchpadParams",
    "BURN_SINK",
    "Ledger",
    "CreationOrchestrator",
    "LifecycleStateMachine",
    "VestingEngine",
    "Launchpad",
]
