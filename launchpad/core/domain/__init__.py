"""
Domain models and value objects.

Contains launchpad entities: CurveState, AssetRecord, VestingSchedule,
CreateTokenRequest and the observable events.
"""

from launchpad.core.domain.events import (
    Event,
    FeeConfigUpdated,
    MarginDeposited,
    PayoutRedirected,
    StatusChanged,
    TokenBought,
    TokenCreated,
    TokenGraduated,
    TokensBurned,
    TokensClaimed,
    TokenSold,
    VestingScheduleCreated,
    VestingScheduleRevoked,
)
from launchpad.core.domain.request import CreateTokenRequest, Credential
from launchpad.core.domain.token import AssetRecord, CurveState, TokenStatus, TransferMode
from launchpad.core.domain.units import (
    BPS_DENOMINATOR,
    WAD,
    apply_bps,
    mul_div,
    validate_amount,
    validate_bps,
)
from launchpad.core.domain.vesting import VestingAllocation, VestingMode, VestingSchedule

__all__ = [
    # Units module
    "BPS_DENOMINATOR",
    "WAD",
    "apply_bps",
    "mul_div",
    "validate_amount",
    "validate_bps",
    # Token models
    "AssetRecord",
    "CurveState",
    "TokenStatus",
    "TransferMode",
    # Vesting models
    "VestingAllocation",
    "VestingMode",
    "VestingSchedule",
    # Request
    "CreateTokenRequest",
    "Credential",
    # Events
    "Event",
    "FeeConfigUpdated",
    "MarginDeposited",
    "PayoutRedirected",
    "StatusChanged",
    "TokenBought",
    "TokenCreated",
    "TokenGraduated",
    "TokensBurned",
    "TokensClaimed",
    "TokenSold",
    "VestingScheduleCreated",
    "VestingScheduleRevoked",
]
