"""
Vesting — Модели графиков разблокировки

VestingAllocation: входной параметр запроса на создание (bps от total supply).
VestingSchedule: записанный график (asset, beneficiary, index).
"""

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from .units import BPS_DENOMINATOR


class VestingMode(str, Enum):
    """Режим разблокировки."""

    BURN = "BURN"
    CLIFF = "CLIFF"
    LINEAR = "LINEAR"


class VestingAllocation(BaseModel):
    """
    Аллокация части pre-purchase.

    start_time == 0 → старт в момент создания графика.
    """

    mode: VestingMode
    bps: int = Field(..., gt=0, le=BPS_DENOMINATOR, description="Доля total supply (bps)")
    start_time: int = Field(default=0, ge=0)
    duration: int = Field(default=0, ge=0, description="Длительность (сек)")

    model_config = {"frozen": True}


class VestingSchedule(BaseModel):
    """
    Записанный график.

    Инварианты:
    - claimed_amount <= total_amount
    - revoked монотонен (True никогда не сбрасывается)
    """

    asset: str = Field(..., min_length=1)
    beneficiary: str = Field(..., min_length=1)
    index: int = Field(..., ge=0)
    mode: VestingMode
    total_amount: int = Field(..., ge=0)
    start_time: int = Field(..., ge=0)
    end_time: int = Field(..., ge=0)
    claimed_amount: int = Field(default=0, ge=0)
    revoked: bool = False

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_amounts(self) -> "VestingSchedule":
        if self.claimed_amount > self.total_amount:
            raise ValueError(
                f"claimed_amount {self.claimed_amount} exceeds total_amount {self.total_amount}"
            )
        if self.end_time < self.start_time:
            raise ValueError("end_time must be >= start_time")
        return self

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.asset, self.beneficiary, self.index)

    @property
    def remaining(self) -> int:
        return self.total_amount - self.claimed_amount
