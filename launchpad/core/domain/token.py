"""
Token — Модели выпущенного актива и его кривой

CurveState: виртуальные резервы и реальные остатки (один на актив).
AssetRecord: метаданные и lifecycle статус (один на актив).

Immutable Pydantic модели. Изменения создают новый экземпляр через
model_copy(update=...); хранилищем владеет LifecycleStateMachine.
"""

from enum import Enum

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class TokenStatus(str, Enum):
    """
    Lifecycle статус актива.

    UNCREATED → TRADING → PENDING_GRADUATION → GRADUATED
    PAUSED / BLACKLISTED — side-states из TRADING и обратно.
    """

    UNCREATED = "UNCREATED"
    TRADING = "TRADING"
    PENDING_GRADUATION = "PENDING_GRADUATION"
    GRADUATED = "GRADUATED"
    PAUSED = "PAUSED"
    BLACKLISTED = "BLACKLISTED"


class TransferMode(str, Enum):
    """Режим переводов токена (tri-state AssetContract)."""

    RESTRICTED = "RESTRICTED"
    CONTROLLED = "CONTROLLED"
    NORMAL = "NORMAL"


# =============================================================================
# CURVE STATE
# =============================================================================


class CurveState(BaseModel):
    """
    Состояние bonding curve актива.

    Инвариант: quote_reserve * base_reserve <= invariant после любой сделки.
    invariant фиксируется при создании и никогда не пересчитывается.
    """

    quote_reserve: int = Field(..., gt=0, description="Виртуальный quote резерв")
    base_reserve: int = Field(..., gt=0, description="Виртуальный token резерв")
    invariant: int = Field(..., gt=0, description="q0 * b0 (фиксирован)")
    available_supply: int = Field(..., ge=0, description="Реальный остаток для продажи")
    collected_quote: int = Field(..., ge=0, description="Реально удерживаемый quote")
    sale_amount: int = Field(..., gt=0, description="Исходный объём продажи")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_bounds(self) -> "CurveState":
        if self.quote_reserve * self.base_reserve > self.invariant:
            raise ValueError(
                f"reserve product {self.quote_reserve * self.base_reserve} "
                f"exceeds invariant {self.invariant}"
            )
        if self.available_supply > self.sale_amount:
            raise ValueError(
                f"available_supply {self.available_supply} exceeds sale_amount {self.sale_amount}"
            )
        return self

    @property
    def product(self) -> int:
        return self.quote_reserve * self.base_reserve


# =============================================================================
# ASSET RECORD
# =============================================================================


class AssetRecord(BaseModel):
    """
    Запись о выпущенном активе.

    Создаётся один раз при выпуске, изменяется только lifecycle переходами,
    никогда не удаляется.
    """

    asset: str = Field(..., min_length=1, description="Адрес актива")
    name: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=1)
    total_supply: int = Field(..., gt=0)
    creator: str = Field(..., min_length=1)
    request_id: str = Field(..., min_length=1)
    created_at: int = Field(..., ge=0, description="Время создания (сек)")
    launch_time: int = Field(..., ge=0, description="Время старта торгов (сек)")
    status: TokenStatus = Field(default=TokenStatus.TRADING)
    pool: str = Field(..., min_length=1, description="Идентификатор liquidity pool")

    model_config = {"frozen": True}
