"""
Events — Наблюдаемые события launchpad

Потребляются off-chain индексаторами и тестами. Каждое событие —
immutable Pydantic модель; payload (model_dump(mode="json")) проверяется
по contracts/schema/events.json при эмиссии.
"""

from pydantic import BaseModel, Field

from .token import TokenStatus
from .vesting import VestingMode


class Event(BaseModel):
    """Базовое событие."""

    model_config = {"frozen": True}

    @property
    def event_name(self) -> str:
        """Имя события в events.json."""
        return type(self).__name__


# =============================================================================
# ASSET / TRADING
# =============================================================================


class TokenCreated(Event):
    asset: str
    creator: str
    request_id: str
    name: str
    symbol: str
    total_supply: int = Field(..., ge=0)
    sale_amount: int = Field(..., ge=0)
    quote_reserve: int = Field(..., ge=0)
    base_reserve: int = Field(..., ge=0)
    launch_time: int = Field(..., ge=0)
    initial_buy_tokens: int = Field(..., ge=0)
    initial_buy_quote: int = Field(..., ge=0)
    pool: str


class TokenBought(Event):
    asset: str
    buyer: str
    gross_quote: int = Field(..., ge=0, description="Фактически потрачено (net + fee)")
    net_quote: int = Field(..., ge=0)
    fee: int = Field(..., ge=0)
    refund: int = Field(..., ge=0)
    token_out: int = Field(..., ge=0)
    quote_reserve: int = Field(..., ge=0)
    base_reserve: int = Field(..., ge=0)
    available_supply: int = Field(..., ge=0)
    collected_quote: int = Field(..., ge=0)


class TokenSold(Event):
    asset: str
    seller: str
    token_in: int = Field(..., ge=0)
    gross_quote: int = Field(..., ge=0)
    net_quote: int = Field(..., ge=0)
    fee: int = Field(..., ge=0)
    quote_reserve: int = Field(..., ge=0)
    base_reserve: int = Field(..., ge=0)
    available_supply: int = Field(..., ge=0)
    collected_quote: int = Field(..., ge=0)


class TokenGraduated(Event):
    asset: str
    pool: str
    quote_to_liquidity: int = Field(..., ge=0)
    tokens_to_liquidity: int = Field(..., ge=0)
    liquidity_units: int = Field(..., ge=0)
    platform_quote: int = Field(..., ge=0)
    platform_tokens: int = Field(..., ge=0)
    creator_quote: int = Field(..., ge=0)
    creator_tokens: int = Field(..., ge=0)


class StatusChanged(Event):
    asset: str
    old_status: TokenStatus
    new_status: TokenStatus


class TokensBurned(Event):
    asset: str
    amount: int = Field(..., ge=0)


class MarginDeposited(Event):
    asset: str
    creator: str
    receiver: str
    amount: int = Field(..., ge=0)
    margin_time: int = Field(..., ge=0)


# =============================================================================
# VESTING
# =============================================================================


class VestingScheduleCreated(Event):
    asset: str
    beneficiary: str
    index: int = Field(..., ge=0)
    mode: VestingMode
    total_amount: int = Field(..., ge=0)
    start_time: int = Field(..., ge=0)
    end_time: int = Field(..., ge=0)


class TokensClaimed(Event):
    asset: str
    beneficiary: str
    index: int = Field(..., ge=0)
    amount: int = Field(..., ge=0)


class VestingScheduleRevoked(Event):
    asset: str
    beneficiary: str
    index: int = Field(..., ge=0)
    revoker: str
    paid_to_beneficiary: int = Field(..., ge=0)
    returned_amount: int = Field(..., ge=0)


# =============================================================================
# FUNDS / CONFIG
# =============================================================================


class PayoutRedirected(Event):
    intended_recipient: str
    treasury: str
    amount: int = Field(..., ge=0)
    reason: str


class FeeConfigUpdated(Event):
    changes: dict[str, int]
