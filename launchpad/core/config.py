"""
Config — Параметры launchpad

FeeConfig: admin-mutable ставки и суммы. validate_assignment=True —
каждая запись проверяется по диапазону (pydantic.ValidationError при выходе).
FeeRecipients: адреса получателей комиссий и маржи.
LaunchpadParams: фиксированные константы протокола.

Все ставки — basis points (1/10_000).
"""

from dataclasses import dataclass
from typing import Final

from pydantic import BaseModel, Field

from launchpad.core.domain.units import WAD


# =============================================================================
# ЛИМИТЫ
# =============================================================================

MAX_CREATION_FEE: Final[int] = WAD  # 1 quote unit
MAX_PRE_BUY_FEE_BPS: Final[int] = 600  # 6%
MAX_TRADING_FEE_BPS: Final[int] = 200  # 2%
MAX_GRADUATE_FEE_BPS: Final[int] = 1_000  # 10% на каждую сторону
MAX_MIN_LOCK_DURATION: Final[int] = 5 * 365 * 86_400

SECONDS_PER_DAY: Final[int] = 86_400


# =============================================================================
# FEE CONFIG
# =============================================================================


class FeeConfig(BaseModel):
    """
    Admin-mutable конфигурация комиссий.

    Значения по умолчанию: creation 0.01, pre-buy 3%, trading 1%,
    graduation platform 5% / creator 2%, min lock 1 день.
    """

    creation_fee: int = Field(
        default=WAD // 100, ge=0, le=MAX_CREATION_FEE, description="Базовая плата за создание"
    )
    pre_buy_fee_bps: int = Field(default=300, ge=0, le=MAX_PRE_BUY_FEE_BPS)
    trading_fee_bps: int = Field(default=100, ge=0, le=MAX_TRADING_FEE_BPS)
    graduate_platform_fee_bps: int = Field(default=500, ge=0, le=MAX_GRADUATE_FEE_BPS)
    graduate_creator_fee_bps: int = Field(default=200, ge=0, le=MAX_GRADUATE_FEE_BPS)
    min_lock_duration: int = Field(
        default=SECONDS_PER_DAY, ge=0, le=MAX_MIN_LOCK_DURATION, description="Мин. Linear lock (сек)"
    )
    min_margin: int = Field(default=0, ge=0, description="Минимальная маржа, если она внесена")

    model_config = {"validate_assignment": True}


class FeeRecipients(BaseModel):
    """Получатели выплат. treasury — fallback для отклонённых выплат."""

    treasury: str = Field(..., min_length=1)
    platform_fee_receiver: str = Field(..., min_length=1)
    margin_receiver: str = Field(..., min_length=1)

    model_config = {"validate_assignment": True}


# =============================================================================
# ПРОТОКОЛЬНЫЕ КОНСТАНТЫ
# =============================================================================


@dataclass(frozen=True)
class LaunchpadParams:
    """
    Фиксированные параметры протокола.

    - max_initial_buy_bps: 9_990 (0.1% минимального float)
    - request_expiry_window: время жизни подписанного запроса
    - max_trade_deadline_window: deadline не дальше 1 дня
    - max_launch_delay: максимальная отсрочка старта торгов
    - liquidity_floor: порог available_supply для PENDING_GRADUATION
    """

    max_initial_buy_bps: int = 9_990
    request_expiry_window: int = 3_600
    max_trade_deadline_window: int = SECONDS_PER_DAY
    max_launch_delay: int = 30 * SECONDS_PER_DAY
    liquidity_floor: int = WAD
