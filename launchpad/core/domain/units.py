"""
Units — Централизованный модуль целочисленных единиц

Единственный допустимый способ работы с:
- basis points (1/10_000)
- суммами в минимальных единицах (int, 18 decimals)

Все деления — floor (`//`) над неотрицательными int.
Округление всегда в пользу протокола: комиссия и выплаты считаются
отдельно, остаток остаётся у протокола или у ликвидности.

ЗАПРЕЩЕНО использовать float для сумм.
"""

from typing import Final


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Знаменатель basis points
BPS_DENOMINATOR: Final[int] = 10_000

# 1 единица quote/token актива (18 decimals)
WAD: Final[int] = 10**18


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_amount(value: int, name: str = "amount") -> int:
    """
    Проверка суммы: int, не bool, >= 0.

    Raises:
        ValueError: Если сумма отрицательна или не int
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


def validate_bps(bps: int, name: str = "bps", upper: int = BPS_DENOMINATOR) -> int:
    """Проверка basis points в диапазоне [0, upper]."""
    validate_amount(bps, name)
    if bps > upper:
        raise ValueError(f"{name} {bps} exceeds {upper}")
    return bps


# =============================================================================
# КОНВЕРТЕРЫ
# =============================================================================


def apply_bps(amount: int, bps: int) -> int:
    """
    Доля суммы в basis points (floor).

    apply_bps(amount, bps) = amount * bps // 10_000

    Examples:
        >>> apply_bps(1_000, 250)
        25
        >>> apply_bps(999, 1)
        0
    """
    return amount * bps // BPS_DENOMINATOR


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    a * b // denominator без промежуточного округления.

    Raises:
        ZeroDivisionError: Если denominator == 0
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div denominator is zero")
    return a * b // denominator
