"""
CurveMath — Constant-Product Bonding Curve

Чистые функции без состояния над (quote_reserve, base_reserve, invariant).

ФОРМУЛЫ:
    quote_in → token_out:
        new_q = q + quote_in
        new_b = k // new_q
        token_out = max(b - new_b, 0)

    token_out → quote_in (inverse, для пересчёта clamped buy):
        new_b = b - token_out
        new_q = k // new_b
        quote_in = new_q - q

    token_in → quote_out:
        new_b = b + token_in
        new_q = k // new_b
        quote_out = max(q - new_q, 0)

КОМИССИИ:
    Комиссия — bps от gross суммы на стороне, которую контролирует
    вызывающий (вход для buy, выход для sell). В формулу кривой подаётся net.
    fee_from_net: fee = net * bps // (10_000 - bps) — обратное решение для
    clamped buy, определено только при bps < 10_000.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Все деления — floor; new_q * new_b <= k после любой сделки
2. Нулевой invariant или резерв → InvalidCurve
3. Нулевой вход → нулевой выход (без ошибки)
"""

from typing import Final, NamedTuple

from launchpad.core.domain.token import CurveState
from launchpad.core.domain.units import BPS_DENOMINATOR, apply_bps, mul_div, validate_bps
from launchpad.core.errors import InvalidCurve, InvalidFeeRate


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Ставка, при которой fee_from_net вырождается (деление на ноль)
FEE_RATE_SINGULARITY_BPS: Final[int] = BPS_DENOMINATOR


# =============================================================================
# ТИПЫ
# =============================================================================


class BuyQuote(NamedTuple):
    """Котировка покупки (до clamp по available_supply)."""

    gross_quote: int
    fee: int
    net_quote: int
    token_out: int
    new_quote_reserve: int
    new_base_reserve: int


class SellQuote(NamedTuple):
    """Котировка продажи. fee и net считаются от gross_quote."""

    token_in: int
    gross_quote: int
    fee: int
    net_quote: int
    new_quote_reserve: int
    new_base_reserve: int


class InitialBuyQuote(NamedTuple):
    """Pre-purchase создателя с начальной (несдвинутой) кривой."""

    token_out: int
    quote_required: int
    fee: int
    total: int
    new_quote_reserve: int
    new_base_reserve: int


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def _check_curve(quote_reserve: int, base_reserve: int, invariant: int) -> None:
    if invariant <= 0 or quote_reserve <= 0 or base_reserve <= 0:
        raise InvalidCurve(
            f"degenerate curve: q={quote_reserve}, b={base_reserve}, k={invariant}"
        )


def _check_input(amount: int, name: str) -> None:
    if amount < 0:
        raise InvalidCurve(f"{name} must be non-negative, got {amount}")


def _check_fee_rate(fee_bps: int) -> None:
    if fee_bps < 0 or fee_bps >= FEE_RATE_SINGULARITY_BPS:
        raise InvalidFeeRate(f"fee rate must be in [0, {FEE_RATE_SINGULARITY_BPS}), got {fee_bps}")


# =============================================================================
# ФОРМУЛЫ КРИВОЙ
# =============================================================================


def quote_to_token_out(quote_reserve: int, base_reserve: int, invariant: int, quote_in: int) -> int:
    """
    Сколько токенов выдаёт кривая за quote_in.

    Examples:
        >>> quote_to_token_out(1, 1_000_000, 1_000_000, 1)
        500000
    """
    _check_curve(quote_reserve, base_reserve, invariant)
    _check_input(quote_in, "quote_in")
    if quote_in == 0:
        return 0
    new_base = invariant // (quote_reserve + quote_in)
    return max(base_reserve - new_base, 0)


def token_out_to_quote_in(quote_reserve: int, base_reserve: int, invariant: int, token_out: int) -> int:
    """
    Сколько quote требуется, чтобы получить ровно token_out.

    Raises:
        InvalidCurve: Если token_out >= base_reserve (резерв исчерпан бы полностью)
    """
    _check_curve(quote_reserve, base_reserve, invariant)
    _check_input(token_out, "token_out")
    if token_out == 0:
        return 0
    if token_out >= base_reserve:
        raise InvalidCurve(f"token_out {token_out} exhausts base reserve {base_reserve}")
    new_quote = invariant // (base_reserve - token_out)
    return max(new_quote - quote_reserve, 0)


def token_to_quote_out(quote_reserve: int, base_reserve: int, invariant: int, token_in: int) -> int:
    """Сколько quote выдаёт кривая за token_in (до комиссии)."""
    _check_curve(quote_reserve, base_reserve, invariant)
    _check_input(token_in, "token_in")
    if token_in == 0:
        return 0
    new_quote = invariant // (base_reserve + token_in)
    return max(quote_reserve - new_quote, 0)


# =============================================================================
# КОМИССИИ
# =============================================================================


def fee_on_gross(gross: int, fee_bps: int) -> int:
    """fee = gross * bps // 10_000."""
    _check_fee_rate(fee_bps)
    return apply_bps(gross, fee_bps)


def fee_from_net(net: int, fee_bps: int) -> int:
    """
    Обратное решение комиссии: fee такой, что fee ≈ (net + fee) * bps / 10_000.

    fee = net * bps // (10_000 - bps)

    Raises:
        InvalidFeeRate: Если bps >= 10_000 (формула не определена)
    """
    _check_fee_rate(fee_bps)
    return mul_div(net, fee_bps, BPS_DENOMINATOR - fee_bps)


# =============================================================================
# FEE-INCLUSIVE КОТИРОВКИ
# =============================================================================


def quote_buy(state: CurveState, gross_quote: int, fee_bps: int) -> BuyQuote:
    """Котировка покупки на gross_quote с комиссией на входе."""
    _check_input(gross_quote, "gross_quote")
    fee = fee_on_gross(gross_quote, fee_bps)
    net = gross_quote - fee
    token_out = quote_to_token_out(
        state.quote_reserve, state.base_reserve, state.invariant, net
    )
    new_quote = state.quote_reserve + net
    new_base = state.base_reserve - token_out
    return BuyQuote(
        gross_quote=gross_quote,
        fee=fee,
        net_quote=net,
        token_out=token_out,
        new_quote_reserve=new_quote,
        new_base_reserve=new_base,
    )


def quote_exact_tokens_out(state: CurveState, token_out: int, fee_bps: int) -> BuyQuote:
    """
    Котировка покупки ровно token_out токенов.

    net — через inverse формулу, fee — через fee_from_net.
    """
    net = token_out_to_quote_in(
        state.quote_reserve, state.base_reserve, state.invariant, token_out
    )
    fee = fee_from_net(net, fee_bps)
    return BuyQuote(
        gross_quote=net + fee,
        fee=fee,
        net_quote=net,
        token_out=token_out,
        new_quote_reserve=state.quote_reserve + net,
        new_base_reserve=state.base_reserve - token_out,
    )


def quote_sell(state: CurveState, token_in: int, fee_bps: int) -> SellQuote:
    """Котировка продажи token_in с комиссией на выходе."""
    gross = token_to_quote_out(
        state.quote_reserve, state.base_reserve, state.invariant, token_in
    )
    fee = fee_on_gross(gross, fee_bps)
    return SellQuote(
        token_in=token_in,
        gross_quote=gross,
        fee=fee,
        net_quote=gross - fee,
        new_quote_reserve=state.quote_reserve - gross,
        new_base_reserve=state.base_reserve + token_in,
    )


def initial_buy_quote(
    total_supply: int,
    initial_buy_bps: int,
    quote_reserve: int,
    base_reserve: int,
    pre_buy_fee_bps: int,
) -> InitialBuyQuote:
    """
    Pre-purchase создателя: total_supply * bps // 10_000 токенов с начальной кривой.

    Args:
        total_supply: Полный выпуск
        initial_buy_bps: Доля pre-purchase (bps)
        quote_reserve: Начальный виртуальный quote резерв
        base_reserve: Начальный виртуальный token резерв
        pre_buy_fee_bps: Ставка pre-buy комиссии

    Returns:
        InitialBuyQuote; new_*_reserve — стартовые резервы актива
    """
    validate_bps(initial_buy_bps, "initial_buy_bps")
    invariant = quote_reserve * base_reserve
    token_out = apply_bps(total_supply, initial_buy_bps)
    quote_required = token_out_to_quote_in(quote_reserve, base_reserve, invariant, token_out)
    fee = fee_on_gross(quote_required, pre_buy_fee_bps)
    return InitialBuyQuote(
        token_out=token_out,
        quote_required=quote_required,
        fee=fee,
        total=quote_required + fee,
        new_quote_reserve=quote_reserve + quote_required,
        new_base_reserve=base_reserve - token_out,
    )
