"""Lifecycle State Machine — торговля по bonding curve и жизненный цикл актива.

Состояния:
- UNCREATED → TRADING → PENDING_GRADUATION → GRADUATED
- PAUSED / BLACKLISTED: side-states из TRADING, возврат только в TRADING

Владеет CurveState и AssetRecord каждого актива. Каждая сделка:
1. checks: статус, окно [launch_time, deadline], slippage
2. effects: резервы, available_supply, collected_quote, статус
3. interactions: комиссия платформе, токены/quote покупателю, refund

Падение available_supply ниже liquidity floor → PENDING_GRADUATION,
transfer mode токена ужесточается до RESTRICTED.
"""

import logging
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Final, Optional

from launchpad.adapters.deployer import AssetDeployer
from launchpad.adapters.liquidity import LiquidityAdapter
from launchpad.core.access import AccessControl, Role
from launchpad.core.config import FeeConfig, FeeRecipients, LaunchpadParams
from launchpad.core.domain.events import (
    StatusChanged,
    TokenBought,
    TokenGraduated,
    TokenSold,
)
from launchpad.core.domain.token import AssetRecord, CurveState, TokenStatus, TransferMode
from launchpad.core.domain.units import apply_bps
from launchpad.core.errors import (
    AssetAlreadyExists,
    AssetBlacklisted,
    AssetNotFound,
    AssetPaused,
    DeadlineExpired,
    InsufficientBalance,
    InvalidDeadline,
    InvalidStatus,
    InvalidTradeAmount,
    NotLaunched,
    SlippageExceeded,
)
from launchpad.core.ledger import BURN_SINK, Ledger, ReentrancyGuard
from launchpad.core.math.curve_math import (
    BuyQuote,
    SellQuote,
    quote_buy,
    quote_exact_tokens_out,
    quote_sell,
)

logger = logging.getLogger(__name__)


# Допустимые переходы статусов
ALLOWED_TRANSITIONS: Final[dict[TokenStatus, frozenset[TokenStatus]]] = {
    TokenStatus.UNCREATED: frozenset({TokenStatus.TRADING}),
    TokenStatus.TRADING: frozenset(
        {TokenStatus.PENDING_GRADUATION, TokenStatus.PAUSED, TokenStatus.BLACKLISTED}
    ),
    TokenStatus.PAUSED: frozenset({TokenStatus.TRADING}),
    TokenStatus.BLACKLISTED: frozenset({TokenStatus.TRADING}),
    TokenStatus.PENDING_GRADUATION: frozenset({TokenStatus.GRADUATED}),
    TokenStatus.GRADUATED: frozenset(),
}


@dataclass(frozen=True)
class BuyResult:
    """Результат покупки."""

    asset: str
    token_out: int
    net_quote: int
    fee: int
    refund: int
    clamped: bool
    new_status: TokenStatus
    curve: CurveState


@dataclass(frozen=True)
class SellResult:
    """Результат продажи."""

    asset: str
    token_in: int
    gross_quote: int
    net_quote: int
    fee: int
    curve: CurveState


@dataclass(frozen=True)
class GraduationResult:
    """Результат graduation: три доли quote и токенов."""

    asset: str
    pool: str
    platform_quote: int
    platform_tokens: int
    creator_quote: int
    creator_tokens: int
    quote_to_liquidity: int
    tokens_to_liquidity: int
    liquidity_units: int


@dataclass
class _LifecycleState:
    assets: dict[str, AssetRecord] = field(default_factory=dict)
    curves: dict[str, CurveState] = field(default_factory=dict)


class LifecycleStateMachine:
    """Lifecycle State Machine с торговлей по constant-product кривой.

    Args:
        ledger: реестр балансов и транзакций
        access: capability store
        deployer: AssetDeployer (transfer mode, pool)
        liquidity: LiquidityAdapter для graduation
        fee_config: admin-mutable комиссии (разделяется с orchestrator)
        recipients: получатели выплат
        params: протокольные константы
        custody: адрес, удерживающий quote и непроданные токены
    """

    def __init__(
        self,
        ledger: Ledger,
        access: AccessControl,
        deployer: AssetDeployer,
        liquidity: LiquidityAdapter,
        fee_config: FeeConfig,
        recipients: FeeRecipients,
        params: Optional[LaunchpadParams] = None,
        custody: str = "launchpad-core",
    ):
        self._ledger = ledger
        self._access = access
        self._deployer = deployer
        self._liquidity = liquidity
        self.fee_config = fee_config
        self.recipients = recipients
        self.params = params or LaunchpadParams()
        self.custody = custody
        self._guard = ReentrancyGuard("lifecycle")
        self._state = _LifecycleState()
        ledger.register(self)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_asset(self, asset: str) -> AssetRecord:
        try:
            return self._state.assets[asset]
        except KeyError:
            raise AssetNotFound(f"unknown asset {asset}") from None

    def get_curve_state(self, asset: str) -> CurveState:
        self.get_asset(asset)
        return self._state.curves[asset]

    def status(self, asset: str) -> TokenStatus:
        record = self._state.assets.get(asset)
        return record.status if record else TokenStatus.UNCREATED

    def current_price(self, asset: str) -> Fraction:
        """Маргинальная цена токена в quote: q / b."""
        curve = self.get_curve_state(asset)
        return Fraction(curve.quote_reserve, curve.base_reserve)

    def preview_buy(self, asset: str, quote_amount: int) -> BuyQuote:
        """Котировка покупки с учётом clamp по available_supply."""
        curve = self.get_curve_state(asset)
        quote, _ = self._quote_buy_clamped(curve, quote_amount)
        return quote

    def preview_sell(self, asset: str, token_amount: int) -> SellQuote:
        return quote_sell(self.get_curve_state(asset), token_amount, self.fee_config.trading_fee_bps)

    # =========================================================================
    # Registration
    # =========================================================================

    def register_asset(
        self,
        sender: str,
        asset: str,
        name: str,
        symbol: str,
        total_supply: int,
        creator: str,
        request_id: str,
        launch_time: int,
        curve: CurveState,
    ) -> AssetRecord:
        """Регистрация нового актива: UNCREATED → TRADING (только CORE).

        Если остаток продажи уже ниже liquidity_floor, актив сразу переходит
        в PENDING_GRADUATION с transfer mode RESTRICTED.

        Raises:
            Unauthorized: Если sender не CORE
            AssetAlreadyExists: Если актив уже зарегистрирован
        """
        with self._guard, self._ledger.transaction():
            self._access.require(Role.CORE, sender)
            if asset in self._state.assets:
                raise AssetAlreadyExists(f"asset {asset} already registered")

            pool = self._liquidity.pool_address(asset)
            record = AssetRecord(
                asset=asset,
                name=name,
                symbol=symbol,
                total_supply=total_supply,
                creator=creator,
                request_id=request_id,
                created_at=self._ledger.now,
                launch_time=launch_time,
                status=TokenStatus.UNCREATED,
                pool=pool,
            )
            self._state.assets[asset] = record
            self._state.curves[asset] = curve
            self._transition(asset, TokenStatus.TRADING)

            mode = TransferMode.CONTROLLED
            if curve.available_supply < self.params.liquidity_floor:
                # pre-purchase выкупил продажу до порога ликвидности
                self._transition(asset, TokenStatus.PENDING_GRADUATION)
                mode = TransferMode.RESTRICTED

            self._deployer.set_pool(self.custody, asset, pool)
            self._deployer.set_transfer_mode(self.custody, asset, mode)
            logger.info(
                "asset %s registered: q=%d b=%d available=%d launch=%d",
                asset, curve.quote_reserve, curve.base_reserve, curve.available_supply, launch_time,
            )
            return self._state.assets[asset]

    # =========================================================================
    # Trading
    # =========================================================================

    def buy(
        self,
        sender: str,
        asset: str,
        value: int,
        min_token_out: int,
        deadline: int,
    ) -> BuyResult:
        """Покупка токенов за приложенный quote (value).

        Если кривая выдала бы больше available_supply, покупка ограничивается
        остатком, требуемый quote пересчитывается по inverse формуле,
        комиссия — через fee_from_net, разница возвращается покупателю.

        Raises:
            InvalidStatus / AssetPaused / AssetBlacklisted: статус не TRADING
            NotLaunched: now < launch_time
            DeadlineExpired / InvalidDeadline: deadline вне окна
            SlippageExceeded: token_out < min_token_out
        """
        with self._guard, self._ledger.transaction():
            record = self._require_trading(asset)
            self._check_window(record, deadline)
            if value <= 0:
                raise InvalidTradeAmount("buy value must be positive")

            self._ledger.collect_payment(sender, self.custody, value)

            curve = self._state.curves[asset]
            quote, clamped = self._quote_buy_clamped(curve, value)
            if quote.token_out < min_token_out:
                raise SlippageExceeded(
                    f"token_out {quote.token_out} < min_token_out {min_token_out}"
                )
            if quote.token_out == 0:
                raise InvalidTradeAmount("buy yields zero tokens")
            refund = value - quote.gross_quote

            # Effects
            new_curve = self._update_curve(
                curve,
                quote_reserve=quote.new_quote_reserve,
                base_reserve=quote.new_base_reserve,
                available_supply=curve.available_supply - quote.token_out,
                collected_quote=curve.collected_quote + quote.net_quote,
            )
            self._state.curves[asset] = new_curve
            graduating = new_curve.available_supply < self.params.liquidity_floor
            if graduating:
                self._transition(asset, TokenStatus.PENDING_GRADUATION)

            self._ledger.emit(
                TokenBought(
                    asset=asset,
                    buyer=sender,
                    gross_quote=quote.gross_quote,
                    net_quote=quote.net_quote,
                    fee=quote.fee,
                    refund=refund,
                    token_out=quote.token_out,
                    quote_reserve=new_curve.quote_reserve,
                    base_reserve=new_curve.base_reserve,
                    available_supply=new_curve.available_supply,
                    collected_quote=new_curve.collected_quote,
                )
            )
            logger.debug(
                "buy %s by %s: value=%d net=%d fee=%d out=%d refund=%d clamped=%s",
                asset, sender, value, quote.net_quote, quote.fee, quote.token_out, refund, clamped,
            )

            # Interactions
            if graduating:
                self._deployer.set_transfer_mode(self.custody, asset, TransferMode.RESTRICTED)
            self._ledger.pay_with_fallback(
                self.custody,
                self.recipients.platform_fee_receiver,
                quote.fee,
                self.recipients.treasury,
                reason="trading_fee",
            )
            self._ledger.transfer_tokens(asset, self.custody, sender, quote.token_out)
            self._ledger.transfer_quote(self.custody, sender, refund)

            return BuyResult(
                asset=asset,
                token_out=quote.token_out,
                net_quote=quote.net_quote,
                fee=quote.fee,
                refund=refund,
                clamped=clamped,
                new_status=self._state.assets[asset].status,
                curve=new_curve,
            )

    def sell(
        self,
        sender: str,
        asset: str,
        token_amount: int,
        min_quote_out: int,
        deadline: int,
    ) -> SellResult:
        """Продажа токенов обратно в кривую.

        Raises:
            InsufficientBalance: collected_quote не покрывает gross quote-out
                или у продавца недостаточно токенов
            SlippageExceeded: net quote < min_quote_out
        """
        with self._guard, self._ledger.transaction():
            record = self._require_trading(asset)
            self._check_window(record, deadline)
            if token_amount <= 0:
                raise InvalidTradeAmount("sell amount must be positive")

            curve = self._state.curves[asset]
            quote = quote_sell(curve, token_amount, self.fee_config.trading_fee_bps)
            if quote.gross_quote > curve.collected_quote:
                raise InsufficientBalance(
                    f"collected_quote {curve.collected_quote} < quote out {quote.gross_quote}"
                )
            balance = self._ledger.token_balance(asset, sender)
            if balance < token_amount:
                raise InsufficientBalance(f"{sender} token balance {balance} < {token_amount}")
            if quote.net_quote < min_quote_out:
                raise SlippageExceeded(
                    f"quote out {quote.net_quote} < min_quote_out {min_quote_out}"
                )
            if quote.gross_quote == 0:
                raise InvalidTradeAmount("sell yields zero quote")
            if curve.available_supply + token_amount > curve.sale_amount:
                raise InvalidTradeAmount("sell exceeds original sale amount")

            # Effects
            new_curve = self._update_curve(
                curve,
                quote_reserve=quote.new_quote_reserve,
                base_reserve=quote.new_base_reserve,
                available_supply=curve.available_supply + token_amount,
                collected_quote=curve.collected_quote - quote.gross_quote,
            )
            self._state.curves[asset] = new_curve
            self._ledger.emit(
                TokenSold(
                    asset=asset,
                    seller=sender,
                    token_in=token_amount,
                    gross_quote=quote.gross_quote,
                    net_quote=quote.net_quote,
                    fee=quote.fee,
                    quote_reserve=new_curve.quote_reserve,
                    base_reserve=new_curve.base_reserve,
                    available_supply=new_curve.available_supply,
                    collected_quote=new_curve.collected_quote,
                )
            )
            logger.debug(
                "sell %s by %s: in=%d gross=%d fee=%d", asset, sender, token_amount, quote.gross_quote, quote.fee
            )

            # Interactions
            self._ledger.transfer_tokens(asset, sender, self.custody, token_amount)
            self._ledger.pay_with_fallback(
                self.custody,
                self.recipients.platform_fee_receiver,
                quote.fee,
                self.recipients.treasury,
                reason="trading_fee",
            )
            self._ledger.transfer_quote(self.custody, sender, quote.net_quote)

            return SellResult(
                asset=asset,
                token_in=token_amount,
                gross_quote=quote.gross_quote,
                net_quote=quote.net_quote,
                fee=quote.fee,
                curve=new_curve,
            )

    # =========================================================================
    # Graduation
    # =========================================================================

    def graduate(self, sender: str, asset: str) -> GraduationResult:
        """Graduation: PENDING_GRADUATION → GRADUATED (только OPERATOR).

        collected_quote и available_supply делятся тремя долями по одинаковым
        ставкам (platform, creator); остаток и токены вне продажи
        (total_supply - sale_amount) уходят в пул. LP units блокируются
        навсегда в BURN_SINK.

        Raises:
            InvalidStatus: Если статус не PENDING_GRADUATION
        """
        with self._guard, self._ledger.transaction():
            self._access.require(Role.OPERATOR, sender)
            record = self.get_asset(asset)
            if record.status != TokenStatus.PENDING_GRADUATION:
                raise InvalidStatus(
                    f"asset {asset} is {record.status.value}, expected PENDING_GRADUATION"
                )

            curve = self._state.curves[asset]
            platform_bps = self.fee_config.graduate_platform_fee_bps
            creator_bps = self.fee_config.graduate_creator_fee_bps

            collected = curve.collected_quote
            platform_quote = apply_bps(collected, platform_bps)
            creator_quote = apply_bps(collected, creator_bps)
            liquidity_quote = collected - platform_quote - creator_quote

            available = curve.available_supply
            platform_tokens = apply_bps(available, platform_bps)
            creator_tokens = apply_bps(available, creator_bps)
            liquidity_tokens = (
                available - platform_tokens - creator_tokens
                + (record.total_supply - curve.sale_amount)
            )

            # Effects
            self._state.curves[asset] = curve.model_copy(
                update={"available_supply": 0, "collected_quote": 0}
            )
            self._transition(asset, TokenStatus.GRADUATED)

            # Interactions
            treasury = self.recipients.treasury
            self._deployer.set_transfer_mode(self.custody, asset, TransferMode.NORMAL)
            self._ledger.pay_with_fallback(
                self.custody, self.recipients.platform_fee_receiver, platform_quote, treasury,
                reason="graduate_platform_fee",
            )
            self._ledger.transfer_tokens_with_fallback(
                asset, self.custody, self.recipients.platform_fee_receiver, platform_tokens, treasury,
                reason="graduate_platform_tokens",
            )
            self._ledger.pay_with_fallback(
                self.custody, record.creator, creator_quote, treasury,
                reason="graduate_creator_fee",
            )
            self._ledger.transfer_tokens_with_fallback(
                asset, self.custody, record.creator, creator_tokens, treasury,
                reason="graduate_creator_tokens",
            )

            units = 0
            if liquidity_quote > 0 and liquidity_tokens > 0:
                units = self._liquidity.provide_liquidity(
                    self.custody, asset, liquidity_quote, liquidity_tokens
                )
                self._ledger.lock_forever(record.pool, self.custody, units)
            else:
                # Односторонняя ликвидность невозможна: quote → treasury, токены → sink
                self._ledger.transfer_quote(self.custody, treasury, liquidity_quote)
                self._ledger.lock_forever(asset, self.custody, liquidity_tokens)

            self._ledger.emit(
                TokenGraduated(
                    asset=asset,
                    pool=record.pool,
                    quote_to_liquidity=liquidity_quote,
                    tokens_to_liquidity=liquidity_tokens,
                    liquidity_units=units,
                    platform_quote=platform_quote,
                    platform_tokens=platform_tokens,
                    creator_quote=creator_quote,
                    creator_tokens=creator_tokens,
                )
            )
            logger.info(
                "asset %s graduated: liquidity quote=%d tokens=%d units=%d locked in %s",
                asset, liquidity_quote, liquidity_tokens, units, BURN_SINK,
            )
            return GraduationResult(
                asset=asset,
                pool=record.pool,
                platform_quote=platform_quote,
                platform_tokens=platform_tokens,
                creator_quote=creator_quote,
                creator_tokens=creator_tokens,
                quote_to_liquidity=liquidity_quote,
                tokens_to_liquidity=liquidity_tokens,
                liquidity_units=units,
            )

    # =========================================================================
    # Guarded status transitions
    # =========================================================================

    def pause(self, sender: str, asset: str) -> None:
        self._operator_transition(sender, asset, TokenStatus.TRADING, TokenStatus.PAUSED)

    def unpause(self, sender: str, asset: str) -> None:
        self._operator_transition(sender, asset, TokenStatus.PAUSED, TokenStatus.TRADING)

    def blacklist(self, sender: str, asset: str) -> None:
        self._operator_transition(sender, asset, TokenStatus.TRADING, TokenStatus.BLACKLISTED)

    def remove_from_blacklist(self, sender: str, asset: str) -> None:
        self._operator_transition(sender, asset, TokenStatus.BLACKLISTED, TokenStatus.TRADING)

    def _operator_transition(
        self, sender: str, asset: str, expected: TokenStatus, target: TokenStatus
    ) -> None:
        with self._guard, self._ledger.transaction():
            self._access.require(Role.OPERATOR, sender)
            current = self.get_asset(asset).status
            if current != expected:
                raise InvalidStatus(
                    f"asset {asset} is {current.value}, expected {expected.value}"
                )
            self._transition(asset, target)

    # =========================================================================
    # Internals
    # =========================================================================

    def _transition(self, asset: str, target: TokenStatus) -> None:
        record = self._state.assets[asset]
        if target not in ALLOWED_TRANSITIONS[record.status]:
            raise InvalidStatus(f"transition {record.status.value} → {target.value} not allowed")
        self._state.assets[asset] = record.model_copy(update={"status": target})
        self._ledger.emit(
            StatusChanged(asset=asset, old_status=record.status, new_status=target)
        )
        logger.info("asset %s status %s → %s", asset, record.status.value, target.value)

    def _require_trading(self, asset: str) -> AssetRecord:
        record = self.get_asset(asset)
        if record.status == TokenStatus.PAUSED:
            raise AssetPaused(f"asset {asset} is paused")
        if record.status == TokenStatus.BLACKLISTED:
            raise AssetBlacklisted(f"asset {asset} is blacklisted")
        if record.status != TokenStatus.TRADING:
            raise InvalidStatus(f"asset {asset} is {record.status.value}, expected TRADING")
        return record

    def _check_window(self, record: AssetRecord, deadline: int) -> None:
        now = self._ledger.now
        if now < record.launch_time:
            raise NotLaunched(f"asset {record.asset} launches at {record.launch_time}, now {now}")
        if now > deadline:
            raise DeadlineExpired(f"deadline {deadline} passed, now {now}")
        if deadline > now + self.params.max_trade_deadline_window:
            raise InvalidDeadline(
                f"deadline {deadline} beyond {self.params.max_trade_deadline_window}s window"
            )

    def _quote_buy_clamped(self, curve: CurveState, value: int) -> tuple[BuyQuote, bool]:
        fee_bps = self.fee_config.trading_fee_bps
        quote = quote_buy(curve, value, fee_bps)
        if quote.token_out <= curve.available_supply:
            return quote, False

        # fee_from_net(net) <= fee_on_gross(net + fee): gross_quote не превышает value
        return quote_exact_tokens_out(curve, curve.available_supply, fee_bps), True

    @staticmethod
    def _update_curve(curve: CurveState, **updates: int) -> CurveState:
        # model_validate, не model_copy: инварианты кривой проверяются заново
        return CurveState.model_validate({**curve.model_dump(), **updates})
