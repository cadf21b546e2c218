"""CreationOrchestrator — выпуск нового актива по подписанному запросу.

Порядок проверок create_token:
1. Оплата покрывает базовую creation fee
2. Аутентификация: canonical hash → recover signer → роль SIGNER
3. Expiry и replay-защита; request_id помечается использованным сразу
4. Валидация sale параметров и initial_buy_bps (<= 9_990)
5. Pre-purchase по inverse формуле с начальной кривой → стартовые резервы
6. Оплата покрывает creation fee + pre-buy quote + pre-buy fee + маржу
7. Деплой, регистрация в LifecycleStateMachine (TRADING, CONTROLLED)
8. Аллокации: burn сразу, vesting → VestingEngine, остаток → создателю
9. Маржа → margin receiver, комиссии → платформа, излишек → отправителю
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from launchpad.adapters.credentials import CredentialVerifier
from launchpad.adapters.deployer import AssetDeployer
from launchpad.core.access import AccessControl, Role
from launchpad.core.config import FeeConfig, FeeRecipients, LaunchpadParams
from launchpad.core.domain.events import MarginDeposited, TokenCreated, TokensBurned
from launchpad.core.domain.request import CreateTokenRequest, Credential
from launchpad.core.domain.token import AssetRecord, CurveState
from launchpad.core.domain.units import apply_bps
from launchpad.core.domain.vesting import VestingAllocation, VestingMode
from launchpad.core.errors import (
    InsufficientFee,
    InsufficientMargin,
    InvalidDurationParameters,
    InvalidLaunchTime,
    InvalidSaleParameters,
    InvalidVestingParameters,
    RequestAlreadyProcessed,
    RequestExpired,
)
from launchpad.core.ledger import Ledger, ReentrancyGuard
from launchpad.core.math.curve_math import InitialBuyQuote, initial_buy_quote
from launchpad.lifecycle.state_machine import LifecycleStateMachine
from launchpad.vesting.engine import ScheduleSpec, VestingEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationPlan:
    """Разбиение pre-purchase: burn, vesting графики, остаток создателю."""

    burn_amount: int
    schedules: tuple[ScheduleSpec, ...]
    creator_amount: int

    @property
    def vested_amount(self) -> int:
        return sum(s.amount for s in self.schedules if s.mode != VestingMode.BURN)


@dataclass(frozen=True)
class CreationResult:
    """Результат create_token."""

    asset: str
    record: AssetRecord
    curve: CurveState
    initial_buy: Optional[InitialBuyQuote]
    plan: Optional[AllocationPlan]
    total_charged: int
    refund: int


@dataclass
class _OrchestratorState:
    consumed_requests: set[str] = field(default_factory=set)


class CreationOrchestrator:
    """Orchestrator выпуска активов.

    Собственное состояние — только множество использованных request_id.
    """

    def __init__(
        self,
        ledger: Ledger,
        access: AccessControl,
        verifier: CredentialVerifier,
        deployer: AssetDeployer,
        lifecycle: LifecycleStateMachine,
        vesting: VestingEngine,
        fee_config: FeeConfig,
        recipients: FeeRecipients,
        params: Optional[LaunchpadParams] = None,
    ):
        self._ledger = ledger
        self._access = access
        self._verifier = verifier
        self._deployer = deployer
        self._lifecycle = lifecycle
        self._vesting = vesting
        self.fee_config = fee_config
        self.recipients = recipients
        self.params = params or LaunchpadParams()
        self.custody = lifecycle.custody
        self._guard = ReentrancyGuard("creation")
        self._state = _OrchestratorState()
        ledger.register(self)

    # =========================================================================
    # Queries
    # =========================================================================

    def is_consumed(self, request_id: str) -> bool:
        return request_id in self._state.consumed_requests

    def calculate_initial_buy(
        self,
        total_supply: int,
        initial_buy_bps: int,
        virtual_quote_reserve: int,
        virtual_base_reserve: int,
    ) -> InitialBuyQuote:
        """Стоимость pre-purchase (quote + pre-buy fee) для заданной кривой."""
        return initial_buy_quote(
            total_supply,
            initial_buy_bps,
            virtual_quote_reserve,
            virtual_base_reserve,
            self.fee_config.pre_buy_fee_bps,
        )

    def predict_asset_address(self, request: CreateTokenRequest) -> str:
        return self._deployer.predict(
            request.name, request.symbol, request.total_supply, request.creator, request.salt
        )

    def required_payment(self, request: CreateTokenRequest) -> int:
        """Полная сумма, которую нужно приложить к create_token."""
        total = self.fee_config.creation_fee + request.margin_amount
        if request.initial_buy_bps > 0:
            total += self.calculate_initial_buy(
                request.total_supply,
                request.initial_buy_bps,
                request.virtual_quote_reserve,
                request.virtual_base_reserve,
            ).total
        return total

    # =========================================================================
    # Create
    # =========================================================================

    def create_token(
        self,
        sender: str,
        request: CreateTokenRequest,
        credential: Credential,
        value: int,
    ) -> CreationResult:
        """Выпуск актива по подписанному запросу.

        Args:
            sender: вызывающий (платит value, получает излишек)
            request: подписанный запрос
            credential: подпись запроса
            value: приложенная оплата в quote

        Raises:
            InsufficientFee: value < creation fee или < полной суммы
            InvalidSignature / Unauthorized: подпись невалидна или signer без роли
            RequestExpired / RequestAlreadyProcessed: replay-защита
            InvalidSaleParameters / InvalidLaunchTime: параметры продажи
            InsufficientMargin: маржа ниже минимума
            InvalidVestingParameters / InvalidDurationParameters: аллокации
        """
        with self._guard, self._ledger.transaction():
            now = self._ledger.now
            creation_fee = self.fee_config.creation_fee

            # 1. Базовая плата
            if value < creation_fee:
                raise InsufficientFee(f"value {value} < creation fee {creation_fee}")

            # 2. Аутентификация
            signer = self._verifier.recover_signer(request.canonical_hash(), credential)
            self._access.require(Role.SIGNER, signer)

            # 3. Expiry / replay
            if now > request.timestamp + self.params.request_expiry_window:
                raise RequestExpired(
                    f"request {request.request_id} expired at "
                    f"{request.timestamp + self.params.request_expiry_window}, now {now}"
                )
            if request.request_id in self._state.consumed_requests:
                raise RequestAlreadyProcessed(f"request {request.request_id} already processed")
            self._state.consumed_requests.add(request.request_id)

            # 4. Валидация
            self._validate_sale(request)
            launch_time = self._resolve_launch_time(request.launch_time, now)
            if request.margin_amount and request.margin_amount < self.fee_config.min_margin:
                raise InsufficientMargin(
                    f"margin {request.margin_amount} < minimum {self.fee_config.min_margin}"
                )

            # 5. Pre-purchase и стартовые резервы
            quote_reserve = request.virtual_quote_reserve
            base_reserve = request.virtual_base_reserve
            invariant = quote_reserve * base_reserve
            initial_buy: Optional[InitialBuyQuote] = None
            required = creation_fee + request.margin_amount
            if request.initial_buy_bps > 0:
                initial_buy = self.calculate_initial_buy(
                    request.total_supply, request.initial_buy_bps, quote_reserve, base_reserve
                )
                quote_reserve = initial_buy.new_quote_reserve
                base_reserve = initial_buy.new_base_reserve
                required += initial_buy.total

            # 6. Полная оплата
            if value < required:
                raise InsufficientFee(f"value {value} < required payment {required}")

            plan = None
            if initial_buy is not None:
                plan = self._plan_allocations(request, initial_buy.token_out)

            # 7. Деплой и регистрация
            self._ledger.collect_payment(sender, self.custody, value)
            asset = self._deployer.deploy(
                self.custody,
                request.name,
                request.symbol,
                request.total_supply,
                request.creator,
                request.salt,
            )
            bought = initial_buy.token_out if initial_buy else 0
            curve = CurveState(
                quote_reserve=quote_reserve,
                base_reserve=base_reserve,
                invariant=invariant,
                available_supply=request.sale_amount - bought,
                collected_quote=initial_buy.quote_required if initial_buy else 0,
                sale_amount=request.sale_amount,
            )
            record = self._lifecycle.register_asset(
                self.custody,
                asset,
                request.name,
                request.symbol,
                request.total_supply,
                request.creator,
                request.request_id,
                launch_time,
                curve,
            )
            self._ledger.emit(
                TokenCreated(
                    asset=asset,
                    creator=request.creator,
                    request_id=request.request_id,
                    name=request.name,
                    symbol=request.symbol,
                    total_supply=request.total_supply,
                    sale_amount=request.sale_amount,
                    quote_reserve=quote_reserve,
                    base_reserve=base_reserve,
                    launch_time=launch_time,
                    initial_buy_tokens=bought,
                    initial_buy_quote=initial_buy.quote_required if initial_buy else 0,
                    pool=record.pool,
                )
            )

            # 8. Распределение pre-purchase
            if plan is not None:
                self._execute_plan(asset, request.creator, plan)

            # 9. Маржа, комиссии, излишек
            treasury = self.recipients.treasury
            if request.margin_amount > 0:
                receiver = self._ledger.pay_with_fallback(
                    self.custody, self.recipients.margin_receiver, request.margin_amount, treasury,
                    reason="margin_deposit",
                )
                self._ledger.emit(
                    MarginDeposited(
                        asset=asset,
                        creator=request.creator,
                        receiver=receiver,
                        amount=request.margin_amount,
                        margin_time=request.margin_time,
                    )
                )
            fees = creation_fee + (initial_buy.fee if initial_buy else 0)
            self._ledger.pay_with_fallback(
                self.custody, self.recipients.platform_fee_receiver, fees, treasury,
                reason="creation_fee",
            )
            refund = value - required
            self._ledger.transfer_quote(self.custody, sender, refund)

            logger.info(
                "token %s (%s) created by %s: request=%s initial_buy=%d charged=%d",
                asset, request.symbol, request.creator, request.request_id, bought, required,
            )
            return CreationResult(
                asset=asset,
                record=self._lifecycle.get_asset(asset),
                curve=self._lifecycle.get_curve_state(asset),
                initial_buy=initial_buy,
                plan=plan,
                total_charged=required,
                refund=refund,
            )

    # =========================================================================
    # Validation
    # =========================================================================

    def _validate_sale(self, request: CreateTokenRequest) -> None:
        if request.sale_amount == 0:
            raise InvalidSaleParameters("sale_amount must be positive")
        if request.sale_amount > request.total_supply:
            raise InvalidSaleParameters(
                f"sale_amount {request.sale_amount} exceeds total_supply {request.total_supply}"
            )
        if request.initial_buy_bps > self.params.max_initial_buy_bps:
            raise InvalidSaleParameters(
                f"initial_buy_bps {request.initial_buy_bps} exceeds {self.params.max_initial_buy_bps}"
            )
        if request.sale_amount < apply_bps(request.total_supply, request.initial_buy_bps):
            raise InvalidSaleParameters("sale_amount smaller than initial buy")
        if request.virtual_quote_reserve == 0 or request.virtual_base_reserve == 0:
            raise InvalidSaleParameters("virtual reserves must be positive")
        if request.virtual_base_reserve <= request.sale_amount:
            raise InvalidSaleParameters(
                f"virtual_base_reserve {request.virtual_base_reserve} must exceed sale_amount "
                f"{request.sale_amount}"
            )

    def _resolve_launch_time(self, launch_time: int, now: int) -> int:
        if launch_time == 0:
            return now
        if launch_time < now or launch_time > now + self.params.max_launch_delay:
            raise InvalidLaunchTime(
                f"launch_time {launch_time} outside [{now}, {now + self.params.max_launch_delay}]"
            )
        return launch_time

    # =========================================================================
    # Allocations
    # =========================================================================

    def _plan_allocations(self, request: CreateTokenRequest, bought: int) -> AllocationPlan:
        """Перевод bps аллокаций в абсолютные суммы.

        Последняя non-burn аллокация забирает остаток округления, чтобы при
        vested_bps + burn_bps == initial_buy_bps сумма совпала с bought.
        """
        allocations: list[VestingAllocation] = request.vesting_allocations
        if not allocations:
            return AllocationPlan(burn_amount=0, schedules=(), creator_amount=bought)

        vested_bps = sum(a.bps for a in allocations if a.mode != VestingMode.BURN)
        burn_bps = sum(a.bps for a in allocations if a.mode == VestingMode.BURN)
        if vested_bps + burn_bps > request.initial_buy_bps:
            raise InvalidVestingParameters(
                f"allocations {vested_bps + burn_bps} bps exceed initial buy "
                f"{request.initial_buy_bps} bps"
            )

        min_lock = self.fee_config.min_lock_duration
        for allocation in allocations:
            if allocation.mode == VestingMode.LINEAR and allocation.duration < min_lock:
                raise InvalidDurationParameters(
                    f"linear duration {allocation.duration} < minimum lock {min_lock}"
                )
            if allocation.mode == VestingMode.CLIFF and allocation.duration == 0:
                raise InvalidDurationParameters("cliff duration must be positive")

        total_supply = request.total_supply
        burn_amount = sum(
            apply_bps(total_supply, a.bps) for a in allocations if a.mode == VestingMode.BURN
        )
        if vested_bps + burn_bps == request.initial_buy_bps:
            vested_target = bought - burn_amount
        else:
            vested_target = apply_bps(total_supply, vested_bps)

        last_vested = max(
            (i for i, a in enumerate(allocations) if a.mode != VestingMode.BURN), default=None
        )
        specs = []
        assigned = 0
        for i, allocation in enumerate(allocations):
            amount = apply_bps(total_supply, allocation.bps)
            if allocation.mode != VestingMode.BURN:
                if i == last_vested:
                    amount = vested_target - assigned
                assigned += amount
            specs.append(
                ScheduleSpec(
                    mode=allocation.mode,
                    amount=amount,
                    start_time=allocation.start_time,
                    duration=allocation.duration,
                )
            )

        return AllocationPlan(
            burn_amount=burn_amount,
            schedules=tuple(specs),
            creator_amount=bought - burn_amount - assigned,
        )

    def _execute_plan(self, asset: str, creator: str, plan: AllocationPlan) -> None:
        if plan.burn_amount > 0:
            self._ledger.burn_tokens(asset, self.custody, plan.burn_amount)
            self._ledger.emit(TokensBurned(asset=asset, amount=plan.burn_amount))
        if plan.schedules:
            self._vesting.create_schedules(self.custody, asset, creator, plan.schedules)
        self._ledger.transfer_tokens(asset, self.custody, creator, plan.creator_amount)
