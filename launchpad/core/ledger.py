"""
Ledger — Детерминированный реестр балансов и транзакций

Модель исполнения:
- Однопоточная, транзакционная: публичная операция либо завершается
  целиком, либо откатывается (Ledger.transaction).
- Время — `now` реестра (время исполнения транзакции), не wall-clock.
- Выплаты вызывают receiver hooks — код, который система не контролирует.
  Hook может отклонить перевод (исключение) или попытаться реентерабельно
  вызвать launchpad; каждая выплата исполняется в собственной savepoint.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Балансы никогда не отрицательны
2. Ошибка внутри transaction() восстанавливает все зарегистрированные состояния
3. Из BURN_SINK ничего не выводится (irrevocable custody)
"""

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, NamedTuple, Optional, Protocol, TypeVar

from launchpad.core.contracts import validate_event
from launchpad.core.domain.events import Event, PayoutRedirected
from launchpad.core.domain.units import validate_amount
from launchpad.core.errors import InsufficientBalance, ReentrantCall, TransferFailed

logger = logging.getLogger(__name__)

# Адрес без контролирующей стороны: токены/LP units, отправленные сюда,
# заблокированы навсегда.
BURN_SINK = "0x000000000000000000000000000000000000dEaD"

ReceiverHook = Callable[[str, Optional[str], int], None]

E = TypeVar("E", bound=Event)


class StatefulComponent(Protocol):
    """Компонент, чьё состояние участвует в snapshot/restore."""

    _state: object


@dataclass
class _LedgerState:
    quote: dict[str, int] = field(default_factory=dict)
    tokens: dict[tuple[str, str], int] = field(default_factory=dict)
    supply: dict[str, int] = field(default_factory=dict)
    events: list[Event] = field(default_factory=list)


class _LedgerCheckpoint(NamedTuple):
    """Балансы копируются, журнал событий append-only: хранится только длина."""

    quote: dict[str, int]
    tokens: dict[tuple[str, str], int]
    supply: dict[str, int]
    event_count: int


# =============================================================================
# REENTRANCY GUARD
# =============================================================================


class ReentrancyGuard:
    """
    Флаг "операция в процессе" для одной entry surface.

    Устанавливается до любых выплат, снимается только по завершении.
    Вложенный вход → ReentrantCall.
    """

    def __init__(self, surface: str):
        self.surface = surface
        self._entered = False

    @property
    def entered(self) -> bool:
        return self._entered

    def __enter__(self) -> "ReentrancyGuard":
        if self._entered:
            raise ReentrantCall(f"reentrant call into {self.surface}")
        self._entered = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._entered = False


# =============================================================================
# LEDGER
# =============================================================================


class Ledger:
    """
    Реестр quote/token балансов, событий и времени исполнения.

    Args:
        now: стартовое время (сек)
        validate_events: проверять payload событий по JSON Schema
    """

    def __init__(self, now: int = 0, validate_events: bool = True):
        self._now = now
        self._validate_events = validate_events
        self._state = _LedgerState()
        self._hooks: dict[str, ReceiverHook] = {}
        self._components: list[StatefulComponent] = []

    # -------------------------------------------------------------------------
    # Время
    # -------------------------------------------------------------------------

    @property
    def now(self) -> int:
        return self._now

    def set_time(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError(f"time cannot go backwards: {timestamp} < {self._now}")
        self._now = timestamp

    def advance(self, seconds: int) -> int:
        self.set_time(self._now + seconds)
        return self._now

    # -------------------------------------------------------------------------
    # Транзакции
    # -------------------------------------------------------------------------

    def register(self, component: StatefulComponent) -> None:
        """Регистрация компонента для snapshot/restore."""
        self._components.append(component)

    def _snapshot(self) -> tuple[_LedgerCheckpoint, list[object]]:
        state = self._state
        checkpoint = _LedgerCheckpoint(
            quote=dict(state.quote),
            tokens=dict(state.tokens),
            supply=dict(state.supply),
            event_count=len(state.events),
        )
        return checkpoint, [copy.deepcopy(c._state) for c in self._components]

    def _restore(self, snapshot: tuple[_LedgerCheckpoint, list[object]]) -> None:
        checkpoint, component_states = snapshot
        self._state.quote = checkpoint.quote
        self._state.tokens = checkpoint.tokens
        self._state.supply = checkpoint.supply
        del self._state.events[checkpoint.event_count:]
        for component, state in zip(self._components, component_states):
            component._state = state

    @contextmanager
    def transaction(self) -> Iterator["Ledger"]:
        """
        Атомарная область: любое исключение откатывает реестр и все
        зарегистрированные компоненты к состоянию на входе.
        Вложенные вызовы работают как savepoints.
        """
        snapshot = self._snapshot()
        try:
            yield self
        except BaseException:
            self._restore(snapshot)
            raise

    # -------------------------------------------------------------------------
    # Hooks
    # -------------------------------------------------------------------------

    def set_receiver_hook(self, account: str, hook: Optional[ReceiverHook]) -> None:
        """hook(sender, asset_or_None, amount) вызывается после зачисления."""
        if hook is None:
            self._hooks.pop(account, None)
        else:
            self._hooks[account] = hook

    def _notify(self, sender: str, recipient: str, asset: Optional[str], amount: int) -> None:
        hook = self._hooks.get(recipient)
        if hook is None:
            return
        try:
            hook(sender, asset, amount)
        except Exception as exc:
            raise TransferFailed(f"{recipient} rejected transfer of {amount}: {exc}") from exc

    # -------------------------------------------------------------------------
    # Quote asset
    # -------------------------------------------------------------------------

    def quote_balance(self, account: str) -> int:
        return self._state.quote.get(account, 0)

    def mint_quote(self, account: str, amount: int) -> None:
        """Начисление quote (genesis / тестовый faucet)."""
        validate_amount(amount)
        self._state.quote[account] = self.quote_balance(account) + amount

    def _move_quote(self, sender: str, recipient: str, amount: int) -> None:
        validate_amount(amount)
        if sender == BURN_SINK:
            raise TransferFailed("BURN_SINK funds are irrecoverable")
        balance = self.quote_balance(sender)
        if balance < amount:
            raise InsufficientBalance(
                f"{sender} quote balance {balance} < {amount}"
            )
        self._state.quote[sender] = balance - amount
        self._state.quote[recipient] = self.quote_balance(recipient) + amount

    def collect_payment(self, sender: str, custody: str, amount: int) -> None:
        """Списание приложенной оплаты в custody (без hooks)."""
        self._move_quote(sender, custody, amount)

    def transfer_quote(self, sender: str, recipient: str, amount: int) -> None:
        """
        Выплата quote с вызовом receiver hook.

        Raises:
            InsufficientBalance: Если у sender недостаточно средств
            TransferFailed: Если получатель отклонил перевод
        """
        if amount == 0:
            return
        with self.transaction():
            self._move_quote(sender, recipient, amount)
            self._notify(sender, recipient, None, amount)

    def pay_with_fallback(
        self, sender: str, recipient: str, amount: int, treasury: str, reason: str
    ) -> str:
        """
        Выплата получателю комиссии с fallback в treasury.

        Если получатель отклоняет перевод, сумма уходит в treasury и
        эмитится PayoutRedirected. Ошибка treasury не перехватывается.

        Returns:
            Фактический получатель
        """
        if amount == 0:
            return recipient
        if recipient != treasury:
            try:
                self.transfer_quote(sender, recipient, amount)
                return recipient
            except TransferFailed as exc:
                logger.warning(
                    "payout of %d to %s redirected to treasury (%s): %s",
                    amount, recipient, reason, exc,
                )
                self.emit(
                    PayoutRedirected(
                        intended_recipient=recipient,
                        treasury=treasury,
                        amount=amount,
                        reason=reason,
                    )
                )
        self.transfer_quote(sender, treasury, amount)
        return treasury

    # -------------------------------------------------------------------------
    # Tokens
    # -------------------------------------------------------------------------

    def transfer_tokens_with_fallback(
        self, asset: str, sender: str, recipient: str, amount: int, treasury: str, reason: str
    ) -> str:
        """Перевод токенов получателю комиссии с fallback в treasury (см. pay_with_fallback)."""
        if amount == 0:
            return recipient
        if recipient != treasury:
            try:
                self.transfer_tokens(asset, sender, recipient, amount)
                return recipient
            except TransferFailed as exc:
                logger.warning(
                    "token payout of %d %s to %s redirected to treasury (%s): %s",
                    amount, asset, recipient, reason, exc,
                )
                self.emit(
                    PayoutRedirected(
                        intended_recipient=recipient,
                        treasury=treasury,
                        amount=amount,
                        reason=reason,
                    )
                )
        self.transfer_tokens(asset, sender, treasury, amount)
        return treasury

    def token_balance(self, asset: str, account: str) -> int:
        return self._state.tokens.get((asset, account), 0)

    def total_supply(self, asset: str) -> int:
        return self._state.supply.get(asset, 0)

    def mint_tokens(self, asset: str, recipient: str, amount: int) -> None:
        validate_amount(amount)
        key = (asset, recipient)
        self._state.tokens[key] = self._state.tokens.get(key, 0) + amount
        self._state.supply[asset] = self.total_supply(asset) + amount

    def burn_tokens(self, asset: str, holder: str, amount: int) -> None:
        balance = self.token_balance(asset, holder)
        if balance < amount:
            raise InsufficientBalance(f"{holder} token balance {balance} < {amount}")
        self._state.tokens[(asset, holder)] = balance - amount
        self._state.supply[asset] = self.total_supply(asset) - amount

    def _move_tokens(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        validate_amount(amount)
        if sender == BURN_SINK:
            raise TransferFailed("BURN_SINK tokens are irrecoverable")
        balance = self.token_balance(asset, sender)
        if balance < amount:
            raise InsufficientBalance(
                f"{sender} token balance {balance} < {amount}"
            )
        self._state.tokens[(asset, sender)] = balance - amount
        key = (asset, recipient)
        self._state.tokens[key] = self._state.tokens.get(key, 0) + amount

    def transfer_tokens(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        """
        Перевод токенов с вызовом receiver hook.

        Raises:
            InsufficientBalance: Если у sender недостаточно токенов
            TransferFailed: Если получатель отклонил перевод
        """
        if amount == 0:
            return
        with self.transaction():
            self._move_tokens(asset, sender, recipient, amount)
            self._notify(sender, recipient, asset, amount)

    def lock_forever(self, asset: str, sender: str, amount: int) -> None:
        """
        Необратимая блокировка: перевод в BURN_SINK.

        Постоянное обязательство — у BURN_SINK нет контролирующей стороны,
        исходящие переводы из него запрещены.
        """
        self._move_tokens(asset, sender, BURN_SINK, amount)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def emit(self, event: Event) -> None:
        if self._validate_events:
            validate_event(event.event_name, event.model_dump(mode="json"))
        self._state.events.append(event)
        logger.debug("event %s %s", event.event_name, event.model_dump(mode="json"))

    def events(self, kind: Optional[type[E]] = None) -> list[E]:
        if kind is None:
            return list(self._state.events)
        return [e for e in self._state.events if isinstance(e, kind)]
