"""Тесты для Ledger и ReentrancyGuard.

Coverage:
- Балансы quote / token, время исполнения
- transaction(): откат реестра и зарегистрированных компонентов, savepoints
- Receiver hooks и отклонённые переводы
- Payout fallback в treasury
- BURN_SINK
- Валидация событий по JSON Schema
"""

from dataclasses import dataclass, field

import pytest
from jsonschema import ValidationError

from launchpad.core.domain import PayoutRedirected, TokensBurned
from launchpad.core.errors import InsufficientBalance, ReentrantCall, TransferFailed
from launchpad.core.ledger import BURN_SINK, Ledger, ReentrancyGuard


@dataclass
class _CounterState:
    values: dict[str, int] = field(default_factory=dict)


class Counter:
    def __init__(self, ledger):
        self._state = _CounterState()
        ledger.register(self)


@pytest.fixture
def ledger():
    ledger = Ledger(now=100)
    ledger.mint_quote("alice", 1_000)
    ledger.mint_tokens("TKN", "alice", 500)
    return ledger


def reject(sender, asset, amount):
    raise RuntimeError("rejected by receiver")


# =============================================================================
# BALANCES AND TIME
# =============================================================================


class TestBalances:
    def test_transfer_quote(self, ledger):
        ledger.transfer_quote("alice", "bob", 300)

        assert ledger.quote_balance("alice") == 700
        assert ledger.quote_balance("bob") == 300

    def test_insufficient_quote(self, ledger):
        with pytest.raises(InsufficientBalance, match="quote balance"):
            ledger.transfer_quote("alice", "bob", 1_001)

    def test_negative_amount_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.transfer_quote("alice", "bob", -1)

    def test_token_mint_and_burn_track_supply(self, ledger):
        ledger.burn_tokens("TKN", "alice", 200)

        assert ledger.token_balance("TKN", "alice") == 300
        assert ledger.total_supply("TKN") == 300

        with pytest.raises(InsufficientBalance):
            ledger.burn_tokens("TKN", "alice", 301)

    def test_time_moves_forward_only(self, ledger):
        assert ledger.advance(50) == 150

        with pytest.raises(ValueError, match="backwards"):
            ledger.set_time(149)


# =============================================================================
# TRANSACTIONS
# =============================================================================


class TestTransactions:
    def test_exception_restores_ledger_and_components(self, ledger):
        counter = Counter(ledger)

        with pytest.raises(RuntimeError):
            with ledger.transaction():
                ledger.transfer_quote("alice", "bob", 400)
                counter._state.values["x"] = 1
                ledger.emit(TokensBurned(asset="TKN", amount=1))
                raise RuntimeError("abort")

        assert ledger.quote_balance("alice") == 1_000
        assert ledger.quote_balance("bob") == 0
        assert counter._state.values == {}
        assert ledger.events() == []

    def test_rollback_truncates_event_log_in_place(self, ledger):
        earlier = TokensBurned(asset="TKN", amount=1)
        ledger.emit(earlier)
        log = ledger._state.events

        with pytest.raises(RuntimeError):
            with ledger.transaction():
                ledger.emit(TokensBurned(asset="TKN", amount=2))
                raise RuntimeError("abort")

        assert ledger._state.events is log
        assert ledger.events() == [earlier]
        assert ledger.events()[0] is earlier

    def test_nested_failure_is_a_savepoint(self, ledger):
        ledger.set_receiver_hook("carol", reject)

        with ledger.transaction():
            ledger.transfer_quote("alice", "bob", 100)
            with pytest.raises(TransferFailed):
                ledger.transfer_quote("alice", "carol", 100)

        assert ledger.quote_balance("bob") == 100
        assert ledger.quote_balance("carol") == 0
        assert ledger.quote_balance("alice") == 900


# =============================================================================
# HOOKS AND FALLBACK
# =============================================================================


class TestReceiverHooks:
    def test_hook_sees_transfer(self, ledger):
        seen = []
        ledger.set_receiver_hook("bob", lambda sender, asset, amount: seen.append((sender, asset, amount)))

        ledger.transfer_tokens("TKN", "alice", "bob", 10)
        ledger.transfer_quote("alice", "bob", 20)

        assert seen == [("alice", "TKN", 10), ("alice", None, 20)]

    def test_rejecting_hook_fails_transfer(self, ledger):
        ledger.set_receiver_hook("bob", reject)

        with pytest.raises(TransferFailed, match="rejected by receiver"):
            ledger.transfer_tokens("TKN", "alice", "bob", 10)

        assert ledger.token_balance("TKN", "alice") == 500

    def test_hook_removed(self, ledger):
        ledger.set_receiver_hook("bob", reject)
        ledger.set_receiver_hook("bob", None)

        ledger.transfer_quote("alice", "bob", 1)
        assert ledger.quote_balance("bob") == 1

    def test_zero_transfer_skips_hook(self, ledger):
        ledger.set_receiver_hook("bob", reject)

        ledger.transfer_quote("alice", "bob", 0)

    def test_pay_with_fallback_delivers(self, ledger):
        recipient = ledger.pay_with_fallback("alice", "platform", 50, "treasury", reason="fee")

        assert recipient == "platform"
        assert ledger.quote_balance("platform") == 50
        assert ledger.events(PayoutRedirected) == []

    def test_pay_with_fallback_redirects_to_treasury(self, ledger):
        ledger.set_receiver_hook("platform", reject)

        recipient = ledger.pay_with_fallback("alice", "platform", 50, "treasury", reason="fee")

        assert recipient == "treasury"
        assert ledger.quote_balance("treasury") == 50
        assert ledger.quote_balance("platform") == 0
        event = ledger.events(PayoutRedirected)[0]
        assert (event.intended_recipient, event.amount, event.reason) == ("platform", 50, "fee")

    def test_treasury_failure_propagates(self, ledger):
        ledger.set_receiver_hook("platform", reject)
        ledger.set_receiver_hook("treasury", reject)

        with pytest.raises(TransferFailed):
            ledger.pay_with_fallback("alice", "platform", 50, "treasury", reason="fee")

    def test_token_fallback(self, ledger):
        ledger.set_receiver_hook("creator", reject)

        recipient = ledger.transfer_tokens_with_fallback(
            "TKN", "alice", "creator", 25, "treasury", reason="creator_tokens"
        )

        assert recipient == "treasury"
        assert ledger.token_balance("TKN", "treasury") == 25


# =============================================================================
# BURN SINK
# =============================================================================


class TestBurnSink:
    def test_locked_tokens_cannot_leave(self, ledger):
        ledger.lock_forever("TKN", "alice", 100)

        assert ledger.token_balance("TKN", BURN_SINK) == 100
        with pytest.raises(TransferFailed, match="irrecoverable"):
            ledger.transfer_tokens("TKN", BURN_SINK, "alice", 1)

    def test_sink_quote_cannot_leave(self, ledger):
        ledger.transfer_quote("alice", BURN_SINK, 10)

        with pytest.raises(TransferFailed):
            ledger.transfer_quote(BURN_SINK, "alice", 10)


# =============================================================================
# REENTRANCY GUARD
# =============================================================================


class TestReentrancyGuard:
    def test_nested_entry_rejected(self):
        guard = ReentrancyGuard("surface")

        with guard:
            assert guard.entered
            with pytest.raises(ReentrantCall, match="surface"):
                with guard:
                    pass

        assert not guard.entered

    def test_released_after_exception(self):
        guard = ReentrancyGuard("surface")

        with pytest.raises(RuntimeError):
            with guard:
                raise RuntimeError("boom")

        with guard:
            pass


# =============================================================================
# EVENTS
# =============================================================================


class TestEvents:
    def test_events_filtered_by_kind(self, ledger):
        ledger.emit(TokensBurned(asset="TKN", amount=5))
        ledger.emit(PayoutRedirected(intended_recipient="a", treasury="t", amount=1, reason="fee"))

        assert len(ledger.events()) == 2
        assert [e.amount for e in ledger.events(TokensBurned)] == [5]

    def test_payload_checked_against_schema(self, ledger):
        with pytest.raises(ValidationError):
            ledger.emit(TokensBurned(asset="", amount=5))

    def test_validation_can_be_disabled(self):
        ledger = Ledger(validate_events=False)

        ledger.emit(TokensBurned(asset="", amount=5))
        assert len(ledger.events()) == 1
