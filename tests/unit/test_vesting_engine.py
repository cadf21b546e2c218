"""Тесты для VestingEngine.

Coverage:
- compute_claimable: Burn / Cliff / Linear, границы start и end
- Монотонность Linear
- create_schedules: роль CORE, индексы, custody
- claim / claim_all / revoke
- Атомарность при отклонённой выплате и реентерабельном вызове
"""

import pytest

from launchpad.core.access import AccessControl, Role
from launchpad.core.domain import TokensClaimed, VestingMode, VestingSchedule, VestingScheduleCreated
from launchpad.core.errors import (
    InvalidVestingParameters,
    NoClaimableAmount,
    ReentrantCall,
    ScheduleNotFound,
    ScheduleRevoked,
    TransferFailed,
    Unauthorized,
)
from launchpad.core.ledger import Ledger
from launchpad.vesting import ScheduleSpec, VestingEngine, compute_claimable

ASSET = "0xasset"
CORE = "core"
ADMIN = "admin"
BENEFICIARY = "alice"
T0 = 1_000


@pytest.fixture
def ledger():
    ledger = Ledger(now=T0)
    ledger.mint_tokens(ASSET, CORE, 10_000)
    return ledger


@pytest.fixture
def engine(ledger):
    access = AccessControl(ADMIN)
    access.grant(ADMIN, Role.CORE, CORE)
    return VestingEngine(ledger, access)


@pytest.fixture
def specs():
    return [
        ScheduleSpec(mode=VestingMode.LINEAR, amount=1_000, duration=100),
        ScheduleSpec(mode=VestingMode.CLIFF, amount=500, duration=50),
        ScheduleSpec(mode=VestingMode.BURN, amount=300),
    ]


def make_schedule(mode=VestingMode.LINEAR, total=1_000, start=0, end=100, claimed=0, revoked=False):
    return VestingSchedule(
        asset=ASSET,
        beneficiary=BENEFICIARY,
        index=0,
        mode=mode,
        total_amount=total,
        start_time=start,
        end_time=end,
        claimed_amount=claimed,
        revoked=revoked,
    )


# =============================================================================
# CLAIMABLE COMPUTATION
# =============================================================================


class TestComputeClaimable:
    def test_linear_example(self):
        """Linear 1000 на [0, 100]: t=0 → 0, t=50 → 500, t=100 → 1000."""
        schedule = make_schedule()

        assert compute_claimable(schedule, 0) == 0
        assert compute_claimable(schedule, 50) == 500
        assert compute_claimable(schedule, 100) == 1_000

    def test_linear_monotonic_and_reaches_total(self):
        schedule = make_schedule(total=997, start=10, end=83)
        previous = 0
        for t in range(0, 120):
            value = compute_claimable(schedule, t)
            assert value >= previous
            previous = value
        assert previous == 997

    def test_linear_subtracts_claimed(self):
        schedule = make_schedule(claimed=300)

        assert compute_claimable(schedule, 50) == 200
        assert compute_claimable(schedule, 20) == 0
        assert compute_claimable(schedule, 100) == 700

    def test_cliff_all_or_nothing(self):
        schedule = make_schedule(mode=VestingMode.CLIFF)

        assert compute_claimable(schedule, 99) == 0
        assert compute_claimable(schedule, 100) == 1_000

    def test_burn_never_claimable(self):
        schedule = make_schedule(mode=VestingMode.BURN)

        assert compute_claimable(schedule, 10_000) == 0

    def test_revoked_never_claimable(self):
        schedule = make_schedule(revoked=True)

        assert compute_claimable(schedule, 10_000) == 0

    def test_zero_duration_unlocks_after_start(self):
        schedule = make_schedule(start=50, end=50)

        assert compute_claimable(schedule, 50) == 0
        assert compute_claimable(schedule, 51) == 1_000


# =============================================================================
# CREATION
# =============================================================================


class TestCreateSchedules:
    def test_requires_core_role(self, engine, specs):
        with pytest.raises(Unauthorized, match="CORE"):
            engine.create_schedules("mallory", ASSET, BENEFICIARY, specs)

    def test_records_sequential_schedules_and_custodies_non_burn(self, engine, ledger, specs):
        created = engine.create_schedules(CORE, ASSET, BENEFICIARY, specs)

        assert [s.index for s in created] == [0, 1, 2]
        assert created[0].start_time == T0
        assert created[0].end_time == T0 + 100
        assert ledger.token_balance(ASSET, engine.custody) == 1_500
        assert ledger.token_balance(ASSET, CORE) == 8_500
        assert engine.total_locked(ASSET) == 1_500
        assert engine.schedule_count(ASSET) == 3
        assert len(ledger.events(VestingScheduleCreated)) == 3

    def test_indices_continue_per_beneficiary(self, engine, specs):
        engine.create_schedules(CORE, ASSET, BENEFICIARY, specs[:1])
        created = engine.create_schedules(CORE, ASSET, BENEFICIARY, specs[1:2])

        assert created[0].index == 1
        assert len(engine.schedules_of(ASSET, BENEFICIARY)) == 2
        assert engine.schedules_of(ASSET, "carol") == []

    def test_explicit_start_time(self, engine):
        created = engine.create_schedules(
            CORE,
            ASSET,
            BENEFICIARY,
            [ScheduleSpec(mode=VestingMode.LINEAR, amount=100, start_time=5_000, duration=10)],
        )

        assert (created[0].start_time, created[0].end_time) == (5_000, 5_010)

    def test_empty_allocations_rejected(self, engine):
        with pytest.raises(InvalidVestingParameters):
            engine.create_schedules(CORE, ASSET, BENEFICIARY, [])


# =============================================================================
# CLAIMS
# =============================================================================


class TestClaims:
    def test_claim_linear_midway(self, engine, ledger, specs):
        engine.create_schedules(CORE, ASSET, BENEFICIARY, specs)
        ledger.advance(50)

        assert engine.claimable(ASSET, BENEFICIARY, 0) == 500
        assert engine.claim(BENEFICIARY, ASSET, 0) == 500

        assert ledger.token_balance(ASSET, BENEFICIARY) == 500
        assert engine.get_schedule(ASSET, BENEFICIARY, 0).claimed_amount == 500
        assert engine.total_locked(ASSET) == 1_000
        assert ledger.events(TokensClaimed)[-1].amount == 500

    def test_claim_twice_at_same_time_fails(self, engine, ledger, specs):
        engine.create_schedules(CORE, ASSET, BENEFICIARY, specs)
        ledger.advance(50)
        engine.claim(BENEFICIARY, ASSET, 0)

        with pytest.raises(NoClaimableAmount):
            engine.claim(BENEFICIARY, ASSET, 0)

    def test_cliff_before_end_fails(self, engine, ledger, specs):
        engine.create_schedules(CORE, ASSET, BENEFICIARY, specs)
        ledger.advance(49)

        with pytest.raises(NoClaimableAmount):
            engine.claim(BENEFICIARY, ASSET, 1)

        ledger.advance(1)
        assert engine.claim(BENEFICIARY, ASSET, 1) == 500

    def test_burn_schedule_has_nothing_to_claim(self, engine, ledger, specs):
        engine.create_schedules(CORE, ASSET, BENEFICIARY, specs)
        ledger.advance(1_000)

        with pytest.raises(NoClaimableAmount):
            engine.claim(BENEFICIARY, ASSET, 2)

    def test_claim_all(self, engine, ledger, specs):
        engine.create_schedules(CORE, ASSET, BENEFICIARY, specs)
        ledger.advance(100)

        assert engine.claim_all(BENEFICIARY, ASSET) == 1_500
        assert ledger.token_balance(ASSET, engine.custody) == 0
        assert engine.total_locked(ASSET) == 0

        with pytest.raises(NoClaimableAmount):
            engine.claim_all(BENEFICIARY, ASSET)

    def test_unknown_schedule(self, engine):
        with pytest.raises(ScheduleNotFound):
            engine.claim(BENEFICIARY, ASSET, 7)

    def test_rejected_delivery_rolls_back_claim(self, engine, ledger, specs):
        engine.create_schedules(CORE, ASSET, BENEFICIARY, specs)
        ledger.advance(100)

        def reject(sender, asset, amount):
            raise RuntimeError("not accepting")

        ledger.set_receiver_hook(BENEFICIARY, reject)

        with pytest.raises(TransferFailed, match="not accepting"):
            engine.claim(BENEFICIARY, ASSET, 0)

        assert engine.get_schedule(ASSET, BENEFICIARY, 0).claimed_amount == 0
        assert engine.total_locked(ASSET) == 1_500
        assert ledger.events(TokensClaimed) == []

    def test_reentrant_claim_rejected(self, engine, ledger, specs):
        engine.create_schedules(CORE, ASSET, BENEFICIARY, specs)
        ledger.advance(100)

        def reenter(sender, asset, amount):
            engine.claim(BENEFICIARY, ASSET, 1)

        ledger.set_receiver_hook(BENEFICIARY, reenter)

        with pytest.raises(TransferFailed) as excinfo:
            engine.claim(BENEFICIARY, ASSET, 0)

        assert isinstance(excinfo.value.__cause__, ReentrantCall)
        assert ledger.token_balance(ASSET, BENEFICIARY) == 0


# =============================================================================
# REVOKE
# =============================================================================


class TestRevoke:
    def test_requires_admin(self, engine, specs):
        engine.create_schedules(CORE, ASSET, BENEFICIARY, specs)

        with pytest.raises(Unauthorized):
            engine.revoke(CORE, ASSET, BENEFICIARY, 0)

    def test_revoke_splits_vested_and_unvested(self, engine, ledger, specs):
        engine.create_schedules(CORE, ASSET, BENEFICIARY, specs)
        ledger.advance(30)

        paid, returned = engine.revoke(ADMIN, ASSET, BENEFICIARY, 0)

        assert (paid, returned) == (300, 700)
        assert ledger.token_balance(ASSET, BENEFICIARY) == 300
        assert ledger.token_balance(ASSET, ADMIN) == 700
        assert engine.get_schedule(ASSET, BENEFICIARY, 0).revoked
        assert engine.total_locked(ASSET) == 500

    def test_revoked_schedule_cannot_be_claimed_or_revoked_again(self, engine, ledger, specs):
        engine.create_schedules(CORE, ASSET, BENEFICIARY, specs)
        engine.revoke(ADMIN, ASSET, BENEFICIARY, 0)
        ledger.advance(1_000)

        with pytest.raises(ScheduleRevoked):
            engine.claim(BENEFICIARY, ASSET, 0)
        with pytest.raises(ScheduleRevoked):
            engine.revoke(ADMIN, ASSET, BENEFICIARY, 0)

    def test_claim_all_skips_revoked(self, engine, ledger, specs):
        engine.create_schedules(CORE, ASSET, BENEFICIARY, specs)
        engine.revoke(ADMIN, ASSET, BENEFICIARY, 0)
        ledger.advance(1_000)

        assert engine.claim_all(BENEFICIARY, ASSET) == 500
