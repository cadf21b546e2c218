"""VestingEngine — блокировка и разблокировка pre-purchase токенов.

Графики хранятся в одной map с составным ключом (asset, beneficiary, index).
index выдаётся последовательно для каждой пары (asset, beneficiary).

Claimable:
- BURN: всегда 0 (токены уничтожены при создании, в custody не попадали)
- now <= start_time: 0
- now >= end_time: total_amount - claimed_amount
- CLIFF между start и end: 0 (всё разом в end_time)
- LINEAR между start и end:
    total_amount * (now - start) // (end - start) - claimed_amount
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from launchpad.core.access import AccessControl, Role
from launchpad.core.domain.events import (
    TokensClaimed,
    VestingScheduleCreated,
    VestingScheduleRevoked,
)
from launchpad.core.domain.vesting import VestingMode, VestingSchedule
from launchpad.core.errors import (
    InvalidVestingParameters,
    NoClaimableAmount,
    ScheduleNotFound,
    ScheduleRevoked,
)
from launchpad.core.ledger import Ledger, ReentrancyGuard

logger = logging.getLogger(__name__)

ScheduleKey = tuple[str, str, int]


@dataclass(frozen=True)
class ScheduleSpec:
    """Абсолютная аллокация для create_schedules."""

    mode: VestingMode
    amount: int
    start_time: int = 0
    duration: int = 0


@dataclass
class _VestingState:
    schedules: dict[ScheduleKey, VestingSchedule] = field(default_factory=dict)
    next_index: dict[tuple[str, str], int] = field(default_factory=dict)
    total_locked: dict[str, int] = field(default_factory=dict)


def compute_claimable(schedule: VestingSchedule, now: int) -> int:
    """
    Сумма, доступная к получению в момент now.

    Монотонно не убывает по now (для нерасторгнутого графика) и достигает
    total_amount - claimed_amount в end_time.
    """
    if schedule.revoked or schedule.mode == VestingMode.BURN:
        return 0
    if now <= schedule.start_time:
        return 0
    if now >= schedule.end_time:
        return schedule.total_amount - schedule.claimed_amount
    if schedule.mode == VestingMode.CLIFF:
        return 0

    elapsed = now - schedule.start_time
    duration = schedule.end_time - schedule.start_time
    vested = schedule.total_amount * elapsed // duration
    return max(vested - schedule.claimed_amount, 0)


class VestingEngine:
    """Vesting графики с custody токенов.

    Args:
        ledger: реестр балансов
        access: capability store (CORE — создание, ADMIN — revoke)
        custody: адрес, удерживающий заблокированные токены
    """

    def __init__(self, ledger: Ledger, access: AccessControl, custody: str = "vesting-custody"):
        self._ledger = ledger
        self._access = access
        self.custody = custody
        self._guard = ReentrancyGuard("vesting")
        self._state = _VestingState()
        ledger.register(self)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_schedule(self, asset: str, beneficiary: str, schedule_id: int) -> VestingSchedule:
        try:
            return self._state.schedules[(asset, beneficiary, schedule_id)]
        except KeyError:
            raise ScheduleNotFound(
                f"no schedule {schedule_id} for {beneficiary} on {asset}"
            ) from None

    def schedules_of(self, asset: str, beneficiary: str) -> list[VestingSchedule]:
        count = self._state.next_index.get((asset, beneficiary), 0)
        return [self._state.schedules[(asset, beneficiary, i)] for i in range(count)]

    def schedule_count(self, asset: str) -> int:
        return sum(1 for key in self._state.schedules if key[0] == asset)

    def total_locked(self, asset: str) -> int:
        return self._state.total_locked.get(asset, 0)

    def claimable(self, asset: str, beneficiary: str, schedule_id: int) -> int:
        return compute_claimable(self.get_schedule(asset, beneficiary, schedule_id), self._ledger.now)

    # =========================================================================
    # Creation
    # =========================================================================

    def create_schedules(
        self,
        sender: str,
        asset: str,
        beneficiary: str,
        allocations: Iterable[ScheduleSpec],
    ) -> list[VestingSchedule]:
        """Запись графиков и перевод суммы non-burn аллокаций в custody.

        Raises:
            Unauthorized: Если sender не CORE
            InvalidVestingParameters: Пустой список или отрицательная сумма
        """
        with self._guard, self._ledger.transaction():
            self._access.require(Role.CORE, sender)
            allocations = list(allocations)
            if not allocations:
                raise InvalidVestingParameters("no allocations")
            if any(a.amount < 0 or a.duration < 0 for a in allocations):
                raise InvalidVestingParameters("negative amount or duration")

            now = self._ledger.now
            custodied = sum(a.amount for a in allocations if a.mode != VestingMode.BURN)

            created = []
            pair = (asset, beneficiary)
            for allocation in allocations:
                index = self._state.next_index.get(pair, 0)
                start = allocation.start_time or now
                schedule = VestingSchedule(
                    asset=asset,
                    beneficiary=beneficiary,
                    index=index,
                    mode=allocation.mode,
                    total_amount=allocation.amount,
                    start_time=start,
                    end_time=start + allocation.duration,
                )
                self._state.schedules[schedule.key] = schedule
                self._state.next_index[pair] = index + 1
                created.append(schedule)
                self._ledger.emit(
                    VestingScheduleCreated(
                        asset=asset,
                        beneficiary=beneficiary,
                        index=index,
                        mode=schedule.mode,
                        total_amount=schedule.total_amount,
                        start_time=schedule.start_time,
                        end_time=schedule.end_time,
                    )
                )
            self._state.total_locked[asset] = self.total_locked(asset) + custodied

            self._ledger.transfer_tokens(asset, sender, self.custody, custodied)
            logger.info(
                "%d vesting schedules for %s on %s, locked=%d", len(created), beneficiary, asset, custodied
            )
            return created

    # =========================================================================
    # Claims
    # =========================================================================

    def claim(self, sender: str, asset: str, schedule_id: int) -> int:
        """Получение claimable суммы одного графика (beneficiary = sender).

        Raises:
            ScheduleNotFound, ScheduleRevoked, NoClaimableAmount
        """
        with self._guard, self._ledger.transaction():
            schedule = self.get_schedule(asset, sender, schedule_id)
            if schedule.revoked:
                raise ScheduleRevoked(f"schedule {schedule_id} of {sender} on {asset} is revoked")
            amount = compute_claimable(schedule, self._ledger.now)
            if amount == 0:
                raise NoClaimableAmount(f"nothing to claim on schedule {schedule_id}")

            self._record_claim(schedule, amount)
            self._ledger.transfer_tokens(asset, self.custody, sender, amount)
            return amount

    def claim_all(self, sender: str, asset: str) -> int:
        """Получение claimable по всем нерасторгнутым графикам sender.

        Raises:
            NoClaimableAmount: Если суммарно нечего получать
        """
        with self._guard, self._ledger.transaction():
            now = self._ledger.now
            total = 0
            for schedule in self.schedules_of(asset, sender):
                amount = compute_claimable(schedule, now)
                if amount > 0:
                    self._record_claim(schedule, amount)
                    total += amount
            if total == 0:
                raise NoClaimableAmount(f"nothing to claim for {sender} on {asset}")

            self._ledger.transfer_tokens(asset, self.custody, sender, total)
            return total

    def _record_claim(self, schedule: VestingSchedule, amount: int) -> None:
        self._state.schedules[schedule.key] = schedule.model_copy(
            update={"claimed_amount": schedule.claimed_amount + amount}
        )
        self._state.total_locked[schedule.asset] = self.total_locked(schedule.asset) - amount
        self._ledger.emit(
            TokensClaimed(
                asset=schedule.asset,
                beneficiary=schedule.beneficiary,
                index=schedule.index,
                amount=amount,
            )
        )

    # =========================================================================
    # Revoke
    # =========================================================================

    def revoke(self, sender: str, asset: str, beneficiary: str, schedule_id: int) -> tuple[int, int]:
        """Расторжение графика (только ADMIN).

        Claimable выплачивается beneficiary, остаток возвращается sender.

        Returns:
            (paid_to_beneficiary, returned_to_sender)
        """
        with self._guard, self._ledger.transaction():
            self._access.require(Role.ADMIN, sender)
            schedule = self.get_schedule(asset, beneficiary, schedule_id)
            if schedule.revoked:
                raise ScheduleRevoked(f"schedule {schedule_id} of {beneficiary} on {asset} already revoked")

            vested = compute_claimable(schedule, self._ledger.now)
            unvested = 0 if schedule.mode == VestingMode.BURN else schedule.remaining - vested

            self._state.schedules[schedule.key] = schedule.model_copy(
                update={
                    "claimed_amount": schedule.claimed_amount + vested,
                    "revoked": True,
                }
            )
            self._state.total_locked[asset] = self.total_locked(asset) - vested - unvested
            self._ledger.emit(
                VestingScheduleRevoked(
                    asset=asset,
                    beneficiary=beneficiary,
                    index=schedule_id,
                    revoker=sender,
                    paid_to_beneficiary=vested,
                    returned_amount=unvested,
                )
            )
            logger.info(
                "schedule %d of %s on %s revoked by %s: paid=%d returned=%d",
                schedule_id, beneficiary, asset, sender, vested, unvested,
            )

            self._ledger.transfer_tokens(asset, self.custody, beneficiary, vested)
            self._ledger.transfer_tokens(asset, self.custody, sender, unvested)
            return vested, unvested
