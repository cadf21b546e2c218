"""
AccessControl — Capability store для привилегированных операций

Каждая привилегированная операция вызывает require() в начале.
Членство в ролях изменяет только ADMIN через grant/revoke.
"""

import logging
from collections import defaultdict
from enum import Enum

from launchpad.core.errors import Unauthorized

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Capabilities launchpad."""

    ADMIN = "ADMIN"
    SIGNER = "SIGNER"  # подпись запросов на создание
    OPERATOR = "OPERATOR"  # pause / blacklist / graduate
    CORE = "CORE"  # внутренние вызовы orchestrator → lifecycle / vesting


class AccessControl:
    """Set-membership store: роль → множество аккаунтов."""

    def __init__(self, admin: str):
        self._members: dict[Role, set[str]] = defaultdict(set)
        self._members[Role.ADMIN].add(admin)

    def has_role(self, role: Role, account: str) -> bool:
        return account in self._members[role]

    def require(self, role: Role, account: str) -> None:
        """
        Raises:
            Unauthorized: Если account не имеет роли
        """
        if not self.has_role(role, account):
            raise Unauthorized(f"{account} lacks role {role.value}")

    def grant(self, sender: str, role: Role, account: str) -> None:
        self.require(Role.ADMIN, sender)
        if account not in self._members[role]:
            self._members[role].add(account)
            logger.info("role %s granted to %s by %s", role.value, account, sender)

    def revoke(self, sender: str, role: Role, account: str) -> None:
        self.require(Role.ADMIN, sender)
        if account in self._members[role]:
            self._members[role].discard(account)
            logger.info("role %s revoked from %s by %s", role.value, account, sender)

    def members(self, role: Role) -> frozenset[str]:
        return frozenset(self._members[role])
