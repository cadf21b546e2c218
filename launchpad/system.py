"""
Launchpad — сборка компонентов и admin configuration surface.

Launchpad.build() создаёт Ledger, AccessControl, адаптеры, LifecycleStateMachine,
VestingEngine и CreationOrchestrator, разделяющие один FeeConfig и один
FeeRecipients. Custody адрес core получает роль CORE.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from launchpad.adapters.credentials import HmacCredentialVerifier
from launchpad.adapters.deployer import InMemoryAssetDeployer
from launchpad.adapters.liquidity import InMemoryLiquidityAdapter
from launchpad.core.access import AccessControl, Role
from launchpad.core.config import FeeConfig, FeeRecipients, LaunchpadParams
from launchpad.core.domain.events import FeeConfigUpdated
from launchpad.core.ledger import Ledger
from launchpad.creation.orchestrator import CreationOrchestrator
from launchpad.lifecycle.state_machine import LifecycleStateMachine
from launchpad.vesting.engine import VestingEngine

logger = logging.getLogger(__name__)


@dataclass
class Launchpad:
    """Собранная система. Поля — компоненты, доступные напрямую."""

    ledger: Ledger
    access: AccessControl
    verifier: HmacCredentialVerifier
    deployer: InMemoryAssetDeployer
    liquidity: InMemoryLiquidityAdapter
    lifecycle: LifecycleStateMachine
    vesting: VestingEngine
    creation: CreationOrchestrator
    fee_config: FeeConfig
    recipients: FeeRecipients
    params: LaunchpadParams

    @classmethod
    def build(
        cls,
        admin: str,
        treasury: str,
        platform_fee_receiver: Optional[str] = None,
        margin_receiver: Optional[str] = None,
        fee_config: Optional[FeeConfig] = None,
        params: Optional[LaunchpadParams] = None,
        now: int = 0,
        validate_events: bool = True,
    ) -> "Launchpad":
        """
        Сборка launchpad с in-memory адаптерами.

        Args:
            admin: владелец роли ADMIN
            treasury: fallback получатель выплат
            platform_fee_receiver: получатель комиссий (по умолчанию treasury)
            margin_receiver: получатель маржи (по умолчанию treasury)
            fee_config: стартовые комиссии (по умолчанию FeeConfig())
            params: протокольные константы
            now: стартовое время реестра
            validate_events: проверять события по JSON Schema
        """
        ledger = Ledger(now=now, validate_events=validate_events)
        access = AccessControl(admin)
        fee_config = fee_config or FeeConfig()
        params = params or LaunchpadParams()
        recipients = FeeRecipients(
            treasury=treasury,
            platform_fee_receiver=platform_fee_receiver or treasury,
            margin_receiver=margin_receiver or treasury,
        )

        verifier = HmacCredentialVerifier()
        deployer = InMemoryAssetDeployer(ledger)
        liquidity = InMemoryLiquidityAdapter(ledger)
        lifecycle = LifecycleStateMachine(
            ledger, access, deployer, liquidity, fee_config, recipients, params
        )
        vesting = VestingEngine(ledger, access)
        creation = CreationOrchestrator(
            ledger, access, verifier, deployer, lifecycle, vesting, fee_config, recipients, params
        )
        access.grant(admin, Role.CORE, lifecycle.custody)

        logger.info("launchpad built: admin=%s treasury=%s custody=%s", admin, treasury, lifecycle.custody)
        return cls(
            ledger=ledger,
            access=access,
            verifier=verifier,
            deployer=deployer,
            liquidity=liquidity,
            lifecycle=lifecycle,
            vesting=vesting,
            creation=creation,
            fee_config=fee_config,
            recipients=recipients,
            params=params,
        )

    # =========================================================================
    # Admin surface
    # =========================================================================

    def set_fee_config(self, sender: str, **changes: int) -> FeeConfig:
        """
        Обновление комиссий (только ADMIN). Запись атомарна: либо все поля
        проходят проверку диапазона, либо ничего не меняется.

        Raises:
            Unauthorized: Если sender не ADMIN
            ValueError: Неизвестное поле или пустой набор изменений
            pydantic.ValidationError: Значение вне допустимого диапазона
        """
        self.access.require(Role.ADMIN, sender)
        unknown = set(changes) - set(FeeConfig.model_fields)
        if unknown:
            raise ValueError(f"unknown fee config fields: {sorted(unknown)}")
        if not changes:
            raise ValueError("no fee config changes")

        # Сначала полная проверка, затем запись в разделяемый экземпляр
        FeeConfig.model_validate({**self.fee_config.model_dump(), **changes})
        self.ledger.emit(FeeConfigUpdated(changes=dict(changes)))
        for key, value in changes.items():
            setattr(self.fee_config, key, value)
        logger.info("fee config updated by %s: %s", sender, changes)
        return self.fee_config

    def set_fee_recipients(
        self,
        sender: str,
        treasury: Optional[str] = None,
        platform_fee_receiver: Optional[str] = None,
        margin_receiver: Optional[str] = None,
    ) -> FeeRecipients:
        """Смена получателей выплат (только ADMIN)."""
        self.access.require(Role.ADMIN, sender)
        updates = {
            "treasury": treasury,
            "platform_fee_receiver": platform_fee_receiver,
            "margin_receiver": margin_receiver,
        }
        updates = {k: v for k, v in updates.items() if v is not None}
        FeeRecipients.model_validate({**self.recipients.model_dump(), **updates})
        for key, value in updates.items():
            setattr(self.recipients, key, value)
        logger.info("fee recipients updated by %s: %s", sender, updates)
        return self.recipients

    def grant_role(self, sender: str, role: Role, account: str) -> None:
        self.access.grant(sender, role, account)

    def revoke_role(self, sender: str, role: Role, account: str) -> None:
        self.access.revoke(sender, role, account)

    def register_signer(self, sender: str, identity: str, key: bytes) -> None:
        """Регистрация ключа signer'а и выдача роли SIGNER (только ADMIN)."""
        self.access.grant(sender, Role.SIGNER, identity)
        self.verifier.register_key(identity, key)
