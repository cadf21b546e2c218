"""
AssetDeployer — Детерминированный деплой токенов

Адрес актива выводится до деплоя (CREATE2-style):
    address = sha3_256(0xff ‖ deployer ‖ salt ‖ init_hash)[-20:]
    salt = sha3_256(creator ‖ request salt)
    init_hash = sha3_256(name ‖ symbol ‖ total_supply)

Адрес можно предсказать off-chain (predict) и подобрать vanity salt
(mine_vanity_salt). Деплой минтит весь supply владельцу (custody core)
и выставляет TransferMode.RESTRICTED.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from launchpad.core.domain.token import TransferMode
from launchpad.core.errors import AssetAlreadyExists, AssetNotFound, Unauthorized
from launchpad.core.ledger import Ledger

logger = logging.getLogger(__name__)


# =============================================================================
# ИНТЕРФЕЙСЫ
# =============================================================================


class AssetDeployer(Protocol):
    def predict(self, name: str, symbol: str, total_supply: int, creator: str, salt: str) -> str: ...

    def deploy(
        self, owner: str, name: str, symbol: str, total_supply: int, creator: str, salt: str
    ) -> str: ...

    def contract(self, asset: str) -> "AssetContract": ...

    def set_transfer_mode(self, sender: str, asset: str, mode: TransferMode) -> None: ...

    def set_pool(self, sender: str, asset: str, pool: str) -> None: ...


@dataclass
class AssetContract:
    """Выпущенный токен: метаданные, transfer mode и связанный pool."""

    asset: str
    name: str
    symbol: str
    total_supply: int
    owner: str
    transfer_mode: TransferMode = TransferMode.RESTRICTED
    pool: Optional[str] = None


@dataclass
class _DeployerState:
    contracts: dict[str, AssetContract] = field(default_factory=dict)


# =============================================================================
# ХЭШИ
# =============================================================================


def _sha3(*parts: bytes) -> bytes:
    h = hashlib.sha3_256()
    for part in parts:
        h.update(part)
    return h.digest()


def derive_address(*parts: str) -> str:
    """Адрес 0x + 40 hex из последних 20 байт sha3_256."""
    digest = _sha3(*(p.encode("utf-8") for p in parts))
    return "0x" + digest[-20:].hex()


# =============================================================================
# IN-MEMORY DEPLOYER
# =============================================================================


class InMemoryAssetDeployer:
    """
    Reference deployer поверх Ledger.

    Args:
        ledger: реестр балансов (mint supply)
        address: адрес деплойера (входит в вывод адреса)
    """

    def __init__(self, ledger: Ledger, address: str = "asset-deployer"):
        self._ledger = ledger
        self.address = address
        self._state = _DeployerState()
        ledger.register(self)

    def _salt(self, creator: str, salt: str) -> bytes:
        return _sha3(creator.encode("utf-8"), b"\x00", salt.encode("utf-8"))

    def _init_hash(self, name: str, symbol: str, total_supply: int) -> bytes:
        return _sha3(name.encode("utf-8"), b"\x00", symbol.encode("utf-8"), b"\x00", str(total_supply).encode())

    def predict(self, name: str, symbol: str, total_supply: int, creator: str, salt: str) -> str:
        """Чистый запрос: адрес, который получит актив при deploy."""
        digest = _sha3(
            b"\xff",
            self.address.encode("utf-8"),
            self._salt(creator, salt),
            self._init_hash(name, symbol, total_supply),
        )
        return "0x" + digest[-20:].hex()

    def mine_vanity_salt(
        self,
        name: str,
        symbol: str,
        total_supply: int,
        creator: str,
        suffix: str,
        max_iterations: int = 100_000,
    ) -> tuple[str, str]:
        """
        Подбор salt, при котором адрес оканчивается на suffix.

        Returns:
            (salt, address)

        Raises:
            ValueError: Если не найдено за max_iterations
        """
        suffix = suffix.lower()
        for i in range(max_iterations):
            salt = str(i)
            address = self.predict(name, symbol, total_supply, creator, salt)
            if address.endswith(suffix):
                return salt, address
        raise ValueError(f"no salt for suffix {suffix!r} within {max_iterations} iterations")

    def deploy(
        self, owner: str, name: str, symbol: str, total_supply: int, creator: str, salt: str
    ) -> str:
        """
        Деплой токена; весь supply минтится owner.

        Raises:
            AssetAlreadyExists: Если адрес уже занят
        """
        asset = self.predict(name, symbol, total_supply, creator, salt)
        if asset in self._state.contracts:
            raise AssetAlreadyExists(f"asset {asset} already deployed")
        self._state.contracts[asset] = AssetContract(
            asset=asset,
            name=name,
            symbol=symbol,
            total_supply=total_supply,
            owner=owner,
        )
        self._ledger.mint_tokens(asset, owner, total_supply)
        logger.info("deployed %s (%s) supply=%d owner=%s", asset, symbol, total_supply, owner)
        return asset

    def is_deployed(self, asset: str) -> bool:
        return asset in self._state.contracts

    def contract(self, asset: str) -> AssetContract:
        try:
            return self._state.contracts[asset]
        except KeyError:
            raise AssetNotFound(f"asset {asset} not deployed") from None

    def _owned(self, sender: str, asset: str) -> AssetContract:
        contract = self.contract(asset)
        if contract.owner != sender:
            raise Unauthorized(f"{sender} is not owner of {asset}")
        return contract

    def set_transfer_mode(self, sender: str, asset: str, mode: TransferMode) -> None:
        self._owned(sender, asset).transfer_mode = mode

    def set_pool(self, sender: str, asset: str, pool: str) -> None:
        self._owned(sender, asset).pool = pool
