"""Adapters — внешние коллабораторы core (деплой, ликвидность, подписи)."""

from .credentials import CredentialVerifier, HmacCredentialVerifier
from .deployer import AssetContract, AssetDeployer, InMemoryAssetDeployer, derive_address
from .liquidity import InMemoryLiquidityAdapter, LiquidityAdapter, PoolReserves

__all__ = [
    "AssetContract",
    "AssetDeployer",
    "InMemoryAssetDeployer",
    "derive_address",
    "LiquidityAdapter",
    "InMemoryLiquidityAdapter",
    "PoolReserves",
    "CredentialVerifier",
    "HmacCredentialVerifier",
]
