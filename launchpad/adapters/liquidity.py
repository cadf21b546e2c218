"""
LiquidityAdapter — Внешний пул ликвидности для graduated активов

provide_liquidity переводит quote и токены в pool и минтит провайдеру
LP units = isqrt(quote * tokens) при первом депозите, далее пропорционально
меньшей из сторон.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Protocol

from launchpad.adapters.deployer import derive_address
from launchpad.core.ledger import Ledger

logger = logging.getLogger(__name__)


class LiquidityAdapter(Protocol):
    def pool_address(self, asset: str) -> str: ...

    def provide_liquidity(self, provider: str, asset: str, quote_amount: int, token_amount: int) -> int: ...


@dataclass
class PoolReserves:
    quote: int = 0
    tokens: int = 0
    units: int = 0


@dataclass
class _PoolState:
    pools: dict[str, PoolReserves] = field(default_factory=dict)


class InMemoryLiquidityAdapter:
    """
    Reference constant-product pool, один на актив.

    LP units учитываются в Ledger как токен с идентификатором = адрес пула.
    """

    def __init__(self, ledger: Ledger, factory: str = "pool-factory", quote_symbol: str = "QUOTE"):
        self._ledger = ledger
        self.factory = factory
        self.quote_symbol = quote_symbol
        self._state = _PoolState()
        ledger.register(self)

    def pool_address(self, asset: str) -> str:
        """Существующий или предсказанный адрес пула."""
        return derive_address(self.factory, asset, self.quote_symbol)

    def reserves(self, asset: str) -> PoolReserves:
        return self._state.pools.get(self.pool_address(asset), PoolReserves())

    def provide_liquidity(self, provider: str, asset: str, quote_amount: int, token_amount: int) -> int:
        """
        Депозит в пул.

        Returns:
            Количество LP units, зачисленных provider

        Raises:
            ValueError: Если одна из сторон нулевая
        """
        if quote_amount <= 0 or token_amount <= 0:
            raise ValueError("both liquidity legs must be positive")

        pool = self.pool_address(asset)
        reserves = self._state.pools.setdefault(pool, PoolReserves())

        if reserves.units == 0:
            units = math.isqrt(quote_amount * token_amount)
        else:
            units = min(
                quote_amount * reserves.units // reserves.quote,
                token_amount * reserves.units // reserves.tokens,
            )

        self._ledger.transfer_quote(provider, pool, quote_amount)
        self._ledger.transfer_tokens(asset, provider, pool, token_amount)
        self._ledger.mint_tokens(pool, provider, units)

        reserves.quote += quote_amount
        reserves.tokens += token_amount
        reserves.units += units
        logger.info(
            "liquidity added to %s: quote=%d tokens=%d units=%d", pool, quote_amount, token_amount, units
        )
        return units
