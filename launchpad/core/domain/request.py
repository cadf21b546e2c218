"""
CreateTokenRequest — Подписанный запрос на выпуск актива

Запрос подписывается off-chain signer'ом. Подпись покрывает canonical hash:
sha256 от канонического JSON (sort_keys, без пробелов) всех полей запроса.
"""

import hashlib
import json
from typing import Any, Dict

from pydantic import BaseModel, Field

from launchpad.core.contracts import validate_create_token_request

from .units import BPS_DENOMINATOR
from .vesting import VestingAllocation


class CreateTokenRequest(BaseModel):
    """
    Запрос на создание актива.

    Поля кривой (virtual_*) задают стартовые резервы до pre-purchase.
    launch_time == 0 → торговля открывается сразу.
    salt — вход для детерминированного адреса (vanity).
    """

    request_id: str = Field(..., min_length=1, description="Идентификатор для replay-защиты")
    creator: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=64)
    symbol: str = Field(..., min_length=1, max_length=16)
    total_supply: int = Field(..., gt=0)
    sale_amount: int = Field(..., ge=0)
    virtual_quote_reserve: int = Field(..., ge=0)
    virtual_base_reserve: int = Field(..., ge=0)
    launch_time: int = Field(default=0, ge=0)
    timestamp: int = Field(..., ge=0, description="Время подписи запроса (сек)")
    salt: str = Field(default="", description="Соль для адреса актива")
    initial_buy_bps: int = Field(default=0, ge=0, le=BPS_DENOMINATOR)
    margin_amount: int = Field(default=0, ge=0)
    margin_time: int = Field(default=0, ge=0, description="Срок удержания маржи (сек)")
    vesting_allocations: list[VestingAllocation] = Field(default_factory=list)

    model_config = {"frozen": True}

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "CreateTokenRequest":
        """
        Построение запроса из JSON payload с проверкой по JSON Schema.

        Raises:
            jsonschema.ValidationError: Если payload не соответствует схеме
        """
        validate_create_token_request(data)
        return cls.model_validate(data)

    def canonical_json(self) -> str:
        return json.dumps(
            self.model_dump(mode="json"), sort_keys=True, separators=(",", ":")
        )

    def canonical_hash(self) -> bytes:
        """Хэш, который подписывает signer."""
        return hashlib.sha256(self.canonical_json().encode("utf-8")).digest()


class Credential(BaseModel):
    """Подпись запроса: заявленный signer + hex подпись."""

    signer: str = Field(..., min_length=1)
    signature: str = Field(..., pattern="^[0-9a-f]+$")

    model_config = {"frozen": True}
