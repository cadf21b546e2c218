"""
CredentialVerifier — Восстановление signer'а по подписи запроса

Core не знает конкретной схемы подписи. Reference реализация —
HMAC-SHA256 над реестром ключей: credential несёт заявленного signer'а,
verifier пересчитывает MAC его ключом и возвращает identity.
"""

import hashlib
import hmac
from typing import Protocol

from launchpad.core.domain.request import Credential
from launchpad.core.errors import InvalidSignature


class CredentialVerifier(Protocol):
    def recover_signer(self, message_hash: bytes, credential: Credential) -> str: ...


class HmacCredentialVerifier:
    """HMAC-SHA256 verifier с реестром ключей signer'ов."""

    def __init__(self):
        self._keys: dict[str, bytes] = {}

    def register_key(self, identity: str, key: bytes) -> None:
        if not key:
            raise ValueError("key must be non-empty")
        self._keys[identity] = key

    def sign(self, identity: str, message_hash: bytes) -> Credential:
        """Подпись message_hash ключом identity (off-chain сторона)."""
        key = self._keys[identity]
        mac = hmac.new(key, message_hash, hashlib.sha256).hexdigest()
        return Credential(signer=identity, signature=mac)

    def recover_signer(self, message_hash: bytes, credential: Credential) -> str:
        """
        Raises:
            InvalidSignature: Если signer неизвестен или MAC не совпадает
        """
        key = self._keys.get(credential.signer)
        if key is None:
            raise InvalidSignature(f"unknown signer {credential.signer}")
        expected = hmac.new(key, message_hash, hashlib.sha256).hexdigest()
        if not hmac.compare_digest(expected, credential.signature):
            raise InvalidSignature("signature does not match request hash")
        return credential.signer
