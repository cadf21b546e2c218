"""
Contract Validation Module

Модуль для валидации JSON контрактов launchpad (запросы и события).
"""

from .validators import (
    ContractValidator,
    CreateTokenRequestValidator,
    EventValidator,
    SchemaLoader,
    validate_create_token_request,
    validate_event,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "CreateTokenRequestValidator",
    "EventValidator",
    # Functions
    "validate_create_token_request",
    "validate_event",
]
