"""
JSON Schema Contract Validators

Модуль для валидации JSON данных согласно формальным JSON Schema контрактам.
Использует библиотеку jsonschema для проверки соответствия данных схемам.

Схемы:
- create_token_request.json (payload подписанного запроса)
- events.json ($defs на каждое наблюдаемое событие)
"""

import json
from pathlib import Path
from typing import Any, Dict

import jsonschema
from jsonschema import Draft202012Validator


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    Схемы лежат в schema/ рядом с этим модулем (входят в пакет).
    """

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or Path(__file__).parent / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'events')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если схема сама по себе невалидна
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        # Валидируем саму схему (meta-validation)
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}")

        self._schemas[schema_name] = schema
        return schema


# Глобальный экземпляр загрузчика
_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый класс для валидаторов контрактов.

    Инкапсулирует логику валидации данных против JSON Schema.
    """

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            ValidationError: Если данные не соответствуют схеме
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        return self.validator.iter_errors(data)


class CreateTokenRequestValidator(ContractValidator):
    """Валидатор payload запроса на создание актива."""

    def __init__(self):
        super().__init__("create_token_request")


class EventValidator:
    """
    Валидатор событий.

    events.json содержит $defs по имени события; для каждого имени
    строится отдельный validator со ссылкой на соответствующий $def.
    """

    def __init__(self):
        self.schema = _SCHEMA_LOADER.load_schema("events")
        self._validators: Dict[str, Draft202012Validator] = {}

    @property
    def event_names(self) -> list[str]:
        return sorted(self.schema["$defs"])

    def _validator_for(self, event_name: str) -> Draft202012Validator:
        if event_name not in self._validators:
            if event_name not in self.schema["$defs"]:
                raise KeyError(f"Unknown event: {event_name}")
            schema = dict(self.schema)
            schema["$ref"] = f"#/$defs/{event_name}"
            self._validators[event_name] = Draft202012Validator(schema)
        return self._validators[event_name]

    def validate(self, event_name: str, payload: Dict[str, Any]) -> None:
        """
        Raises:
            KeyError: Если событие неизвестно схеме
            ValidationError: Если payload не соответствует схеме
        """
        self._validator_for(event_name).validate(payload)

    def is_valid(self, event_name: str, payload: Dict[str, Any]) -> bool:
        return self._validator_for(event_name).is_valid(payload)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

_REQUEST_VALIDATOR: CreateTokenRequestValidator | None = None
_EVENT_VALIDATOR: EventValidator | None = None


def validate_create_token_request(data: Dict[str, Any]) -> None:
    """
    Валидация payload запроса на создание актива.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    global _REQUEST_VALIDATOR
    if _REQUEST_VALIDATOR is None:
        _REQUEST_VALIDATOR = CreateTokenRequestValidator()
    _REQUEST_VALIDATOR.validate(data)


def validate_event(event_name: str, payload: Dict[str, Any]) -> None:
    """
    Валидация payload события.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    global _EVENT_VALIDATOR
    if _EVENT_VALIDATOR is None:
        _EVENT_VALIDATOR = EventValidator()
    _EVENT_VALIDATOR.validate(event_name, payload)
