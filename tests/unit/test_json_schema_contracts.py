"""
Tests for JSON Schema Contract Validators

Комплексное тестирование JSON Schema валидаторов:
- Валидность самих схем
- Валидация правильного запроса на создание
- Детекция нарушений required полей, типов и constraints
- Схемы событий
- Интеграция с Pydantic моделями
"""

import json

import pytest
from jsonschema import ValidationError

from launchpad.core.contracts import (
    CreateTokenRequestValidator,
    EventValidator,
    SchemaLoader,
    validate_create_token_request,
    validate_event,
)
from launchpad.core.contracts import validators
from launchpad.core.domain import (
    CreateTokenRequest,
    StatusChanged,
    TokenBought,
    TokenStatus,
    VestingScheduleCreated,
    VestingMode,
)


# =============================================================================
# FIXTURES - VALID DATA SAMPLES
# =============================================================================


@pytest.fixture
def valid_request():
    """Валидный payload запроса на создание актива."""
    return {
        "request_id": "req-001",
        "creator": "alice",
        "name": "Sample",
        "symbol": "SMPL",
        "total_supply": 1_000_000_000 * 10**18,
        "sale_amount": 800_000_000 * 10**18,
        "virtual_quote_reserve": 30 * 10**18,
        "virtual_base_reserve": 1_073_000_000 * 10**18,
        "launch_time": 0,
        "timestamp": 1_700_000_000,
        "salt": "vanity-42",
        "initial_buy_bps": 500,
        "margin_amount": 0,
        "margin_time": 0,
        "vesting_allocations": [
            {"mode": "BURN", "bps": 100},
            {"mode": "LINEAR", "bps": 300, "duration": 30 * 86_400},
        ],
    }


@pytest.fixture
def valid_bought_event():
    return {
        "asset": "0xasset",
        "buyer": "bob",
        "gross_quote": 10_000,
        "net_quote": 9_900,
        "fee": 100,
        "refund": 0,
        "token_out": 9_802,
        "quote_reserve": 1_009_900,
        "base_reserve": 990_198,
        "available_supply": 790_198,
        "collected_quote": 9_900,
    }


# =============================================================================
# TESTS - SCHEMA LOADING
# =============================================================================


def test_schema_loader_loads_all_schemas():
    """Проверка загрузки всех схем."""
    loader = SchemaLoader()

    request_schema = loader.load_schema("create_token_request")
    events_schema = loader.load_schema("events")

    assert request_schema["title"] == "CreateTokenRequest"
    assert "TokenBought" in events_schema["$defs"]


def test_schema_loader_caches_schemas():
    """Проверка кэширования схем."""
    loader = SchemaLoader()

    assert loader.load_schema("events") is loader.load_schema("events")


def test_schema_loader_raises_on_missing_schema():
    loader = SchemaLoader()

    with pytest.raises(FileNotFoundError):
        loader.load_schema("non_existent_schema")


def test_schema_loader_rejects_missing_directory(tmp_path):
    with pytest.raises(RuntimeError, match="Schema directory not found"):
        SchemaLoader(tmp_path / "missing")


def test_schema_loader_rejects_invalid_schema(tmp_path):
    (tmp_path / "broken.json").write_text('{"type": 12}', encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid JSON Schema"):
        SchemaLoader(tmp_path).load_schema("broken")


# =============================================================================
# TESTS - CREATE TOKEN REQUEST
# =============================================================================


def test_request_validator_accepts_valid_data(valid_request):
    validator = CreateTokenRequestValidator()
    validator.validate(valid_request)
    assert validator.is_valid(valid_request)


def test_request_validate_function(valid_request):
    validate_create_token_request(valid_request)


def test_request_validate_function_reuses_validator(valid_request, monkeypatch):
    """Draft202012Validator строится один раз на процесс."""
    monkeypatch.setattr(validators, "_REQUEST_VALIDATOR", None)
    built = []

    class CountingValidator(CreateTokenRequestValidator):
        def __init__(self):
            built.append(self)
            super().__init__()

    monkeypatch.setattr(validators, "CreateTokenRequestValidator", CountingValidator)

    validate_create_token_request(valid_request)
    validate_create_token_request(valid_request)

    assert len(built) == 1


def test_request_rejects_missing_required_field(valid_request):
    data = valid_request.copy()
    del data["request_id"]

    with pytest.raises(ValidationError) as exc_info:
        validate_create_token_request(data)
    assert "'request_id' is a required property" in str(exc_info.value)


def test_request_rejects_wrong_type(valid_request):
    data = valid_request.copy()
    data["total_supply"] = "1000"

    with pytest.raises(ValidationError) as exc_info:
        validate_create_token_request(data)
    assert "is not of type 'integer'" in str(exc_info.value)


def test_request_rejects_percentage_above_full(valid_request):
    data = valid_request.copy()
    data["initial_buy_bps"] = 10_001

    with pytest.raises(ValidationError):
        validate_create_token_request(data)


def test_request_rejects_unknown_vesting_mode(valid_request):
    data = valid_request.copy()
    data["vesting_allocations"] = [{"mode": "STREAM", "bps": 100}]

    with pytest.raises(ValidationError):
        validate_create_token_request(data)


def test_request_rejects_unknown_field(valid_request):
    data = valid_request.copy()
    data["cliff_time"] = 100

    with pytest.raises(ValidationError):
        validate_create_token_request(data)


def test_request_iter_errors_reports_every_violation(valid_request):
    data = valid_request.copy()
    data["name"] = ""
    data["symbol"] = "X" * 17

    errors = list(CreateTokenRequestValidator().iter_errors(data))
    assert len(errors) == 2


# =============================================================================
# TESTS - EVENTS
# =============================================================================


def test_event_validator_knows_all_events():
    names = EventValidator().event_names

    for event in (
        "TokenCreated",
        "TokenBought",
        "TokenSold",
        "TokenGraduated",
        "StatusChanged",
        "VestingScheduleCreated",
        "TokensClaimed",
        "VestingScheduleRevoked",
        "PayoutRedirected",
        "MarginDeposited",
        "TokensBurned",
        "FeeConfigUpdated",
    ):
        assert event in names


def test_event_accepts_valid_payload(valid_bought_event):
    validate_event("TokenBought", valid_bought_event)
    assert EventValidator().is_valid("TokenBought", valid_bought_event)


def test_event_rejects_negative_amount(valid_bought_event):
    data = valid_bought_event.copy()
    data["fee"] = -1

    with pytest.raises(ValidationError):
        validate_event("TokenBought", data)


def test_event_rejects_extra_field(valid_bought_event):
    data = valid_bought_event.copy()
    data["price"] = 1

    with pytest.raises(ValidationError):
        validate_event("TokenBought", data)


def test_unknown_event():
    with pytest.raises(KeyError, match="Unknown event"):
        validate_event("TokenMinted", {})


def test_fee_config_update_needs_changes():
    with pytest.raises(ValidationError):
        validate_event("FeeConfigUpdated", {"changes": {}})


# =============================================================================
# TESTS - PYDANTIC MODEL INTEGRATION
# =============================================================================


def test_request_model_from_payload(valid_request):
    request = CreateTokenRequest.from_payload(valid_request)

    assert request.vesting_allocations[1].mode == VestingMode.LINEAR
    assert request.vesting_allocations[1].duration == 30 * 86_400


def test_request_from_payload_checks_schema(valid_request):
    data = valid_request.copy()
    del data["creator"]

    with pytest.raises(ValidationError):
        CreateTokenRequest.from_payload(data)


def test_canonical_hash_is_order_independent(valid_request):
    reordered = dict(reversed(list(valid_request.items())))

    a = CreateTokenRequest.from_payload(valid_request)
    b = CreateTokenRequest.from_payload(reordered)

    assert a.canonical_json() == b.canonical_json()
    assert a.canonical_hash() == b.canonical_hash()
    assert len(a.canonical_hash()) == 32


def test_canonical_hash_changes_with_content(valid_request):
    a = CreateTokenRequest.from_payload(valid_request)
    b = a.model_copy(update={"sale_amount": a.sale_amount - 1})

    assert a.canonical_hash() != b.canonical_hash()


def test_canonical_json_round_trips_through_schema(valid_request):
    """canonical_json запроса снова проходит JSON Schema."""
    request = CreateTokenRequest.from_payload(valid_request)

    validate_create_token_request(json.loads(request.canonical_json()))


def test_event_models_produce_valid_payloads():
    events = [
        StatusChanged(asset="0xa", old_status=TokenStatus.TRADING, new_status=TokenStatus.PAUSED),
        VestingScheduleCreated(
            asset="0xa",
            beneficiary="alice",
            index=0,
            mode=VestingMode.CLIFF,
            total_amount=10,
            start_time=1,
            end_time=2,
        ),
        TokenBought(
            asset="0xa",
            buyer="bob",
            gross_quote=1,
            net_quote=1,
            fee=0,
            refund=0,
            token_out=1,
            quote_reserve=2,
            base_reserve=2,
            available_supply=1,
            collected_quote=1,
        ),
    ]

    for event in events:
        validate_event(event.event_name, event.model_dump(mode="json"))
