"""Общие fixtures: собранный launchpad с малыми числами и фабрика запросов."""

import itertools

import pytest

from launchpad import FeeConfig, Launchpad, LaunchpadParams, Role
from launchpad.core.domain import CreateTokenRequest

ADMIN = "admin"
TREASURY = "treasury"
PLATFORM = "platform"
MARGIN_DESK = "margin-desk"
SIGNER = "issuer"
SIGNER_KEY = b"issuer-secret"
OPERATOR = "ops"
CREATOR = "alice"
BUYER = "bob"
START = 1_700_000_000
FUNDING = 10**12


@pytest.fixture
def fee_config():
    return FeeConfig(
        creation_fee=1_000,
        pre_buy_fee_bps=300,
        trading_fee_bps=100,
        graduate_platform_fee_bps=500,
        graduate_creator_fee_bps=200,
        min_lock_duration=86_400,
    )


@pytest.fixture
def params():
    return LaunchpadParams(liquidity_floor=1_000)


@pytest.fixture
def system(fee_config, params):
    lp = Launchpad.build(
        ADMIN,
        TREASURY,
        platform_fee_receiver=PLATFORM,
        margin_receiver=MARGIN_DESK,
        fee_config=fee_config,
        params=params,
        now=START,
    )
    lp.register_signer(ADMIN, SIGNER, SIGNER_KEY)
    lp.grant_role(ADMIN, Role.OPERATOR, OPERATOR)
    for account in (CREATOR, BUYER):
        lp.ledger.mint_quote(account, FUNDING)
    return lp


@pytest.fixture
def make_request():
    """Фабрика запросов: total 1_000_000, sale 800_000, q0 = b0 = 1_000_000."""
    counter = itertools.count()

    def _make(**overrides) -> CreateTokenRequest:
        n = next(counter)
        data = {
            "request_id": f"req-{n}",
            "creator": CREATOR,
            "name": "Sample",
            "symbol": "SMPL",
            "total_supply": 1_000_000,
            "sale_amount": 800_000,
            "virtual_quote_reserve": 1_000_000,
            "virtual_base_reserve": 1_000_000,
            "timestamp": START,
            "salt": f"salt-{n}",
        }
        data.update(overrides)
        return CreateTokenRequest(**data)

    return _make


@pytest.fixture
def sign(system):
    def _sign(request, signer=SIGNER):
        return system.verifier.sign(signer, request.canonical_hash())

    return _sign


@pytest.fixture
def create(system, sign):
    """create_token с полной оплатой по умолчанию."""

    def _create(request, value=None, sender=CREATOR):
        if value is None:
            value = system.creation.required_payment(request)
        return system.creation.create_token(sender, request, sign(request), value)

    return _create


@pytest.fixture
def asset(create, make_request):
    """Актив без pre-purchase, торговля открыта."""
    return create(make_request()).asset
