"""Shared test fixtures."""

from datetime import datetime, timedelta

import pytest

from forgd_launchpad.amm.simulated import InMemoryNativeWrapper, InMemoryPoolCoordinator
from forgd_launchpad.common.math import WAD
from forgd_launchpad.common.model import CurveParams, FeeConfig
from forgd_launchpad.launch.registry import LaunchRegistry
from forgd_launchpad.ledger import Ledger


OWNER = "0x" + "01" * 20
BUYER = "0x" + "02" * 20
OTHER = "0x" + "03" * 20
TREASURY = "0x" + "0e" * 20
CREATOR = "0x" + "0c" * 20
HOOK = "0x" + "0f" * 20
TOKEN = "0x" + "ab" * 20
WRAPPED_NATIVE = "0x" + "ff" * 20

T0 = datetime(2025, 3, 10, 12, 0, 0)


class FakeClock:
    """Callable clock that tests move forward by hand."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def scenario_params():
    """initial 0.025, quartic 3e9, cubic 1.333e9, quadratic 2e9, normalization 1e7."""
    return CurveParams(
        initial_price=25 * 10**15,
        quartic_coeff=3 * 10**9,
        cubic_coeff=1_333_000_000,
        quadratic_coeff=2 * 10**9,
        normalization_factor=10**7,
    )


@pytest.fixture
def steep_params():
    """Growth terms large enough to dominate the base price across a 1M token range."""
    return CurveParams(
        initial_price=10**12,
        quartic_coeff=3 * 10**15,
        cubic_coeff=4 * 10**15 // 3,
        quadratic_coeff=2 * 10**15,
        normalization_factor=1_000_000,
    )


@pytest.fixture
def full_fee_config():
    return FeeConfig(
        bonding_fee_bps=100,
        graduation_fee_bps=200,
        pol_bps=100,
        creator_graduation_fee_bps=50,
        protocol_treasury=TREASURY,
        factory_creator=CREATOR,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def coordinator(ledger):
    return InMemoryPoolCoordinator(ledger)


@pytest.fixture
def wrapper(ledger):
    return InMemoryNativeWrapper(ledger, WRAPPED_NATIVE)


@pytest.fixture
def registry(ledger, coordinator, wrapper, clock):
    return LaunchRegistry(ledger, coordinator, wrapper=wrapper, clock=clock)


def make_launch(registry, params, fee_config, clock, activate=True, **options):
    """
    Helper to create an instance with a 1M token ceiling and 200k token pool reserve, open now, maturing in
    7 days, hook set and (optionally) active.
    """
    defaults = {
        "max_bonding_supply": 1_000_000 * WAD,
        "liquidity_token_reserve": 200_000 * WAD,
    }
    defaults.update(options)
    instance = registry.create(OWNER, TOKEN, params, fee_config, **defaults)
    instance.set_bonding_open_time(OWNER, clock.now)
    instance.set_bonding_maturity_time(OWNER, clock.now + timedelta(days=7))
    instance.set_hook(OWNER, HOOK)
    if activate:
        instance.set_bonding_active(OWNER, True)
    return instance
