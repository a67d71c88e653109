import pytest

from datetime import timedelta

from conftest import BUYER, CREATOR, OTHER, OWNER, TOKEN, TREASURY, WRAPPED_NATIVE, make_launch

from forgd_launchpad.amm.simulated import InMemoryPoolCoordinator
from forgd_launchpad.common.enums import ErrorCode, LaunchPhase
from forgd_launchpad.common.errors import ConfigError, SettlementError, StateError
from forgd_launchpad.common.math import WAD
from forgd_launchpad.common.model import NATIVE, FeeConfig, FeePaid, Graduated
from forgd_launchpad.launch.registry import LaunchRegistry


def _funded_launch(registry, ledger, params, fee_config, clock, bought=1000 * WAD, **options):
    instance = make_launch(registry, params, fee_config, clock, **options)
    ledger.mint(NATIVE, BUYER, 1_000 * WAD)
    instance.buy(BUYER, bought, payment=100 * WAD)
    return instance


class FlakyCoordinator(InMemoryPoolCoordinator):
    """Fails the first `failures` modify_liquidity calls."""

    def __init__(self, ledger, failures=1):
        super().__init__(ledger)
        self.failures = failures

    def modify_liquidity(self, *args, **kwargs):
        if self.failures:
            self.failures -= 1
            raise RuntimeError("pool rejected the position")
        return super().modify_liquidity(*args, **kwargs)


class ReenteringCoordinator(InMemoryPoolCoordinator):
    """Calls back into the launch while the unlock is in progress."""

    target = None

    def modify_liquidity(self, *args, **kwargs):
        self.target.buy(BUYER, WAD, payment=WAD)
        return super().modify_liquidity(*args, **kwargs)


class TestOwnerGraduation:
    def test_scenario_graduation_distributes_split(
        self, registry, ledger, coordinator, scenario_params, full_fee_config, clock
    ):
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock)
        assert instance.state.reserve_balance == 25 * WAD

        result = instance.deploy_liquidity(OWNER)

        assert result.graduation_fee == WAD // 2
        assert result.creator_grad_cut == WAD // 8
        assert result.pol_eth == 245 * 10**15
        assert result.eth_for_pool == 24_255 * 10**15
        assert result.pol_tokens == 2_000 * WAD
        assert result.tokens_for_pool == 198_000 * WAD
        assert result.liquidity > 0

        assert ledger.balance_of(NATIVE, CREATOR) == WAD // 8

        # the treasury holds fees and POL plus whatever the pool did not absorb
        pooled = ledger.balance_of(NATIVE, coordinator.address)
        swept = ledger.balance_of(NATIVE, TREASURY) - 870 * 10**15
        assert pooled > 0
        assert swept >= 0
        assert pooled + swept == result.eth_for_pool

        pooled_tokens = ledger.balance_of(TOKEN, coordinator.address)
        assert pooled_tokens <= result.tokens_for_pool
        assert ledger.balance_of(TOKEN, TREASURY) >= 2_000 * WAD
        minted = 1_000_000 * WAD + 200_000 * WAD
        assert ledger.balance_of(TOKEN, TREASURY) + pooled_tokens + ledger.balance_of(TOKEN, BUYER) == minted

        assert ledger.balance_of(NATIVE, instance.address) == 0
        assert ledger.balance_of(TOKEN, instance.address) == 0

        assert instance.state.graduated is True
        assert instance.state.bonding_active is False
        assert instance.state.reserve_balance == 0
        assert instance.phase == LaunchPhase.GRADUATED

    def test_graduation_events(self, registry, ledger, scenario_params, full_fee_config, clock):
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock)
        result = instance.deploy_liquidity(OWNER)

        graduated = instance.events.of_type(Graduated)
        assert len(graduated) == 1
        assert graduated[0].caller == OWNER
        assert graduated[0].deploy_result == result

        fee_recipients = [e.recipient for e in instance.events.of_type(FeePaid)]
        # bonding fee, treasury graduation cut, creator cut
        assert fee_recipients == [TREASURY, TREASURY, CREATOR]

    def test_pool_uses_native_as_currency0(
        self, registry, ledger, coordinator, scenario_params, full_fee_config, clock
    ):
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock)
        result = instance.deploy_liquidity(OWNER)
        pool_key = instance.deployer.build_pool_key(TOKEN, None, 3000, 60, instance.state.hook_address)
        assert pool_key.currency0 == NATIVE
        assert pool_key.currency1 == TOKEN
        assert coordinator.pool_liquidity(pool_key) == result.liquidity

    def test_graduation_is_one_shot(self, registry, ledger, scenario_params, full_fee_config, clock):
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock)
        instance.deploy_liquidity(OWNER)
        for call in (
            lambda: instance.deploy_liquidity(OWNER),
            lambda: instance.buy(BUYER, WAD, payment=WAD),
            lambda: instance.sell(BUYER, WAD),
            lambda: instance.set_bonding_active(OWNER, True),
        ):
            with pytest.raises(StateError) as exc_info:
                call()
            assert exc_info.value.code == ErrorCode.ALREADY_GRADUATED

    def test_no_treasury_pools_everything(self, registry, ledger, coordinator, scenario_params, clock):
        instance = _funded_launch(registry, ledger, scenario_params, FeeConfig(graduation_fee_bps=200), clock)
        result = instance.deploy_liquidity(OWNER)
        assert result.graduation_fee == 0
        assert result.pol_eth == 0
        assert result.eth_for_pool == 25 * WAD
        assert result.tokens_for_pool == 200_000 * WAD
        assert ledger.balance_of(NATIVE, TREASURY) == 0


class TestPreconditions:
    def test_no_reserve_regardless_of_caller(self, registry, scenario_params, full_fee_config, clock):
        instance = make_launch(registry, scenario_params, full_fee_config, clock)
        clock.advance(days=8)
        for caller in (OWNER, OTHER):
            with pytest.raises(StateError) as exc_info:
                instance.deploy_liquidity(caller)
            assert exc_info.value.code == ErrorCode.NO_RESERVE

    def test_missing_token_reserve(self, registry, ledger, scenario_params, full_fee_config, clock):
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock,
                                  liquidity_token_reserve=0)
        with pytest.raises(ConfigError) as exc_info:
            instance.deploy_liquidity(OWNER)
        assert exc_info.value.code == ErrorCode.NOT_CONFIGURED

    def test_hook_required(self, registry, scenario_params, full_fee_config):
        instance = registry.create(OWNER, TOKEN, scenario_params, full_fee_config,
                                   max_bonding_supply=1_000 * WAD, liquidity_token_reserve=100 * WAD)
        with pytest.raises(ConfigError) as exc_info:
            instance.deploy_liquidity(OWNER)
        assert exc_info.value.code == ErrorCode.HOOK_NOT_SET

    def test_permissionless_only_after_maturity(self, registry, ledger, scenario_params, full_fee_config, clock):
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock)
        with pytest.raises(StateError) as exc_info:
            instance.deploy_liquidity(OTHER)
        assert exc_info.value.code == ErrorCode.NOT_YET_PERMISSIONLESS
        assert instance.state.reserve_balance == 25 * WAD

        clock.advance(days=7)
        result = instance.deploy_liquidity(OTHER)
        assert instance.events.of_type(Graduated)[0].caller == OTHER
        assert result.liquidity > 0

    def test_owner_cannot_reopen_owner_only_window(self, registry, ledger, scenario_params, full_fee_config, clock):
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock)
        clock.advance(days=8)
        assert instance.phase == LaunchPhase.MATURED_OR_FULL

        with pytest.raises(StateError) as exc_info:
            instance.set_bonding_maturity_time(OWNER, clock.now + timedelta(days=30))
        assert exc_info.value.code == ErrorCode.MATURITY_LOCKED
        assert instance.phase == LaunchPhase.MATURED_OR_FULL

        instance.deploy_liquidity(OTHER)
        assert instance.events.of_type(Graduated)[0].caller == OTHER

    def test_paused_launch_keeps_maturity(self, registry, ledger, scenario_params, full_fee_config, clock):
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock)
        instance.set_bonding_active(OWNER, False)
        maturity = instance.state.bonding_maturity_time
        with pytest.raises(StateError) as exc_info:
            instance.set_bonding_maturity_time(OWNER, maturity + timedelta(days=1))
        assert exc_info.value.code == ErrorCode.MATURITY_LOCKED
        assert instance.state.bonding_maturity_time == maturity

    def test_permissionless_after_sell_out(self, registry, ledger, scenario_params, full_fee_config, clock):
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock,
                                  max_bonding_supply=1000 * WAD)
        assert instance.is_matured_or_full()
        instance.deploy_liquidity(OTHER)
        assert instance.state.graduated is True


class TestSettlement:
    def test_wrapped_native_pair(self, registry, ledger, coordinator, scenario_params, full_fee_config, clock):
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock,
                                  paired_asset=WRAPPED_NATIVE)
        result = instance.deploy_liquidity(OWNER)

        pool_key = instance.deployer.build_pool_key(TOKEN, WRAPPED_NATIVE, 3000, 60, instance.state.hook_address)
        assert pool_key.currency0 == TOKEN
        assert pool_key.currency1 == WRAPPED_NATIVE
        assert coordinator.pool_liquidity(pool_key) == result.liquidity

        assert ledger.balance_of(NATIVE, WRAPPED_NATIVE) == result.eth_for_pool
        pooled = ledger.balance_of(WRAPPED_NATIVE, coordinator.address)
        assert pooled + ledger.balance_of(WRAPPED_NATIVE, TREASURY) == result.eth_for_pool
        assert ledger.balance_of(WRAPPED_NATIVE, instance.address) == 0
        assert ledger.balance_of(NATIVE, coordinator.address) == 0

    def test_unknown_paired_asset(self, registry, ledger, scenario_params, full_fee_config, clock):
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock,
                                  paired_asset="0x" + "77" * 20)
        with pytest.raises(ConfigError):
            instance.deploy_liquidity(OWNER)
        assert instance.state.graduated is False
        assert ledger.balance_of(NATIVE, TREASURY) == WAD // 4

    def test_failed_settlement_rolls_back_and_can_retry(self, ledger, wrapper, scenario_params, full_fee_config,
                                                         clock):
        coordinator = FlakyCoordinator(ledger)
        registry = LaunchRegistry(ledger, coordinator, wrapper=wrapper, clock=clock)
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock)
        balances_before = ledger.snapshot()

        with pytest.raises(SettlementError) as exc_info:
            instance.deploy_liquidity(OWNER)
        assert exc_info.value.code == ErrorCode.SETTLEMENT_REJECTED
        assert instance.state.graduated is False
        assert instance.state.reserve_balance == 25 * WAD
        assert ledger.snapshot() == balances_before
        assert instance.events.of_type(Graduated) == []

        result = instance.deploy_liquidity(OWNER)
        assert instance.state.graduated is True
        assert result.liquidity > 0

    def test_salt_advances_per_attempt(self, ledger, wrapper, scenario_params, full_fee_config, clock):
        coordinator = FlakyCoordinator(ledger)
        registry = LaunchRegistry(ledger, coordinator, wrapper=wrapper, clock=clock)
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock)
        with pytest.raises(SettlementError):
            instance.deploy_liquidity(OWNER)
        instance.deploy_liquidity(OWNER)
        salts = {position_id[-1] for position_id in coordinator.positions}
        assert salts == {f"{instance.instance_id}:2"}

    def test_reentrant_call_is_rejected(self, ledger, wrapper, scenario_params, full_fee_config, clock):
        coordinator = ReenteringCoordinator(ledger)
        registry = LaunchRegistry(ledger, coordinator, wrapper=wrapper, clock=clock)
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock)
        coordinator.target = instance

        with pytest.raises(StateError) as exc_info:
            instance.deploy_liquidity(OWNER)
        assert exc_info.value.code == ErrorCode.REENTRANT_CALL
        assert instance.state.graduated is False
        assert instance.state.total_sold == 1000 * WAD
        assert instance.state.reserve_balance == 25 * WAD


class TestLeftovers:
    def test_unsold_inventory_goes_to_treasury(self, registry, ledger, scenario_params, full_fee_config, clock):
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock,
                                  max_bonding_supply=5_000 * WAD, liquidity_token_reserve=100 * WAD)
        instance.deploy_liquidity(OWNER)
        assert ledger.balance_of(TOKEN, instance.address) == 0
        assert ledger.balance_of(NATIVE, instance.address) == 0
        # 4000 unsold plus 1% POL of the reserve
        assert ledger.balance_of(TOKEN, TREASURY) >= 4_000 * WAD + WAD

    def test_without_treasury_leftovers_go_to_owner(self, registry, ledger, coordinator, scenario_params, clock):
        instance = _funded_launch(registry, ledger, scenario_params, FeeConfig(), clock,
                                  max_bonding_supply=5_000 * WAD, liquidity_token_reserve=100 * WAD)
        instance.deploy_liquidity(OWNER)
        pooled_tokens = ledger.balance_of(TOKEN, coordinator.address)
        assert ledger.balance_of(TOKEN, OWNER) == 4_000 * WAD + 100 * WAD - pooled_tokens
        assert ledger.balance_of(NATIVE, OWNER) + ledger.balance_of(NATIVE, coordinator.address) == 25 * WAD
        assert ledger.balance_of(TOKEN, instance.address) == 0

    def test_failed_graduation_sweeps_nothing(self, ledger, wrapper, scenario_params, full_fee_config, clock):
        coordinator = FlakyCoordinator(ledger)
        registry = LaunchRegistry(ledger, coordinator, wrapper=wrapper, clock=clock)
        instance = _funded_launch(registry, ledger, scenario_params, full_fee_config, clock)
        with pytest.raises(SettlementError):
            instance.deploy_liquidity(OWNER)
        assert ledger.balance_of(TOKEN, instance.address) == 1_200_000 * WAD - 1_000 * WAD
        assert ledger.balance_of(TOKEN, TREASURY) == 0
