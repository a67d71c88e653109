from dataclasses import dataclass
from typing import Optional, Tuple

from loguru import logger

from forgd_launchpad.amm.interfaces import NativeWrapper, PoolCoordinator, UnlockCallback
from forgd_launchpad.amm.liquidity_math import compute_sqrt_price_x96, get_liquidity_for_amounts
from forgd_launchpad.amm.tick_math import full_range_ticks, get_sqrt_price_at_tick
from forgd_launchpad.common.enums import ErrorCode
from forgd_launchpad.common.errors import ConfigError, SettlementError
from forgd_launchpad.common.model import NATIVE, DeployResult, PoolKey, PoolPosition, address_value
from forgd_launchpad.ledger import Ledger


@dataclass(frozen=True)
class LiquidityRequest:
    """What deploy() hands to the coordinator and gets back inside unlock_callback()."""
    pool_key: PoolKey
    tick_lower: int
    tick_upper: int
    amount0: int
    amount1: int
    salt: str


class LiquidityDeployer(UnlockCallback):
    """
    Turns a graduation split into a full-range AMM position.

    deploy() prices the pool from the two deposit amounts, initializes it if needed and asks the coordinator
    to unlock. Inside unlock_callback() the liquidity figure is computed against whatever price the pool
    actually has, the delta is applied and each reported currency delta is settled (negative) or taken
    (positive) from `holder`'s balances.
    """

    def __init__(
        self,
        coordinator: PoolCoordinator,
        ledger: Ledger,
        holder: str,
        wrapper: Optional[NativeWrapper] = None,
    ):
        self.coordinator = coordinator
        self.ledger = ledger
        self.holder = holder
        self.wrapper = wrapper
        self._pending: Optional[LiquidityRequest] = None

    @staticmethod
    def sort_currencies(token: str, paired: str) -> Tuple[str, str]:
        """Lower address first; native value (address zero) is therefore always currency0."""
        if address_value(token, "token") < address_value(paired, "paired_asset"):
            return token, paired
        return paired, token

    def paired_currency(self, paired_asset: Optional[str]) -> str:
        if paired_asset is None or paired_asset == NATIVE:
            return NATIVE
        if self.wrapper is None or self.wrapper.address != paired_asset:
            raise ConfigError(
                ErrorCode.NOT_CONFIGURED,
                "Paired asset is not native value and no matching wrapper is configured.",
                {"paired_asset": paired_asset},
            )
        return paired_asset

    def build_pool_key(
        self, token: str, paired_asset: Optional[str], fee: int, tick_spacing: int, hooks: Optional[str]
    ) -> PoolKey:
        currency0, currency1 = self.sort_currencies(token, self.paired_currency(paired_asset))
        return PoolKey(currency0=currency0, currency1=currency1, fee=fee, tick_spacing=tick_spacing, hooks=hooks)

    def deploy(
        self,
        split: DeployResult,
        token: str,
        paired_asset: Optional[str],
        fee: int,
        tick_spacing: int,
        hooks: Optional[str],
        salt: str,
    ) -> PoolPosition:
        pool_key = self.build_pool_key(token, paired_asset, fee, tick_spacing, hooks)
        paired = self.paired_currency(paired_asset)

        if paired != NATIVE:
            self.wrapper.deposit(self.holder, split.eth_for_pool)
            self.wrapper.approve(self.holder, self.coordinator.address, split.eth_for_pool)

        if pool_key.currency0 == token:
            amount0, amount1 = split.tokens_for_pool, split.eth_for_pool
        else:
            amount0, amount1 = split.eth_for_pool, split.tokens_for_pool

        sqrt_price = compute_sqrt_price_x96(amount0, amount1)
        if not self.coordinator.is_initialized(pool_key):
            self.coordinator.initialize(pool_key, sqrt_price)

        tick_lower, tick_upper = full_range_ticks(tick_spacing)
        request = LiquidityRequest(pool_key, tick_lower, tick_upper, amount0, amount1, salt)

        self._pending = request
        try:
            liquidity = self.coordinator.unlock(self, request)
        finally:
            self._pending = None

        logger.info(
            f"[DEPLOY] Added liquidity={liquidity} to {pool_key.pool_id} "
            f"amount0={amount0} amount1={amount1} salt={salt}"
        )
        return PoolPosition(
            pool_key=pool_key, tick_lower=tick_lower, tick_upper=tick_upper, liquidity=liquidity, salt=salt
        )

    def unlock_callback(self, data: LiquidityRequest) -> int:
        if self._pending is None or data is not self._pending:
            raise SettlementError(ErrorCode.SETTLEMENT_REJECTED, "Unexpected unlock callback.")

        pool_key = data.pool_key
        sqrt_price = self.coordinator.current_price(pool_key.pool_id)
        liquidity = get_liquidity_for_amounts(
            sqrt_price,
            get_sqrt_price_at_tick(data.tick_lower),
            get_sqrt_price_at_tick(data.tick_upper),
            data.amount0,
            data.amount1,
        )
        if liquidity <= 0:
            raise SettlementError(
                ErrorCode.SETTLEMENT_REJECTED,
                "Deposit amounts back zero liquidity at the pool price.",
                {"sqrt_price": sqrt_price, "amount0": data.amount0, "amount1": data.amount1},
            )

        delta0, delta1 = self.coordinator.modify_liquidity(
            pool_key, data.tick_lower, data.tick_upper, liquidity, data.salt
        )
        self._resolve_delta(pool_key.currency0, delta0)
        self._resolve_delta(pool_key.currency1, delta1)
        return liquidity

    def _resolve_delta(self, currency: str, delta: int):
        if delta < 0:
            self._pay(currency, -delta)
        elif delta > 0:
            self.coordinator.take(currency, self.holder, delta)

    def _pay(self, currency: str, amount: int):
        if currency == NATIVE:
            self.coordinator.settle(NATIVE, self.holder, amount)
            return
        self.coordinator.sync(currency)
        if self.wrapper is not None and currency == self.wrapper.address:
            self.wrapper.transfer(self.holder, self.coordinator.address, amount)
        else:
            self.ledger.transfer(currency, self.holder, self.coordinator.address, amount)
        self.coordinator.settle(currency, self.holder, amount)
