import copy
from collections import defaultdict
from typing import Any, Dict, Tuple

from loguru import logger

from forgd_launchpad.amm.interfaces import NativeWrapper, PoolCoordinator, UnlockCallback
from forgd_launchpad.amm.liquidity_math import get_amounts_for_liquidity
from forgd_launchpad.amm.tick_math import MAX_SQRT_PRICE, MIN_SQRT_PRICE, get_sqrt_price_at_tick
from forgd_launchpad.common.enums import ErrorCode
from forgd_launchpad.common.errors import LaunchError, SettlementError
from forgd_launchpad.common.model import NATIVE, PoolKey
from forgd_launchpad.ledger import Ledger


class InMemoryPoolCoordinator(PoolCoordinator):
    """
    Concentrated-liquidity coordinator backed by a Ledger.

    Only liquidity additions/removals are modelled (no swaps). unlock() is all-or-nothing: if the callback
    raises or leaves a currency delta open, pools, positions and ledger balances are restored.
    """

    def __init__(self, ledger: Ledger, address: str = "0x00000000000000000000000000000000000000a4"):
        self.ledger = ledger
        self.address = address
        self.pools: Dict[str, Dict[str, int]] = {}
        self.positions: Dict[Tuple[str, str, int, int, str], int] = defaultdict(int)
        self._locker = None
        self._deltas: Dict[str, int] = defaultdict(int)
        self._synced: Dict[str, int] = {}

    def is_initialized(self, pool_key: PoolKey) -> bool:
        return pool_key.pool_id in self.pools

    def initialize(self, pool_key: PoolKey, sqrt_price_x96: int) -> int:
        if self.is_initialized(pool_key):
            raise SettlementError(ErrorCode.SETTLEMENT_REJECTED, "Pool already initialized.", {"pool": pool_key.pool_id})
        if not MIN_SQRT_PRICE <= sqrt_price_x96 < MAX_SQRT_PRICE:
            raise SettlementError(
                ErrorCode.SETTLEMENT_REJECTED, "Initial price out of bounds.", {"sqrt_price_x96": sqrt_price_x96}
            )
        self.pools[pool_key.pool_id] = {"sqrt_price": sqrt_price_x96, "liquidity": 0}
        logger.debug(f"[AMM] Initialized pool {pool_key.pool_id} at sqrtPriceX96={sqrt_price_x96}")
        return 0

    def current_price(self, pool_id: str) -> int:
        pool = self.pools.get(pool_id)
        if pool is None:
            raise SettlementError(ErrorCode.POOL_NOT_INITIALIZED, "Pool not initialized.", {"pool": pool_id})
        return pool["sqrt_price"]

    def unlock(self, locker: UnlockCallback, data: Any) -> Any:
        if self._locker is not None:
            raise SettlementError(ErrorCode.SETTLEMENT_REJECTED, "Coordinator already unlocked.")

        pools_before = copy.deepcopy(self.pools)
        positions_before = dict(self.positions)
        balances_before = self.ledger.snapshot()

        self._locker = locker
        self._deltas = defaultdict(int)
        self._synced = {}
        try:
            result = locker.unlock_callback(data)
            open_deltas = {c: d for c, d in self._deltas.items() if d != 0}
            if open_deltas:
                raise SettlementError(
                    ErrorCode.CURRENCY_NOT_SETTLED,
                    "Currency deltas left open when unlock returned.",
                    open_deltas,
                )
            return result
        except LaunchError:
            self._rollback(pools_before, positions_before, balances_before)
            raise
        except Exception as exc:
            self._rollback(pools_before, positions_before, balances_before)
            raise SettlementError(ErrorCode.SETTLEMENT_REJECTED, f"Unlock callback failed: {exc}") from exc
        finally:
            self._locker = None
            self._deltas = defaultdict(int)
            self._synced = {}

    def _rollback(self, pools, positions, balances):
        self.pools = pools
        self.positions = defaultdict(int, positions)
        self.ledger.restore(balances)

    def _require_unlocked(self):
        if self._locker is None:
            raise SettlementError(ErrorCode.SETTLEMENT_REJECTED, "Coordinator is locked.")

    def modify_liquidity(
        self, pool_key: PoolKey, tick_lower: int, tick_upper: int, liquidity_delta: int, salt: str
    ) -> Tuple[int, int]:
        self._require_unlocked()
        if tick_lower >= tick_upper:
            raise SettlementError(
                ErrorCode.SETTLEMENT_REJECTED, "Invalid tick range.", {"lower": tick_lower, "upper": tick_upper}
            )
        if tick_lower % pool_key.tick_spacing or tick_upper % pool_key.tick_spacing:
            raise SettlementError(
                ErrorCode.SETTLEMENT_REJECTED, "Ticks not aligned to spacing.", {"spacing": pool_key.tick_spacing}
            )

        sqrt_price = self.current_price(pool_key.pool_id)
        position_id = (pool_key.pool_id, str(id(self._locker)), tick_lower, tick_upper, salt)
        if self.positions[position_id] + liquidity_delta < 0:
            raise SettlementError(ErrorCode.SETTLEMENT_REJECTED, "Position liquidity would go negative.")

        amount0, amount1 = get_amounts_for_liquidity(
            sqrt_price,
            get_sqrt_price_at_tick(tick_lower),
            get_sqrt_price_at_tick(tick_upper),
            abs(liquidity_delta),
            round_up=liquidity_delta > 0,
        )
        if liquidity_delta > 0:
            delta0, delta1 = -amount0, -amount1
        else:
            delta0, delta1 = amount0, amount1

        self.positions[position_id] += liquidity_delta
        self.pools[pool_key.pool_id]["liquidity"] += liquidity_delta
        self._deltas[pool_key.currency0] += delta0
        self._deltas[pool_key.currency1] += delta1
        return delta0, delta1

    def sync(self, currency: str):
        self._require_unlocked()
        self._synced[currency] = self.ledger.balance_of(currency, self.address)

    def settle(self, currency: str, payer: str, amount: int):
        self._require_unlocked()
        if currency == NATIVE:
            self.ledger.transfer(NATIVE, payer, self.address, amount)
        else:
            if currency not in self._synced:
                raise SettlementError(ErrorCode.SETTLEMENT_REJECTED, "Settle without sync.", {"currency": currency})
            received = self.ledger.balance_of(currency, self.address) - self._synced.pop(currency)
            if received < amount:
                raise SettlementError(
                    ErrorCode.SETTLEMENT_REJECTED,
                    "Settled less than transferred in.",
                    {"currency": currency, "received": received, "amount": amount},
                )
        self._deltas[currency] += amount

    def take(self, currency: str, recipient: str, amount: int):
        self._require_unlocked()
        self.ledger.transfer(currency, self.address, recipient, amount)
        self._deltas[currency] -= amount

    def pool_liquidity(self, pool_key: PoolKey) -> int:
        return self.pools[pool_key.pool_id]["liquidity"]


class InMemoryNativeWrapper(NativeWrapper):
    """WETH-style wrapper: native value in, an equal balance of `address` out."""

    def __init__(self, ledger: Ledger, address: str):
        self.ledger = ledger
        self.address = address
        self.allowances: Dict[Tuple[str, str], int] = {}

    def deposit(self, account: str, amount: int):
        self.ledger.transfer(NATIVE, account, self.address, amount)
        self.ledger.mint(self.address, account, amount)

    def approve(self, owner: str, spender: str, amount: int):
        self.allowances[(owner, spender)] = amount

    def transfer(self, sender: str, recipient: str, amount: int):
        self.ledger.transfer(self.address, sender, recipient, amount)
