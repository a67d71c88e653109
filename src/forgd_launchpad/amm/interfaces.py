from abc import ABC, abstractmethod
from typing import Any, Tuple

from forgd_launchpad.common.model import PoolKey


class UnlockCallback(ABC):
    """Anything the coordinator can hand control back to inside unlock()."""

    @abstractmethod
    def unlock_callback(self, data: Any) -> Any:
        pass


class PoolCoordinator(ABC):
    """
    The AMM singleton the launchpad deposits into. Balance changes are only legal between unlock() and its
    return, and every currency delta must be zero by then.
    """

    address: str

    @abstractmethod
    def is_initialized(self, pool_key: PoolKey) -> bool:
        pass

    @abstractmethod
    def initialize(self, pool_key: PoolKey, sqrt_price_x96: int) -> int:
        """Create the pool at the given price, returns the starting tick."""
        pass

    @abstractmethod
    def current_price(self, pool_id: str) -> int:
        """sqrt price (Q64.96) of an initialized pool."""
        pass

    @abstractmethod
    def unlock(self, locker: UnlockCallback, data: Any) -> Any:
        """Call locker.unlock_callback(data) and return its result once all deltas are settled."""
        pass

    @abstractmethod
    def modify_liquidity(
        self, pool_key: PoolKey, tick_lower: int, tick_upper: int, liquidity_delta: int, salt: str
    ) -> Tuple[int, int]:
        """
        Apply a liquidity delta for the current locker.

        :return: (delta0, delta1) from the locker's point of view; negative means owed to the pool.
        """
        pass

    @abstractmethod
    def sync(self, currency: str):
        """Checkpoint the coordinator's balance of a token before the locker transfers it in."""
        pass

    @abstractmethod
    def settle(self, currency: str, payer: str, amount: int):
        """
        Credit the locker's delta with `amount` of `currency`. Native value is pulled from `payer`; tokens
        must already have been transferred in since the last sync().
        """
        pass

    @abstractmethod
    def take(self, currency: str, recipient: str, amount: int):
        """Withdraw `amount` of `currency` from the pool, debiting the locker's delta."""
        pass


class NativeWrapper(ABC):
    """Wraps native value into the fungible token the pool trades against."""

    address: str

    @abstractmethod
    def deposit(self, account: str, amount: int):
        pass

    @abstractmethod
    def approve(self, owner: str, spender: str, amount: int):
        pass

    @abstractmethod
    def transfer(self, sender: str, recipient: str, amount: int):
        pass
