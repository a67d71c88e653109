from collections import defaultdict
from typing import Dict, Tuple

from forgd_launchpad.common.enums import ErrorCode
from forgd_launchpad.common.errors import StateError
from forgd_launchpad.common.model import NATIVE


class Ledger:
    """
    Balance book standing in for the host chain: native value under NATIVE, fungible tokens under
    their address. Only the flows the launchpad needs (mint, transfer, balance_of).
    """

    def __init__(self):
        self._balances: Dict[Tuple[str, str], int] = defaultdict(int)

    def balance_of(self, asset: str, account: str) -> int:
        return self._balances.get((asset, account), 0)

    def mint(self, asset: str, account: str, amount: int):
        if amount < 0:
            raise ValueError("Cannot mint a negative amount.")
        self._balances[(asset, account)] += amount

    def transfer(self, asset: str, sender: str, recipient: str, amount: int):
        if amount == 0:
            return
        self._debit(asset, sender, amount)
        self._balances[(asset, recipient)] += amount

    def _debit(self, asset: str, account: str, amount: int):
        if amount < 0:
            raise ValueError("Cannot move a negative amount.")
        balance = self.balance_of(asset, account)
        if balance < amount:
            raise StateError(
                ErrorCode.INSUFFICIENT_BALANCE,
                f"{account} holds {balance} of {'native' if asset == NATIVE else asset}, needs {amount}.",
                {"asset": asset, "account": account, "balance": balance, "amount": amount},
            )
        self._balances[(asset, account)] = balance - amount

    def snapshot(self) -> Dict[Tuple[str, str], int]:
        return dict(self._balances)

    def restore(self, snapshot: Dict[Tuple[str, str], int]):
        self._balances = defaultdict(int, snapshot)
