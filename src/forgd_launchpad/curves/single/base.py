from abc import ABC, abstractmethod
from typing import Optional

from forgd_launchpad.common.model import CurveParams, LaunchState


class BondingCurve(ABC):
    """Abstract base class defining the interface for any bonding curve implementation."""
    def __init__(self, params: 'CurveParams', state: Optional['LaunchState'] = None):
        """
        Initializes the bonding curve with parameters and an optional existing state.

        :param params: CurveParams - defines curve configuration
        :param state: LaunchState - optional state the curve quotes against
        """
        self._params = params
        self._state = state or LaunchState()

    @property
    def params(self) -> 'CurveParams':
        """Returns the bonding curve parameters."""
        return self._params

    @property
    def current_supply(self) -> int:
        """Returns the supply sold so far from the state."""
        return self._state.total_sold

    @abstractmethod
    def get_spot_price(self, supply: int) -> int:
        """
        Returns the current spot price for a given supply.

        :param supply: int - Supply of tokens, 18-decimal units.
        :return: int: The price at given supply, wei per whole token.
        """
        pass

    @abstractmethod
    def calculate_purchase_cost(self, amount: int) -> int:
        """
        Calculates how much it costs to buy a specified 'amount' of tokens from the current state of the bonding curve.

        :param amount: int - Number of tokens the user wants to purchase.
        :return: Total cost to purchase 'amount' of tokens.
        """
        pass

    @abstractmethod
    def calculate_sale_return(self, amount: int) -> int:
        """
        Calculates how much capital is returned if a user sells a specified 'amount' of tokens
        back into the bonding curve.

        :param amount: int - Number of tokens the user wants to sell.
        :return: Total return for selling 'amount' of tokens.
        """
        pass
