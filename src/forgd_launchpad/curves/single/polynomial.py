from typing import List, Optional, Tuple

from forgd_launchpad.common.model import CurveParams, LaunchState
from forgd_launchpad.curves.single.base import BondingCurve
from forgd_launchpad.curves.utils.polynomial_curve_helper import PolynomialCurveHelper as helper


class PolynomialBondingCurve(BondingCurve):
    """
        The launch curve bound to a live LaunchState.

        The base formula for price is:
          price(s) = q4*(s/N)^4 + q3*(s/N)^3 + q2*(s/N)^2 + initial_price

        Purchase and sale quotes integrate it against state.total_sold; the curve never writes the state.
    """

    def __init__(self, params: CurveParams, state: Optional[LaunchState] = None):
        super().__init__(params, state)

    def get_spot_price(self, supply: int) -> int:
        return helper.spot_price(self.params, supply)

    def calculate_purchase_cost(self, amount: int) -> int:
        """
        Integrates price from current_supply to current_supply + amount.
        """
        return helper.cost(self.params, self.current_supply, amount)

    def calculate_sale_return(self, amount: int) -> int:
        """
        Integrates price from (current_supply - amount) to current_supply.
        """
        return helper.refund(self.params, self.current_supply, amount)

    def total_raise(self, max_supply: int) -> int:
        """Wei collected by selling the whole range [0, max_supply]."""
        return helper.integral_from_zero(self.params, max_supply)

    def sample(self, max_supply: int, points: int = 20) -> List[Tuple[int, int]]:
        """(supply, spot price) pairs across [0, max_supply] for plotting."""
        if points < 2:
            points = 2
        step = max_supply // (points - 1)
        samples = []
        for i in range(points):
            supply = max_supply if i == points - 1 else step * i
            samples.append((supply, self.get_spot_price(supply)))
        return samples
