from forgd_launchpad.common.enums import ErrorCode
from forgd_launchpad.common.errors import CurveArithmeticError
from forgd_launchpad.common.math import checked_add, checked_div, checked_sub, mul_div, mul_wad
from forgd_launchpad.common.model import CurveParams


class PolynomialCurveHelper:
    """
    Fixed-point math for the quartic launch curve:

        P(s) = q4*ŝ^4 + q3*ŝ^3 + q2*ŝ^2 + p0,   ŝ = s / N

    The integral from 0 to s has the closed form

        F(s) = N * (q4*ŝ^5/5 + q3*ŝ^4/4 + q2*ŝ^3/3) + p0*s

    Supplies are 18-decimal token amounts, so ŝ comes out as a wad directly (s // N). Every product is
    checked against uint256; nothing wraps.

    cost and refund are both differences of F, so buying `a` at supply `s` and selling the same `a` back
    at `s + a` moves exactly the same amount of value.
    """

    @staticmethod
    def normalized_supply(params: CurveParams, supply: int) -> int:
        if supply < 0:
            raise CurveArithmeticError(ErrorCode.UNDERFLOW, "Supply cannot be negative.", {"supply": supply})
        return checked_div(supply, params.normalization_factor)

    @staticmethod
    def spot_price(params: CurveParams, supply: int) -> int:
        """Marginal price P(s) in wei per whole token."""
        s1 = PolynomialCurveHelper.normalized_supply(params, supply)
        s2 = mul_wad(s1, s1)
        s3 = mul_wad(s2, s1)
        s4 = mul_wad(s3, s1)

        price = params.initial_price
        price = checked_add(price, mul_wad(params.quartic_coeff, s4))
        price = checked_add(price, mul_wad(params.cubic_coeff, s3))
        price = checked_add(price, mul_wad(params.quadratic_coeff, s2))
        return price

    @staticmethod
    def integral_from_zero(params: CurveParams, supply: int) -> int:
        """F(supply) in wei."""
        n = params.normalization_factor
        s1 = PolynomialCurveHelper.normalized_supply(params, supply)
        s2 = mul_wad(s1, s1)
        s3 = mul_wad(s2, s1)
        s4 = mul_wad(s3, s1)
        s5 = mul_wad(s4, s1)

        quartic_term = mul_div(mul_wad(params.quartic_coeff, s5), n, 5)
        cubic_term = mul_div(mul_wad(params.cubic_coeff, s4), n, 4)
        quadratic_term = mul_div(mul_wad(params.quadratic_coeff, s3), n, 3)
        base_term = mul_wad(params.initial_price, supply)

        total = checked_add(quartic_term, cubic_term)
        total = checked_add(total, quadratic_term)
        return checked_add(total, base_term)

    @staticmethod
    def integral(params: CurveParams, lower: int, upper: int) -> int:
        if upper < lower:
            raise CurveArithmeticError(
                ErrorCode.INVALID_RANGE,
                "Upper bound must not be below lower bound.",
                {"lower": lower, "upper": upper},
            )
        return checked_sub(
            PolynomialCurveHelper.integral_from_zero(params, upper),
            PolynomialCurveHelper.integral_from_zero(params, lower),
        )

    @staticmethod
    def cost(params: CurveParams, current_supply: int, amount: int) -> int:
        """Exact wei price to mint `amount` more supply from `current_supply`."""
        return PolynomialCurveHelper.integral(params, current_supply, checked_add(current_supply, amount))

    @staticmethod
    def refund(params: CurveParams, current_supply: int, amount: int) -> int:
        """Exact wei returned for burning `amount` of supply down from `current_supply`."""
        if amount > current_supply:
            raise CurveArithmeticError(
                ErrorCode.UNDERFLOW,
                "Cannot refund more than the current supply.",
                {"current_supply": current_supply, "amount": amount},
            )
        return PolynomialCurveHelper.integral(params, current_supply - amount, current_supply)
