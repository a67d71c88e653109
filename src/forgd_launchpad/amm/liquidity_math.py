from math import isqrt

from forgd_launchpad.amm.tick_math import Q96, clamp_sqrt_price
from forgd_launchpad.common.enums import ErrorCode
from forgd_launchpad.common.errors import CurveArithmeticError


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


def compute_sqrt_price_x96(amount0: int, amount1: int) -> int:
    """
    Entry price for a pool seeded with amount0 of currency0 and amount1 of currency1:
    sqrt(amount1 / amount0) in Q64.96, clamped to the pool's representable band.
    """
    if amount0 <= 0 or amount1 <= 0:
        raise CurveArithmeticError(
            ErrorCode.DIVISION_BY_ZERO,
            "Both pool amounts must be positive to derive a price.",
            {"amount0": amount0, "amount1": amount1},
        )
    return clamp_sqrt_price(isqrt((amount1 << 192) // amount0))


def get_liquidity_for_amount0(sqrt_a: int, sqrt_b: int, amount0: int) -> int:
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    intermediate = (sqrt_a * sqrt_b) // Q96
    return (amount0 * intermediate) // (sqrt_b - sqrt_a)


def get_liquidity_for_amount1(sqrt_a: int, sqrt_b: int, amount1: int) -> int:
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    return (amount1 * Q96) // (sqrt_b - sqrt_a)


def get_liquidity_for_amounts(sqrt_price: int, sqrt_a: int, sqrt_b: int, amount0: int, amount1: int) -> int:
    """Largest liquidity the two amounts can back in [sqrt_a, sqrt_b] at the current price."""
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a

    if sqrt_price <= sqrt_a:
        return get_liquidity_for_amount0(sqrt_a, sqrt_b, amount0)
    if sqrt_price < sqrt_b:
        return min(
            get_liquidity_for_amount0(sqrt_price, sqrt_b, amount0),
            get_liquidity_for_amount1(sqrt_a, sqrt_price, amount1),
        )
    return get_liquidity_for_amount1(sqrt_a, sqrt_b, amount1)


def get_amount0_delta(sqrt_a: int, sqrt_b: int, liquidity: int, round_up: bool) -> int:
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    numerator1 = liquidity << 96
    numerator2 = sqrt_b - sqrt_a
    if round_up:
        return _ceil_div(_ceil_div(numerator1 * numerator2, sqrt_b), sqrt_a)
    return (numerator1 * numerator2 // sqrt_b) // sqrt_a


def get_amount1_delta(sqrt_a: int, sqrt_b: int, liquidity: int, round_up: bool) -> int:
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    if round_up:
        return _ceil_div(liquidity * (sqrt_b - sqrt_a), Q96)
    return liquidity * (sqrt_b - sqrt_a) // Q96


def get_amounts_for_liquidity(sqrt_price: int, sqrt_a: int, sqrt_b: int, liquidity: int, round_up: bool = True):
    """(amount0, amount1) backing `liquidity` in [sqrt_a, sqrt_b] at the current price."""
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a

    if sqrt_price <= sqrt_a:
        return get_amount0_delta(sqrt_a, sqrt_b, liquidity, round_up), 0
    if sqrt_price < sqrt_b:
        return (
            get_amount0_delta(sqrt_price, sqrt_b, liquidity, round_up),
            get_amount1_delta(sqrt_a, sqrt_price, liquidity, round_up),
        )
    return 0, get_amount1_delta(sqrt_a, sqrt_b, liquidity, round_up)
