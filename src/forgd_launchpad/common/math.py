from decimal import Decimal

from forgd_launchpad.common.enums import ErrorCode
from forgd_launchpad.common.errors import CurveArithmeticError


WAD = 10 ** 18
BPS_DENOMINATOR = 10_000
UINT256_MAX = 2 ** 256 - 1


def checked_add(a: int, b: int) -> int:
    result = a + b
    if result > UINT256_MAX:
        raise CurveArithmeticError(ErrorCode.OVERFLOW, "Addition overflows uint256.", {"a": a, "b": b})
    return result


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise CurveArithmeticError(ErrorCode.UNDERFLOW, "Subtraction underflows.", {"a": a, "b": b})
    return a - b


def checked_mul(a: int, b: int) -> int:
    result = a * b
    if result > UINT256_MAX:
        raise CurveArithmeticError(ErrorCode.OVERFLOW, "Multiplication overflows uint256.", {"a": a, "b": b})
    return result


def checked_div(a: int, b: int) -> int:
    if b == 0:
        raise CurveArithmeticError(ErrorCode.DIVISION_BY_ZERO, "Division by zero.", {"a": a})
    return a // b


def mul_wad(a: int, b: int) -> int:
    """(a * b) / 1e18, rounded down."""
    return checked_mul(a, b) // WAD


def mul_div(a: int, b: int, denominator: int) -> int:
    return checked_div(checked_mul(a, b), denominator)


def bps_of(amount: int, bps: int) -> int:
    return mul_div(amount, bps, BPS_DENOMINATOR)


def from_wad(value: int) -> Decimal:
    return Decimal(value) / Decimal(WAD)
