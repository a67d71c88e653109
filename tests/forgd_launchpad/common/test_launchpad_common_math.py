import pytest

from decimal import Decimal

from forgd_launchpad.common.enums import ErrorCode
from forgd_launchpad.common.errors import CurveArithmeticError
from forgd_launchpad.common.math import (
    UINT256_MAX,
    WAD,
    bps_of,
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
    from_wad,
    mul_div,
    mul_wad,
)


def test_mul_wad():
    assert mul_wad(2 * WAD, 3 * WAD) == 6 * WAD
    assert mul_wad(WAD // 2, WAD // 2) == WAD // 4
    # rounds down
    assert mul_wad(1, 1) == 0


def test_checked_mul_overflow_is_fatal():
    with pytest.raises(CurveArithmeticError) as exc_info:
        checked_mul(UINT256_MAX, 2)
    assert exc_info.value.code == ErrorCode.OVERFLOW


def test_checked_add_overflow_is_fatal():
    with pytest.raises(CurveArithmeticError):
        checked_add(UINT256_MAX, 1)


def test_checked_sub_underflow_is_fatal():
    assert checked_sub(5, 5) == 0
    with pytest.raises(CurveArithmeticError) as exc_info:
        checked_sub(4, 5)
    assert exc_info.value.code == ErrorCode.UNDERFLOW


def test_division_by_zero_is_fatal():
    with pytest.raises(CurveArithmeticError) as exc_info:
        checked_div(1, 0)
    assert exc_info.value.code == ErrorCode.DIVISION_BY_ZERO
    with pytest.raises(CurveArithmeticError):
        mul_div(1, 1, 0)


def test_arithmetic_errors_are_value_errors():
    """Callers catching ValueError keep working."""
    with pytest.raises(ValueError):
        checked_div(1, 0)


@pytest.mark.parametrize(
    "amount, bps, expected",
    [
        (10 * WAD, 200, WAD // 5),
        (10 * WAD, 0, 0),
        (10 * WAD, 10_000, 10 * WAD),
        (99, 100, 0),
    ]
)
def test_bps_of(amount, bps, expected):
    assert bps_of(amount, bps) == expected


def test_from_wad():
    assert from_wad(9_702 * 10**15) == Decimal("9.702")
