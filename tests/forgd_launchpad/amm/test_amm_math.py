import pytest

from forgd_launchpad.amm.liquidity_math import (
    compute_sqrt_price_x96,
    get_amounts_for_liquidity,
    get_liquidity_for_amounts,
)
from forgd_launchpad.amm.tick_math import (
    MAX_SQRT_PRICE,
    MAX_TICK,
    MIN_SQRT_PRICE,
    MIN_TICK,
    Q96,
    clamp_sqrt_price,
    full_range_ticks,
    get_sqrt_price_at_tick,
)
from forgd_launchpad.common.errors import CurveArithmeticError
from forgd_launchpad.common.math import WAD


class TestTickMath:
    def test_known_points(self):
        assert get_sqrt_price_at_tick(0) == Q96
        assert get_sqrt_price_at_tick(MIN_TICK) == MIN_SQRT_PRICE
        assert get_sqrt_price_at_tick(MAX_TICK) == MAX_SQRT_PRICE

    def test_monotonic(self):
        ticks = [MIN_TICK, -100_000, -1, 0, 1, 60, 100_000, MAX_TICK]
        prices = [get_sqrt_price_at_tick(t) for t in ticks]
        assert prices == sorted(prices)
        assert len(set(prices)) == len(prices)

    @pytest.mark.parametrize("tick", [MIN_TICK - 1, MAX_TICK + 1])
    def test_out_of_bounds(self, tick):
        with pytest.raises(ValueError):
            get_sqrt_price_at_tick(tick)

    @pytest.mark.parametrize(
        "spacing, expected",
        [
            (1, (-887272, 887272)),
            (60, (-887220, 887220)),
            (200, (-887200, 887200)),
        ]
    )
    def test_full_range_ticks(self, spacing, expected):
        assert full_range_ticks(spacing) == expected

    def test_clamp(self):
        assert clamp_sqrt_price(0) == MIN_SQRT_PRICE
        assert clamp_sqrt_price(MAX_SQRT_PRICE) == MAX_SQRT_PRICE - 1
        assert clamp_sqrt_price(Q96) == Q96


class TestLiquidityMath:
    def test_equal_amounts_price_at_one(self):
        assert compute_sqrt_price_x96(5 * WAD, 5 * WAD) == Q96

    def test_price_ratio(self):
        # 4x more currency1 per currency0 -> sqrt price doubles
        assert compute_sqrt_price_x96(WAD, 4 * WAD) == 2 * Q96

    def test_non_positive_amount(self):
        with pytest.raises(CurveArithmeticError):
            compute_sqrt_price_x96(0, WAD)

    def test_full_range_amounts_never_exceed_deposit(self):
        amount0, amount1 = 24_255 * 10**15, 198_000 * WAD
        sqrt_price = compute_sqrt_price_x96(amount0, amount1)
        lower, upper = full_range_ticks(60)
        sqrt_a, sqrt_b = get_sqrt_price_at_tick(lower), get_sqrt_price_at_tick(upper)

        liquidity = get_liquidity_for_amounts(sqrt_price, sqrt_a, sqrt_b, amount0, amount1)
        assert liquidity > 0
        owed0, owed1 = get_amounts_for_liquidity(sqrt_price, sqrt_a, sqrt_b, liquidity, round_up=True)
        assert 0 < owed0 <= amount0
        assert 0 < owed1 <= amount1

    def test_single_sided_below_range(self):
        sqrt_a, sqrt_b = get_sqrt_price_at_tick(-600), get_sqrt_price_at_tick(600)
        below = get_sqrt_price_at_tick(-1200)
        liquidity = get_liquidity_for_amounts(below, sqrt_a, sqrt_b, WAD, WAD)
        owed0, owed1 = get_amounts_for_liquidity(below, sqrt_a, sqrt_b, liquidity)
        assert owed1 == 0
        assert owed0 <= WAD
