"""Tests for tk_common.fixed_point integer helpers."""

import pytest

from src.tk_common.errors import PriceScaleOverflowError
from src.tk_common.fixed_point import (
    INT64_MAX,
    floor_fee,
    rescale_price,
    units_to_display,
)


class TestFloorFee:
    def test_basic(self) -> None:
        assert floor_fee(150, 500) == 7

    def test_exact(self) -> None:
        assert floor_fee(10_000, 500) == 500

    def test_zero_total(self) -> None:
        assert floor_fee(0, 500) == 0


class TestRescalePrice:
    def test_same_decimals_is_identity(self) -> None:
        assert rescale_price(6512345678901, -8, 8) == 6512345678901

    def test_upscale(self) -> None:
        assert rescale_price(65123, -2, 8) == 65123_000000

    def test_downscale_truncates(self) -> None:
        assert rescale_price(123456789, -10, 8) == 1234567

    def test_negative_downscale_truncates_toward_zero(self) -> None:
        assert rescale_price(-123456789, -10, 8) == -1234567

    def test_positive_exponent(self) -> None:
        assert rescale_price(5, 2, 0) == 500

    def test_overflow_raises(self) -> None:
        with pytest.raises(PriceScaleOverflowError):
            rescale_price(INT64_MAX, 0, 8)

    def test_int64_max_fits(self) -> None:
        assert rescale_price(INT64_MAX, -8, 8) == INT64_MAX


class TestUnitsToDisplay:
    def test_whole(self) -> None:
        assert units_to_display(150_000_000) == "1.50000000"

    def test_thousands(self) -> None:
        assert units_to_display(1_234 * 10**8) == "1,234.00000000"

    def test_negative(self) -> None:
        assert units_to_display(-5, decimals=2) == "-0.05"

    def test_zero_decimals(self) -> None:
        assert units_to_display(1500, decimals=0) == "1,500"
