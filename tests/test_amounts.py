"""Tests for maker/taker amount calculation."""

from decimal import Decimal

import pytest

from poly_trade_sdk.errors import InvalidAmount
from poly_trade_sdk.order import (
    Side,
    TokenAmount,
    compute_amounts,
    format_usdc,
    parse_usdc,
    to_token_units,
)


class TestComputeAmounts:
    """Tests for compute_amounts."""

    def test_buy_042_x_100(self):
        """0.42 x 100 shares BUY -> 42 USDC for 100 shares."""
        maker, taker = compute_amounts(Side.BUY, 0.42, 100)

        assert maker == TokenAmount(42_000000, 6)
        assert taker == TokenAmount(100_000000, 6)

    def test_buy_038_x_5(self):
        """0.38 x 5 shares BUY -> 1.9 USDC for 5 shares."""
        maker, taker = compute_amounts("BUY", 0.38, 5)

        assert maker.value == 1_900000
        assert taker.value == 5_000000

    def test_sell_is_inverse_of_buy(self):
        """SELL swaps maker and taker for identical price and size."""
        buy_maker, buy_taker = compute_amounts(Side.BUY, "0.42", "100")
        sell_maker, sell_taker = compute_amounts(Side.SELL, "0.42", "100")

        assert sell_maker == buy_taker
        assert sell_taker == buy_maker

    def test_deterministic(self):
        """Same inputs always give identical integers."""
        results = {compute_amounts(Side.BUY, 0.123457, 17.5) for _ in range(5)}
        assert len(results) == 1

    def test_rounds_half_up_not_truncate(self):
        """0.123457 x 0.5 = 0.0617285 rounds up to 0.061729."""
        maker, taker = compute_amounts(Side.BUY, "0.123457", "0.5")

        assert maker.value == 61729
        assert taker.value == 500000

    def test_size_rounded_to_share_precision(self):
        maker, taker = compute_amounts(Side.SELL, "0.5", "1.0000005")

        assert maker.value == 1_000001

    def test_float_noise_does_not_leak(self):
        """0.1 + 0.2 style float noise is not carried into base units."""
        maker, _ = compute_amounts(Side.BUY, 0.7, 3)
        assert maker.value == 2_100000

    @pytest.mark.parametrize(
        "price,size",
        [
            ("0.42", "100"),
            ("0.01", "12345.678901"),
            ("0.999999", "3.3"),
            ("0.333333", "7"),
            ("0.5", "0.000001"),
        ],
    )
    def test_ratio_matches_price(self, price, size):
        """maker/taker ratio equals price within one base unit."""
        maker, taker = compute_amounts(Side.BUY, price, size)

        expected = Decimal(price) * taker.value
        assert abs(Decimal(maker.value) - expected) <= 1

        sell_maker, sell_taker = compute_amounts(Side.SELL, price, size)
        assert abs(Decimal(sell_taker.value) - Decimal(price) * sell_maker.value) <= 1

    @pytest.mark.parametrize("price", [0, 1, -0.1, 1.5, "0", "1.0"])
    def test_price_out_of_range(self, price):
        with pytest.raises(InvalidAmount, match="Invalid price"):
            compute_amounts(Side.BUY, price, 10)

    @pytest.mark.parametrize("size", [0, -1, "-0.5"])
    def test_non_positive_size(self, size):
        with pytest.raises(InvalidAmount, match="Invalid size"):
            compute_amounts(Side.BUY, 0.5, size)

    @pytest.mark.parametrize("value", ["nan", "inf", "abc", float("nan")])
    def test_non_numeric(self, value):
        with pytest.raises(InvalidAmount):
            compute_amounts(Side.BUY, value, 10)

    def test_rounds_to_zero(self):
        with pytest.raises(InvalidAmount, match="rounds to zero"):
            compute_amounts(Side.BUY, "0.000001", "0.0000001")

    def test_invalid_side(self):
        with pytest.raises(InvalidAmount, match="Invalid side"):
            compute_amounts("HOLD", 0.5, 10)

    def test_invalid_amount_carries_stage(self):
        with pytest.raises(InvalidAmount) as excinfo:
            compute_amounts(Side.BUY, 2, 10)
        assert excinfo.value.stage == "validation"


class TestTokenAmount:
    """Tests for TokenAmount."""

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            TokenAmount(-1, 6)

    def test_float_rejected(self):
        with pytest.raises(TypeError):
            TokenAmount(1.5, 6)

    def test_to_decimal(self):
        assert TokenAmount(1_900000, 6).to_decimal() == Decimal("1.9")


class TestUtils:
    """Tests for unit helpers."""

    def test_format_usdc(self):
        assert format_usdc(1_000_000) == "1"
        assert format_usdc(1_500_000) == "1.5"
        assert format_usdc(1_234_567) == "1.234567"
        assert format_usdc(100) == "0.0001"

    def test_parse_usdc(self):
        assert parse_usdc(1.0) == 1_000_000
        assert parse_usdc(1.5) == 1_500_000
        assert parse_usdc(0.01) == 10_000
        assert parse_usdc("100") == 100_000_000

    def test_to_token_units_rounds_half_up(self):
        assert to_token_units("0.0000005", 6) == 1
        assert to_token_units("0.0000004", 6) == 0
