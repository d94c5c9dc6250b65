"""
Unit tests for tolerant money parsing and the driver/platform payout split.
"""
import pytest
from decimal import Decimal
from types import SimpleNamespace

from app.services.money import (
    driver_balance, format_money, parse_money, round_half_up, split_payout, to_decimal,
)


class TestParseMoney:
    def test_none_is_zero(self):
        assert parse_money(None) == 0

    def test_plain_numbers(self):
        assert parse_money(2500) == 2500.0
        assert parse_money(12.5) == 12.5
        assert parse_money(Decimal("99.90")) == 99.9

    def test_numeric_string(self):
        assert parse_money("15000") == 15000.0

    def test_currency_noise_comma_is_stripped(self):
        assert parse_money("1 234,00 FCFA") == 123400.0

    def test_thousands_separator(self):
        assert parse_money("15 000 FCFA") == 15000.0

    def test_garbage_is_zero(self):
        assert parse_money("abc") == 0
        assert parse_money("") == 0
        assert parse_money("-") == 0

    def test_leading_number_is_kept(self):
        assert parse_money("12.5.3") == 12.5

    def test_negative(self):
        assert parse_money("-300") == -300.0

    def test_non_finite_is_zero(self):
        assert parse_money(float("nan")) == 0
        assert parse_money(float("inf")) == 0

    def test_bool_is_not_a_number(self):
        assert parse_money(True) == 0


class TestDriverBalance:
    def test_legacy_field_wins(self):
        driver = SimpleNamespace(legacy_balance="500", available_balance="5000")
        assert driver_balance(driver) == 500.0

    def test_falls_back_to_available(self):
        driver = SimpleNamespace(legacy_balance=None, available_balance="5 000 FCFA")
        assert driver_balance(driver) == 5000.0

    def test_neither_present(self):
        driver = SimpleNamespace(legacy_balance=None, available_balance=None)
        assert driver_balance(driver) == 0


class TestPayoutSplit:
    def test_round_price(self):
        assert split_payout(Decimal("2500")) == (Decimal("1750"), Decimal("750"))

    def test_rounds_half_up(self):
        # 1005 * 0.7 = 703.5 -> 704
        driver, platform = split_payout(Decimal("1005"))
        assert driver == Decimal("704")
        assert platform == Decimal("301")

    def test_exact_half_rounds_up(self):
        # 15 * 0.70 is exactly 10.5 in Decimal; a binary float gives 10.4999...
        assert split_payout(Decimal("15")) == (Decimal("11"), Decimal("4"))

    @pytest.mark.parametrize("price", ["1", "3", "999", "1001", "2333", "12345.5"])
    def test_shares_add_up(self, price):
        driver, platform = split_payout(Decimal(price))
        assert driver + platform == Decimal(price)

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.4) == 2

    def test_to_decimal_and_format(self):
        assert to_decimal("15 000") == Decimal("15000.0")
        assert format_money(Decimal("15700.0")) == "15700"
        assert format_money(Decimal("15700.50")) == "15700.5"
