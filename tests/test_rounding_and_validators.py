from decimal import Decimal

import pytest

from app.domain.store_report.services.rounding import round1, round_half_up, round_int, safe_rate
from app.shared.utils.validators import (
    coerce_number,
    is_valid_file_extension,
    is_valid_file_size,
    is_zip_archive,
    number_or_zero,
)


class TestRounding:
    def test_half_up_at_one_decimal(self):
        assert round1(65.45) == 65.5
        assert round1(28.65) == 28.7
        assert round1(-0.05) == 0.0

    def test_half_up_to_integer(self):
        assert round_int(2.5) == 3
        assert round_int(-2.5) == -2
        assert round_int(7644.5) == 7645

    def test_decimal_input(self):
        assert round_half_up(Decimal("70.05"), 1) == Decimal("70.1")

    def test_safe_rate(self):
        assert safe_rate(25, 100) == 25
        assert safe_rate(25, 0) == 0
        assert safe_rate(25, -100) == 0


class TestCoerceNumber:
    @pytest.mark.parametrize("raw, expected", [
        (1000000, 1000000.0),
        ("1,234,000", 1234000.0),
        ("１２３", 123.0),
        ("¥1,000", 1000.0),
        ("1,000円", 1000.0),
        ("18.0%", 18.0),
        ("(500)", -500.0),
        ("△500", -500.0),
        ("▲1,500", -1500.0),
        ("4月(30日)", 4.0),
        (True, 1.0),
    ])
    def test_readable(self, raw, expected):
        assert coerce_number(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "-", float("nan")])
    def test_unreadable(self, raw):
        assert coerce_number(raw) is None
        assert number_or_zero(raw) == 0


class TestUploadChecks:
    def test_extension(self):
        assert is_valid_file_extension("PL.xlsx")
        assert is_valid_file_extension("PL.XLSM")
        assert not is_valid_file_extension("PL.xls")
        assert not is_valid_file_extension("")

    def test_size(self):
        assert is_valid_file_size(1)
        assert not is_valid_file_size(0)
        assert not is_valid_file_size(21 * 1024 * 1024)

    def test_zip_signature(self):
        assert is_zip_archive(b"PK\x03\x04rest")
        assert not is_zip_archive(b"<html>")
