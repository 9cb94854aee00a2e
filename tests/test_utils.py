"""Tests for decimal and date utilities."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from finance_tracker.utils.date_utils import (
    format_csv_datetime,
    format_short_date,
    normalize_slash_datetime,
    parse_iso_datetime,
)
from finance_tracker.utils.decimal_utils import (
    format_number,
    format_plain,
    format_short,
    parse_amount,
    round_half_up,
    to_decimal,
)


class TestParseAmount:
    """Tests for parse_amount."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("50000", Decimal("50000")),
            ("12.50", Decimal("12.50")),
            (" 7 ", Decimal("7")),
            ("Rp 1,250,000", Decimal("1250000")),
            ("$12.50", Decimal("12.50")),
            ("0", Decimal("0")),
            (".5", Decimal("0.5")),
        ],
    )
    def test_valid(self, raw: str, expected: Decimal) -> None:
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "abc", "-5", "1,2", "12abc", "NaN", "Infinity", "1e5"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(ValueError):
            parse_amount(raw)


class TestToDecimal:
    """Tests for to_decimal."""

    def test_accepts_numbers(self) -> None:
        assert to_decimal(5) == Decimal("5")
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal(Decimal("2.5")) == Decimal("2.5")
        assert to_decimal("3") == Decimal("3")

    @pytest.mark.parametrize("value", [-1, Decimal("NaN"), float("inf"), None, True, [1]])
    def test_rejects_unusable_values(self, value: object) -> None:
        with pytest.raises(ValueError):
            to_decimal(value)


class TestFormatting:
    """Tests for number formatting."""

    def test_round_half_up(self) -> None:
        assert round_half_up(Decimal("2.5")) == Decimal("3")
        assert round_half_up(Decimal("-2.5")) == Decimal("-3")
        assert round_half_up(Decimal("5.25"), 1) == Decimal("5.3")

    @pytest.mark.parametrize(
        ("amount", "expected"),
        [
            (Decimal("1250000"), "1.250.000"),
            (Decimal("999"), "999"),
            (Decimal("12.5"), "12,5"),
            (Decimal("0.12345"), "0,123"),
            (Decimal("1000.0005"), "1.000,001"),
            (Decimal("-800000"), "-800.000"),
            (Decimal("0"), "0"),
        ],
    )
    def test_format_number(self, amount: Decimal, expected: str) -> None:
        assert format_number(amount) == expected

    def test_format_number_separators(self) -> None:
        assert format_number(Decimal("1234567.5"), ",", ".") == "1,234,567.5"

    @pytest.mark.parametrize(
        ("amount", "expected"),
        [
            (Decimal("1500000"), "1.5M"),
            (Decimal("250000"), "250K"),
            (Decimal("1499"), "1K"),
            (Decimal("1500"), "2K"),
            (Decimal("999"), "999"),
        ],
    )
    def test_format_short(self, amount: Decimal, expected: str) -> None:
        assert format_short(amount) == expected

    def test_format_plain(self) -> None:
        assert format_plain(Decimal("50000")) == "50000"
        assert format_plain(Decimal("12.50")) == "12.5"
        assert format_plain(Decimal("1E+3")) == "1000"


class TestDates:
    """Tests for date utilities."""

    def test_normalize_slash_datetime(self) -> None:
        assert normalize_slash_datetime("01/03/2024 10:00:00") == "2024-03-01T10:00:00"
        assert normalize_slash_datetime("1/3/2024") == "2024-03-01T00:00:00"
        assert normalize_slash_datetime("01/03/2024 9:05") == "2024-03-01T09:05:00"

    @pytest.mark.parametrize("raw", ["2024-03-01", "01-03-2024", "01/03/2024 noon"])
    def test_normalize_rejects_other_layouts(self, raw: str) -> None:
        with pytest.raises(ValueError):
            normalize_slash_datetime(raw)

    def test_parse_iso_datetime_utc_becomes_local_naive(self) -> None:
        parsed = parse_iso_datetime("2024-03-01T10:00:00Z")
        expected = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert parsed == expected
        assert parsed.tzinfo is None

    def test_parse_iso_datetime_offset(self) -> None:
        parsed = parse_iso_datetime("2024-03-01T10:00:00+07:00")
        tz = timezone(timedelta(hours=7))
        assert parsed == datetime(2024, 3, 1, 10, 0, tzinfo=tz).astimezone().replace(tzinfo=None)

    def test_parse_iso_datetime_rejects_empty(self) -> None:
        with pytest.raises(ValueError):
            parse_iso_datetime("  ")

    def test_format_csv_datetime(self) -> None:
        assert format_csv_datetime(datetime(2024, 3, 1, 9, 5, 7)) == "01/03/2024 09:05:07"

    def test_format_short_date(self) -> None:
        assert format_short_date(date(2024, 3, 1)) == "Mar 1"
