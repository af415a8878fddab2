"""Unit tests for timestamp parsing and currency formatting"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from pleasy_client.utils.date_utils import parse_compact_date, parse_timestamp
from pleasy_client.utils.formatting import format_currency


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2024-04-01T09:15:00", datetime(2024, 4, 1, 9, 15)),
        ("2024-04-01T09:15:00Z", datetime(2024, 4, 1, 9, 15, tzinfo=timezone.utc)),
        ("20240105", datetime(2024, 1, 5)),
        ("2024/01/05", datetime(2024, 1, 5)),
        (date(2024, 1, 5), datetime(2024, 1, 5)),
        (1712000000, datetime.fromtimestamp(1712000000, tz=timezone.utc)),
        (1712000000000, datetime.fromtimestamp(1712000000, tz=timezone.utc)),
        ("1712000000000", datetime.fromtimestamp(1712000000, tz=timezone.utc)),
    ],
)
def test_parse_timestamp_formats(value, expected):
    assert parse_timestamp(value) == expected


@pytest.mark.parametrize("value", [None, True, 12345, "", "Invalid Date", "yesterday", ["2024"]])
def test_parse_timestamp_rejects_garbage(value):
    assert parse_timestamp(value) is None


def test_parse_compact_date_with_time():
    assert parse_compact_date("20240105", "093000") == datetime(2024, 1, 5, 9, 30)
    # Unreadable time keeps the day
    assert parse_compact_date("20240105", "99") == datetime(2024, 1, 5)
    assert parse_compact_date("2024") is None


@pytest.mark.parametrize(
    "amount,currency,signed,expected",
    [
        (1250000, "KRW", False, "₩1,250,000"),
        (-200000, "KRW", True, "-₩200,000"),
        (500, "KRW", True, "+₩500"),
        (0, "KRW", True, "₩0"),
        (12345, "USD", False, "$123.45"),
        (1000, "gbp", False, "10.00 GBP"),
        (None, "KRW", False, "-"),
    ],
)
def test_format_currency(amount, currency, signed, expected):
    assert format_currency(amount, currency, signed=signed) == expected


@pytest.mark.parametrize("value", ["１７１２０００００００", "9" * 5000, float("nan"), Decimal("sNaN"), 10 ** 400])
def test_parse_timestamp_never_raises_on_odd_numbers(value):
    assert parse_timestamp(value) is None
