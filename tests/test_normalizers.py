from __future__ import annotations

from datetime import date, datetime

import pytest

from app.normalizers.date_normalizer import date_to_serial, parse_date, serial_to_date
from app.normalizers.flag_normalizer import is_truthy, normalize_flag
from app.normalizers.value_normalizer import is_blank, normalize_integer, normalize_text


class TestParseDate:
    def test_serial_epoch(self) -> None:
        assert parse_date(25569) == date(1970, 1, 1)

    def test_serial_fraction_is_truncated(self) -> None:
        assert parse_date(45688.75) == date(2025, 1, 31)

    def test_digit_only_string_is_serial(self) -> None:
        assert parse_date("45688") == date(2025, 1, 31)

    def test_serial_round_trip(self) -> None:
        for day in (date(1970, 1, 1), date(1999, 12, 31), date(2024, 2, 29)):
            assert serial_to_date(date_to_serial(day)) == day

    def test_native_values(self) -> None:
        assert parse_date(datetime(2024, 5, 6, 13, 30)) == date(2024, 5, 6)
        assert parse_date(date(2024, 5, 6)) == date(2024, 5, 6)

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("2024-03-15", date(2024, 3, 15)),
            ("2024/03/15", date(2024, 3, 15)),
            ("15/03/2024", date(2024, 3, 15)),
            ("15-03-2024", date(2024, 3, 15)),
            ("15.03.2024", date(2024, 3, 15)),
            ("05/03/24", date(2024, 3, 5)),
            ("05/03/75", date(1975, 3, 5)),
            ("15 Mar 2024", date(2024, 3, 15)),
            ("March 15, 2024", date(2024, 3, 15)),
        ],
    )
    def test_text_formats(self, text: str, expected: date) -> None:
        assert parse_date(text) == expected

    def test_day_first_wins_when_both_readings_are_valid(self) -> None:
        assert parse_date("03/04/2024") == date(2024, 4, 3)

    def test_falls_through_to_month_first(self) -> None:
        assert parse_date("12/31/2024") == date(2024, 12, 31)

    @pytest.mark.parametrize("value", [None, "", "   ", "not-a-date", "31/02/2024", True, False, float("nan")])
    def test_unparseable_returns_none(self, value) -> None:
        assert parse_date(value) is None


class TestNormalizeFlag:
    @pytest.mark.parametrize("value", ["y", "Yes", "TRUE", "1", 1, 1.0, True])
    def test_truthy_flags_become_y(self, value) -> None:
        assert normalize_flag("insurance_owlexa", value) == "Y"

    @pytest.mark.parametrize("value", ["n", "no", "0", 0, False, "maybe"])
    def test_other_flags_become_n(self, value) -> None:
        assert normalize_flag("blacklist_mti", value) == "N"

    @pytest.mark.parametrize(("value", "expected"), [("Male", "M"), ("female", "F"), ("m", "M"), ("x", "X")])
    def test_gender(self, value: str, expected: str) -> None:
        assert normalize_flag("gender", value) == expected

    def test_other_field_takes_first_character(self) -> None:
        assert normalize_flag("status", "active") == "A"

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_blank_is_none(self, value) -> None:
        assert normalize_flag("insurance_fpg", value) is None
        assert normalize_flag("gender", value) is None

    def test_is_truthy_numeric(self) -> None:
        assert is_truthy(1)
        assert not is_truthy(2)


class TestValueNormalizers:
    def test_is_blank(self) -> None:
        assert is_blank(None)
        assert is_blank("  ")
        assert not is_blank(0)

    def test_normalize_text(self) -> None:
        assert normalize_text("  Budi  ") == "Budi"
        assert normalize_text(12345.0) == "12345"
        assert normalize_text(12.5) == "12.5"
        assert normalize_text("") is None
        assert normalize_text(date(2024, 1, 2)) == "2024-01-02"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, (None, True)),
            ("", (None, True)),
            (7, (7, True)),
            (7.0, (7, True)),
            ("1,200", (1200, True)),
            ("7.5", (None, False)),
            ("seven", (None, False)),
            (True, (None, False)),
        ],
    )
    def test_normalize_integer(self, value, expected) -> None:
        assert normalize_integer(value) == expected
