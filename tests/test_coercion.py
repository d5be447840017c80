"""Tests for lenient numeric, duration and column lookups."""

import math

from social_analytics.coercion import (
    CoercionTally,
    RowReader,
    coerce_duration,
    coerce_number,
    first_present,
    parse_duration,
    parse_int,
    parse_number,
)


class TestParseNumber:
    def test_comma_and_dot_are_equivalent(self):
        assert parse_number("12,5") == parse_number("12.5") == 12.5

    def test_none_is_zero(self):
        assert parse_number(None) == 0

    def test_blank_and_garbage_are_zero(self):
        assert parse_number("") == 0
        assert parse_number("   ") == 0
        assert parse_number("n/a") == 0

    def test_nan_is_zero(self):
        assert parse_number(float("nan")) == 0

    def test_reads_leading_numeric_prefix(self):
        assert parse_number("37,5%") == 37.5
        assert parse_number(" 1200 ") == 1200

    def test_numbers_pass_through(self):
        assert parse_number(42) == 42
        assert parse_number(3.25) == 3.25

    def test_negative_and_exponent(self):
        assert parse_number("-4,5") == -4.5
        assert parse_number("1e3") == 1000

    def test_only_first_comma_becomes_a_decimal_point(self):
        # "1,234,5" -> "1.234,5" -> prefix "1.234"
        assert math.isclose(parse_number("1,234,5"), 1.234)


class TestParseInt:
    def test_truncates_toward_zero(self):
        assert parse_int("12,9") == 12
        assert parse_int("-3.7") == -3

    def test_unparseable_is_zero(self):
        assert parse_int("abc") == 0


class TestParseDuration:
    def test_hours_minutes_seconds(self):
        assert parse_duration("1:02:03") == 3723

    def test_empty_is_zero(self):
        assert parse_duration("") == 0
        assert parse_duration(None) == 0

    def test_two_part_duration_is_zero(self):
        assert parse_duration("02:03") == 0

    def test_non_integer_parts_are_zero(self):
        assert parse_duration("1:xx:03") == 0


class TestCoerced:
    def test_reports_defaulted_values(self):
        assert coerce_number("abc") == (0.0, True)
        assert coerce_number("7") == (7.0, False)
        assert coerce_number(True).defaulted

    def test_duration_flags(self):
        assert coerce_duration("0:01:00") == (60, False)
        assert coerce_duration("1:00") == (0, True)


class TestFirstPresent:
    def test_first_non_blank_candidate_wins(self):
        row = {"a": "", "b": None, "c": "x", "d": "y"}
        assert first_present(row, ["a", "b", "c", "d"]) == "x"

    def test_none_when_all_blank_or_missing(self):
        assert first_present({"a": " "}, ["a", "missing"]) is None


class TestRowReader:
    def test_typed_lookups(self):
        reader = RowReader({"views": "1.500", "title": " Hello ", "dur": "0:02:00"})
        assert reader.number("views") == 1.5
        assert reader.integer("views") == 1
        assert reader.text("title") == "Hello"
        assert reader.duration("dur") == 120

    def test_text_default_and_integral_floats(self):
        reader = RowReader({"id": 123.0})
        assert reader.text("id") == "123"
        assert reader.text("missing", default="Unknown") == "Unknown"

    def test_tally_counts_present_but_unreadable_cells(self):
        tally = CoercionTally()
        reader = RowReader({"views": "n/a", "likes": "", "shares": "3"}, tally)
        assert reader.integer("views") == 0
        assert reader.integer("likes") == 0
        assert reader.integer("shares") == 3
        assert tally.defaulted == 2

    def test_missing_columns_are_not_tallied(self):
        tally = CoercionTally()
        reader = RowReader({"views": "10"}, tally)
        assert reader.integer("comments") == 0
        assert reader.number("comments") == 0
        assert tally.defaulted == 0
