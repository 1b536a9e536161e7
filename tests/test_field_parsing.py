"""Tests for permissive field parsing."""
import pytest
from pydantic import ValidationError

from services.field_parsing import parse_number, parse_text


class TestParseNumber:
    @pytest.mark.parametrize("raw", [None, "", "   ", "NULL", "null"])
    def test_absent_values(self, raw):
        parsed = parse_number(raw)
        assert parsed.value is None
        assert parsed.ok
        assert not parsed.present

    def test_plain_and_grouped_numbers(self):
        assert parse_number("1250.50").value == 1250.50
        assert parse_number(" 1,250 ").value == 1250.0

    def test_zero_is_present(self):
        parsed = parse_number("0")
        assert parsed.present
        assert parsed.value == 0.0

    def test_malformed_is_absent_with_problem(self):
        parsed = parse_number("12A")
        assert parsed.value is None
        assert not parsed.ok
        assert "12A" in parsed.problem
        assert parsed.raw == "12A"

    @pytest.mark.parametrize("raw", ["NaN", "nan", "inf", "-inf", "Infinity", "1e999"])
    def test_non_finite_is_absent_with_problem(self, raw):
        parsed = parse_number(raw)
        assert parsed.value is None
        assert not parsed.ok
        assert "finite" in parsed.problem

    def test_result_is_immutable(self):
        parsed = parse_number("5")
        with pytest.raises(ValidationError):
            parsed.value = 6.0


class TestParseText:
    def test_strips(self):
        assert parse_text("  HSP ").value == "HSP"

    def test_null_literal_is_absent(self):
        assert parse_text("NULL").value is None
        assert parse_text("").value is None
