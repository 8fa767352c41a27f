"""Tests for DTO utility functions and PageResult."""

from decimal import Decimal

from recipe_hub.services.dto import PageResult
from recipe_hub.services.dto_utils import mean_rating, round_half_up, to_float


class TestRoundHalfUp:
    """Tests for round_half_up."""

    def test_half_rounds_up(self):
        assert round_half_up(Decimal("4.125")) == Decimal("4.13")
        assert round_half_up(Decimal("4.005")) == Decimal("4.01")

    def test_below_half_rounds_down(self):
        assert round_half_up(Decimal("4.124")) == Decimal("4.12")

    def test_accepts_float_int_and_string(self):
        assert round_half_up(2.5, 0) == Decimal("3")
        assert round_half_up(5) == Decimal("5.00")
        assert round_half_up("3.14159") == Decimal("3.14")


class TestMeanRating:
    """Tests for mean_rating."""

    def test_mean_rounded(self):
        assert mean_rating(13, 3) == Decimal("4.33")
        assert mean_rating(14, 3) == Decimal("4.67")

    def test_exact_half_rounds_up(self):
        # 801 / 200 = 4.005
        assert mean_rating(801, 200) == Decimal("4.01")

    def test_zero_count(self):
        assert mean_rating(0, 0) is None


class TestToFloat:
    """Tests for to_float."""

    def test_none_preserved(self):
        assert to_float(None) is None

    def test_decimal_converted(self):
        assert to_float(Decimal("4.50")) == 4.5


class TestPageResult:
    """Tests for PageResult helpers."""

    def test_pages(self):
        assert PageResult(items=[], page=1, size=50, total=100).pages == 2
        assert PageResult(items=[], page=1, size=50, total=101).pages == 3
        assert PageResult(items=[], page=1, size=50, total=0).pages == 1

    def test_navigation(self):
        result = PageResult(items=[], page=2, size=10, total=25)
        assert result.has_prev
        assert result.has_next
        assert result.offset() == 10

        last = PageResult(items=[], page=3, size=10, total=25)
        assert not last.has_next
