"""Tests for the field transform registry."""

import logging
import math
from datetime import date, datetime

import pytest

from vcprofile.transforms import (
    TRANSFORMS,
    TransformType,
    father_name,
    first_name,
    get_transform,
    is_present,
    last_name,
    middle_name,
    normalize_class,
    normalize_date,
    normalize_gender,
    normalize_income,
    roman_to_int,
    slugify_disability,
    split_name,
)


# =============================================================================
# Name splitting
# =============================================================================


class TestNameFields:
    """Name parts derived from one composite name"""

    def test_three_tokens(self):
        assert split_name("Ravi Kumar Singh") == ("Ravi", "Kumar", "Singh")

    def test_two_tokens_have_no_middle(self):
        assert split_name("Ravi Singh") == ("Ravi", None, "Singh")

    def test_four_tokens_have_no_middle(self):
        assert split_name("Ravi Kumar Pratap Singh") == ("Ravi", None, "Singh")

    def test_single_token_has_no_last_name(self):
        assert split_name("Ravi") == ("Ravi", None, None)

    def test_extra_whitespace_ignored(self):
        assert split_name("  Ravi   Kumar  Singh ") == ("Ravi", "Kumar", "Singh")

    def test_non_string(self):
        assert split_name(None) == (None, None, None)
        assert split_name(42) == (None, None, None)

    def test_father_name_mirrors_middle_name(self):
        assert father_name("Ravi Kumar Singh") == middle_name("Ravi Kumar Singh") == "Kumar"
        assert father_name("Ravi Singh") is None

    def test_individual_accessors(self):
        assert first_name("Asha Devi") == "Asha"
        assert last_name("Asha Devi") == "Devi"


# =============================================================================
# Gender and class
# =============================================================================


class TestGender:
    """Gender code normalization"""

    @pytest.mark.parametrize("raw", ["M", "Male"])
    def test_male(self, raw):
        assert normalize_gender(raw) == "male"

    @pytest.mark.parametrize("raw", ["F", "Female"])
    def test_female(self, raw):
        assert normalize_gender(raw) == "female"

    @pytest.mark.parametrize("raw", ["T", "male", "", None])
    def test_other_values(self, raw):
        assert normalize_gender(raw) is None


class TestClass:
    """Roman numeral class/grade conversion"""

    def test_roman_subtractive_pairs(self):
        assert roman_to_int("IV") == 4
        assert roman_to_int("IX") == 9
        assert roman_to_int("XII") == 12
        assert roman_to_int("MCMXCIV") == 1994

    def test_roman_rejects_unknown_symbols(self):
        assert roman_to_int("10") == 0
        assert roman_to_int("XIIa") == 0
        assert roman_to_int("") == 0

    def test_class_converts_roman(self):
        assert normalize_class("X") == 10

    def test_class_keeps_non_roman_value(self):
        assert normalize_class("10") == "10"
        assert normalize_class("Tenth") == "Tenth"
        assert normalize_class(9) == 9

    def test_class_empty(self):
        assert normalize_class("") is None
        assert normalize_class(None) is None


# =============================================================================
# Disability type
# =============================================================================


class TestDisabilityType:
    """Slug normalization"""

    def test_slug(self):
        assert slugify_disability("Locomotor Disability - Both Legs") == "locomotor_disability_both_legs"

    def test_trims_before_slugging(self):
        assert slugify_disability("  Low Vision ") == "low_vision"

    def test_empty(self):
        assert slugify_disability("") is None


# =============================================================================
# Dates
# =============================================================================


class TestDate:
    """Date normalization to YYYY-MM-DD"""

    def test_day_first_dashes(self):
        assert normalize_date("08-05-2003") == "2003-05-08"

    def test_year_first_slashes(self):
        assert normalize_date("2003/05/08") == "2003-05-08"

    def test_iso(self):
        assert normalize_date("2003-05-08") == "2003-05-08"
        assert normalize_date("2003-05-08T10:30:00") == "2003-05-08"

    def test_rfc_2822(self):
        assert normalize_date("Thu, 08 May 2003 00:00:00 GMT") == "2003-05-08"

    def test_day_first_slashes(self):
        assert normalize_date("25/12/2003") == "2003-12-25"

    @pytest.mark.parametrize(
        "raw",
        [
            "8 May 2003",
            "08 May 2003",
            "8 MAY 2003",
            "08-May-2003",
            "8 may 2003",
            "May 8, 2003",
            "May 08 2003",
            "Thu May 08 2003",
        ],
    )
    def test_textual_month(self, raw):
        assert normalize_date(raw) == "2003-05-08"

    def test_numeric_dates_stay_day_first(self):
        assert normalize_date("08-05-2003") == "2003-05-08"
        assert normalize_date("December 25, 2003") == "2003-12-25"

    def test_month_first_fallback(self):
        assert normalize_date("12-25-2003") == "2003-12-25"

    def test_date_objects(self):
        assert normalize_date(date(2003, 5, 8)) == "2003-05-08"
        assert normalize_date(datetime(2003, 5, 8, 12, 0)) == "2003-05-08"

    @pytest.mark.parametrize("raw", ["not a date", "31-31-2003", "", 20030508])
    def test_unparseable(self, raw):
        assert normalize_date(raw) is None


# =============================================================================
# Income
# =============================================================================


class TestIncome:
    """Income normalization"""

    def test_indian_grouping(self):
        assert normalize_income("1,20,000") == 120000

    def test_spaces_and_apostrophes(self):
        assert normalize_income("1 20'000") == 120000

    def test_decimal_string(self):
        assert normalize_income("12500.50") == 12500.5

    def test_numbers_pass_through(self):
        assert normalize_income(5000) == 5000
        assert normalize_income(0) == 0

    def test_negative_number(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert normalize_income(-5) is None
        assert "Invalid income value" in caplog.text

    def test_nan(self):
        assert normalize_income(float("nan")) is None

    def test_malformed_string_becomes_nan(self):
        result = normalize_income("about 5000")
        assert math.isnan(result)
        assert not is_present(result)

    def test_strict_format_check(self):
        assert normalize_income("about 5000", strict=True) is None
        assert normalize_income("12500.50", strict=True) is None
        assert normalize_income("1,20,000", strict=True) == 120000

    def test_none_and_bool(self):
        assert normalize_income(None) is None
        assert normalize_income(True) is None


# =============================================================================
# Registry
# =============================================================================


class TestRegistry:
    """Transform lookup"""

    def test_every_type_registered(self):
        assert set(TRANSFORMS) == set(TransformType)

    def test_lookup_by_name(self):
        transform = get_transform("disability_type")
        assert transform("Low Vision") == "low_vision"
        assert transform.source_field is None

    def test_name_transforms_read_composite_name(self):
        for name in ("first_name", "middle_name", "last_name", "father_name"):
            assert get_transform(name).source_field == "name"

    def test_unknown_transform(self):
        with pytest.raises(ValueError):
            get_transform("shoe_size")


class TestIsPresent:
    """Truthiness of extracted values"""

    @pytest.mark.parametrize("value", [None, "", 0, 0.0, False, float("nan")])
    def test_absent(self, value):
        assert not is_present(value)

    @pytest.mark.parametrize("value", ["x", 1, 120000, -1, {"a": 1}])
    def test_present(self, value):
        assert is_present(value)
