"""Field transform registry for values extracted from VCs.

Each transform is a pure function ``raw -> normalized | None``. Fields are bound
to transforms by name in the engine configuration, so a new field rule is a
registry entry plus a table row rather than another branch in the builder.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any, Callable

from .config import settings

logger = logging.getLogger(__name__)

ROMAN_VALUES = {
    "I": 1,
    "V": 5,
    "X": 10,
    "L": 50,
    "C": 100,
    "D": 500,
    "M": 1000,
}

GENDER_VALUES = {
    "M": "male",
    "Male": "male",
    "F": "female",
    "Female": "female",
}

# Unambiguous calendar dates with a textual month
TEXTUAL_DATE_FORMATS = (
    "%d %b %Y",
    "%d %B %Y",
    "%d-%b-%Y",
    "%d-%B-%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%a %b %d %Y",
)

# Tried in order after the general parse fails
DATE_FORMATS = (
    "%Y-%m-%d",
    "%d-%m-%Y",
    "%m-%d-%Y",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%m/%d/%Y",
)

INCOME_STRIP_PATTERN = re.compile(r"[, ']")
SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


class TransformType(str, Enum):
    """Registered field transforms."""
    FIRST_NAME = "first_name"
    MIDDLE_NAME = "middle_name"
    LAST_NAME = "last_name"
    FATHER_NAME = "father_name"
    GENDER = "gender"
    CLASS = "class"
    DISABILITY_TYPE = "disability_type"
    DATE = "date"
    INCOME = "income"


@dataclass(frozen=True)
class FieldTransform:
    """A transform strategy bound to profile fields.

    ``source_field`` names the path entry to resolve instead of the field's
    own entry (all name parts come from the single composite ``name`` path).
    """
    type: TransformType
    func: Callable[[Any], Any]
    source_field: str | None = None

    def __call__(self, raw: Any) -> Any:
        return self.func(raw)


def is_present(value: Any) -> bool:
    """Whether an extracted value counts as a usable result.

    None, empty strings, zero, False and NaN are all treated as "no value".
    """
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def split_name(full_name: Any) -> tuple[str | None, str | None, str | None]:
    """Split a composite name into (first, middle, last).

    Middle name is only set for exactly three tokens; a single token has no
    last name.
    """
    if not isinstance(full_name, str):
        return None, None, None

    parts = full_name.split()
    if not parts:
        return None, None, None

    first = parts[0]
    middle = parts[1] if len(parts) == 3 else None
    last = parts[-1] if len(parts) >= 2 else None
    return first, middle, last


def first_name(value: Any) -> str | None:
    return split_name(value)[0]


def middle_name(value: Any) -> str | None:
    return split_name(value)[1]


def last_name(value: Any) -> str | None:
    return split_name(value)[2]


def father_name(value: Any) -> str | None:
    """Father's name mirrors the middle token of a three-part name."""
    return split_name(value)[1]


def normalize_gender(value: Any) -> str | None:
    """Map ``M``/``Male`` and ``F``/``Female`` to lowercase words."""
    if not isinstance(value, str):
        return None
    return GENDER_VALUES.get(value)


def roman_to_int(roman: str) -> int:
    """Convert an uppercase roman numeral using subtractive pairs.

    Returns 0 when the string is empty or contains a non-roman symbol.
    """
    total = 0
    for idx, symbol in enumerate(roman):
        current = ROMAN_VALUES.get(symbol)
        if current is None:
            return 0
        following = ROMAN_VALUES.get(roman[idx + 1], 0) if idx + 1 < len(roman) else 0
        if current < following:
            total -= current
        else:
            total += current
    return total


def normalize_class(value: Any) -> Any:
    """Convert roman class/grade values, returning anything else unchanged."""
    if not is_present(value):
        return None
    if not isinstance(value, str):
        return value
    converted = roman_to_int(value)
    return converted if converted else value


def slugify_disability(value: Any) -> str | None:
    """Lowercase slug, e.g. ``"Locomotor Disability - Both Legs"`` → ``locomotor_disability_both_legs``."""
    if not is_present(value):
        return None
    return SLUG_PATTERN.sub("_", str(value).strip().lower())


def _parse_general_date(text: str) -> date | None:
    """ISO 8601, then RFC 2822 (``Thu, 08 May 2003 00:00:00 GMT``), then textual months."""
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(text).date()
    except (TypeError, ValueError, IndexError):
        pass
    for fmt in TEXTUAL_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def normalize_date(value: Any) -> str | None:
    """Normalize a date value to ``YYYY-MM-DD``.

    Args:
        value: Date string, or a date/datetime object

    Returns:
        ISO date string, or None if no known format parses
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    parsed = _parse_general_date(text)
    if parsed is not None:
        return parsed.isoformat()

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue

    logger.debug(f"Unparseable date value: {value!r}")
    return None


def normalize_income(value: Any, *, strict: bool | None = None) -> int | float | None:
    """Normalize an annual income value.

    Numbers are accepted when non-negative and not NaN. Strings have commas,
    apostrophes and spaces stripped before conversion; without ``strict`` a
    malformed string becomes NaN, which the builder treats as no value.

    Args:
        value: Raw income (number or string)
        strict: Require plain digits after sanitizing (defaults to
            settings.engine.income_format_check)

    Returns:
        Normalized number, NaN for malformed strings, or None
    """
    if value is None:
        return None

    if isinstance(value, bool):
        logger.warning(f"Invalid income value: {value!r}")
        return None

    if isinstance(value, (int, float)):
        if math.isnan(value) or value < 0:
            logger.warning(f"Invalid income value: {value!r}")
            return None
        return value

    if not isinstance(value, str):
        logger.warning(f"Invalid income type: {type(value).__name__}")
        return None

    strict = settings.engine.income_format_check if strict is None else strict
    sanitized = INCOME_STRIP_PATTERN.sub("", value)

    if strict and not sanitized.isdigit():
        logger.warning(f"Invalid income format: {value!r}")
        return None

    try:
        return int(sanitized)
    except ValueError:
        pass
    try:
        return float(sanitized)
    except ValueError:
        logger.warning(f"Non-numeric income value: {value!r}")
        return math.nan


TRANSFORMS: dict[TransformType, FieldTransform] = {
    TransformType.FIRST_NAME: FieldTransform(TransformType.FIRST_NAME, first_name, "name"),
    TransformType.MIDDLE_NAME: FieldTransform(TransformType.MIDDLE_NAME, middle_name, "name"),
    TransformType.LAST_NAME: FieldTransform(TransformType.LAST_NAME, last_name, "name"),
    TransformType.FATHER_NAME: FieldTransform(TransformType.FATHER_NAME, father_name, "name"),
    TransformType.GENDER: FieldTransform(TransformType.GENDER, normalize_gender),
    TransformType.CLASS: FieldTransform(TransformType.CLASS, normalize_class),
    TransformType.DISABILITY_TYPE: FieldTransform(TransformType.DISABILITY_TYPE, slugify_disability),
    TransformType.DATE: FieldTransform(TransformType.DATE, normalize_date),
    TransformType.INCOME: FieldTransform(TransformType.INCOME, normalize_income),
}


def get_transform(transform_type: TransformType | str) -> FieldTransform:
    """Look up a registered transform by type or name.

    Raises:
        ValueError: If no transform is registered under that name
    """
    return TRANSFORMS[TransformType(transform_type)]
