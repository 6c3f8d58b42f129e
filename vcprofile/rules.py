"""Comparison rules for cross-checking stored profile attributes against VCs.

Each attribute is compared under exactly one rule, chosen in priority order:
categorical synonym tables, positional name tokens, date normalization, and
finally direct equality. Every comparison yields a trace for audit logging.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from .documents import VC
from .engine_config import ProfileEngineConfig

logger = logging.getLogger(__name__)

# (pattern, day-first) in the order they are tried; matches are unanchored
STANDARD_DATE_PATTERNS = (
    (re.compile(r"(\d{2})-(\d{2})-(\d{4})"), True),
    (re.compile(r"(\d{4})-(\d{2})-(\d{2})"), False),
    (re.compile(r"(\d{2})/(\d{2})/(\d{4})"), True),
    (re.compile(r"(\d{4})/(\d{2})/(\d{2})"), False),
)


class ComparisonRule(str, Enum):
    """How an extracted value is compared with the stored one."""
    CATEGORICAL = "categorical"
    NAME_POSITION = "name_position"
    DATE = "date"
    EXACT = "exact"


@dataclass
class ComparisonTrace:
    """Audit trace for a single attribute comparison."""
    attribute: str
    doc_type: str
    rule: ComparisonRule
    matched: bool
    reason: str
    extracted: Any = None


def parse_to_standard_format(value: Any) -> str | None:
    """Normalize a date-like value to ``YYYY-MM-DD`` with a small regex set.

    Only ``DD-MM-YYYY``, ``YYYY-MM-DD``, ``DD/MM/YYYY`` and ``YYYY/MM/DD`` are
    recognized, anywhere inside the string.
    """
    if value is None:
        return None

    text = str(value)
    for pattern, day_first in STANDARD_DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        if day_first:
            day, month, year = match.groups()
        else:
            year, month, day = match.groups()
        return f"{year}-{month}-{day}"

    return None


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def loosely_equal(left: Any, right: Any) -> bool:
    """Direct equality that also treats ``"120000"`` and ``120000`` as equal.

    Strings are compared case-sensitively. A missing value never matches.
    """
    if left is None or right is None:
        return False
    if left == right:
        return True

    if isinstance(left, str) != isinstance(right, str):
        left_num, right_num = _as_number(left), _as_number(right)
        return left_num is not None and left_num == right_num

    return False


class AttributeComparator:
    """Config-driven attribute comparison with audit traces."""

    def __init__(self, config: ProfileEngineConfig):
        """Initialize comparator.

        Args:
            config: Engine tables (categorical, name and date settings)
        """
        self.config = config
        self._handlers: dict[ComparisonRule, Callable[..., ComparisonTrace]] = {
            ComparisonRule.CATEGORICAL: self._eval_categorical,
            ComparisonRule.NAME_POSITION: self._eval_name_position,
            ComparisonRule.DATE: self._eval_date,
            ComparisonRule.EXACT: self._eval_exact,
        }

    def select_rule(self, attribute: str, vc: VC) -> ComparisonRule:
        """Pick the comparison rule for an attribute read from ``vc``."""
        if attribute in self.config.categorical_values:
            return ComparisonRule.CATEGORICAL
        if attribute in self.config.name_attributes and vc.vc_type == self.config.name_lineage:
            return ComparisonRule.NAME_POSITION
        if attribute in self.config.date_attributes:
            return ComparisonRule.DATE
        return ComparisonRule.EXACT

    def compare(
        self,
        attribute: str,
        extracted: Any,
        expected: Any,
        vc: VC,
    ) -> ComparisonTrace:
        """Compare a VC-extracted value with the stored profile value.

        Args:
            attribute: Profile attribute name
            extracted: Raw value resolved from the VC
            expected: Value currently stored on the profile
            vc: The VC the value came from

        Returns:
            ComparisonTrace with the outcome
        """
        rule = self.select_rule(attribute, vc)
        trace = self._handlers[rule](attribute, extracted, expected, vc)
        logger.debug(
            f"{attribute} vs {vc.doc_type} [{rule.value}]: "
            f"{'match' if trace.matched else 'no match'} ({trace.reason})"
        )
        return trace

    def _trace(
        self,
        attribute: str,
        vc: VC,
        rule: ComparisonRule,
        matched: bool,
        reason: str,
        extracted: Any,
    ) -> ComparisonTrace:
        return ComparisonTrace(
            attribute=attribute,
            doc_type=vc.doc_type,
            rule=rule,
            matched=matched,
            reason=reason,
            extracted=extracted,
        )

    def _eval_categorical(self, attribute: str, extracted: Any, expected: Any, vc: VC) -> ComparisonTrace:
        """Synonym lookup, case-insensitive on both sides."""
        rule = ComparisonRule.CATEGORICAL
        if extracted is None or expected is None:
            return self._trace(attribute, vc, rule, False, "value missing", extracted)

        synonyms = self.config.categorical_values[attribute].get(str(expected).lower())
        if synonyms is None:
            return self._trace(
                attribute, vc, rule, False, f"no synonyms for stored value '{expected}'", extracted,
            )

        matched = str(extracted).lower() in synonyms
        return self._trace(attribute, vc, rule, matched, f"'{extracted}' in {list(synonyms)}", extracted)

    def _eval_name_position(self, attribute: str, extracted: Any, expected: Any, vc: VC) -> ComparisonTrace:
        """Pick the configured token out of a composite name, then compare."""
        rule = ComparisonRule.NAME_POSITION
        position = self.config.name_positions.get(vc.doc_type, {}).get(attribute)
        tokens = extracted.split() if isinstance(extracted, str) else []

        if position is None or position >= len(tokens):
            return self._trace(attribute, vc, rule, False, f"no token at position {position}", extracted)

        token = tokens[position]
        matched = loosely_equal(token, expected)
        return self._trace(attribute, vc, rule, matched, f"token {position} is '{token}'", token)

    def _eval_date(self, attribute: str, extracted: Any, expected: Any, vc: VC) -> ComparisonTrace:
        """Normalize both dates to YYYY-MM-DD and compare."""
        rule = ComparisonRule.DATE
        extracted_date = parse_to_standard_format(extracted)
        expected_date = parse_to_standard_format(expected)

        if extracted_date is None or expected_date is None:
            return self._trace(attribute, vc, rule, False, "unrecognized date format", extracted)

        matched = extracted_date == expected_date
        return self._trace(attribute, vc, rule, matched, f"{extracted_date} vs {expected_date}", extracted_date)

    def _eval_exact(self, attribute: str, extracted: Any, expected: Any, vc: VC) -> ComparisonTrace:
        """Direct (case-sensitive) equality."""
        matched = loosely_equal(extracted, expected)
        return self._trace(attribute, vc, ComparisonRule.EXACT, matched, "direct comparison", extracted)
