"""Profile validation: cross-check stored attributes against a user's VCs.

Unlike the builder, validation never stops at the first candidate doc type.
Every candidate is checked and each matching doc type is kept as evidence.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ..documents import JSON_FORMAT, VC, find_vc
from ..engine_config import ConfigurationError, PathVariant, ProfileEngineConfig, load_engine_config
from ..paths import PathResolutionError, resolve_path
from ..rules import AttributeComparator, ComparisonRule, ComparisonTrace

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    """Verification verdict for one profile attribute."""
    attribute: str
    verified: bool
    docs_used: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "attribute": self.attribute,
            "verified": self.verified,
            "docsUsed": list(self.docs_used),
        }


class ProfileValidationError(Exception):
    """Raised when profile validation fails unexpectedly."""
    pass


def all_verified(results: Iterable[VerificationResult]) -> bool:
    """Whether every attribute was verified by at least one document."""
    return all(result.verified for result in results)


def _resolve_attribute(
    vc: VC,
    variant: PathVariant,
    attribute: str,
    rule: ComparisonRule,
) -> Any:
    """Read the raw attribute value from a VC using the variant's paths."""
    if vc.doc_format != JSON_FORMAT:
        return None

    path_key = "name" if rule == ComparisonRule.NAME_POSITION else attribute
    try:
        return resolve_path(vc.content, variant.paths.get(path_key))
    except PathResolutionError as e:
        logger.debug(f"Attribute '{attribute}' not resolvable in {vc.doc_type}: {e}")
        return None


def match_attribute(
    doc_type: str,
    attribute: str,
    expected: Any,
    vcs: list[VC],
    comparator: AttributeComparator,
) -> ComparisonTrace | None:
    """Check one attribute against one candidate doc type.

    Path variants are scanned in order; the first variant with a matching VC
    (same doc type, vcType and format) decides the outcome.

    Returns:
        The comparison trace, or None if the user has no VC for any variant
    """
    for variant in comparator.config.variants_for(doc_type):
        vc = find_vc(vcs, doc_type, vc_type=variant.vc_type, doc_format=variant.doc_format)
        if vc is None:
            continue

        rule = comparator.select_rule(attribute, vc)
        extracted = _resolve_attribute(vc, variant, attribute, rule)
        return comparator.compare(attribute, extracted, expected, vc)

    return None


def match_profile(
    existing_profile: Mapping[str, Any],
    vcs: Iterable[VC],
    config: ProfileEngineConfig | None = None,
) -> list[VerificationResult]:
    """Verify every attribute of a stored profile against the user's VCs.

    Args:
        existing_profile: Flat attribute -> stored value map
        vcs: The user's VCs (with vcType and docFormat set)
        config: Engine tables (defaults to the cached process config)

    Returns:
        One VerificationResult per attribute, in profile key order

    Raises:
        ConfigurationError: If a candidate doc type has no path variants
        ProfileValidationError: On any other unexpected failure
    """
    config = config or load_engine_config()
    comparator = AttributeComparator(config)
    vcs = list(vcs)

    try:
        results: list[VerificationResult] = []

        for attribute, expected in existing_profile.items():
            doc_types = config.attribute_sources.get(attribute)
            if doc_types is None:
                logger.warning(f"No candidate doc types configured for attribute '{attribute}'")
                results.append(VerificationResult(attribute=attribute, verified=False))
                continue

            docs_used: list[str] = []
            for doc_type in doc_types:
                trace = match_attribute(doc_type, attribute, expected, vcs, comparator)
                if trace is not None and trace.matched:
                    docs_used.append(doc_type)

            results.append(VerificationResult(
                attribute=attribute,
                verified=bool(docs_used),
                docs_used=docs_used,
            ))

        verified_count = sum(1 for r in results if r.verified)
        logger.info(f"Validated profile against {len(vcs)} VCs: {verified_count}/{len(results)} attributes verified")
        return results

    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(f"Profile validation failed: {e}", exc_info=True)
        raise ProfileValidationError(f"Profile validation failed: {e}") from e
