"""Profile builder: resolve each canonical field from the highest-priority VC.

For every configured field the candidate doc types are scanned in priority
order. The first candidate whose extracted (and transformed) value is present
wins; later candidates are never consulted.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, NamedTuple

from ..documents import VC, find_vc
from ..engine_config import ConfigurationError, ProfileEngineConfig, load_engine_config
from ..paths import PathResolutionError, resolve_path
from ..transforms import is_present

logger = logging.getLogger(__name__)


class ProfileBuildError(Exception):
    """Raised when profile building fails unexpectedly."""
    pass


class ProfileBuildResult(NamedTuple):
    """Resolved profile fields and the doc types that supplied them."""
    profile: dict[str, Any]
    provenance: dict[str, list[str]]

    @property
    def is_complete(self) -> bool:
        """Whether every configured field resolved to a value."""
        return all(is_present(value) for value in self.profile.values())


def extract_field_value(vc: VC, field: str, config: ProfileEngineConfig) -> Any:
    """Extract one profile field from a single VC.

    Args:
        vc: Candidate VC
        field: Canonical profile field name
        config: Engine tables

    Returns:
        Transformed value, or None when the VC cannot supply it

    Raises:
        ConfigurationError: If the VC's doc type has no path map
    """
    paths = config.paths_for(vc.doc_type)
    transform = config.transform_for(field)

    path_key = field
    if transform and transform.source_field and transform.source_field in paths:
        path_key = transform.source_field

    try:
        raw = resolve_path(vc.content, paths.get(path_key))
    except PathResolutionError as e:
        logger.debug(f"Field '{field}' not resolvable in {vc.doc_type}: {e}")
        return None

    if raw is None or transform is None:
        return raw
    return transform(raw)


def build_profile(
    vcs: Iterable[VC],
    config: ProfileEngineConfig | None = None,
) -> ProfileBuildResult:
    """Build a canonical profile from a user's VCs.

    Args:
        vcs: The user's VCs
        config: Engine tables (defaults to the cached process config)

    Returns:
        ProfileBuildResult with a value (or None) and provenance for every field

    Raises:
        ConfigurationError: If engine tables are missing or inconsistent
        ProfileBuildError: On any other unexpected failure
    """
    config = config or load_engine_config()
    vcs = list(vcs)

    try:
        profile: dict[str, Any] = {}
        provenance: dict[str, list[str]] = {}

        for field, doc_types in config.field_sources.items():
            value = None
            docs_used: list[str] = []

            for doc_type in doc_types:
                vc = find_vc(vcs, doc_type)
                if vc is None:
                    continue

                candidate = extract_field_value(vc, field, config)
                if is_present(candidate):
                    value = candidate
                    docs_used.append(doc_type)
                    break

            profile[field] = value
            provenance[field] = docs_used
            logger.debug(f"Field '{field}' resolved from {docs_used or 'no document'}")

        filled = sum(1 for v in profile.values() if is_present(v))
        logger.info(f"Built profile from {len(vcs)} VCs: {filled}/{len(profile)} fields filled")

        return ProfileBuildResult(profile=profile, provenance=provenance)

    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(f"Profile build failed: {e}", exc_info=True)
        raise ProfileBuildError(f"Profile build failed: {e}") from e
