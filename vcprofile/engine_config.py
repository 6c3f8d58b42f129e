"""Immutable profile engine tables: field sources, paths, and comparison rules.

Tables are validated once at load time and cached process-wide. They are
shared read-only by every builder and validator run.
"""
from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .config import settings
from .transforms import FieldTransform, TransformType, get_transform

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when engine tables are missing or malformed."""
    pass


class PathVariant(BaseModel):
    """Attribute paths for one (vcType, format) shape of a doc type."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    vc_type: str = Field(alias="vcType")
    doc_format: str = Field(default="json", alias="format")
    paths: dict[str, str] = Field(default_factory=dict, alias="fields")


class ProfileEngineConfig(BaseModel):
    """All tables consumed by the builder and the validator."""
    model_config = ConfigDict(frozen=True)

    # Builder side
    field_sources: dict[str, tuple[str, ...]]
    field_paths: dict[str, dict[str, str]]
    field_transforms: dict[str, TransformType] = Field(default_factory=dict)

    # Validator side
    attribute_sources: dict[str, tuple[str, ...]]
    attribute_paths: dict[str, tuple[PathVariant, ...]]
    categorical_values: dict[str, dict[str, tuple[str, ...]]] = Field(default_factory=dict)
    name_positions: dict[str, dict[str, int]] = Field(default_factory=dict)
    name_attributes: frozenset[str] = frozenset({"firstName", "middleName", "lastName"})
    date_attributes: frozenset[str] = frozenset({"dob"})
    name_lineage: str = "digilocker"

    @field_validator("categorical_values")
    @classmethod
    def lowercase_categories(cls, v: dict[str, dict[str, tuple[str, ...]]]):
        return {
            attribute: {
                value.lower(): tuple(s.lower() for s in synonyms)
                for value, synonyms in table.items()
            }
            for attribute, table in v.items()
        }

    @model_validator(mode="after")
    def check_references(self) -> ProfileEngineConfig:
        missing_paths = sorted({
            doc_type
            for doc_types in self.field_sources.values()
            for doc_type in doc_types
            if doc_type not in self.field_paths
        })
        if missing_paths:
            raise ValueError(f"No field paths for doc types: {', '.join(missing_paths)}")

        missing_variants = sorted({
            doc_type
            for doc_types in self.attribute_sources.values()
            for doc_type in doc_types
            if doc_type not in self.attribute_paths
        })
        if missing_variants:
            raise ValueError(f"No attribute paths for doc types: {', '.join(missing_variants)}")

        return self

    def transform_for(self, field: str) -> FieldTransform | None:
        """Transform bound to a profile field, if any."""
        transform_type = self.field_transforms.get(field)
        return get_transform(transform_type) if transform_type else None

    def paths_for(self, doc_type: str) -> dict[str, str]:
        """Field path map for a doc type.

        Raises:
            ConfigurationError: If the doc type has no path map
        """
        try:
            return self.field_paths[doc_type]
        except KeyError:
            raise ConfigurationError(f"No field paths configured for doc type '{doc_type}'") from None

    def variants_for(self, doc_type: str) -> tuple[PathVariant, ...]:
        """Attribute path variants for a doc type.

        Raises:
            ConfigurationError: If the doc type has no variants
        """
        try:
            return self.attribute_paths[doc_type]
        except KeyError:
            raise ConfigurationError(f"No attribute paths configured for doc type '{doc_type}'") from None


def build_engine_config(**tables: Any) -> ProfileEngineConfig:
    """Validate raw tables into a ProfileEngineConfig.

    Raises:
        ConfigurationError: If any table has the wrong shape
    """
    try:
        return ProfileEngineConfig.model_validate(tables)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid engine configuration: {e}") from e


def default_engine_config() -> ProfileEngineConfig:
    """Engine config built from the bundled default tables."""
    from config import profile_tables

    return build_engine_config(
        field_sources=profile_tables.FIELD_SOURCES,
        field_paths=profile_tables.FIELD_PATHS,
        field_transforms=profile_tables.FIELD_TRANSFORMS,
        attribute_sources=profile_tables.ATTRIBUTE_SOURCES,
        attribute_paths=profile_tables.ATTRIBUTE_PATHS,
        categorical_values=profile_tables.CATEGORICAL_VALUES,
        name_positions=profile_tables.NAME_POSITIONS,
    )


def _read_json(path: Path) -> Any:
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Missing configuration file: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Malformed configuration file {path}: {e}") from e


def _read_json_dir(directory: Path) -> dict[str, Any]:
    if not directory.is_dir():
        raise ConfigurationError(f"Missing configuration directory: {directory}")
    return {path.stem: _read_json(path) for path in sorted(directory.glob("*.json"))}


def engine_config_from_directory(config_dir: str | Path) -> ProfileEngineConfig:
    """Load engine tables from a JSON directory.

    Layout::

        builder/vcArray.json               field -> doc types (priority order)
        builder/vcPaths/<docType>.json     field -> path
        builder/fieldTransforms.json       field -> transform name (optional)
        validator/config.json              attribute -> doc types
        validator/docToFieldMaps/<docType>.json
        validator/fieldValues.json         categorical synonym tables
        validator/nameFieldsPosition.json  name token positions

    Raises:
        ConfigurationError: If a file is missing, unreadable, or malformed
    """
    root = Path(config_dir)
    builder_dir = root / "builder"
    validator_dir = root / "validator"

    transforms_file = builder_dir / "fieldTransforms.json"
    if transforms_file.exists():
        field_transforms = _read_json(transforms_file)
    else:
        from config.profile_tables import FIELD_TRANSFORMS

        field_transforms = FIELD_TRANSFORMS

    return build_engine_config(
        field_sources=_read_json(builder_dir / "vcArray.json"),
        field_paths=_read_json_dir(builder_dir / "vcPaths"),
        field_transforms=field_transforms,
        attribute_sources=_read_json(validator_dir / "config.json"),
        attribute_paths=_read_json_dir(validator_dir / "docToFieldMaps"),
        categorical_values=_read_json(validator_dir / "fieldValues.json"),
        name_positions=_read_json(validator_dir / "nameFieldsPosition.json"),
    )


@lru_cache(maxsize=8)
def load_engine_config(config_dir: str | None = None) -> ProfileEngineConfig:
    """Load and cache engine tables.

    Args:
        config_dir: JSON directory; falls back to settings.engine.config_dir,
            then to the bundled defaults

    Returns:
        Validated, shared ProfileEngineConfig
    """
    config_dir = config_dir or settings.engine.config_dir
    if config_dir:
        config = engine_config_from_directory(config_dir)
        source = config_dir
    else:
        config = default_engine_config()
        source = "bundled defaults"

    logger.info(
        f"Loaded engine config from {source}: {len(config.field_sources)} profile fields, "
        f"{len(config.attribute_sources)} verifiable attributes"
    )
    return config
