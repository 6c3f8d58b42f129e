"""Shared fixtures for profile engine tests."""

from typing import Any

import pytest

from vcprofile.documents import VC
from vcprofile.engine_config import ProfileEngineConfig, build_engine_config, default_engine_config


def make_vc(
    doc_type: str,
    subject: dict[str, Any],
    *,
    vc_type: str = "w3c",
    doc_format: str = "json",
) -> VC:
    """Helper to wrap subject data in a W3C-style credential."""
    return VC(
        doc_type=doc_type,
        content={"credentialSubject": subject},
        vc_type=vc_type,
        doc_format=doc_format,
    )


def make_digilocker_vc(doc_type: str, person: dict[str, Any]) -> VC:
    """Helper to wrap person data in a Digilocker-style certificate."""
    return VC(
        doc_type=doc_type,
        content={"Certificate": {"IssuedTo": {"Person": person}}},
        vc_type="digilocker",
        doc_format="json",
    )


def make_config(**overrides: Any) -> ProfileEngineConfig:
    """Small two-source config; any table can be overridden."""
    tables: dict[str, Any] = {
        "field_sources": {"dob": ["primary", "secondary"]},
        "field_paths": {
            "primary": {"dob": "credentialSubject.dob"},
            "secondary": {"dob": "credentialSubject.dob"},
        },
        "field_transforms": {"dob": "date"},
        "attribute_sources": {"dob": ["primary", "secondary"]},
        "attribute_paths": {
            "primary": [{"vcType": "w3c", "format": "json", "fields": {"dob": "credentialSubject.dob"}}],
            "secondary": [{"vcType": "w3c", "format": "json", "fields": {"dob": "credentialSubject.dob"}}],
        },
    }
    tables.update(overrides)
    return build_engine_config(**tables)


@pytest.fixture
def engine_config() -> ProfileEngineConfig:
    """Engine config built from the bundled default tables."""
    return default_engine_config()
