"""VC records and conversion from stored user documents.

Stored documents keep their payload as JSON text (or an already-decoded
mapping). Conversion decodes each payload and tags it with its doc type and
lineage so builder and validator can pick documents without touching storage.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable

logger = logging.getLogger(__name__)

DIGILOCKER_SOURCE = "Digilocker"
DIGILOCKER_VC_TYPE = "digilocker"
W3C_VC_TYPE = "w3c"
JSON_FORMAT = "json"


@dataclass(frozen=True)
class VC:
    """A verifiable-credential-like document."""
    doc_type: str
    content: Any
    vc_type: str | None = None
    doc_format: str | None = None


@dataclass
class DocumentRecord:
    """A stored user document as handed over by a document store."""
    doc_id: str
    doc_subtype: str
    doc_data: str | dict | None
    imported_from: str | None = None
    doc_verified: bool = True


def vc_type_for(imported_from: str | None) -> str:
    """Lineage of a document: Digilocker imports vs. W3C credentials."""
    return DIGILOCKER_VC_TYPE if imported_from == DIGILOCKER_SOURCE else W3C_VC_TYPE


def build_vcs(records: Iterable[Any]) -> list[VC]:
    """Convert stored document records into VCs.

    Records only need ``doc_id``, ``doc_subtype``, ``doc_data`` and
    ``imported_from`` attributes, so ORM rows work as well as DocumentRecord.
    Documents whose payload is not valid JSON are logged and skipped.

    Args:
        records: Stored document records for one user

    Returns:
        List of VCs in record order
    """
    vcs: list[VC] = []

    for record in records:
        doc_data = record.doc_data
        try:
            content = json.loads(doc_data) if isinstance(doc_data, (str, bytes)) else doc_data
        except ValueError as e:
            logger.error(f"Invalid JSON format in doc {record.doc_id}: {e}")
            continue

        vcs.append(VC(
            doc_type=record.doc_subtype,
            content=content,
            vc_type=vc_type_for(getattr(record, "imported_from", None)),
            doc_format=JSON_FORMAT,
        ))

    logger.debug(f"Built {len(vcs)} VCs from stored documents")
    return vcs


def find_vc(
    vcs: Iterable[VC],
    doc_type: str,
    *,
    vc_type: str | None = None,
    doc_format: str | None = None,
) -> VC | None:
    """First VC of a doc type, optionally also matching lineage and format."""
    for vc in vcs:
        if vc.doc_type != doc_type:
            continue
        if vc_type is not None and vc.vc_type != vc_type:
            continue
        if doc_format is not None and vc.doc_format != doc_format:
            continue
        return vc
    return None
