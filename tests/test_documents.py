"""Tests for converting stored documents into VCs."""

import json
import logging

from vcprofile.documents import VC, DocumentRecord, build_vcs, find_vc, vc_type_for


def record(doc_id, doc_subtype, doc_data, imported_from=None):
    return DocumentRecord(
        doc_id=doc_id,
        doc_subtype=doc_subtype,
        doc_data=doc_data,
        imported_from=imported_from,
    )


class TestBuildVcs:
    """Stored document conversion"""

    def test_decodes_json_text(self):
        payload = {"credentialSubject": {"name": "Asha Devi"}}
        vcs = build_vcs([record("d1", "aadhaar", json.dumps(payload))])

        assert vcs == [VC(doc_type="aadhaar", content=payload, vc_type="w3c", doc_format="json")]

    def test_accepts_decoded_payload(self):
        payload = {"credentialSubject": {"caste": "OBC"}}
        vcs = build_vcs([record("d1", "casteCertificate", payload)])
        assert vcs[0].content is payload

    def test_invalid_json_skipped(self, caplog):
        records = [
            record("bad", "aadhaar", "{not json"),
            record("good", "marksheet", '{"credentialSubject": {}}'),
        ]

        with caplog.at_level(logging.ERROR):
            vcs = build_vcs(records)

        assert [vc.doc_type for vc in vcs] == ["marksheet"]
        assert "Invalid JSON format in doc bad" in caplog.text

    def test_undecodable_bytes_skipped(self, caplog):
        records = [
            record("bad", "aadhaar", b'{"name": "\xff\xfe"}'),
            record("good", "aadhaar", b'{"credentialSubject": {"name": "Asha Devi"}}'),
        ]

        with caplog.at_level(logging.ERROR):
            vcs = build_vcs(records)

        assert [vc.content for vc in vcs] == [{"credentialSubject": {"name": "Asha Devi"}}]
        assert "Invalid JSON format in doc bad" in caplog.text

    def test_digilocker_lineage(self):
        vcs = build_vcs([
            record("d1", "aadhaar", "{}", imported_from="Digilocker"),
            record("d2", "aadhaar", "{}", imported_from="Upload"),
            record("d3", "aadhaar", "{}"),
        ])
        assert [vc.vc_type for vc in vcs] == ["digilocker", "w3c", "w3c"]

    def test_preserves_order(self):
        vcs = build_vcs([record(str(i), f"doc{i}", "{}") for i in range(3)])
        assert [vc.doc_type for vc in vcs] == ["doc0", "doc1", "doc2"]


class TestVcLookup:
    """Picking documents out of a VC list"""

    def test_vc_type_for(self):
        assert vc_type_for("Digilocker") == "digilocker"
        assert vc_type_for("digilocker") == "w3c"
        assert vc_type_for(None) == "w3c"

    def test_first_of_type(self):
        first = VC("aadhaar", {"n": 1}, "w3c", "json")
        second = VC("aadhaar", {"n": 2}, "digilocker", "json")
        assert find_vc([first, second], "aadhaar") is first

    def test_filters_by_lineage_and_format(self):
        w3c = VC("aadhaar", {}, "w3c", "json")
        digilocker = VC("aadhaar", {}, "digilocker", "json")
        assert find_vc([w3c, digilocker], "aadhaar", vc_type="digilocker") is digilocker
        assert find_vc([w3c, digilocker], "aadhaar", doc_format="xml") is None

    def test_missing_type(self):
        assert find_vc([VC("aadhaar", {})], "marksheet") is None
