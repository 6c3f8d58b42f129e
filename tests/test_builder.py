"""Tests for the profile builder."""

import math

import pytest

from tests.conftest import make_config, make_vc
from vcprofile.documents import VC
from vcprofile.pipelines import builder
from vcprofile.pipelines.builder import ProfileBuildError, build_profile, extract_field_value


AADHAAR_SUBJECT = {
    "name": "Ravi Kumar Singh",
    "gender": "M",
    "dob": "08-05-2003",
    "uid": "XXXX-XXXX-1234",
    "address": {"state": "Bihar"},
}


# =============================================================================
# End to end with the bundled tables
# =============================================================================


class TestBuildProfile:
    """Building a profile from several VCs"""

    def test_aadhaar_profile(self, engine_config):
        result = build_profile([make_vc("aadhaar", AADHAAR_SUBJECT)], engine_config)
        profile = result.profile

        assert profile["firstName"] == "Ravi"
        assert profile["middleName"] == "Kumar"
        assert profile["lastName"] == "Singh"
        assert profile["fatherName"] == "Kumar"
        assert profile["gender"] == "male"
        assert profile["dob"] == "2003-05-08"
        assert profile["aadhaar"] == "XXXX-XXXX-1234"
        assert profile["state"] == "Bihar"
        assert result.provenance["dob"] == ["aadhaar"]

    def test_every_configured_field_reported(self, engine_config):
        result = build_profile([], engine_config)

        assert set(result.profile) == set(engine_config.field_sources)
        assert all(value is None for value in result.profile.values())
        assert all(docs == [] for docs in result.provenance.values())

    def test_priority_order(self, engine_config):
        vcs = [
            make_vc("marksheet", {"studentName": "Asha Devi", "dateOfBirth": "2004-01-01"}),
            make_vc("aadhaar", AADHAAR_SUBJECT),
        ]
        result = build_profile(vcs, engine_config)

        assert result.profile["firstName"] == "Ravi"
        assert result.profile["dob"] == "2003-05-08"
        assert result.provenance["firstName"] == ["aadhaar"]

    def test_falls_back_to_next_candidate(self, engine_config):
        vcs = [
            make_vc("aadhaar", {"name": "Ravi Singh"}),
            make_vc("marksheet", {"dateOfBirth": "2003/05/08", "class": "IX"}),
        ]
        result = build_profile(vcs, engine_config)

        assert result.profile["dob"] == "2003-05-08"
        assert result.provenance["dob"] == ["marksheet"]
        assert result.profile["class"] == 9
        assert result.provenance["class"] == ["marksheet"]

    def test_two_token_name_has_no_middle(self, engine_config):
        result = build_profile([make_vc("aadhaar", {"name": "Ravi Singh"})], engine_config)

        assert result.profile["middleName"] is None
        assert result.provenance["middleName"] == []
        assert result.profile["lastName"] == "Singh"

    def test_higher_priority_source_wins(self, engine_config):
        vcs = [
            make_vc("aadhaar", AADHAAR_SUBJECT),
            make_vc("domicileCertificate", {"state": "Jharkhand"}),
        ]
        result = build_profile(vcs, engine_config)

        assert result.profile["state"] == "Jharkhand"
        assert result.provenance["state"] == ["domicileCertificate"]

    def test_malformed_income_not_committed(self, engine_config):
        vcs = [make_vc("incomeCertificate", {"annualIncome": "about 5000"})]
        result = build_profile(vcs, engine_config)

        assert result.profile["annualIncome"] is None
        assert result.provenance["annualIncome"] == []

    def test_income_normalized(self, engine_config):
        vcs = [make_vc("incomeCertificate", {"annualIncome": "1,20,000"})]
        result = build_profile(vcs, engine_config)
        assert result.profile["annualIncome"] == 120000

    def test_disability_type_slugged(self, engine_config):
        vcs = [make_vc("disabilityCertificate", {"disabilityType": "Low Vision", "udid": "UD1"})]
        result = build_profile(vcs, engine_config)

        assert result.profile["disabilityType"] == "low_vision"
        assert result.profile["udid"] == "UD1"

    def test_unconfigured_doc_types_ignored(self, engine_config):
        result = build_profile([make_vc("passport", {"name": "Ravi Singh"})], engine_config)
        assert result.profile["firstName"] is None


# =============================================================================
# Single-field extraction
# =============================================================================


class TestExtractFieldValue:
    """Value extraction from one VC"""

    def test_scalar_mid_path(self):
        config = make_config()
        vc = VC("primary", {"credentialSubject": "not an object"}, "w3c", "json")
        assert extract_field_value(vc, "dob", config) is None

    def test_non_mapping_content(self):
        config = make_config()
        vc = VC("primary", ["not", "an", "object"], "w3c", "json")
        assert extract_field_value(vc, "dob", config) is None

    def test_field_without_transform_returned_raw(self):
        config = make_config(field_transforms={})
        vc = make_vc("primary", {"dob": "08-05-2003"})
        assert extract_field_value(vc, "dob", config) == "08-05-2003"

    def test_unparseable_value_skipped(self):
        config = make_config()
        vcs = [make_vc("primary", {"dob": "someday"}), make_vc("secondary", {"dob": "2003-05-08"})]
        result = build_profile(vcs, config)

        assert result.profile["dob"] == "2003-05-08"
        assert result.provenance["dob"] == ["secondary"]


# =============================================================================
# Result shape and failures
# =============================================================================


class TestBuildResult:
    """ProfileBuildResult helpers"""

    def test_tuple_unpacking(self):
        profile, provenance = build_profile([make_vc("primary", {"dob": "2003-05-08"})], make_config())

        assert profile == {"dob": "2003-05-08"}
        assert provenance == {"dob": ["primary"]}

    def test_is_complete(self):
        config = make_config()
        assert build_profile([make_vc("secondary", {"dob": "2003-05-08"})], config).is_complete
        assert not build_profile([], config).is_complete

    def test_nan_is_incomplete(self):
        result = builder.ProfileBuildResult(profile={"annualIncome": math.nan}, provenance={})
        assert not result.is_complete

    def test_unexpected_failure_wrapped(self, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(builder, "find_vc", explode)
        with pytest.raises(ProfileBuildError) as exc_info:
            build_profile([make_vc("primary", {"dob": "2003-05-08"})], make_config())
        assert isinstance(exc_info.value.__cause__, RuntimeError)
