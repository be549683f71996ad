"""Tests for profile loading and resolution."""

import pytest

from chart_verifier.core.checks import CheckType, get_checks
from chart_verifier.core.errors import SerializationError
from chart_verifier.core.profiles import (
    VENDOR_TYPE_CONFIG_NAME,
    VERSION_CONFIG_NAME,
    get_profile,
    load_profiles,
)


class TestBuiltinProfiles:

    def test_all_builtin_profiles_load(self):
        profiles = load_profiles()
        pairs = {(p.vendor_type, p.version) for p in profiles}
        assert pairs == {
            (vendor, version)
            for vendor in ("partner", "redhat", "community")
            for version in ("v1.0", "v1.1")
        }

    def test_builtin_checks_are_in_catalog(self):
        catalog = set(get_checks())
        for profile in load_profiles():
            for check in profile.checks:
                assert check.check_id.name in catalog

    def test_default_profile(self):
        profile = get_profile()
        assert (profile.vendor_type, profile.version) == ("partner", "v1.0")
        assert len(profile.mandatory_checks()) == 11

    def test_community_has_no_mandatory_checks(self):
        profile = get_profile({VENDOR_TYPE_CONFIG_NAME: "community", VERSION_CONFIG_NAME: "v1.1"})
        assert profile.mandatory_checks() == []

    def test_v11_uses_versioned_kubeversion(self):
        profile = get_profile({VENDOR_TYPE_CONFIG_NAME: "partner", VERSION_CONFIG_NAME: "v1.1"})
        assert profile.find_check("has-kubeversion").name == "v1.1/has-kubeversion"
        assert profile.find_check("signature-is-valid").type == CheckType.MANDATORY


class TestResolution:

    def test_case_insensitive_keys(self, profiles_dir):
        profile = get_profile({"profile.vendorType": "TestVendor", "Profile.Version": "v1.1"}, profiles_dir)
        assert (profile.vendor_type, profile.version) == ("testvendor", "v1.1")

    def test_unknown_vendor_falls_back_to_default(self, profiles_dir):
        profile = get_profile({VENDOR_TYPE_CONFIG_NAME: "nobody"}, profiles_dir)
        assert profile.vendor_type == "partner"

    def test_unknown_version_uses_latest(self, profiles_dir):
        profile = get_profile({VENDOR_TYPE_CONFIG_NAME: "testvendor", VERSION_CONFIG_NAME: "v9.9"}, profiles_dir)
        assert profile.version == "v1.1"

    def test_find_check_ignores_version(self, profiles_dir):
        profile = get_profile({VENDOR_TYPE_CONFIG_NAME: "testvendor"}, profiles_dir)
        assert profile.find_check("has-readme").type == CheckType.OPTIONAL
        assert profile.find_check("helm-lint") is None

    def test_invalid_profile_file(self, tmp_path):
        (tmp_path / "broken.yaml").write_text("vendorType: [unclosed\n", encoding="utf-8")

        with pytest.raises(SerializationError):
            load_profiles(tmp_path)

    def test_empty_directory(self, tmp_path):
        with pytest.raises(SerializationError):
            get_profile({}, tmp_path)
