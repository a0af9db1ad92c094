"""Unit tests for package reference parsing."""

from __future__ import annotations

import pytest

from addon_verify.errors import MalformedReferenceError, PlanningError
from addon_verify.verify import PackageRef, parse_reference


class TestParseReference:
    """Tests for parse_reference in strict mode."""

    def test_simple_reference(self):
        """Test the short/full/version split of a plain reference."""
        ref = parse_reference("calico.tkg.addon.v1.1.2.3")
        assert ref.short_name == "calico"
        assert ref.full_name == "calico.tkg.addon.v1"
        assert ref.version == "1.2.3"

    def test_tkg_reference(self):
        """Test a reference with build metadata in the version."""
        ref = parse_reference("antrea.tanzu.vmware.com.1.7.2+vmware.1-tkg.1")
        assert ref.short_name == "antrea"
        assert ref.full_name == "antrea.tanzu.vmware.com"
        assert ref.version == "1.7.2+vmware.1-tkg.1"

    def test_single_segment_version(self):
        """Test a reference with exactly five segments."""
        ref = parse_reference("pinniped.tanzu.vmware.com.v0")
        assert ref.version == "v0"

    @pytest.mark.parametrize(
        "ref_name",
        [
            "antrea.tanzu.vmware.com.1.7.2+vmware.1-tkg.1",
            "calico.tkg.addon.v1.1.2.3",
            "a.b.c.d.e",
        ],
    )
    def test_lossless(self, ref_name):
        """Test the full name and version rejoin to the original reference."""
        ref = parse_reference(ref_name)
        assert f"{ref.full_name}.{ref.version}" == ref_name
        assert ref.full_name.split(".")[0] == ref.short_name
        assert str(ref) == ref_name

    @pytest.mark.parametrize(
        "ref_name",
        ["", "antrea", "antrea.tanzu.vmware", "antrea.tanzu.vmware.com", "antrea.tanzu.vmware.com."],
    )
    def test_too_few_segments(self, ref_name):
        """Test references without a version are rejected."""
        with pytest.raises(MalformedReferenceError) as exc_info:
            parse_reference(ref_name)
        assert exc_info.value.reference == ref_name

    def test_empty_name_segment(self):
        """Test an empty segment inside the package name is rejected."""
        with pytest.raises(MalformedReferenceError, match="empty name segment"):
            parse_reference("antrea..vmware.com.1.0.0")

    def test_malformed_is_planning_error(self):
        """Test malformed references are reported as planning errors."""
        with pytest.raises(PlanningError):
            parse_reference("antrea")


class TestParseReferenceLenient:
    """Tests for parse_reference with strict=False."""

    def test_never_raises(self):
        """Test short references yield what exists and an empty version."""
        assert parse_reference("antrea.tanzu", strict=False) == PackageRef(
            ref_name="antrea.tanzu",
            short_name="antrea",
            full_name="antrea.tanzu",
            version="",
        )

    def test_four_segments(self):
        """Test a reference without version segments."""
        ref = parse_reference("antrea.tanzu.vmware.com", strict=False)
        assert ref.full_name == "antrea.tanzu.vmware.com"
        assert ref.version == ""

    def test_matches_strict_for_valid_reference(self):
        """Test lenient parsing agrees with strict parsing on valid input."""
        ref_name = "calico.tkg.addon.v1.1.2.3"
        assert parse_reference(ref_name, strict=False) == parse_reference(ref_name)
