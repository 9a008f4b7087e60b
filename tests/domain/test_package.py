"""Unit tests for package specs and package sets."""

import pytest

from apt_pkg_cache.domain.errors import InputValidationError
from apt_pkg_cache.domain.package import Package, PackageSet, parse_package, parse_package_args


class TestParsePackage:
    """Test cases for parse_package."""

    def test_name_only(self):
        pkg = parse_package("xdot")

        assert pkg == Package("xdot", "")
        assert str(pkg) == "xdot"

    def test_name_and_version(self):
        pkg = parse_package("rolldice=1.16-1build1")

        assert pkg.name == "rolldice"
        assert pkg.version == "1.16-1build1"
        assert str(pkg) == "rolldice=1.16-1build1"

    def test_version_with_epoch_and_equals_kept_whole(self):
        pkg = parse_package("default-jre=2:1.17-74")

        assert pkg.version == "2:1.17-74"

    def test_empty_name_raises(self):
        with pytest.raises(InputValidationError, match="package name cannot be empty"):
            parse_package("=1.0")

    def test_empty_spec_raises(self):
        with pytest.raises(InputValidationError):
            parse_package("")

    def test_separator_without_version_raises(self):
        with pytest.raises(InputValidationError, match="package version cannot be empty if specified"):
            parse_package("xdot=")


class TestPackageSet:
    """Test cases for PackageSet."""

    def test_sorted_by_name(self):
        packages = PackageSet.build(Package("xdot", "1.2-3"), Package("rolldice", "1.16-1build1"))

        assert packages.serialize() == "rolldice=1.16-1build1 xdot=1.2-3"

    def test_order_independent(self):
        a = PackageSet.build(Package("xdot"), Package("rolldice"), Package("curl"))
        b = PackageSet.build(Package("curl"), Package("xdot"), Package("rolldice"))

        assert a == b
        assert hash(a) == hash(b)
        assert a.serialize() == b.serialize()

    def test_exact_duplicates_collapse(self):
        packages = PackageSet.build(Package("xdot", "1.2-3"), Package("xdot", "1.2-3"))

        assert len(packages) == 1

    def test_same_name_different_versions_kept_and_sorted_by_version(self):
        packages = PackageSet.build(Package("xdot", "1.2-3"), Package("xdot", "1.1-2"))

        assert packages.string_list() == ["xdot=1.1-2", "xdot=1.2-3"]

    def test_empty_set(self):
        packages = PackageSet.build()

        assert len(packages) == 0
        assert packages.serialize() == ""

    def test_sequence_protocol(self):
        packages = PackageSet.build(Package("b"), Package("a"))

        assert packages[0] == Package("a")
        assert [p.name for p in packages] == ["a", "b"]
        assert packages.names() == ["a", "b"]

    def test_immutable(self):
        packages = PackageSet.build(Package("a"))

        with pytest.raises(AttributeError):
            packages._packages = ()

    def test_str_is_serialized_form(self):
        packages = PackageSet.build(Package("a", "1"), Package("b"))

        assert str(packages) == "a=1 b"


class TestParsePackageArgs:
    """Test cases for parse_package_args."""

    def test_builds_canonical_set(self):
        packages = parse_package_args(["xdot", "rolldice=1.16-1build1", "xdot"])

        assert packages.string_list() == ["rolldice=1.16-1build1", "xdot"]

    def test_invalid_arg_is_named_in_error(self):
        with pytest.raises(InputValidationError, match="error creating package from arg 'xdot='"):
            parse_package_args(["rolldice", "xdot="])
