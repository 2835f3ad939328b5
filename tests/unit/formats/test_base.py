"""Tests for base format classes and data structures."""

import pytest

from remotepkg.formats.base import FormatTag, PackageMetadata, RemotePackage


class TestFormatTag:
    """Tests for FormatTag."""

    def test_values(self):
        """Test the closed set of format tags."""
        assert [tag.value for tag in FormatTag] == ["deb", "rpm"]

    @pytest.mark.parametrize("value,expected", [
        ("deb", FormatTag.DEB),
        ("RPM", FormatTag.RPM),
        (" Deb ", FormatTag.DEB),
        (FormatTag.RPM, FormatTag.RPM),
    ])
    def test_parse(self, value, expected):
        """Test parsing tags from names."""
        assert FormatTag.parse(value) is expected

    def test_parse_unknown(self):
        """Test unknown names are rejected."""
        with pytest.raises(ValueError, match="Unsupported package format"):
            FormatTag.parse("apk")

    def test_str(self):
        """Test tags format as their value."""
        assert str(FormatTag.DEB) == "deb"
        assert f"{FormatTag.RPM}" == "rpm"


class TestPackageMetadata:
    """Tests for PackageMetadata class."""

    def test_deb_package_key(self):
        """Test package key generation for Debian format."""
        metadata = PackageMetadata(
            name="curl",
            version="7.81.0-1ubuntu1.16",
            format_type="deb",
            architecture="amd64",
        )
        assert metadata.get_package_key() == "curl_7.81.0-1ubuntu1.16_amd64"

    def test_deb_package_key_default_arch(self):
        """Test package key with default architecture."""
        metadata = PackageMetadata(
            name="python3-pip",
            version="22.0.2",
            format_type="deb",
        )
        assert metadata.get_package_key() == "python3-pip_22.0.2_all"

    def test_rpm_package_key(self):
        """Test package key generation for RPM format."""
        metadata = PackageMetadata(
            name="curl",
            version="7.76.1",
            format_type="rpm",
            architecture="x86_64",
            release="14.el8",
        )
        assert metadata.get_package_key() == "curl-7.76.1-14.el8.x86_64"

    def test_rpm_package_key_defaults(self):
        """Test RPM package key with default values."""
        metadata = PackageMetadata(
            name="python-pip",
            version="21.2.3",
            format_type="rpm",
        )
        assert metadata.get_package_key() == "python-pip-21.2.3-1.noarch"


class TestRemotePackage:
    """Tests for the abstract RemotePackage interface."""

    def test_cannot_instantiate(self):
        """Test the interface is abstract."""
        with pytest.raises(TypeError):
            RemotePackage()
