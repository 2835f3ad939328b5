"""Integration tests for identifying mixed package streams.

Exercises the full path from byte source through sniffing, stream
reconstruction and format parsing, including concurrent identification.
"""

import threading

import pytest

from remotepkg import FormatTag, identify, identify_path
from remotepkg.errors import AdapterParseError, UnknownPackageTypeError


class TestMixedFormats:
    """Tests identifying several formats through one entry point."""

    @pytest.fixture
    def package_dir(self, tmp_path, make_deb, make_rpm):
        """Directory holding packages of each supported format."""
        (tmp_path / "hello_2.10-3_amd64.deb").write_bytes(
            make_deb(name="hello", version="2.10-3", arch="amd64")
        )
        (tmp_path / "curl-7.76.1-26.el9.aarch64.rpm").write_bytes(
            make_rpm(name="curl", version="7.76.1", release="26.el9", arch="aarch64", epoch=1)
        )
        (tmp_path / "zlib_1.3-xz.deb").write_bytes(
            make_deb(name="zlib1g", version="1:1.3.dfsg-3", compression="xz")
        )
        return tmp_path

    def test_identify_directory(self, package_dir):
        """Test each file is identified by content, not extension."""
        found = {}
        for path in sorted(package_dir.iterdir()):
            package = identify_path(path)
            found[package.name] = package

        assert found["hello"].package_type is FormatTag.DEB
        assert found["hello"].iteration == "3"
        assert found["curl"].package_type is FormatTag.RPM
        assert found["curl"].iteration == "26.el9"
        assert found["curl"].metadata().epoch == 1
        assert found["zlib1g"].iteration == "3"
        assert found["zlib1g"].metadata().epoch == 1

    def test_package_keys(self, package_dir):
        """Test package keys follow each format's naming convention."""
        keys = {identify_path(path).package_key() for path in package_dir.iterdir()}
        assert "hello_2.10-3_amd64" in keys
        assert "curl-7.76.1-26.el9.aarch64" in keys

    def test_misnamed_package(self, tmp_path, make_rpm):
        """Test an RPM with a .deb name is still identified as RPM."""
        path = tmp_path / "really-an-rpm.deb"
        path.write_bytes(make_rpm())
        assert identify_path(path).package_type is FormatTag.RPM

    def test_rpm_only_mirror(self, package_dir):
        """Test restricting identification to one format."""
        results = {}
        for path in package_dir.iterdir():
            try:
                results[path.name] = identify_path(path, enabled_formats=[FormatTag.RPM])
            except UnknownPackageTypeError as e:
                results[path.name] = e

        assert isinstance(results["hello_2.10-3_amd64.deb"], UnknownPackageTypeError)
        assert results["curl-7.76.1-26.el9.aarch64.rpm"].name == "curl"


class TestConcurrentIdentification:
    """Tests identifying packages from several threads."""

    def test_concurrent_identify(self, make_deb, make_rpm, trickle_stream):
        """Test concurrent identification shares no stream state."""
        packages = [
            (make_deb(name=f"pkg-deb-{i}", version=f"1.{i}-1"), f"pkg-deb-{i}")
            for i in range(5)
        ] + [
            (make_rpm(name=f"pkg-rpm-{i}", version=f"2.{i}"), f"pkg-rpm-{i}")
            for i in range(5)
        ]
        results = {}
        errors = []

        def worker(data, expected):
            try:
                package = identify(trickle_stream(data, chunk=13))
                results[expected] = package.name
            except Exception as e:  # noqa: BLE001
                errors.append(e)

        threads = [
            threading.Thread(target=worker, args=(data, expected))
            for data, expected in packages
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert not errors
        assert results == {expected: expected for _, expected in packages}

    def test_failures_are_independent(self, make_deb, trickle_stream):
        """Test one corrupt stream does not affect others."""
        good = make_deb(name="good")
        bad = make_deb(name="bad")[:200]

        with pytest.raises(AdapterParseError):
            identify(trickle_stream(bad))
        assert identify(trickle_stream(good)).name == "good"
