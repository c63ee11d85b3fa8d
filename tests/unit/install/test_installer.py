"""Tests for acornget.install.installer."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List

import pytest

from acornget.bootstrap import paths as paths_module
from acornget.cli.runner import Terminated
from acornget.config.models import PackagingKind
from acornget.core.errors import (
    ArchiveError,
    BinaryNotFoundError,
    DownloadError,
    IntegrityError,
    UnsupportedPlatformError,
)
from acornget.install.installer import Installer, InstallOutcome
from tests.unit.fakes import (
    FakeTransport,
    fixed_platform,
    make_config,
    make_tar_gz,
    make_zip,
    sha256,
)

CHANNEL_URL = "https://update.acrn.io/v1-release/channels"
RELEASES = "https://github.com/acorn-io/acorn/releases"
STORAGE = "https://cdn.acrn.io/cli"

BINARY = b"#!/bin/sh\necho acorn v1.2.3\n"
OLD_BINARY = b"#!/bin/sh\necho acorn v1.0.0\n"


def _release_files(tag: str, artifact_name: str, artifact: bytes) -> Dict[str, bytes]:
    manifest = (
        f"{sha256(artifact)}  {artifact_name}\n"
        f"{'0' * 64}  acorn-{tag}-macOS-universal.tar.gz\n"
    )
    return {
        f"{RELEASES}/download/{tag}/checksums.txt": manifest.encode(),
        f"{RELEASES}/download/{tag}/{artifact_name}": artifact,
    }


def _stable_transport(artifact: bytes, artifact_name: str) -> FakeTransport:
    return FakeTransport(
        files=_release_files("v1.2.3", artifact_name, artifact),
        redirects={f"{CHANNEL_URL}/stable": f"{RELEASES}/tag/v1.2.3"},
    )


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "bin"
    directory.mkdir()
    return directory


@pytest.fixture
def tmp_root(tmp_path: Path) -> Path:
    directory = tmp_path / "tmp"
    directory.mkdir()
    return directory


def _installer(config, transport, tmp_root: Path, **kwargs) -> Installer:
    return Installer(
        config,
        transport_factory=lambda: transport,
        platform_detector=kwargs.pop("platform_detector", fixed_platform()),
        tmp_root=tmp_root,
        **kwargs,
    )


class TestChannelInstall:
    """Config {channel: stable} resolving to v1.2.3 with archive packaging."""

    def test_installs_binary_from_archive(self, bin_dir: Path, tmp_root: Path) -> None:
        archive = make_tar_gz({"acorn": BINARY})
        transport = _stable_transport(archive, "acorn-v1.2.3-linux-amd64.tar.gz")
        config = make_config(bin_dir, channel="stable")

        outcome = _installer(config, transport, tmp_root).run()

        assert outcome == InstallOutcome.INSTALLED
        assert transport.queried == [f"{CHANNEL_URL}/stable"]
        assert transport.fetched == [
            f"{RELEASES}/download/v1.2.3/checksums.txt",
            f"{RELEASES}/download/v1.2.3/acorn-v1.2.3-linux-amd64.tar.gz",
        ]
        installed = bin_dir / "acorn"
        assert installed.read_bytes() == BINARY
        assert os.access(installed, os.X_OK)

    def test_installs_binary_from_nested_archive(self, bin_dir: Path, tmp_root: Path) -> None:
        archive = make_tar_gz({"README.md": b"docs", "acorn-v1.2.3/acorn": BINARY})
        transport = _stable_transport(archive, "acorn-v1.2.3-linux-amd64.tar.gz")

        _installer(make_config(bin_dir, channel="stable"), transport, tmp_root).run()

        assert (bin_dir / "acorn").read_bytes() == BINARY

    def test_installs_from_zip_on_windows(self, bin_dir: Path, tmp_root: Path) -> None:
        archive = make_zip({"acorn.exe": BINARY})
        transport = _stable_transport(archive, "acorn-v1.2.3-windows-amd64.zip")

        outcome = _installer(
            make_config(bin_dir, channel="stable"),
            transport,
            tmp_root,
            platform_detector=fixed_platform("windows", "amd64"),
        ).run()

        assert outcome == InstallOutcome.INSTALLED
        assert (bin_dir / "acorn").read_bytes() == BINARY

    def test_archive_without_binary_is_fatal(self, bin_dir: Path, tmp_root: Path) -> None:
        archive = make_tar_gz({"README.md": b"docs"})
        transport = _stable_transport(archive, "acorn-v1.2.3-linux-amd64.tar.gz")

        with pytest.raises(ArchiveError):
            _installer(make_config(bin_dir, channel="stable"), transport, tmp_root).run()

        assert not (bin_dir / "acorn").exists()

    def test_temporary_directory_removed_after_success(
        self, bin_dir: Path, tmp_root: Path
    ) -> None:
        archive = make_tar_gz({"acorn": BINARY})
        transport = _stable_transport(archive, "acorn-v1.2.3-linux-amd64.tar.gz")

        _installer(make_config(bin_dir, channel="stable"), transport, tmp_root).run()

        assert list(tmp_root.iterdir()) == []


class TestExplicitVersionInstall:
    def test_uses_version_without_channel_lookup(self, bin_dir: Path, tmp_root: Path) -> None:
        transport = FakeTransport(
            files=_release_files("v2.0.0", "acorn-v2.0.0-linux-arm64", BINARY)
        )
        config = make_config(bin_dir, version="v2.0.0", packaging=PackagingKind.RAW_BINARY)

        outcome = _installer(
            config,
            transport,
            tmp_root,
            platform_detector=fixed_platform("linux", "arm64"),
        ).run()

        assert outcome == InstallOutcome.INSTALLED
        assert transport.queried == []
        assert (bin_dir / "acorn").read_bytes() == BINARY


class TestCommitInstall:
    """Config {commit: deadbeef} always uses commit-scoped storage."""

    def _commit_transport(self) -> FakeTransport:
        archive = make_tar_gz({"acorn": BINARY})
        name = "acorn-linux-amd64-deadbeef.tar.gz"
        return FakeTransport(files={
            f"{STORAGE}/acorn-linux-amd64-deadbeef.sha256sum": (
                f"{sha256(archive)}  {name}\n".encode()
            ),
            f"{STORAGE}/{name}": archive,
        })

    def test_commit_urls_bypass_channel(self, bin_dir: Path, tmp_root: Path) -> None:
        transport = self._commit_transport()

        outcome = _installer(make_config(bin_dir, commit="deadbeef"), transport, tmp_root).run()

        assert outcome == InstallOutcome.INSTALLED
        assert transport.queried == []
        assert all(url.startswith(STORAGE) for url in transport.fetched)
        assert len(transport.fetched) == 2

    def test_commit_takes_precedence_over_version(self, bin_dir: Path, tmp_root: Path) -> None:
        transport = self._commit_transport()
        config = make_config(bin_dir, commit="deadbeef", version="v1.2.3")

        _installer(config, transport, tmp_root).run()

        assert transport.queried == []
        assert all(url.startswith(STORAGE) for url in transport.fetched)
        assert not any("v1.2.3" in url for url in transport.fetched)


class TestSkipDownload:
    def test_missing_binary_is_fatal_without_network(
        self, bin_dir: Path, tmp_root: Path
    ) -> None:
        calls: List[str] = []

        def factory():
            calls.append("transport")
            return FakeTransport()

        installer = Installer(
            make_config(bin_dir, skip_download=True),
            transport_factory=factory,
            platform_detector=fixed_platform(),
            tmp_root=tmp_root,
        )

        with pytest.raises(BinaryNotFoundError, match="not found"):
            installer.run()
        assert calls == []

    def test_existing_executable_binary_succeeds(self, bin_dir: Path, tmp_root: Path) -> None:
        binary = bin_dir / "acorn"
        binary.write_bytes(OLD_BINARY)
        binary.chmod(0o755)
        transport = FakeTransport()

        outcome = _installer(make_config(bin_dir, skip_download=True), transport, tmp_root).run()

        assert outcome == InstallOutcome.SKIPPED
        assert transport.fetched == []
        assert binary.read_bytes() == OLD_BINARY

    def test_read_only_bin_dir_forces_skip(self, bin_dir: Path, tmp_root: Path) -> None:
        binary = bin_dir / "acorn"
        binary.write_bytes(OLD_BINARY)
        binary.chmod(0o755)
        transport = FakeTransport()

        outcome = _installer(
            make_config(bin_dir, bin_dir_read_only=True), transport, tmp_root
        ).run()

        assert outcome == InstallOutcome.SKIPPED
        assert transport.fetched == []


class TestIdempotence:
    def _raw_transport(self) -> FakeTransport:
        return FakeTransport(
            files=_release_files("v1.2.3", "acorn-v1.2.3", BINARY),
            redirects={f"{CHANNEL_URL}/latest": f"{RELEASES}/tag/v1.2.3"},
        )

    def test_second_run_downloads_no_artifact(self, bin_dir: Path, tmp_root: Path) -> None:
        transport = self._raw_transport()
        config = make_config(bin_dir, packaging=PackagingKind.RAW_BINARY)

        first = _installer(config, transport, tmp_root).run()
        second = _installer(config, transport, tmp_root).run()

        assert first == InstallOutcome.INSTALLED
        assert second == InstallOutcome.UP_TO_DATE
        artifact_url = f"{RELEASES}/download/v1.2.3/acorn-v1.2.3"
        assert transport.fetched.count(artifact_url) == 1

    def test_matching_installed_binary_skips_download(
        self, bin_dir: Path, tmp_root: Path
    ) -> None:
        binary = bin_dir / "acorn"
        binary.write_bytes(BINARY)
        binary.chmod(0o755)
        transport = self._raw_transport()
        config = make_config(bin_dir, packaging=PackagingKind.RAW_BINARY)

        outcome = _installer(config, transport, tmp_root).run()

        assert outcome == InstallOutcome.UP_TO_DATE
        assert transport.fetched == [f"{RELEASES}/download/v1.2.3/checksums.txt"]

    def test_different_installed_binary_is_replaced(
        self, bin_dir: Path, tmp_root: Path
    ) -> None:
        binary = bin_dir / "acorn"
        binary.write_bytes(OLD_BINARY)
        binary.chmod(0o755)
        transport = self._raw_transport()
        config = make_config(bin_dir, packaging=PackagingKind.RAW_BINARY)

        outcome = _installer(config, transport, tmp_root).run()

        assert outcome == InstallOutcome.INSTALLED
        assert binary.read_bytes() == BINARY


class TestIntegrity:
    def _tampered_transport(self) -> FakeTransport:
        files = _release_files("v1.2.3", "acorn-v1.2.3", BINARY)
        files[f"{RELEASES}/download/v1.2.3/acorn-v1.2.3"] = b"tampered"
        return FakeTransport(files=files)

    def test_mismatch_leaves_prior_binary_untouched(
        self, bin_dir: Path, tmp_root: Path
    ) -> None:
        binary = bin_dir / "acorn"
        binary.write_bytes(OLD_BINARY)
        binary.chmod(0o755)
        config = make_config(bin_dir, version="v1.2.3", packaging=PackagingKind.RAW_BINARY)

        with pytest.raises(IntegrityError, match="does not match"):
            _installer(config, self._tampered_transport(), tmp_root).run()

        assert binary.read_bytes() == OLD_BINARY
        assert sorted(p.name for p in bin_dir.iterdir()) == ["acorn"]
        assert list(tmp_root.iterdir()) == []

    def test_mismatch_leaves_target_absent(self, bin_dir: Path, tmp_root: Path) -> None:
        config = make_config(bin_dir, version="v1.2.3", packaging=PackagingKind.RAW_BINARY)

        with pytest.raises(IntegrityError):
            _installer(config, self._tampered_transport(), tmp_root).run()

        assert list(bin_dir.iterdir()) == []

    def test_missing_manifest_line_fails_integrity(self, bin_dir: Path, tmp_root: Path) -> None:
        files = _release_files("v1.2.3", "acorn-v1.2.3", BINARY)
        files[f"{RELEASES}/download/v1.2.3/checksums.txt"] = b"abc  something-else\n"
        config = make_config(bin_dir, version="v1.2.3", packaging=PackagingKind.RAW_BINARY)

        with pytest.raises(IntegrityError):
            _installer(config, FakeTransport(files=files), tmp_root).run()

        assert not (bin_dir / "acorn").exists()

    def test_download_failure_is_fatal(self, bin_dir: Path, tmp_root: Path) -> None:
        config = make_config(bin_dir, version="v9.9.9")

        with pytest.raises(DownloadError):
            _installer(config, FakeTransport(), tmp_root).run()

        assert list(tmp_root.iterdir()) == []


class TestPlatformFailure:
    def test_unsupported_platform_aborts_before_network(
        self, bin_dir: Path, tmp_root: Path
    ) -> None:
        calls: List[str] = []

        def detector(packaging):
            raise UnsupportedPlatformError("Unsupported platform Plan9")

        def factory():
            calls.append("transport")
            return FakeTransport()

        installer = Installer(
            make_config(bin_dir),
            transport_factory=factory,
            platform_detector=detector,
            tmp_root=tmp_root,
        )

        with pytest.raises(UnsupportedPlatformError):
            installer.run()
        assert calls == []


class TestAtomicPlacement:
    def test_target_replaced_in_single_rename(
        self, bin_dir: Path, tmp_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        binary = bin_dir / "acorn"
        binary.write_bytes(OLD_BINARY)
        binary.chmod(0o755)
        real_replace = os.replace
        observed: List[bytes] = []

        def spy_replace(src, dst):
            # Paused mid-rename: readers still see the complete old binary,
            # and the staged file already holds the complete new one.
            observed.append(Path(dst).read_bytes())
            assert Path(src).parent == bin_dir
            assert Path(src).read_bytes() == BINARY
            real_replace(src, dst)
            observed.append(Path(dst).read_bytes())

        monkeypatch.setattr(paths_module.os, "replace", spy_replace)
        transport = FakeTransport(files=_release_files("v1.2.3", "acorn-v1.2.3", BINARY))
        config = make_config(bin_dir, version="v1.2.3", packaging=PackagingKind.RAW_BINARY)

        _installer(config, transport, tmp_root).run()

        assert observed == [OLD_BINARY, BINARY]
        assert sorted(p.name for p in bin_dir.iterdir()) == ["acorn"]


class _InterruptingTransport(FakeTransport):
    """Raises ``error`` when asked for ``interrupt_url``."""

    def __init__(self, interrupt_url: str, error: BaseException, **kwargs) -> None:
        super().__init__(**kwargs)
        self.interrupt_url = interrupt_url
        self.error = error

    def fetch(self, destination: Path, url: str) -> None:
        if url == self.interrupt_url:
            destination.write_bytes(b"partial")
            raise self.error
        super().fetch(destination, url)


class TestInterruption:
    """Interrupts leave no temporary state and the prior binary in place."""

    ARTIFACT_URL = f"{RELEASES}/download/v1.2.3/acorn-v1.2.3"

    def _existing_binary(self, bin_dir: Path) -> Path:
        binary = bin_dir / "acorn"
        binary.write_bytes(OLD_BINARY)
        binary.chmod(0o755)
        return binary

    def _config(self, bin_dir: Path):
        return make_config(bin_dir, version="v1.2.3", packaging=PackagingKind.RAW_BINARY)

    @pytest.mark.parametrize(
        "error, expected",
        [
            (KeyboardInterrupt(), KeyboardInterrupt),
            (Terminated("Received signal 15"), Terminated),
        ],
    )
    def test_interrupt_during_artifact_download(
        self, bin_dir: Path, tmp_root: Path, error: BaseException, expected
    ) -> None:
        binary = self._existing_binary(bin_dir)
        transport = _InterruptingTransport(
            self.ARTIFACT_URL,
            error,
            files=_release_files("v1.2.3", "acorn-v1.2.3", BINARY),
        )

        with pytest.raises(expected):
            _installer(self._config(bin_dir), transport, tmp_root).run()

        assert list(tmp_root.iterdir()) == []
        assert binary.read_bytes() == OLD_BINARY
        assert [p.name for p in bin_dir.iterdir()] == ["acorn"]

    def test_interrupt_during_placement(
        self, bin_dir: Path, tmp_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        binary = self._existing_binary(bin_dir)

        def interrupted_replace(src, dst):
            raise KeyboardInterrupt

        monkeypatch.setattr(paths_module.os, "replace", interrupted_replace)
        transport = FakeTransport(files=_release_files("v1.2.3", "acorn-v1.2.3", BINARY))

        with pytest.raises(KeyboardInterrupt):
            _installer(self._config(bin_dir), transport, tmp_root).run()

        assert list(tmp_root.iterdir()) == []
        assert binary.read_bytes() == OLD_BINARY
        assert [p.name for p in bin_dir.iterdir()] == ["acorn"]
