import zipfile

import pytest

from l10nbox_tools.iOS.strings_kit import swiftgen as sg
from l10nbox_tools.iOS.strings_kit.swiftgen import SwiftGen, SwiftGenInstallError


def _script(version):
    return f'#!/bin/sh\necho "SwiftGen v{version} (Stencil v0.15.1, StencilSwiftKit v2.10.1, SwiftGenKit v{version})"\n'


def _fake_download(version, calls, *, nested=True):
    def _download(self, dest):
        calls.append(self.download_url)
        prefix = f"swiftgen-{version}/" if nested else ""
        with zipfile.ZipFile(dest, "w") as zf:
            zf.writestr(prefix + "bin/swiftgen", _script(version))
            zf.writestr(prefix + "LICENCE", "MIT\n")
    return _download


def test_download_url():
    h = SwiftGen("vendor/swiftgen", version="6.4.0")
    assert h.download_url == "https://github.com/SwiftGen/SwiftGen/releases/download/6.4.0/swiftgen-6.4.0.zip"
    assert sg.default_install_path("6.4.0").as_posix() == "vendor/swiftgen/6.4.0"


def test_not_installed(tmp_path):
    h = SwiftGen(tmp_path / "swiftgen")
    assert h.installed_version() is None
    assert not h.is_installed()


def test_install_downloads_once(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(SwiftGen, "_download", _fake_download(sg.SWIFTGEN_VERSION, calls))

    h = SwiftGen(tmp_path / "swiftgen")
    binary = h.ensure_installed()
    assert binary == tmp_path / "swiftgen" / "bin" / "swiftgen"
    assert h.installed_version() == sg.SWIFTGEN_VERSION
    assert (tmp_path / "swiftgen" / "LICENCE").is_file()

    # 同一个句柄 / 新句柄都不会重复下载
    h.ensure_installed()
    SwiftGen(tmp_path / "swiftgen").ensure_installed()
    assert len(calls) == 1


def test_flat_zip_layout(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(SwiftGen, "_download", _fake_download(sg.SWIFTGEN_VERSION, calls, nested=False))

    assert SwiftGen(tmp_path / "sg").ensure_installed().is_file()


def test_version_mismatch_triggers_reinstall(tmp_path, monkeypatch):
    install = tmp_path / "swiftgen"
    (install / "bin").mkdir(parents=True)
    old = install / "bin" / "swiftgen"
    old.write_text(_script("6.3.0"), encoding="utf-8")
    old.chmod(0o755)

    h = SwiftGen(install, version="6.4.0")
    assert h.installed_version() == "6.3.0"
    assert not h.is_installed()

    calls = []
    monkeypatch.setattr(SwiftGen, "_download", _fake_download("6.4.0", calls))
    h.ensure_installed()
    assert h.installed_version() == "6.4.0"
    assert len(calls) == 1


def test_install_fails_when_zip_has_no_binary(tmp_path, monkeypatch):
    def _download(self, dest):
        with zipfile.ZipFile(dest, "w") as zf:
            zf.writestr("README.md", "nothing here\n")

    monkeypatch.setattr(SwiftGen, "_download", _download)
    with pytest.raises(SwiftGenInstallError):
        SwiftGen(tmp_path / "swiftgen").ensure_installed()


def test_install_wraps_download_errors(tmp_path, monkeypatch):
    def _download(self, dest):
        raise OSError("network is unreachable")

    monkeypatch.setattr(SwiftGen, "_download", _download)
    with pytest.raises(SwiftGenInstallError) as ei:
        SwiftGen(tmp_path / "swiftgen").ensure_installed()
    assert "network is unreachable" in str(ei.value)


def test_installed_binary_with_wrong_version_fails_verification(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(SwiftGen, "_download", _fake_download("6.3.0", calls))

    with pytest.raises(SwiftGenInstallError):
        SwiftGen(tmp_path / "swiftgen", version="6.4.0").ensure_installed()
