from __future__ import annotations

import re
import shutil
import subprocess
import tempfile
import urllib.error
import urllib.request
import zipfile
from pathlib import Path
from typing import List, Optional, Sequence

from packaging.version import InvalidVersion, Version


SWIFTGEN_VERSION = "6.4.0"
DOWNLOAD_URL = "https://github.com/SwiftGen/SwiftGen/releases/download/{version}/swiftgen-{version}.zip"

_VERSION_RE = re.compile(r"SwiftGen v?(\d+(?:\.\d+)*)")


class SwiftGenInstallError(RuntimeError):
    pass


def default_install_path(version: str = SWIFTGEN_VERSION) -> Path:
    """相对 project_root 的默认安装目录：vendor/swiftgen/<version>"""
    return Path("vendor") / "swiftgen" / version


def _find_bundle_root(extract_dir: Path) -> Path:
    """zip 里可能多包了一层目录：找到包含 bin/swiftgen 的那一层。"""
    if (extract_dir / "bin" / "swiftgen").exists():
        return extract_dir
    for cand in sorted(extract_dir.rglob("swiftgen")):
        if cand.is_file() and cand.parent.name == "bin":
            return cand.parent.parent
    raise SwiftGenInstallError(f"下载的压缩包里没有 bin/swiftgen：{extract_dir}")


class SwiftGen:
    """
    SwiftGen 安装能力句柄：调用方构造一次，传给需要它的地方。
    - ensure_installed() 幂等：已安装（版本一致）时不会重复下载
    - 不使用任何进程级全局状态
    """

    def __init__(
        self,
        install_path: Path,
        *,
        version: str = SWIFTGEN_VERSION,
        url_template: str = DOWNLOAD_URL,
        timeout_sec: float = 60.0,
    ):
        self.install_path = Path(install_path)
        self.version = version
        self.url_template = url_template
        self.timeout_sec = timeout_sec
        self._verified = False

    @property
    def binary(self) -> Path:
        return self.install_path / "bin" / "swiftgen"

    @property
    def download_url(self) -> str:
        return self.url_template.format(version=self.version)

    def installed_version(self) -> Optional[str]:
        if not self.binary.is_file():
            return None
        try:
            p = subprocess.run(
                [str(self.binary), "--version"],
                capture_output=True,
                text=True,
                timeout=30,
            )
        except (OSError, subprocess.SubprocessError):
            return None
        m = _VERSION_RE.search((p.stdout or "") + (p.stderr or ""))
        return m.group(1) if m else None

    def is_installed(self) -> bool:
        found = self.installed_version()
        if found is None:
            return False
        try:
            return Version(found) == Version(self.version)
        except InvalidVersion:
            return found == self.version

    def ensure_installed(self) -> Path:
        if self._verified:
            return self.binary
        if not self.is_installed():
            self._install()
            if not self.is_installed():
                raise SwiftGenInstallError(
                    f"SwiftGen {self.version} 安装后校验失败：{self.binary}（--version 输出不符合预期）"
                )
        self._verified = True
        return self.binary

    def run(self, args: Sequence[str], *, cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
        binary = self.ensure_installed()
        cmd: List[str] = [str(binary), *args]
        return subprocess.run(cmd, capture_output=True, text=True, cwd=cwd)

    # ----------------------------
    # 安装
    # ----------------------------

    def _download(self, dest: Path) -> None:
        req = urllib.request.Request(
            self.download_url,
            headers={"User-Agent": f"l10nbox (swiftgen-install {self.version})"},
        )
        with urllib.request.urlopen(req, timeout=self.timeout_sec) as resp, dest.open("wb") as fh:
            shutil.copyfileobj(resp, fh)

    def _install(self) -> None:
        with tempfile.TemporaryDirectory(prefix="swiftgen-") as tmp:
            tmp_dir = Path(tmp)
            zip_path = tmp_dir / f"swiftgen-{self.version}.zip"
            try:
                self._download(zip_path)
            except (urllib.error.URLError, OSError) as e:
                raise SwiftGenInstallError(f"下载 SwiftGen 失败：{self.download_url}（{e}）") from e

            extract_dir = tmp_dir / "unzipped"
            try:
                with zipfile.ZipFile(zip_path) as zf:
                    zf.extractall(extract_dir)
            except zipfile.BadZipFile as e:
                raise SwiftGenInstallError(f"SwiftGen 压缩包损坏：{zip_path.name}（{e}）") from e

            root = _find_bundle_root(extract_dir)
            self.install_path.mkdir(parents=True, exist_ok=True)
            shutil.copytree(root, self.install_path, dirs_exist_ok=True)

        # zip 解压不保留可执行位
        self.binary.chmod(self.binary.stat().st_mode | 0o755)
