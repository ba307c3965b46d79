import sys
from pathlib import Path

import pytest


# Ensure 'src/' is on sys.path so 'l10nbox_tools' can be imported when running tests from repo root.
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))


@pytest.fixture
def chdir_tmp(tmp_path, monkeypatch):
    """切到临时目录执行（避免污染仓库）。"""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def write_lproj(tmp_path):
    """write_lproj("fr", '"k" = "v";') -> tmp_path/Resources/fr.lproj/Localizable.strings"""

    def _write(locale, content, *, filename="Localizable.strings", root="Resources"):
        fp = tmp_path / root / f"{locale}.lproj" / filename
        fp.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            fp.write_bytes(content)
        else:
            fp.write_text(content, encoding="utf-8")
        return fp

    return _write
