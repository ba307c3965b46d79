from __future__ import annotations

import glob
import subprocess
from pathlib import Path
from typing import List, Sequence

SOURCE_SUFFIXES = (".m", ".swift")


def run(cmd: List[str]) -> subprocess.CompletedProcess:
    # stderr 合并到 stdout：genstrings 的警告走 stderr
    return subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)


def expand_source_paths(paths: Sequence[Path]) -> List[Path]:
    """
    - 文件：原样保留
    - 目录 / glob：展开为其下所有 *.m 与 *.swift（递归）
    结果去重且保持顺序。
    """
    out: List[Path] = []
    seen = set()

    def add(p: Path) -> None:
        key = str(p)
        if key in seen:
            return
        seen.add(key)
        out.append(p)

    def add_dir(d: Path) -> None:
        found: List[str] = []
        for suffix in SOURCE_SUFFIXES:
            found.extend(glob.glob(str(d / "**" / f"*{suffix}"), recursive=True))
        for f in sorted(found):
            add(Path(f))

    for raw in paths:
        p = Path(raw)
        if p.is_file():
            add(p)
        elif any(c in str(p) for c in "*?["):
            for f in sorted(glob.glob(str(p), recursive=True)):
                m = Path(f)
                if m.is_dir():
                    add_dir(m)
                elif m.suffix in SOURCE_SUFFIXES:
                    add(m)
        else:
            add_dir(p)
    return out


def build_command(files: Sequence[Path], output_dir: Path, *, quiet: bool = True, swiftui: bool = True) -> List[str]:
    flags: List[str] = []
    if quiet:
        flags.append("-q")
    if swiftui:
        flags.append("-SwiftUI")
    return ["genstrings", "-o", str(output_dir), *flags, *[str(f) for f in files]]


def generate_strings_file_from_code(
    paths: Sequence[Path],
    output_dir: Path,
    *,
    quiet: bool = True,
    swiftui: bool = True,
) -> subprocess.CompletedProcess:
    """调用 genstrings；genstrings 不存在时抛 FileNotFoundError（交给调用方提示）。"""
    output_dir.mkdir(parents=True, exist_ok=True)
    files = expand_source_paths(paths)
    return run(build_command(files, output_dir, quiet=quiet, swiftui=swiftui))
