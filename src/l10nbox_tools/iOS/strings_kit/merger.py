from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .models import MergeResult, StringsEntry, StringsTable
from .parser import parse_strings_file, write_strings_file


def merge_tables(tables: Sequence[StringsTable], *, destination: Optional[Path] = None) -> MergeResult:
    """
    按输入顺序合并：
    - 同一个 key 出现在多个文件里：后面的文件覆盖前面的（整条 entry，包括注释）
    - key 顺序保持“首次出现”的位置（不排序，方便和第一个文件 diff）
    - 每个冲突 key 只报告一次
    """
    merged: Dict[str, StringsEntry] = {}
    duplicates: List[str] = []
    reported = set()

    for table in tables:
        for key, entry in table.entries.items():
            if key in merged and key not in reported:
                duplicates.append(key)
                reported.add(key)
            merged[key] = entry

    locale = tables[0].locale if tables else ""
    if destination is None and tables:
        destination = tables[0].path
    return MergeResult(
        table=StringsTable(locale=locale, entries=merged, path=destination),
        duplicates=duplicates,
        destination=destination,
    )


def merge_strings_files(paths: Sequence[Path], *, destination: Optional[Path] = None) -> MergeResult:
    """
    合并多个 OpenStep .strings 文件并写出（UTF-8）。
    - destination 为空：原地写回第一个文件
    - 任一文件解码/解析失败、或是 XML/binary plist：直接抛出（不做部分合并）
    """
    if not paths:
        raise ValueError("至少需要一个 .strings 文件才能合并")

    tables = [parse_strings_file(Path(p)) for p in paths]
    out_path = Path(destination) if destination is not None else Path(paths[0])
    result = merge_tables(tables, destination=out_path)
    write_strings_file(out_path, result.table)
    return result
