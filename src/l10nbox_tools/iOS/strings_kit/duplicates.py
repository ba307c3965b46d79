from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from .parser import iter_statements


def duplicate_key_lines(text: str, *, path: Optional[Path] = None) -> Dict[str, List[int]]:
    """
    重新扫描原始文本里的每条语句（不能用解析后的 table：table 已经按“后写覆盖”合并了重复 key）。
    返回：{key: [line, line, ...]}，仅保留出现 >= 2 次的 key，按首次出现顺序。
    """
    occurrences: Dict[str, List[int]] = {}
    for st in iter_statements(text, path=path):
        occurrences.setdefault(st.key, []).append(st.line)
    return {k: lines for k, lines in occurrences.items() if len(lines) > 1}


def find_duplicate_keys(text: str, *, path: Optional[Path] = None) -> List[str]:
    return list(duplicate_key_lines(text, path=path).keys())
