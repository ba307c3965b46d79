from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import PlaceholderSignature, PlaceholderType


# %[n$][flags][width|*][.precision|.*][length]conv，以及需要整体跳过的 %%
_PLACEHOLDER_RE = re.compile(
    r"%%"
    r"|%(?:(?P<pos>[1-9][0-9]*)\$)?"
    r"[-+ 0#']*"
    r"(?P<width>\*|[0-9]*)"
    r"(?:\.(?P<prec>\*|[0-9]*))?"
    r"(?:hh|h|ll|l|q|L|z|t|j)?"
    r"(?P<conv>[@dDiuUxXoOfFeEgGaAsScCp])"
)

_CONVERSIONS: Dict[str, PlaceholderType] = {}
for _chars, _type in (
    ("@", PlaceholderType.OBJECT),
    ("dDi", PlaceholderType.INT),
    ("uUxXoO", PlaceholderType.UNSIGNED),
    ("fFeEgGaA", PlaceholderType.FLOAT),
    ("sS", PlaceholderType.STRING),
    ("cC", PlaceholderType.CHAR),
    ("p", PlaceholderType.POINTER),
):
    for _c in _chars:
        _CONVERSIONS[_c] = _type


@dataclass(frozen=True)
class Placeholder:
    text: str
    type: PlaceholderType
    position: Optional[int]
    offset: int
    # `*` 宽度 / 精度各自额外消耗一个 int 参数（排在本占位符的参数之前）
    stars: int = 0


def find_placeholders(value: str) -> List[Placeholder]:
    """按出现顺序列出 value 里的占位符（%% 不算）。直接扫描原始字符，不做任何归一化。"""
    out: List[Placeholder] = []
    if not value:
        return out
    for m in _PLACEHOLDER_RE.finditer(value):
        conv = m.group("conv")
        if conv is None:
            continue
        pos = m.group("pos")
        out.append(Placeholder(
            text=m.group(0),
            type=_CONVERSIONS[conv],
            position=int(pos) if pos else None,
            offset=m.start(),
            stars=(m.group("width") == "*") + (m.group("prec") == "*"),
        ))
    return out


def extract_signature(value: str) -> PlaceholderSignature:
    """
    - 任一占位符带显式位置（%1$@）：按位置排列，缺位记 None
    - 否则：按出现顺序记录，比较时忽略顺序
    - 显式/隐式混用，或同一位置类型冲突：ambiguous
    """
    items = find_placeholders(value)
    if not items:
        return PlaceholderSignature()

    positioned = [p for p in items if p.position is not None]
    if not positioned:
        types: List[PlaceholderType] = []
        for p in items:
            types.extend([PlaceholderType.INT] * p.stars)
            types.append(p.type)
        return PlaceholderSignature(types=tuple(types), positional=False)

    # 带位置时 `*` 的参数位置是隐式的，无法归位
    ambiguous = len(positioned) != len(items) or any(p.stars for p in items)
    by_pos: Dict[int, PlaceholderType] = {}
    for p in positioned:
        pos = int(p.position or 0)
        seen = by_pos.get(pos)
        if seen is not None and seen != p.type:
            ambiguous = True
        by_pos.setdefault(pos, p.type)

    size = max(by_pos)
    types = tuple(by_pos.get(i) for i in range(1, size + 1))
    return PlaceholderSignature(types=types, positional=True, ambiguous=ambiguous)
