from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union


DEFAULT_DOCS = "README.md"


# ----------------------------
# 主结构：ToolSpec
# ----------------------------

@dataclass(frozen=True)
class ToolSpec:
    """l10nbox 中每个命令行工具对外声明的元信息（模块级 BOX_TOOL）。"""

    id: str            # "<category>.<name>"，例如 iOS.l10nbox_strings
    name: str          # 与 console script 命令名一致
    category: str
    summary: str

    usage: List[str] = field(default_factory=list)

    options: List[Dict[str, str]] = field(default_factory=list)   # [{"flag": "...", "desc": "..."}]
    examples: List[Dict[str, str]] = field(default_factory=list)  # [{"cmd": "...", "desc": "..."}]

    dependencies: List[str] = field(default_factory=list)

    docs: str = DEFAULT_DOCS

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ----------------------------
# 便捷构造器：opt / ex / tool
# ----------------------------

def opt(flag: str, desc: str) -> Dict[str, str]:
    return {"flag": flag, "desc": desc}


def ex(cmd: str, desc: str) -> Dict[str, str]:
    return {"cmd": cmd, "desc": desc}


def tool(
        *,
        id: str,
        name: str,
        category: str,
        summary: str,
        usage: Optional[Sequence[str]] = None,
        options: Optional[Sequence[Mapping[str, Any]]] = None,
        examples: Optional[Sequence[Mapping[str, Any]]] = None,
        dependencies: Optional[Sequence[str]] = None,
        docs: Optional[str] = None,
) -> Dict[str, Any]:
    """
    生成标准 BOX_TOOL dict（模块导出 BOX_TOOL = dict，l10nbox tools 通过 entry point 读取）。
    """
    spec = ToolSpec(
        id=id,
        name=name,
        category=category,
        summary=summary,
        usage=list(usage or []),
        options=_coerce_pairs(options or [], "flag"),
        examples=_coerce_pairs(examples or [], "cmd"),
        dependencies=list(dependencies or []),
        docs=(docs or DEFAULT_DOCS),
    )
    return spec.to_dict()


# ----------------------------
# normalize + validate
# ----------------------------

ToolLike = Union[ToolSpec, Mapping[str, Any]]


def normalize_tool(obj: ToolLike) -> Dict[str, Any]:
    """把 ToolSpec 或 dict 统一为标准 dict，并补齐默认字段。"""
    if isinstance(obj, ToolSpec):
        return obj.to_dict()

    if not isinstance(obj, Mapping):
        raise TypeError(f"BOX_TOOL 必须是 dict/Mapping 或 ToolSpec，实际是：{type(obj).__name__}")

    d = dict(obj)
    d.setdefault("usage", [])
    d.setdefault("dependencies", [])
    d.setdefault("docs", DEFAULT_DOCS)
    d["options"] = _coerce_pairs(d.get("options") or [], "flag")
    d["examples"] = _coerce_pairs(d.get("examples") or [], "cmd")
    return d


def validate_tool(d: Mapping[str, Any]) -> List[str]:
    """
    返回错误列表（空列表表示通过）。不直接 raise，方便 l10nbox tools --full 聚合展示。
    """
    errors: List[str] = []

    for key in ("id", "name", "category", "summary"):
        v = d.get(key)
        if not isinstance(v, str) or not v.strip():
            errors.append(f"缺少或非法字段：{key}（必须为非空字符串）")

    tid, name, category = d.get("id"), d.get("name"), d.get("category")
    if all(isinstance(x, str) and x.strip() for x in (tid, name, category)):
        if tid != f"{category}.{name}":
            errors.append(f"字段 id 应为 '{category}.{name}'（实际：'{tid}'）")

    for key in ("usage", "dependencies"):
        v = d.get(key)
        if not isinstance(v, list) or any(not isinstance(x, str) or not x.strip() for x in v):
            errors.append(f"字段 {key} 必须是字符串列表（list[str]），且每项非空")

    docs = d.get("docs")
    if not isinstance(docs, str) or not docs.strip():
        errors.append(f"字段 docs 必须为非空字符串（例如 {DEFAULT_DOCS}）")

    errors.extend(_validate_pairs(d.get("options"), "options", "flag"))
    errors.extend(_validate_pairs(d.get("examples"), "examples", "cmd"))
    return errors


def _validate_pairs(items: Any, field_name: str, head: str) -> List[str]:
    if not isinstance(items, list):
        return [f"字段 {field_name} 必须是 list[{{'{head}','desc'}}]"]
    errors: List[str] = []
    for i, it in enumerate(items):
        if not isinstance(it, Mapping):
            errors.append(f"{field_name}[{i}] 必须是 dict")
            continue
        for key in (head, "desc"):
            v = it.get(key)
            if not isinstance(v, str) or not v.strip():
                errors.append(f"{field_name}[{i}].{key} 必须为非空字符串")
    return errors


# ----------------------------
# 内部：把 options/examples 统一成 list[dict[str,str]]
# ----------------------------

def _coerce_pairs(items: Sequence[Mapping[str, Any]], head: str) -> List[Dict[str, str]]:
    return [
        {head: str(it.get(head, "")).strip(), "desc": str(it.get("desc", "")).strip()}
        for it in items
    ]
