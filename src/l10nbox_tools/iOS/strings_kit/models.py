from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple


# =========================
# Errors
# =========================

class StringsError(RuntimeError):
    """所有 .strings 处理错误的基类（带文件路径，方便按文件归因）。"""

    def __init__(self, message: str, *, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


class DecodeError(StringsError):
    def __init__(self, *, encoding: str, reason: str, path: Optional[Path] = None):
        self.encoding = encoding
        self.reason = reason
        where = f"{path}" if path else "<bytes>"
        super().__init__(f"无法按 {encoding} 解码：{where}（{reason}）", path=path)


class UnsupportedFormat(StringsError):
    def __init__(self, fmt: "FileFormat", *, path: Optional[Path] = None):
        self.format = fmt
        where = f"{path}" if path else "<bytes>"
        super().__init__(f"{where} 是 {fmt.label} 格式，不是 OpenStep（ASCII-plist）文本格式", path=path)


class ParseError(StringsError):
    def __init__(self, message: str, *, line: int, excerpt: str, path: Optional[Path] = None):
        self.line = line
        self.excerpt = excerpt
        self.detail = message
        where = f"{path}:" if path else "line "
        super().__init__(f"{where}{line}: {message} -> {excerpt!r}", path=path)


# =========================
# File format
# =========================

class FileFormat(str, Enum):
    OPENSTEP = "openstep"
    XML_PLIST = "xml"
    BINARY_PLIST = "binary"

    @property
    def label(self) -> str:
        return {
            FileFormat.OPENSTEP: "ASCII-plist",
            FileFormat.XML_PLIST: "xml",
            FileFormat.BINARY_PLIST: "binary-plist",
        }[self]


# =========================
# Strings tables
# =========================

@dataclass(frozen=True)
class StringsEntry:
    key: str
    value: str
    comment: Optional[str] = None
    # 只用于诊断，比较时忽略（round-trip 后行号必然变化）
    source_line: int = field(default=0, compare=False)


@dataclass(frozen=True)
class StringsTable:
    """
    有序 key -> StringsEntry。
    - 构造后不修改：任何变换都产生新 table
    - 相等性：locale + entries（不比较 path，也不比较 key 顺序）
    """
    locale: str
    entries: Dict[str, StringsEntry] = field(default_factory=dict)
    path: Optional[Path] = field(default=None, compare=False)

    @classmethod
    def from_entries(
        cls,
        entries: List[StringsEntry],
        *,
        locale: str = "",
        path: Optional[Path] = None,
    ) -> "StringsTable":
        # 后出现的覆盖先出现的值，但 key 保持首次出现的位置
        out: Dict[str, StringsEntry] = {}
        for e in entries:
            out[e.key] = e
        return cls(locale=locale, entries=out, path=path)

    @classmethod
    def from_dict(cls, values: Dict[str, str], *, locale: str = "", path: Optional[Path] = None) -> "StringsTable":
        return cls.from_entries(
            [StringsEntry(key=k, value=v) for k, v in values.items()],
            locale=locale,
            path=path,
        )

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def keys(self) -> List[str]:
        return list(self.entries.keys())

    def get(self, key: str) -> Optional[StringsEntry]:
        return self.entries.get(key)

    def value(self, key: str) -> Optional[str]:
        e = self.entries.get(key)
        return e.value if e else None

    def as_dict(self) -> Dict[str, str]:
        return {k: e.value for k, e in self.entries.items()}

    def with_path(self, path: Optional[Path]) -> "StringsTable":
        return StringsTable(locale=self.locale, entries=dict(self.entries), path=path)


# =========================
# Placeholders
# =========================

class PlaceholderType(str, Enum):
    OBJECT = "object"
    INT = "int"
    UNSIGNED = "unsigned"
    FLOAT = "float"
    STRING = "string"
    CHAR = "char"
    POINTER = "pointer"

    @property
    def display(self) -> str:
        return _TYPE_DISPLAY[self]


_TYPE_DISPLAY = {
    PlaceholderType.OBJECT: "Object",
    PlaceholderType.INT: "Int",
    PlaceholderType.UNSIGNED: "UInt",
    PlaceholderType.FLOAT: "Float",
    PlaceholderType.STRING: "CString",
    PlaceholderType.CHAR: "CChar",
    PlaceholderType.POINTER: "Pointer",
}


@dataclass(frozen=True)
class PlaceholderSignature:
    """
    一个 value 的占位符签名。
    - positional=True：types[i] 对应位置 i+1，缺位为 None
    - positional=False：按首次出现顺序记录，比较时忽略顺序（multiset）
    - ambiguous：混用显式位置与隐式位置，或同一位置类型冲突；永远不与任何签名匹配
    """
    types: Tuple[Optional[PlaceholderType], ...] = ()
    positional: bool = False
    ambiguous: bool = False

    def __len__(self) -> int:
        return len(self.types)

    @property
    def is_empty(self) -> bool:
        return not self.types and not self.ambiguous

    def matches(self, other: "PlaceholderSignature") -> bool:
        if self.ambiguous or other.ambiguous:
            return False
        if not self.positional and not other.positional:
            return Counter(self.types) == Counter(other.types)
        return self.types == other.types

    def render(self) -> str:
        names = [t.display if t is not None else "<none>" for t in self.types]
        text = "[" + ", ".join(names) + "]"
        if self.ambiguous:
            text += " (ambiguous)"
        return text


# =========================
# Lint results
# =========================

class ViolationKind(str, Enum):
    MISSING_KEY = "missing_key"
    EXTRA_KEY = "extra_key"
    PLACEHOLDER_MISMATCH = "placeholder_mismatch"
    DUPLICATE_KEY = "duplicate_key"


@dataclass(frozen=True)
class ConsistencyViolation:
    locale: str
    key: str
    kind: ViolationKind
    expected: Optional[PlaceholderSignature] = None
    actual: Optional[PlaceholderSignature] = None

    base_lang: str = ""
    lines: Tuple[int, ...] = ()
    path: Optional[Path] = field(default=None, compare=False)

    def describe(self) -> str:
        if self.kind == ViolationKind.PLACEHOLDER_MISMATCH:
            exp = (self.expected or PlaceholderSignature()).render()
            act = (self.actual or PlaceholderSignature()).render()
            return f"`{self.key}` expected placeholders for {exp} but found {act} instead."
        if self.kind == ViolationKind.MISSING_KEY:
            return f"`{self.key}` is missing (defined in base language `{self.base_lang}`)."
        if self.kind == ViolationKind.EXTRA_KEY:
            return f"`{self.key}` is not defined in base language `{self.base_lang}`."
        lines = ", ".join(str(n) for n in self.lines)
        return f"`{self.key}` was found at multiple lines: {lines}."


@dataclass(frozen=True)
class FileIssue:
    """单个文件的解码/解析失败：只归因到该文件，不中断整批检查。"""
    locale: str
    path: Path
    message: str


@dataclass
class LintReport:
    base_lang: str
    violations: Dict[str, List[ConsistencyViolation]] = field(default_factory=dict)
    file_errors: List[FileIssue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    # 成功加载的 table（locale -> table），没有文件的语言不会出现
    tables: Dict[str, StringsTable] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.violations and not self.file_errors

    def diff_lines(self) -> Dict[str, List[str]]:
        return {lang: [v.describe() for v in items] for lang, items in self.violations.items() if items}

    def count(self) -> int:
        return sum(len(v) for v in self.violations.values())


@dataclass(frozen=True)
class MergeResult:
    table: StringsTable
    duplicates: List[str] = field(default_factory=list)
    destination: Optional[Path] = None
