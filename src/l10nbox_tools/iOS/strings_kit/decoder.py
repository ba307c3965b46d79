from __future__ import annotations

import plistlib
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple
from xml.parsers.expat import ExpatError

from .models import DecodeError, FileFormat, UnsupportedFormat


_BOMS: Tuple[Tuple[bytes, str], ...] = (
    (b"\xef\xbb\xbf", "utf-8"),
    (b"\xff\xfe", "utf-16-le"),
    (b"\xfe\xff", "utf-16-be"),
)

_XML_PREFIXES = ("<?xml", "<!DOCTYPE plist", "<plist")


@dataclass(frozen=True)
class DecodedStrings:
    format: FileFormat
    encoding: str
    text: Optional[str] = None  # binary plist 没有文本
    path: Optional[Path] = None

    @property
    def is_openstep(self) -> bool:
        return self.format == FileFormat.OPENSTEP

    def require_openstep(self) -> str:
        if not self.is_openstep or self.text is None:
            raise UnsupportedFormat(self.format, path=self.path)
        return self.text


def detect_encoding(raw: bytes) -> Tuple[str, int]:
    """根据 BOM 判断编码，返回 (encoding, bom_length)。没有 BOM 一律按 UTF-8。"""
    for bom, enc in _BOMS:
        if raw.startswith(bom):
            return enc, len(bom)
    return "utf-8", 0


def decode_strings_bytes(raw: bytes, *, path: Optional[Path] = None) -> DecodedStrings:
    if raw.startswith(b"bplist"):
        return DecodedStrings(format=FileFormat.BINARY_PLIST, encoding="binary", text=None, path=path)

    encoding, bom_len = detect_encoding(raw)
    try:
        text = raw[bom_len:].decode(encoding)
    except UnicodeDecodeError as e:
        raise DecodeError(encoding=encoding, reason=str(e), path=path) from None

    head = text.lstrip()
    if head.startswith(_XML_PREFIXES):
        return DecodedStrings(format=FileFormat.XML_PLIST, encoding=encoding, text=text, path=path)
    return DecodedStrings(format=FileFormat.OPENSTEP, encoding=encoding, text=text, path=path)


def read_strings_file(path: Path) -> Tuple[bytes, DecodedStrings]:
    raw = path.read_bytes()
    return raw, decode_strings_bytes(raw, path=path)


def read_plist_values(raw: bytes, *, fmt: FileFormat, path: Optional[Path] = None) -> Dict[str, str]:
    """
    XML / binary plist 的兜底取值（交给标准库 plistlib，不走 OpenStep 解析器）。
    只保留 string -> string 的条目。
    """
    try:
        obj = plistlib.loads(raw)
    except (plistlib.InvalidFileException, ExpatError, ValueError, OverflowError):
        raise UnsupportedFormat(fmt, path=path) from None
    if not isinstance(obj, dict):
        raise UnsupportedFormat(fmt, path=path)
    return {str(k): v for k, v in obj.items() if isinstance(v, str)}
