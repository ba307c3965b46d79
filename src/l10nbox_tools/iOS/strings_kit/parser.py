from __future__ import annotations

import string
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, NoReturn, Optional

from .decoder import decode_strings_bytes
from .models import ParseError, StringsEntry, StringsTable


# OpenStep 允许不加引号的 token（key / value 都可以）
_UNQUOTED_CHARS = frozenset(string.ascii_letters + string.digits + "_$+/:.-")

_SIMPLE_ESCAPES = {
    '"': '"',
    "'": "'",
    "\\": "\\",
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}

_OCTAL = "01234567"

_ESCAPE_OUT = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
}


@dataclass(frozen=True)
class Statement:
    """源文件里的一条 `"key" = "value";`（每次出现都算，不去重）。"""
    key: str
    value: str
    comment: Optional[str]
    line: int


class _Scanner:
    def __init__(self, text: str, path: Optional[Path]):
        self.text = text
        self.path = path
        self.pos = 0
        self.line = 1
        self._lines = text.split("\n")

    # ---- errors ----

    def error(self, message: str, line: Optional[int] = None) -> NoReturn:
        ln = line or self.line
        excerpt = ""
        if 0 < ln <= len(self._lines):
            excerpt = self._lines[ln - 1].strip()
        if len(excerpt) > 80:
            excerpt = excerpt[:77] + "..."
        raise ParseError(message, line=ln, excerpt=excerpt, path=self.path)

    # ---- cursor ----

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self, offset: int = 0) -> str:
        i = self.pos + offset
        return self.text[i] if i < len(self.text) else ""

    def advance(self) -> str:
        ch = self.text[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
        return ch

    # ---- trivia ----

    def skip_trivia(self) -> List[str]:
        """跳过空白与注释，返回途经的注释文本（已去掉 // 与 /* */ 标记）。"""
        comments: List[str] = []
        while not self.at_end():
            ch = self.peek()
            if ch.isspace():
                self.advance()
                continue
            if ch == "/" and self.peek(1) == "/":
                end = self.text.find("\n", self.pos)
                if end == -1:
                    end = len(self.text)
                comments.append(self.text[self.pos + 2:end].strip())
                self.pos = end
                continue
            if ch == "/" and self.peek(1) == "*":
                start_line = self.line
                end = self.text.find("*/", self.pos + 2)
                if end == -1:
                    self.error("unterminated block comment", start_line)
                body = self.text[self.pos + 2:end]
                self.line += body.count("\n")
                self.pos = end + 2
                comments.append(body.strip())
                continue
            break
        return [c for c in comments if c]

    # ---- tokens ----

    def read_token(self, what: str) -> str:
        ch = self.peek()
        if ch == '"':
            return self._read_quoted()
        if ch in _UNQUOTED_CHARS:
            return self._read_unquoted()
        if not ch:
            self.error(f"unexpected end of file, expected {what}")
        self.error(f"unexpected character {ch!r}, expected {what}")

    def _read_unquoted(self) -> str:
        start = self.pos
        while self.peek() and self.peek() in _UNQUOTED_CHARS:
            self.pos += 1
        return self.text[start:self.pos]

    def _read_quoted(self) -> str:
        start_line = self.line
        self.advance()
        buf: List[str] = []
        while True:
            if self.at_end():
                self.error("unterminated string", start_line)
            ch = self.advance()
            if ch == '"':
                return "".join(buf)
            if ch == "\\":
                buf.append(self._read_escape(start_line))
                continue
            buf.append(ch)

    def _read_hex4(self) -> Optional[int]:
        digits = self.text[self.pos:self.pos + 4]
        if len(digits) == 4 and all(c in string.hexdigits for c in digits):
            self.pos += 4
            return int(digits, 16)
        return None

    def _read_escape(self, start_line: int) -> str:
        if self.at_end():
            self.error("unterminated string", start_line)
        ch = self.advance()
        if ch in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[ch]
        if ch in "Uu":
            code = self._read_hex4()
            if code is None:
                return ch
            # UTF-16 代理对：\UD83D\UDE00
            if 0xD800 <= code <= 0xDBFF and self.peek() == "\\" and self.peek(1) in ("U", "u"):
                saved = self.pos
                self.pos += 2
                low = self._read_hex4()
                if low is not None and 0xDC00 <= low <= 0xDFFF:
                    return chr(0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00))
                self.pos = saved
            return chr(code)
        if ch in _OCTAL:
            digits = ch
            while len(digits) < 3 and self.peek() and self.peek() in _OCTAL:
                digits += self.advance()
            return chr(int(digits, 8))
        return ch


def iter_statements(text: str, *, path: Optional[Path] = None) -> Iterator[Statement]:
    """按源码顺序产出每一条语句；语法错误抛 ParseError（带行号与原文片段）。"""
    sc = _Scanner(text, path)
    while True:
        comments = sc.skip_trivia()
        if sc.at_end():
            return

        line = sc.line
        key = sc.read_token("a quoted key")

        sc.skip_trivia()
        if sc.peek() != "=":
            sc.error("missing '=' after key", line)
        sc.advance()

        sc.skip_trivia()
        value = sc.read_token("a value")
        value_line = sc.line

        sc.skip_trivia()
        if sc.peek() != ";":
            sc.error("missing ';' after value", value_line)
        sc.advance()

        yield Statement(key=key, value=value, comment="\n".join(comments) or None, line=line)


def locale_from_path(path: Path) -> str:
    """xx.lproj/Localizable.strings -> xx"""
    parent = path.parent
    if parent.suffix == ".lproj":
        return parent.stem
    return ""


def parse_strings_text(text: str, *, locale: str = "", path: Optional[Path] = None) -> StringsTable:
    entries = [
        StringsEntry(key=st.key, value=st.value, comment=st.comment, source_line=st.line)
        for st in iter_statements(text, path=path)
    ]
    return StringsTable.from_entries(entries, locale=locale, path=path)


def parse_strings_file(path: Path, *, locale: Optional[str] = None) -> StringsTable:
    """读取并解析 OpenStep 格式的 .strings；XML/binary plist 抛 UnsupportedFormat。"""
    decoded = decode_strings_bytes(path.read_bytes(), path=path)
    text = decoded.require_openstep()
    loc = locale if locale is not None else locale_from_path(path)
    return parse_strings_text(text, locale=loc, path=path)


# ----------------------------
# 写回
# ----------------------------

def escape_strings_literal(s: str) -> str:
    out: List[str] = []
    for ch in s:
        if ch in _ESCAPE_OUT:
            out.append(_ESCAPE_OUT[ch])
        elif ord(ch) < 0x20 or ch == "\x7f" or 0xD800 <= ord(ch) <= 0xDFFF:
            # 控制字符与落单的 UTF-16 代理项都写成 \Uxxxx
            out.append(f"\\U{ord(ch):04x}")
        else:
            out.append(ch)
    return "".join(out)


def _comment_lines(comment: str) -> List[str]:
    if "*/" not in comment:
        return [f"/* {comment} */"]
    return [f"// {line}" for line in comment.split("\n")]


def serialize_table(table: StringsTable) -> str:
    blocks: List[str] = []
    for e in table.entries.values():
        lines: List[str] = []
        if e.comment:
            lines.extend(_comment_lines(e.comment))
        lines.append(f"\"{escape_strings_literal(e.key)}\" = \"{escape_strings_literal(e.value)}\";")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + ("\n" if blocks else "")


def write_strings_file(path: Path, table: StringsTable, *, encoding: str = "utf-8") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    # 先编码再写：编码失败时不能把目标文件截断成空文件
    data = serialize_table(table).encode(encoding)
    path.write_bytes(data)
    return path
