from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .decoder import read_plist_values, read_strings_file
from .duplicates import duplicate_key_lines
from .models import (
    ConsistencyViolation,
    DecodeError,
    FileFormat,
    FileIssue,
    LintReport,
    ParseError,
    PlaceholderSignature,
    StringsTable,
    UnsupportedFormat,
    ViolationKind,
)
from .parser import parse_strings_text
from .placeholders import extract_signature


DEFAULT_BASE_LANG = "en"
DEFAULT_STRINGS_FILENAME = "Localizable.strings"

WarnFn = Callable[[str], None]


@dataclass(frozen=True)
class LocaleStrings:
    """
    一个语言的一个 .strings 文件（已解码 + 已取值）。
    - format == OPENSTEP：text 为原文（重复 key 检测需要）
    - XML / binary plist：table 来自 plistlib 兜底取值，text 为空
    """
    locale: str
    table: StringsTable
    path: Optional[Path] = None
    format: FileFormat = FileFormat.OPENSTEP
    text: Optional[str] = None

    @classmethod
    def from_text(cls, text: str, *, locale: str, path: Optional[Path] = None) -> "LocaleStrings":
        table = parse_strings_text(text, locale=locale, path=path)
        return cls(locale=locale, table=table, path=path, format=FileFormat.OPENSTEP, text=text)

    @classmethod
    def from_table(cls, table: StringsTable) -> "LocaleStrings":
        return cls(locale=table.locale, table=table, path=table.path)


def load_locale_strings(path: Path, *, locale: str) -> LocaleStrings:
    """DecodeError / ParseError 直接抛出，由调用方按文件归因。"""
    raw, decoded = read_strings_file(path)

    if decoded.format == FileFormat.OPENSTEP:
        return LocaleStrings.from_text(decoded.require_openstep(), locale=locale, path=path)

    if decoded.format in (FileFormat.XML_PLIST, FileFormat.BINARY_PLIST):
        values = read_plist_values(raw, fmt=decoded.format, path=path)
        table = StringsTable.from_dict(values, locale=locale, path=path)
        return LocaleStrings(locale=locale, table=table, path=path, format=decoded.format)

    raise UnsupportedFormat(decoded.format, path=path)


class ConsistencyChecker:
    """
    以 base 语言为准，逐个语言对比：
    - base 有、语言缺失的 key -> missing_key
    - 两边都有但占位符签名不一致 -> placeholder_mismatch
    - （可选）语言多出的 key -> extra_key
    - （可选，默认开）文件内重复 key -> duplicate_key（base 也检查）
    """

    def __init__(
        self,
        *,
        base_lang: str = DEFAULT_BASE_LANG,
        check_duplicate_keys: bool = True,
        check_extra_keys: bool = False,
        warn_fn: Optional[WarnFn] = None,
    ):
        self.base_lang = base_lang
        self.check_duplicate_keys = check_duplicate_keys
        self.check_extra_keys = check_extra_keys
        self.warn_fn = warn_fn

    # ----------------------------
    # 入口
    # ----------------------------

    def check(self, base: LocaleStrings, others: Sequence[LocaleStrings]) -> LintReport:
        report = LintReport(base_lang=self.base_lang)
        self._check_into(report, base, others)
        return report

    def check_tables(self, base: StringsTable, others: Sequence[StringsTable]) -> LintReport:
        """只有 table（没有原文）时：重复 key 无从检测，只做缺失/占位符检查。"""
        return self.check(
            LocaleStrings.from_table(base),
            [LocaleStrings.from_table(t) for t in others],
        )

    def check_dir(self, input_dir: Path, *, strings_filename: str = DEFAULT_STRINGS_FILENAME) -> LintReport:
        """扫描 input_dir/<locale>.lproj/<strings_filename>；缺文件的语言直接跳过。"""
        if not input_dir.is_dir():
            raise FileNotFoundError(f"未找到 .lproj 所在目录：{input_dir}")

        report = LintReport(base_lang=self.base_lang)
        loaded: Dict[str, LocaleStrings] = {}

        for lproj in sorted(p for p in input_dir.glob("*.lproj") if p.is_dir()):
            locale = lproj.stem
            fp = lproj / strings_filename
            if not fp.is_file():
                continue
            try:
                loaded[locale] = load_locale_strings(fp, locale=locale)
            except (DecodeError, ParseError, UnsupportedFormat, OSError) as e:
                report.file_errors.append(FileIssue(locale=locale, path=fp, message=str(e)))

        base = loaded.pop(self.base_lang, None)
        if base is None:
            if not any(issue.locale == self.base_lang for issue in report.file_errors):
                report.file_errors.append(FileIssue(
                    locale=self.base_lang,
                    path=input_dir / f"{self.base_lang}.lproj" / strings_filename,
                    message=f"未找到 base 语言文件（{self.base_lang}.lproj/{strings_filename}）",
                ))
            return report

        self._check_into(report, base, list(loaded.values()))
        return report

    # ----------------------------
    # 内部
    # ----------------------------

    def _warn(self, report: LintReport, message: str) -> None:
        report.warnings.append(message)
        if self.warn_fn is not None:
            self.warn_fn(message)

    def _warn_format(self, report: LintReport, src: LocaleStrings) -> None:
        fmt = src.format.label
        where = src.path or src.locale
        if self.check_duplicate_keys:
            self._warn(
                report,
                f"File `{where}` is in {fmt} format, while finding duplicate keys only make sense on files "
                f"that are in ASCII-plist format.\n"
                f"Since your files are in {fmt} format, you should probably disable the `check_duplicate_keys` "
                f"option from this `lint` call.",
            )
        else:
            self._warn(report, f"File `{where}` is in {fmt} format; only missing-key/placeholder checks were run on it.")

    def _check_into(self, report: LintReport, base: LocaleStrings, others: Sequence[LocaleStrings]) -> None:
        others = sorted((o for o in others if o.locale != base.locale), key=lambda o: o.locale)

        for src in [base, *others]:
            report.tables[src.locale] = src.table
            if src.format != FileFormat.OPENSTEP:
                self._warn_format(report, src)

        base_sigs = {k: extract_signature(e.value) for k, e in base.table.entries.items()}

        if self.check_duplicate_keys:
            dups = self._duplicates(report, base)
            if dups:
                report.violations[base.locale] = dups

        for src in others:
            items = self._compare(base, base_sigs, src)
            if self.check_duplicate_keys:
                items.extend(self._duplicates(report, src))
            if items:
                report.violations[src.locale] = items

    def _compare(
        self,
        base: LocaleStrings,
        base_sigs: Dict[str, PlaceholderSignature],
        src: LocaleStrings,
    ) -> List[ConsistencyViolation]:
        out: List[ConsistencyViolation] = []
        for key, expected in base_sigs.items():
            entry = src.table.get(key)
            if entry is None:
                out.append(ConsistencyViolation(
                    locale=src.locale,
                    key=key,
                    kind=ViolationKind.MISSING_KEY,
                    expected=expected,
                    base_lang=base.locale,
                    path=src.path,
                ))
                continue
            actual = extract_signature(entry.value)
            if not expected.matches(actual):
                out.append(ConsistencyViolation(
                    locale=src.locale,
                    key=key,
                    kind=ViolationKind.PLACEHOLDER_MISMATCH,
                    expected=expected,
                    actual=actual,
                    base_lang=base.locale,
                    lines=(entry.source_line,) if entry.source_line else (),
                    path=src.path,
                ))

        if self.check_extra_keys:
            for key, entry in src.table.entries.items():
                if key in base_sigs:
                    continue
                out.append(ConsistencyViolation(
                    locale=src.locale,
                    key=key,
                    kind=ViolationKind.EXTRA_KEY,
                    actual=extract_signature(entry.value),
                    base_lang=base.locale,
                    path=src.path,
                ))
        return out

    def _duplicates(self, report: LintReport, src: LocaleStrings) -> List[ConsistencyViolation]:
        if src.format != FileFormat.OPENSTEP or src.text is None:
            return []
        try:
            found = duplicate_key_lines(src.text, path=src.path)
        except ParseError as e:
            report.file_errors.append(FileIssue(locale=src.locale, path=src.path or Path(src.locale), message=str(e)))
            return []
        return [
            ConsistencyViolation(
                locale=src.locale,
                key=key,
                kind=ViolationKind.DUPLICATE_KEY,
                base_lang=self.base_lang,
                lines=tuple(lines),
                path=src.path,
            )
            for key, lines in found.items()
        ]
