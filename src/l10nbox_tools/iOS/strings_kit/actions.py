from __future__ import annotations

import importlib
import shutil
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from _share import ui

from . import genstrings
from .checker import ConsistencyChecker
from .config import CONFIG_FILE, StringsKitConfig
from .merger import merge_strings_files
from .models import LintReport, MergeResult
from .swiftgen import SwiftGen


ConfirmFn = Callable[[str], bool]

RETRY_PROMPT = "Inconsistencies found during Localization linting. Fix them manually, then confirm to retry"


def _default_confirm(prompt: str) -> bool:
    return ui.confirm(prompt, default=False)


# ----------------------------
# lint
# ----------------------------

def _print_report(report: LintReport) -> None:
    for issue in report.file_errors:
        ui.error(issue.message)

    for lang, lines in report.diff_lines().items():
        if lang == report.base_lang:
            header = f"Duplicate keys found in base language '{lang}':"
        else:
            header = f"Inconsistencies found between '{report.base_lang}' and '{lang}':"
        ui.error(header + "\n\n" + "\n".join(lines) + "\n")


def run_lint(
    *,
    input_dir: Path,
    base_lang: str,
    strings_filename: str,
    check_duplicate_keys: bool = True,
    check_extra_keys: bool = False,
    allow_retry: bool = False,
    confirm_fn: Optional[ConfirmFn] = None,
) -> LintReport:
    """
    每一轮都从头重新检查（文件可能在两轮之间被手动修改）。
    allow_retry：有违规时询问是否重试；拒绝则返回最后一轮结果。
    """
    ui.message("Linting localizations for parameter placeholders consistency...")
    confirm = confirm_fn or _default_confirm

    checker = ConsistencyChecker(
        base_lang=base_lang,
        check_duplicate_keys=check_duplicate_keys,
        check_extra_keys=check_extra_keys,
        warn_fn=ui.important,
    )

    while True:
        report = checker.check_dir(input_dir, strings_filename=strings_filename)
        _print_report(report)
        if report.violations and allow_retry and confirm(RETRY_PROMPT):
            continue
        if report.ok:
            ui.success(f"{len(report.tables)} 个语言检查通过（base={base_lang}）")
        return report


# ----------------------------
# merge
# ----------------------------

def run_merge(paths: Sequence[Path], *, destination: Optional[Path] = None) -> MergeResult:
    ui.message(f"Merging strings files: {[str(p) for p in paths]}")
    result = merge_strings_files(list(paths), destination=destination)
    for dup in result.duplicates:
        ui.important(f"Duplicate key found while merging the `.strings` files: `{dup}`")
    ui.success(f"已写入：{result.destination}（{len(result.table)} 个 key，冲突 {len(result.duplicates)} 个）")
    return result


# ----------------------------
# generate（genstrings）
# ----------------------------

def run_generate(
    paths: Sequence[Path],
    *,
    output_dir: Path,
    quiet: bool = True,
    swiftui: bool = True,
) -> List[str]:
    """返回 genstrings 输出的警告行。"""
    proc = genstrings.generate_strings_file_from_code(paths, output_dir, quiet=quiet, swiftui=swiftui)
    out = (proc.stdout or "").splitlines()
    if proc.returncode != 0:
        ui.error(f"genstrings failed with exit code {proc.returncode}")
    if not quiet:
        ui.command_output(out)
    return out


# ----------------------------
# install-swiftgen
# ----------------------------

def run_install_swiftgen(handle: SwiftGen) -> Path:
    if handle.is_installed():
        ui.success(f"SwiftGen {handle.version} 已安装：{handle.binary}")
        return handle.ensure_installed()
    ui.message(f"Installing SwiftGen {handle.version} into {handle.install_path} ...")
    binary = handle.ensure_installed()
    ui.success(f"SwiftGen {handle.version} 安装完成：{binary}")
    return binary


# ----------------------------
# doctor
# ----------------------------

def run_doctor(cfg: StringsKitConfig, *, swiftgen: SwiftGen) -> bool:
    ok = True

    for mod, pkg in (("yaml", "PyYAML"), ("rich", "rich"), ("packaging", "packaging")):
        try:
            importlib.import_module(mod)
            ui.success(f"{pkg} OK")
        except ImportError:
            ok = False
            ui.error(f"{pkg} 不可用：pip install {pkg}")

    if cfg.source is None:
        ui.important(f"未找到 {CONFIG_FILE}（使用默认值；可运行 `l10nbox_strings init` 生成）")
    else:
        ui.success(f"{cfg.source.name} OK")

    input_dir = cfg.lint.input_dir
    if input_dir is None:
        ui.important("未配置 lint.input_dir（lint 时需通过 --input-dir 指定）")
    elif not input_dir.is_dir():
        ok = False
        ui.error(f"lint.input_dir 不存在：{input_dir}")
    else:
        base_fp = input_dir / f"{cfg.lint.base_lang}.lproj" / cfg.lint.strings_filename
        if base_fp.is_file():
            ui.success(f"base 文件 OK：{base_fp}")
        else:
            ok = False
            ui.error(f"base 文件不存在：{base_fp}")
        locales = sorted(p.stem for p in input_dir.glob("*.lproj") if p.is_dir())
        ui.message(f"  locales: {locales}")

    if shutil.which("genstrings"):
        ui.success("genstrings OK")
    else:
        ui.important("未找到 genstrings（仅 macOS + Xcode 可用；generate 需要）")

    found = swiftgen.installed_version()
    if found is None:
        ui.important(f"SwiftGen 未安装：{swiftgen.install_path}（可运行 `l10nbox_strings install-swiftgen`）")
    elif not swiftgen.is_installed():
        ui.important(f"SwiftGen 版本不一致：已安装 {found}，期望 {swiftgen.version}")
    else:
        ui.success(f"SwiftGen {found} OK")

    if ok:
        ui.success("doctor 完成")
    return ok
