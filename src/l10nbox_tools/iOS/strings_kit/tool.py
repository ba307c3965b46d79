#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
strings_kit tool.py
CLI 入口：参数解析 + action 路由 + exit code
commands：
- lint / merge / generate / install-swiftgen / init / doctor
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from _share import ui
from _share.tool_spec import tool, opt, ex

from . import actions
from .config import CONFIG_FILE, ConfigError, StringsKitConfig, init_config, load_config, resolve_path
from .models import StringsError
from .swiftgen import SwiftGen, SwiftGenInstallError

BOX_TOOL = tool(
    id="iOS.l10nbox_strings",
    name="l10nbox_strings",
    category="iOS",
    summary=(
        "iOS/macOS .strings：占位符一致性/缺失 key/重复 key 检查（lint）、多文件合并（merge）、"
        "genstrings 提取（generate）、SwiftGen 安装"
    ),
    usage=[
        "l10nbox_strings lint --input-dir Resources",
        "l10nbox_strings lint --input-dir Resources --base-lang en --retry",
        "l10nbox_strings merge --paths a.strings b.strings --destination out.strings",
        "l10nbox_strings generate --paths Sources --output-dir Resources/en.lproj",
        "l10nbox_strings install-swiftgen",
        "l10nbox_strings init",
        "l10nbox_strings doctor",
    ],
    options=[
        opt("command", "子命令：lint/merge/generate/install-swiftgen/init/doctor"),
        opt("--project-root", "项目根目录（默认当前目录；相对路径都基于它）"),
        opt("--config", f"配置文件路径（默认 {CONFIG_FILE}，基于 project-root）"),
        opt("--input-dir", "lint：*.lproj 所在目录"),
        opt("--base-lang", "lint：基准语言（默认 en）"),
        opt("--strings-filename", "lint：每个 .lproj 下要检查的文件名（默认 Localizable.strings）"),
        opt("--no-duplicate-keys", "lint：关闭重复 key 检测"),
        opt("--extra-keys", "lint：额外报告 base 中不存在的 key"),
        opt("--no-abort", "lint：有违规也以 0 退出"),
        opt("--retry", "lint：有违规时提示手动修复后重试"),
        opt("--paths", "merge：要合并的 .strings；generate：要扫描的文件/目录"),
        opt("--destination", "merge：输出文件（默认原地写回第一个文件）"),
        opt("--output-dir", "generate：genstrings 输出目录"),
        opt("--verbose", "generate：打印 genstrings 全部输出（关闭 -q）"),
        opt("--no-swiftui", "generate：不解析 SwiftUI 的 Text()"),
        opt("--install-path", "install-swiftgen：安装目录（默认 vendor/swiftgen/<version>）"),
        opt("--swiftgen-version", "install-swiftgen：SwiftGen 版本"),
    ],
    examples=[
        ex("l10nbox_strings init", f"生成带注释的 {CONFIG_FILE}（已存在则只校验）"),
        ex("l10nbox_strings lint", "按配置检查所有 *.lproj/Localizable.strings，有违规时非 0 退出"),
        ex("l10nbox_strings lint --input-dir App/Resources --no-duplicate-keys", "只做缺失 key / 占位符检查"),
        ex("l10nbox_strings merge --paths Localizable.strings InfoPlist.strings", "合并并原地写回第一个文件"),
        ex("l10nbox_strings generate --paths Sources Pods --output-dir build/strings", "genstrings 提取源码中的字符串"),
        ex("l10nbox_strings doctor", "环境诊断：依赖、配置、base 文件、genstrings、SwiftGen"),
    ],
    dependencies=[
        "PyYAML>=6.0",
        "rich>=13.0.0",
        "packaging>=23.0",
    ],
    docs="README.md",
)


EXIT_OK = 0
EXIT_FAIL = 1
EXIT_BAD = 2


MENU = [
    ("lint",             "检查占位符一致性 / 缺失 key / 重复 key"),
    ("merge",            "合并多个 .strings（报告冲突 key）"),
    ("generate",         "genstrings：从 .m/.swift 提取字符串"),
    ("install-swiftgen", "安装 SwiftGen（已安装则跳过）"),
    ("doctor",           "环境诊断"),
    ("init",             "生成/校验配置"),
]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="l10nbox_strings",
        description="iOS/macOS .strings：lint / merge / genstrings / SwiftGen",
    )
    p.add_argument("action", nargs="?", choices=[k for k, _ in MENU], help="命令")
    p.add_argument("--project-root", default=".", help="项目根目录（默认当前目录）")
    p.add_argument("--config", default=CONFIG_FILE, help=f"配置文件路径（默认 {CONFIG_FILE}）")

    # lint
    p.add_argument("--input-dir", default=None, help="*.lproj 所在目录")
    p.add_argument("--base-lang", default=None, help="基准语言（默认 en）")
    p.add_argument("--strings-filename", default=None, help="默认 Localizable.strings")
    p.add_argument("--no-duplicate-keys", action="store_true", help="关闭重复 key 检测")
    p.add_argument("--extra-keys", action="store_true", help="报告 base 中不存在的 key")
    p.add_argument("--no-abort", action="store_true", help="有违规也以 0 退出")
    p.add_argument("--retry", action="store_true", help="有违规时提示手动修复后重试")

    # merge / generate
    p.add_argument("--paths", nargs="+", default=None, help="merge：.strings 列表；generate：扫描路径")
    p.add_argument("--destination", default=None, help="merge 输出文件（默认原地写回第一个文件）")
    p.add_argument("--output-dir", default=None, help="generate 输出目录")
    p.add_argument("--verbose", action="store_true", help="generate：关闭 -q 并打印输出")
    p.add_argument("--no-swiftui", action="store_true", help="generate：不加 -SwiftUI")

    # swiftgen
    p.add_argument("--install-path", default=None, help="SwiftGen 安装目录")
    p.add_argument("--swiftgen-version", default=None, help="SwiftGen 版本")
    return p


def _swiftgen_handle(cfg: StringsKitConfig, args: argparse.Namespace) -> SwiftGen:
    version = args.swiftgen_version or cfg.swiftgen.version
    install_path = cfg.swiftgen.install_path
    if args.install_path:
        install_path = resolve_path(cfg.project_root, args.install_path)
    elif args.swiftgen_version and args.swiftgen_version != cfg.swiftgen.version:
        install_path = install_path.parent / version
    return SwiftGen(install_path, version=version)


def _cmd_lint(cfg: StringsKitConfig, args: argparse.Namespace) -> int:
    lint = cfg.lint
    input_dir = resolve_path(cfg.project_root, args.input_dir) if args.input_dir else lint.input_dir
    if input_dir is None:
        ui.error(f"缺少 input_dir：请传 --input-dir 或在 {CONFIG_FILE} 的 lint.input_dir 中配置")
        return EXIT_BAD

    abort = lint.abort_on_violations and not args.no_abort
    try:
        report = actions.run_lint(
            input_dir=input_dir,
            base_lang=args.base_lang or lint.base_lang,
            strings_filename=args.strings_filename or lint.strings_filename,
            check_duplicate_keys=lint.check_duplicate_keys and not args.no_duplicate_keys,
            check_extra_keys=lint.check_extra_keys or args.extra_keys,
            allow_retry=lint.allow_retry or args.retry,
        )
    except FileNotFoundError as e:
        ui.error(str(e))
        return EXIT_BAD

    if abort and not report.ok:
        ui.error("Inconsistencies found during Localization linting. Aborting.")
        return EXIT_FAIL
    return EXIT_OK


def _cmd_merge(cfg: StringsKitConfig, args: argparse.Namespace) -> int:
    if args.paths:
        paths = [resolve_path(cfg.project_root, p) for p in args.paths]
    else:
        paths = list(cfg.merge.paths)
    if not paths:
        ui.error(f"缺少要合并的文件：请传 --paths 或在 {CONFIG_FILE} 的 merge.paths 中配置")
        return EXIT_BAD

    destination = resolve_path(cfg.project_root, args.destination) if args.destination else cfg.merge.destination
    try:
        actions.run_merge(paths, destination=destination)
    except (StringsError, OSError, UnicodeError) as e:
        ui.error(f"merge 失败：{e}")
        return EXIT_FAIL
    return EXIT_OK


def _cmd_generate(cfg: StringsKitConfig, args: argparse.Namespace) -> int:
    gen = cfg.generate
    paths = [resolve_path(cfg.project_root, p) for p in args.paths] if args.paths else list(gen.paths)
    output_dir = resolve_path(cfg.project_root, args.output_dir) if args.output_dir else gen.output_dir
    if output_dir is None:
        ui.error(f"缺少 output_dir：请传 --output-dir 或在 {CONFIG_FILE} 的 generate.output_dir 中配置")
        return EXIT_BAD

    try:
        actions.run_generate(
            paths,
            output_dir=output_dir,
            quiet=gen.quiet and not args.verbose,
            swiftui=gen.swiftui and not args.no_swiftui,
        )
    except FileNotFoundError:
        ui.error("未找到 genstrings（仅 macOS + Xcode 命令行工具提供）")
        return EXIT_FAIL
    return EXIT_OK


def _cmd_install_swiftgen(cfg: StringsKitConfig, args: argparse.Namespace) -> int:
    try:
        actions.run_install_swiftgen(_swiftgen_handle(cfg, args))
    except SwiftGenInstallError as e:
        ui.error(str(e))
        return EXIT_FAIL
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    args = build_parser().parse_args(argv)

    project_root = Path(args.project_root).expanduser().resolve()
    cfg_path = Path(args.config).expanduser()
    if not cfg_path.is_absolute():
        cfg_path = (project_root / cfg_path).resolve()

    action = args.action
    if not action:
        ui.error("需要指定 action。可选：")
        for k, desc in MENU:
            print(f"  - {k:<17} {desc}")
        return EXIT_BAD

    # init 可以在无 cfg 的情况下运行
    if action == "init":
        try:
            created = init_config(cfg_path, project_root=project_root)
        except ConfigError as e:
            ui.error(str(e))
            return EXIT_BAD
        if created:
            ui.success(f"已生成：{cfg_path}")
        else:
            ui.success(f"配置校验通过：{cfg_path}")
        return EXIT_OK

    # 显式传了 --config 时要求文件存在；默认路径不存在则全部走默认值 + CLI 参数
    explicit_cfg = any(a == "--config" or a.startswith("--config=") for a in argv)
    try:
        cfg = load_config(cfg_path, project_root=project_root, required=explicit_cfg)
    except ConfigError as e:
        ui.error(str(e))
        return EXIT_BAD

    if action == "doctor":
        return EXIT_OK if actions.run_doctor(cfg, swiftgen=_swiftgen_handle(cfg, args)) else EXIT_BAD

    if action == "lint":
        return _cmd_lint(cfg, args)

    if action == "merge":
        return _cmd_merge(cfg, args)

    if action == "generate":
        return _cmd_generate(cfg, args)

    if action == "install-swiftgen":
        return _cmd_install_swiftgen(cfg, args)

    ui.error(f"未知 action：{action}")
    return EXIT_BAD


if __name__ == "__main__":
    raise SystemExit(main())
