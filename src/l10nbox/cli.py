from __future__ import annotations

import argparse
import importlib
import importlib.metadata as md
import shutil
import sys
import textwrap
from typing import List, Optional, Tuple

from _share import ui
from _share.tool_spec import normalize_tool, validate_tool

from l10nbox import __version__


# distribution 名称（与 pyproject.toml [project].name 对齐）
PKG_NAME = "l10nbox"


def which(cmd: str) -> Optional[str]:
    return shutil.which(cmd)


def cmd_help(parser: argparse.ArgumentParser, _args: argparse.Namespace) -> int:
    parser.print_help()
    return 0


def cmd_version(_parser: argparse.ArgumentParser, _args: argparse.Namespace) -> int:
    print(__version__)
    return 0


def cmd_doctor(_parser: argparse.ArgumentParser, _args: argparse.Namespace) -> int:
    print("== l10nbox doctor ==")
    print(f"python: {sys.executable}")
    print(f"python_version: {sys.version.split()[0]}")
    print(f"l10nbox: {__version__}")

    for cmd in ("l10nbox_strings", "genstrings"):
        print(f"{cmd}: {which(cmd) or 'NOT FOUND'}")

    if not which("genstrings"):
        ui.important("genstrings 仅在 macOS + Xcode 命令行工具中提供；generate 子命令不可用")

    print("doctor: OK")
    return 0


def _indent(text: str, prefix: str = "  ") -> str:
    return textwrap.indent(text, prefix)


def _format_tool_card(tool: dict, full: bool) -> str:
    category = str(tool.get("category") or "").strip()
    name = str(tool.get("name") or "").strip()
    summary = str(tool.get("summary") or "").strip()
    docs = str(tool.get("docs") or "").strip()

    header = f"{category} / {name}" if category else name
    lines = [f"- {header}"]
    if summary:
        lines.append(_indent(summary))

    usage = tool.get("usage") or []
    if usage:
        # 简洁模式只显示前三条
        show = usage if full else usage[:3]
        lines.append("  usage:")
        lines.extend(_indent(u, "    ") for u in show)
        if not full and len(usage) > 3:
            lines.append(f"    ... ({len(usage) - 3} more)")

    if full:
        options = tool.get("options") or []
        if options:
            lines.append("  options:")
            for o in options:
                lines.append(f"    {o['flag']:<20} {o['desc']}".rstrip())

        examples = tool.get("examples") or []
        if examples:
            lines.append("  examples:")
            for e in examples:
                lines.append(f"    {e['cmd']}    # {e['desc']}" if e["desc"] else f"    {e['cmd']}")

    if docs:
        lines.append(f"  docs: {docs}")
    return "\n".join(lines)


def _ep_module_from_value(value: str) -> str:
    # "l10nbox_tools.iOS.strings_kit.tool:main" -> "l10nbox_tools.iOS.strings_kit.tool"
    return value.split(":", 1)[0].strip()


def iter_console_scripts() -> List[Tuple[str, str]]:
    """[(命令名, "模块:函数")]；找不到已安装元数据时抛 PackageNotFoundError。"""
    dist = md.distribution(PKG_NAME)
    scripts = [(ep.name, ep.value) for ep in dist.entry_points if ep.group == "console_scripts"]
    # l10nbox 放最前，其它按名字
    scripts.sort(key=lambda it: (0 if it[0] == PKG_NAME else 1, it[0]))
    return scripts


def cmd_tools(_parser: argparse.ArgumentParser, args: argparse.Namespace) -> int:
    """列出工具集发布的 console scripts，读取每个工具模块里的 BOX_TOOL。"""
    full = bool(getattr(args, "full", False))
    print("== l10nbox tools ==")
    print(f"package: {PKG_NAME}")

    try:
        scripts = iter_console_scripts()
    except md.PackageNotFoundError:
        ui.error(f"找不到已安装包元数据：{PKG_NAME}")
        return 2

    if not scripts:
        print("未发现该工具集发布的命令入口点。")
        return 0

    rc = 0
    for name, value in scripts:
        if name == PKG_NAME:
            print(f"- {name}")
            print(f"  entry: {value}")
            print("  about: toolset entry (use `l10nbox help`)")
            continue

        try:
            mod = importlib.import_module(_ep_module_from_value(value))
        except ImportError as e:
            ui.error(f"{name}: 无法导入 {value}（{e}）")
            rc = 1
            continue

        raw = getattr(mod, "BOX_TOOL", None)
        if raw is None:
            print(f"- {name}")
            print(f"  entry: {value}")
            continue

        info = normalize_tool(raw)
        declared = str(info.get("name", "")).strip()
        if declared and declared != name:
            print(f"- {name}")
            ui.important(f"  BOX_TOOL.name='{declared}' 与入口命令名不一致")
            print(f"  entry: {value}")
            continue

        print(_format_tool_card(info, full))
        if full:
            for err in validate_tool(info):
                ui.important(f"  {err}")

    if not full:
        print("\n提示：使用 `l10nbox tools --full` 查看 options / examples 等详细信息。")
    return rc


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="l10nbox",
        description="l10nbox: 本地化工具集入口",
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("help", help="显示帮助")
    sp.set_defaults(handler=cmd_help)

    sp = sub.add_parser("doctor", help="诊断环境（python / 工具命令 / genstrings）")
    sp.set_defaults(handler=cmd_doctor)

    sp = sub.add_parser("version", help="显示版本")
    sp.set_defaults(handler=cmd_version)

    sp = sub.add_parser("tools", help="列出工具集中的工具与简介（读取 BOX_TOOL 标准信息）")
    sp.add_argument("--full", action="store_true", help="显示 options/examples 等详细信息")
    sp.set_defaults(handler=cmd_tools)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    return int(handler(parser, args))


if __name__ == "__main__":
    raise SystemExit(main())
