from __future__ import annotations

import sys
from typing import Iterable, Optional

from rich.console import Console
from rich.theme import Theme


# ----------------------------
# 统一的控制台输出（✅ / ⚠️ / ❌ 前缀 + rich 主题）
# ----------------------------

_THEME = Theme(
    {
        "msg": "default",
        "ok": "bold green",
        "warn": "bold yellow",
        "error": "bold red",
        "meta": "dim",
    }
)

_console: Optional[Console] = None


def get_console() -> Console:
    global _console
    if _console is None:
        _console = Console(theme=_THEME, highlight=False, soft_wrap=True)
    return _console


def _emit(text: str, style: str) -> None:
    # markup=False：diff 行里的 [Int] 之类不能被当成 rich 标签
    get_console().print(text, style=style, markup=False)


def message(text: str) -> None:
    _emit(text, "msg")


def success(text: str) -> None:
    _emit(f"✅ {text}", "ok")


def important(text: str) -> None:
    _emit(f"⚠️ {text}", "warn")


def error(text: str) -> None:
    _emit(f"❌ {text}", "error")


def command_output(lines: Iterable[str]) -> None:
    for line in lines:
        _emit(f"  {line}", "meta")


def confirm(prompt: str, *, default: bool = False) -> bool:
    """y/n 确认；非交互环境（CI）直接返回 default。"""
    if not sys.stdin.isatty():
        return default
    hint = "[Y/n]" if default else "[y/N]"
    while True:
        try:
            ans = input(f"{prompt} {hint}: ").strip().lower()
        except EOFError:
            return default
        if ans == "":
            return default
        if ans in ("y", "yes"):
            return True
        if ans in ("n", "no"):
            return False
        print("请输入 y 或 n")
