from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .checker import DEFAULT_BASE_LANG, DEFAULT_STRINGS_FILENAME
from .swiftgen import SWIFTGEN_VERSION, default_install_path


CONFIG_FILE = "strings_kit.yaml"


# =========================
# Errors
# =========================

class ConfigError(RuntimeError):
    """配置错误（带解决建议）"""
    pass


# =========================
# Models
# =========================

@dataclass(frozen=True)
class LintOptions:
    input_dir: Optional[Path] = None
    base_lang: str = DEFAULT_BASE_LANG
    strings_filename: str = DEFAULT_STRINGS_FILENAME
    check_duplicate_keys: bool = True
    check_extra_keys: bool = False
    abort_on_violations: bool = True
    allow_retry: bool = False


@dataclass(frozen=True)
class MergeOptions:
    paths: Tuple[Path, ...] = field(default_factory=tuple)
    destination: Optional[Path] = None


@dataclass(frozen=True)
class GenerateOptions:
    paths: Tuple[Path, ...] = field(default_factory=tuple)
    output_dir: Optional[Path] = None
    quiet: bool = True
    swiftui: bool = True


@dataclass(frozen=True)
class SwiftGenOptions:
    install_path: Path
    version: str = SWIFTGEN_VERSION


@dataclass(frozen=True)
class StringsKitConfig:
    project_root: Path
    lint: LintOptions
    merge: MergeOptions
    generate: GenerateOptions
    swiftgen: SwiftGenOptions
    source: Optional[Path] = None  # 读取的配置文件；None 表示全部默认值


# =========================
# Helpers
# =========================

def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    v = raw.get(name)
    if v is None:
        return {}
    if not isinstance(v, dict):
        raise ConfigError(f"{name} 必须是 object")
    return v


def _bool(sec: Dict[str, Any], sec_name: str, key: str, default: bool) -> bool:
    v = sec.get(key, default)
    if v is None:
        return default
    if not isinstance(v, bool):
        raise ConfigError(f"{sec_name}.{key} 必须是 true/false（实际：{v!r}）")
    return v


def _str(sec: Dict[str, Any], sec_name: str, key: str, default: str) -> str:
    v = sec.get(key, default)
    if v is None:
        return default
    s = str(v).strip()
    if not s:
        raise ConfigError(f"{sec_name}.{key} 不能为空字符串")
    return s


def resolve_path(project_root: Path, value: Any) -> Path:
    """相对路径按 project_root 解析；绝对路径原样返回。"""
    p = Path(str(value)).expanduser()
    if not p.is_absolute():
        p = project_root / p
    return p.resolve()


def _opt_path(project_root: Path, sec: Dict[str, Any], key: str) -> Optional[Path]:
    v = sec.get(key)
    if v is None or str(v).strip() == "":
        return None
    return resolve_path(project_root, v)


def _path_list(project_root: Path, sec: Dict[str, Any], sec_name: str, key: str) -> Tuple[Path, ...]:
    v = sec.get(key) or []
    if isinstance(v, str):
        v = [v]
    if not isinstance(v, list):
        raise ConfigError(f"{sec_name}.{key} 必须是字符串数组")
    out: List[Path] = []
    for i, item in enumerate(v):
        if not isinstance(item, str) or not item.strip():
            raise ConfigError(f"{sec_name}.{key}[{i}] 必须是非空字符串")
        out.append(resolve_path(project_root, item))
    return tuple(out)


# =========================
# load / parse
# =========================

def default_config(project_root: Path) -> StringsKitConfig:
    return parse_config_dict({}, project_root=project_root)


def parse_config_dict(raw: Dict[str, Any], *, project_root: Path) -> StringsKitConfig:
    project_root = project_root.resolve()

    lint = _section(raw, "lint")
    merge = _section(raw, "merge")
    generate = _section(raw, "generate")
    swiftgen = _section(raw, "swiftgen")

    version = _str(swiftgen, "swiftgen", "version", SWIFTGEN_VERSION)
    install_path = _opt_path(project_root, swiftgen, "install_path") or (project_root / default_install_path(version))

    return StringsKitConfig(
        project_root=project_root,
        lint=LintOptions(
            input_dir=_opt_path(project_root, lint, "input_dir"),
            base_lang=_str(lint, "lint", "base_lang", DEFAULT_BASE_LANG),
            strings_filename=_str(lint, "lint", "strings_filename", DEFAULT_STRINGS_FILENAME),
            check_duplicate_keys=_bool(lint, "lint", "check_duplicate_keys", True),
            check_extra_keys=_bool(lint, "lint", "check_extra_keys", False),
            abort_on_violations=_bool(lint, "lint", "abort_on_violations", True),
            allow_retry=_bool(lint, "lint", "allow_retry", False),
        ),
        merge=MergeOptions(
            paths=_path_list(project_root, merge, "merge", "paths"),
            destination=_opt_path(project_root, merge, "destination"),
        ),
        generate=GenerateOptions(
            paths=_path_list(project_root, generate, "generate", "paths") or (project_root,),
            output_dir=_opt_path(project_root, generate, "output_dir"),
            quiet=_bool(generate, "generate", "quiet", True),
            swiftui=_bool(generate, "generate", "swiftui", True),
        ),
        swiftgen=SwiftGenOptions(install_path=install_path.resolve(), version=version),
    )


def load_config(cfg_path: Path, *, project_root: Path, required: bool = False) -> StringsKitConfig:
    """
    - 文件不存在：required=False 时使用默认值（全部走 CLI 参数）；required=True 时报错
    - YAML 不合法 / 字段类型不对：ConfigError（附解决方法）
    """
    if not cfg_path.exists():
        if required:
            raise ConfigError(
                f"配置文件不存在：{cfg_path}\n"
                f"解决方法：运行 `l10nbox_strings init` 生成默认配置。"
            )
        return default_config(project_root)

    try:
        raw = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(
            f"配置文件无法解析为 YAML：{cfg_path}\n"
            f"原因：{e}\n"
            f"解决方法：修复 YAML 格式或删除后运行 `l10nbox_strings init` 重新生成。"
        ) from None

    if not isinstance(raw, dict):
        raise ConfigError(f"配置文件格式错误：顶层必须是 mapping/object：{cfg_path}")

    try:
        cfg = parse_config_dict(raw, project_root=project_root)
    except ConfigError as e:
        raise ConfigError(
            f"配置文件校验失败：{cfg_path}\n"
            f"原因：{e}\n"
            f"解决方法：修复配置字段/类型，或运行 `l10nbox_strings init` 重新生成。"
        ) from None

    return StringsKitConfig(
        project_root=cfg.project_root,
        lint=cfg.lint,
        merge=cfg.merge,
        generate=cfg.generate,
        swiftgen=cfg.swiftgen,
        source=cfg_path.resolve(),
    )


# =========================
# init：带注释的模板
# =========================

def generate_commented_yaml_template(*, input_dir: str = "Resources", base_lang: str = DEFAULT_BASE_LANG) -> str:
    """手写 YAML 文本（而不是 yaml.dump），保证注释可控、可读。"""
    return (
        "# strings_kit.yaml\n"
        "# ---------------------------------------------\n"
        "# iOS/macOS .strings 校验 / 合并 / genstrings 配置\n"
        "# 相对路径一律相对 --project-root（默认当前目录）\n"
        "# 命令行参数优先级高于本文件\n"
        "# ---------------------------------------------\n\n"
        "# lint：以 base_lang 为准，检查其它语言的缺失 key / 占位符 / 重复 key\n"
        "lint:\n"
        "  # *.lproj 所在目录\n"
        f"  input_dir: {input_dir}\n"
        "  # 基准语言（<base_lang>.lproj）\n"
        f"  base_lang: {base_lang}\n"
        f"  strings_filename: {DEFAULT_STRINGS_FILENAME}\n"
        "  # 检测同一文件内重复定义的 key（只对 ASCII-plist 文本格式生效）\n"
        "  check_duplicate_keys: true\n"
        "  # 报告 base 中不存在的多余 key（默认关闭：语言文件是 base 的超集是允许的）\n"
        "  check_extra_keys: false\n"
        "  # 有违规时以非 0 退出（CI 中中止流水线）\n"
        "  abort_on_violations: true\n"
        "  # 有违规时提示手动修复后重试（仅交互终端）\n"
        "  allow_retry: false\n\n"
        "# merge：把多个 .strings 合并成一个（后面的文件覆盖前面的同名 key）\n"
        "merge:\n"
        "  paths: []\n"
        "  # 为空则原地写回 paths 的第一个文件\n"
        "  destination:\n\n"
        "# generate：调用 genstrings 从 .m / .swift 源码提取字符串\n"
        "generate:\n"
        "  paths:\n"
        "    - .\n"
        "  output_dir:\n"
        "  quiet: true\n"
        "  swiftui: true\n\n"
        "# swiftgen：安装位置与版本（install-swiftgen / doctor 使用）\n"
        "swiftgen:\n"
        f"  version: {SWIFTGEN_VERSION}\n"
        f"  install_path: {default_install_path(SWIFTGEN_VERSION).as_posix()}\n"
    )


def init_config(cfg_path: Path, *, project_root: Path) -> bool:
    """不存在则生成模板并返回 True；已存在只做校验并返回 False。"""
    if cfg_path.exists():
        load_config(cfg_path, project_root=project_root, required=True)
        return False
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    cfg_path.write_text(generate_commented_yaml_template(), encoding="utf-8")
    load_config(cfg_path, project_root=project_root, required=True)
    return True
