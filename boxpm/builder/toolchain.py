"""工具链与 Neutron 运行时发现

职责:
- 编译器选择（MSVC / MSYS2 g++ / clang++ / g++）
- 运行时根目录查找（以 include/core/neutron.h 为哨兵）
- native_shim.cpp 查找（运行时目录、nt-box 布局，最后是随包分发的垫片）
- vcvarsall.bat 探测（cl 不在 PATH 时用于准备 MSVC 环境）

所有函数都显式接收 host / env，便于在任意平台上测试其他平台的行为。
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from importlib import resources
from pathlib import Path, PureWindowsPath

from boxpm.core.platform import OS

SENTINEL_HEADERS = ("include/core/neutron.h", "include/neutron.h")
SHIM_RELATIVE = ("src/native_shim.cpp", "nt-box/src/native_shim.cpp")
SHIM_FALLBACKS = ("nt-box/src/native_shim.cpp", "../nt-box/src/native_shim.cpp")
# 随 boxpm 包分发的垫片，作为最后的候选
BUNDLED_SHIM = "native_shim.cpp"

_MSYS_PREFIXES = ("MINGW", "MSYS", "UCRT", "CLANG")

# 新版本优先；"18" 为 VS 新版的目录命名
_VS_VERSIONS = ("18", "2025", "2022", "2019")
_VS_EDITIONS = ("Community", "Professional", "Enterprise", "BuildTools")

Which = Callable[[str], str | None]


def is_msys(env: Mapping[str, str]) -> bool:
    """MSYSTEM 表明当前处于 MSYS2 / MINGW 环境"""
    msystem = env.get("MSYSTEM", "").upper()
    return msystem.startswith(_MSYS_PREFIXES)


def select_compiler(host: OS, env: Mapping[str, str], which: Which) -> str:
    if host is OS.WINDOWS:
        return "g++" if is_msys(env) else "cl"
    return "clang++" if which("clang++") else "g++"


def is_msvc(compiler: str) -> bool:
    return compiler == "cl"


def runtime_candidates(host: OS, env: Mapping[str, str]) -> list[str]:
    """运行时根目录候选，按优先级排列"""
    candidates: list[str] = []
    if env.get("NEUTRON_HOME"):
        candidates.append(env["NEUTRON_HOME"])

    if host is OS.WINDOWS:
        candidates += ["C:\\Program Files\\Neutron", "C:\\Neutron"]
        if env.get("MSYSTEM"):
            candidates += ["/mingw64/neutron", "/usr/local/neutron", "/opt/neutron"]
    else:
        candidates += ["/usr/local/neutron", "/opt/neutron"]
        if env.get("HOME"):
            candidates.append(os.path.join(env["HOME"], ".neutron"))

    candidates += [".", ".."]
    return candidates


def find_runtime_root(host: OS, env: Mapping[str, str]) -> Path | None:
    for candidate in runtime_candidates(host, env):
        root = Path(candidate)
        if any((root / header).is_file() for header in SENTINEL_HEADERS):
            return root
    return None


def runtime_include_dirs(root: Path) -> list[Path]:
    dirs = [d for d in (root / "include" / "core", root / "include") if d.is_dir()]
    return dirs or [root / "include"]


def runtime_library_dir(root: Path) -> Path:
    return root / "build"


def bundled_shim() -> Path:
    return Path(str(resources.files("boxpm.builder").joinpath(BUNDLED_SHIM)))


def shim_candidates(host: OS, env: Mapping[str, str]) -> list[Path]:
    candidates = [
        Path(root) / rel
        for root in runtime_candidates(host, env)
        for rel in SHIM_RELATIVE
    ]
    candidates += [Path(p) for p in SHIM_FALLBACKS]
    candidates.append(bundled_shim())
    return candidates


def find_native_shim(host: OS, env: Mapping[str, str], override: str = "") -> Path | None:
    if override:
        path = Path(override)
        return path if path.is_file() else None
    for candidate in shim_candidates(host, env):
        if candidate.is_file():
            return candidate
    return None


def vcvars_candidates(env: Mapping[str, str]) -> list[str]:
    roots = [
        env.get("ProgramFiles", "C:\\Program Files"),
        env.get("ProgramFiles(x86)", "C:\\Program Files (x86)"),
    ]
    return [
        str(PureWindowsPath(
            root, "Microsoft Visual Studio", version, edition,
            "VC", "Auxiliary", "Build", "vcvarsall.bat",
        ))
        for version in _VS_VERSIONS
        for root in roots
        for edition in _VS_EDITIONS
    ]


def find_vcvars(
    env: Mapping[str, str],
    exists: Callable[[str], bool] = os.path.isfile,
) -> str | None:
    for candidate in vcvars_candidates(env):
        if exists(candidate):
            return candidate
    return None
