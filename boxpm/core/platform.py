"""宿主平台识别

OS 建模为封闭的枚举值，扩展名 / 清单 entry 字段 / 显示名统一查表，
其他组件不直接判断 sys.platform。
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum


class OS(Enum):
    LINUX = "linux"
    WINDOWS = "windows"
    MACOS = "macos"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PlatformTraits:
    """单个平台的派生属性"""

    library_extension: str
    entry_key: str
    display_name: str


_TRAITS: dict[OS, PlatformTraits] = {
    OS.LINUX: PlatformTraits(".so", "entry-linux", "Linux"),
    OS.WINDOWS: PlatformTraits(".dll", "entry-win", "Windows"),
    OS.MACOS: PlatformTraits(".dylib", "entry-mac", "macOS"),
    OS.UNKNOWN: PlatformTraits(".so", "entry-linux", "Unknown"),
}


def detect_os(platform_id: str) -> OS:
    """把 sys.platform 形式的标识映射到 OS"""
    if platform_id.startswith(("win32", "cygwin", "msys")):
        return OS.WINDOWS
    if platform_id.startswith("darwin"):
        return OS.MACOS
    if platform_id.startswith("linux"):
        return OS.LINUX
    return OS.UNKNOWN


_CURRENT = detect_os(sys.platform)


def current_os() -> OS:
    return _CURRENT


def traits(host: OS | None = None) -> PlatformTraits:
    return _TRAITS[host or _CURRENT]


def library_extension(host: OS | None = None) -> str:
    """共享库扩展名: .so / .dll / .dylib"""
    return traits(host).library_extension


def entry_key(host: OS | None = None) -> str:
    """模块清单中当前平台对应的二进制入口字段名"""
    return traits(host).entry_key


def os_string(host: OS | None = None) -> str:
    return traits(host).display_name


def is_linux() -> bool:
    return _CURRENT is OS.LINUX


def is_windows() -> bool:
    return _CURRENT is OS.WINDOWS


def is_macos() -> bool:
    return _CURRENT is OS.MACOS
