"""核心数据模型

NUR 清单模型（GitRef / VersionMetadata / ModuleMetadata）、
本地安装记录（InstalledModule）以及构建 / 安装结果集中定义于此。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from boxpm.core.platform import OS, entry_key

# 清单中的平台入口字段 -> VersionMetadata 属性
ENTRY_FIELDS = (
    ("entry-linux", "entry_linux"),
    ("entry-win", "entry_win"),
    ("entry-mac", "entry_mac"),
)
ENTRY_ATTRS = dict(ENTRY_FIELDS)

# =========================================================================
# NUR 清单模型
# =========================================================================


@dataclass
class GitRef:
    """源码仓库引用；url 为空表示该版本没有源码仓库"""

    url: str = ""
    ref: str = ""  # 分支 / tag / commit


@dataclass
class VersionMetadata:
    """单个版本的元信息，所有字段可选"""

    description: str = ""
    entry_linux: str = ""
    entry_win: str = ""
    entry_mac: str = ""
    git: GitRef = field(default_factory=GitRef)
    deps: dict[str, str] = field(default_factory=dict)  # 依赖名 -> 版本

    def entry_for(self, host: OS | None = None) -> str:
        """当前平台的预编译二进制 URL（未知平台按 Linux 处理）"""
        return getattr(self, ENTRY_ATTRS[entry_key(host)])


@dataclass
class ModuleMetadata:
    """模块清单（module.json）

    latest 非空时必须是 versions 的键；该约束在使用时检查，解析时不强制。
    """

    name: str
    description: str = ""
    author: str = ""
    license: str = ""
    repository: str = ""
    latest: str = ""
    versions: dict[str, VersionMetadata] = field(default_factory=dict)

    @property
    def found(self) -> bool:
        """清单是否成功拉取并解析（name 之外至少有一项内容）"""
        return bool(
            self.versions or self.latest or self.description
            or self.author or self.license or self.repository
        )


# =========================================================================
# 本地安装记录
# =========================================================================


class Scope(str, Enum):
    """安装位置：全局 (~/.box/modules) 或项目本地 (./.box/modules)"""

    GLOBAL = "global"
    LOCAL = "local"


@dataclass
class InstalledModule:
    """<store>/<name>/metadata.json 的内容，键顺序固定"""

    name: str
    version: str
    description: str
    platform: str
    library: str

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "platform": self.platform,
            "library": self.library,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InstalledModule:
        return cls(
            name=str(data.get("name", "")),
            version=str(data.get("version", "")),
            description=str(data.get("description", "")),
            platform=str(data.get("platform", "")),
            library=str(data.get("library", "")),
        )


# =========================================================================
# 操作结果
# =========================================================================


@dataclass
class BuildResult:
    """原生模块构建结果"""

    module_name: str
    success: bool
    library_path: str = ""
    metadata_path: str = ""
    command: str = ""
    message: str = ""
    duration: float = 0.0


@dataclass
class InstallResult:
    """安装 / 更新结果"""

    name: str
    success: bool
    version: str = ""
    path: str = ""
    method: str = ""  # "binary" | "source"
    message: str = ""
    installed_deps: list[str] = field(default_factory=list)
