"""集中配置管理

替代各模块散落的默认常量，提供统一的配置入口。
加载顺序: 内置默认值 → ~/.box/config.yml → 环境变量覆盖。
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml

from boxpm.core.exceptions import ConfigError
from boxpm.core.platform import OS, current_os
from boxpm.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL = (
    "https://raw.githubusercontent.com/neutron-modules/nur/refs/heads/main"
)


def default_home_dir(env: dict[str, str] | None = None, host: OS | None = None) -> str:
    """全局存储的根目录: Windows 取 USERPROFILE，其他取 HOME"""
    env = os.environ if env is None else env
    host = host or current_os()
    key = "USERPROFILE" if host is OS.WINDOWS else "HOME"
    home = env.get(key, "")
    if home:
        return home
    return str(Path.home())


@dataclass
class Config:
    """Box 全局配置"""

    # 注册表
    registry_url: str = DEFAULT_REGISTRY_URL

    # 存储
    home_dir: str = field(default_factory=default_home_dir)
    local_store: str = ".box/modules"

    # 构建
    build_output_dir: str = "box-modules"
    default_build_version: str = "1.0.0"
    shim_path: str = ""

    # 放不到字段里的配置项
    extra: dict = field(default_factory=dict)

    @property
    def global_store(self) -> Path:
        return Path(self.home_dir) / ".box" / "modules"

    @classmethod
    def from_file(cls, path: str | Path | None = None) -> Config:
        """从 YAML 文件加载配置，不存在则使用默认值，随后应用环境变量覆盖"""
        cfg_path = Path(path) if path else Path(default_home_dir()) / ".box" / "config.yml"
        try:
            data = load_yaml(cfg_path)
        except (ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Invalid config file {cfg_path}: {e}") from e
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        cfg.apply_env()
        return cfg

    def apply_env(self, env: dict[str, str] | None = None) -> None:
        env = os.environ if env is None else env
        if env.get("BOX_REGISTRY_URL"):
            self.registry_url = env["BOX_REGISTRY_URL"]
        if env.get("BOX_NATIVE_SHIM"):
            self.shim_path = env["BOX_NATIVE_SHIM"]

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值 + 环境变量覆盖）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
        _current.apply_env()
    return _current


def init_config(path: str | Path | None = None) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path or "~/.box/config.yml")
    return _current


def reset_config() -> None:
    """丢弃全局配置，下次 get_config() 重新构造"""
    global _current  # noqa: PLW0603
    _current = None
