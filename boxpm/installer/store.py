"""模块存储目录

两个存储位置，每次操作二选一:
- 全局: ~/.box/modules/        (Windows: %USERPROFILE%\\.box\\modules\\)
- 本地: ./.box/modules/

每个已安装模块占一个子目录 <store>/<name>/，内含共享库和 metadata.json。
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import stat
import sys
from pathlib import Path

from boxpm.builder.builder import METADATA_FILE
from boxpm.core.exceptions import ValidationError
from boxpm.core.models import InstalledModule, Scope

logger = logging.getLogger(__name__)

# 模块名即存储下的目录名，不允许路径分隔符
_SAFE_NAME_RE = re.compile(r"[a-zA-Z0-9_.+\-]+")


def validate_module_name(name: str) -> str:
    """校验模块名可以安全地作为 <store>/<name> 使用

    Raises:
        ValidationError: 空名、"."、".."，或含 / \\ 等非法字符
    """
    if name in (".", "..") or not _SAFE_NAME_RE.fullmatch(name):
        raise ValidationError(f"Invalid module name: {name!r}")
    return name


def _make_writable(func, path, _exc) -> None:  # type: ignore[no-untyped-def]
    # git 对象文件在 Windows 上是只读的，去掉只读位后重试
    os.chmod(path, stat.S_IWRITE)
    func(path)


def remove_tree(path: Path) -> bool:
    """递归删除目录，失败记录告警并返回 False"""
    if not path.exists():
        return True
    try:
        if sys.version_info >= (3, 12):
            shutil.rmtree(path, onexc=_make_writable)
        else:
            shutil.rmtree(path, onerror=_make_writable)
    except OSError as e:
        logger.warning("删除目录失败: %s (%s)", path, e)
        return False
    return True


class Store:
    """全局 / 本地模块存储"""

    def __init__(
        self,
        global_dir: str | Path | None = None,
        local_dir: str | Path | None = None,
    ) -> None:
        if global_dir is None or local_dir is None:
            from boxpm.core.config import get_config
            cfg = get_config()
            global_dir = cfg.global_store if global_dir is None else global_dir
            local_dir = cfg.local_store if local_dir is None else local_dir
        self.global_dir = Path(global_dir)
        self.local_dir = Path(local_dir)

    def root(self, scope: Scope) -> Path:
        return self.global_dir if scope is Scope.GLOBAL else self.local_dir

    def module_dir(self, name: str, scope: Scope) -> Path:
        return self.root(scope) / validate_module_name(name)

    def is_installed(self, name: str, scope: Scope) -> bool:
        return self.module_dir(name, scope).is_dir()

    def list_installed(self, scope: Scope) -> list[str]:
        """列出存储中的模块目录（忽略隐藏目录）"""
        root = self.root(scope)
        if not root.is_dir():
            return []
        return sorted(
            d.name for d in root.iterdir()
            if d.is_dir() and not d.name.startswith(".")
            and _SAFE_NAME_RE.fullmatch(d.name)
        )

    def read_metadata(self, name: str, scope: Scope) -> InstalledModule | None:
        path = self.module_dir(name, scope) / METADATA_FILE
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug("读取 %s 失败: %s", path, e)
            return None
        if not isinstance(data, dict):
            return None
        return InstalledModule.from_dict(data)

    def remove(self, name: str, scope: Scope) -> bool:
        return remove_tree(self.module_dir(name, scope))
