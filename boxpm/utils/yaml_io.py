"""YAML 配置读取与原子写入工具

集中管理配置文件的读取和文本文件的原子写入（.quark、metadata.json 共用）。
统一 encoding="utf-8"、空值保护、目录自动创建。
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 配置文件最大大小限制 (1MB)
MAX_YAML_SIZE = 1024 * 1024


def _default_file_mode() -> int:
    """新建文件的默认权限: 0666 去掉当前 umask"""
    mask = os.umask(0)
    os.umask(mask)
    return 0o666 & ~mask


def atomic_write(path: Path, content: str) -> None:
    """原子写入文件：先写临时文件再 rename，读者只会看到旧内容或新内容

    异常:
        OSError: 文件写入或移动失败
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp",
    )
    try:
        # newline="" 保持调用方给定的换行符原样写出；
        # surrogateescape 让以同样方式读入的非 UTF-8 字节原样写回
        with os.fdopen(
            fd, "w", encoding="utf-8", errors="surrogateescape", newline="",
        ) as f:
            f.write(content)
        # mkstemp 固定创建 0600 文件，替换前恢复目标文件权限
        if path.exists():
            shutil.copymode(str(path), tmp)
        else:
            os.chmod(tmp, _default_file_mode())
        os.replace(tmp, str(path))
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def load_yaml(path: str | Path) -> dict[str, Any]:
    """安全读取 YAML 文件

    返回:
        dict: 解析后的字典。文件不存在、为空或内容不是字典时返回空字典

    异常:
        yaml.YAMLError: YAML 格式错误
        ValueError: 文件过大
    """
    p = Path(path)
    if not p.exists():
        return {}

    file_size = p.stat().st_size
    if file_size > MAX_YAML_SIZE:
        raise ValueError(
            f"YAML file too large: {p} ({file_size} bytes, limit {MAX_YAML_SIZE})"
        )

    try:
        with open(p, encoding="utf-8") as f:
            result = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("解析 YAML 文件失败: %s, 错误: %s", path, e)
        raise

    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，返回空字典",
            path, type(result).__name__,
        )
        return {}
    return result

