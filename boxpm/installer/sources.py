"""源码获取: git clone / checkout 与临时工作目录

临时目录固定为 <module_dir>/.tmpN，N 取不存在的最小非负整数，最多尝试 10 次。
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from boxpm.core.exceptions import ExecutionError, InstallError, ValidationError
from boxpm.utils.shell import CommandExecutor, run_cmd

logger = logging.getLogger(__name__)

MAX_TEMP_ATTEMPTS = 10
TEMP_PREFIX = ".tmp"

_SAFE_REF_RE = re.compile(r"[a-zA-Z0-9_./@+\-]+")


def allocate_temp_dir(parent: Path) -> Path:
    """在 parent 下创建唯一的 .tmpN 目录"""
    parent.mkdir(parents=True, exist_ok=True)
    for n in range(MAX_TEMP_ATTEMPTS):
        candidate = parent / f"{TEMP_PREFIX}{n}"
        try:
            candidate.mkdir()
        except FileExistsError:
            continue
        return candidate
    raise InstallError(f"Failed to create unique temp directory under {parent}")


class GitSource:
    """Git 仓库来源"""

    def __init__(self, executor: CommandExecutor | None = None) -> None:
        self.executor = executor

    def clone(self, url: str, dest: Path) -> None:
        logger.info("克隆源码仓库: %s -> %s", url, dest)
        try:
            run_cmd(
                ["git", "clone", "--", url, str(dest)],
                cwd=str(dest.parent), label="git clone", executor=self.executor,
            )
        except ExecutionError as e:
            raise InstallError(f"Failed to clone repository {url}: {e}") from e

    def checkout(self, repo: Path, ref: str) -> None:
        if ref.startswith("-") or not _SAFE_REF_RE.fullmatch(ref):
            raise ValidationError(f"Invalid git ref: {ref}")
        logger.info("检出版本: %s", ref)
        try:
            run_cmd(
                ["git", "checkout", ref],
                cwd=str(repo), label="git checkout", executor=self.executor,
            )
        except ExecutionError as e:
            raise InstallError(f"Failed to checkout version {ref}: {e}") from e
