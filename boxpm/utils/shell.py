"""子进程执行工具: 统一 git / 编译器调用

通过 CommandExecutor 协议抽象子进程执行，方便测试替换和跨平台适配。
命令一律以 argv 列表传递，不经过 shell 拼接。
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Protocol

from boxpm.core.exceptions import ExecutionError

logger = logging.getLogger(__name__)


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议: 抽象子进程调用

    测试时可注入 fake 实现，无需真实的 git / 编译器。
    """

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """执行命令并返回结果"""
        ...


# =========================================================================
# 默认实现: 本地执行器
# =========================================================================

class LocalExecutor:
    """本地子进程执行器（默认实现）

    字符串命令在 POSIX 上按 shlex 拆分；在 Windows 上原样交给
    CreateProcess（vcvars 包装后的 ``cmd /c "..."`` 依赖这一点）。
    """

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        if isinstance(cmd, str) and os.name != "nt":
            args: str | list[str] = shlex.split(cmd)
        else:
            args = cmd
        r = subprocess.run(
            args, capture_output=True, text=True, errors="replace",
            cwd=cwd, env=env, check=False, timeout=timeout,
        )
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )


# =========================================================================
# 全局默认执行器（可替换）
# =========================================================================

_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor


def format_cmd(cmd: str | list[str]) -> str:
    """把命令渲染成便于日志阅读的字符串"""
    if isinstance(cmd, str):
        return cmd
    if os.name == "nt":
        return subprocess.list2cmdline(cmd)
    return shlex.join(cmd)


def run_cmd(
    cmd: str | list[str], *, cwd: str = ".",
    env: dict[str, str] | None = None,
    label: str = "cmd",
    executor: CommandExecutor | None = None,
) -> CommandResult:
    """执行命令，失败抛 ExecutionError

    Args:
        cmd: argv 列表（或 Windows 下需原样传递的命令字符串）
        cwd: 工作目录
        env: 环境变量（不传则继承当前进程）
        label: 日志 / 错误信息标签
        executor: 指定执行器，默认使用全局执行器
    """
    runner = executor or get_executor()
    logger.info("  %s: %s (cwd=%s)", label, format_cmd(cmd), cwd)
    try:
        r = runner.execute(cmd, cwd=cwd, env=env)
    except OSError as e:
        raise ExecutionError(f"{label} failed to start: {e}") from e
    if r.returncode != 0:
        detail = (r.stderr or r.stdout).strip()[:500]
        raise ExecutionError(f"{label} failed (rc={r.returncode}): {detail}")
    return r
