"""原生模块构建器

职责:
- 查找模块源文件与 native shim
- 按当前平台合成并执行编译命令
- 在产物旁写出 metadata.json

buildNative 与 build_from_source 的区别只在输出目录:
前者输出到 <output_dir>/<name>/，后者直接输出到调用方给定的安装目录。
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import time
from collections.abc import Mapping
from pathlib import Path

from boxpm.builder.command import BuildCommand, gcc_command, msvc_command, wrap_with_vcvars
from boxpm.builder.toolchain import (
    Which,
    find_native_shim,
    find_runtime_root,
    find_vcvars,
    is_msvc,
    runtime_include_dirs,
    runtime_library_dir,
    select_compiler,
)
from boxpm.core.exceptions import BoxError, BuildError, ExecutionError, ToolchainError
from boxpm.core.models import BuildResult, InstalledModule
from boxpm.core.platform import OS, current_os, library_extension, os_string
from boxpm.utils.shell import CommandExecutor, run_cmd
from boxpm.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

SOURCE_CANDIDATES = (
    "native.cpp",
    "src/native.cpp",
    "src/main.cpp",
    "source/native.cpp",
    "lib/native.cpp",
)

METADATA_FILE = "metadata.json"

MSVC_GUIDANCE = (
    "MSVC compiler not found. Install Visual Studio (Community, Professional, "
    "Enterprise) or the Build Tools with the 'Desktop development with C++' "
    "workload, run from a Developer Command Prompt, or use MSYS2/MINGW64 with g++."
)


def default_description(name: str) -> str:
    return f"{name} native module for Neutron"


def write_module_metadata(
    name: str, version: str, output_dir: Path,
    description: str = "", host: OS | None = None,
) -> Path:
    """写出 metadata.json，键顺序: name, version, description, platform, library"""
    record = InstalledModule(
        name=name,
        version=version,
        description=description or default_description(name),
        platform=os_string(host),
        library=f"{name}{library_extension(host)}",
    )
    path = output_dir / METADATA_FILE
    atomic_write(path, json.dumps(record.to_dict(), indent=2, ensure_ascii=False) + "\n")
    return path


class Builder:
    """原生模块构建器"""

    def __init__(
        self,
        host: OS | None = None,
        env: Mapping[str, str] | None = None,
        executor: CommandExecutor | None = None,
        which: Which | None = None,
        shim_path: str = "",
    ) -> None:
        if not shim_path:
            from boxpm.core.config import get_config
            shim_path = get_config().shim_path
        self.host = host or current_os()
        self._env_override = env is not None
        self.env: Mapping[str, str] = os.environ if env is None else env
        self.executor = executor
        self.which: Which = which or shutil.which
        self.shim_path = shim_path

    # ------------------------------------------------------------------
    # 发现
    # ------------------------------------------------------------------

    def compiler(self) -> str:
        return select_compiler(self.host, self.env, self.which)

    def runtime_root(self) -> Path | None:
        return find_runtime_root(self.host, self.env)

    def include_paths(self, source_path: Path | None = None) -> list[Path]:
        paths: list[Path] = []
        root = self.runtime_root()
        if root is not None:
            paths += runtime_include_dirs(root)
        if source_path is not None and (source_path / "include").is_dir():
            paths.append(source_path / "include")
        return paths

    @staticmethod
    def find_source(source_path: Path) -> Path | None:
        for rel in SOURCE_CANDIDATES:
            candidate = source_path / rel
            if candidate.is_file():
                return candidate
        return None

    def find_shim(self) -> Path | None:
        return find_native_shim(self.host, self.env, self.shim_path)

    # ------------------------------------------------------------------
    # 命令合成
    # ------------------------------------------------------------------

    def generate_build_command(
        self, name: str, source_path: Path, output_path: Path,
    ) -> BuildCommand:
        """合成构建命令；前置条件缺失时抛 ToolchainError"""
        source = self.find_source(source_path)
        if source is None:
            raise ToolchainError(
                f"Source file not found: {source_path / SOURCE_CANDIDATES[0]} "
                f"(also tried {', '.join(SOURCE_CANDIDATES[1:])})"
            )
        shim = self.find_shim()
        if shim is None:
            raise ToolchainError(
                "Native shim not found (native_shim.cpp). Set NEUTRON_HOME to the "
                "Neutron source/installation root or BOX_NATIVE_SHIM to the file."
            )

        root = self.runtime_root()
        if root is None:
            logger.warning("未找到 Neutron 运行时 (NEUTRON_HOME)，不添加运行时头文件与库路径")
        include_dirs = self.include_paths(source_path)
        compiler = self.compiler()

        if self.host is OS.WINDOWS and is_msvc(compiler):
            def_file = source_path / f"{name}.def"
            cmd = msvc_command(
                include_dirs, source, shim, output_path,
                def_file if def_file.is_file() else None,
            )
            return self._prime_msvc(cmd)

        return gcc_command(
            compiler, include_dirs, source, shim, output_path,
            runtime_library_dir(root) if root is not None else None,
            self.host,
        )

    def _prime_msvc(self, cmd: BuildCommand) -> BuildCommand:
        """cl 不在 PATH 时用 vcvarsall.bat 包装命令"""
        if self.which("cl"):
            return cmd
        vcvars = find_vcvars(self.env)
        if vcvars is None:
            raise ToolchainError(MSVC_GUIDANCE)
        logger.info("使用 MSVC 环境脚本: %s", vcvars)
        return wrap_with_vcvars(cmd, vcvars)

    # ------------------------------------------------------------------
    # 构建
    # ------------------------------------------------------------------

    def build_native(
        self, module_name: str, source_path: str | Path,
        output_dir: str | Path, version: str,
    ) -> BuildResult:
        """构建到 <output_dir>/<name>/<name><ext>"""
        name = Path(module_name.replace("\\", "/")).name
        return self._build(name, Path(source_path), Path(output_dir) / name, version)

    def build_from_source(
        self, module_name: str, source_path: str | Path,
        install_dir: str | Path, version: str,
    ) -> BuildResult:
        """构建到调用方给定的安装目录（不再嵌套一层模块目录）"""
        return self._build(module_name, Path(source_path), Path(install_dir), version)

    def build_neutron(
        self, module_name: str, source_path: str | Path, output_dir: str | Path,
    ) -> BuildResult:
        return BuildResult(
            module_name=module_name, success=False,
            message="Neutron source builds not yet implemented",
        )

    def write_metadata(
        self, name: str, version: str, output_dir: str | Path, description: str = "",
    ) -> Path:
        return write_module_metadata(name, version, Path(output_dir), description, self.host)

    def _build(
        self, name: str, source_path: Path, target_dir: Path, version: str,
    ) -> BuildResult:
        logger.info(
            "构建原生模块: %s v%s (platform=%s)", name, version, os_string(self.host),
        )
        output = target_dir / f"{name}{library_extension(self.host)}"
        start = time.monotonic()
        try:
            cmd = self.generate_build_command(name, source_path, output)
            target_dir.mkdir(parents=True, exist_ok=True)
            self._execute(cmd)
            if not output.is_file():
                raise BuildError(f"✗ Build failed: compiler did not produce {output}")
            metadata = self.write_metadata(name, version, target_dir)
        except (BoxError, OSError) as e:
            logger.error("构建失败 %s: %s", name, e)
            return BuildResult(
                module_name=name, success=False,
                message=str(e), duration=time.monotonic() - start,
            )

        duration = time.monotonic() - start
        logger.info("构建完成: %s (%.1fs)", output, duration)
        return BuildResult(
            module_name=name, success=True,
            library_path=str(output), metadata_path=str(metadata),
            command=cmd.render(), message=f"✓ Built: {output}", duration=duration,
        )

    def _execute(self, cmd: BuildCommand) -> None:
        env = dict(self.env) if self._env_override else None
        try:
            run_cmd(cmd.to_exec(), env=env, label="build", executor=self.executor)
        except ExecutionError as e:
            raise BuildError(f"✗ Build failed: {e}") from e
