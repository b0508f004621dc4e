"""构建命令合成

两套模板，均以 argv 列表生成，不做 shell 拼接:

GCC/Clang (Linux / macOS / MINGW):
    <cc> -std=c++17 -fPIC -shared -I<dir>... <source> <shim> -o <out>
         [-L<rt>/build -Wl,-rpath,<rt>/build -lneutron_runtime]
    Windows 下省略 -Wl,-rpath。

MSVC:
    cl /nologo /std:c++17 /EHsc /I<dir>... <source> <shim> /LD /MD /Fe:<out>
       /link [/DEF:<source_dir>/<name>.def]

cl 不在 PATH 时整条命令包装为
    cmd /c ""<vcvarsall.bat>" x64 >nul 2>&1 && <原命令>"
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from boxpm.core.platform import OS


@dataclass
class BuildCommand:
    """一条待执行的构建命令"""

    argv: list[str]
    family: str  # "gcc" | "msvc"
    wrapped: str = ""

    def to_exec(self) -> str | list[str]:
        return self.wrapped or self.argv

    def render(self) -> str:
        return self.wrapped or subprocess.list2cmdline(self.argv)


def gcc_command(
    compiler: str,
    include_dirs: list[Path],
    source: Path,
    shim: Path,
    output: Path,
    runtime_lib_dir: Path | None,
    host: OS,
) -> BuildCommand:
    argv = [compiler, "-std=c++17", "-fPIC", "-shared"]
    argv += [f"-I{d}" for d in include_dirs]
    argv += [str(source), str(shim), "-o", str(output)]
    if runtime_lib_dir is not None:
        argv.append(f"-L{runtime_lib_dir}")
        if host is not OS.WINDOWS:
            argv.append(f"-Wl,-rpath,{runtime_lib_dir}")
        argv.append("-lneutron_runtime")
    return BuildCommand(argv=argv, family="gcc")


def msvc_command(
    include_dirs: list[Path],
    source: Path,
    shim: Path,
    output: Path,
    def_file: Path | None,
) -> BuildCommand:
    argv = ["cl", "/nologo", "/std:c++17", "/EHsc"]
    argv += [f"/I{d}" for d in include_dirs]
    argv += [str(source), str(shim), "/LD", "/MD", f"/Fe:{output}", "/link"]
    if def_file is not None:
        argv.append(f"/DEF:{def_file}")
    return BuildCommand(argv=argv, family="msvc")


def wrap_with_vcvars(command: BuildCommand, vcvars: str) -> BuildCommand:
    inner = subprocess.list2cmdline(command.argv)
    wrapped = f'cmd /c ""{vcvars}" x64 >nul 2>&1 && {inner}"'
    return BuildCommand(argv=command.argv, family=command.family, wrapped=wrapped)
