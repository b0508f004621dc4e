"""原生模块构建

- toolchain.py: 编译器 / 运行时 / shim / vcvars 发现
- command.py: GCC/Clang 与 MSVC 构建命令合成
- builder.py: Builder 公开接口与 metadata.json 输出
"""

from boxpm.builder.builder import Builder, write_module_metadata
from boxpm.builder.command import BuildCommand

__all__ = ["Builder", "BuildCommand", "write_module_metadata"]
