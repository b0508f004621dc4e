"""统一异常体系

所有业务异常继承 BoxError。组件内部抛出，公共操作边界处转换为
结果对象（BuildResult / InstallResult / bool），CLI 据此决定退出码。
"""

from __future__ import annotations


class BoxError(Exception):
    """Box 基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(BoxError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(BoxError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class RegistryError(BoxError):
    """NUR 索引或模块清单拉取失败"""

    code = "REGISTRY_ERROR"


class ModuleLookupError(BoxError):
    """模块不在 NUR 索引中，或当前平台没有可用的产物"""

    code = "MODULE_NOT_FOUND"


class VersionNotFoundError(BoxError):
    """请求的版本不在模块清单的 versions 中"""

    code = "VERSION_NOT_FOUND"


class ToolchainError(BoxError):
    """编译器、源文件、shim 等构建前置条件缺失"""

    code = "TOOLCHAIN_ERROR"


class BuildError(BoxError):
    """编译命令返回非零"""

    code = "BUILD_ERROR"


class ExecutionError(BoxError):
    """子进程执行失败"""

    code = "EXECUTION_ERROR"


class InstallError(BoxError):
    """安装过程中的文件系统或下载失败"""

    code = "INSTALL_ERROR"
