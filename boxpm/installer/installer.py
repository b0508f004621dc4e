"""模块安装器

安装流程（严格按序执行）:
  1. 解析 name[@version]，拉取索引与模块清单，确定具体版本
  2. 安装该版本声明的直接依赖（不递归）
  3. 有 git.url → clone + checkout + 源码构建；否则下载当前平台的预编译二进制
  4. 写出 metadata.json
  5. 本地安装时更新项目清单 .quark

公开方法不抛异常，失败通过 InstallResult.success / bool 返回。
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from boxpm.builder.builder import Builder, write_module_metadata
from boxpm.core.exceptions import (
    BoxError,
    BuildError,
    InstallError,
    ModuleLookupError,
    RegistryError,
    ValidationError,
    VersionNotFoundError,
)
from boxpm.core.models import InstallResult, ModuleMetadata, Scope, VersionMetadata
from boxpm.core.platform import OS, current_os, library_extension, os_string
from boxpm.core.quark import PROJECT_MANIFEST, write_dependency
from boxpm.installer.sources import GitSource, allocate_temp_dir
from boxpm.installer.store import Store, remove_tree, validate_module_name
from boxpm.registry.client import Registry

logger = logging.getLogger(__name__)

LATEST_TOKENS = frozenset(("", "*", "latest"))


def parse_spec(spec: str) -> tuple[str, str]:
    """拆分 name@version；未指定版本时 version 为空串"""
    name, _, version = spec.partition("@")
    return name.strip(), version.strip()


def normalize_version(version: str) -> str:
    """"latest" / "*" / 空 统一为空串，表示取清单中的 latest"""
    return "" if version in LATEST_TOKENS else version


class Installer:
    """模块安装器: 全局与本地存储的唯一写入方"""

    def __init__(
        self,
        registry: Registry | None = None,
        builder: Builder | None = None,
        store: Store | None = None,
        git: GitSource | None = None,
        host: OS | None = None,
        project_dir: str | Path | None = None,
    ) -> None:
        self.registry = registry or Registry()
        self.builder = builder or Builder()
        self.store = store or Store()
        self.git = git or GitSource()
        self.host = host or current_os()
        self.project_dir = Path(project_dir) if project_dir is not None else None

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def install_dir(self, scope: Scope = Scope.GLOBAL) -> Path:
        return self.store.root(scope)

    def is_installed(self, name: str, scope: Scope = Scope.GLOBAL) -> bool:
        return self.store.is_installed(name, scope)

    def list_installed(self, scope: Scope = Scope.GLOBAL) -> list[str]:
        return self.store.list_installed(scope)

    # ------------------------------------------------------------------
    # 安装 / 卸载 / 更新
    # ------------------------------------------------------------------

    def install(
        self, spec: str, scope: Scope = Scope.LOCAL, *, update_manifest: bool = True,
    ) -> InstallResult:
        """安装 name 或 name@version

        update_manifest=False 时本地安装不回写 .quark（按清单批量安装时使用）。
        """
        name, requested = parse_spec(spec)
        if not name:
            return InstallResult(name=name, success=False, message="Module name required")

        logger.info("安装 %s%s ...", name, f"@{requested}" if requested else "")
        try:
            result = self._install(name, normalize_version(requested), scope, with_deps=True)
        except (BoxError, OSError) as e:
            logger.error("安装失败 %s: %s", name, e)
            return InstallResult(name=name, success=False, version=requested, message=str(e))

        if scope is Scope.LOCAL and update_manifest:
            self._record_dependency(name, result.version)
        return result

    def uninstall(self, name: str, scope: Scope = Scope.GLOBAL) -> bool:
        try:
            validate_module_name(name)
        except ValidationError as e:
            logger.error("%s", e)
            return False
        if not self.store.is_installed(name, scope):
            logger.error("模块未安装: %s (%s)", name, self.store.module_dir(name, scope))
            return False
        logger.info("卸载 %s ...", name)
        if not self.store.remove(name, scope):
            return False
        logger.info("已卸载 %s", name)
        return True

    def update(self, name: str, scope: Scope = Scope.GLOBAL) -> InstallResult:
        """先卸载（若已安装）再安装 latest"""
        logger.info("更新 %s ...", name)
        try:
            validate_module_name(name)
        except ValidationError as e:
            return InstallResult(name=name, success=False, message=str(e))
        if self.is_installed(name, scope) and not self.uninstall(name, scope):
            return InstallResult(
                name=name, success=False,
                message=f"Failed to remove existing installation of {name}",
            )
        return self.install(name, scope)

    # ------------------------------------------------------------------
    # 内部实现
    # ------------------------------------------------------------------

    def _resolve(
        self, name: str, requested: str,
    ) -> tuple[ModuleMetadata, str, VersionMetadata]:
        if not self.registry.fetch_index():
            raise RegistryError("Failed to fetch registry index")
        if not self.registry.module_url(name):
            raise ModuleLookupError(f"Module not found: {name}")

        metadata = self.registry.fetch_module_metadata(name)
        if not metadata.found:
            raise RegistryError(f"Failed to fetch module metadata: {name}")

        version = requested or metadata.latest
        if not version or version not in metadata.versions:
            raise VersionNotFoundError(f"Version not found: {version or '(latest)'}")
        return metadata, version, metadata.versions[version]

    def _install(
        self, name: str, requested: str, scope: Scope, *, with_deps: bool,
    ) -> InstallResult:
        validate_module_name(name)
        metadata, version, vmeta = self._resolve(name, requested)

        entry_url = vmeta.entry_for(self.host)
        if not vmeta.git.url and not entry_url:
            raise ModuleLookupError(
                f"No binary or git repository available for {os_string(self.host)}"
            )

        installed_deps = self._install_deps(name, vmeta, scope) if with_deps else []

        module_dir = self.store.module_dir(name, scope)
        created = not module_dir.exists()
        try:
            module_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InstallError(f"Failed to create directory {module_dir}: {e}") from e

        try:
            if vmeta.git.url:
                method = "source"
                self._install_from_source(name, version, vmeta, module_dir)
            else:
                method = "binary"
                self._install_binary(name, entry_url, module_dir)
            description = vmeta.description or metadata.description
            write_module_metadata(name, version, module_dir, description, self.host)
        except (BoxError, OSError):
            if created:
                remove_tree(module_dir)
            raise

        logger.info("已安装 %s@%s -> %s", name, version, module_dir)
        return InstallResult(
            name=name, success=True, version=version, path=str(module_dir),
            method=method, message=f"✓ Installed {name}@{version} to {module_dir}",
            installed_deps=installed_deps,
        )

    def _install_deps(self, name: str, vmeta: VersionMetadata, scope: Scope) -> list[str]:
        """安装直接依赖；已安装的跳过，依赖自身的依赖不再展开"""
        installed: list[str] = []
        for dep_name, dep_version in vmeta.deps.items():
            validate_module_name(dep_name)
            if self.store.is_installed(dep_name, scope):
                logger.info("  依赖已存在: %s", dep_name)
                continue
            logger.info("  安装依赖: %s@%s (required by %s)", dep_name, dep_version or "latest", name)
            try:
                self._install(dep_name, normalize_version(dep_version), scope, with_deps=False)
            except BoxError as e:
                raise InstallError(f"Failed to install dependency {dep_name}: {e}") from e
            installed.append(dep_name)
        return installed

    def _install_binary(self, name: str, url: str, module_dir: Path) -> None:
        logger.info("下载 %s", url)
        data = self.registry.download(url)
        if not data:
            raise InstallError(f"Failed to download module from {url}")

        target = module_dir / f"{name}{library_extension(self.host)}"
        try:
            target.write_bytes(data)
            if os.name == "posix":
                target.chmod(0o755)
        except OSError as e:
            raise InstallError(f"Failed to write {target}: {e}") from e

    def _install_from_source(
        self, name: str, version: str, vmeta: VersionMetadata, module_dir: Path,
    ) -> None:
        tmp = allocate_temp_dir(module_dir)
        try:
            repo = tmp / "repo"
            self.git.clone(vmeta.git.url, repo)
            if vmeta.git.ref:
                self.git.checkout(repo, vmeta.git.ref)
            result = self.builder.build_from_source(name, repo, module_dir, version)
            if not result.success:
                raise BuildError(f"Failed to build module from source: {result.message}")
        finally:
            if not remove_tree(tmp):
                logger.warning("临时目录清理失败: %s", tmp)

    def _record_dependency(self, name: str, version: str) -> None:
        """本地安装成功后把 name=version 写入项目清单（不存在则跳过）"""
        manifest = (self.project_dir or Path.cwd()) / PROJECT_MANIFEST
        if not manifest.is_file():
            return
        try:
            write_dependency(manifest, name, version)
        except OSError as e:
            logger.warning("更新 %s 失败: %s", manifest, e)
