"""CLI: 安装 / 卸载 / 更新 / 列表"""

from __future__ import annotations

from pathlib import Path

import click

from boxpm.cli import fail
from boxpm.core.models import InstallResult, Scope
from boxpm.core.quark import find_project_manifest, parse_dependencies, read_manifest
from boxpm.installer.installer import Installer, normalize_version


def register(group: click.Group) -> None:
    group.add_command(install)
    group.add_command(uninstall)
    group.add_command(update)
    group.add_command(list_modules)


def _report(result: InstallResult) -> bool:
    if result.success:
        for dep in result.installed_deps:
            click.echo(f"  + dependency {dep}")
        click.echo(result.message)
    else:
        click.echo(f"Failed to install {result.name}: {result.message}", err=True)
    return result.success


def _install_from_manifest(installer: Installer) -> None:
    """按当前目录的 *.quark 清单逐个本地安装依赖"""
    manifest = find_project_manifest(Path.cwd())
    if manifest is None:
        fail(
            "Error: Module name required (no .quark project manifest found)\n"
            "Usage: box install <module>[@version]"
        )
        return

    deps = parse_dependencies(read_manifest(manifest))
    if not deps:
        click.echo(f"No dependencies declared in {manifest.name}")
        return

    click.echo(f"Installing {len(deps)} dependencies from {manifest.name}...")
    failed: list[str] = []
    for name, version in deps.items():
        version = normalize_version(version)
        spec = f"{name}@{version}" if version else name
        # 按清单安装时不回写清单，"*" 等写法保持原样
        result = installer.install(spec, Scope.LOCAL, update_manifest=False)
        if not _report(result):
            failed.append(name)

    if failed:
        fail(f"{len(failed)} of {len(deps)} dependencies failed: {', '.join(failed)}")
    click.echo(f"✓ All {len(deps)} dependencies installed")


@click.command()
@click.argument("spec", required=False)
def install(spec: str | None) -> None:
    """安装模块到项目本地 (./.box/modules)；不带参数时按 *.quark 安装全部依赖"""
    installer = Installer()
    if not spec:
        _install_from_manifest(installer)
        return
    if not _report(installer.install(spec, Scope.LOCAL)):
        fail(f"Installation of {spec} failed")


@click.command()
@click.argument("name")
def uninstall(name: str) -> None:
    """从全局存储卸载模块"""
    if not Installer().uninstall(name, Scope.GLOBAL):
        fail(f"Module not installed or could not be removed: {name}")
    click.echo(f"✓ Successfully uninstalled {name}")


@click.command()
@click.argument("name")
def update(name: str) -> None:
    """在全局存储中重新安装模块的 latest 版本"""
    if not _report(Installer().update(name, Scope.GLOBAL)):
        fail(f"Update of {name} failed")


@click.command(name="list")
def list_modules() -> None:
    """列出全局存储中已安装的模块"""
    installer = Installer()
    names = installer.list_installed(Scope.GLOBAL)
    if not names:
        click.echo("No modules installed")
        return
    click.echo("Installed modules:")
    for name in names:
        record = installer.store.read_metadata(name, Scope.GLOBAL)
        suffix = f" ({record.version})" if record and record.version else ""
        click.echo(f"  {name}{suffix}")
