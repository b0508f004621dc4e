"""CLI: 原生模块构建命令"""

from __future__ import annotations

import click

from boxpm.builder.builder import Builder
from boxpm.cli import BoxGroup, fail
from boxpm.core.config import get_config


def register(group: click.Group) -> None:
    group.add_command(build_group)


class BuildTypeGroup(BoxGroup):
    unknown_label = "build type"
    unknown_hint = "Valid types: native, nt"


@click.group(name="build", cls=BuildTypeGroup)
def build_group() -> None:
    """构建模块: build native <module> [version] | build nt <module>"""


@build_group.command(name="native")
@click.argument("name")
@click.argument("version", required=False)
def build_native(name: str, version: str | None) -> None:
    """构建 ./<module> 为当前平台的共享库，输出到 ./box-modules/<module>/"""
    cfg = get_config()
    version = version or cfg.default_build_version
    result = Builder().build_native(name, f"./{name}", cfg.build_output_dir, version)
    if not result.success:
        click.echo(result.message, err=True)
        fail(f"Failed to build {name}")
    click.echo(result.message)
    click.echo(f"✓ Successfully built {name} v{version}")


@build_group.command(name="nt")
@click.argument("name")
def build_nt(name: str) -> None:
    """构建 Neutron 源码模块（尚未实现）"""
    result = Builder().build_neutron(name, f"./{name}", get_config().build_output_dir)
    fail(result.message)
