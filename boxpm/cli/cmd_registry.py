"""CLI: NUR 查询命令"""

from __future__ import annotations

import click

from boxpm.cli import fail
from boxpm.registry.client import Registry


def register(group: click.Group) -> None:
    group.add_command(search)
    group.add_command(info)


def _registry() -> Registry:
    registry = Registry()
    if not registry.fetch_index():
        fail("Failed to fetch registry")
    return registry


@click.command()
@click.argument("query")
def search(query: str) -> None:
    """按名称搜索 NUR 中的模块"""
    results = _registry().search(query)
    if not results:
        click.echo(f"No modules found matching '{query}'")
        return
    click.echo(f"Found {len(results)} module(s):")
    for name in results:
        click.echo(f"  {name}")


@click.command()
@click.argument("name")
def info(name: str) -> None:
    """显示模块清单信息与可用版本"""
    registry = _registry()
    if not registry.module_url(name):
        fail(f"Module not found: {name}")
    metadata = registry.fetch_module_metadata(name)
    if not metadata.found:
        fail(f"Failed to fetch module metadata: {name}")

    click.echo(f"Module: {metadata.name}")
    for label, value in (
        ("Description", metadata.description),
        ("Author", metadata.author),
        ("License", metadata.license),
        ("Repository", metadata.repository),
    ):
        if value:
            click.echo(f"{label}: {value}")
    click.echo(f"Latest: {metadata.latest}")

    click.echo("\nAvailable Versions:")
    for version, vmeta in metadata.versions.items():
        marker = " (latest)" if version == metadata.latest else ""
        source = " [source]" if vmeta.git.url else ""
        click.echo(f"  {version}{marker}{source}")
        if vmeta.description:
            click.echo(f"    {vmeta.description}")
