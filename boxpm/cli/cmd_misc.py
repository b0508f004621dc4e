"""CLI: version / help"""

from __future__ import annotations

import click

from boxpm.cli import version_text


def register(group: click.Group) -> None:
    group.add_command(version)
    group.add_command(help_cmd)


@click.command()
def version() -> None:
    """显示 Box 版本与平台信息"""
    click.echo(version_text())


@click.command(name="help")
@click.pass_context
def help_cmd(ctx: click.Context) -> None:
    """显示用法说明"""
    parent = ctx.parent or ctx
    click.echo(parent.get_help())
