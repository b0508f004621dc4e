"""Box 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import os
import sys

import click

from boxpm import __version__
from boxpm.core.config import init_config
from boxpm.core.exceptions import ConfigError
from boxpm.core.platform import library_extension, os_string
from boxpm.utils.logger import setup_logging

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def version_text() -> str:
    return (
        f"Box Package Manager v{__version__}\n"
        f"Platform: {os_string()}\n"
        f"Library Extension: {library_extension()}"
    )


def fail(message: str) -> None:
    """输出错误信息并以退出码 1 结束"""
    click.echo(message, err=True)
    sys.exit(1)


class BoxGroup(click.Group):
    """未知子命令统一输出 "Unknown <label>: xxx" 并以 1 退出"""

    unknown_label = "command"
    unknown_hint = "Run 'box help' for usage information"

    def resolve_command(self, ctx: click.Context, args: list[str]):  # type: ignore[no-untyped-def]
        name = args[0] if args else ""
        if name and not name.startswith("-") and self.get_command(ctx, name) is None:
            click.echo(f"Unknown {self.unknown_label}: {name}", err=True)
            click.echo(self.unknown_hint, err=True)
            ctx.exit(1)
        return super().resolve_command(ctx, args)


@click.group(cls=BoxGroup, invoke_without_command=True, context_settings=CONTEXT_SETTINGS)
@click.version_option(
    __version__, "-v", "--version",
    message=(
        "Box Package Manager v%(version)s\n"
        f"Platform: {os_string()}\n"
        f"Library Extension: {library_extension()}"
    ),
)
@click.pass_context
def main(ctx: click.Context) -> None:
    """Box - Neutron Package Manager

    \b
    Examples:
      box install base64
      box search crypto
      box build native mymodule
    """
    setup_logging(
        level=os.getenv("BOX_LOG_LEVEL", "WARNING"),
        json_output=os.getenv("BOX_LOG_JSON", "") == "1",
    )
    try:
        init_config(os.getenv("BOX_CONFIG") or None)
    except ConfigError as e:
        fail(f"Error: {e}")

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(1)


# 注册各领域子命令
from boxpm.cli.cmd_install import register as _reg_install  # noqa: E402
from boxpm.cli.cmd_registry import register as _reg_registry  # noqa: E402
from boxpm.cli.cmd_build import register as _reg_build  # noqa: E402
from boxpm.cli.cmd_misc import register as _reg_misc  # noqa: E402

_reg_install(main)
_reg_registry(main)
_reg_build(main)
_reg_misc(main)
