"""Subcommand modules for cmsctl.

register_commands() imports lazily so ``cmsctl --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Attach the four command groups and the standalone ``init``."""
    from cmsctl.commands.init_cmd import init_cmd
    from cmsctl.commands.items import items
    from cmsctl.commands.perms import perms
    from cmsctl.commands.rules import rules
    from cmsctl.commands.types import types

    cli.add_command(types)
    cli.add_command(rules)
    cli.add_command(items)
    cli.add_command(perms)
    cli.add_command(init_cmd)
