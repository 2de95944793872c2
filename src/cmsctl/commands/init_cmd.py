"""Command: project initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from cmsctl.commands._base import CmsCommand
from cmsctl.services.init import InitService

if TYPE_CHECKING:
    from cmsctl.commands._context import AppContext

_INIT_EXAMPLES = """\
  cmsctl init
  cmsctl init ./site --store-path data/cms.db
  cmsctl init . --admin-role Owner"""


@click.command("init", cls=CmsCommand, examples=_INIT_EXAMPLES)
@click.argument("path", required=False, default=".")
@click.option("--store-path", default=".cmsctl/cms.db", show_default=True, help="SQLite file.")
@click.option("--admin-role", default="Admin", show_default=True, help="Administrative role.")
@click.pass_obj
def init_cmd(app: AppContext, path: str, store_path: str, admin_role: str) -> None:
    """Create cmsctl.toml and an initialized store in PATH."""
    app.emit(
        InitService.init_project(
            Path(path).resolve(),
            store_path=store_path,
            admin_role=admin_role,
        )
    )
