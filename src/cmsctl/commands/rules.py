"""Command group: rule catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cmsctl.commands._base import CmsGroup
from cmsctl.services.rules import RuleCatalogService

if TYPE_CHECKING:
    from cmsctl.commands._context import AppContext


@click.group(cls=CmsGroup, examples="  cmsctl rules list\n  cmsctl --json rules list")
def rules() -> None:
    """Inspect the validation and transformation rules available to fields."""


@rules.command("list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List registered rule types, built-in and plugin-provided."""
    app.emit(RuleCatalogService(app.store).list_rules())
