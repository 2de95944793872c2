"""Command group: content type lifecycle (create, publish, delete, show, list)."""

from __future__ import annotations

import uuid
from typing import IO, TYPE_CHECKING

import click

from cmsctl.commands._base import CmsGroup, read_json_object
from cmsctl.domain.content_types import ContentTypeStatus
from cmsctl.services.content_types import ContentTypeService

if TYPE_CHECKING:
    from cmsctl.commands._context import AppContext

_TYPES_EXAMPLES = """\
  cmsctl types create product.json
  cat product.json | cmsctl types create -
  cmsctl types publish Product
  cmsctl types list --status Published --sort version.desc
  cmsctl types show 2b1f0c7e-8a61-4f53-9d0e-3c1f6a0b9d21
  cmsctl types delete 2b1f0c7e-8a61-4f53-9d0e-3c1f6a0b9d21"""


@click.group(cls=CmsGroup, examples=_TYPES_EXAMPLES)
def types() -> None:
    """Define, publish and inspect content types."""


@types.command(
    examples="""\
  cmsctl types create product.json
  echo '{"name": "Tag", "fields": [{"name": "Label", "type": "Text"}]}' | cmsctl types create -"""
)
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.pass_obj
def create(app: AppContext, source: IO[str]) -> None:
    """Create a new Draft version from a JSON definition (FILE or -)."""
    command = read_json_object(source, what="Content type definition")
    app.emit(ContentTypeService(app.store).create_content_type(app.actor, command))


@types.command(examples="  cmsctl types publish Product")
@click.argument("name")
@click.pass_obj
def publish(app: AppContext, name: str) -> None:
    """Publish the latest Draft of NAME and archive the previous publication."""
    app.emit(ContentTypeService(app.store).publish_content_type(app.actor, name))


@types.command(examples="  cmsctl types delete 2b1f0c7e-8a61-4f53-9d0e-3c1f6a0b9d21")
@click.argument("content_type_id", type=click.UUID)
@click.pass_obj
def delete(app: AppContext, content_type_id: uuid.UUID) -> None:
    """Soft-delete one content type snapshot."""
    app.emit(ContentTypeService(app.store).delete_content_type(app.actor, content_type_id))


@types.command(examples="  cmsctl types show 2b1f0c7e-8a61-4f53-9d0e-3c1f6a0b9d21")
@click.argument("content_type_id", type=click.UUID)
@click.pass_obj
def show(app: AppContext, content_type_id: uuid.UUID) -> None:
    """Show one content type snapshot with its fields and rules."""
    app.emit(ContentTypeService(app.store).get_content_type(app.actor, content_type_id))


@types.command(
    "list",
    examples="""\
  cmsctl types list
  cmsctl types list --name Prod --status Draft
  cmsctl types list --page 2 --page-size 10 --sort created.desc""",
)
@click.option("--page", type=int, default=1, show_default=True, help="1-based page number.")
@click.option("--page-size", type=int, default=None, help="Items per page.")
@click.option(
    "--sort",
    default=None,
    help="name|version|created with .asc or .desc (default name.asc).",
)
@click.option(
    "--status",
    type=click.Choice([s.value for s in ContentTypeStatus], case_sensitive=False),
    default=None,
    help="Only snapshots in this status.",
)
@click.option("--name", "name_filter", default=None, help="Substring match on the name.")
@click.pass_obj
def list_cmd(
    app: AppContext,
    page: int,
    page_size: int | None,
    sort: str | None,
    status: str | None,
    name_filter: str | None,
) -> None:
    """List content type snapshots, newest versions included."""
    if status is not None:
        status = next(s.value for s in ContentTypeStatus if s.value.lower() == status.lower())
    app.emit(
        ContentTypeService(app.store).list_content_types(
            app.actor,
            page=page,
            page_size=page_size,
            sort=sort,
            status=status,
            name_filter=name_filter,
        )
    )
