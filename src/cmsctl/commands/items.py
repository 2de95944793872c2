"""Command group: content items checked and stored against a content type."""

from __future__ import annotations

import uuid
from typing import IO, TYPE_CHECKING

import click

from cmsctl.commands._base import CmsGroup, read_json_object
from cmsctl.services.content_items import ContentItemService

if TYPE_CHECKING:
    from cmsctl.commands._context import AppContext

_ITEMS_EXAMPLES = """\
  cmsctl items validate 2b1f0c7e-8a61-4f53-9d0e-3c1f6a0b9d21 item.json
  echo '{"Name": "  chair  "}' | cmsctl items validate 2b1f0c7e-8a61-4f53-9d0e-3c1f6a0b9d21 -
  cmsctl items create 2b1f0c7e-8a61-4f53-9d0e-3c1f6a0b9d21 --title "Oak chair" item.json
  cmsctl items list 2b1f0c7e-8a61-4f53-9d0e-3c1f6a0b9d21 --page-size 50
  cmsctl items show 7d0c2a4e-1f3b-4c8e-9a6d-5b2e8f1c0a93"""


@click.group(cls=CmsGroup, examples=_ITEMS_EXAMPLES)
def items() -> None:
    """Validate, store and inspect content items."""


@items.command()
@click.argument("content_type_id", type=click.UUID)
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.pass_obj
def validate(app: AppContext, content_type_id: uuid.UUID, source: IO[str]) -> None:
    """Transform and validate JSON values (keyed by field name) against a content type."""
    values = read_json_object(source, what="Item values")
    app.emit(ContentItemService(app.store).validate_item(app.actor, content_type_id, values))


@items.command(
    examples="""\
  cmsctl items create 2b1f0c7e-8a61-4f53-9d0e-3c1f6a0b9d21 --title "Oak chair" item.json"""
)
@click.argument("content_type_id", type=click.UUID)
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--title", required=True, help="Title of the new item.")
@click.pass_obj
def create(app: AppContext, content_type_id: uuid.UUID, source: IO[str], title: str) -> None:
    """Store a new item once every value (FILE or -) passes its field's rules."""
    values = read_json_object(source, what="Item values")
    app.emit(
        ContentItemService(app.store).create_item(app.actor, content_type_id, title, values)
    )


@items.command(examples="  cmsctl items show 7d0c2a4e-1f3b-4c8e-9a6d-5b2e8f1c0a93")
@click.argument("item_id", type=click.UUID)
@click.pass_obj
def show(app: AppContext, item_id: uuid.UUID) -> None:
    """Show one stored item with its values."""
    app.emit(ContentItemService(app.store).get_item(app.actor, item_id))


@items.command("list", examples="  cmsctl items list 2b1f0c7e-8a61-4f53-9d0e-3c1f6a0b9d21 --page 2")
@click.argument("content_type_id", type=click.UUID)
@click.option("--page", type=int, default=1, show_default=True, help="1-based page number.")
@click.option("--page-size", type=int, default=None, help="Items per page (default from config).")
@click.pass_obj
def list_cmd(
    app: AppContext, content_type_id: uuid.UUID, page: int, page_size: int | None
) -> None:
    """List the items of one content type, oldest first."""
    app.emit(
        ContentItemService(app.store).list_items(
            app.actor, content_type_id, page=page, page_size=page_size
        )
    )
