"""Command group: roles, role assignments and permission rules."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import click

from cmsctl.commands._base import CmsGroup
from cmsctl.domain.permissions import ActorType, CmsAction, ResourceType
from cmsctl.services.permissions import PermissionService

if TYPE_CHECKING:
    from cmsctl.commands._context import AppContext

_PERMS_EXAMPLES = """\
  cmsctl perms grant Editor Create ContentType
  cmsctl perms grant Editor Read ContentType --resource-id 2b1f0c7e-8a61-4f53-9d0e-3c1f6a0b9d21
  cmsctl perms grant Intern Publish ContentType --deny
  cmsctl perms assign 6f0e5a44-0d7c-4e55-a4c5-3b6f1f8f2d10 Editor
  cmsctl perms list --role Editor"""


@click.group(cls=CmsGroup, examples=_PERMS_EXAMPLES)
def perms() -> None:
    """Manage allow/deny rules (administrators only)."""


@perms.command()
@click.argument("role")
@click.argument("action", type=click.Choice([a.value for a in CmsAction], case_sensitive=False))
@click.argument(
    "resource_type", type=click.Choice([r.value for r in ResourceType], case_sensitive=False)
)
@click.option("--deny", is_flag=True, help="Add a Deny rule instead of Allow.")
@click.option("--resource-id", type=click.UUID, default=None, help="Target one resource only.")
@click.option(
    "--actor-type",
    type=click.Choice([t.value for t in ActorType], case_sensitive=False),
    default=ActorType.USER.value,
    show_default=True,
)
@click.pass_obj
def grant(
    app: AppContext,
    role: str,
    action: str,
    resource_type: str,
    deny: bool,
    resource_id: uuid.UUID | None,
    actor_type: str,
) -> None:
    """Allow (or --deny) ACTION on RESOURCE_TYPE for ROLE."""
    app.emit(
        PermissionService(app.store).grant(
            app.actor,
            role,
            action,
            resource_type,
            scope="Deny" if deny else "Allow",
            resource_id=resource_id,
            actor_type=actor_type,
        )
    )


@perms.command()
@click.argument("actor_id", type=click.UUID)
@click.argument("role")
@click.pass_obj
def assign(app: AppContext, actor_id: uuid.UUID, role: str) -> None:
    """Give ACTOR_ID the role ROLE (created if missing)."""
    app.emit(PermissionService(app.store).assign_role(app.actor, actor_id, role))


@perms.command("list")
@click.option("--role", default=None, help="Only this role.")
@click.pass_obj
def list_cmd(app: AppContext, role: str | None) -> None:
    """List permission rules grouped by role."""
    app.emit(PermissionService(app.store).list_rules(app.actor, role))
