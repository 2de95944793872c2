"""Roles, role assignments and permission rules."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Connection, insert, select
from sqlalchemy.engine import Engine

from cmsctl.domain.permissions import (
    ActorType,
    CmsAction,
    PermissionRule,
    PermissionScope,
    Resource,
    ResourceType,
)
from cmsctl.infrastructure.database.schema import actor_roles, permission_rules, roles


class PermissionRepository:
    """Encapsulates SQL for the flat allow/deny permission store."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @contextmanager
    def _connection(self, conn: Connection | None) -> Iterator[Connection]:
        if conn is not None:
            yield conn
            return
        with self._engine.connect() as own:
            yield own

    # --- Roles ---

    def role_id(self, name: str, *, conn: Connection | None = None) -> uuid.UUID | None:
        with self._connection(conn) as c:
            value = c.execute(select(roles.c.id).where(roles.c.name == name)).scalar()
        return uuid.UUID(value) if value is not None else None

    def all_roles(self, *, conn: Connection | None = None) -> list[tuple[uuid.UUID, str]]:
        with self._connection(conn) as c:
            rows = c.execute(select(roles.c.id, roles.c.name).order_by(roles.c.name)).all()
        return [(uuid.UUID(row.id), row.name) for row in rows]

    def ensure_role(self, conn: Connection, name: str) -> uuid.UUID:
        """Return the id of role *name*, creating the role if needed."""
        existing = self.role_id(name, conn=conn)
        if existing is not None:
            return existing
        new_id = uuid.uuid4()
        conn.execute(insert(roles).values(id=str(new_id), name=name))
        return new_id

    def roles_for_actor(
        self,
        actor_id: uuid.UUID,
        *,
        conn: Connection | None = None,
    ) -> list[tuple[uuid.UUID, str]]:
        """``(role_id, role_name)`` pairs assigned to *actor_id*, by name."""
        stmt = (
            select(roles.c.id, roles.c.name)
            .join(actor_roles, actor_roles.c.role_id == roles.c.id)
            .where(actor_roles.c.actor_id == str(actor_id))
            .order_by(roles.c.name)
        )
        with self._connection(conn) as c:
            rows = c.execute(stmt).all()
        return [(uuid.UUID(row.id), row.name) for row in rows]

    def assign_role(self, conn: Connection, actor_id: uuid.UUID, role_id: uuid.UUID) -> bool:
        """Link *actor_id* to *role_id*. Returns False when already linked."""
        existing = conn.execute(
            select(actor_roles.c.actor_id).where(
                actor_roles.c.actor_id == str(actor_id),
                actor_roles.c.role_id == str(role_id),
            )
        ).first()
        if existing is not None:
            return False
        conn.execute(insert(actor_roles).values(actor_id=str(actor_id), role_id=str(role_id)))
        return True

    # --- Rules ---

    def add_rule(self, conn: Connection, role_id: uuid.UUID, rule: PermissionRule) -> int:
        if rule.resource is not None:
            resource_type = rule.resource.resource_type
            resource_id: str | None = str(rule.resource.id)
        else:
            assert rule.resource_type is not None
            resource_type = rule.resource_type
            resource_id = None
        result = conn.execute(
            insert(permission_rules).values(
                role_id=str(role_id),
                actor_type=str(rule.actor_type),
                action=str(rule.action),
                resource_type=str(resource_type),
                resource_id=resource_id,
                scope=str(rule.scope),
            )
        )
        return int(result.inserted_primary_key[0])

    def rules_for_roles(
        self,
        role_ids: Iterable[uuid.UUID],
        *,
        conn: Connection | None = None,
    ) -> list[PermissionRule]:
        ids = [str(r) for r in role_ids]
        if not ids:
            return []
        stmt = (
            select(permission_rules)
            .where(permission_rules.c.role_id.in_(ids))
            .order_by(permission_rules.c.id)
        )
        with self._connection(conn) as c:
            rows = c.execute(stmt).mappings().all()
        return [_to_rule(row) for row in rows]


def _to_rule(row: Any) -> PermissionRule:
    resource_type = ResourceType(row["resource_type"])
    common: dict[str, Any] = {
        "actor_type": ActorType(row["actor_type"]),
        "action": CmsAction(row["action"]),
        "scope": PermissionScope(row["scope"]),
    }
    if row["resource_id"] is None:
        return PermissionRule(**common, resource_type=resource_type)
    return PermissionRule(**common, resource=Resource(resource_type, uuid.UUID(row["resource_id"])))
