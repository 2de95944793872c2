"""PermissionService — manage roles, assignments and allow/deny facts.

Every operation here requires the administrative role.
"""

from __future__ import annotations

import logging
import uuid
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from cmsctl.domain.errors import ErrorKind
from cmsctl.domain.permissions import (
    ActorType,
    CmsAction,
    PermissionRule,
    PermissionScope,
    Resource,
    ResourceType,
)
from cmsctl.services.authorization import (
    FORBIDDEN_MESSAGE,
    UNAUTHORIZED_MESSAGE,
    ActorContext,
    AuthorizationService,
)
from cmsctl.services.base import BaseService
from cmsctl.services.result import ServiceResult
from cmsctl.services.telemetry import traced

if TYPE_CHECKING:
    from cmsctl.infrastructure.store import Store

logger = logging.getLogger(__name__)


def _parse[E: StrEnum](
    enum_cls: type[E], raw: str, key: str, problems: dict[str, list[str]]
) -> E | None:
    for member in enum_cls:
        if member.value.lower() == raw.strip().lower():
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    problems.setdefault(key, []).append(f"Unknown {key} '{raw}'. Expected one of: {allowed}.")
    return None


def rule_payload(rule: PermissionRule) -> dict[str, Any]:
    return {
        "actor_type": str(rule.actor_type),
        "action": str(rule.action),
        "scope": str(rule.scope),
        "resource_type": str(rule.resource.resource_type if rule.resource else rule.resource_type),
        "resource_id": str(rule.resource.id) if rule.resource else None,
    }


class PermissionService(BaseService):
    """Administrative access to the permission store."""

    def __init__(self, store: Store) -> None:
        super().__init__(store)
        self._auth = AuthorizationService(store)

    def _require_admin(self, ctx: ActorContext, op: str) -> ServiceResult | None:
        if ctx.actor is None:
            return ServiceResult.failure(op, ErrorKind.UNAUTHORIZED, UNAUTHORIZED_MESSAGE)
        if not self._auth.is_admin(ctx):
            logger.warning("Non-admin actor %s attempted %s", ctx.actor.id, op)
            return ServiceResult.failure(op, ErrorKind.FORBIDDEN, FORBIDDEN_MESSAGE)
        return None

    @traced
    def grant(
        self,
        ctx: ActorContext,
        role: str,
        action: str,
        resource_type: str,
        *,
        scope: str = "Allow",
        resource_id: uuid.UUID | None = None,
        actor_type: str = "User",
    ) -> ServiceResult:
        """Add one allow/deny fact for *role*.

        With *resource_id* the rule is instance-level; without it the rule
        covers every resource of *resource_type*.
        """
        op = "grant"
        denied = self._require_admin(ctx, op)
        if denied is not None:
            return denied

        problems: dict[str, list[str]] = {}
        if not role.strip():
            problems["role"] = ["Role is required."]
        parsed_action = _parse(CmsAction, action, "action", problems)
        parsed_type = _parse(ResourceType, resource_type, "resource_type", problems)
        parsed_scope = _parse(PermissionScope, scope, "scope", problems)
        parsed_actor = _parse(ActorType, actor_type, "actor_type", problems)
        if problems:
            return ServiceResult.failure(
                op, ErrorKind.VALIDATION, "Invalid permission rule.", detail={"fields": problems}
            )
        assert parsed_action and parsed_type and parsed_scope and parsed_actor

        if resource_id is not None:
            rule = PermissionRule(
                parsed_actor,
                parsed_action,
                parsed_scope,
                resource=Resource(parsed_type, resource_id),
            )
        else:
            rule = PermissionRule(
                parsed_actor, parsed_action, parsed_scope, resource_type=parsed_type
            )

        with self._store.transaction() as conn:
            role_id = self._store.permissions.ensure_role(conn, role.strip())
            rule_id = self._store.permissions.add_rule(conn, role_id, rule)
        logger.info("Granted %s %s on %s to role %s", rule.scope, rule.action, parsed_type, role)
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": rule_id, "role": role.strip(), **rule_payload(rule)},
        )

    @traced
    def assign_role(self, ctx: ActorContext, actor_id: uuid.UUID, role: str) -> ServiceResult:
        op = "assign_role"
        denied = self._require_admin(ctx, op)
        if denied is not None:
            return denied
        if not role.strip():
            return ServiceResult.failure(
                op,
                ErrorKind.VALIDATION,
                "Role is required.",
                detail={"fields": {"role": ["Role is required."]}},
            )

        with self._store.transaction() as conn:
            role_id = self._store.permissions.ensure_role(conn, role.strip())
            created = self._store.permissions.assign_role(conn, actor_id, role_id)
        warnings = [] if created else [f"Actor {actor_id} already has role {role.strip()}"]
        return ServiceResult(
            ok=True,
            op=op,
            data={"actor_id": str(actor_id), "role": role.strip(), "role_id": str(role_id)},
            warnings=warnings,
        )

    @traced
    def list_rules(self, ctx: ActorContext, role: str | None = None) -> ServiceResult:
        """Rules grouped by role; all roles unless *role* is given."""
        op = "list_permissions"
        denied = self._require_admin(ctx, op)
        if denied is not None:
            return denied

        repo = self._store.permissions
        if role is not None:
            role_id = repo.role_id(role)
            if role_id is None:
                return ServiceResult.failure(
                    op, ErrorKind.NOT_FOUND, f"Role '{role}' not found", detail={"role": role}
                )
            selected = [(role_id, role)]
        else:
            selected = repo.all_roles()

        roles = [
            {
                "role": name,
                "id": str(rid),
                "rules": [rule_payload(r) for r in repo.rules_for_roles([rid])],
            }
            for rid, name in selected
        ]
        return ServiceResult(ok=True, op=op, data={"roles": roles})
