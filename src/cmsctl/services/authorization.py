"""Authorization — loads an actor's rules and asks the evaluator.

Order of checks:

1. no actor -> UNAUTHORIZED (nothing else is consulted)
2. an assigned role named like the configured admin role -> allowed
3. rules of the actor's roles, evaluated deny-overrides-allow
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from cmsctl.domain.errors import ErrorKind
from cmsctl.domain.permissions import (
    Actor,
    ActorType,
    CmsAction,
    PermissionRule,
    Resource,
    ResourceType,
    is_allowed,
    is_allowed_for_type,
)
from cmsctl.services.base import BaseService
from cmsctl.services.result import ServiceResult

logger = logging.getLogger(__name__)

FORBIDDEN_MESSAGE = "Forbidden"
UNAUTHORIZED_MESSAGE = "Unauthorized"


@dataclass(frozen=True)
class ActorContext:
    """Who is acting: the actor plus its resolved roles."""

    actor: Actor | None
    role_names: tuple[str, ...] = ()
    role_ids: tuple[uuid.UUID, ...] = ()

    @classmethod
    def anonymous(cls) -> ActorContext:
        return cls(actor=None)

    @property
    def is_authenticated(self) -> bool:
        return self.actor is not None


class AuthorizationService(BaseService):
    """Answers "may this context do that?" against the permission store."""

    def context_for(
        self,
        actor_id: uuid.UUID | None,
        *,
        actor_type: ActorType | None = None,
        roles: Iterable[str] = (),
    ) -> ActorContext:
        """Build an :class:`ActorContext` from stored role assignments.

        *roles* (``--role``) narrows the context to those of the actor's
        assigned roles; names are matched case-insensitively. A name the
        actor does not hold grants nothing and is logged.
        """
        if actor_id is None:
            return ActorContext.anonymous()
        resolved_type = actor_type or ActorType(self._store.settings.auth.default_actor_type)

        held = self._store.permissions.roles_for_actor(actor_id)
        wanted = {name.casefold(): name for name in roles}
        if wanted:
            held_names = {role_name.casefold() for _, role_name in held}
            for key, name in wanted.items():
                if key not in held_names:
                    logger.warning("Ignoring role %r not assigned to actor %s", name, actor_id)
            held = [(rid, rname) for rid, rname in held if rname.casefold() in wanted]

        return ActorContext(
            actor=Actor(actor_id, resolved_type),
            role_names=tuple(role_name for _, role_name in held),
            role_ids=tuple(role_id for role_id, _ in held),
        )

    # --- Decisions ---

    def is_admin(self, ctx: ActorContext) -> bool:
        admin = self._store.settings.auth.admin_role.casefold()
        return any(name.casefold() == admin for name in ctx.role_names)

    def _rules(self, ctx: ActorContext) -> list[PermissionRule]:
        return self._store.permissions.rules_for_roles(ctx.role_ids)

    def is_allowed(self, ctx: ActorContext, action: CmsAction, resource: Resource) -> bool:
        if ctx.actor is None:
            logger.debug("Unauthenticated %s on %s", action, resource)
            return False
        if self.is_admin(ctx):
            return True
        allowed = is_allowed(ctx.actor, action, resource, self._rules(ctx))
        if not allowed:
            logger.warning("Denied %s on %s for actor %s", action, resource, ctx.actor.id)
        return allowed

    def is_allowed_for_type(
        self,
        ctx: ActorContext,
        action: CmsAction,
        resource_type: ResourceType,
    ) -> bool:
        if ctx.actor is None:
            logger.debug("Unauthenticated %s on all %s", action, resource_type)
            return False
        if self.is_admin(ctx):
            return True
        allowed = is_allowed_for_type(ctx.actor, action, resource_type, self._rules(ctx))
        if not allowed:
            logger.warning("Denied %s on all %s for actor %s", action, resource_type, ctx.actor.id)
        return allowed

    # --- Guards returning a failed result, or None to proceed ---

    def require(
        self,
        ctx: ActorContext,
        action: CmsAction,
        resource: Resource,
        *,
        op: str,
    ) -> ServiceResult | None:
        if ctx.actor is None:
            return ServiceResult.failure(op, ErrorKind.UNAUTHORIZED, UNAUTHORIZED_MESSAGE)
        if self.is_allowed(ctx, action, resource):
            return None
        return _forbidden(op, action, resource=str(resource))

    def require_for_type(
        self,
        ctx: ActorContext,
        action: CmsAction,
        resource_type: ResourceType,
        *,
        op: str,
    ) -> ServiceResult | None:
        if ctx.actor is None:
            return ServiceResult.failure(op, ErrorKind.UNAUTHORIZED, UNAUTHORIZED_MESSAGE)
        if self.is_allowed_for_type(ctx, action, resource_type):
            return None
        return _forbidden(op, action, resource_type=str(resource_type))

    def require_instance_or_type(
        self,
        ctx: ActorContext,
        action: CmsAction,
        resource: Resource,
        *,
        op: str,
    ) -> ServiceResult | None:
        """Pass when either an instance grant or a type-level grant allows."""
        if ctx.actor is None:
            return ServiceResult.failure(op, ErrorKind.UNAUTHORIZED, UNAUTHORIZED_MESSAGE)
        if self.is_admin(ctx):
            return None
        rules = self._rules(ctx)
        if is_allowed(ctx.actor, action, resource, rules) or is_allowed_for_type(
            ctx.actor, action, resource.resource_type, rules
        ):
            return None
        logger.warning("Denied %s on %s for actor %s", action, resource, ctx.actor.id)
        return _forbidden(op, action, resource=str(resource))


def _forbidden(op: str, action: CmsAction, **target: str) -> ServiceResult:
    return ServiceResult.failure(
        op,
        ErrorKind.FORBIDDEN,
        FORBIDDEN_MESSAGE,
        detail={"action": str(action), **target},
    )
