"""Permission facts and the deny-overrides-allow evaluator.

A :class:`PermissionRule` scopes one action for one actor type to either a
single resource (instance-level) or every resource of a type (type-level).
Evaluation is a pure function over an already-loaded rule set:

1. keep the rules matching ``(actor type, action, target)``
2. any matching Deny -> denied
3. otherwise allowed iff at least one matching Allow

No matching rule means implicit deny. Administrative short-circuits live
in the authorization service, not here.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum


class ActorType(StrEnum):
    USER = "User"
    SYSTEM_PROCESS = "SystemProcess"


class CmsAction(StrEnum):
    READ = "Read"
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    PUBLISH = "Publish"
    ARCHIVE = "Archive"
    LIST = "List"


class ResourceType(StrEnum):
    CONTENT_TYPE = "ContentType"
    CONTENT_ITEM = "ContentItem"
    FIELD = "Field"
    USER = "User"


class PermissionScope(StrEnum):
    ALLOW = "Allow"
    DENY = "Deny"


@dataclass(frozen=True)
class Actor:
    id: uuid.UUID
    type: ActorType = ActorType.USER


@dataclass(frozen=True)
class Resource:
    """A single addressable resource; equality is by type tag and id."""

    resource_type: ResourceType
    id: uuid.UUID

    def __str__(self) -> str:
        return f"{self.resource_type}:{self.id}"


def content_type_resource(resource_id: uuid.UUID) -> Resource:
    return Resource(ResourceType.CONTENT_TYPE, resource_id)


def content_item_resource(resource_id: uuid.UUID) -> Resource:
    return Resource(ResourceType.CONTENT_ITEM, resource_id)


def field_resource(resource_id: uuid.UUID) -> Resource:
    return Resource(ResourceType.FIELD, resource_id)


@dataclass(frozen=True)
class PermissionRule:
    """One allow/deny fact. Exactly one of ``resource``/``resource_type`` is set."""

    actor_type: ActorType
    action: CmsAction
    scope: PermissionScope
    resource: Resource | None = None
    resource_type: ResourceType | None = None

    def __post_init__(self) -> None:
        if (self.resource is None) == (self.resource_type is None):
            msg = "A permission rule targets exactly one of resource or resource_type"
            raise ValueError(msg)

    @property
    def is_type_level(self) -> bool:
        return self.resource_type is not None

    @classmethod
    def allow_type(
        cls, actor_type: ActorType, action: CmsAction, resource_type: ResourceType
    ) -> PermissionRule:
        return cls(actor_type, action, PermissionScope.ALLOW, resource_type=resource_type)

    @classmethod
    def deny_type(
        cls, actor_type: ActorType, action: CmsAction, resource_type: ResourceType
    ) -> PermissionRule:
        return cls(actor_type, action, PermissionScope.DENY, resource_type=resource_type)

    @classmethod
    def allow(cls, actor_type: ActorType, action: CmsAction, resource: Resource) -> PermissionRule:
        return cls(actor_type, action, PermissionScope.ALLOW, resource=resource)

    @classmethod
    def deny(cls, actor_type: ActorType, action: CmsAction, resource: Resource) -> PermissionRule:
        return cls(actor_type, action, PermissionScope.DENY, resource=resource)


def _decide(matching: list[PermissionRule]) -> bool:
    if any(r.scope is PermissionScope.DENY for r in matching):
        return False
    return any(r.scope is PermissionScope.ALLOW for r in matching)


def is_allowed(
    actor: Actor,
    action: CmsAction,
    resource: Resource,
    rules: Iterable[PermissionRule],
) -> bool:
    """Evaluate instance-level rules for *resource*."""
    matching = [
        r
        for r in rules
        if r.actor_type == actor.type and r.action == action and r.resource == resource
    ]
    return _decide(matching)


def is_allowed_for_type(
    actor: Actor,
    action: CmsAction,
    resource_type: ResourceType,
    rules: Iterable[PermissionRule],
) -> bool:
    """Evaluate type-level rules covering every resource of *resource_type*."""
    matching = [
        r
        for r in rules
        if r.actor_type == actor.type
        and r.action == action
        and r.resource_type == resource_type
    ]
    return _decide(matching)
