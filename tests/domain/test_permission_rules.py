"""Tests for the deny-overrides-allow permission evaluator."""

from __future__ import annotations

import uuid

import pytest

from cmsctl.domain.permissions import (
    Actor,
    ActorType,
    CmsAction,
    PermissionRule,
    PermissionScope,
    Resource,
    ResourceType,
    content_item_resource,
    content_type_resource,
    field_resource,
    is_allowed,
    is_allowed_for_type,
)

USER = Actor(uuid.uuid4())
SYSTEM = Actor(uuid.uuid4(), ActorType.SYSTEM_PROCESS)


class TestPermissionRule:
    def test_exactly_one_target(self) -> None:
        resource = content_type_resource(uuid.uuid4())
        with pytest.raises(ValueError):
            PermissionRule(ActorType.USER, CmsAction.READ, PermissionScope.ALLOW)
        with pytest.raises(ValueError):
            PermissionRule(
                ActorType.USER,
                CmsAction.READ,
                PermissionScope.ALLOW,
                resource=resource,
                resource_type=ResourceType.CONTENT_TYPE,
            )

    def test_type_level_flag(self) -> None:
        rule = PermissionRule.allow_type(ActorType.USER, CmsAction.LIST, ResourceType.CONTENT_TYPE)
        assert rule.is_type_level
        assert not PermissionRule.allow(
            ActorType.USER, CmsAction.READ, field_resource(uuid.uuid4())
        ).is_type_level

    def test_resource_equality(self) -> None:
        rid = uuid.uuid4()
        assert content_type_resource(rid) == Resource(ResourceType.CONTENT_TYPE, rid)
        assert content_type_resource(rid) != content_item_resource(rid)
        assert str(content_item_resource(rid)) == f"ContentItem:{rid}"


class TestInstanceEvaluation:
    def test_no_rules_is_implicit_deny(self) -> None:
        assert not is_allowed(USER, CmsAction.READ, content_type_resource(uuid.uuid4()), [])

    def test_allow(self) -> None:
        resource = content_type_resource(uuid.uuid4())
        rules = [PermissionRule.allow(ActorType.USER, CmsAction.READ, resource)]
        assert is_allowed(USER, CmsAction.READ, resource, rules)

    def test_deny_overrides_allow(self) -> None:
        resource = content_type_resource(uuid.uuid4())
        rules = [
            PermissionRule.allow(ActorType.USER, CmsAction.UPDATE, resource),
            PermissionRule.deny(ActorType.USER, CmsAction.UPDATE, resource),
        ]
        assert not is_allowed(USER, CmsAction.UPDATE, resource, rules)

    def test_rule_for_other_resource_does_not_apply(self) -> None:
        rules = [
            PermissionRule.allow(ActorType.USER, CmsAction.READ, content_type_resource(uuid.uuid4()))
        ]
        assert not is_allowed(USER, CmsAction.READ, content_type_resource(uuid.uuid4()), rules)

    def test_actor_type_must_match(self) -> None:
        resource = content_item_resource(uuid.uuid4())
        rules = [PermissionRule.allow(ActorType.USER, CmsAction.READ, resource)]
        assert not is_allowed(SYSTEM, CmsAction.READ, resource, rules)

    def test_action_must_match(self) -> None:
        resource = content_item_resource(uuid.uuid4())
        rules = [PermissionRule.allow(ActorType.USER, CmsAction.READ, resource)]
        assert not is_allowed(USER, CmsAction.DELETE, resource, rules)

    def test_type_level_rules_ignored_for_instance_check(self) -> None:
        rules = [
            PermissionRule.allow_type(ActorType.USER, CmsAction.READ, ResourceType.CONTENT_TYPE)
        ]
        assert not is_allowed(USER, CmsAction.READ, content_type_resource(uuid.uuid4()), rules)


class TestTypeEvaluation:
    def test_allow_type(self) -> None:
        rules = [
            PermissionRule.allow_type(ActorType.USER, CmsAction.PUBLISH, ResourceType.CONTENT_TYPE)
        ]
        assert is_allowed_for_type(USER, CmsAction.PUBLISH, ResourceType.CONTENT_TYPE, rules)
        assert not is_allowed_for_type(USER, CmsAction.PUBLISH, ResourceType.CONTENT_ITEM, rules)

    def test_deny_type_overrides(self) -> None:
        rules = [
            PermissionRule.allow_type(ActorType.USER, CmsAction.LIST, ResourceType.CONTENT_TYPE),
            PermissionRule.deny_type(ActorType.USER, CmsAction.LIST, ResourceType.CONTENT_TYPE),
        ]
        assert not is_allowed_for_type(USER, CmsAction.LIST, ResourceType.CONTENT_TYPE, rules)

    def test_instance_rules_ignored_for_type_check(self) -> None:
        rules = [
            PermissionRule.allow(ActorType.USER, CmsAction.LIST, content_type_resource(uuid.uuid4()))
        ]
        assert not is_allowed_for_type(USER, CmsAction.LIST, ResourceType.CONTENT_TYPE, rules)
