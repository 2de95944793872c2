"""Integration workflow tests: multi-step scenarios spanning several services.

These cover the hand-offs unit tests cannot: schema versions flowing from
create through publish and republish into item validation, and permission
changes taking effect for the next resolved actor context.
"""

from __future__ import annotations

import uuid

from cmsctl.infrastructure.store import Store
from cmsctl.services.authorization import ActorContext, AuthorizationService
from cmsctl.services.content_items import ContentItemService
from cmsctl.services.content_types import ContentTypeService
from cmsctl.services.permissions import PermissionService
from tests.conftest import PRODUCT_COMMAND, actor_with_role, create_type, grant, publish_type


class TestSchemaLifecycle:
    """Create v1 → publish → create v2 → republish → validate content."""

    def test_publish_republish_archives_and_validates(
        self, store: Store, admin: ActorContext
    ) -> None:
        svc = ContentTypeService(store)

        draft_1 = create_type(store, admin, PRODUCT_COMMAND)
        published_1 = publish_type(store, admin, "Product")
        assert published_1["version"] == 1
        assert published_1["draft_id"] == draft_1["id"]
        assert {f["id"] for f in published_1["fields"]}.isdisjoint(
            {f["id"] for f in draft_1["fields"]}
        )

        extended = {
            **PRODUCT_COMMAND,
            "fields": [*PRODUCT_COMMAND["fields"], {"name": "InStock", "type": "Boolean"}],
        }
        draft_2 = create_type(store, admin, extended)
        assert draft_2["version"] == 2

        published_2 = publish_type(store, admin, "Product")
        assert published_2["version"] == 2
        assert published_2["archived_id"] == published_1["id"]

        # The archived snapshot is soft-deleted and no longer reachable.
        gone = svc.get_content_type(admin, uuid.UUID(published_1["id"]))
        assert gone.error is not None and gone.error.code == "NOT_FOUND"

        listing = svc.list_content_types(admin, status="Published")
        assert [(i["name"], i["version"]) for i in listing.data["items"]] == [("Product", 2)]

        items = ContentItemService(store)
        ok = items.validate_item(
            admin,
            uuid.UUID(published_2["id"]),
            {"Name": " Lamp ", "Slug": "Desk-Lamp", "Price": 30, "InStock": True},
        )
        assert ok.ok, ok.error
        assert ok.data["values"] == {
            "Name": "Lamp",
            "Slug": "desk-lamp",
            "Price": 30,
            "InStock": True,
        }

        # The v1 draft has no InStock field.
        stale = items.validate_item(
            admin, uuid.UUID(draft_1["id"]), {"Name": "Lamp", "Price": 30, "InStock": True}
        )
        assert stale.error is not None and stale.error.code == "CONFLICT"

    def test_deleted_draft_version_is_not_reused(self, store: Store, admin: ActorContext) -> None:
        svc = ContentTypeService(store)
        first = create_type(store, admin, PRODUCT_COMMAND)
        assert svc.delete_content_type(admin, uuid.UUID(first["id"])).ok
        assert create_type(store, admin, PRODUCT_COMMAND)["version"] == 2


class TestPermissionWorkflow:
    """Grants take effect for the next resolved context."""

    def test_editor_can_author_but_not_publish(self, store: Store, admin: ActorContext) -> None:
        grant(store, admin, "Editor", "Create", "ContentType")
        grant(store, admin, "Editor", "Read", "ContentType")
        editor = actor_with_role(store, admin, "Editor")
        svc = ContentTypeService(store)

        created = svc.create_content_type(editor, PRODUCT_COMMAND)
        assert created.ok, created.error
        assert svc.get_content_type(editor, uuid.UUID(created.data["id"])).ok

        publish = svc.publish_content_type(editor, "Product")
        assert publish.error is not None and publish.error.code == "FORBIDDEN"

        grant(store, admin, "Editor", "Publish", "ContentType")
        editor = AuthorizationService(store).context_for(editor.actor.id)
        assert svc.publish_content_type(editor, "Product").ok

    def test_instance_grant_reaches_only_that_snapshot(
        self, store: Store, admin: ActorContext
    ) -> None:
        first = uuid.UUID(create_type(store, admin, PRODUCT_COMMAND)["id"])
        second = uuid.UUID(create_type(store, admin, PRODUCT_COMMAND)["id"])
        grant(store, admin, "Viewer", "Read", "ContentType", resource_id=first)
        viewer = actor_with_role(store, admin, "Viewer")
        svc = ContentTypeService(store)

        assert svc.get_content_type(viewer, first).ok
        other = svc.get_content_type(viewer, second)
        assert other.error is not None and other.error.code == "FORBIDDEN"

    def test_non_admin_cannot_escalate(self, store: Store, user: ActorContext) -> None:
        result = PermissionService(store).assign_role(user, user.actor.id, "Admin")
        assert result.error is not None and result.error.code == "FORBIDDEN"
        roles = AuthorizationService(store).context_for(user.actor.id).role_names
        assert "Admin" not in roles
