"""Tests for ContentItemService: validate, create, get and list."""

from __future__ import annotations

import uuid
from typing import Any

import pytest

from cmsctl.infrastructure.store import Store
from cmsctl.services.authorization import ActorContext
from cmsctl.services.content_items import ContentItemService
from tests.conftest import PRODUCT_COMMAND, actor_with_role, create_type, grant


@pytest.fixture
def product(store: Store, admin: ActorContext) -> dict[str, Any]:
    return create_type(store, admin, PRODUCT_COMMAND)


def _validate(store: Store, ctx: ActorContext, product: dict[str, Any], values: dict[str, Any]):
    return ContentItemService(store).validate_item(ctx, uuid.UUID(product["id"]), values)


class TestValidateItem:
    def test_transforms_then_validates(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        result = _validate(
            store, admin, product, {"Name": "  Oak chair  ", "Slug": "OAK-Chair", "Price": 120}
        )
        assert result.ok, result.error
        assert result.data["values"] == {"Name": "Oak chair", "Slug": "oak-chair", "Price": 120}
        assert result.data["name"] == "Product"
        assert result.data["version"] == 1

    def test_keys_may_be_field_ids(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        ids = {f["name"]: f["id"] for f in product["fields"]}
        result = _validate(store, admin, product, {ids["Name"]: "Lamp", ids["Price"]: 5})
        assert result.ok
        assert result.data["values"] == {"Name": "Lamp", "Price": 5}

    def test_required_null_and_missing(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        result = _validate(store, admin, product, {"Name": None})
        assert result.error is not None
        assert result.error.code == "VALIDATION"
        assert result.error.detail["fields"] == {
            "Name": ["Field is required!"],
            "Price": ["Field is required!"],
        }

    def test_rule_messages_reported_per_field(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        result = _validate(
            store, admin, product, {"Name": "x" * 300, "Slug": "not a slug", "Price": 1}
        )
        assert result.error is not None
        assert result.error.detail["fields"] == {
            "Name": ["Maximum length is 256."],
            "Slug": ["Value does not match pattern '^[a-z0-9-]+$'."],
        }

    def test_unknown_field_is_conflict(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        result = _validate(store, admin, product, {"Name": "Lamp", "Price": 2, "Colour": "red"})
        assert result.error is not None
        assert result.error.code == "CONFLICT"
        assert result.error.detail == {"unknown_fields": ["Colour"]}

    def test_unknown_content_type(self, store: Store, admin: ActorContext) -> None:
        result = ContentItemService(store).validate_item(admin, uuid.uuid4(), {})
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_requires_content_item_create(
        self, store: Store, admin: ActorContext, user: ActorContext, product: dict[str, Any]
    ) -> None:
        denied = _validate(store, user, product, {"Name": "Lamp", "Price": 2})
        assert denied.error is not None
        assert denied.error.code == "FORBIDDEN"

        grant(store, admin, "Author", "Create", "ContentItem")
        author = actor_with_role(store, admin, "Author")
        assert _validate(store, author, product, {"Name": "Lamp", "Price": 2}).ok


def _create(
    store: Store,
    ctx: ActorContext,
    product: dict[str, Any],
    values: dict[str, Any],
    title: str = "Lamp",
):
    return ContentItemService(store).create_item(ctx, uuid.UUID(product["id"]), title, values)


class TestCreateItem:
    def test_stores_transformed_values(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        values = {"Name": " Desk lamp ", "Slug": "Desk-Lamp", "Price": 30}
        result = _create(store, admin, product, values)
        assert result.ok, result.error
        assert result.data["title"] == "Lamp"
        assert result.data["content_type_id"] == product["id"]
        assert result.data["values"] == {"Name": "Desk lamp", "Slug": "desk-lamp", "Price": 30}

        stored = store.content_items.get_by_id(uuid.UUID(result.data["id"]))
        assert stored is not None
        assert stored.title == "Lamp"
        assert {stored.value_of(uuid.UUID(f["id"])) for f in product["fields"]} == {
            "Desk lamp",
            "desk-lamp",
            30,
        }

    def test_invalid_values_store_nothing(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        result = _create(store, admin, product, {"Name": "x" * 300, "Price": 3})
        assert result.error is not None
        assert result.error.code == "VALIDATION"
        assert result.error.detail["fields"] == {"Name": ["Maximum length is 256."]}
        _, total = store.content_items.list_page(uuid.UUID(product["id"]), page=1, page_size=10)
        assert total == 0

    def test_title_and_values_required(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        result = _create(store, admin, product, {}, title="  ")
        assert result.error is not None
        assert result.error.code == "VALIDATION"
        assert result.error.detail["fields"] == {
            "title": ["Content item title is required."],
            "values": ["Values field is empty."],
        }

    def test_unknown_field_is_conflict(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        result = _create(store, admin, product, {"Name": "Lamp", "Price": 1, "Colour": "red"})
        assert result.error is not None
        assert result.error.code == "CONFLICT"

    def test_unknown_content_type(self, store: Store, admin: ActorContext) -> None:
        result = ContentItemService(store).create_item(admin, uuid.uuid4(), "Lamp", {"Name": "x"})
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_requires_content_item_create(
        self, store: Store, user: ActorContext, product: dict[str, Any]
    ) -> None:
        result = _create(store, user, product, {"Name": "Lamp", "Price": 2})
        assert result.error is not None
        assert result.error.code == "FORBIDDEN"


class TestGetAndListItems:
    def test_get_round_trips(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        created = _create(store, admin, product, {"Name": "Lamp", "Price": 2, "Slug": "lamp"})
        fetched = ContentItemService(store).get_item(admin, uuid.UUID(created.data["id"]))
        assert fetched.ok, fetched.error
        assert fetched.data == created.data

    def test_get_missing(self, store: Store, admin: ActorContext) -> None:
        missing = uuid.uuid4()
        result = ContentItemService(store).get_item(admin, missing)
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
        assert result.error.message == f"Content item with id {missing} not found"

    def test_get_after_type_is_deleted(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        from cmsctl.services.content_types import ContentTypeService

        created = _create(store, admin, product, {"Name": "Lamp", "Price": 2})
        ContentTypeService(store).delete_content_type(admin, uuid.UUID(product["id"]))
        fetched = ContentItemService(store).get_item(admin, uuid.UUID(created.data["id"]))
        assert fetched.ok, fetched.error
        assert fetched.data["values"] == {"Name": "Lamp", "Price": 2}

    def test_get_via_instance_grant(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        first = _create(store, admin, product, {"Name": "Lamp", "Price": 2}).data["id"]
        second = _create(store, admin, product, {"Name": "Desk", "Price": 9}).data["id"]
        grant(store, admin, "Viewer", "Read", "ContentItem", resource_id=uuid.UUID(first))
        viewer = actor_with_role(store, admin, "Viewer")
        service = ContentItemService(store)
        assert service.get_item(viewer, uuid.UUID(first)).ok
        other = service.get_item(viewer, uuid.UUID(second))
        assert other.error is not None
        assert other.error.code == "FORBIDDEN"

    def test_list_pages_oldest_first(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        ids = [
            _create(store, admin, product, {"Name": n, "Price": 1}, title=n).data["id"]
            for n in ("A", "B", "C")
        ]
        service = ContentItemService(store)
        first = service.list_items(admin, uuid.UUID(product["id"]), page=1, page_size=2)
        assert first.ok, first.error
        assert first.data["total"] == 3
        assert [i["id"] for i in first.data["items"]] == ids[:2]
        second = service.list_items(admin, uuid.UUID(product["id"]), page=2, page_size=2)
        assert [i["title"] for i in second.data["items"]] == ["C"]

    def test_list_unknown_type(self, store: Store, admin: ActorContext) -> None:
        result = ContentItemService(store).list_items(admin, uuid.uuid4())
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_list_bad_page_size(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        result = ContentItemService(store).list_items(
            admin, uuid.UUID(product["id"]), page=0, page_size=1000
        )
        assert result.error is not None
        assert result.error.code == "VALIDATION"
        assert set(result.error.detail["fields"]) == {"page", "page_size"}

    def test_list_requires_grant(
        self, store: Store, admin: ActorContext, product: dict[str, Any]
    ) -> None:
        member = actor_with_role(store, admin, "Reader")
        denied = ContentItemService(store).list_items(member, uuid.UUID(product["id"]))
        assert denied.error is not None
        assert denied.error.code == "FORBIDDEN"
        grant(store, admin, "Reader", "List", "ContentItem")
        member = actor_with_role(store, admin, "Reader")
        assert ContentItemService(store).list_items(member, uuid.UUID(product["id"])).ok
