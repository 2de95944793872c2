"""Tests for BaseService and service inheritance."""

import pytest

from cmsctl.infrastructure.store import Store
from cmsctl.services.base import BaseService
from cmsctl.services.content_items import ContentItemService
from cmsctl.services.content_types import ContentTypeService
from cmsctl.services.permissions import PermissionService
from cmsctl.services.rules import RuleCatalogService


class TestBaseService:
    def test_store_stored(self, store: Store) -> None:
        assert BaseService(store)._store is store

    def test_dispatch_unknown_hook_becomes_warning(self, store: Store) -> None:
        warnings: list[str] = []
        BaseService(store)._dispatch_event("post_nothing", {}, warnings)
        assert warnings == ["Unknown plugin hook: post_nothing"]

    def test_dispatch_known_hook_without_plugins_is_silent(self, store: Store) -> None:
        warnings: list[str] = []
        BaseService(store)._dispatch_event(
            "post_delete_content_type",
            {"content_type_id": "x", "name": "Product"},
            warnings,
        )
        assert warnings == []


@pytest.mark.parametrize(
    "service_cls",
    [ContentTypeService, ContentItemService, PermissionService, RuleCatalogService],
)
def test_services_extend_base(service_cls: type) -> None:
    assert issubclass(service_cls, BaseService)
