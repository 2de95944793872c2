"""ContentItemService — content values checked and stored against a content type.

Create pipeline: AUTHORIZE → VALIDATE SHAPE → LOAD TYPE → RESOLVE KEYS → FILL → PERSIST

Values reach storage only through ``set_field_value``; when any field
fails, the partly filled item is dropped and nothing is written.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from cmsctl.domain.content_items import ContentItem, fill_item, validate_values
from cmsctl.domain.content_types import ContentType
from cmsctl.domain.errors import CmsError, ErrorKind
from cmsctl.domain.permissions import CmsAction, ResourceType, content_item_resource
from cmsctl.services.authorization import ActorContext, AuthorizationService
from cmsctl.services.base import BaseService
from cmsctl.services.contracts import ContentItemPage, content_item_payload, dump_validated
from cmsctl.services.result import ServiceResult
from cmsctl.services.telemetry import traced

if TYPE_CHECKING:
    from cmsctl.infrastructure.store import Store

logger = logging.getLogger(__name__)

TITLE_REQUIRED = "Content item title is required."
VALUES_EMPTY = "Values field is empty."


class ContentItemService(BaseService):
    """Content items: validation, creation, lookup and listing."""

    def __init__(self, store: Store) -> None:
        super().__init__(store)
        self._auth = AuthorizationService(store)

    @traced
    def validate_item(
        self,
        ctx: ActorContext,
        content_type_id: uuid.UUID,
        values: Mapping[str, Any],
    ) -> ServiceResult:
        """Transform and validate *values* keyed by field name or field id.

        Success returns the transformed values keyed by field name. Any
        failing field yields VALIDATION with every message per field.
        """
        op = "validate_item"
        denied = self._auth.require_for_type(
            ctx, CmsAction.CREATE, ResourceType.CONTENT_ITEM, op=op
        )
        if denied is not None:
            return denied

        try:
            content_type = self._store.content_types.get_by_id(content_type_id)
            if content_type is None:
                return _type_not_found(op, content_type_id)
            by_id = _key_by_field_id(content_type, values)
            transformed, results = validate_values(content_type, by_id)
        except CmsError as exc:
            return ServiceResult.from_error(op, exc)

        if not results.is_valid:
            logger.info(
                "Content for %s v%d failed on %d field(s)",
                content_type.name,
                content_type.version,
                len(results.failures()),
            )
            return ServiceResult.failure(
                op,
                ErrorKind.VALIDATION,
                "One or more fields are invalid.",
                detail={"fields": results.to_dict()},
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "content_type_id": str(content_type.id),
                "name": content_type.name,
                "version": content_type.version,
                "values": {content_type.field(fid).name: v for fid, v in transformed.items()},
            },
        )

    @traced
    def create_item(
        self,
        ctx: ActorContext,
        content_type_id: uuid.UUID,
        title: str,
        values: Mapping[str, Any],
    ) -> ServiceResult:
        """Store a new item whose *values* (keyed by field name or id) all pass."""
        op = "create_item"
        denied = self._auth.require_for_type(
            ctx, CmsAction.CREATE, ResourceType.CONTENT_ITEM, op=op
        )
        if denied is not None:
            return denied

        problems: dict[str, list[str]] = {}
        if not title or not title.strip():
            problems["title"] = [TITLE_REQUIRED]
        if not values:
            problems["values"] = [VALUES_EMPTY]
        if problems:
            return ServiceResult.failure(
                op,
                ErrorKind.VALIDATION,
                "One or more fields are invalid.",
                detail={"fields": problems},
            )

        try:
            content_type = self._store.content_types.get_by_id(content_type_id)
            if content_type is None:
                return _type_not_found(op, content_type_id)
            item = ContentItem(title=title.strip(), content_type_id=content_type.id)
            results = fill_item(item, content_type, _key_by_field_id(content_type, values))
        except CmsError as exc:
            return ServiceResult.from_error(op, exc)

        if not results.is_valid:
            logger.info(
                "Rejected content item %r for %s v%d: %d invalid field(s)",
                item.title,
                content_type.name,
                content_type.version,
                len(results.failures()),
            )
            return ServiceResult.failure(
                op,
                ErrorKind.VALIDATION,
                "One or more fields are invalid.",
                detail={"fields": results.to_dict()},
            )

        try:
            with self._store.transaction() as conn:
                self._store.content_items.add(conn, item)
        except CmsError as exc:
            return ServiceResult.from_error(op, exc)

        logger.info(
            "Created content item %s of %s v%d", item.id, content_type.name, content_type.version
        )
        return ServiceResult(ok=True, op=op, data=content_item_payload(item, content_type))

    @traced
    def get_item(self, ctx: ActorContext, item_id: uuid.UUID) -> ServiceResult:
        op = "get_item"
        denied = self._auth.require_instance_or_type(
            ctx, CmsAction.READ, content_item_resource(item_id), op=op
        )
        if denied is not None:
            return denied
        try:
            item = self._store.content_items.get_by_id(item_id)
            if item is None:
                return ServiceResult.failure(
                    op,
                    ErrorKind.NOT_FOUND,
                    f"Content item with id {item_id} not found",
                    detail={"id": str(item_id)},
                )
            # Items outlive archived or deleted snapshots of their type.
            content_type = self._store.content_types.get_by_id(
                item.content_type_id, include_deleted=True
            )
        except CmsError as exc:
            return ServiceResult.from_error(op, exc)
        if content_type is None:
            return _type_not_found(op, item.content_type_id)
        return ServiceResult(ok=True, op=op, data=content_item_payload(item, content_type))

    @traced
    def list_items(
        self,
        ctx: ActorContext,
        content_type_id: uuid.UUID,
        *,
        page: int = 1,
        page_size: int | None = None,
    ) -> ServiceResult:
        """One page of the items of a content type, oldest first."""
        op = "list_items"
        denied = self._auth.require_for_type(ctx, CmsAction.LIST, ResourceType.CONTENT_ITEM, op=op)
        if denied is not None:
            return denied

        size, problems = self._page_size(page, page_size)
        if problems:
            return ServiceResult.failure(
                op, ErrorKind.VALIDATION, "Invalid list query.", detail={"fields": problems}
            )

        try:
            if self._store.content_types.get_by_id(content_type_id) is None:
                return _type_not_found(op, content_type_id)
            rows, total = self._store.content_items.list_page(
                content_type_id, page=page, page_size=size
            )
        except CmsError as exc:
            return ServiceResult.from_error(op, exc)

        logger.debug("Listed %d of %d items of content type %s", len(rows), total, content_type_id)
        data = dump_validated(
            ContentItemPage,
            {
                "content_type_id": str(content_type_id),
                "items": rows,
                "page": page,
                "page_size": size,
                "total": total,
            },
        )
        return ServiceResult(ok=True, op=op, data=data)


def _type_not_found(op: str, content_type_id: uuid.UUID) -> ServiceResult:
    return ServiceResult.failure(
        op,
        ErrorKind.NOT_FOUND,
        f"Content type with id {content_type_id} not found",
        detail={"id": str(content_type_id)},
    )


def _key_by_field_id(content_type: ContentType, values: Mapping[str, Any]) -> dict[uuid.UUID, Any]:
    """Resolve field-name or field-id keys to field ids.

    Raises:
        CmsError: CONFLICT when a key names no field of *content_type*.
    """
    resolved: dict[uuid.UUID, Any] = {}
    unknown: list[str] = []
    for key, value in values.items():
        f = content_type.field_named(key)
        if f is not None:
            resolved[f.id] = value
            continue
        try:
            field_id = uuid.UUID(key)
        except ValueError:
            unknown.append(key)
            continue
        if content_type.has_field(field_id):
            resolved[field_id] = value
        else:
            unknown.append(key)
    if unknown:
        msg = f"Content type '{content_type.name}' has no field(s): {', '.join(unknown)}"
        raise CmsError(msg, kind=ErrorKind.CONFLICT, detail={"unknown_fields": unknown})
    return resolved
