"""ContentTypeService — create, publish, delete, get and list content types.

Create pipeline: AUTHORIZE → VALIDATE SHAPE → BUILD RULES → VERSION → PERSIST → EVENT
Publish pipeline: AUTHORIZE → LOAD DRAFT → PUBLISH → ARCHIVE PREVIOUS + PERSIST → EVENT

Shape validation checks every rule type against the registries with
``try_create`` before anything is built, so an unknown type is a
VALIDATION failure and nothing is persisted. The same failure surfacing
later from ``create`` is an INFRASTRUCTURE failure.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from cmsctl.domain.content_types import ContentType, ContentTypeStatus
from cmsctl.domain.errors import CannotPublishError, CmsError, ErrorKind, RuleRegistryError
from cmsctl.domain.fields import Field, FieldType
from cmsctl.domain.permissions import CmsAction, ResourceType, content_type_resource
from cmsctl.domain.registry import RuleRegistry, incompatible_rules
from cmsctl.domain.rules import Rule
from cmsctl.infrastructure.repositories.content_types import parse_sort
from cmsctl.services.authorization import (
    UNAUTHORIZED_MESSAGE,
    ActorContext,
    AuthorizationService,
)
from cmsctl.services.base import BaseService
from cmsctl.services.contracts import (
    ContentTypePage,
    CreateContentTypeCommand,
    FieldInput,
    RuleInput,
    content_type_payload,
    dump_validated,
)
from cmsctl.services.result import ServiceResult
from cmsctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from cmsctl.infrastructure.store import Store

logger = logging.getLogger(__name__)

# Instance id standing for "any content type" in create grants.
GLOBAL_CONTENT_TYPE_ID = uuid.UUID(int=0)

NAME_REQUIRED = "Name is required."
FIELDS_EMPTY = "Fields field is empty."
INVALID_FIELD_TYPE = "Invalid field type."
FIELD_NAME_REQUIRED = "Field name is required."
DUPLICATE_FIELD_NAME = "Duplicate field name."


class ContentTypeService(BaseService):
    """Schema lifecycle operations, each gated by authorization."""

    def __init__(self, store: Store) -> None:
        super().__init__(store)
        self._auth = AuthorizationService(store)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @traced
    def create_content_type(
        self,
        ctx: ActorContext,
        command: CreateContentTypeCommand | Mapping[str, Any],
    ) -> ServiceResult:
        """Validate *command* and store it as the next Draft version."""
        op = "create_content_type"
        denied = self._auth.require_instance_or_type(
            ctx, CmsAction.CREATE, content_type_resource(GLOBAL_CONTENT_TYPE_ID), op=op
        )
        if denied is not None:
            return denied

        if not isinstance(command, CreateContentTypeCommand):
            try:
                command = CreateContentTypeCommand.model_validate(command)
            except ValidationError as exc:
                return ServiceResult.failure(
                    op,
                    ErrorKind.VALIDATION,
                    "Malformed create command",
                    detail={
                        "errors": exc.errors(
                            include_url=False, include_context=False, include_input=False
                        )
                    },
                )

        with trace_span("validate_command"):
            problems = self._validate_command(command)
        if problems:
            logger.info(
                "Rejected content type %r: %d invalid field(s)", command.name, len(problems)
            )
            return ServiceResult.failure(
                op,
                ErrorKind.VALIDATION,
                "One or more fields are invalid.",
                detail={"fields": problems},
            )

        warnings: list[str] = []
        try:
            with trace_span("build_fields"):
                schema_fields = [self._build_field(f, warnings) for f in command.fields]
            name = command.name.strip()
            with self._store.transaction() as conn:
                latest = self._store.content_types.latest_version(name, conn=conn)
                draft = ContentType.new_draft(name, schema_fields, latest_version=latest)
                self._store.content_types.add(conn, draft)
        except RuleRegistryError as exc:
            logger.error("Rule construction failed after validation: %s", exc.message)
            return ServiceResult.from_error(op, exc, warnings=warnings)
        except CmsError as exc:
            return ServiceResult.from_error(op, exc, warnings=warnings)

        logger.info("Created content type %s v%d (%s)", draft.name, draft.version, draft.id)
        self._dispatch_event(
            "post_create_content_type",
            {"content_type_id": str(draft.id), "name": draft.name, "version": draft.version},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data=content_type_payload(draft),
            warnings=warnings,
        )

    def _validate_command(self, command: CreateContentTypeCommand) -> dict[str, list[str]]:
        """Collect every shape problem, keyed by field name."""
        problems: dict[str, list[str]] = {}

        def add(key: str, message: str) -> None:
            problems.setdefault(key, []).append(message)

        if not command.name or not command.name.strip():
            add("name", NAME_REQUIRED)
        if not command.fields:
            add("fields", FIELDS_EMPTY)

        seen: set[str] = set()
        for index, f in enumerate(command.fields):
            key = f.name.strip() or f"fields[{index}]"
            if not f.name.strip():
                add(key, FIELD_NAME_REQUIRED)
            elif key in seen:
                add(key, DUPLICATE_FIELD_NAME)
            seen.add(key)

            if FieldType.parse(f.type) is None:
                add(key, INVALID_FIELD_TYPE)

            for rule in f.validation_rules:
                if not self._can_build(self._store.registries.validation, rule):
                    add(key, f"Unknown validation rule type '{rule.type}' in field '{f.name}'.")
            for rule in f.transformation_rules:
                if not self._can_build(self._store.registries.transformation, rule):
                    add(key, f"Unknown transformation rule type '{rule.type}' in field '{f.name}'.")
        return problems

    @staticmethod
    def _can_build(registry: RuleRegistry[Any], rule: RuleInput) -> bool:
        _, ok = registry.try_create(rule.type, rule.parameters)
        return ok

    def _build_field(self, field_input: FieldInput, warnings: list[str]) -> Field:
        registries = self._store.registries
        field_type = FieldType.parse(field_input.type)
        # Shape validation already rejected unknown types.
        assert field_type is not None
        validation = [
            registries.validation.create(r.type, r.parameters)
            for r in field_input.validation_rules
        ]
        transformation = [
            registries.transformation.create(r.type, r.parameters)
            for r in field_input.transformation_rules
        ]
        if self._store.settings.rules.warn_on_capability_mismatch:
            rules: list[Rule] = [*validation, *transformation]
            for rule in incompatible_rules(field_type, rules):
                warnings.append(
                    f"Rule '{rule.rule_type}' expects {rule.required_capability.name} values; "
                    f"field '{field_input.name}' is {field_type}."
                )
        return Field(
            name=field_input.name.strip(),
            field_type=field_type,
            is_required=field_input.is_required,
            validation_rules=validation,
            transformation_rules=transformation,
        )

    # ------------------------------------------------------------------
    # Publish
    # ------------------------------------------------------------------

    @traced
    def publish_content_type(self, ctx: ActorContext, name: str) -> ServiceResult:
        """Publish the latest Draft of *name*, archiving the previous publication.

        The Draft itself stays a Draft. Publishing again without creating a
        newer Draft re-publishes the same fields under the next version.
        Versions continue past soft-deleted publications, so a number is
        never handed out twice.
        """
        op = "publish_content_type"
        denied = self._auth.require_for_type(
            ctx, CmsAction.PUBLISH, ResourceType.CONTENT_TYPE, op=op
        )
        if denied is not None:
            return denied

        archived: ContentType | None = None
        try:
            with self._store.transaction() as conn:
                repo = self._store.content_types
                draft = repo.latest_draft(name, conn=conn)
                if draft is None:
                    return ServiceResult.failure(
                        op,
                        ErrorKind.NOT_FOUND,
                        f"The content type with name {name} was not found.",
                        detail={"name": name},
                    )
                previous = repo.latest_published(name, conn=conn)
                published = draft.publish_from(
                    previous,
                    last_published_version=repo.latest_published_version(name, conn=conn),
                )
                if previous is not None:
                    archived = previous.archive()
                    repo.update_status(conn, archived)
                repo.add(conn, published)
        except CannotPublishError as exc:
            logger.warning("Cannot publish %r: %s", name, exc.message)
            return ServiceResult.from_error(op, exc)
        except CmsError as exc:
            return ServiceResult.from_error(op, exc)

        logger.info(
            "Published content type %s v%d (%s)", published.name, published.version, published.id
        )
        warnings: list[str] = []
        self._dispatch_event(
            "post_publish_content_type",
            {
                "content_type_id": str(published.id),
                "name": published.name,
                "version": published.version,
                "archived_id": str(archived.id) if archived is not None else None,
            },
            warnings,
        )
        data = content_type_payload(published)
        data["archived_id"] = str(archived.id) if archived is not None else None
        data["draft_id"] = str(draft.id)
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    @traced
    def delete_content_type(self, ctx: ActorContext, content_type_id: uuid.UUID) -> ServiceResult:
        """Soft-delete one snapshot."""
        op = "delete_content_type"
        if ctx.actor is None:
            return ServiceResult.failure(op, ErrorKind.UNAUTHORIZED, UNAUTHORIZED_MESSAGE)

        try:
            current = self._store.content_types.get_by_id(content_type_id)
            if current is None:
                return _not_found(op, content_type_id)
            denied = self._auth.require_for_type(
                ctx, CmsAction.DELETE, ResourceType.CONTENT_TYPE, op=op
            )
            if denied is not None:
                return denied
            deleted = current.soft_delete()
            with self._store.transaction() as conn:
                self._store.content_types.mark_deleted(conn, deleted)
        except CmsError as exc:
            return ServiceResult.from_error(op, exc)

        logger.info("Deleted content type %s v%d (%s)", deleted.name, deleted.version, deleted.id)
        warnings: list[str] = []
        self._dispatch_event(
            "post_delete_content_type",
            {"content_type_id": str(deleted.id), "name": deleted.name},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": str(deleted.id),
                "name": deleted.name,
                "deleted_at": deleted.deleted_at.isoformat() if deleted.deleted_at else None,
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @traced
    def get_content_type(self, ctx: ActorContext, content_type_id: uuid.UUID) -> ServiceResult:
        op = "get_content_type"
        denied = self._auth.require_instance_or_type(
            ctx, CmsAction.READ, content_type_resource(content_type_id), op=op
        )
        if denied is not None:
            return denied
        try:
            found = self._store.content_types.get_by_id(content_type_id)
        except CmsError as exc:
            return ServiceResult.from_error(op, exc)
        if found is None:
            return _not_found(op, content_type_id)
        return ServiceResult(ok=True, op=op, data=content_type_payload(found))

    @traced
    def list_content_types(
        self,
        ctx: ActorContext,
        *,
        page: int = 1,
        page_size: int | None = None,
        sort: str | None = None,
        status: str | None = None,
        name_filter: str | None = None,
    ) -> ServiceResult:
        """One page of non-deleted snapshots: ``{items, page, page_size, total}``."""
        op = "list_content_types"
        denied = self._auth.require_for_type(ctx, CmsAction.LIST, ResourceType.CONTENT_TYPE, op=op)
        if denied is not None:
            return denied

        size, problems = self._page_size(page, page_size)
        try:
            parse_sort(sort)
        except ValueError as exc:
            problems["sort"] = [str(exc)]
        status_filter: ContentTypeStatus | None = None
        if status:
            try:
                status_filter = ContentTypeStatus(status)
            except ValueError:
                problems["status"] = [f"Unknown status '{status}'."]
        if problems:
            return ServiceResult.failure(
                op, ErrorKind.VALIDATION, "Invalid list query.", detail={"fields": problems}
            )

        try:
            items, total = self._store.content_types.list_page(
                page=page,
                page_size=size,
                sort=sort,
                status=status_filter,
                name_filter=name_filter,
            )
        except CmsError as exc:
            return ServiceResult.from_error(op, exc)

        data = dump_validated(
            ContentTypePage,
            {
                "items": [content_type_payload(ct) for ct in items],
                "page": page,
                "page_size": size,
                "total": total,
            },
        )
        return ServiceResult(ok=True, op=op, data=data)


def _not_found(op: str, content_type_id: uuid.UUID) -> ServiceResult:
    return ServiceResult.failure(
        op,
        ErrorKind.NOT_FOUND,
        f"Content type with id {content_type_id} not found",
        detail={"id": str(content_type_id)},
    )
