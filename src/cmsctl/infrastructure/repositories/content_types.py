"""Content type persistence and hydration.

Rows are turned back into domain objects through the injected rule
registries: each field's shadow JSON columns are deserialized into rule
instances. A stored rule type that is no longer registered surfaces as a
:class:`RuleRegistryError` naming the field and content type.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import Connection, func, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from cmsctl.domain.content_types import ContentType, ContentTypeStatus
from cmsctl.domain.errors import RuleRegistryError, VersionConflictError
from cmsctl.domain.fields import Field, FieldType
from cmsctl.domain.registry import RuleRegistries
from cmsctl.infrastructure.database.schema import content_types, fields

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": content_types.c.name,
    "version": content_types.c.version,
    "created": content_types.c.created_at,
}


def parse_sort(expression: str | None) -> tuple[str, bool]:
    """Parse ``column.asc|column.desc`` into ``(column, descending)``.

    Raises:
        ValueError: unknown column or direction.
    """
    if not expression:
        return "name", False
    column, _, direction = expression.strip().lower().partition(".")
    direction = direction or "asc"
    if column not in SORT_COLUMNS or direction not in ("asc", "desc"):
        msg = (
            f"Invalid sort expression {expression!r}; expected one of "
            + ", ".join(f"{c}.asc|{c}.desc" for c in SORT_COLUMNS)
        )
        raise ValueError(msg)
    return column, direction == "desc"


class ContentTypeRepository:
    """Encapsulates SQL for content type snapshots and their fields.

    Read methods accept an optional *conn* so they can join an open
    transaction; write methods always require one.
    """

    def __init__(self, engine: Engine, registries: RuleRegistries) -> None:
        self._engine = engine
        self._registries = registries

    @contextmanager
    def _connection(self, conn: Connection | None) -> Iterator[Connection]:
        if conn is not None:
            yield conn
            return
        with self._engine.connect() as own:
            yield own

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(
        self,
        content_type_id: uuid.UUID,
        *,
        include_deleted: bool = False,
        conn: Connection | None = None,
    ) -> ContentType | None:
        stmt = select(content_types).where(content_types.c.id == str(content_type_id))
        if not include_deleted:
            stmt = stmt.where(content_types.c.is_deleted == 0)
        with self._connection(conn) as c:
            row = c.execute(stmt).mappings().first()
            if row is None:
                return None
            return self._hydrate(c, row)

    def latest_version(self, name: str, *, conn: Connection | None = None) -> int | None:
        """Highest version across every snapshot of *name*, deleted included."""
        stmt = select(func.max(content_types.c.version)).where(content_types.c.name == name)
        with self._connection(conn) as c:
            value = c.execute(stmt).scalar()
        return int(value) if value is not None else None

    def latest_published_version(self, name: str, *, conn: Connection | None = None) -> int | None:
        """Highest version *name* was ever published under, deleted snapshots included."""
        stmt = select(func.max(content_types.c.version)).where(
            content_types.c.name == name,
            content_types.c.status.in_(
                [str(ContentTypeStatus.PUBLISHED), str(ContentTypeStatus.ARCHIVED)]
            ),
        )
        with self._connection(conn) as c:
            value = c.execute(stmt).scalar()
        return int(value) if value is not None else None

    def latest_draft(self, name: str, *, conn: Connection | None = None) -> ContentType | None:
        return self._latest_with_status(name, ContentTypeStatus.DRAFT, conn)

    def latest_published(self, name: str, *, conn: Connection | None = None) -> ContentType | None:
        return self._latest_with_status(name, ContentTypeStatus.PUBLISHED, conn)

    def _latest_with_status(
        self,
        name: str,
        status: ContentTypeStatus,
        conn: Connection | None,
    ) -> ContentType | None:
        stmt = (
            select(content_types)
            .where(
                content_types.c.name == name,
                content_types.c.status == str(status),
                content_types.c.is_deleted == 0,
            )
            .order_by(content_types.c.version.desc())
            .limit(1)
        )
        with self._connection(conn) as c:
            row = c.execute(stmt).mappings().first()
            if row is None:
                return None
            return self._hydrate(c, row)

    def list_page(
        self,
        *,
        page: int,
        page_size: int,
        sort: str | None = None,
        status: ContentTypeStatus | None = None,
        name_filter: str | None = None,
        conn: Connection | None = None,
    ) -> tuple[list[ContentType], int]:
        """One page of non-deleted snapshots plus the total match count.

        Raises:
            ValueError: invalid *sort* expression.
        """
        column_name, descending = parse_sort(sort)
        column = SORT_COLUMNS[column_name]
        order = column.desc() if descending else column.asc()

        conditions: list[Any] = [content_types.c.is_deleted == 0]
        if status is not None:
            conditions.append(content_types.c.status == str(status))
        if name_filter:
            conditions.append(content_types.c.name.contains(name_filter, autoescape=True))

        count_stmt = select(func.count(content_types.c.id)).where(*conditions)
        page_stmt = (
            select(content_types)
            .where(*conditions)
            # Stable tiebreak so pages never overlap.
            .order_by(order, content_types.c.version.asc(), content_types.c.id.asc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        with self._connection(conn) as c:
            total = int(c.execute(count_stmt).scalar_one() or 0)
            rows = c.execute(page_stmt).mappings().all()
            items = [self._hydrate(c, row) for row in rows]
        return items, total

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, conn: Connection, content_type: ContentType) -> None:
        """Insert a snapshot and its fields.

        Raises:
            VersionConflictError: the ``(name, status, version)`` slot is taken.
        """
        try:
            conn.execute(insert(content_types).values(**_dehydrate_type(content_type)))
        except IntegrityError as exc:
            raise _conflict(content_type) from exc

        rows = [
            self._dehydrate_field(content_type, position, f)
            for position, f in enumerate(content_type.fields)
        ]
        if rows:
            conn.execute(insert(fields), rows)
        logger.debug(
            "Stored content type %s v%d (%s) with %d fields",
            content_type.name,
            content_type.version,
            content_type.status,
            len(rows),
        )

    def update_status(self, conn: Connection, content_type: ContentType) -> None:
        """Persist lifecycle state: status plus the soft-delete flag and timestamp.

        Raises:
            VersionConflictError: another snapshot already holds the new
                ``(name, status, version)`` slot.
        """
        try:
            conn.execute(
                update(content_types)
                .where(content_types.c.id == str(content_type.id))
                .values(
                    status=str(content_type.status),
                    is_deleted=int(content_type.is_deleted),
                    deleted_at=_iso(content_type.deleted_at),
                )
            )
        except IntegrityError as exc:
            raise _conflict(content_type) from exc

    def mark_deleted(self, conn: Connection, content_type: ContentType) -> None:
        conn.execute(
            update(content_types)
            .where(content_types.c.id == str(content_type.id))
            .values(is_deleted=1, deleted_at=_iso(content_type.deleted_at))
        )

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    def _dehydrate_field(
        self, content_type: ContentType, position: int, f: Field
    ) -> dict[str, Any]:
        return {
            "id": str(f.id),
            "content_type_id": str(content_type.id),
            "position": position,
            "name": f.name,
            "field_type": str(f.field_type),
            "is_required": int(f.is_required),
            "validation_rules": self._registries.validation.serialize(f.validation_rules),
            "transformation_rules": self._registries.transformation.serialize(
                f.transformation_rules
            ),
        }

    def _hydrate(self, conn: Connection, row: Any) -> ContentType:
        field_rows = conn.execute(
            select(fields)
            .where(fields.c.content_type_id == row["id"])
            .order_by(fields.c.position)
        ).mappings().all()
        return ContentType(
            id=uuid.UUID(row["id"]),
            name=row["name"],
            version=int(row["version"]),
            status=ContentTypeStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            is_deleted=bool(row["is_deleted"]),
            deleted_at=datetime.fromisoformat(row["deleted_at"]) if row["deleted_at"] else None,
            fields=tuple(self._hydrate_field(row["name"], fr) for fr in field_rows),
        )

    def _hydrate_field(self, type_name: str, row: Any) -> Field:
        try:
            validation = self._registries.validation.deserialize(row["validation_rules"])
            transformation = self._registries.transformation.deserialize(
                row["transformation_rules"]
            )
        except RuleRegistryError as exc:
            msg = (
                f"Cannot load rules of field '{row['name']}' "
                f"in content type '{type_name}': {exc.message}"
            )
            raise RuleRegistryError(
                msg,
                detail={**exc.detail, "field": row["name"], "content_type": type_name},
            ) from exc
        field_type = FieldType.parse(row["field_type"])
        if field_type is None:
            msg = f"Unknown stored field type {row['field_type']!r} on field '{row['name']}'"
            raise RuleRegistryError(msg, detail={"field": row["name"], "content_type": type_name})
        return Field(
            id=uuid.UUID(row["id"]),
            name=row["name"],
            field_type=field_type,
            is_required=bool(row["is_required"]),
            validation_rules=validation,
            transformation_rules=transformation,
        )


def _conflict(content_type: ContentType) -> VersionConflictError:
    msg = (
        f"Content type '{content_type.name}' version {content_type.version} "
        f"({content_type.status}) already exists"
    )
    return VersionConflictError(
        msg,
        detail={
            "name": content_type.name,
            "version": content_type.version,
            "status": str(content_type.status),
        },
    )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _dehydrate_type(content_type: ContentType) -> dict[str, Any]:
    return {
        "id": str(content_type.id),
        "name": content_type.name,
        "version": content_type.version,
        "status": str(content_type.status),
        "created_at": content_type.created_at.isoformat(),
        "is_deleted": int(content_type.is_deleted),
        "deleted_at": _iso(content_type.deleted_at),
    }
