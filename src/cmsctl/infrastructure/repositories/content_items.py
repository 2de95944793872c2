"""Content item persistence.

Field values are stored one row per field as JSON text, keyed by the field
id of the snapshot the item was created against.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import Connection, func, insert, select
from sqlalchemy.engine import Engine

from cmsctl.domain.content_items import ContentFieldValue, ContentItem
from cmsctl.domain.errors import CmsError, ErrorKind
from cmsctl.infrastructure.database.schema import content_field_values, content_items

logger = logging.getLogger(__name__)


class ContentItemRepository:
    """Encapsulates SQL for content items and their field values."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @contextmanager
    def _connection(self, conn: Connection | None) -> Iterator[Connection]:
        if conn is not None:
            yield conn
            return
        with self._engine.connect() as own:
            yield own

    # --- Reads ---

    def get_by_id(
        self, item_id: uuid.UUID, *, conn: Connection | None = None
    ) -> ContentItem | None:
        with self._connection(conn) as c:
            row = (
                c.execute(select(content_items).where(content_items.c.id == str(item_id)))
                .mappings()
                .first()
            )
            if row is None:
                return None
            value_rows = (
                c.execute(
                    select(content_field_values).where(
                        content_field_values.c.item_id == row["id"]
                    )
                )
                .mappings()
                .all()
            )
        return ContentItem(
            id=uuid.UUID(row["id"]),
            title=row["title"],
            content_type_id=uuid.UUID(row["content_type_id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            values={
                uuid.UUID(vr["field_id"]): ContentFieldValue(
                    value=_load_value(vr["value"], row["id"], vr["field_id"]),
                    updated_at=datetime.fromisoformat(vr["updated_at"]),
                )
                for vr in value_rows
            },
        )

    def list_page(
        self,
        content_type_id: uuid.UUID,
        *,
        page: int,
        page_size: int,
        conn: Connection | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """One page of ``{id, title, created_at}`` rows plus the total count, oldest first."""
        condition = content_items.c.content_type_id == str(content_type_id)
        count_stmt = select(func.count(content_items.c.id)).where(condition)
        page_stmt = (
            select(content_items.c.id, content_items.c.title, content_items.c.created_at)
            .where(condition)
            .order_by(content_items.c.created_at.asc(), content_items.c.id.asc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        with self._connection(conn) as c:
            total = int(c.execute(count_stmt).scalar_one() or 0)
            rows = c.execute(page_stmt).mappings().all()
        return [dict(row) for row in rows], total

    # --- Writes ---

    def add(self, conn: Connection, item: ContentItem) -> None:
        conn.execute(
            insert(content_items).values(
                id=str(item.id),
                content_type_id=str(item.content_type_id),
                title=item.title,
                created_at=item.created_at.isoformat(),
            )
        )
        rows = [
            {
                "item_id": str(item.id),
                "field_id": str(field_id),
                "value": json.dumps(stored.value),
                "updated_at": stored.updated_at.isoformat(),
            }
            for field_id, stored in item.values.items()
        ]
        if rows:
            conn.execute(insert(content_field_values), rows)
        logger.debug("Stored content item %s with %d values", item.id, len(rows))


def _load_value(raw: str | None, item_id: str, field_id: str) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"Stored value of field {field_id} on content item {item_id} is not valid JSON"
        raise CmsError(
            msg,
            kind=ErrorKind.INFRASTRUCTURE,
            detail={"item_id": item_id, "field_id": field_id},
        ) from exc
