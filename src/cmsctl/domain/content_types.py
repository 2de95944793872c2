"""Content types — versioned, named schemas and their lifecycle.

Lifecycle::

    Draft -> {InReview, Scheduled} -> Published -> Archived

Only ``Draft -> Published`` is driven by the command surface today.
Publishing never mutates the draft: it allocates a new snapshot with a new
identity. Deletion is soft (flag + timestamp) and is performed explicitly by
the use case that needs it via :meth:`ContentType.soft_delete` or
:meth:`ContentType.archive`.

Version numbering:

- drafts: ``latest version for the name (any status) + 1``
- published snapshots: ``previous published version + 1`` (or 1)

Two concurrent writers can compute the same number. The storage layer
rejects the second via a ``(name, status, version)`` uniqueness constraint.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum

from cmsctl.domain.errors import CannotPublishError
from cmsctl.domain.fields import Field

INITIAL_VERSION = 1


class ContentTypeStatus(StrEnum):
    """Lifecycle states of a content type snapshot."""

    DRAFT = "Draft"
    IN_REVIEW = "InReview"
    SCHEDULED = "Scheduled"
    PUBLISHED = "Published"
    ARCHIVED = "Archived"


STATUS_TRANSITIONS: dict[str, list[str]] = {
    "Draft": ["InReview", "Scheduled", "Published"],
    "InReview": ["Draft", "Scheduled", "Published"],
    "Scheduled": ["Draft", "Published"],
    "Published": ["Archived"],
    "Archived": [],
}


def is_valid_transition(current: str, target: str) -> bool:
    """Check if moving from *current* to *target* is allowed."""
    return target in STATUS_TRANSITIONS.get(current, [])


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ContentType:
    """An immutable snapshot of a schema plus its lifecycle flags.

    ``fields_by_id`` is built once at construction for O(1) lookup.
    """

    name: str
    fields: tuple[Field, ...]
    version: int = INITIAL_VERSION
    status: ContentTypeStatus = ContentTypeStatus.DRAFT
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=_utcnow)
    is_deleted: bool = False
    deleted_at: datetime | None = None
    fields_by_id: dict[uuid.UUID, Field] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            msg = "Content type name must not be empty"
            raise ValueError(msg)
        if self.version < INITIAL_VERSION:
            msg = f"Content type version must be >= {INITIAL_VERSION}, got {self.version}"
            raise ValueError(msg)

        fields = tuple(self.fields)
        index: dict[uuid.UUID, Field] = {}
        seen_names: set[str] = set()
        for f in fields:
            if f.id in index:
                msg = f"Duplicate field id {f.id} in content type {self.name!r}"
                raise ValueError(msg)
            if f.name in seen_names:
                msg = f"Duplicate field name {f.name!r} in content type {self.name!r}"
                raise ValueError(msg)
            index[f.id] = f
            seen_names.add(f.name)

        object.__setattr__(self, "fields", fields)
        object.__setattr__(self, "status", ContentTypeStatus(self.status))
        object.__setattr__(self, "fields_by_id", index)

    def __hash__(self) -> int:
        return hash(self.id)

    # --- Construction ---

    @classmethod
    def new_draft(
        cls,
        name: str,
        fields: Iterable[Field],
        *,
        latest_version: int | None,
    ) -> ContentType:
        """Create a Draft one version past *latest_version* (0 when None)."""
        return cls(
            name=name,
            fields=tuple(fields),
            version=(latest_version or 0) + 1,
            status=ContentTypeStatus.DRAFT,
        )

    # --- Field lookup ---

    def has_field(self, field_id: uuid.UUID) -> bool:
        return field_id in self.fields_by_id

    def field(self, field_id: uuid.UUID) -> Field:
        return self.fields_by_id[field_id]

    def field_named(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    # --- Lifecycle ---

    def publish_from(
        self,
        previous_published: ContentType | None,
        *,
        last_published_version: int | None = None,
    ) -> ContentType:
        """Produce the Published snapshot of this draft.

        The new version follows the higher of *previous_published* and
        *last_published_version*; the latter covers publications that were
        since deleted.

        Raises:
            CannotPublishError: this snapshot is not a Draft, or
                *previous_published* belongs to another name.
        """
        if self.status is not ContentTypeStatus.DRAFT:
            msg = f"Only drafts can be published. Current status: {self.status}."
            raise CannotPublishError(msg, detail={"status": str(self.status)})
        if previous_published is not None and previous_published.name != self.name:
            msg = (
                f"Previous publication {previous_published.name!r} does not match "
                f"content type {self.name!r}"
            )
            raise CannotPublishError(msg)

        floor = max(
            previous_published.version if previous_published is not None else 0,
            last_published_version or 0,
        )
        next_version = floor + 1 if floor else INITIAL_VERSION
        return ContentType(
            name=self.name,
            fields=tuple(f.copy_with_new_id() for f in self.fields),
            version=next_version,
            status=ContentTypeStatus.PUBLISHED,
        )

    def soft_delete(self, at: datetime | None = None) -> ContentType:
        """Return a copy flagged as deleted. Already-deleted snapshots are returned as-is."""
        if self.is_deleted:
            return self
        return replace(self, is_deleted=True, deleted_at=at or _utcnow())

    def archive(self, at: datetime | None = None) -> ContentType:
        """Retire a Published snapshot: status Archived plus soft delete.

        Raises:
            CannotPublishError: the snapshot is not Published.
        """
        if not is_valid_transition(self.status, ContentTypeStatus.ARCHIVED):
            msg = f"Only published content types can be archived. Current status: {self.status}."
            raise CannotPublishError(msg, detail={"status": str(self.status)})
        archived = replace(self, status=ContentTypeStatus.ARCHIVED)
        return archived.soft_delete(at)
