"""Content items — instances of a content type holding per-field values.

Values are only ever stored after the field's transform/validate pipeline
has accepted them. A rejected value leaves the item untouched.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from cmsctl.domain.content_types import ContentType
from cmsctl.domain.errors import CmsError, ErrorKind
from cmsctl.domain.fields import REQUIRED_MESSAGE, Field
from cmsctl.domain.validation import FieldValidationResult, MultiFieldValidationResult


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ContentFieldValue:
    value: Any
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class ContentItem:
    """A content instance bound to one content type snapshot."""

    title: str
    content_type_id: uuid.UUID
    values: dict[uuid.UUID, ContentFieldValue] = field(default_factory=dict)
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=_utcnow)

    def value_of(self, field_id: uuid.UUID) -> Any:
        stored = self.values.get(field_id)
        return stored.value if stored is not None else None


def set_field_value(
    item: ContentItem,
    content_type: ContentType,
    field_id: uuid.UUID,
    raw: Any,
) -> FieldValidationResult:
    """Transform, validate and (on success) store one field value.

    Raises:
        CmsError: NOT_FOUND when *field_id* is not part of *content_type*.
    """
    if not content_type.has_field(field_id):
        msg = f"Field '{field_id}' not in ContentType '{content_type.name}'"
        raise CmsError(msg, kind=ErrorKind.NOT_FOUND, detail={"field_id": str(field_id)})

    value, result = content_type.field(field_id).process(raw)
    if result.is_valid:
        item.values[field_id] = ContentFieldValue(value)
    return result


def _reject_unknown(content_type: ContentType, values: Mapping[uuid.UUID, Any]) -> None:
    unknown = [fid for fid in values if not content_type.has_field(fid)]
    if unknown:
        msg = f"Content type '{content_type.name}' has no field(s): " + ", ".join(
            str(fid) for fid in unknown
        )
        raise CmsError(
            msg,
            kind=ErrorKind.CONFLICT,
            detail={"unknown_fields": [str(fid) for fid in unknown]},
        )


def _absent(f: Field) -> FieldValidationResult:
    missing = FieldValidationResult(field_name=f.name)
    if f.is_required:
        missing.add_error(REQUIRED_MESSAGE)
    return missing


def validate_values(
    content_type: ContentType,
    values: Mapping[uuid.UUID, Any],
) -> tuple[dict[uuid.UUID, Any], MultiFieldValidationResult]:
    """Run every field of *content_type* over *values*.

    Returns the transformed values for fields that were supplied, plus one
    result per field. Required fields absent from *values* fail.

    Raises:
        CmsError: CONFLICT when *values* references a field id the content
            type does not define.
    """
    _reject_unknown(content_type, values)

    transformed: dict[uuid.UUID, Any] = {}
    results = MultiFieldValidationResult()
    for f in content_type.fields:
        if f.id not in values:
            results.add(_absent(f))
            continue
        value, result = f.process(values[f.id])
        transformed[f.id] = value
        results.add(result)
    return transformed, results


def fill_item(
    item: ContentItem,
    content_type: ContentType,
    values: Mapping[uuid.UUID, Any],
) -> MultiFieldValidationResult:
    """Store *values* on *item* through :func:`set_field_value`.

    Each accepted value is written as it passes; rejected ones are not.
    Callers discard the item when the combined result is not valid.

    Raises:
        CmsError: CONFLICT when *values* references a field id the content
            type does not define.
    """
    _reject_unknown(content_type, values)

    results = MultiFieldValidationResult()
    for f in content_type.fields:
        if f.id in values:
            results.add(set_field_value(item, content_type, f.id, values[f.id]))
        else:
            results.add(_absent(f))
    return results
