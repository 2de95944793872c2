"""Typed command and payload contracts for the service boundary.

Command models are deliberately loose (every field optional, types as raw
strings) so that shape problems reach the service's own validation and
come back as per-field messages instead of pydantic errors. Payload
models validate what leaves the service layer.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cmsctl.domain.content_items import ContentItem
from cmsctl.domain.content_types import ContentType
from cmsctl.domain.fields import Field as SchemaField
from cmsctl.domain.rules import Rule


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    return model_cls.model_validate(data).model_dump(mode="json")


# --- Commands ---


class RuleInput(BaseModel):
    """``{type, parameters}`` as submitted by a caller."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = ""
    parameters: dict[str, Any] | None = None


class FieldInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    type: str = ""
    is_required: bool = Field(default=False, alias="isRequired")
    validation_rules: list[RuleInput] = Field(default_factory=list, alias="validationRules")
    transformation_rules: list[RuleInput] = Field(
        default_factory=list, alias="transformationRules"
    )

    @field_validator("validation_rules", "transformation_rules", mode="before")
    @classmethod
    def _null_rules_are_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class CreateContentTypeCommand(BaseModel):
    """Request to create a new Draft snapshot of a content type.

    Accepts both ``snake_case`` and the ``camelCase`` keys used by API
    payloads (``isRequired``, ``validationRules``, ``transformationRules``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    fields: list[FieldInput] = Field(default_factory=list)


# --- Payloads ---


class RuleData(BaseModel):
    type: str
    parameters: dict[str, Any] | None = None


class FieldData(BaseModel):
    id: str
    name: str
    type: str
    is_required: bool
    validation_rules: list[RuleData]
    transformation_rules: list[RuleData]


class ContentTypeData(BaseModel):
    """Projection of one content type snapshot."""

    id: str
    name: str
    status: str
    version: int
    created_at: str
    fields: list[FieldData]


class ContentTypePage(BaseModel):
    items: list[ContentTypeData]
    page: int
    page_size: int
    total: int


def _rules(rules: tuple[Rule, ...]) -> list[dict[str, Any]]:
    return [rule.descriptor() for rule in rules]


def _field(f: SchemaField) -> dict[str, Any]:
    return {
        "id": str(f.id),
        "name": f.name,
        "type": str(f.field_type),
        "is_required": f.is_required,
        "validation_rules": _rules(f.validation_rules),
        "transformation_rules": _rules(f.transformation_rules),
    }


def content_type_payload(content_type: ContentType) -> dict[str, Any]:
    """Serialize *content_type* into the validated projection dict."""
    return dump_validated(
        ContentTypeData,
        {
            "id": str(content_type.id),
            "name": content_type.name,
            "status": str(content_type.status),
            "version": content_type.version,
            "created_at": content_type.created_at.isoformat(),
            "fields": [_field(f) for f in content_type.fields],
        },
    )


class ContentItemData(BaseModel):
    """Projection of one stored content item; values keyed by field name."""

    id: str
    title: str
    content_type_id: str
    created_at: str
    values: dict[str, Any]


class ContentItemSummary(BaseModel):
    id: str
    title: str
    created_at: str


class ContentItemPage(BaseModel):
    content_type_id: str
    items: list[ContentItemSummary]
    page: int
    page_size: int
    total: int


def content_item_payload(item: ContentItem, content_type: ContentType) -> dict[str, Any]:
    """Serialize *item*, naming values after the fields of *content_type*."""
    values: dict[str, Any] = {}
    for f in content_type.fields:
        if f.id in item.values:
            values[f.name] = item.value_of(f.id)
    return dump_validated(
        ContentItemData,
        {
            "id": str(item.id),
            "title": item.title,
            "content_type_id": str(item.content_type_id),
            "created_at": item.created_at.isoformat(),
            "values": values,
        },
    )
