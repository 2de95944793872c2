"""Field — a named, typed schema slot with its rule pipeline.

Pipeline for a raw input value: run transformation rules in declaration
order, then validate the *transformed* value against every validation
rule and aggregate all messages under the field's name.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from cmsctl.domain.rules import TransformationRule, ValidationRule
from cmsctl.domain.validation import FieldValidationResult

REQUIRED_MESSAGE = "Field is required!"


class FieldType(StrEnum):
    """Supported field data types."""

    TEXT = "Text"
    NUMERIC = "Numeric"
    BOOLEAN = "Boolean"
    RICHTEXT = "Richtext"
    MARKDOWN = "Markdown"

    @classmethod
    def parse(cls, raw: str) -> FieldType | None:
        """Case-insensitive lookup by value; None when unknown."""
        for member in cls:
            if member.value.lower() == raw.strip().lower():
                return member
        return None


@dataclass(frozen=True)
class Field:
    """A schema slot. Immutable; rule lists are replaced wholesale via :meth:`with_rules`."""

    name: str
    field_type: FieldType
    is_required: bool = False
    validation_rules: tuple[ValidationRule, ...] = ()
    transformation_rules: tuple[TransformationRule, ...] = ()
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            msg = "Field name must not be empty"
            raise ValueError(msg)
        # Accept any iterable at construction but store tuples.
        object.__setattr__(self, "validation_rules", tuple(self.validation_rules))
        object.__setattr__(self, "transformation_rules", tuple(self.transformation_rules))

    def with_rules(
        self,
        *,
        validation_rules: Iterable[ValidationRule] | None = None,
        transformation_rules: Iterable[TransformationRule] | None = None,
    ) -> Field:
        """Return a copy with one or both rule lists replaced."""
        changes: dict[str, Any] = {}
        if validation_rules is not None:
            changes["validation_rules"] = tuple(validation_rules)
        if transformation_rules is not None:
            changes["transformation_rules"] = tuple(transformation_rules)
        return replace(self, **changes)

    def copy_with_new_id(self) -> Field:
        return replace(self, id=uuid.uuid4())

    # --- Value pipeline ---

    def apply_transformers(self, raw: Any) -> Any:
        value = raw
        for rule in self.transformation_rules:
            value = rule.transform(value)
        return value

    def validate(self, value: Any) -> FieldValidationResult:
        """Validate an already-transformed value.

        ``None`` fails a required field outright and passes an optional one
        without consulting the rules.
        """
        result = FieldValidationResult(field_name=self.name)
        if value is None:
            if self.is_required:
                result.add_error(REQUIRED_MESSAGE)
            return result
        for rule in self.validation_rules:
            result.add_errors(rule.validate(value))
        return result

    def process(self, raw: Any) -> tuple[Any, FieldValidationResult]:
        """Transform then validate; returns ``(transformed, result)``."""
        value = self.apply_transformers(raw)
        return value, self.validate(value)
