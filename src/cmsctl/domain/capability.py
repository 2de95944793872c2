"""Capability tags — the data shape a rule is designed to operate on.

Capabilities are plain names rather than an enum so that rule families
shipped by plugins can declare new ones. The registry never enforces
compatibility; :func:`is_compatible` surfaces it as data for callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from cmsctl.domain.fields import FieldType


@dataclass(frozen=True)
class Capability:
    """A named data-shape constraint (e.g. ``Text``, ``Numeric``)."""

    name: str

    TEXT: ClassVar[str] = "Text"
    NUMERIC: ClassVar[str] = "Numeric"
    DATE: ClassVar[str] = "Date"

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            msg = "Capability name must not be empty"
            raise ValueError(msg)

    def __str__(self) -> str:
        return self.name

    @classmethod
    def text(cls) -> Capability:
        return cls(cls.TEXT)

    @classmethod
    def numeric(cls) -> Capability:
        return cls(cls.NUMERIC)

    @classmethod
    def date(cls) -> Capability:
        return cls(cls.DATE)


# Standard capability -> field type names it may be attached to.
# Capabilities absent from this map are unconstrained.
_COMPATIBLE_FIELD_TYPES: dict[str, frozenset[str]] = {
    Capability.TEXT: frozenset({"Text", "Richtext", "Markdown"}),
    Capability.NUMERIC: frozenset({"Numeric"}),
    Capability.DATE: frozenset(),
}


def compatible_field_types(capability: Capability) -> frozenset[str] | None:
    """Return the field type names *capability* applies to, or None if unconstrained."""
    return _COMPATIBLE_FIELD_TYPES.get(capability.name)


def is_compatible(capability: Capability, field_type: FieldType | str) -> bool:
    """Check whether a rule declaring *capability* can apply to *field_type*."""
    allowed = compatible_field_types(capability)
    if allowed is None:
        return True
    return str(field_type) in allowed
