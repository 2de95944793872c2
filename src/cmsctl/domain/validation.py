"""Per-field and multi-field validation results.

Field-level failures are aggregated rather than raised so that a caller
can report every problem at once.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field


@dataclass
class FieldValidationResult:
    """Validation messages collected for a single named field."""

    field_name: str
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, message: str) -> None:
        """Append one message. Blank messages are a programming error."""
        if not message or not message.strip():
            msg = "Error message cannot be empty"
            raise ValueError(msg)
        self.errors.append(message)

    def add_errors(self, messages: Iterable[str]) -> None:
        """Append several messages, skipping blank ones."""
        self.errors.extend(m for m in messages if m and m.strip())


@dataclass
class MultiFieldValidationResult:
    """Ordered collection of :class:`FieldValidationResult` entries."""

    results: list[FieldValidationResult] = field(default_factory=list)

    def __iter__(self) -> Iterator[FieldValidationResult]:
        return iter(self.results)

    def add(self, result: FieldValidationResult) -> None:
        self.results.append(result)

    @property
    def is_valid(self) -> bool:
        return all(r.is_valid for r in self.results)

    def failures(self) -> list[FieldValidationResult]:
        return [r for r in self.results if not r.is_valid]

    def field_result(self, field_name: str) -> FieldValidationResult | None:
        for r in self.results:
            if r.field_name == field_name:
                return r
        return None

    def has_field_error(self, field_name: str, message: str) -> bool:
        r = self.field_result(field_name)
        return r is not None and message in r.errors

    def all_errors(self) -> list[str]:
        return [msg for r in self.failures() for msg in r.errors]

    def to_dict(self) -> dict[str, list[str]]:
        """Failing fields only, keyed by field name.

        Results sharing a field name are merged in insertion order.
        """
        out: dict[str, list[str]] = {}
        for r in self.failures():
            out.setdefault(r.field_name, []).extend(r.errors)
        return out
