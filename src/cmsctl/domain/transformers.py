"""Built-in transformation rules."""

from __future__ import annotations

from typing import Any

from cmsctl.domain.capability import Capability
from cmsctl.domain.rules import TransformationRule


class TruncateByLengthTransformationRule(TransformationRule):
    """Cut strings down to ``truncationLength`` characters.

    Non-strings pass through. A missing, malformed, or negative length
    leaves the value unchanged.
    """

    type_name = "TruncateByLength"
    parameterized = True
    PARAMETER = "truncationLength"

    @classmethod
    def of(cls, truncation_length: int) -> TruncateByLengthTransformationRule:
        if truncation_length < 0:
            msg = "Truncation length must be non-negative."
            raise ValueError(msg)
        return cls({cls.PARAMETER: truncation_length})

    @property
    def required_capability(self) -> Capability:
        return Capability.text()

    def transform(self, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        max_length = self.int_parameter(self.PARAMETER)
        if max_length is None or max_length < 0:
            return value
        return value[:max_length]


class LowercaseTransformationRule(TransformationRule):
    type_name = "Lowercase"

    @property
    def required_capability(self) -> Capability:
        return Capability.text()

    def transform(self, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


class TrimWhitespaceTransformationRule(TransformationRule):
    type_name = "TrimWhitespace"

    @property
    def required_capability(self) -> Capability:
        return Capability.text()

    def transform(self, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


BUILTIN_TRANSFORMATION_RULES: tuple[type[TransformationRule], ...] = (
    TruncateByLengthTransformationRule,
    LowercaseTransformationRule,
    TrimWhitespaceTransformationRule,
)
