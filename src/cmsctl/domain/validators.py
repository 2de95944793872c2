"""Built-in validation rules.

Type names are the storage keys and must never change once persisted.
"""

from __future__ import annotations

import re
from typing import Any

from cmsctl.domain.capability import Capability
from cmsctl.domain.rules import ValidationRule

NOT_A_STRING = "Value must be string."


class MinimumLengthValidationRule(ValidationRule):
    """Text must have at least ``min-length`` characters (whitespace counts)."""

    type_name = "MinimumLengthValidationRule"
    parameterized = True
    PARAMETER = "min-length"

    @classmethod
    def of(cls, minimum_length: int) -> MinimumLengthValidationRule:
        return cls({cls.PARAMETER: minimum_length})

    @property
    def required_capability(self) -> Capability:
        return Capability.text()

    def validate(self, value: Any) -> list[str]:
        if not isinstance(value, str):
            return [NOT_A_STRING]
        min_length = self.int_parameter(self.PARAMETER)
        if min_length is None:
            return ["Invalid minimum length configuration."]
        if len(value) < min_length:
            return [f"Minimum length is {min_length}."]
        return []


class MaximumLengthValidationRule(ValidationRule):
    """Text must have at most ``max-length`` characters (whitespace counts)."""

    type_name = "MaximumLengthValidationRule"
    parameterized = True
    PARAMETER = "max-length"

    @classmethod
    def of(cls, maximum_length: int) -> MaximumLengthValidationRule:
        return cls({cls.PARAMETER: maximum_length})

    @property
    def required_capability(self) -> Capability:
        return Capability.text()

    def validate(self, value: Any) -> list[str]:
        if not isinstance(value, str):
            return [NOT_A_STRING]
        max_length = self.int_parameter(self.PARAMETER)
        if max_length is None:
            return ["Invalid maximum length configuration."]
        if len(value) > max_length:
            return [f"Maximum length is {max_length}."]
        return []


class RegexRule(ValidationRule):
    """Text must contain a match for the ``regex`` pattern (``re.search`` semantics)."""

    type_name = "RegexRule"
    parameterized = True
    PARAMETER = "regex"

    @classmethod
    def of(cls, pattern: str) -> RegexRule:
        return cls({cls.PARAMETER: pattern})

    @property
    def required_capability(self) -> Capability:
        return Capability.text()

    def validate(self, value: Any) -> list[str]:
        if not isinstance(value, str):
            return [NOT_A_STRING]
        pattern = self.str_parameter(self.PARAMETER)
        if pattern is None:
            return ["Invalid pattern configuration."]
        try:
            compiled = re.compile(pattern)
        except re.error:
            return ["Invalid pattern configuration."]
        if compiled.search(value) is None:
            return [f"Value does not match pattern '{pattern}'."]
        return []


class IsLowercaseRule(ValidationRule):
    """Text must contain no upper-case characters.

    Characters without case (digits, symbols, whitespace) are ignored, so
    the empty string passes.
    """

    type_name = "IsLowercaseRule"

    @property
    def required_capability(self) -> Capability:
        return Capability.text()

    def validate(self, value: Any) -> list[str]:
        if not isinstance(value, str):
            return [NOT_A_STRING]
        if any(ch.isupper() for ch in value):
            return [f"String {value} is not lowercase"]
        return []


BUILTIN_VALIDATION_RULES: tuple[type[ValidationRule], ...] = (
    MinimumLengthValidationRule,
    MaximumLengthValidationRule,
    RegexRule,
    IsLowercaseRule,
)
