"""Rule ABCs — the single interface every validation/transformation rule implements.

A rule is identified by its ``type_name`` (the stable storage key), declares
the :class:`Capability` it operates on, and optionally carries a parameter
map. Every rule must be constructible with zero arguments so the registry
can read its type without configuration.

Parameters cross a serialization boundary and cannot be trusted to be
well-typed. Rules read them through :meth:`Rule.int_parameter` /
:meth:`Rule.str_parameter`, which return ``None`` instead of raising, and
turn a missing or malformed value into a validation message.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar

from cmsctl.domain.capability import Capability


class Rule(ABC):
    """Shared identity and parameter handling for all rules."""

    type_name: ClassVar[str] = ""
    parameterized: ClassVar[bool] = False

    def __init__(self, parameters: Mapping[str, Any] | None = None) -> None:
        self._parameters: dict[str, Any] = {}
        if self.parameterized and parameters:
            self._parameters = {str(k): v for k, v in parameters.items()}

    @property
    def rule_type(self) -> str:
        return self.type_name

    @property
    @abstractmethod
    def required_capability(self) -> Capability:
        """The data shape this rule is designed for."""
        ...

    @property
    def parameters(self) -> dict[str, Any] | None:
        """A copy of the parameter map, or None for parameterless rules."""
        if not self.parameterized:
            return None
        return dict(self._parameters)

    def descriptor(self) -> dict[str, Any]:
        """The storage-neutral ``{type, parameters}`` form of this rule."""
        return {"type": self.rule_type, "parameters": self.parameters}

    # --- Defensive parameter access ---

    def int_parameter(self, key: str) -> int | None:
        """Coerce parameter *key* to an int, or None when absent or malformed.

        Accepts ints, integral floats, and numeric strings. Booleans are
        rejected even though they subclass int.
        """
        raw = self._parameters.get(key)
        if raw is None or isinstance(raw, bool):
            return None
        if isinstance(raw, int):
            return raw
        if isinstance(raw, float):
            return int(raw) if raw.is_integer() else None
        if isinstance(raw, str):
            try:
                return int(raw.strip())
            except ValueError:
                return None
        return None

    def str_parameter(self, key: str) -> str | None:
        raw = self._parameters.get(key)
        if raw is None:
            return None
        return raw if isinstance(raw, str) else str(raw)

    # --- Value semantics ---

    def _identity(self) -> tuple[str, str]:
        params = json.dumps(self.parameters, sort_keys=True, default=str)
        return self.rule_type, params

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rule):
            return NotImplemented
        return type(self) is type(other) and self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __repr__(self) -> str:
        if self.parameterized:
            return f"{type(self).__name__}({self._parameters!r})"
        return f"{type(self).__name__}()"


class ValidationRule(Rule):
    """A rule that inspects a value and reports error messages.

    ``validate`` must be total: any input, including the wrong runtime
    type, produces a (possibly empty) list of messages and never raises.
    """

    @abstractmethod
    def validate(self, value: Any) -> list[str]:
        """Return error messages for *value*; empty means valid."""
        ...


class TransformationRule(Rule):
    """A rule that maps a value to a new value before validation.

    Values outside the rule's capability pass through unchanged.
    """

    @abstractmethod
    def transform(self, value: Any) -> Any:
        """Return the transformed value."""
        ...
