"""Rule registry — type id -> factory lookup plus the shadow-storage codec.

One :class:`RuleRegistry` exists per rule family (validation and
transformation). Both are created once at wiring time, populated by
:meth:`RuleRegistry.discover` (via the plugin manager) and then frozen, after
which concurrent reads need no locking. Registries are injected explicitly
into every consumer; there is no module-level instance.

Shadow storage format (one JSON array per field and rule family)::

    [{"parameters": {"max-length": 256}, "type": "MaximumLengthValidationRule"},
     {"parameters": null, "type": "IsLowercaseRule"}]

An empty rule list is stored as ``None`` rather than ``"[]"``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from cmsctl.domain.capability import is_compatible
from cmsctl.domain.errors import RuleRegistryError
from cmsctl.domain.rules import Rule, TransformationRule, ValidationRule

logger = logging.getLogger(__name__)

type RuleFactory[R] = Callable[[Mapping[str, Any] | None], R]


class RuleRegistry[R: Rule]:
    """Discovers, instantiates, and (de)serializes one family of rules."""

    def __init__(self, family: str, base: type[R]) -> None:
        self.family = family
        self._base = base
        self._factories: dict[str, RuleFactory[R]] = {}
        self._frozen = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, type_id: str, factory: RuleFactory[R]) -> None:
        """Register *factory* under *type_id*.

        Re-registering the same factory is a no-op; a different factory
        for a taken id is a programming error.
        """
        if self._frozen:
            msg = f"{self.family} rule registry is frozen; cannot register {type_id!r}"
            raise RuntimeError(msg)
        if not type_id or not type_id.strip():
            msg = "Rule type id must not be empty"
            raise ValueError(msg)
        existing = self._factories.get(type_id)
        if existing is not None and existing is not factory:
            msg = f"{self.family} rule type {type_id!r} is already registered"
            raise ValueError(msg)
        self._factories[type_id] = factory

    def discover(self, sources: Iterable[Iterable[RuleFactory[R]]]) -> list[str]:
        """Register every usable candidate found in *sources*.

        Each candidate (usually a rule class) is called with no arguments
        and indexed by the ``rule_type`` its instance reports. Candidates
        that cannot be built that way, that are not rules of this family,
        or that report an empty type are skipped. Discovery never raises
        for a bad candidate.

        Returns the type ids registered by this call.
        """
        added: list[str] = []
        for source in sources:
            for candidate in source:
                try:
                    sample = candidate()  # type: ignore[call-arg]
                except Exception:
                    logger.debug(
                        "Skipping %s rule candidate %r", self.family, candidate, exc_info=True
                    )
                    continue
                if not isinstance(sample, self._base):
                    logger.debug("Skipping %r: not a %s rule", candidate, self.family)
                    continue
                type_id = sample.rule_type
                if not type_id:
                    continue
                try:
                    self.register(type_id, candidate)
                except ValueError:
                    logger.warning(
                        "Duplicate %s rule type %r from %r ignored",
                        self.family,
                        type_id,
                        candidate,
                    )
                    continue
                added.append(type_id)
        logger.debug("Discovered %d %s rule types", len(added), self.family)
        return added

    def freeze(self) -> None:
        """Make the lookup table read-only."""
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Lookup / construction
    # ------------------------------------------------------------------

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._factories

    def list_types(self) -> frozenset[str]:
        return frozenset(self._factories)

    def create(self, type_id: str, parameters: Mapping[str, Any] | None = None) -> R:
        """Build a configured rule.

        Raises:
            RuleRegistryError: *type_id* is not registered or its factory failed.
        """
        factory = self._factories.get(type_id)
        if factory is None:
            msg = (
                f"{self.family.capitalize()} rule '{type_id}' not registered. "
                "This should have been validated earlier."
            )
            raise RuleRegistryError(msg, detail={"type": type_id, "family": self.family})
        try:
            return factory(parameters)
        except Exception as exc:
            msg = f"Failed to build {self.family} rule '{type_id}': {exc}"
            raise RuleRegistryError(msg, detail={"type": type_id, "family": self.family}) from exc

    def try_create(
        self,
        type_id: str,
        parameters: Mapping[str, Any] | None = None,
    ) -> tuple[R | None, bool]:
        """Like :meth:`create` but reports failure as ``(None, False)``."""
        try:
            return self.create(type_id, parameters), True
        except RuleRegistryError:
            return None, False

    def describe(self) -> list[dict[str, Any]]:
        """Type, capability and parameterization of every registered rule, by type."""
        rows: list[dict[str, Any]] = []
        for type_id in sorted(self._factories):
            rule, ok = self.try_create(type_id)
            if not ok or rule is None:
                continue
            rows.append(
                {
                    "type": type_id,
                    "capability": rule.required_capability.name,
                    "parameterized": rule.parameterized,
                }
            )
        return rows

    # ------------------------------------------------------------------
    # Shadow storage codec
    # ------------------------------------------------------------------

    def serialize(self, rules: Sequence[R] | None) -> str | None:
        """Encode *rules* for storage; None or empty input yields None."""
        if not rules:
            return None
        payload = [rule.descriptor() for rule in rules]
        try:
            return json.dumps(payload, sort_keys=True, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            msg = f"Cannot serialize {self.family} rules: {exc}"
            raise RuleRegistryError(msg) from exc

    def deserialize(self, raw: str | None) -> list[R]:
        """Decode a stored rule list; None or blank input yields ``[]``.

        Raises:
            RuleRegistryError: malformed JSON, unexpected shape, or unknown type.
        """
        if raw is None or not raw.strip():
            return []
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            msg = f"Failed to deserialize {self.family} rules from JSON: {raw}"
            raise RuleRegistryError(msg) from exc
        if payload is None:
            return []
        if not isinstance(payload, list):
            msg = f"Stored {self.family} rules must be a JSON array, got {type(payload).__name__}"
            raise RuleRegistryError(msg)

        rules: list[R] = []
        for entry in payload:
            if not isinstance(entry, dict) or not isinstance(entry.get("type"), str):
                msg = f"Malformed {self.family} rule entry: {entry!r}"
                raise RuleRegistryError(msg)
            params = entry.get("parameters")
            if params is not None and not isinstance(params, dict):
                msg = f"Parameters for {self.family} rule {entry['type']!r} must be an object"
                raise RuleRegistryError(msg)
            rules.append(self.create(entry["type"], params))
        return rules


@dataclass
class RuleRegistries:
    """The validation and transformation registries, injected as one unit."""

    validation: RuleRegistry[ValidationRule] = field(
        default_factory=lambda: RuleRegistry("validation", ValidationRule)
    )
    transformation: RuleRegistry[TransformationRule] = field(
        default_factory=lambda: RuleRegistry("transformation", TransformationRule)
    )

    def freeze(self) -> None:
        self.validation.freeze()
        self.transformation.freeze()


def incompatible_rules(field_type: str, rules: Iterable[Rule]) -> list[Rule]:
    """Return the rules whose capability cannot apply to *field_type*."""
    return [r for r in rules if not is_compatible(r.required_capability, field_type)]
