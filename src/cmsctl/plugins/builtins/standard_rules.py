"""Built-in plugin contributing the standard rule set."""

from __future__ import annotations

import pluggy

from cmsctl.domain.rules import TransformationRule, ValidationRule
from cmsctl.domain.transformers import BUILTIN_TRANSFORMATION_RULES
from cmsctl.domain.validators import BUILTIN_VALIDATION_RULES

hookimpl = pluggy.HookimplMarker("cmsctl")


class StandardRulesPlugin:
    """Length, pattern and case validators plus the basic string transforms."""

    @hookimpl
    def register_validation_rules(self) -> list[type[ValidationRule]]:
        return list(BUILTIN_VALIDATION_RULES)

    @hookimpl
    def register_transformation_rules(self) -> list[type[TransformationRule]]:
        return list(BUILTIN_TRANSFORMATION_RULES)
