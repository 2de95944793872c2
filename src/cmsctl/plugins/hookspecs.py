"""Pluggy hook specifications for rule registration and lifecycle events.

Two setup-time hooks let plugins contribute rule classes to the rule
registries. Three lifecycle hooks fire synchronously after a content type
mutation commits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from cmsctl.domain.rules import TransformationRule, ValidationRule

hookspec = pluggy.HookspecMarker("cmsctl")


class CmsctlHookSpec:
    """Hook specifications for the cmsctl plugin system."""

    @hookspec
    def register_validation_rules(self) -> list[type[ValidationRule]] | None:
        """Return validation rule classes constructible with no arguments."""

    @hookspec
    def register_transformation_rules(self) -> list[type[TransformationRule]] | None:
        """Return transformation rule classes constructible with no arguments."""

    @hookspec
    def post_create_content_type(
        self,
        content_type_id: str,
        name: str,
        version: int,
    ) -> None:
        """Called after a draft content type is stored."""

    @hookspec
    def post_publish_content_type(
        self,
        content_type_id: str,
        name: str,
        version: int,
        archived_id: str | None,
    ) -> None:
        """Called after a draft is published (and any predecessor archived)."""

    @hookspec
    def post_delete_content_type(self, content_type_id: str, name: str) -> None:
        """Called after a content type is soft-deleted."""
