"""Shared pytest fixtures and test helpers for cmsctl tests."""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any

import pytest
import structlog
from click.testing import CliRunner

from cmsctl.config.settings import CmsSettings
from cmsctl.infrastructure.database.engine import ADMIN_ACTOR_ID
from cmsctl.infrastructure.store import Store
from cmsctl.services.authorization import ActorContext, AuthorizationService
from cmsctl.services.telemetry import disable_telemetry

PRODUCT_COMMAND: dict[str, Any] = {
    "name": "Product",
    "fields": [
        {
            "name": "Name",
            "type": "Text",
            "isRequired": True,
            "validationRules": [
                {"type": "MaximumLengthValidationRule", "parameters": {"max-length": 256}},
            ],
            "transformationRules": [{"type": "TrimWhitespace"}],
        },
        {
            "name": "Slug",
            "type": "Text",
            "validationRules": [
                {"type": "IsLowercaseRule"},
                {"type": "RegexRule", "parameters": {"regex": "^[a-z0-9-]+$"}},
            ],
            "transformationRules": [{"type": "Lowercase"}],
        },
        {"name": "Price", "type": "Numeric", "isRequired": True},
    ],
}


@pytest.fixture(autouse=True)
def _no_ambient_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of settings resolution."""
    for var in ("CMSCTL_CONFIG", "CMSCTL_ACTOR", "CMSCTL_ROLES"):
        monkeypatch.delenv(var, raising=False)
    yield
    disable_telemetry()
    # CLI runs leave a handler bound to a CliRunner stream that is now closed.
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings(tmp_path: Path) -> CmsSettings:
    return CmsSettings.from_cli(project_root=tmp_path)


@pytest.fixture
def store(settings: CmsSettings) -> Store:
    """File-backed store under ``tmp_path/.cmsctl``, seeded with the admin role."""
    s = Store(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def admin(store: Store) -> ActorContext:
    return AuthorizationService(store).context_for(ADMIN_ACTOR_ID)


@pytest.fixture
def user(store: Store) -> ActorContext:
    """An authenticated actor with no roles, so every check falls to implicit deny."""
    return AuthorizationService(store).context_for(uuid.uuid4())


@pytest.fixture
def _isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI creates an isolated store.

    Use via ``@pytest.mark.usefixtures("_isolated_project")`` on command test
    classes.
    """
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def create_type(store: Store, ctx: ActorContext, command: dict[str, Any]) -> dict[str, Any]:
    """Create a content type via ContentTypeService, asserting success."""
    from cmsctl.services.content_types import ContentTypeService

    result = ContentTypeService(store).create_content_type(ctx, command)
    assert result.ok, result.error
    return result.data


def publish_type(store: Store, ctx: ActorContext, name: str) -> dict[str, Any]:
    """Publish via ContentTypeService, asserting success."""
    from cmsctl.services.content_types import ContentTypeService

    result = ContentTypeService(store).publish_content_type(ctx, name)
    assert result.ok, result.error
    return result.data


def grant(store: Store, admin: ActorContext, role: str, action: str, resource_type: str, **kw: Any) -> None:
    """Add a permission rule via PermissionService, asserting success."""
    from cmsctl.services.permissions import PermissionService

    result = PermissionService(store).grant(admin, role, action, resource_type, **kw)
    assert result.ok, result.error


def actor_with_role(store: Store, admin: ActorContext, role: str) -> ActorContext:
    """A fresh actor assigned *role*, as a resolved context."""
    from cmsctl.services.permissions import PermissionService

    actor_id = uuid.uuid4()
    result = PermissionService(store).assign_role(admin, actor_id, role)
    assert result.ok, result.error
    return AuthorizationService(store).context_for(actor_id)


def json_error(result: Any) -> dict[str, Any]:
    """The ``--json`` failure document from a CliRunner result's stderr.

    Log records (denials, hook failures) may precede it on the same stream.
    """
    text = result.stderr
    return json.loads(text[text.index('{\n  "ok"') :])
