"""Store — the single dependency injected into every service.

The Store owns the database engine, the rule registries, the plugin
manager and the repositories. Wiring happens once, at construction:

1. built-in and discovered plugins are registered
2. every plugin's rule classes are fed to the registries
3. the registries are frozen (unless configured otherwise)
4. the database is created and seeded

:meth:`Store.transaction` wraps ``engine.begin()``: commit on a clean
exit, rollback on any exception.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING

from cmsctl.domain.registry import RuleRegistries
from cmsctl.infrastructure.database.engine import init_database
from cmsctl.infrastructure.repositories import (
    ContentItemRepository,
    ContentTypeRepository,
    PermissionRepository,
)
from cmsctl.plugins.builtins.standard_rules import StandardRulesPlugin
from cmsctl.plugins.manager import PluginManager

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from cmsctl.config.settings import CmsSettings

logger = logging.getLogger(__name__)


class Store:
    """Engine, registries, plugins and repositories behind one object.

    Args:
        settings: Resolved settings.
        plugins: Extra plugin instances registered ahead of discovery.
        in_memory: Use a private in-memory database instead of
            ``settings.store_path``.
    """

    def __init__(
        self,
        settings: CmsSettings,
        *,
        plugins: Sequence[object] = (),
        in_memory: bool = False,
    ) -> None:
        self._settings = settings
        self._plugin_manager = PluginManager()
        self._plugin_manager.register_plugin(StandardRulesPlugin(), name="standard-rules")
        for plugin in plugins:
            self._plugin_manager.register_plugin(plugin)
        self._plugin_manager.discover_and_load(
            local_dir=settings.plugin_dir,
            entry_points=settings.plugins.entry_points,
        )

        self._registries = RuleRegistries()
        added = self._plugin_manager.populate_registries(self._registries)
        if settings.rules.freeze_after_discovery:
            self._registries.freeze()
        logger.debug(
            "Rule registries ready: %d validation, %d transformation",
            len(added["validation"]),
            len(added["transformation"]),
        )

        db_path: Path | None = None if in_memory else settings.store_path
        self._engine: Engine = init_database(db_path, admin_role=settings.auth.admin_role)
        self._content_types = ContentTypeRepository(self._engine, self._registries)
        self._permissions = PermissionRepository(self._engine)
        self._content_items = ContentItemRepository(self._engine)

    @property
    def settings(self) -> CmsSettings:
        return self._settings

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def registries(self) -> RuleRegistries:
        return self._registries

    @property
    def plugin_manager(self) -> PluginManager:
        return self._plugin_manager

    @property
    def content_types(self) -> ContentTypeRepository:
        return self._content_types

    @property
    def permissions(self) -> PermissionRepository:
        return self._permissions

    @property
    def content_items(self) -> ContentItemRepository:
        return self._content_items

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """One database transaction; commits on success, rolls back on error.

        Usage::

            with store.transaction() as conn:
                store.content_types.add(conn, draft)
        """
        with self._engine.begin() as conn:
            yield conn

    def close(self) -> None:
        self._engine.dispose()
