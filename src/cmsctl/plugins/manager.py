"""Plugin discovery, rule registration and lifecycle dispatch.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus local directory discovery from ``.cmsctl/plugins/``.
Capabilities: rule classes for the registries, lifecycle hooks.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pluggy

from cmsctl.plugins.hookspecs import CmsctlHookSpec

if TYPE_CHECKING:
    from cmsctl.domain.registry import RuleRegistries

PROJECT_NAME = "cmsctl"
ENTRY_POINT_GROUP = "cmsctl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(CmsctlHookSpec)
        self._loaded: bool = False

    def discover_and_load(
        self,
        *,
        local_dir: Path | None = None,
        entry_points: bool = True,
    ) -> list[str]:
        """Discover plugins from entry points and an optional local directory.

        Returns a list of loaded plugin names.
        """
        if entry_points:
            self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
            self._normalize_plugin_instances()
        if local_dir is not None:
            self._discover_local(local_dir)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly (e.g. built-in plugins)."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Rule registration
    # ------------------------------------------------------------------

    def populate_registries(self, registries: RuleRegistries) -> dict[str, list[str]]:
        """Feed every plugin's rule classes into *registries*.

        Each plugin is asked separately so one failing plugin cannot hide
        the rules of the others. Returns the type ids added per family.
        """
        validation_sources = self._collect("register_validation_rules")
        transformation_sources = self._collect("register_transformation_rules")
        return {
            "validation": registries.validation.discover(validation_sources),
            "transformation": registries.transformation.discover(transformation_sources),
        }

    def _collect(self, hook_name: str) -> list[list[Any]]:
        sources: list[list[Any]] = []
        for plugin in self._pm.get_plugins():
            hook = getattr(plugin, hook_name, None)
            if hook is None:
                continue
            plugin_name = self._pm.get_name(plugin) or plugin.__class__.__name__
            try:
                contributed = hook()
            except Exception:
                logger.warning(
                    "Failed to collect %s from plugin %s",
                    hook_name,
                    plugin_name,
                    exc_info=True,
                )
                continue
            if contributed is None:
                continue
            if not isinstance(contributed, (list, tuple)):
                logger.warning("Plugin %s returned non-list from %s", plugin_name, hook_name)
                continue
            sources.append(list(contributed))
        return sources

    # ------------------------------------------------------------------
    # Lifecycle dispatch
    # ------------------------------------------------------------------

    def dispatch(self, hook_name: str, **payload: Any) -> list[str]:
        """Call lifecycle hook *hook_name* synchronously.

        Returns warning strings instead of raising; a failing plugin never
        fails the operation that triggered it.
        """
        caller = getattr(self._pm.hook, hook_name, None)
        if caller is None:
            return [f"Unknown plugin hook: {hook_name}"]
        try:
            caller(**payload)
        except Exception as exc:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)
            return [f"Plugin hook {hook_name} failed: {exc}"]
        return []

    # ------------------------------------------------------------------
    # Local directory discovery
    # ------------------------------------------------------------------

    def _discover_local(self, local_dir: Path) -> None:
        """Scan *local_dir* for single-file Python plugins.

        Each ``*.py`` file (excluding ``_``-prefixed names) is loaded as a
        module. Classes defined in the module that carry hookimpl-decorated
        methods are instantiated and registered. Errors are logged as
        warnings and the file is skipped.
        """
        if not local_dir.is_dir():
            return

        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module_name = f"cmsctl_local_plugin_{py_file.stem}"
            try:
                spec = importlib.util.spec_from_file_location(module_name, py_file)
                if spec is None or spec.loader is None:
                    logger.warning("Could not create module spec for %s", py_file)
                    continue
                module = importlib.util.module_from_spec(spec)
                sys.modules[module_name] = module
                spec.loader.exec_module(module)
            except Exception:
                logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
                sys.modules.pop(module_name, None)
                continue

            for _attr_name, obj in inspect.getmembers(module, inspect.isclass):
                if obj.__module__ != module_name:
                    continue
                if not self._has_hook_impls(obj):
                    continue
                try:
                    self.register_plugin(obj(), name=f"{module_name}.{obj.__name__}")
                except Exception:
                    logger.warning(
                        "Failed to instantiate plugin class %s from %s",
                        obj.__name__,
                        py_file,
                        exc_info=True,
                    )

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly, which
        leaves ``self`` unbound at dispatch time.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            if not self._has_hook_impls(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)

            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any method decorated with ``@hookimpl``.

        ``HookimplMarker("cmsctl")`` sets a ``cmsctl_impl`` attribute.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "cmsctl_impl", None):
                return True
        return False
