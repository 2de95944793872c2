"""InitService — create a cmsctl project (config file + seeded store)."""

from __future__ import annotations

import logging
from pathlib import Path

from cmsctl.config.discovery import CONFIG_FILENAME
from cmsctl.config.settings import CmsSettings
from cmsctl.domain.errors import ErrorKind
from cmsctl.infrastructure.database.engine import ADMIN_ACTOR_ID
from cmsctl.infrastructure.store import Store
from cmsctl.services.result import ServiceResult

logger = logging.getLogger(__name__)

CONFIG_TEMPLATE = """\
# cmsctl project configuration. Every key is optional.

[store]
path = "{store_path}"

[auth]
admin_role = "{admin_role}"
"""


class InitService:
    """Stateless project bootstrap; there is no Store before init."""

    @staticmethod
    def init_project(
        root: Path,
        *,
        store_path: str = ".cmsctl/cms.db",
        admin_role: str = "Admin",
    ) -> ServiceResult:
        """Write ``cmsctl.toml`` under *root* and create the database.

        An existing config file is kept as-is; the store is still
        (re)initialized, which is idempotent.
        """
        op = "init_project"
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"Cannot create {root}: {exc}"
            return ServiceResult.failure(op, ErrorKind.INFRASTRUCTURE, msg)

        config_path = root / CONFIG_FILENAME
        warnings: list[str] = []
        if config_path.exists():
            warnings.append(f"{CONFIG_FILENAME} already exists; left unchanged")
        else:
            config_path.write_text(
                CONFIG_TEMPLATE.format(store_path=store_path, admin_role=admin_role),
                encoding="utf-8",
            )

        settings = CmsSettings.from_cli(config_path=str(config_path), project_root=root)
        store = Store(settings)
        try:
            rule_count = len(store.registries.validation.list_types()) + len(
                store.registries.transformation.list_types()
            )
        finally:
            store.close()

        logger.info("Initialized cmsctl project at %s", root)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "root": str(root),
                "config": str(config_path),
                "store": str(settings.store_path),
                "admin_actor_id": str(ADMIN_ACTOR_ID),
                "admin_role": settings.auth.admin_role,
                "rule_types": rule_count,
            },
            warnings=warnings,
        )
