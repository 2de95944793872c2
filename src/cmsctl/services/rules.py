"""RuleCatalogService — what rule types this process can build."""

from __future__ import annotations

from cmsctl.services.base import BaseService
from cmsctl.services.result import ServiceResult
from cmsctl.services.telemetry import traced


class RuleCatalogService(BaseService):
    @traced
    def list_rules(self) -> ServiceResult:
        """Registered rule types per family with capability and parameterization."""
        registries = self._store.registries
        return ServiceResult(
            ok=True,
            op="list_rules",
            data={
                "validation": registries.validation.describe(),
                "transformation": registries.transformation.describe(),
                "frozen": registries.validation.is_frozen and registries.transformation.is_frozen,
            },
        )
