"""Repositories — SQL encapsulation behind domain-typed methods."""

from cmsctl.infrastructure.repositories.content_items import ContentItemRepository
from cmsctl.infrastructure.repositories.content_types import ContentTypeRepository
from cmsctl.infrastructure.repositories.permissions import PermissionRepository

__all__ = ["ContentItemRepository", "ContentTypeRepository", "PermissionRepository"]
