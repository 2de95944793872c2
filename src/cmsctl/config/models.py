"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, cmsctl.toml only contains overrides.
A fresh project needs no sections at all.
"""

from __future__ import annotations

from pydantic import BaseModel, field_validator, model_validator


class StoreConfig(BaseModel):
    """[store] section. Relative paths resolve against the project root."""

    model_config = {"frozen": True}

    path: str = ".cmsctl/cms.db"


class AuthConfig(BaseModel):
    """[auth] section."""

    model_config = {"frozen": True}

    admin_role: str = "Admin"
    default_actor_type: str = "User"

    @field_validator("admin_role")
    @classmethod
    def _admin_role_not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = "admin_role must not be blank"
            raise ValueError(msg)
        return value


class RulesConfig(BaseModel):
    """[rules] section."""

    model_config = {"frozen": True}

    freeze_after_discovery: bool = True
    warn_on_capability_mismatch: bool = True


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    local_dir: str = ".cmsctl/plugins"
    entry_points: bool = True


class ListingConfig(BaseModel):
    """[listing] section."""

    model_config = {"frozen": True}

    default_page_size: int = 20
    max_page_size: int = 100

    @model_validator(mode="after")
    def _sizes_consistent(self) -> ListingConfig:
        if self.default_page_size < 1 or self.max_page_size < 1:
            msg = "page sizes must be positive"
            raise ValueError(msg)
        if self.default_page_size > self.max_page_size:
            msg = "default_page_size cannot exceed max_page_size"
            raise ValueError(msg)
        return self
