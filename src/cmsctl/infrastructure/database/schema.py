"""SQLAlchemy Core table definitions for the cmsctl database.

Content types are append-only snapshots: publishing inserts a new row and
archives the previous Published one. Field rule lists are persisted as
JSON "shadow" columns produced by the rule registries. Content items keep
one JSON value per field of the snapshot they were created against.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

content_types = Table(
    "content_types",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text, nullable=False),
    Column("version", Integer, nullable=False),
    Column("status", Text, nullable=False),
    Column("created_at", Text, nullable=False),
    Column("is_deleted", Integer, nullable=False, default=0, server_default="0"),
    Column("deleted_at", Text),
    # Two writers racing for the same version lose here.
    UniqueConstraint("name", "status", "version", name="uq_content_types_name_status_version"),
)

fields = Table(
    "fields",
    metadata,
    Column("id", Text, primary_key=True),
    Column("content_type_id", Text, ForeignKey("content_types.id"), nullable=False),
    Column("position", Integer, nullable=False),
    Column("name", Text, nullable=False),
    Column("field_type", Text, nullable=False),
    Column("is_required", Integer, nullable=False, default=0, server_default="0"),
    Column("validation_rules", Text),  # JSON array or NULL
    Column("transformation_rules", Text),  # JSON array or NULL
    UniqueConstraint("content_type_id", "name"),
)

content_items = Table(
    "content_items",
    metadata,
    Column("id", Text, primary_key=True),
    Column("content_type_id", Text, ForeignKey("content_types.id"), nullable=False),
    Column("title", Text, nullable=False),
    Column("created_at", Text, nullable=False),
)

content_field_values = Table(
    "content_field_values",
    metadata,
    Column("item_id", Text, ForeignKey("content_items.id"), nullable=False),
    Column("field_id", Text, ForeignKey("fields.id"), nullable=False),
    Column("value", Text),  # JSON
    Column("updated_at", Text, nullable=False),
    PrimaryKeyConstraint("item_id", "field_id"),
)

roles = Table(
    "roles",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text, nullable=False, unique=True),
)

actor_roles = Table(
    "actor_roles",
    metadata,
    Column("actor_id", Text, nullable=False),
    Column("role_id", Text, ForeignKey("roles.id"), nullable=False),
    PrimaryKeyConstraint("actor_id", "role_id"),
)

permission_rules = Table(
    "permission_rules",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("role_id", Text, ForeignKey("roles.id"), nullable=False),
    Column("actor_type", Text, nullable=False),
    Column("action", Text, nullable=False),
    Column("resource_type", Text, nullable=False),
    Column("resource_id", Text),  # NULL for type-level rules
    Column("scope", Text, nullable=False),
)

Index("ix_content_types_name", content_types.c.name)
Index("ix_fields_content_type", fields.c.content_type_id, fields.c.position)
Index("ix_permission_rules_role", permission_rules.c.role_id)
Index("ix_content_items_type", content_items.c.content_type_id, content_items.c.created_at)
