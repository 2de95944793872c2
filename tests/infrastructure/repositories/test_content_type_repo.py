"""Tests for ContentTypeRepository — persistence, hydration and conflicts."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import update

from cmsctl.domain.content_types import ContentType, ContentTypeStatus
from cmsctl.domain.errors import RuleRegistryError, VersionConflictError
from cmsctl.domain.fields import Field, FieldType
from cmsctl.domain.transformers import TrimWhitespaceTransformationRule
from cmsctl.domain.validators import IsLowercaseRule, MaximumLengthValidationRule
from cmsctl.infrastructure.database.schema import fields
from cmsctl.infrastructure.repositories.content_types import parse_sort
from cmsctl.infrastructure.store import Store


def _product(version: int = 1, status: ContentTypeStatus = ContentTypeStatus.DRAFT) -> ContentType:
    return ContentType(
        name="Product",
        version=version,
        status=status,
        fields=(
            Field(
                name="Name",
                field_type=FieldType.TEXT,
                is_required=True,
                validation_rules=[MaximumLengthValidationRule.of(256), IsLowercaseRule()],
                transformation_rules=[TrimWhitespaceTransformationRule()],
            ),
            Field(name="Price", field_type=FieldType.NUMERIC),
        ),
    )


class TestRoundTrip:
    def test_hydrated_snapshot_matches(self, store: Store) -> None:
        ct = _product()
        with store.transaction() as conn:
            store.content_types.add(conn, ct)
        loaded = store.content_types.get_by_id(ct.id)
        assert loaded is not None
        assert loaded == ct
        assert loaded.fields[0].validation_rules == ct.fields[0].validation_rules
        assert loaded.fields[0].transformation_rules == ct.fields[0].transformation_rules
        assert [f.id for f in loaded.fields] == [f.id for f in ct.fields]

    def test_empty_rule_lists_stored_as_null(self, store: Store) -> None:
        ct = _product()
        with store.transaction() as conn:
            store.content_types.add(conn, ct)
            row = conn.execute(
                fields.select().where(fields.c.id == str(ct.fields[1].id))
            ).mappings().one()
        assert row["validation_rules"] is None
        assert row["transformation_rules"] is None

    def test_missing(self, store: Store) -> None:
        assert store.content_types.get_by_id(uuid.uuid4()) is None


class TestVersions:
    def test_latest_version_counts_deleted(self, store: Store) -> None:
        first = _product(1)
        with store.transaction() as conn:
            store.content_types.add(conn, first)
            store.content_types.mark_deleted(conn, first.soft_delete())
        assert store.content_types.latest_version("Product") == 1
        assert store.content_types.latest_draft("Product") is None

    def test_latest_by_status(self, store: Store) -> None:
        with store.transaction() as conn:
            for ct in (
                _product(1),
                _product(2),
                _product(1, ContentTypeStatus.PUBLISHED),
            ):
                store.content_types.add(conn, ct)
        draft = store.content_types.latest_draft("Product")
        published = store.content_types.latest_published("Product")
        assert draft is not None and draft.version == 2
        assert published is not None and published.version == 1
        assert store.content_types.latest_version("Product") == 2
        assert store.content_types.latest_version("Other") is None

    def test_latest_published_version_counts_deleted(self, store: Store) -> None:
        published = _product(3, ContentTypeStatus.PUBLISHED)
        with store.transaction() as conn:
            store.content_types.add(conn, _product(5))
            store.content_types.add(conn, _product(2, ContentTypeStatus.ARCHIVED))
            store.content_types.add(conn, published)
            store.content_types.mark_deleted(conn, published.soft_delete())
        assert store.content_types.latest_published("Product") is None
        assert store.content_types.latest_published_version("Product") == 3
        assert store.content_types.latest_published_version("Other") is None

    def test_duplicate_slot_conflicts(self, store: Store) -> None:
        with store.transaction() as conn:
            store.content_types.add(conn, _product(1))
        with pytest.raises(VersionConflictError) as exc_info:
            with store.transaction() as conn:
                store.content_types.add(conn, _product(1))
        assert exc_info.value.detail == {"name": "Product", "version": 1, "status": "Draft"}

    def test_same_version_different_status_allowed(self, store: Store) -> None:
        with store.transaction() as conn:
            store.content_types.add(conn, _product(1))
            store.content_types.add(conn, _product(1, ContentTypeStatus.PUBLISHED))

    def test_archive_into_taken_slot_conflicts(self, store: Store) -> None:
        old = _product(1, ContentTypeStatus.PUBLISHED)
        with store.transaction() as conn:
            store.content_types.add(conn, old)
            store.content_types.update_status(conn, old.archive())
        again = _product(1, ContentTypeStatus.PUBLISHED)
        with store.transaction() as conn:
            store.content_types.add(conn, again)
        with pytest.raises(VersionConflictError):
            with store.transaction() as conn:
                store.content_types.update_status(conn, again.archive())


class TestHydrationFailures:
    def test_unregistered_rule_names_field_and_type(self, store: Store) -> None:
        ct = _product()
        with store.transaction() as conn:
            store.content_types.add(conn, ct)
            conn.execute(
                update(fields)
                .where(fields.c.id == str(ct.fields[0].id))
                .values(validation_rules='[{"type": "RetiredRule", "parameters": null}]')
            )
        with pytest.raises(RuleRegistryError) as exc_info:
            store.content_types.get_by_id(ct.id)
        err = exc_info.value
        assert "field 'Name'" in err.message
        assert "content type 'Product'" in err.message
        assert err.detail["field"] == "Name"
        assert err.detail["content_type"] == "Product"
        assert err.detail["type"] == "RetiredRule"

    def test_corrupt_json(self, store: Store) -> None:
        ct = _product()
        with store.transaction() as conn:
            store.content_types.add(conn, ct)
            conn.execute(
                update(fields)
                .where(fields.c.id == str(ct.fields[1].id))
                .values(transformation_rules="{oops")
            )
        with pytest.raises(RuleRegistryError, match="field 'Price'"):
            store.content_types.get_by_id(ct.id)


class TestListPage:
    def test_excludes_deleted(self, store: Store) -> None:
        keep, gone = _product(1), _product(2)
        with store.transaction() as conn:
            store.content_types.add(conn, keep)
            store.content_types.add(conn, gone)
            store.content_types.mark_deleted(conn, gone.soft_delete())
        items, total = store.content_types.list_page(page=1, page_size=10)
        assert total == 1
        assert [ct.id for ct in items] == [keep.id]

    def test_name_filter_escapes_wildcards(self, store: Store) -> None:
        with store.transaction() as conn:
            store.content_types.add(conn, _product())
        items, total = store.content_types.list_page(page=1, page_size=10, name_filter="%")
        assert (items, total) == ([], 0)


class TestParseSort:
    @pytest.mark.parametrize(
        ("expr", "expected"),
        [
            (None, ("name", False)),
            ("", ("name", False)),
            ("version", ("version", False)),
            ("created.desc", ("created", True)),
            (" Name.ASC ", ("name", False)),
        ],
    )
    def test_valid(self, expr: str | None, expected: tuple[str, bool]) -> None:
        assert parse_sort(expr) == expected

    @pytest.mark.parametrize("expr", ["size", "name.up", "name.desc.extra"])
    def test_invalid(self, expr: str) -> None:
        with pytest.raises(ValueError, match="Invalid sort expression"):
            parse_sort(expr)
