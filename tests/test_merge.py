"""
Tests for the merge engine against an in-memory catalog.
"""
import sqlite3

import pytest

from concordia.errors import (
    EmptyDuplicatesError,
    EntityNotFoundError,
    MergeError,
    PrimaryInDuplicatesError,
)
from concordia.merge import (
    merge_entities,
    merge_people,
    merge_publishers,
    merge_roles,
    merge_series,
    merge_tags,
)
from concordia.records import EntityKind


def person_ids(storage):
    return [row[0] for row in storage.conn.execute("SELECT id FROM people ORDER BY id")]


def book_people(storage):
    return storage.conn.execute(
        "SELECT book_id, person_id, role_id FROM x_books_people_roles ORDER BY book_id"
    ).fetchall()


class TestMergePreconditions:
    """Rejected merges must leave the catalog untouched."""

    def test_empty_duplicates(self, storage):
        with pytest.raises(EmptyDuplicatesError):
            merge_people(storage, 1, [])
        assert person_ids(storage) == [1, 2, 3, 4, 5]

    def test_primary_in_duplicates(self, storage):
        with pytest.raises(PrimaryInDuplicatesError):
            merge_people(storage, 1, [2, 1])
        assert person_ids(storage) == [1, 2, 3, 4, 5]

    def test_missing_duplicate(self, storage):
        with pytest.raises(EntityNotFoundError) as exc_info:
            merge_people(storage, 1, [2, 99])
        assert exc_info.value.details["missing_ids"] == [99]
        assert person_ids(storage) == [1, 2, 3, 4, 5]

    def test_missing_primary(self, storage):
        with pytest.raises(EntityNotFoundError):
            merge_people(storage, 42, [2])
        assert person_ids(storage) == [1, 2, 3, 4, 5]

    def test_all_are_merge_errors(self, storage):
        with pytest.raises(MergeError):
            merge_people(storage, 1, [])


class TestMergePeople:
    """Test merging person duplicates."""

    def test_references_rewritten(self, storage):
        stats = merge_people(storage, 1, [2, 3, 4])

        rows = {row[0]: (row[1], row[2]) for row in book_people(storage)}
        assert rows[1] == (1, 1)
        assert rows[2] == (1, 1)
        assert rows[3] == (1, 1)
        assert person_ids(storage) == [1, 5]

        assert stats.primary_id == 1
        assert stats.merged_ids == [2, 3, 4]
        assert stats.books_updated == 3
        assert stats.contents_updated == 1
        assert stats.deleted_entities == 3

    def test_content_credits_rewritten(self, storage):
        merge_people(storage, 1, [3])
        row = storage.conn.execute(
            "SELECT person_id, role_id FROM x_contents_people_roles WHERE content_id = 1"
        ).fetchone()
        assert tuple(row) == (1, 2)

    def test_repeated_duplicate_ids(self, storage):
        stats = merge_people(storage, 1, [2, 2])
        assert stats.merged_ids == [2]
        assert person_ids(storage) == [1, 3, 4, 5]

    def test_rows_updated_per_reference(self, storage):
        stats = merge_people(storage, 1, [2, 3, 4])
        assert stats.rows_updated == {
            "x_books_people_roles.person_id": 3,
            "x_contents_people_roles.person_id": 1,
        }


class TestMergeAtomicity:
    """A failure during the merge must roll everything back."""

    def test_forced_delete_failure(self, storage):
        storage.conn.execute("""
            CREATE TRIGGER fail_people_delete BEFORE DELETE ON people
            BEGIN
                SELECT RAISE(ABORT, 'forced failure');
            END
        """)
        before = book_people(storage)

        with pytest.raises(sqlite3.IntegrityError):
            merge_people(storage, 1, [2, 3, 4])

        assert book_people(storage) == before
        assert person_ids(storage) == [1, 2, 3, 4, 5]
        assert not storage.conn.in_transaction

    def test_usable_after_rollback(self, storage):
        storage.conn.execute("""
            CREATE TRIGGER fail_people_delete BEFORE DELETE ON people
            BEGIN
                SELECT RAISE(ABORT, 'forced failure');
            END
        """)
        with pytest.raises(sqlite3.IntegrityError):
            merge_people(storage, 1, [2])

        storage.conn.execute("DROP TRIGGER fail_people_delete")
        merge_people(storage, 1, [2])
        assert person_ids(storage) == [1, 3, 4, 5]


class TestMergeOtherKinds:
    """Test merges of publishers, series, tags and roles."""

    def test_publishers(self, storage):
        stats = merge_publishers(storage, 1, [3])
        publisher = storage.conn.execute("SELECT publisher_id FROM books WHERE id = 2").fetchone()[0]
        assert publisher == 1
        assert stats.books_updated == 1
        assert storage.count("publishers") == 3

    def test_series(self, storage):
        stats = merge_series(storage, 1, [2])
        assert stats.books_updated == 0
        assert stats.deleted_entities == 1
        assert storage.count("series") == 1

    def test_tags_collapse_redundant_associations(self, storage):
        """Book 1 carries both tags; the merge must not duplicate its link."""
        merge_tags(storage, 1, [2])
        rows = storage.conn.execute(
            "SELECT book_id, tag_id FROM x_books_tags ORDER BY book_id, tag_id"
        ).fetchall()
        assert [tuple(r) for r in rows] == [(1, 1), (2, 1), (2, 3)]

        content = storage.conn.execute("SELECT tag_id FROM x_contents_tags").fetchall()
        assert [r[0] for r in content] == [1]
        assert storage.count("tags") == 2

    def test_roles(self, storage):
        merge_roles(storage, 1, [2])
        row = storage.conn.execute(
            "SELECT role_id FROM x_contents_people_roles WHERE content_id = 1"
        ).fetchone()
        assert row[0] == 1
        assert storage.count("roles") == 2

    def test_generic_entry_point(self, storage):
        stats = merge_entities(storage, EntityKind.PUBLISHER, 1, [3])
        assert stats.merged_ids == [3]
