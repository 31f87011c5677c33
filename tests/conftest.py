"""
Pytest fixtures: in-memory and on-disk catalogs seeded with sample data.
"""
import pytest

from concordia.storage import CatalogStorage, create_schema

PEOPLE = [
    (1, "Stephen King"),
    (2, "Stephen Edwin King"),
    (3, "King, Stephen"),
    (4, "S. King"),
    (5, "Margaret Atwood"),
]

PUBLISHERS = [
    (1, "Tor Books"),
    (2, "Penguin"),
    (3, "TOR BOOKS"),
    (4, "Gallimard"),
]

SERIES = [
    (1, "The Dark Tower"),
    (2, "Discworld"),
]

TAGS = [
    (1, "Science Fiction"),
    (2, "science-fiction"),
    (3, "Horror"),
]

ROLES = [
    (1, "Author"),
    (2, "Editor"),
    (3, "Translator"),
]

# (id, name, publisher_id, series_id)
BOOKS = [
    (1, "Carrie", 1, None),
    (2, "The Shining", 3, None),
    (3, "Misery", 2, None),
    (4, "The Gunslinger", 1, 1),
    (5, "The Handmaid's Tale", 4, None),
]

CONTENTS = [
    (1, "Foreword"),
]

# Books 1-3 are credited to the three variants of person 1
BOOKS_PEOPLE_ROLES = [
    (1, 2, 1),
    (2, 3, 1),
    (3, 4, 1),
    (4, 1, 1),
    (5, 5, 1),
]

CONTENTS_PEOPLE_ROLES = [
    (1, 3, 2),
]

# Book 1 carries both spellings of the same tag
BOOKS_TAGS = [
    (1, 1),
    (1, 2),
    (2, 2),
    (2, 3),
]

CONTENTS_TAGS = [
    (1, 2),
]


def seed_catalog(storage: CatalogStorage) -> None:
    """Load the sample catalog into an empty schema."""
    conn = storage.conn
    conn.executemany("INSERT INTO people (id, name) VALUES (?, ?)", PEOPLE)
    conn.executemany("INSERT INTO publishers (id, name) VALUES (?, ?)", PUBLISHERS)
    conn.executemany("INSERT INTO series (id, name) VALUES (?, ?)", SERIES)
    conn.executemany("INSERT INTO tags (id, name) VALUES (?, ?)", TAGS)
    conn.executemany("INSERT INTO roles (id, name) VALUES (?, ?)", ROLES)
    conn.executemany(
        "INSERT INTO books (id, name, publisher_id, series_id) VALUES (?, ?, ?, ?)", BOOKS
    )
    conn.executemany("INSERT INTO contents (id, name) VALUES (?, ?)", CONTENTS)
    conn.executemany(
        "INSERT INTO x_books_people_roles (book_id, person_id, role_id) VALUES (?, ?, ?)",
        BOOKS_PEOPLE_ROLES,
    )
    conn.executemany(
        "INSERT INTO x_contents_people_roles (content_id, person_id, role_id) VALUES (?, ?, ?)",
        CONTENTS_PEOPLE_ROLES,
    )
    conn.executemany("INSERT INTO x_books_tags (book_id, tag_id) VALUES (?, ?)", BOOKS_TAGS)
    conn.executemany("INSERT INTO x_contents_tags (content_id, tag_id) VALUES (?, ?)", CONTENTS_TAGS)


@pytest.fixture
def empty_storage():
    """In-memory catalog with the schema but no rows."""
    storage = CatalogStorage.open(":memory:")
    create_schema(storage.conn)
    yield storage
    storage.close()


@pytest.fixture
def storage(empty_storage):
    """In-memory catalog seeded with the sample data."""
    seed_catalog(empty_storage)
    return empty_storage


@pytest.fixture
def catalog_path(tmp_path):
    """On-disk catalog seeded with the sample data."""
    path = tmp_path / "catalog.db"
    with CatalogStorage.open(path) as storage:
        create_schema(storage.conn)
        seed_catalog(storage)
    return path
