"""
Tests for SQL Document Store (gazette_collector/storage/document_store.py)

Runs against an in-memory SQLite engine.
"""

import pytest
from sqlalchemy import create_engine

from gazette_collector.core.exceptions import DatabaseError
from gazette_collector.gazette.models import DownloadedFile, TextSource
from gazette_collector.storage.document_store import SqlDocumentStore

IDENTIFIER = "Gazette: 45/21, id: -045/21"


@pytest.fixture
def sql_store():
    store = SqlDocumentStore(create_engine("sqlite://"))
    store.ensure_schema()
    return store


def make_text(content="Artículo 1. Texto.", country="COLOMBIA"):
    return TextSource(
        text_type="bill text",
        text_identifier=IDENTIFIER,
        text_content=content,
        download_url="http://gazette.test/45",
        country=country,
    )


class TestSqlDocumentStore:
    """Tests for SqlDocumentStore."""

    def test_ensure_schema_is_idempotent(self, sql_store):
        """Test creating the schema twice."""
        sql_store.ensure_schema()

    def test_save_and_find_text(self, sql_store):
        """Test a saved text is found by its natural key."""
        sql_store.save_all([make_text()])

        found = sql_store.find("bill text", IDENTIFIER, "COLOMBIA")

        assert found == make_text()

    def test_find_misses(self, sql_store):
        """Test other types, identifiers and countries are not found."""
        sql_store.save_all([make_text()])

        assert sql_store.find("law text", IDENTIFIER, "COLOMBIA") is None
        assert sql_store.find("bill text", "Gazette: 46/21, id: -045/21", "COLOMBIA") is None
        assert sql_store.find("bill text", IDENTIFIER, "HUNGARY") is None

    def test_duplicates_return_first(self, sql_store):
        """Test duplicate rows are tolerated and the oldest wins."""
        sql_store.save_all([make_text("first")])
        sql_store.save_all([make_text("second")])

        assert sql_store.find("bill text", IDENTIFIER, "COLOMBIA").text_content == "first"

    def test_save_and_find_file(self, sql_store):
        """Test binary content survives a round trip through the store."""
        content = b"%PDF-1.4\x00\xff binary"
        sql_store.save_all([
            make_text(),
            DownloadedFile(url="http://gazette.test/45.pdf", filename="45/21", content=content),
        ])

        found = sql_store.find_file("45/21")

        assert found.content == content
        assert found.url == "http://gazette.test/45.pdf"
        assert found.content_type == "application/pdf"
        assert sql_store.find_file("46/21") is None

    def test_unknown_entry_type(self, sql_store):
        """Test only texts and files can be saved."""
        with pytest.raises(TypeError):
            sql_store.save_all(["not an entry"])

    def test_missing_schema_raises_database_error(self):
        """Test SQL errors are wrapped in DatabaseError."""
        store = SqlDocumentStore(create_engine("sqlite://"))

        with pytest.raises(DatabaseError) as exc_info:
            store.find("bill text", IDENTIFIER, "COLOMBIA")
        assert exc_info.value.original_error is not None
