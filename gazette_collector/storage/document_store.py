"""
Document store abstract base class and SQL implementation.

The store keeps previously acquired document texts and downloaded files.
It is treated as externally synchronized: duplicate rows for the same
natural key are tolerated, lookups return the first match.
"""
import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Union

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from gazette_collector.core.db import get_db_connection
from gazette_collector.core.exceptions import DatabaseError
from gazette_collector.gazette.models import DownloadedFile, TextSource

logger = logging.getLogger(__name__)

StoreEntry = Union[TextSource, DownloadedFile]


class DocumentStore(ABC):
    """
    Abstract persistence for acquired texts and downloaded files.

    Implementations must accept entries that may already exist.
    """

    @abstractmethod
    def find(self, text_type: str, identifier: str, country: str) -> Optional[TextSource]:
        """
        Find a stored text by its natural key.

        Args:
            text_type: Text type tag (e.g. "bill text")
            identifier: Text source identifier ("Gazette: 45/21, id: ...")
            country: Country the text belongs to

        Returns:
            The first matching TextSource, or None
        """
        pass

    @abstractmethod
    def find_file(self, filename: str) -> Optional[DownloadedFile]:
        """
        Find a downloaded file by name.

        Args:
            filename: Stored file name (the gazette issue reference)

        Returns:
            The first matching DownloadedFile, or None
        """
        pass

    @abstractmethod
    def save_all(self, entries: Iterable[StoreEntry]) -> None:
        """
        Persist texts and files.

        Args:
            entries: TextSource and DownloadedFile objects, in any mix
        """
        pass


SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS text_sources (
        id INTEGER PRIMARY KEY,
        country VARCHAR(64) NOT NULL,
        text_type VARCHAR(128) NOT NULL,
        text_identifier VARCHAR(512) NOT NULL,
        text_content TEXT,
        download_url TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS downloaded_files (
        id INTEGER PRIMARY KEY,
        url TEXT,
        content_type VARCHAR(128),
        filename VARCHAR(512) NOT NULL,
        size INTEGER,
        content BYTEA
    )
    """,
]


class SqlDocumentStore(DocumentStore):
    """
    Document store on SQLAlchemy Core.

    Uses the shared engine from core.db unless one is passed in.
    """

    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine

    def ensure_schema(self) -> None:
        """Create the text_sources and downloaded_files tables if missing."""
        try:
            with get_db_connection(self.engine) as conn:
                for statement in SCHEMA_STATEMENTS:
                    if conn.dialect.name == "postgresql":
                        statement = statement.replace("id INTEGER PRIMARY KEY", "id SERIAL PRIMARY KEY")
                    else:
                        statement = statement.replace("BYTEA", "BLOB")
                    conn.execute(text(statement))
                conn.commit()
        except SQLAlchemyError as e:
            raise DatabaseError("Could not create document store schema", original_error=e)

    def find(self, text_type: str, identifier: str, country: str) -> Optional[TextSource]:
        query = text("""
            SELECT text_type, text_identifier, text_content, download_url, country
            FROM text_sources
            WHERE text_type = :text_type
            AND text_identifier = :identifier
            AND country = :country
            ORDER BY id
            LIMIT 1
        """)
        try:
            with get_db_connection(self.engine) as conn:
                row = conn.execute(query, {
                    'text_type': text_type,
                    'identifier': identifier,
                    'country': country,
                }).fetchone()
        except SQLAlchemyError as e:
            raise DatabaseError(
                "Text source lookup failed",
                details={'text_type': text_type, 'identifier': identifier},
                original_error=e,
            )

        if row is None:
            return None
        return TextSource(
            text_type=row[0],
            text_identifier=row[1],
            text_content=row[2],
            download_url=row[3],
            country=row[4],
        )

    def find_file(self, filename: str) -> Optional[DownloadedFile]:
        query = text("""
            SELECT url, filename, content, content_type
            FROM downloaded_files
            WHERE filename = :filename
            ORDER BY id
            LIMIT 1
        """)
        try:
            with get_db_connection(self.engine) as conn:
                row = conn.execute(query, {'filename': filename}).fetchone()
        except SQLAlchemyError as e:
            raise DatabaseError(
                "Downloaded file lookup failed",
                details={'filename': filename},
                original_error=e,
            )

        if row is None:
            return None
        return DownloadedFile(
            url=row[0],
            filename=row[1],
            content=bytes(row[2]) if row[2] is not None else b"",
            content_type=row[3],
        )

    def save_all(self, entries: Iterable[StoreEntry]) -> None:
        """Insert all entries in a single transaction."""
        text_insert = text("""
            INSERT INTO text_sources (country, text_type, text_identifier, text_content, download_url)
            VALUES (:country, :text_type, :text_identifier, :text_content, :download_url)
        """)
        file_insert = text("""
            INSERT INTO downloaded_files (url, content_type, filename, size, content)
            VALUES (:url, :content_type, :filename, :size, :content)
        """)

        texts = []
        files = []
        for entry in entries:
            if isinstance(entry, TextSource):
                texts.append({
                    'country': entry.country,
                    'text_type': entry.text_type,
                    'text_identifier': entry.text_identifier,
                    'text_content': entry.text_content,
                    'download_url': entry.download_url,
                })
            elif isinstance(entry, DownloadedFile):
                files.append({
                    'url': entry.url,
                    'content_type': entry.content_type,
                    'filename': entry.filename,
                    'size': entry.size,
                    'content': entry.content,
                })
            else:
                raise TypeError(f"Cannot store {type(entry).__name__}")

        try:
            with get_db_connection(self.engine) as conn:
                if texts:
                    conn.execute(text_insert, texts)
                if files:
                    conn.execute(file_insert, files)
                conn.commit()
        except SQLAlchemyError as e:
            raise DatabaseError(
                "Saving gazette entries failed",
                details={'texts': len(texts), 'files': len(files)},
                original_error=e,
            )
        logger.debug(f"Saved {len(texts)} texts and {len(files)} files")
