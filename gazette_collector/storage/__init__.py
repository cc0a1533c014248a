"""
Persistence of acquired texts and downloaded files.
"""
from .document_store import DocumentStore, SqlDocumentStore

__all__ = [
    "DocumentStore",
    "SqlDocumentStore",
]
