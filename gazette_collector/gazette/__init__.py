"""
Gazette document acquisition.

This module contains:
- Models: gazette issues, requests, text sources and downloaded files
- Registry: in-flight downloads and not yet saved results shared by workers
- Coordinator: the per-worker acquisition decision tree (gazette.coordinator)
- Boundary: operative text extraction for bills, laws and amendments
- Matching: identifier parsing, table of contents and PDF matching
- Navigation: the page navigator interface and its Selenium implementation
"""
from .models import (
    DocumentKind,
    DocumentRequest,
    DownloadedFile,
    FetchedDocument,
    GazetteIssue,
    TextSource,
    TextType,
)
from .registry import PendingWorkRegistry
from .boundary import BoundaryTextExtractor

__all__ = [
    # Models
    "DocumentKind",
    "DocumentRequest",
    "DownloadedFile",
    "FetchedDocument",
    "GazetteIssue",
    "TextSource",
    "TextType",
    # Registry
    "PendingWorkRegistry",
    # Extraction
    "BoundaryTextExtractor",
]
