"""
PDF text extraction with pdfplumber.

Unreadable files and files without a text layer are not errors here: they
come back as sentinel labels, which callers treat as an empty text.
"""
import io
import logging

import pdfplumber

logger = logging.getLogger(__name__)

ERROR_LABEL = "<ERROR>"
SCANNED_LABEL = "<SCANNED?>"
SENTINEL_LABELS = frozenset({ERROR_LABEL, SCANNED_LABEL})


def is_sentinel(text: str) -> bool:
    """True for texts that stand for an unreadable or scanned PDF."""
    return text in SENTINEL_LABELS


class PdfTextExtractor:
    """Bytes to plain text for downloaded gazette PDFs."""

    def extract_text(self, pdf_bytes: bytes) -> str:
        """
        Extract the text of every page, pages separated by newlines.

        Returns:
            The text, SCANNED_LABEL when no page has a text layer, or
            ERROR_LABEL when the bytes cannot be parsed as a PDF
        """
        if not pdf_bytes:
            logger.warning("Empty PDF content")
            return ERROR_LABEL

        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                page_texts = [page.extract_text() or "" for page in pdf.pages]
        except Exception as e:
            logger.error(f"PDF could not be read: {e}")
            return ERROR_LABEL

        text = "\n".join(page_texts).replace("\x00", "").strip()
        if not text:
            logger.warning(f"No text layer in PDF of {len(page_texts)} pages, probably scanned")
            return SCANNED_LABEL

        logger.debug(f"Extracted {len(text)} chars from {len(page_texts)} PDF pages")
        return text

    def extract_or_empty(self, pdf_bytes: bytes) -> str:
        """Like extract_text, with the sentinel labels turned into an empty string."""
        text = self.extract_text(pdf_bytes)
        return "" if is_sentinel(text) else text
