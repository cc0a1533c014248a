"""
Boundary extraction for gazette documents.

Cuts the legally operative part out of a raw gazette text. The start is the
first marker found in START_MARKERS order: the decree formula ("DECRETA", the
text starts right after it), then the article-one family ("Artículo 1o.",
"ARTÍCULO ÚNICO", ...; the text starts at the marker). The end is the first
occurrence of the end marker of the document kind.

Amendment texts first look for the title paragraph of the approved text, or
take the whole text when the table of contents link already says it is the
approved text.
"""
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Sequence

from gazette_collector.core.exceptions import (
    EmptyExtractionError,
    EndBeforeStartError,
    NoStartMarkerError,
)
from gazette_collector.gazette.models import DocumentKind

logger = logging.getLogger(__name__)


DECREE_FORMULA_REGEX = re.compile(r"DECRETA")
ARTICLE_ONE_REGEX = re.compile(
    r"(?:art[.]?|art[ií\u0301]*c*u*l[o0]|article)\s+"
    r"(?:I[^I]|1\D|l[.º°]|[uú\u0301]*nico|primero|uno)",
    re.IGNORECASE,
)

CONSULT_ORIGINAL_REGEX = (
    r"CONSULTAR.*?(?:ORIGINAL\s*IMPRESO|FOI*RMAT[OE]\s*PDF|ARCHIVO\s*PDF)"
)
BILL_END_REGEX = re.compile(
    r"E(?:XPOSICI.N\s*DE\s*MOTIVOS|xposici.n\s*de\s*[Mm]otivos)|" + CONSULT_ORIGINAL_REGEX
)
LAW_END_REGEX = re.compile(r"Publíquese y cúmplase")
AMENDMENT_END_REGEX = re.compile(CONSULT_ORIGINAL_REGEX)

END_MARKERS: Dict[DocumentKind, Pattern] = {
    DocumentKind.BILL: BILL_END_REGEX,
    DocumentKind.LAW: LAW_END_REGEX,
    DocumentKind.AMENDMENT: AMENDMENT_END_REGEX,
}

LEADING_NON_LETTERS_REGEX = re.compile(r"^[\W\d_]+")

# Link texts announcing that the linked page holds only the approved text
FINAL_TEXT_LINK_PHRASES = (
    "texto definitivo aprobado",
    "texto aprobado",
    "texto definitivo",
)
PRIMARY_AMENDMENT_TITLE = "TEXTO DEFINITIVO APROBADO"
SECONDARY_AMENDMENT_TITLES = ("TEXTO APROBADO", "TEXTO DEFINITIVO")


@dataclass(frozen=True)
class StartMarker:
    """A start marker and whether the extracted text includes it."""

    name: str
    pattern: Pattern
    include_marker: bool

    def locate(self, text: str) -> Optional[int]:
        match = self.pattern.search(text)
        if match is None:
            return None
        return match.start() if self.include_marker else match.end()


START_MARKERS: List[StartMarker] = [
    StartMarker("decree formula", DECREE_FORMULA_REGEX, include_marker=False),
    StartMarker("first article", ARTICLE_ONE_REGEX, include_marker=True),
]


def trim_text(text: str) -> str:
    """Strip leading non-letter characters, then surrounding whitespace."""
    return LEADING_NON_LETTERS_REGEX.sub("", text).strip()


def normalize_link_text(link_text: str) -> str:
    return re.sub(r"\s+", " ", link_text or "").lower()


class BoundaryTextExtractor:
    """
    Extracts the operative text of bills, laws and amendments.

    Marker lists are evaluated in order with early return, so a new marker
    variant is added by extending START_MARKERS or END_MARKERS.
    """

    def __init__(
        self,
        start_markers: Sequence[StartMarker] = tuple(START_MARKERS),
        end_markers: Optional[Dict[DocumentKind, Pattern]] = None,
    ):
        self.start_markers = list(start_markers)
        self.end_markers = dict(end_markers or END_MARKERS)

    def end_marker(self, kind: DocumentKind) -> Pattern:
        return self.end_markers[DocumentKind(kind)]

    def find_start(self, text: str) -> int:
        """
        Locate the start of the operative text.

        Raises:
            NoStartMarkerError: If no start marker occurs in the text
        """
        for marker in self.start_markers:
            position = marker.locate(text)
            if position is not None:
                logger.debug(f"Text start found by {marker.name} at {position}")
                return position
            logger.debug(f"No {marker.name} in text")
        raise NoStartMarkerError(
            "Neither the decree formula nor the first article found, "
            "cannot determine the start of the text"
        )

    def extract(self, text: str, kind: DocumentKind) -> str:
        """
        Return the operative part of a bill or law text.

        When no end marker occurs the text runs to the end of the document.

        Raises:
            NoStartMarkerError: No start marker found
            EndBeforeStartError: The first end marker precedes the start
            EmptyExtractionError: Nothing left between the markers
        """
        text = text or ""
        start = self.find_start(text)
        end_match = self.end_marker(kind).search(text)

        if end_match is None:
            logger.debug(f"No {DocumentKind(kind).value} end marker, taking the text till the end")
            body = text[start:]
        elif end_match.start() <= start:
            raise EndBeforeStartError(
                f"End marker {end_match.group(0)!r} found at {end_match.start()}, "
                f"before the text start at {start}"
            )
        else:
            body = text[start:end_match.start()]

        return self._checked(body)

    def extract_amendment(self, raw_text: str, link_text: str) -> str:
        """
        Return the approved text part of an amendment.

        Args:
            raw_text: Paragraphs of the details page joined with newlines
            link_text: Text of the table of contents link that led to the page

        Raises:
            NoStartMarkerError: No approved text title, or no start marker after it
            EmptyExtractionError: Nothing left after trimming
        """
        paragraphs = (raw_text or "").split("\n")
        start_index = self.amendment_start_index(link_text, paragraphs)
        if start_index is None:
            raise NoStartMarkerError(
                f"Start title {PRIMARY_AMENDMENT_TITLE!r} not found in amendment text"
            )

        kept = []
        for paragraph in paragraphs[start_index:]:
            if self.end_marker(DocumentKind.AMENDMENT).search(paragraph):
                break
            kept.append(paragraph)
        text = "\n".join(kept)

        return self._checked(text[self.find_start(text):])

    @staticmethod
    def amendment_start_index(link_text: str, paragraphs: List[str]) -> Optional[int]:
        """
        Index of the paragraph where the approved amendment text begins.

        The primary title wins wherever it is; a secondary title is used only
        when the primary one never occurs.
        """
        normalized = normalize_link_text(link_text)
        if any(phrase in normalized for phrase in FINAL_TEXT_LINK_PHRASES):
            return 0

        secondary_index = None
        for index, paragraph in enumerate(paragraphs):
            title = paragraph.strip()
            if title.startswith(PRIMARY_AMENDMENT_TITLE):
                return index
            if secondary_index is None and title.startswith(SECONDARY_AMENDMENT_TITLES):
                secondary_index = index
        return secondary_index

    @staticmethod
    def _checked(body: str) -> str:
        trimmed = trim_text(body)
        if not trimmed:
            raise EmptyExtractionError("Markers found but no text between them")
        return trimmed
