"""
Identifier matching for gazette documents.

Bill and amendment identifiers are ``house-senate`` pairs where each side is
empty or ``number/year`` ("123/20-045/21", "-045/21"). Law identifiers are
``year/number`` ("2021/2155").

The table of contents of an issue is searched in two passes. The strict pass
needs number and year to match. The relaxed pass, run once when the strict
one found nothing, also accepts a link whose number matches with a different
year, but only when that link is the only such candidate.
"""
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence, Tuple

from gazette_collector.core.exceptions import (
    IdentifierNotInPdfError,
    InvalidIdentifierError,
    NoRetrievalPathError,
)
from gazette_collector.gazette.models import DocumentKind

logger = logging.getLogger(__name__)

BILL_ID_REGEX = re.compile(r"^(?:(\d+)/(\d+))?-(?:(\d+)/(\d+))?$")
LAW_ID_REGEX = re.compile(r"^(\d+)/(\d+)$")

# Table of contents link texts, e.g. "Proyecto de Ley número 045 de 2021 Senado"
BILL_LINK_REGEXES = [
    re.compile(r"\D*(\d+)\s*de[\s\d]*(\d\d)"),
    re.compile(r"\D*(\d+)\s*del\s*\d*[\w\s\d]+(\d\d)"),
]
# e.g. "LEY 2155 del 14 de septiembre de 2021", or only "Ley 2155 de 2021"
LAW_LINK_REGEX = re.compile(r"\D*(\d+)\s*del\s*\d*[\w\s]*de\s*(\d+)")
LAW_LINK_SHORT_REGEX = re.compile(r"(\d+)\s*[dD][eE]\s*(\d+)")

PDF_DOCUMENT_START_FORMAT = r"{number}\s*[dD][eE][\s\d]*{year}"


@dataclass(frozen=True)
class IdentifierPart:
    """One ``number`` + ``year`` reference taken from an identifier."""

    number: str
    year: str

    def as_ints(self) -> Tuple[int, int]:
        return int(self.number), int(self.year)

    def __str__(self) -> str:
        return f"{self.number} de {self.year}"


def parse_identifier(kind: DocumentKind, identifier: str) -> List[IdentifierPart]:
    """
    Validate an identifier against its kind and split it into parts.

    Raises:
        InvalidIdentifierError: If the identifier does not fit the kind
    """
    kind = DocumentKind(kind)
    identifier = identifier or ""

    if kind == DocumentKind.LAW:
        match = LAW_ID_REGEX.match(identifier)
        if not match:
            raise InvalidIdentifierError(
                f"{identifier!r} is not a law identifier (year/number)",
                identifier=identifier,
            )
        return [IdentifierPart(number=match.group(2), year=match.group(1))]

    match = BILL_ID_REGEX.match(identifier)
    if not match or not any(match.groups()):
        raise InvalidIdentifierError(
            f"{identifier!r} is not a {kind.value} identifier (house-senate)",
            identifier=identifier,
        )
    house_number, house_year, senate_number, senate_year = match.groups()
    parts = []
    if house_number:
        parts.append(IdentifierPart(house_number, house_year))
    if senate_number:
        parts.append(IdentifierPart(senate_number, senate_year))
    return parts


def bill_ids_in_text(text: str) -> List[Tuple[int, int]]:
    """All (number, two digit year) pairs of a link text; the first regex that finds any wins."""
    for regex in BILL_LINK_REGEXES:
        ids = [(int(m.group(1)), int(m.group(2))) for m in regex.finditer(text)]
        if ids:
            return ids
    return []


def law_id_in_text(text: str) -> Optional[Tuple[int, int]]:
    match = LAW_LINK_REGEX.search(text) or LAW_LINK_SHORT_REGEX.search(text)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def is_given_bill(text: str, parts: Sequence[IdentifierPart], relaxed: bool = False) -> bool:
    """
    Check whether a link text names the bill.

    Args:
        text: Table of contents link text
        parts: Parts of the bill identifier
        relaxed: Accept a matching number with a different year
    """
    text_ids = bill_ids_in_text(text)
    for part in parts:
        number, year = part.as_ints()
        for text_number, text_year in text_ids:
            if number == text_number and (relaxed or year == text_year):
                return True
    return False


def is_given_law(text: str, parts: Sequence[IdentifierPart]) -> bool:
    text_id = law_id_in_text(text)
    if text_id is None:
        return False
    return any(part.as_ints() == text_id for part in parts)


def is_given_document(
    kind: DocumentKind,
    text: str,
    parts: Sequence[IdentifierPart],
    relaxed: bool = False,
) -> bool:
    if DocumentKind(kind) == DocumentKind.LAW:
        return is_given_law(text, parts)
    return is_given_bill(text, parts, relaxed=relaxed)


def find_link_index(
    link_texts: Sequence[str],
    kind: DocumentKind,
    parts: Sequence[IdentifierPart],
    relaxed: bool = False,
) -> Optional[int]:
    """
    Index of the table of contents link for the document.

    The strict pass returns the first exact match. The relaxed pass returns
    an exact match if there is one, otherwise the single number-only match.
    Several number-only matches are ambiguous and give None.
    """
    for index, text in enumerate(link_texts):
        if is_given_document(kind, text, parts):
            return index

    if not relaxed or DocumentKind(kind) == DocumentKind.LAW:
        return None

    candidates = [
        index for index, text in enumerate(link_texts)
        if is_given_document(kind, text, parts, relaxed=True)
    ]
    if len(candidates) == 1:
        logger.warning(
            f"Accepting link {link_texts[candidates[0]]!r} with a different year for {list(map(str, parts))}"
        )
        return candidates[0]
    if candidates:
        logger.warning(
            f"{len(candidates)} links match only the number of {list(map(str, parts))}, none taken"
        )
    return None


def locate_in_pdf(
    pdf_text: str,
    kind: DocumentKind,
    parts: Sequence[IdentifierPart],
    end_marker: Pattern,
) -> str:
    """
    Cut the part of a multi document PDF text that belongs to the identifier.

    Whitespace is collapsed first. The cut runs from the first
    ``number de ... year`` reference of an identifier part through the end of
    the first end marker after it.

    Raises:
        NoRetrievalPathError: For amendments, whose end never appears in PDFs
        IdentifierNotInPdfError: With one reason per identifier part
    """
    kind = DocumentKind(kind)
    if kind == DocumentKind.AMENDMENT:
        raise NoRetrievalPathError("Cannot process PDF for amendment")

    text = re.sub(r"\s+", " ", pdf_text or "").strip()
    reasons = []
    for part in parts:
        start_regex = re.compile(PDF_DOCUMENT_START_FORMAT.format(
            number=re.escape(part.number),
            year=re.escape(part.year),
        ))
        start_match = start_regex.search(text)
        if not start_match:
            reasons.append(f"Not found {kind.value} in PDF with id: {part}")
            continue

        sub_text = text[start_match.start():]
        end_match = end_marker.search(sub_text)
        if not end_match:
            reasons.append(f"Could not find the end of the {kind.value} in PDF with id: {part}")
            continue

        return sub_text[:end_match.end()].strip()

    for reason in reasons:
        logger.error(reason)
    raise IdentifierNotInPdfError(
        f"{kind.value.capitalize()} not found in PDF",
        reasons=reasons,
    )
