"""
Data model for gazette document acquisition.

Gazette issues and requests are built per call and thrown away afterwards.
TextSource and DownloadedFile are the records kept by the document store
(and, until the next flush, by the pending work registry).
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from gazette_collector.core.config import GAZETTE_COUNTRY
from gazette_collector.core.exceptions import InvalidIssueError

GAZETTE_ISSUE_REGEX = re.compile(r"^(\d+)/(\d+)$")
TEXT_SOURCE_IDENTIFIER_FORMAT = "Gazette: {issue}, id: {identifier}"
PDF_CONTENT_TYPE = "application/pdf"


class DocumentKind(str, Enum):
    """What kind of legislation is searched for in a gazette issue."""

    BILL = "bill"
    LAW = "law"
    AMENDMENT = "amendment"


class TextType(str, Enum):
    """Text type tags used as the first half of the text source key."""

    BILL_TEXT = "bill text"
    LAW_TEXT = "law text"
    AMENDMENT_STAGE_1_TEXT = "first debate amendment text"
    AMENDMENT_STAGE_1_LINK_TEXT = "first debate amendment link text"
    AMENDMENT_STAGE_2_TEXT = "second debate amendment text"
    AMENDMENT_STAGE_2_LINK_TEXT = "second debate amendment link text"
    AMENDMENT_STAGE_3_TEXT = "third debate amendment text"
    AMENDMENT_STAGE_3_LINK_TEXT = "third debate amendment link text"
    AMENDMENT_STAGE_4_TEXT = "fourth debate amendment text"
    AMENDMENT_STAGE_4_LINK_TEXT = "fourth debate amendment link text"
    AMENDMENT_STAGE_13_JOINED_TEXT = "first & third debate amendment text"
    AMENDMENT_STAGE_13_JOINED_LINK_TEXT = "first & third debate amendment link text"


# Amendment texts are stored together with the table of contents link text
# that led to them, under a paired type.
AMENDMENT_LINK_TEXT_TYPES = {
    TextType.AMENDMENT_STAGE_1_TEXT.value: TextType.AMENDMENT_STAGE_1_LINK_TEXT.value,
    TextType.AMENDMENT_STAGE_2_TEXT.value: TextType.AMENDMENT_STAGE_2_LINK_TEXT.value,
    TextType.AMENDMENT_STAGE_3_TEXT.value: TextType.AMENDMENT_STAGE_3_LINK_TEXT.value,
    TextType.AMENDMENT_STAGE_4_TEXT.value: TextType.AMENDMENT_STAGE_4_LINK_TEXT.value,
    TextType.AMENDMENT_STAGE_13_JOINED_TEXT.value: TextType.AMENDMENT_STAGE_13_JOINED_LINK_TEXT.value,
}


def link_text_type(text_type: str) -> Optional[str]:
    """Return the link text type paired with an amendment text type, if any."""
    return AMENDMENT_LINK_TEXT_TYPES.get(text_type)


@dataclass(frozen=True)
class GazetteIssue:
    """One numbered unit of the gazette, e.g. ``45/21``."""

    number: int
    year_suffix: str

    @classmethod
    def parse(cls, reference: str) -> "GazetteIssue":
        """
        Parse a free-text issue reference of the form ``number/year``.

        Raises:
            InvalidIssueError: If the reference does not match ``^\\d+/\\d+$``
        """
        match = GAZETTE_ISSUE_REGEX.fullmatch(reference or "")
        if not match:
            raise InvalidIssueError(
                f"{reference!r} is an invalid Gazette issue format",
                gazette_issue=reference,
            )
        return cls(number=int(match.group(1)), year_suffix=match.group(2))

    @property
    def key(self) -> str:
        """Key of the issue in the in-flight set and the downloaded file name."""
        return str(self)

    def __str__(self) -> str:
        return f"{self.number}/{self.year_suffix}"


@dataclass(frozen=True)
class DocumentRequest:
    """A document to find in a gazette issue."""

    kind: DocumentKind
    identifier: str
    source_type: str


@dataclass(frozen=True)
class FetchedDocument:
    """Result of a successful acquisition."""

    url: str
    text: str


@dataclass
class TextSource:
    """A document text kept by the store, keyed by (text_type, text_identifier)."""

    text_type: str
    text_identifier: str
    text_content: str
    download_url: Optional[str] = None
    country: str = GAZETTE_COUNTRY


@dataclass
class DownloadedFile:
    """A downloaded binary file kept by the store, keyed by filename."""

    url: Optional[str]
    filename: str
    content: bytes = field(repr=False, default=b"")
    content_type: str = PDF_CONTENT_TYPE

    @property
    def size(self) -> int:
        return len(self.content)


def build_text_identifier(issue: GazetteIssue, identifier: str) -> str:
    """Build the text source identifier for a document found in an issue."""
    return TEXT_SOURCE_IDENTIFIER_FORMAT.format(issue=issue, identifier=identifier)
