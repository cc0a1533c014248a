"""
Gazette fetch coordinator.

Acquires the text of one bill, law or amendment from one gazette issue,
trying the cheapest source first:

1. a text already in the store or in the pending work registry,
2. the details page of the issue (table of contents, then the document),
3. the issue PDF, downloaded by exactly one worker while the others wait for
   it to show up in the registry or the store.

One coordinator is used by one worker thread together with its own
navigator. The registry and the store are shared by all workers of a run.
"""
import logging
import time
from typing import Callable, Iterable, List, Optional, Union

from gazette_collector.core.config import (
    GAZETTE_COUNTRY,
    GAZETTE_WEBPAGE,
    PDF_POLL_MAX_INTERVAL,
    PDF_POLL_MIN_INTERVAL,
    PDF_WAIT_TIMEOUT,
)
from gazette_collector.core.exceptions import (
    AcquisitionFailedError,
    DownloadTimedOutError,
    ElementNotFoundError,
    GazetteError,
    InvalidIdentifierError,
    IssueNotFoundError,
    LegislationNotFoundError,
    NavigationTimeoutError,
    NoRetrievalPathError,
    PageUnreachableError,
)
from gazette_collector.gazette.boundary import BoundaryTextExtractor
from gazette_collector.gazette.downloads import read_downloaded_file
from gazette_collector.gazette.matching import (
    IdentifierPart,
    find_link_index,
    locate_in_pdf,
    parse_identifier,
)
from gazette_collector.gazette.models import (
    DocumentKind,
    DocumentRequest,
    DownloadedFile,
    FetchedDocument,
    GazetteIssue,
    TextSource,
    build_text_identifier,
    link_text_type,
)
from gazette_collector.gazette.navigation import Element, PageNavigator
from gazette_collector.gazette.pdf_text import PdfTextExtractor
from gazette_collector.gazette.registry import PendingWorkRegistry
from gazette_collector.storage.document_store import DocumentStore
from gazette_collector.utils.retry import PollAborted, PollTimeout, fetch_with_retry, poll_until

logger = logging.getLogger(__name__)

# =============================================================================
# Archive page layout
# =============================================================================
SEARCH_FORM = "body > div:nth-of-type(2) > div > table > tbody > tr:nth-of-type(4) > td > form"
PAGE_SIZE_SELECT = "[id='formResumen:dataTableResumen_rppDD']"
PAGE_REPORT = SEARCH_FORM + " > fieldset > div > div > div:nth-of-type(1) > span:nth-of-type(1)"
ISSUE_NUMBER_FILTER = (
    SEARCH_FORM + " > fieldset > div > div > div:nth-of-type(2) > table > thead > tr > th:nth-of-type(1) > input"
)
PAGE_SIZE = "50"
PAGE_SIZE_PATTERN = r"Registro 1 a 50.*"
FILTERED_PATTERN = r"\D1$"

ISSUE_ROWS = ".ui-datatable-tablewrapper tbody tr"
ROW_CELLS = "td"
ROW_YEAR = "td:nth-of-type(3) label"
ROW_BUTTONS = ".colIconoAjustable button"
DETAILS_BUTTON = "btnVerDetalle"
DOWNLOAD_BUTTON = "btnDescargarPdf"
LINK_BUTTON = "verLink"
DOWNLOAD_LINK = "[id='formResumen:linkDescargar']"

TOC_LINKS = "form table div a"
DOCUMENT_LINK = "[id='formGacetaPublica:textLink']"
DETAILS_REGION = SEARCH_FORM + " > div > div > div > div:nth-of-type(2) > div:nth-of-type(2)"
DETAILS_LABEL = DETAILS_REGION + " > label"
AMENDMENT_SECTION = ".Section1"
AMENDMENT_PARAGRAPHS = ":scope > :not(table)"


class GazetteFetchCoordinator:
    """
    Per-worker orchestrator of gazette document acquisition.

    Args:
        navigator: The worker's own page navigator
        store: Shared document store
        registry: Shared pending work registry of the run
        extractor: Boundary text extractor
        pdf_extractor: PDF bytes to text
        country: Country the texts are stored under
        search_url: Gazette archive search page
        pdf_wait_timeout: Seconds to wait for another worker's PDF
        poll_min_interval: First interval of that wait
        poll_max_interval: Interval cap of that wait
        download_timeout: Seconds to wait for the browser download
        sleep: Sleep function used by every wait (injectable for tests)
    """

    def __init__(
        self,
        navigator: PageNavigator,
        store: DocumentStore,
        registry: PendingWorkRegistry,
        extractor: Optional[BoundaryTextExtractor] = None,
        pdf_extractor: Optional[PdfTextExtractor] = None,
        country: str = GAZETTE_COUNTRY,
        search_url: str = GAZETTE_WEBPAGE,
        pdf_wait_timeout: float = PDF_WAIT_TIMEOUT,
        poll_min_interval: float = PDF_POLL_MIN_INTERVAL,
        poll_max_interval: float = PDF_POLL_MAX_INTERVAL,
        download_timeout: float = PDF_WAIT_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.navigator = navigator
        self.store = store
        self.registry = registry
        self.extractor = extractor or BoundaryTextExtractor()
        self.pdf_extractor = pdf_extractor or PdfTextExtractor()
        self.country = country
        self.search_url = search_url
        self.pdf_wait_timeout = pdf_wait_timeout
        self.poll_min_interval = poll_min_interval
        self.poll_max_interval = poll_max_interval
        self.download_timeout = download_timeout
        self.sleep = sleep

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def acquire_any(
        self,
        request: DocumentRequest,
        issues: Iterable[Union[str, GazetteIssue]],
    ) -> FetchedDocument:
        """
        Acquire a document from the first gazette issue that has it.

        Candidates are tried in order. A candidate whose PDF wait timed out is
        tried once more, since the download may have finished or been
        abandoned meanwhile.

        Raises:
            InvalidIdentifierError: At once, the identifier is wrong for every candidate
            AcquisitionFailedError: Every candidate failed; holds each failure
        """
        kind = DocumentKind(request.kind)
        parse_identifier(kind, request.identifier)

        failures: List[GazetteError] = []
        last_url = None
        for reference in issues:
            try:
                issue = reference if isinstance(reference, GazetteIssue) else GazetteIssue.parse(reference)
                return self._acquire_once_more_on_timeout(request, issue)
            except InvalidIdentifierError:
                raise
            except GazetteError as e:
                if e.gazette_issue is None:
                    e.gazette_issue = str(reference)
                logger.warning(f"Gazette {reference} failed for {kind.value} {request.identifier}: {e}")
                failures.append(e)
                last_url = e.url or last_url

        raise AcquisitionFailedError(
            f"No gazette issue gave the {kind.value} text",
            failures=failures,
            identifier=request.identifier,
            url=last_url,
        )

    def acquire(self, request: DocumentRequest, issue: Union[str, GazetteIssue]) -> FetchedDocument:
        """
        Acquire a document from one gazette issue.

        Raises:
            InvalidIssueError: Malformed issue reference
            InvalidIdentifierError: Identifier does not fit the document kind
            IssueNotFoundError: No archive row for the issue
            LegislationNotFoundError: Issue has no link for the identifier
            NoRetrievalPathError: Neither details page nor usable PDF
            IdentifierNotInPdfError: The PDF does not contain the document
            DownloadTimedOutError: PDF never arrived; retryable
            PageUnreachableError: A page never loaded
            BoundaryExtractionError: Text found but its operative part not
        """
        if not isinstance(issue, GazetteIssue):
            issue = GazetteIssue.parse(issue)
        try:
            return self._acquire(request, issue)
        except GazetteError as e:
            if e.gazette_issue is None:
                e.gazette_issue = str(issue)
            if e.identifier is None:
                e.identifier = request.identifier
            raise

    # -------------------------------------------------------------------------
    # Decision tree
    # -------------------------------------------------------------------------

    def _acquire_once_more_on_timeout(self, request: DocumentRequest, issue: GazetteIssue) -> FetchedDocument:
        try:
            return self.acquire(request, issue)
        except DownloadTimedOutError as e:
            logger.warning(f"{e.message}, trying gazette {issue} once more")
            return self.acquire(request, issue)

    def _acquire(self, request: DocumentRequest, issue: GazetteIssue) -> FetchedDocument:
        kind = DocumentKind(request.kind)
        parts = parse_identifier(kind, request.identifier)
        text_identifier = build_text_identifier(issue, request.identifier)

        cached = self._find_text(request.source_type, text_identifier)
        if cached is not None:
            logger.debug(f"{request.source_type} of {text_identifier} already collected")
            return FetchedDocument(
                url=cached.download_url or text_identifier,
                text=self._extract_cached(request, kind, cached, text_identifier),
            )

        logger.info(f"Getting {kind.value} {request.identifier} from gazette {issue}")
        try:
            row = self._find_issue_row(issue)

            details_button = self._find_button(row, DETAILS_BUTTON)
            if details_button is not None:
                self.navigator.click(details_button)
                return self._acquire_from_details_page(request, kind, parts, text_identifier)

            if self._find_button(row, DOWNLOAD_BUTTON) is None:
                raise NoRetrievalPathError("Gazette issue has neither details page nor PDF")
            if kind == DocumentKind.AMENDMENT:
                raise NoRetrievalPathError("Cannot process PDF for amendment")

            pdf_file = self._obtain_pdf(row, issue, text_identifier)
        except NavigationTimeoutError as e:
            logger.error(f"Page did not respond while getting gazette {issue}: {e}")
            raise PageUnreachableError(f"Page did not respond: {e.message}", url=e.url) from e

        return self._document_from_pdf(request, kind, parts, text_identifier, pdf_file)

    def _extract_cached(
        self,
        request: DocumentRequest,
        kind: DocumentKind,
        cached: TextSource,
        text_identifier: str,
    ) -> str:
        if kind != DocumentKind.AMENDMENT:
            return self.extractor.extract(cached.text_content, kind)

        # A missing link text only means the start title is searched in the text
        link_type = link_text_type(request.source_type)
        link = self._find_text(link_type, text_identifier) if link_type else None
        return self.extractor.extract_amendment(cached.text_content, link.text_content if link else "")

    # -------------------------------------------------------------------------
    # Search page
    # -------------------------------------------------------------------------

    def _find_issue_row(self, issue: GazetteIssue) -> Element:
        """
        Filter the archive by issue number and return the row of the issue year.

        Raises:
            IssueNotFoundError: No such row, or the search page lacks an element
        """
        fetch_with_retry(
            lambda: self.navigator.open(self.search_url),
            max_retries=3,
            operation_name=f"Opening gazette search page for {issue}",
            retry_on=(NavigationTimeoutError,),
        )
        try:
            page_size = self.navigator.find_first(PAGE_SIZE_SELECT)
            self.navigator.select_option(page_size, PAGE_SIZE)
            self.navigator.wait_for_text(PAGE_REPORT, PAGE_SIZE_PATTERN)
            number_filter = self.navigator.find_first(ISSUE_NUMBER_FILTER)
            self.navigator.type_text(number_filter, str(issue.number))
            self.navigator.wait_for_text(PAGE_REPORT, FILTERED_PATTERN)
        except ElementNotFoundError as e:
            logger.error(f"Gazette search page element not found: {e.selector}")
            raise IssueNotFoundError(f"No gazette issue found [matching element not found: {e.selector}]")

        row = self._row_for_year(issue.year_suffix)
        if row is None:
            logger.error(f"{issue} gazette issue does not exist")
            raise IssueNotFoundError("No gazette issue found")
        return row

    def _row_for_year(self, year_suffix: str) -> Optional[Element]:
        for row in self.navigator.find_all(ISSUE_ROWS):
            if len(self.navigator.find_all(ROW_CELLS, within=row)) <= 3:
                continue
            years = self.navigator.find_all(ROW_YEAR, within=row)
            if years and self.navigator.text(years[0]).strip().endswith(year_suffix):
                return row
        return None

    def _find_button(self, row: Element, button_type: str) -> Optional[Element]:
        """Find a row button by the last part of its id (``form:table:0:btnVerDetalle``)."""
        for button in self.navigator.find_all(ROW_BUTTONS, within=row):
            button_id = self.navigator.attribute(button, "id") or ""
            if button_id.split(":")[-1] == button_type:
                return button
        return None

    # -------------------------------------------------------------------------
    # Details page
    # -------------------------------------------------------------------------

    def _acquire_from_details_page(
        self,
        request: DocumentRequest,
        kind: DocumentKind,
        parts: List[IdentifierPart],
        text_identifier: str,
    ) -> FetchedDocument:
        try:
            link_text = self._open_toc_link(kind, parts, request.identifier, relaxed=False)
        except (LegislationNotFoundError, NavigationTimeoutError) as e:
            # A second failure is final
            logger.info(
                f"Searching the table of contents again for {request.identifier}, "
                f"accepting a year mismatch ({type(e).__name__})"
            )
            link_text = self._open_toc_link(kind, parts, request.identifier, relaxed=True)

        url = self._document_url(text_identifier)

        if kind == DocumentKind.AMENDMENT:
            raw_text = self._read_amendment_paragraphs()
            self._stage_text(request.source_type, text_identifier, raw_text, url)
            link_type = link_text_type(request.source_type)
            if link_type:
                self._stage_text(link_type, text_identifier, link_text, url)
            return FetchedDocument(url=url, text=self.extractor.extract_amendment(raw_text, link_text))

        self.navigator.wait_for_visible(DETAILS_LABEL)
        raw_text = self.navigator.text(self.navigator.find_first(DETAILS_REGION))
        self._stage_text(request.source_type, text_identifier, raw_text, url)
        return FetchedDocument(url=url, text=self.extractor.extract(raw_text, kind))

    def _open_toc_link(
        self,
        kind: DocumentKind,
        parts: List[IdentifierPart],
        identifier: str,
        relaxed: bool,
    ) -> str:
        """Click the table of contents link of the document and return its text."""
        self.navigator.wait_for_visible(TOC_LINKS)
        links = self.navigator.find_all(TOC_LINKS)
        link_texts = [self.navigator.text(link) for link in links]

        index = find_link_index(link_texts, kind, parts, relaxed=relaxed)
        if index is None:
            logger.warning(f"Legislation {identifier} not found")
            raise LegislationNotFoundError(f"No legislation found with given identifier ({identifier})")

        self.navigator.click(links[index])
        return link_texts[index]

    def _document_url(self, fallback: str) -> str:
        try:
            url = self.navigator.text(self.navigator.wait_for_visible(DOCUMENT_LINK)).strip()
        except NavigationTimeoutError:
            logger.warning("No document link on the details page")
            return fallback
        return url or fallback

    def _read_amendment_paragraphs(self) -> str:
        label = self.navigator.wait_for_visible(DETAILS_LABEL)
        try:
            root = self.navigator.find_first(AMENDMENT_SECTION, within=label)
        except ElementNotFoundError:
            root = label
        paragraphs = self.navigator.find_all(AMENDMENT_PARAGRAPHS, within=root)
        return "\n".join(self.navigator.text(paragraph) for paragraph in paragraphs)

    # -------------------------------------------------------------------------
    # PDF
    # -------------------------------------------------------------------------

    def _obtain_pdf(self, row: Element, issue: GazetteIssue, text_identifier: str) -> DownloadedFile:
        """Download the issue PDF, or wait for it when it is known or claimed elsewhere."""
        key = issue.key
        if self.registry.is_in_flight(key) or self._find_file(key) is not None:
            return self._wait_for_pdf(issue)

        if not self.registry.try_claim(key):
            return self._wait_for_pdf(issue)

        try:
            # The previous owner may have staged the file and released its claim
            # between the lookup and our claim
            pdf_file = self._find_file(key)
            if pdf_file is not None:
                return pdf_file
            return self._download_pdf(row, issue, text_identifier)
        finally:
            self.registry.release(key)

    def _download_pdf(self, row: Element, issue: GazetteIssue, text_identifier: str) -> DownloadedFile:
        url = text_identifier
        link_button = self._find_button(row, LINK_BUTTON)
        if link_button is not None:
            self.navigator.click(link_button)
            try:
                url = self.navigator.text(self.navigator.find_first(DOWNLOAD_LINK)).strip() or text_identifier
            except ElementNotFoundError:
                logger.warning(f"No public link for gazette {issue}")
            # The page reloads, the row has to be found again
            row = self._row_for_year(issue.year_suffix)
            if row is None:
                raise IssueNotFoundError("Gazette row disappeared after reading the PDF link")

        download_button = self._find_button(row, DOWNLOAD_BUTTON)
        if download_button is None:
            raise NoRetrievalPathError("Gazette issue has no PDF download")

        self.navigator.click(download_button)
        logger.info(f"Downloading {issue}")
        pdf_file = read_downloaded_file(
            self.navigator.download_dir,
            url,
            save_name=issue.key,
            timeout=self.download_timeout,
            poll_interval=self.poll_min_interval,
            sleep=self.sleep,
        )
        self.registry.stage(pdf_file)
        logger.debug(f"PDF for gazette {issue} staged")
        return pdf_file

    def _wait_for_pdf(self, issue: GazetteIssue) -> DownloadedFile:
        """
        Wait until the PDF of the issue is in the registry or the store.

        The in-flight check comes before the file lookup: the owner stages the
        file before it releases the claim, so "not in flight and no file"
        means the download was abandoned.
        """
        key = issue.key

        def pdf_file_visible() -> Optional[DownloadedFile]:
            in_flight = self.registry.is_in_flight(key)
            pdf_file = self._find_file(key)
            if pdf_file is not None:
                return pdf_file
            if not in_flight:
                raise PollAborted(f"Download of {issue} was abandoned")
            logger.info(f"Waiting for {issue} PDF to be saved")
            return None

        try:
            return poll_until(
                pdf_file_visible,
                timeout=self.pdf_wait_timeout,
                min_interval=self.poll_min_interval,
                max_interval=self.poll_max_interval,
                operation_name=f"gazette {issue} PDF",
                sleep=self.sleep,
            )
        except PollTimeout:
            logger.error(f"Wait for {issue} PDF timed out")
            raise DownloadTimedOutError(f"Wait for {issue} PDF timed out")
        except PollAborted as e:
            logger.warning(str(e))
            raise DownloadTimedOutError(f"Wait for {issue} PDF ended, the download was abandoned")

    def _document_from_pdf(
        self,
        request: DocumentRequest,
        kind: DocumentKind,
        parts: List[IdentifierPart],
        text_identifier: str,
        pdf_file: DownloadedFile,
    ) -> FetchedDocument:
        url = pdf_file.url or text_identifier
        pdf_text = self.pdf_extractor.extract_or_empty(pdf_file.content)
        sub_text = locate_in_pdf(pdf_text, kind, parts, self.extractor.end_marker(kind))
        self._stage_text(request.source_type, text_identifier, sub_text, url)
        logger.debug(f"PDF text of {text_identifier} located")
        return FetchedDocument(url=url, text=self.extractor.extract(sub_text, kind))

    # -------------------------------------------------------------------------
    # Store and registry
    # -------------------------------------------------------------------------

    def _find_text(self, text_type: str, text_identifier: str) -> Optional[TextSource]:
        # Registry first: a flush saves before it empties the buffer
        pending = self.registry.lookup(text_type, text_identifier)
        if pending is not None:
            return pending
        return self.store.find(text_type, text_identifier, self.country)

    def _find_file(self, filename: str) -> Optional[DownloadedFile]:
        pending = self.registry.lookup_file(filename)
        if pending is not None:
            return pending
        return self.store.find_file(filename)

    def _stage_text(self, text_type: str, text_identifier: str, content: str, url: Optional[str]) -> None:
        self.registry.stage(TextSource(
            text_type=text_type,
            text_identifier=text_identifier,
            text_content=content,
            download_url=url,
            country=self.country,
        ))
