"""
Gazette Text Sync

Acquires bill, law and amendment texts from the gazette archive for a batch
of (record, stage) work items with a pool of worker threads. Every worker has
its own browser; the pending work registry and the document store are
shared, so an issue PDF is downloaded once per run. The registry is flushed
to the store every few items and at the end.

Usage:
    python -m gazette_collector.sync.gazette_text_sync --kind bill \\
        --identifier 123/20-045/21 --source-type "bill text" --issues 45/21 46/21
"""
import argparse
import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from tqdm import tqdm

from gazette_collector.core.config import (
    FLUSH_BATCH_SIZE,
    HEADLESS,
    PROGRESS_BAR_ENABLED,
    WORKER_COUNT,
)
from gazette_collector.core.db import check_db_connection, dispose_engine
from gazette_collector.core.logging import setup_logging
from gazette_collector.gazette.coordinator import GazetteFetchCoordinator
from gazette_collector.gazette.models import DocumentKind, DocumentRequest, FetchedDocument
from gazette_collector.gazette.navigation import PageNavigator, SeleniumPageNavigator
from gazette_collector.gazette.registry import PendingWorkRegistry
from gazette_collector.storage.document_store import DocumentStore, SqlDocumentStore

logger = logging.getLogger(__name__)

WorkKey = Tuple[str, str]


@dataclass
class TextWorkItem:
    """One text to acquire for one stage of one legislative record."""
    record_id: str
    stage: str
    request: DocumentRequest
    issues: List[str]  # Gazette issue candidates, preferred first

    @property
    def key(self) -> WorkKey:
        return self.record_id, self.stage


@dataclass
class TextJobResult:
    """Outcome of a job run, per work item."""
    documents: Dict[WorkKey, FetchedDocument] = field(default_factory=dict)
    failures: Dict[WorkKey, Exception] = field(default_factory=dict)
    saved: int = 0

    @property
    def succeeded(self) -> int:
        return len(self.documents)

    @property
    def failed(self) -> int:
        return len(self.failures)


CoordinatorFactory = Callable[[PageNavigator, DocumentStore, PendingWorkRegistry], GazetteFetchCoordinator]


class GazetteTextJob:
    """
    Batch runner for gazette text acquisition.

    A failed item is recorded in the result and the batch goes on.
    """

    def __init__(
        self,
        store: DocumentStore,
        navigator_factory: Callable[[], PageNavigator],
        registry: Optional[PendingWorkRegistry] = None,
        workers: int = WORKER_COUNT,
        batch_size: int = FLUSH_BATCH_SIZE,
        coordinator_factory: CoordinatorFactory = GazetteFetchCoordinator,
        show_progress: bool = PROGRESS_BAR_ENABLED,
    ):
        """
        Initialize the job.

        Args:
            store: Document store shared by all workers
            navigator_factory: Creates one navigator per worker thread
            registry: Pending work registry (a new one per job by default)
            workers: Number of worker threads
            batch_size: Completed items between two registry flushes
            coordinator_factory: Builds a coordinator from navigator, store and registry
            show_progress: Show a tqdm progress bar
        """
        self.store = store
        self.navigator_factory = navigator_factory
        self.registry = registry or PendingWorkRegistry()
        self.workers = max(1, workers)
        self.batch_size = max(1, batch_size)
        self.coordinator_factory = coordinator_factory
        self.show_progress = show_progress

    def run(self, items: Sequence[TextWorkItem]) -> TextJobResult:
        """Acquire the text of every item."""
        result = TextJobResult()
        thread_state = threading.local()
        navigators: List[PageNavigator] = []
        navigators_lock = threading.Lock()

        def coordinator_for_thread() -> GazetteFetchCoordinator:
            coordinator = getattr(thread_state, "coordinator", None)
            if coordinator is None:
                navigator = self.navigator_factory()
                with navigators_lock:
                    navigators.append(navigator)
                coordinator = self.coordinator_factory(navigator, self.store, self.registry)
                thread_state.coordinator = coordinator
            return coordinator

        def process(item: TextWorkItem) -> FetchedDocument:
            return coordinator_for_thread().acquire_any(item.request, item.issues)

        logger.info(f"Acquiring {len(items)} gazette texts with {self.workers} workers")
        try:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="gazette") as executor:
                futures = {executor.submit(process, item): item for item in items}
                completed = 0
                for future in tqdm(
                    as_completed(futures),
                    total=len(futures),
                    desc="Gazette texts",
                    disable=not self.show_progress,
                ):
                    item = futures[future]
                    try:
                        result.documents[item.key] = future.result()
                    except Exception as e:
                        result.failures[item.key] = e
                        logger.error(
                            f"Record {item.record_id}, {item.stage}: "
                            f"{item.request.kind.value} {item.request.identifier} "
                            f"from gazettes {item.issues} failed: {e}"
                        )

                    completed += 1
                    if completed % self.batch_size == 0:
                        result.saved += self.registry.flush(self.store)
        finally:
            for navigator in navigators:
                navigator.close()

        result.saved += self.registry.flush(self.store)
        logger.info(
            f"Gazette texts done: {result.succeeded} acquired, {result.failed} failed, "
            f"{result.saved} entries saved"
        )
        return result


def main():
    """Main entry point for the gazette text sync script."""
    parser = argparse.ArgumentParser(
        description="Acquire a bill, law or amendment text from the gazette archive"
    )
    parser.add_argument(
        "--kind",
        choices=[kind.value for kind in DocumentKind],
        required=True,
        help="Kind of legislation to acquire",
    )
    parser.add_argument(
        "--identifier",
        required=True,
        help="Bill id pair (house-senate, e.g. 123/20-045/21) or law id (year/number)",
    )
    parser.add_argument(
        "--source-type",
        required=True,
        help='Text type to store the text under (e.g. "bill text")',
    )
    parser.add_argument(
        "--issues",
        nargs="+",
        required=True,
        help="Gazette issue candidates in preference order (e.g. 45/21)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=WORKER_COUNT,
        help=f"Number of worker threads (default: {WORKER_COUNT})",
    )
    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=HEADLESS,
        help="Run Chrome without a window",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Debug logging",
    )

    args = parser.parse_args()

    setup_logging("gazette_collector", level="DEBUG" if args.verbose else None)

    store = SqlDocumentStore()
    if not check_db_connection(store.engine):
        logger.error("Cannot connect to database")
        sys.exit(1)
    store.ensure_schema()

    request = DocumentRequest(
        kind=DocumentKind(args.kind),
        identifier=args.identifier,
        source_type=args.source_type,
    )
    item = TextWorkItem(
        record_id=args.identifier,
        stage=args.source_type,
        request=request,
        issues=args.issues,
    )
    job = GazetteTextJob(
        store,
        navigator_factory=lambda: SeleniumPageNavigator(headless=args.headless),
        workers=args.workers,
    )
    result = job.run([item])
    dispose_engine()

    document = result.documents.get(item.key)
    if document is not None:
        print(f"URL: {document.url}")
        print(document.text)

    sys.exit(0 if not result.failures else 1)


if __name__ == "__main__":
    main()
