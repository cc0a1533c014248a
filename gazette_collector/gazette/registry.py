"""
Pending work registry shared by concurrently running gazette workers.

Holds the set of gazette issues whose PDF is being downloaded by some worker,
and the texts and files acquired since the last flush to the document store.
One registry is created per job run and handed to every coordinator.
"""
import logging
import threading
from typing import Callable, Dict, Generic, Hashable, List, Optional, TypeVar, TYPE_CHECKING

from gazette_collector.gazette.models import DownloadedFile, TextSource

if TYPE_CHECKING:
    from gazette_collector.storage.document_store import DocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PendingBuffer(Generic[T]):
    """
    In-memory buffer of entries not yet saved to the store.

    A single lock guards the whole buffer, so a flush always sees and
    removes a consistent set of entries. Staging an entry with a key that
    is already buffered replaces the older entry.
    """

    def __init__(self):
        self._entries: Dict[Hashable, T] = {}
        self.lock = threading.Lock()

    def add(self, key: Hashable, entry: T) -> None:
        with self.lock:
            self._entries[key] = entry

    def get(self, key: Hashable) -> Optional[T]:
        with self.lock:
            return self._entries.get(key)

    def flush_to(self, save: Callable[[List[T]], None]) -> int:
        """
        Hand every buffered entry to save, then empty the buffer.

        The lock is held throughout. If save raises, nothing is removed.
        """
        with self.lock:
            entries = list(self._entries.values())
            if entries:
                save(entries)
                self._entries.clear()
            return len(entries)

    def clear(self) -> None:
        with self.lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self._entries)


class PendingWorkRegistry:
    """
    Process-wide bookkeeping that keeps workers from duplicating downloads.

    The in-flight set is advisory: a worker that finds an issue in it waits
    for the owner's result instead of starting its own download. None of the
    operations fail.
    """

    def __init__(self):
        self._in_flight: set = set()
        self._in_flight_lock = threading.Lock()
        self._texts: PendingBuffer[TextSource] = PendingBuffer()
        self._files: PendingBuffer[DownloadedFile] = PendingBuffer()

    # -------------------------------------------------------------------------
    # In-flight downloads
    # -------------------------------------------------------------------------

    def try_claim(self, issue_key: str) -> bool:
        """
        Atomically add an issue to the in-flight set.

        Returns:
            True if this call inserted the key (the caller owns the download),
            False if another worker already owns it
        """
        with self._in_flight_lock:
            if issue_key in self._in_flight:
                return False
            self._in_flight.add(issue_key)
        logger.debug(f"Claimed download of gazette {issue_key}")
        return True

    def release(self, issue_key: str) -> None:
        """Remove an issue from the in-flight set. Releasing twice is harmless."""
        with self._in_flight_lock:
            self._in_flight.discard(issue_key)

    def is_in_flight(self, issue_key: str) -> bool:
        with self._in_flight_lock:
            return issue_key in self._in_flight

    # -------------------------------------------------------------------------
    # Not yet saved results
    # -------------------------------------------------------------------------

    def stage(self, entry) -> None:
        """Buffer a TextSource or DownloadedFile until the next flush."""
        if isinstance(entry, TextSource):
            self._texts.add((entry.text_type, entry.text_identifier), entry)
        elif isinstance(entry, DownloadedFile):
            self._files.add(entry.filename, entry)
        else:
            raise TypeError(f"Cannot stage {type(entry).__name__}")

    def lookup(self, text_type: str, identifier: str) -> Optional[TextSource]:
        return self._texts.get((text_type, identifier))

    def lookup_file(self, filename: str) -> Optional[DownloadedFile]:
        return self._files.get(filename)

    @property
    def pending_count(self) -> int:
        return len(self._texts) + len(self._files)

    def flush(self, store: "DocumentStore") -> int:
        """
        Save every buffered entry to the store and empty the buffers.

        Each buffer stays locked while it is saved, so an entry is always
        visible either here or in the store. If saving fails the entries
        stay buffered and the error propagates.

        Returns:
            Number of entries saved
        """
        saved = 0
        for buffer in (self._files, self._texts):
            saved += buffer.flush_to(store.save_all)
        if saved:
            logger.info(f"Flushed {saved} pending gazette entries to the store")
        return saved

    def clear(self) -> None:
        """Drop every buffered entry and in-flight claim without saving."""
        self._texts.clear()
        self._files.clear()
        with self._in_flight_lock:
            self._in_flight.clear()
