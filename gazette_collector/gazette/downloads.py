"""
Reading files the browser downloaded.

Each navigator downloads into its own directory, so the first PDF that shows
up there is the one just requested. Chrome sometimes leaves a "downloads.htm"
page behind, which is removed while waiting.
"""
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from gazette_collector.core.config import PDF_POLL_MIN_INTERVAL, PDF_WAIT_TIMEOUT
from gazette_collector.core.exceptions import DownloadTimedOutError
from gazette_collector.gazette.models import DownloadedFile
from gazette_collector.utils.retry import PollTimeout, poll_until

logger = logging.getLogger(__name__)

DOWNLOAD_PLACEHOLDER = "downloads.htm"


def find_downloaded_pdf(download_dir: Path) -> Optional[Path]:
    """Return the first finished PDF in the directory, removing a placeholder page."""
    if not download_dir.exists():
        return None
    for path in sorted(download_dir.iterdir()):
        if path.name == DOWNLOAD_PLACEHOLDER:
            logger.debug(f"Removing {path}")
            path.unlink()
        elif path.suffix.lower() == ".pdf":
            return path
    return None


def read_downloaded_file(
    download_dir: Path,
    url: Optional[str],
    save_name: Optional[str] = None,
    timeout: float = PDF_WAIT_TIMEOUT,
    poll_interval: float = PDF_POLL_MIN_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
) -> DownloadedFile:
    """
    Wait for a PDF in the download directory, read it and delete it.

    Args:
        download_dir: Browser download directory
        url: Public URL of the file, kept with the content
        save_name: Name to store the file under (defaults to the file name)
        timeout: Seconds to wait for the download to finish
        poll_interval: Seconds between directory checks
        sleep: Sleep function (injectable for tests)

    Raises:
        DownloadTimedOutError: If no PDF appeared in time
    """
    download_dir = Path(download_dir)
    try:
        path = poll_until(
            lambda: find_downloaded_pdf(download_dir),
            timeout=timeout,
            min_interval=poll_interval,
            max_interval=poll_interval,
            operation_name=f"PDF download into {download_dir}",
            sleep=sleep,
        )
    except PollTimeout:
        raise DownloadTimedOutError(
            f"No PDF downloaded into {download_dir} within {timeout}s",
            gazette_issue=save_name,
            url=url,
        )

    try:
        content = path.read_bytes()
    finally:
        path.unlink()

    logger.info(f"Read downloaded file {path.name} ({len(content)} bytes)")
    return DownloadedFile(url=url, filename=save_name or path.name, content=content)
