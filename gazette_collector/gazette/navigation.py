"""
Page navigation capability used by the gazette fetch coordinator.

PageNavigator is the interface the coordinator drives. Elements are opaque
handles only passed back to the same navigator. Every navigator raises
ElementNotFoundError when a loaded page lacks an element and
NavigationTimeoutError when a page or element never loads, so callers can
tell "not there" from "never arrived".

SeleniumPageNavigator drives a Chrome browser set up with webdriver-manager.
"""
import logging
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional

from selenium import webdriver
from selenium.common.exceptions import NoSuchElementException, TimeoutException
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import Select, WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

from gazette_collector.core.config import (
    DOWNLOAD_DIR,
    HEADLESS,
    PAGE_LOAD_TIMEOUT,
    PAGE_WAIT_TIMEOUT,
)
from gazette_collector.core.exceptions import ElementNotFoundError, NavigationTimeoutError

logger = logging.getLogger(__name__)

Element = Any


class PageNavigator(ABC):
    """
    Abstract navigable page.

    Selectors are CSS selectors.
    """

    @abstractmethod
    def open(self, url: str) -> None:
        """Load a URL. Raises NavigationTimeoutError if it does not load in time."""
        pass

    @abstractmethod
    def find_first(self, selector: str, within: Optional[Element] = None) -> Element:
        """
        Find the first element matching the selector.

        Args:
            selector: CSS selector
            within: Element to search in (defaults to the whole page)

        Raises:
            ElementNotFoundError: If nothing matches
        """
        pass

    @abstractmethod
    def find_all(self, selector: str, within: Optional[Element] = None) -> List[Element]:
        pass

    @abstractmethod
    def click(self, element: Element) -> None:
        pass

    @abstractmethod
    def text(self, element: Element) -> str:
        """Visible text of an element."""
        pass

    @abstractmethod
    def attribute(self, element: Element, name: str) -> Optional[str]:
        pass

    @abstractmethod
    def type_text(self, element: Element, text: str) -> None:
        pass

    @abstractmethod
    def select_option(self, element: Element, visible_text: str) -> None:
        pass

    @abstractmethod
    def wait_for_text(self, selector: str, pattern: str) -> Element:
        """
        Wait until the element's text matches the regex pattern.

        Raises:
            NavigationTimeoutError: If the text never matches
        """
        pass

    @abstractmethod
    def wait_for_visible(self, selector: str) -> Element:
        """
        Wait until an element matching the selector is visible.

        Raises:
            NavigationTimeoutError: If it never becomes visible
        """
        pass

    @property
    @abstractmethod
    def current_url(self) -> str:
        pass

    @property
    @abstractmethod
    def download_dir(self) -> Path:
        """Directory the browser saves downloads into."""
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class SeleniumPageNavigator(PageNavigator):
    """
    Chrome based navigator.

    The driver is created on first use. Each navigator gets its own download
    directory under DOWNLOAD_DIR so parallel workers never see each other's
    files.
    """

    def __init__(
        self,
        headless: bool = HEADLESS,
        download_dir: Optional[Path] = None,
        wait_timeout: int = PAGE_WAIT_TIMEOUT,
        page_load_timeout: int = PAGE_LOAD_TIMEOUT,
    ):
        self.headless = headless
        self.wait_timeout = wait_timeout
        self.page_load_timeout = page_load_timeout
        if download_dir is None:
            DOWNLOAD_DIR.mkdir(parents=True, exist_ok=True)
            download_dir = Path(tempfile.mkdtemp(prefix="gazette-", dir=DOWNLOAD_DIR))
        self._download_dir = Path(download_dir)
        self._driver = None

    def _get_driver(self):
        """
        Get or create the ChromeDriver instance.

        PDFs are saved into the download directory instead of being opened
        in the built-in viewer.
        """
        if self._driver is None:
            options = ChromeOptions()
            if self.headless:
                options.add_argument('--headless=new')
            options.add_argument('--no-sandbox')
            options.add_argument('--disable-dev-shm-usage')
            options.add_argument('--disable-gpu')
            options.add_argument('--disable-extensions')
            options.add_argument('--disable-notifications')
            options.add_argument('--no-first-run')
            options.add_experimental_option("prefs", {
                "download.default_directory": str(self._download_dir.resolve()),
                "download.prompt_for_download": False,
                "download.directory_upgrade": True,
                "plugins.always_open_pdf_externally": True,
            })

            service = Service(ChromeDriverManager().install())
            self._driver = webdriver.Chrome(service=service, options=options)
            self._driver.set_page_load_timeout(self.page_load_timeout)
            logger.info(f"Started Chrome (headless={self.headless}), downloads in {self._download_dir}")
        return self._driver

    def _wait(self) -> WebDriverWait:
        return WebDriverWait(self._get_driver(), self.wait_timeout)

    def open(self, url: str) -> None:
        logger.debug(f"Opening {url}")
        try:
            self._get_driver().get(url)
        except TimeoutException:
            raise NavigationTimeoutError("Page did not load in time", url=url)

    def find_first(self, selector: str, within: Optional[Element] = None) -> Element:
        root = within if within is not None else self._get_driver()
        try:
            return root.find_element(By.CSS_SELECTOR, selector)
        except NoSuchElementException:
            raise ElementNotFoundError("Element not found", selector=selector, url=self.current_url)

    def find_all(self, selector: str, within: Optional[Element] = None) -> List[Element]:
        root = within if within is not None else self._get_driver()
        return root.find_elements(By.CSS_SELECTOR, selector)

    def click(self, element: Element) -> None:
        # Overlays on the archive site intercept native clicks
        self._get_driver().execute_script("arguments[0].click();", element)

    def text(self, element: Element) -> str:
        return element.text

    def attribute(self, element: Element, name: str) -> Optional[str]:
        return element.get_attribute(name)

    def type_text(self, element: Element, text: str) -> None:
        element.send_keys(text)

    def select_option(self, element: Element, visible_text: str) -> None:
        try:
            Select(element).select_by_visible_text(visible_text)
        except NoSuchElementException:
            raise ElementNotFoundError(f"No option {visible_text!r}", url=self.current_url)

    def wait_for_text(self, selector: str, pattern: str) -> Element:
        regex = re.compile(pattern)

        def text_matches(driver):
            try:
                element = driver.find_element(By.CSS_SELECTOR, selector)
            except NoSuchElementException:
                return False
            return element if regex.search(element.text) else False

        try:
            return self._wait().until(text_matches)
        except TimeoutException:
            raise NavigationTimeoutError(
                f"Text never matched {pattern!r}", selector=selector, url=self.current_url
            )

    def wait_for_visible(self, selector: str) -> Element:
        try:
            return self._wait().until(EC.visibility_of_element_located((By.CSS_SELECTOR, selector)))
        except TimeoutException:
            raise NavigationTimeoutError("Element never became visible", selector=selector, url=self.current_url)

    @property
    def current_url(self) -> str:
        if self._driver is None:
            return ""
        return self._driver.current_url

    @property
    def download_dir(self) -> Path:
        return self._download_dir

    def close(self) -> None:
        """Quit the browser."""
        if self._driver:
            try:
                self._driver.quit()
            except Exception as e:
                logger.warning(f"Error while quitting Chrome: {e}")
            self._driver = None
