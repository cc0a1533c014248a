"""
Tests for Selenium Page Navigator (gazette_collector/gazette/navigation.py)

The Chrome driver is mocked; no browser is started.
"""

from unittest.mock import MagicMock, patch

import pytest
from selenium.common.exceptions import NoSuchElementException, TimeoutException

from gazette_collector.core.exceptions import ElementNotFoundError, NavigationTimeoutError
from gazette_collector.gazette.navigation import SeleniumPageNavigator


@pytest.fixture
def mock_chrome():
    with patch("gazette_collector.gazette.navigation.webdriver") as mock_webdriver, \
            patch("gazette_collector.gazette.navigation.ChromeDriverManager"), \
            patch("gazette_collector.gazette.navigation.Service"):
        driver = MagicMock()
        driver.current_url = "http://gazette.test/search"
        mock_webdriver.Chrome.return_value = driver
        yield mock_webdriver


@pytest.fixture
def navigator(mock_chrome, download_dir):
    return SeleniumPageNavigator(headless=True, download_dir=download_dir, wait_timeout=0)


class TestDriverSetup:
    """Tests for lazy Chrome creation."""

    def test_driver_created_on_first_use(self, navigator, mock_chrome, download_dir):
        """Test Chrome starts on the first page and downloads into the navigator's directory."""
        mock_chrome.Chrome.assert_not_called()

        navigator.open("http://gazette.test/search")

        mock_chrome.Chrome.assert_called_once()
        options = mock_chrome.Chrome.call_args.kwargs["options"]
        assert "--headless=new" in options.arguments
        prefs = options.experimental_options["prefs"]
        assert prefs["download.default_directory"] == str(download_dir.resolve())
        assert prefs["plugins.always_open_pdf_externally"] is True

    def test_default_download_dir_is_private(self, mock_chrome, tmp_path):
        """Test two navigators never share a download directory."""
        with patch("gazette_collector.gazette.navigation.DOWNLOAD_DIR", tmp_path):
            first = SeleniumPageNavigator()
            second = SeleniumPageNavigator()

        assert first.download_dir != second.download_dir
        assert first.download_dir.parent == tmp_path

    def test_close_quits_driver(self, navigator, mock_chrome):
        """Test close quits Chrome and tolerates a second call."""
        navigator.open("http://gazette.test/search")
        driver = mock_chrome.Chrome.return_value

        navigator.close()
        navigator.close()

        driver.quit.assert_called_once()
        assert navigator.current_url == ""


class TestNavigationErrors:
    """Tests for the mapping of Selenium errors."""

    def test_open_timeout(self, navigator, mock_chrome):
        """Test a page load timeout becomes NavigationTimeoutError."""
        mock_chrome.Chrome.return_value.get.side_effect = TimeoutException()

        with pytest.raises(NavigationTimeoutError) as exc_info:
            navigator.open("http://gazette.test/search")
        assert exc_info.value.url == "http://gazette.test/search"

    def test_missing_element(self, navigator, mock_chrome):
        """Test a missing element becomes ElementNotFoundError with its selector."""
        mock_chrome.Chrome.return_value.find_element.side_effect = NoSuchElementException()

        with pytest.raises(ElementNotFoundError) as exc_info:
            navigator.find_first("[id='formResumen:linkDescargar']")
        assert exc_info.value.selector == "[id='formResumen:linkDescargar']"

    def test_missing_option(self, navigator):
        """Test a select without the option becomes ElementNotFoundError."""
        with patch("gazette_collector.gazette.navigation.Select") as mock_select:
            mock_select.return_value.select_by_visible_text.side_effect = NoSuchElementException()
            with pytest.raises(ElementNotFoundError):
                navigator.select_option(MagicMock(), "50")

    def test_wait_for_text_times_out(self, navigator, mock_chrome):
        """Test text that never matches becomes NavigationTimeoutError."""
        element = MagicMock(text="Registro 1 a 10 de 300")
        mock_chrome.Chrome.return_value.find_element.return_value = element

        with pytest.raises(NavigationTimeoutError):
            navigator.wait_for_text("span", r"Registro 1 a 50.*")

    def test_wait_for_text_match(self, navigator, mock_chrome):
        """Test the matching element is returned."""
        element = MagicMock(text="Registro 1 a 50 de 300")
        mock_chrome.Chrome.return_value.find_element.return_value = element

        assert navigator.wait_for_text("span", r"Registro 1 a 50.*") is element


class TestInteraction:
    """Tests for element interaction."""

    def test_click_uses_javascript(self, navigator, mock_chrome):
        """Test clicks go through JavaScript."""
        element = MagicMock()

        navigator.click(element)

        mock_chrome.Chrome.return_value.execute_script.assert_called_once_with("arguments[0].click();", element)

    def test_find_all_within_element(self, navigator):
        """Test searches scoped to an element use that element."""
        row = MagicMock()
        row.find_elements.return_value = ["td1", "td2"]

        assert navigator.find_all("td", within=row) == ["td1", "td2"]
