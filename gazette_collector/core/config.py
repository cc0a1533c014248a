"""
Gazette Collector Configuration
Centralized configuration read from the environment (.env supported)
"""
import os
from dotenv import load_dotenv
from pathlib import Path

# Load from .env file with UTF-8 encoding (Windows compatibility)
env_path = Path(__file__).parent.parent.parent / '.env'
load_dotenv(dotenv_path=env_path, encoding='utf-8')

# =============================================================================
# Database Configuration
# =============================================================================
DB_USER = os.getenv("DB_USER", "collector")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", "5432"))
DB_NAME = os.getenv("DB_NAME", "legislative_data")
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# =============================================================================
# Gazette Archive Configuration
# =============================================================================
GAZETTE_WEBPAGE = os.getenv("GAZETTE_WEBPAGE", "http://svrpubindc.imprenta.gov.co/senado/")
GAZETTE_COUNTRY = os.getenv("GAZETTE_COUNTRY", "COLOMBIA")

# Browser waits (seconds)
PAGE_WAIT_TIMEOUT = int(os.getenv("PAGE_WAIT_TIMEOUT", "90"))
PAGE_LOAD_TIMEOUT = int(os.getenv("PAGE_LOAD_TIMEOUT", "120"))
HEADLESS = os.getenv("HEADLESS", "true").lower() == "true"
DOWNLOAD_DIR = Path(os.getenv("DOWNLOAD_DIR", str(Path(__file__).parent.parent / "data" / "downloads")))

# PDF wait: another worker's download, or the browser writing the file (seconds)
PDF_WAIT_TIMEOUT = int(os.getenv("PDF_WAIT_TIMEOUT", "600"))
PDF_POLL_MIN_INTERVAL = float(os.getenv("PDF_POLL_MIN_INTERVAL", "5"))
PDF_POLL_MAX_INTERVAL = float(os.getenv("PDF_POLL_MAX_INTERVAL", "10"))

# Retry configuration
BACKOFF_BASE_DELAY = int(os.getenv("BACKOFF_BASE_DELAY", "1"))  # 1 second
BACKOFF_MULTIPLIER = int(os.getenv("BACKOFF_MULTIPLIER", "2"))
BACKOFF_MAX_DELAY = int(os.getenv("BACKOFF_MAX_DELAY", "60"))  # 60 seconds

# =============================================================================
# Job Configuration
# =============================================================================
FLUSH_BATCH_SIZE = int(os.getenv("FLUSH_BATCH_SIZE", "5"))
WORKER_COUNT = int(os.getenv("WORKER_COUNT", "3"))

# =============================================================================
# Progress Bar Configuration
# =============================================================================
PROGRESS_BAR_ENABLED = os.getenv("PROGRESS_BAR_ENABLED", "true").lower() == "true"
