"""
pytest fixtures shared by the gazette collector tests.
Sets up Python path so 'gazette_collector' imports without installing.
"""
import sys
from pathlib import Path

# Add the repository root to Python path
# This allows imports like 'from gazette_collector.gazette import ...' to work
repo_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(repo_root))

import pytest

from gazette_collector.gazette.registry import PendingWorkRegistry
from gazette_collector.test.fakes import InMemoryDocumentStore


@pytest.fixture
def registry():
    return PendingWorkRegistry()


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def download_dir(tmp_path):
    path = tmp_path / "downloads"
    path.mkdir()
    return path
