"""
Tests for the exception hierarchy (gazette_collector/core/exceptions.py)
"""

import pytest

from gazette_collector.core.exceptions import (
    AcquisitionFailedError,
    BoundaryExtractionError,
    CollectorError,
    DatabaseError,
    EndBeforeStartError,
    GazetteError,
    IdentifierNotInPdfError,
    IssueNotFoundError,
    LegislationNotFoundError,
    NavigationError,
    NoStartMarkerError,
)


class TestHierarchy:
    """Tests for error kinds callers branch on."""

    @pytest.mark.parametrize("error_class, base_class", [
        (LegislationNotFoundError, IssueNotFoundError),
        (NoStartMarkerError, BoundaryExtractionError),
        (EndBeforeStartError, BoundaryExtractionError),
        (BoundaryExtractionError, GazetteError),
        (AcquisitionFailedError, GazetteError),
        (NavigationError, CollectorError),
        (DatabaseError, CollectorError),
    ])
    def test_subclasses(self, error_class, base_class):
        """Test each error kind sits under its family."""
        assert issubclass(error_class, base_class)


class TestMessages:
    """Tests for error string forms."""

    def test_gazette_error_context(self):
        """Test issue and identifier are part of the message."""
        error = IssueNotFoundError("No gazette issue found", gazette_issue="45/21", identifier="-045/21")
        assert str(error) == "No gazette issue found | Gazette: 45/21 | Identifier: -045/21"

    def test_details(self):
        """Test details are listed after the message."""
        error = CollectorError("Failed", details={"record": 7})
        assert str(error) == "Failed (record=7)"

    def test_identifier_not_in_pdf_reasons(self):
        """Test the reasons are joined."""
        error = IdentifierNotInPdfError("Bill not found in PDF", reasons=["a", "b"])
        assert str(error) == "Bill not found in PDF | a & b"

    def test_acquisition_failed_lists_failures(self):
        """Test every candidate failure is named with its issue."""
        failures = [
            IssueNotFoundError("No gazette issue found", gazette_issue="45/21"),
            LegislationNotFoundError("No legislation found", gazette_issue="46/21"),
        ]
        error = AcquisitionFailedError("No gazette issue gave the bill text", failures=failures, identifier="-045/21")

        message = str(error)
        assert "(45/21) IssueNotFoundError: No gazette issue found" in message
        assert "(46/21) LegislationNotFoundError: No legislation found" in message
        assert error.failures == failures

    def test_database_error_cause(self):
        """Test the original error is named."""
        error = DatabaseError("Lookup failed", original_error=RuntimeError("gone"))
        assert str(error) == "Lookup failed | Caused by: RuntimeError: gone"
