"""
Tests for identifier matching (gazette_collector/gazette/matching.py)

Tests cover:
- Identifier validation and splitting per document kind
- Table of contents link matching (strict and relaxed passes)
- Locating a document inside a multi document PDF text
"""

import pytest

from gazette_collector.core.exceptions import (
    IdentifierNotInPdfError,
    InvalidIdentifierError,
    NoRetrievalPathError,
)
from gazette_collector.gazette.boundary import BILL_END_REGEX, LAW_END_REGEX
from gazette_collector.gazette.matching import (
    IdentifierPart,
    bill_ids_in_text,
    find_link_index,
    is_given_bill,
    is_given_law,
    law_id_in_text,
    locate_in_pdf,
    parse_identifier,
)
from gazette_collector.gazette.models import DocumentKind


class TestParseIdentifier:
    """Tests for parse_identifier."""

    def test_bill_with_both_chambers(self):
        """Test a house-senate pair gives two parts."""
        assert parse_identifier(DocumentKind.BILL, "123/20-045/21") == [
            IdentifierPart("123", "20"),
            IdentifierPart("045", "21"),
        ]

    def test_bill_with_one_chamber(self):
        """Test an empty side is skipped."""
        assert parse_identifier(DocumentKind.BILL, "-045/21") == [IdentifierPart("045", "21")]
        assert parse_identifier(DocumentKind.AMENDMENT, "123/20-") == [IdentifierPart("123", "20")]

    def test_law_is_year_then_number(self):
        """Test law identifiers are year/number."""
        assert parse_identifier(DocumentKind.LAW, "2021/2155") == [IdentifierPart(number="2155", year="2021")]

    @pytest.mark.parametrize("kind, identifier", [
        (DocumentKind.BILL, "-"),
        (DocumentKind.BILL, "123/20"),
        (DocumentKind.BILL, "123-045"),
        (DocumentKind.AMENDMENT, ""),
        (DocumentKind.LAW, "2021-2155"),
        (DocumentKind.LAW, "-045/21"),
        (DocumentKind.LAW, None),
    ])
    def test_invalid_identifiers(self, kind, identifier):
        """Test identifiers that do not fit their kind."""
        with pytest.raises(InvalidIdentifierError):
            parse_identifier(kind, identifier)

    def test_identifier_part_helpers(self):
        """Test integer view and text form of a part."""
        part = IdentifierPart("045", "21")
        assert part.as_ints() == (45, 21)
        assert str(part) == "045 de 21"


class TestLinkMatching:
    """Tests for link text matchers."""

    def test_bill_ids_in_text(self):
        """Test every number and two digit year of a link text."""
        text = "Proyecto de Ley número 045 de 2021 Senado - 123 de 2020 Cámara"
        assert bill_ids_in_text(text) == [(45, 21), (123, 20)]

    def test_bill_ids_in_text_without_ids(self):
        """Test a link text without ids."""
        assert bill_ids_in_text("Acta de plenaria") == []

    def test_is_given_bill_strict_and_relaxed(self):
        """Test a year mismatch only matches in relaxed mode."""
        parts = parse_identifier(DocumentKind.BILL, "-045/21")
        assert is_given_bill("Proyecto de Ley 045 de 2021 Senado", parts)
        assert not is_given_bill("Proyecto de Ley 045 de 2020 Senado", parts)
        assert is_given_bill("Proyecto de Ley 045 de 2020 Senado", parts, relaxed=True)
        assert not is_given_bill("Proyecto de Ley 046 de 2021 Senado", parts, relaxed=True)

    def test_law_id_in_text(self):
        """Test long and short law link texts."""
        assert law_id_in_text("Ley 2155 del 14 de septiembre de 2021") == (2155, 2021)
        assert law_id_in_text("Ley 2155 de 2021") == (2155, 2021)
        assert law_id_in_text("Acta de plenaria") is None

    def test_is_given_law(self):
        """Test number and full year have to match."""
        parts = parse_identifier(DocumentKind.LAW, "2021/2155")
        assert is_given_law("Ley 2155 del 14 de septiembre de 2021", parts)
        assert not is_given_law("Ley 2155 de 2020", parts)


class TestFindLinkIndex:
    """Tests for find_link_index."""

    def test_strict_first_match(self):
        """Test the first exact match is taken."""
        parts = parse_identifier(DocumentKind.BILL, "-045/21")
        links = ["Acta 12 de 2021", "Proyecto de Ley número 045 de 2021 Senado", "045 de 2021 otra vez"]
        assert find_link_index(links, DocumentKind.BILL, parts) == 1

    def test_strict_pass_ignores_year_mismatch(self):
        """Test a number-only match is not taken without relaxed mode."""
        parts = parse_identifier(DocumentKind.BILL, "-045/21")
        assert find_link_index(["Proyecto 045 de 2020 Senado"], DocumentKind.BILL, parts) is None

    def test_relaxed_unique_candidate(self):
        """Test the single number-only match is taken in relaxed mode."""
        parts = parse_identifier(DocumentKind.BILL, "-045/21")
        links = ["Proyecto 100 de 2021 Senado", "Proyecto 045 de 2020 Senado"]
        assert find_link_index(links, DocumentKind.BILL, parts, relaxed=True) == 1

    def test_relaxed_ambiguous_candidates(self):
        """Test several number-only matches give no link."""
        parts = parse_identifier(DocumentKind.BILL, "-045/21")
        links = ["Proyecto 045 de 2020 Senado", "Proyecto 045 de 2019 Cámara"]
        assert find_link_index(links, DocumentKind.BILL, parts, relaxed=True) is None

    def test_laws_are_never_relaxed(self):
        """Test a law with another year is not accepted."""
        parts = parse_identifier(DocumentKind.LAW, "2021/2155")
        assert find_link_index(["Ley 2155 de 2020"], DocumentKind.LAW, parts, relaxed=True) is None


PDF_TEXT = """GACETA DEL CONGRESO 45
PROYECTO DE LEY NÚMERO 045 DE 2021 SENADO
por medio de la cual se regula algo.
El Congreso de Colombia
DECRETA:
Artículo 1. Uno.
EXPOSICIÓN DE MOTIVOS
Razones.
PROYECTO DE LEY NÚMERO 046 DE 2021 SENADO
DECRETA:
Artículo 1. Otro.
EXPOSICIÓN DE MOTIVOS
"""


class TestLocateInPdf:
    """Tests for locate_in_pdf."""

    def test_cut_from_reference_through_end_marker(self):
        """Test the cut runs from the id reference through the end marker."""
        parts = parse_identifier(DocumentKind.BILL, "-045/21")
        text = locate_in_pdf(PDF_TEXT, DocumentKind.BILL, parts, BILL_END_REGEX)
        assert text.startswith("045 DE 2021 SENADO por medio")
        assert text.endswith("Artículo 1. Uno. EXPOSICIÓN DE MOTIVOS")
        assert "\n" not in text

    def test_second_part_used_when_first_missing(self):
        """Test the senate number is searched when the house number is absent."""
        parts = parse_identifier(DocumentKind.BILL, "999/20-046/21")
        text = locate_in_pdf(PDF_TEXT, DocumentKind.BILL, parts, BILL_END_REGEX)
        assert text.startswith("046 DE 2021")
        assert "Artículo 1. Otro." in text

    def test_not_found_collects_reasons(self):
        """Test one reason per missing identifier part."""
        parts = parse_identifier(DocumentKind.BILL, "999/20-998/21")
        with pytest.raises(IdentifierNotInPdfError) as exc_info:
            locate_in_pdf(PDF_TEXT, DocumentKind.BILL, parts, BILL_END_REGEX)
        assert exc_info.value.reasons == [
            "Not found bill in PDF with id: 999 de 20",
            "Not found bill in PDF with id: 998 de 21",
        ]

    def test_missing_end_marker(self):
        """Test a document without its end marker is not located."""
        parts = parse_identifier(DocumentKind.LAW, "2021/2155")
        with pytest.raises(IdentifierNotInPdfError) as exc_info:
            locate_in_pdf("LEY 2155 DE 2021 DECRETA: Artículo 1. Uno.", DocumentKind.LAW, parts, LAW_END_REGEX)
        assert "Could not find the end" in exc_info.value.reasons[0]

    def test_empty_text(self):
        """Test an empty PDF text (scanned or unreadable) is not found."""
        parts = parse_identifier(DocumentKind.LAW, "2021/2155")
        with pytest.raises(IdentifierNotInPdfError):
            locate_in_pdf("", DocumentKind.LAW, parts, LAW_END_REGEX)

    def test_amendments_have_no_pdf_path(self):
        """Test amendments cannot be cut from PDFs."""
        parts = parse_identifier(DocumentKind.AMENDMENT, "-045/21")
        with pytest.raises(NoRetrievalPathError):
            locate_in_pdf(PDF_TEXT, DocumentKind.AMENDMENT, parts, BILL_END_REGEX)
