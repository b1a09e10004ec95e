"""Unit tests for FieldExtractor."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from profmatch.config.app_config import ExtractionSelectors
from profmatch.services.field_extractor import FieldExtractor
from profmatch.utils.errors import ExtractionError, ExtractionErrorKind
from tests.conftest import make_document


@pytest.fixture
def extractor() -> FieldExtractor:
    return FieldExtractor()


class TestExtract:
    def test_valid_page(self, extractor: FieldExtractor) -> None:
        record = extractor.extract(make_document(), source_url="https://example.com/p/1")
        assert record.name == "J. Doe"
        assert record.department == "Computer Science"
        assert record.rating_raw == "4.5"
        assert record.review_snippets == ["Great lectures"]
        assert record.source_url == "https://example.com/p/1"

    def test_review_order_preserved(self, extractor: FieldExtractor) -> None:
        doc = make_document(reviews=["first", "second", "third"])
        assert extractor.extract(doc).review_snippets == ["first", "second", "third"]

    def test_reviews_capped(self) -> None:
        extractor = FieldExtractor(ExtractionSelectors(max_reviews=2))
        doc = make_document(reviews=["a", "b", "c"])
        assert extractor.extract(doc).review_snippets == ["a", "b"]

    def test_empty_reviews_skipped(self, extractor: FieldExtractor) -> None:
        doc = make_document(reviews=["", "useful", "   "])
        assert extractor.extract(doc).review_snippets == ["useful"]

    def test_no_reviews_is_still_valid(self, extractor: FieldExtractor) -> None:
        assert extractor.extract(make_document(reviews=[])).review_snippets == []

    def test_rating_kept_verbatim(self, extractor: FieldExtractor) -> None:
        assert extractor.extract(make_document(rating="N/A")).rating_raw == "N/A"

    def test_nested_markup_text_kept_verbatim(self, extractor: FieldExtractor) -> None:
        doc = BeautifulSoup(
            '<meta name="title" content="A at B">'
            '<meta name="description" content="a professor in the Physics department">'
            '<div class="liyUjw">4.5<span>/5</span></div>'
            '<div class="Comments__StyledComments-dzzyvm-0 gRjWel">\n  Tough <b>but</b>  fair.\n</div>',
            "html.parser",
        )
        record = extractor.extract(doc)
        assert record.rating_raw == "4.5/5"
        assert record.review_snippets == ["Tough but  fair."]

    def test_title_without_separator_uses_whole_title(self, extractor: FieldExtractor) -> None:
        doc = BeautifulSoup(
            '<meta name="title" content="Dr. Solo">'
            '<meta name="description" content="teaches in the Physics department">'
            '<div class="liyUjw">3.9</div>',
            "html.parser",
        )
        assert extractor.extract(doc).name == "Dr. Solo"

    def test_department_without_suffix_takes_rest(self, extractor: FieldExtractor) -> None:
        doc = BeautifulSoup(
            '<meta name="title" content="A at B">'
            '<meta name="description" content="a professor in the Fine Arts">'
            '<div class="liyUjw">5.0</div>',
            "html.parser",
        )
        assert extractor.extract(doc).department == "Fine Arts"


class TestMissingFields:
    def test_missing_title_meta(self, extractor: FieldExtractor) -> None:
        with pytest.raises(ExtractionError) as info:
            extractor.extract(make_document(name=None))
        assert info.value.kind == ExtractionErrorKind.MISSING_FIELD
        assert info.value.field == "name"

    def test_missing_description_meta(self, extractor: FieldExtractor) -> None:
        with pytest.raises(ExtractionError) as info:
            extractor.extract(make_document(department=None))
        assert info.value.kind == ExtractionErrorKind.MISSING_FIELD
        assert info.value.field == "department"

    def test_missing_rating_is_incomplete(self, extractor: FieldExtractor) -> None:
        with pytest.raises(ExtractionError) as info:
            extractor.extract(make_document(rating=None))
        assert info.value.kind == ExtractionErrorKind.INCOMPLETE
        assert info.value.missing_fields == ["rating_raw"]

    def test_blank_rating_is_incomplete(self, extractor: FieldExtractor) -> None:
        with pytest.raises(ExtractionError) as info:
            extractor.extract(make_document(rating="   "))
        assert "rating_raw" in info.value.missing_fields

    def test_description_without_prefix_is_incomplete(self, extractor: FieldExtractor) -> None:
        doc = BeautifulSoup(
            '<meta name="title" content="A at B">'
            '<meta name="description" content="no department info here">'
            '<div class="liyUjw">4.0</div>',
            "html.parser",
        )
        with pytest.raises(ExtractionError) as info:
            extractor.extract(doc)
        assert info.value.missing_fields == ["department"]

    def test_errors_are_user_correctable(self, extractor: FieldExtractor) -> None:
        with pytest.raises(ExtractionError) as info:
            extractor.extract(BeautifulSoup("<html></html>", "html.parser"))
        assert info.value.user_correctable
