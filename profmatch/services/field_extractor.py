"""Instructor field extraction from a parsed rating page.

:class:`FieldExtractor` reads four facts from an already-parsed HTML
document: name, department, rating text and review snippets.  Where each
fact lives is described by :class:`ExtractionSelectors`, which comes from
configuration so markup changes do not require code changes.

The extractor is pure: it never touches the network and never returns a
partial record.  Either every required field is present or an
:class:`ExtractionError` says which ones are not.
"""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag
from pydantic import ValidationError

from profmatch.config.app_config import ExtractionSelectors
from profmatch.models.instructor import InstructorRecord
from profmatch.utils.errors import ExtractionError
from profmatch.utils.logging import get_logger

_REQUIRED_FIELDS = ("name", "department", "rating_raw")


def _meta_content(document: BeautifulSoup, selector: str) -> str | None:
    """Return the ``content`` attribute of the first match, or ``None``."""
    node = document.select_one(selector)
    if node is None:
        return None
    content = node.get("content")
    if content is None:
        return None
    if isinstance(content, list):
        content = " ".join(content)
    return str(content)


def _node_text(node: Tag) -> str:
    """Concatenated text of *node* and its children, trimmed at the ends only."""
    return node.get_text().strip()


class FieldExtractor:
    """Turn a parsed instructor page into a validated :class:`InstructorRecord`.

    Parameters
    ----------
    selectors:
        Location rules for each field.  Defaults match the instructor
        rating pages the service was built against.
    """

    def __init__(self, selectors: ExtractionSelectors | None = None) -> None:
        self._selectors = selectors or ExtractionSelectors()
        self._logger = get_logger(__name__)

    # -- Public API ----------------------------------------------------------

    def extract(self, document: BeautifulSoup, source_url: str | None = None) -> InstructorRecord:
        """Extract all fields from *document*.

        Raises
        ------
        ExtractionError
            ``MISSING_FIELD`` when the page element for name or department
            does not exist; ``INCOMPLETE`` when any required value is empty.
        """
        name = self.extract_name(document)
        department = self.extract_department(document)
        rating = self.extract_rating(document)
        reviews = self.extract_reviews(document)

        values = {"name": name, "department": department, "rating_raw": rating}
        missing = [field for field in _REQUIRED_FIELDS if not values[field].strip()]
        if missing:
            self._logger.info("extraction_incomplete", missing_fields=missing, url=source_url)
            raise ExtractionError.incomplete(missing)

        try:
            record = InstructorRecord(
                name=name,
                department=department,
                rating_raw=rating,
                review_snippets=reviews,
                source_url=source_url,
            )
        except ValidationError as exc:
            # Unreachable after the checks above unless the model gains rules.
            fields = [str(err["loc"][0]) for err in exc.errors() if err.get("loc")]
            raise ExtractionError.incomplete(fields or list(_REQUIRED_FIELDS)) from exc

        self._logger.debug(
            "fields_extracted",
            name=record.name,
            department=record.department,
            rating=record.rating_raw,
            review_count=len(record.review_snippets),
        )
        return record

    # -- Individual fields ---------------------------------------------------

    def extract_name(self, document: BeautifulSoup) -> str:
        """Name is the part of the title before the separator.

        The whole title is used when the separator does not occur.
        """
        title = _meta_content(document, self._selectors.title_meta)
        if title is None:
            raise ExtractionError.missing_field("name")
        return title.split(self._selectors.title_separator, 1)[0].strip()

    def extract_department(self, document: BeautifulSoup) -> str:
        """Department is the description text between prefix and suffix.

        Returns ``""`` when the prefix is absent so the validation gate
        reports the record as incomplete.
        """
        description = _meta_content(document, self._selectors.description_meta)
        if description is None:
            raise ExtractionError.missing_field("department")
        prefix = self._selectors.department_prefix
        if prefix not in description:
            return ""
        after = description.split(prefix, 1)[1]
        return after.split(self._selectors.department_suffix, 1)[0].strip()

    def extract_rating(self, document: BeautifulSoup) -> str:
        node = document.select_one(self._selectors.rating_selector)
        return _node_text(node) if node is not None else ""

    def extract_reviews(self, document: BeautifulSoup) -> list[str]:
        """Non-empty review texts in document order, capped at ``max_reviews``."""
        reviews: list[str] = []
        for node in document.select(self._selectors.review_selector):
            text = _node_text(node)
            if text:
                reviews.append(text)
            if len(reviews) >= self._selectors.max_reviews:
                break
        return reviews
