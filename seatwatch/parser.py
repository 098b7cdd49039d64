"""Section table parser.

The portal's results table doesn't put one section on one row. Each section
spans two physically adjacent ``<tr>`` elements:

- the first row holds the compound identifier, course name, crn, seat counts
  and instructor;
- the second row holds the department name, course type, time, location and
  credits.

Nothing in the markup marks where a pair starts, so a pair is recognized by
its shape: the two rows together carry exactly ``ROW_PAIR_CELL_COUNT`` cells.
Header rows, spacer rows and mismatched neighbours never add up to that and
are skipped.

Example::

    sections = parse_sections(html_text)
    wanted = parse_sections(html_text, crn="31245")  # [] or [Section]
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from enum import Enum

from lxml import etree, html
from lxml.html import HtmlElement

from seatwatch.common.exceptions import (
    DocumentParseError,
    StructuralParseError,
)
from seatwatch.common.lexer import alphanumeric_runs
from seatwatch.models import Section

logger = logging.getLogger(__name__)

ROW_PAIR_CELL_COUNT = 15
IDENTIFIER_TOKEN_COUNT = 3


class PairState(Enum):
    """States of the row-pair scanner."""

    AWAITING_FIRST_ROW = "awaiting-first-row"
    AWAITING_SECOND_ROW = "awaiting-second-row"
    EMIT_OR_SKIP = "emit-or-skip"


def _cell_texts(row: HtmlElement) -> list[str]:
    return [cell.text_content() for cell in row.iter("td")]


def _cell(row: Sequence[str], index: int) -> str:
    """Stripped text of one cell; cells past the end of the row are empty."""
    return row[index].strip() if index < len(row) else ""


def _load_rows(document: str | bytes, source: str) -> list[list[str]]:
    """Parse the document and return the cell texts of every row in order."""
    try:
        root = html.fromstring(document)
    except (etree.ParserError, ValueError) as e:
        raise DocumentParseError(str(e), source) from e

    return [_cell_texts(row) for row in root.iter("tr")]


class SectionParser:
    """Turns the portal's two-row section table into Section records.

    Attributes:
        source: URL or file name of the document, used in error context.
    """

    def __init__(self, source: str = "") -> None:
        self.source = source

    def iter_pairs(
        self, rows: Sequence[Sequence[str]]
    ) -> Iterator[tuple[Sequence[str], Sequence[str]]]:
        """Yield every adjacent row pair that matches the cell fingerprint.

        Every row except the last starts a candidate pair with the row after
        it, so ``len(rows) - 1`` pairs are examined. A matching pair does not
        consume its second row; that row is also the first row of the next
        candidate.

        Args:
            rows: Cell texts per row, in document order.

        Yields:
            (first_row, second_row) tuples whose cell counts sum to
            ROW_PAIR_CELL_COUNT.
        """
        state = PairState.AWAITING_FIRST_ROW
        first: Sequence[str] = ()

        for row in rows:
            if state is PairState.AWAITING_FIRST_ROW:
                first = row
                state = PairState.AWAITING_SECOND_ROW
                continue

            state = PairState.EMIT_OR_SKIP
            if len(first) + len(row) == ROW_PAIR_CELL_COUNT:
                yield first, row

            first = row
            state = PairState.AWAITING_SECOND_ROW

    def build_section(
        self, first: Sequence[str], second: Sequence[str]
    ) -> Section:
        """Build a Section from a fingerprint-matched row pair.

        Only the combined cell count is known to match, so either row may be
        shorter than the columns read from it; missing cells read as empty.

        Raises:
            StructuralParseError: If the identifier cell doesn't hold exactly
                three alphanumeric tokens.
        """
        identifier = _cell(first, 1)
        tokens = alphanumeric_runs(identifier)
        if len(tokens) != IDENTIFIER_TOKEN_COUNT:
            raise StructuralParseError(
                cell_text=identifier,
                tokens=tokens,
                source=self.source,
                expected_count=IDENTIFIER_TOKEN_COUNT,
            )

        dept_abbr, course_number, section_number = tokens

        # Recitations print an empty credits cell
        credits = _cell(second, 4) or "0"

        return Section(
            dept_abbr=dept_abbr,
            course_number=course_number,
            section_number=section_number,
            course_name=_cell(first, 2),
            crn=_cell(first, 3),
            total_seats=_cell(first, 4),
            taken_seats=_cell(first, 5),
            available_seats=_cell(first, 6),
            instructor=_cell(first, 7),
            dept_name=_cell(second, 0),
            course_type=_cell(second, 1),
            time=_cell(second, 2),
            location=_cell(second, 3),
            credits=credits,
        )

    def iter_sections(
        self, document: str | bytes, crn: str | None = None
    ) -> Iterator[Section]:
        """Lazily yield sections from an HTML document.

        Args:
            document: The portal's HTML.
            crn: When given, yield only the first section with this crn and
                stop scanning.

        Raises:
            DocumentParseError: If the document isn't parseable HTML.
            StructuralParseError: If a matched pair has a malformed identifier.
        """
        rows = _load_rows(document, self.source)

        for first, second in self.iter_pairs(rows):
            section = self.build_section(first, second)
            if crn:
                if section.crn == crn:
                    logger.debug(
                        f"Found section {section.crn} in {self.source!r}"
                    )
                    yield section
                    return
                continue
            logger.debug(
                f"Parsed section {section.dept_abbr} {section.course_number}"
                f"-{section.section_number} ({section.crn})"
            )
            yield section

    def parse(
        self, document: str | bytes, crn: str | None = None
    ) -> list[Section]:
        """Parse every section, or the one matching crn, from a document."""
        return list(self.iter_sections(document, crn))


def parse_sections(
    document: str | bytes, crn: str | None = None, source: str = ""
) -> list[Section]:
    """Parse sections from the portal's HTML.

    Args:
        document: The portal's HTML.
        crn: Optional crn filter. When given, the result holds at most one
            section: the first one in document order with that crn.
        source: URL or file name used in error context.

    Returns:
        Sections in document order. Empty if the table has none.
    """
    return SectionParser(source).parse(document, crn)
