"""Parser for the Instagram "Público" (audience) export.

The audience export is one CSV file holding four unrelated tables, each
introduced by a free-text title line:

    Faixa etária e gênero
    ,Mulheres,Homens
    "18-24",10,5
    "25-34",20,12
    Principais cidades
    São Paulo,Rio de Janeiro
    8.1,4.47
    Principais países
    ...
    Principais Páginas
    ...

Age brackets are vertical rows. Cities, countries and pages are horizontal:
a line of names followed by a line of percentages in the same positions.
The layout drifts between export versions, so the parser recognizes sections
by substrings and row shapes and never raises; what it cannot place is
reported in the result instead.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from social_analytics.aggregates import AgeGenderShare, CategoryShare, PageShare
from social_analytics.coercion import is_blank, parse_number
from social_analytics.tabular import fold_text, parse_line

logger = logging.getLogger(__name__)


class Section(str, Enum):
    NONE = "none"
    AGE = "age"
    CITIES = "cities"
    COUNTRIES = "countries"
    PAGES = "pages"


# Checked in order against the folded line. Pages must precede countries
# because "principais" contains "pais".
SECTION_MARKERS: list[tuple[Section, tuple[str, ...]]] = [
    (Section.PAGES, ("paginas", "pages")),
    (Section.AGE, ("faixa", "etaria", "age range")),
    (Section.CITIES, ("cidades", "cities")),
    (Section.COUNTRIES, ("pais", "countries")),
]

_AGE_INNER_HEADER = ("mulheres", "homens", "women")
_NUMERIC_CELL = re.compile(r"^[+-]?\d+(?:[.,]\d+)?%?$")


@dataclass(frozen=True)
class Idle:
    """No header line buffered."""


@dataclass(frozen=True)
class AwaitingValues:
    """A line of names was read; the next line holds their values."""

    section: Section
    header: tuple[str, ...]


PairingState = Idle | AwaitingValues


@dataclass
class AudienceParseResult:
    age_gender: list[AgeGenderShare] = field(default_factory=list)
    cities: list[CategoryShare] = field(default_factory=list)
    countries: list[CategoryShare] = field(default_factory=list)
    pages: list[PageShare] = field(default_factory=list)
    sections_found: dict[str, bool] = field(
        default_factory=lambda: {s.value: False for s in Section if s is not Section.NONE}
    )
    # Name lines that were never followed by a value line
    unpaired_headers: list[tuple[str, ...]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def item_counts(self) -> dict[str, int]:
        return {
            "age_gender": len(self.age_gender),
            "cities": len(self.cities),
            "countries": len(self.countries),
            "pages": len(self.pages),
        }


def detect_section(folded_line: str) -> Section | None:
    for section, markers in SECTION_MARKERS:
        if any(marker in folded_line for marker in markers):
            return section
    return None


def _is_name_line(cells: list[str]) -> bool:
    return any(not is_blank(c) and not _NUMERIC_CELL.match(c.strip()) for c in cells)


def _parse_age_row(cells: list[str]) -> AgeGenderShare | None:
    if len(cells) < 3:
        return None
    category = cells[0]
    if not category or not (re.search(r"\d", category) or "+" in category):
        return None
    women = parse_number(cells[1])
    men = parse_number(cells[2])
    return AgeGenderShare(category=category, women=women, men=men, percentage=women + men)


def _emit_pairs(
    result: AudienceParseResult,
    section: Section,
    header: tuple[str, ...],
    values: list[str],
) -> None:
    for name, value in zip(header, values):
        if is_blank(name):
            continue
        percentage = parse_number(value)
        if section is Section.CITIES:
            result.cities.append(CategoryShare(category=name, percentage=percentage))
        elif section is Section.COUNTRIES:
            result.countries.append(CategoryShare(category=name, percentage=percentage))
        elif section is Section.PAGES:
            result.pages.append(PageShare(name=name, percentage=percentage))


def parse_audience(text: str) -> AudienceParseResult:
    """Split the audience export into age/gender, city, country and page shares."""
    result = AudienceParseResult()
    section = Section.NONE
    state: PairingState = Idle()

    def release(current: PairingState) -> PairingState:
        if isinstance(current, AwaitingValues):
            logger.debug("Header without values in %s: %s", current.section.value, current.header)
            result.unpaired_headers.append(current.header)
        return Idle()

    lines = [
        line.strip()
        for line in text.splitlines()
        if line.strip() and not line.strip().lower().startswith("sep=")
    ]
    for line in lines:
        folded = fold_text(line)

        marker = detect_section(folded)
        if marker is not None:
            state = release(state)
            section = marker
            result.sections_found[marker.value] = True
            continue

        if section is Section.AGE:
            if any(word in folded for word in _AGE_INNER_HEADER):
                continue
            row = _parse_age_row(parse_line(line))
            if row is not None:
                result.age_gender.append(row)

        elif section in (Section.CITIES, Section.COUNTRIES, Section.PAGES):
            cells = parse_line(line)
            if not cells:
                continue
            if isinstance(state, Idle):
                if _is_name_line(cells):
                    state = AwaitingValues(section=section, header=tuple(cells))
            else:
                _emit_pairs(result, state.section, state.header, cells)
                state = Idle()

    release(state)

    if not any(result.sections_found.values()):
        result.errors.append("No audience section was found. Check the file format.")

    logger.info(
        "Audience parsed: %d age rows, %d cities, %d countries, %d pages",
        len(result.age_gender),
        len(result.cities),
        len(result.countries),
        len(result.pages),
    )
    return result
