"""Delimited-text parsing for exported CSV reports.

Exports often open with a ``sep=,`` directive or a few lines of preamble
before the real header row, use ``,`` or ``;`` as delimiter, and spell
headers with accents and stray quotes. ``parse_table`` hides all of that and
returns header-keyed rows.
"""

import io
import logging
import unicodedata
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

DELIMITERS = (",", ";", "\t")

# The header row is expected within this many lines of the start of the file
HEADER_SCAN_LINES = 20

_QUOTES = "\"'"


def fold_text(text: str) -> str:
    """Lowercase and strip diacritics: "Visualizações" -> "visualizacoes"."""
    decomposed = unicodedata.normalize("NFD", str(text).lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_header(header: Any) -> str:
    """Canonical column key: trimmed, unquoted, lowercase, without accents.

    Normalizing an already-normalized header returns it unchanged.
    """
    text = str(header).strip()
    while len(text) >= 2 and text[0] == text[-1] and text[0] in _QUOTES:
        text = text[1:-1].strip()
    return fold_text(text)


def strip_directives(text: str) -> str:
    """Drop a leading byte-order mark and any ``sep=`` directive lines."""
    text = text.lstrip("\ufeff")
    kept = [
        line
        for line in text.splitlines(keepends=True)
        if not line.strip().strip(_QUOTES).lower().startswith("sep=")
    ]
    return "".join(kept)


def locate_header(lines: list[str]) -> int:
    """Index of the line where the table starts, 0 when nothing looks like a header.

    A file whose first two lines already have the same number of cells is a
    plain table and starts at line 0, so a data row mentioning "date" further
    down is never mistaken for the header.
    """
    filled = [line for line in lines[:2] if line.strip()]
    if len(filled) == 2:
        first, second = (parse_line(line) for line in filled)
        if len(first) > 1 and len(first) == len(second):
            return 0
    for index, line in enumerate(lines[:HEADER_SCAN_LINES]):
        folded = fold_text(line)
        if ("data" in folded or "date" in folded) and any(d in line for d in DELIMITERS):
            return index
        if "identificacao do post" in folded or "link permanente" in folded:
            return index
    return 0


def detect_delimiter(line: str) -> str:
    """The most frequent candidate delimiter in ``line``; comma when none occurs."""
    counts = {d: line.count(d) for d in DELIMITERS}
    best = max(DELIMITERS, key=lambda d: counts[d])
    return best if counts[best] else ","


def parse_table(
    text: str,
    normalize_headers: bool = True,
    dynamic_typing: bool = True,
) -> list[dict[str, Any]]:
    """Parse CSV text into a list of rows keyed by header.

    Args:
        text: Raw file contents.
        normalize_headers: Key rows by ``normalize_header(h)`` instead of the
            trimmed original header.
        dynamic_typing: Let pandas convert numeric columns. When False every
            cell stays a string, which keeps long numeric ids intact.

    Returns:
        Rows as dicts. Blank cells are ``None``. Lines that do not fit the
        header are skipped.
    """
    text = strip_directives(text)
    lines = text.splitlines(keepends=True)
    if not lines:
        return []

    start = locate_header(lines)
    body = "".join(lines[start:])
    if not body.strip():
        return []

    try:
        frame = pd.read_csv(
            io.StringIO(body),
            sep=detect_delimiter(lines[start]),
            dtype=None if dynamic_typing else str,
            keep_default_na=False,
            na_values=[""],
            skip_blank_lines=True,
            index_col=False,
            on_bad_lines="skip",
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        logger.warning("Could not parse table: %s", exc)
        return []

    if normalize_headers:
        frame.columns = [normalize_header(c) for c in frame.columns]
    else:
        frame.columns = [str(c).strip() for c in frame.columns]

    frame = frame.dropna(how="all")
    frame = frame.astype(object).where(frame.notna(), None)
    return frame.to_dict("records")


def parse_line(line: str, delimiter: str | None = None) -> list[str]:
    """Split a single delimited line into trimmed cells (``[]`` when unparseable)."""
    if not line.strip():
        return []
    try:
        frame = pd.read_csv(
            io.StringIO(line),
            sep=delimiter or detect_delimiter(line),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError):
        return []
    if frame.empty:
        return []
    return [str(cell).strip() for cell in frame.iloc[0].tolist()]
