"""Extraction of the four-section response contract from generated text."""

import re

from sqltune.errors import ParseError
from sqltune.models.pattern import ParsedResponse

SECTION_MARKERS = ("PROPOSED_SQL", "RATIONALE", "EXPECTED_PLAN_CHANGE", "CAVEATS")

# The info string (sql, mysql, sqlite, ...) is one token on the opening fence line
_PROPOSED_SQL = re.compile(r"PROPOSED_SQL:\s*```[\w+-]*[ \t]*\n(.*?)\s*```", re.DOTALL | re.IGNORECASE)
_BULLET = re.compile(r"^\s*(?:[•*-]|\d+[.)])\s+")


def _section_pattern(name: str) -> re.Pattern[str]:
    others = "|".join(marker for marker in SECTION_MARKERS if marker != name)
    return re.compile(
        rf"{name}:\s*(.*?)(?=\n[ \t]*\n|\n?(?:{others}):|\Z)",
        re.DOTALL,
    )


_SECTIONS = {name: _section_pattern(name) for name in SECTION_MARKERS[1:]}


def _flatten(body: str) -> str:
    lines = (_BULLET.sub("", line).strip() for line in body.splitlines())
    return " ".join(line for line in lines if line)


def _section(text: str, name: str) -> str:
    match = _SECTIONS[name].search(text)
    if match is None:
        return ""
    return _flatten(match.group(1))


def parse_response(text: str) -> ParsedResponse:
    """Parse a completion that follows the PROPOSED_SQL/RATIONALE/... contract.

    The proposed SQL must appear in a fenced code block after the
    ``PROPOSED_SQL:`` marker. The prose sections run until the next marker or
    the first blank line; bullet markers are stripped and lines are joined
    into a single line. Missing prose sections become empty strings.

    Raises:
        ParseError: If no non-empty PROPOSED_SQL block can be found.
    """
    match = _PROPOSED_SQL.search(text)
    proposed_sql = match.group(1).strip() if match else ""
    if not proposed_sql:
        raise ParseError("could not extract optimized SQL from generated response")

    return ParsedResponse(
        proposed_sql=proposed_sql,
        rationale=_section(text, "RATIONALE"),
        expected_plan_change=_section(text, "EXPECTED_PLAN_CHANGE"),
        caveats=_section(text, "CAVEATS"),
    )


__all__ = ["parse_response", "SECTION_MARKERS"]
