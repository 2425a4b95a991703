"""Static SQL pattern analysis.

Classifies a statement into a QueryPattern using ordered rule tables that
are evaluated against a lowercased, whitespace-normalized copy of the text.
Table names are read from the original text so their casing is preserved.
The analysis is heuristic and never raises: unrecognized input degrades to
a basic-select, simple profile.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import structlog

from sqltune.models.enums import AntiPattern, Complexity, Opportunity, QueryType
from sqltune.models.pattern import QueryPattern

_WHITESPACE = re.compile(r"\s+")
_JOIN = re.compile(r"\b(?:inner\s+join|left\s+join|right\s+join|full\s+join|join)\b")
_TABLE = re.compile(r"\b(?:FROM|JOIN)\s+([A-Za-z_][A-Za-z0-9_]*)", re.IGNORECASE)
_SUBSELECT = re.compile(r"\([^)]*\bselect\b[^)]*\)")
_FUNCTION_IN_WHERE = re.compile(r"\bwhere\b[^=]*\([^)]*\)\s*[=<>]")
_FROM = re.compile(r"\bfrom\s+")
_CLAUSE_END = re.compile(r"\bwhere\b|\bgroup\s+by\b|\border\s+by\b|\blimit\b|\bhaving\b|\bunion\b|;")


@dataclass(frozen=True)
class SqlText:
    """Normalized views of a statement shared by every rule."""

    original: str
    lowered: str
    join_count: int
    subselect_count: int

    @classmethod
    def from_sql(cls, sql: str) -> "SqlText":
        original = sql.strip()
        lowered = _WHITESPACE.sub(" ", original.lower())
        return cls(
            original=original,
            lowered=lowered,
            join_count=len(_JOIN.findall(lowered)),
            subselect_count=len(_SUBSELECT.findall(lowered)),
        )

    def has(self, token: str) -> bool:
        return token in self.lowered

    def lacks(self, token: str) -> bool:
        return token not in self.lowered


Predicate = Callable[[SqlText], bool]


def _from_lists(lowered: str) -> list[str]:
    """FROM clause bodies with parenthesized text removed.

    Each body ends at the next clause keyword or at the closing paren of an
    enclosing subquery. Subqueries are scanned through their own FROM.
    """
    bodies = []
    for match in _FROM.finditer(lowered):
        depth = 0
        kept: list[str] = []
        for ch in lowered[match.end() :]:
            if ch == "(":
                depth += 1
            elif ch == ")":
                if depth == 0:
                    break
                depth -= 1
            elif depth == 0:
                kept.append(ch)
        body = "".join(kept)
        end = _CLAUSE_END.search(body)
        bodies.append(body[: end.start()] if end else body)
    return bodies


def _has_comma_table_list(sql: SqlText) -> bool:
    if sql.has("join"):
        return False
    return any("," in body for body in _from_lists(sql.lowered))


def _is_wildcard_search(sql: SqlText) -> bool:
    return sql.has("like") and sql.has("%")


# First match wins. GROUP BY outranks a wildcard LIKE, but a LIKE '%..'
# outranks an ORDER BY that is only sorting the matches.
TYPE_RULES: tuple[tuple[Predicate, QueryType], ...] = (
    (lambda s: s.has("sleep("), QueryType.SLEEP_TEST),
    (lambda s: s.join_count >= 3, QueryType.COMPLEX_JOIN),
    (lambda s: s.join_count >= 1, QueryType.SIMPLE_JOIN),
    (lambda s: s.has("group by"), QueryType.AGGREGATION),
    (_is_wildcard_search, QueryType.PATTERN_SEARCH),
    (lambda s: s.has("order by"), QueryType.AGGREGATION),
    (lambda s: s.has("select *"), QueryType.FULL_SELECT),
    (lambda s: s.has("where"), QueryType.FILTERED_SELECT),
)

ANTI_PATTERN_RULES: tuple[tuple[Predicate, AntiPattern], ...] = (
    (lambda s: s.has("select *"), AntiPattern.SELECT_STAR),
    (lambda s: s.has("like '%"), AntiPattern.LEADING_WILDCARD_LIKE),
    (lambda s: (s.has("join") or s.has("order by")) and s.lacks("limit"), AntiPattern.MISSING_LIMIT),
    (_has_comma_table_list, AntiPattern.CARTESIAN_JOIN),
    (lambda s: bool(_FUNCTION_IN_WHERE.search(s.lowered)), AntiPattern.FUNCTION_IN_WHERE),
    (lambda s: s.subselect_count > 0 and s.has("in ("), AntiPattern.SUBQUERY_INSTEAD_OF_JOIN),
    (lambda s: s.has("order by") and s.lacks("limit"), AntiPattern.ORDER_WITHOUT_LIMIT),
)

REMEDIES: dict[AntiPattern, Opportunity] = {
    AntiPattern.SELECT_STAR: Opportunity.SPECIFY_COLUMNS,
    AntiPattern.LEADING_WILDCARD_LIKE: Opportunity.OPTIMIZE_LIKE_PATTERNS,
    AntiPattern.MISSING_LIMIT: Opportunity.ADD_LIMIT_CLAUSE,
    AntiPattern.CARTESIAN_JOIN: Opportunity.EXPLICIT_JOIN_SYNTAX,
    AntiPattern.FUNCTION_IN_WHERE: Opportunity.MOVE_FUNCTIONS_TO_SELECT,
    AntiPattern.SUBQUERY_INSTEAD_OF_JOIN: Opportunity.CONVERT_TO_JOIN,
    AntiPattern.ORDER_WITHOUT_LIMIT: Opportunity.ADD_RESULT_LIMITING,
}

STRUCTURAL_OPPORTUNITY_RULES: tuple[tuple[Predicate, Opportunity], ...] = (
    (lambda s: s.has("group by"), Opportunity.INDEX_GROUP_BY_COLUMNS),
    (lambda s: s.has("join"), Opportunity.INDEX_JOIN_COLUMNS),
    (lambda s: s.has("where") and s.lacks("index"), Opportunity.INDEX_WHERE_COLUMNS),
)

KEYWORD_TAGS: tuple[tuple[str, str], ...] = (
    ("join", "joins"),
    ("index", "indexes"),
    ("group by", "aggregation"),
    ("order by", "sorting"),
    ("limit", "limiting"),
    ("where", "filtering"),
    ("having", "aggregation"),
    ("distinct", "deduplication"),
    ("union", "set-operations"),
    ("exists", "subqueries"),
    ("in (", "subqueries"),
    ("like", "pattern-matching"),
)

COMPLEX_THRESHOLD = 6
MEDIUM_THRESHOLD = 3


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


class QueryAnalyzer:
    """Builds a QueryPattern from raw SQL text. Pure and deterministic."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._logger = logger or structlog.get_logger(__name__)

    def analyze(self, sql: str) -> QueryPattern:
        text = SqlText.from_sql(sql or "")
        tables = self.extract_tables(text.original)
        anti_patterns = self.detect_anti_patterns(text)

        pattern = QueryPattern(
            type=self.classify(text),
            tables=tables,
            anti_patterns=[tag.value for tag in anti_patterns],
            optimization_ops=[op.value for op in self.map_opportunities(text, anti_patterns)],
            complexity=self.assess_complexity(text, len(tables)),
            keywords=self.extract_keywords(text),
        )

        self._logger.debug(
            "query_analyzed",
            query_type=pattern.type.value,
            complexity=pattern.complexity.value,
            table_count=len(pattern.tables),
            anti_patterns=pattern.anti_patterns,
        )
        return pattern

    @staticmethod
    def extract_tables(sql: str) -> list[str]:
        """Identifiers following FROM or JOIN, first-seen order, casing kept."""
        return _dedupe(match.group(1) for match in _TABLE.finditer(sql))

    @staticmethod
    def classify(text: SqlText) -> QueryType:
        for predicate, query_type in TYPE_RULES:
            if predicate(text):
                return query_type
        return QueryType.BASIC_SELECT

    @staticmethod
    def detect_anti_patterns(text: SqlText) -> list[AntiPattern]:
        return [tag for predicate, tag in ANTI_PATTERN_RULES if predicate(text)]

    @staticmethod
    def map_opportunities(text: SqlText, anti_patterns: Iterable[AntiPattern]) -> list[Opportunity]:
        remedies = [REMEDIES[tag] for tag in anti_patterns]
        structural = [op for predicate, op in STRUCTURAL_OPPORTUNITY_RULES if predicate(text)]
        return [Opportunity(op) for op in _dedupe(remedies + structural)]

    @staticmethod
    def complexity_score(text: SqlText, table_count: int) -> int:
        score = 0
        if table_count >= 4:
            score += 3
        elif table_count >= 2:
            score += 1
        score += text.join_count
        score += 2 * text.subselect_count
        if text.has("group by"):
            score += 1
        if text.has("having"):
            score += 1
        if text.has("window") or text.has("over("):
            score += 2
        if text.has("union"):
            score += 2
        return score

    @classmethod
    def assess_complexity(cls, text: SqlText, table_count: int) -> Complexity:
        score = cls.complexity_score(text, table_count)
        if score >= COMPLEX_THRESHOLD:
            return Complexity.COMPLEX
        if score >= MEDIUM_THRESHOLD:
            return Complexity.MEDIUM
        return Complexity.SIMPLE

    @staticmethod
    def extract_keywords(text: SqlText) -> list[str]:
        return _dedupe(tag for token, tag in KEYWORD_TAGS if text.has(token))


__all__ = ["QueryAnalyzer", "SqlText"]
