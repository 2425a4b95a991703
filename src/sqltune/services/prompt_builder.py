"""Retrieval-augmented prompt assembly for SQL optimization."""

from typing import Protocol

import structlog

from sqltune.models.enums import AntiPattern, QueryType
from sqltune.models.hit import SearchResult
from sqltune.models.pattern import QueryPattern

RETRIEVAL_TOP_K = 3

RESPONSE_SECTIONS = ("PROPOSED_SQL", "RATIONALE", "EXPECTED_PLAN_CHANGE", "CAVEATS")

_DEFAULT_SEARCH_PHRASE = "SQL query optimization performance"

SEARCH_PHRASES: dict[QueryType, str] = {
    QueryType.COMPLEX_JOIN: "JOIN optimization performance",
    QueryType.SIMPLE_JOIN: "JOIN optimization performance",
    QueryType.AGGREGATION: "GROUP BY aggregation optimization",
    QueryType.PATTERN_SEARCH: "LIKE pattern search index optimization",
    QueryType.FULL_SELECT: "SELECT * column projection optimization",
}

ANTI_PATTERN_PHRASES: dict[str, str] = {
    AntiPattern.LEADING_WILDCARD_LIKE: "wildcard LIKE index",
    AntiPattern.CARTESIAN_JOIN: "Cartesian product JOIN",
    AntiPattern.MISSING_LIMIT: "LIMIT result set",
    AntiPattern.SUBQUERY_INSTEAD_OF_JOIN: "subquery JOIN conversion",
}

_JOIN_FOCUS = (
    "Optimize JOIN order and algorithms",
    "Ensure proper index usage on join columns",
    "Consider converting subqueries to JOINs",
)
_DEFAULT_FOCUS = (
    "Apply general SQL optimization principles",
    "Focus on index usage and query structure",
    "Minimize data processing overhead",
)

FOCUS_BULLETS: dict[QueryType, tuple[str, ...]] = {
    QueryType.COMPLEX_JOIN: _JOIN_FOCUS,
    QueryType.SIMPLE_JOIN: _JOIN_FOCUS,
    QueryType.AGGREGATION: (
        "Optimize GROUP BY and ORDER BY performance",
        "Use appropriate indexes for aggregation",
        "Consider pre-filtering with WHERE clauses",
    ),
    QueryType.PATTERN_SEARCH: (
        "Optimize LIKE patterns for index usage",
        "Avoid leading wildcards when possible",
        "Consider full-text search alternatives",
    ),
    QueryType.SLEEP_TEST: (
        "Remove artificial delays (SLEEP functions)",
        "Replace with efficient query patterns",
        "Ensure minimal resource usage",
    ),
}

_RESPONSE_CONTRACT = """FORMAT YOUR RESPONSE EXACTLY AS FOLLOWS:

PROPOSED_SQL:
```sql
[Your optimized query here]
```

RATIONALE:
• [Primary optimization applied]
• [Secondary improvements made]
• [Why this approach was chosen]

EXPECTED_PLAN_CHANGE:
• [Index usage improvements]
• [Join order optimizations]
• [Row reduction techniques]

CAVEATS:
• [Any semantic differences]
• [Performance assumptions made]
• [Edge cases to monitor]
"""


class PassageSource(Protocol):
    async def search(self, query: str, top_k: int = 3) -> list[SearchResult]: ...


class PromptBuilder:
    """Builds optimization prompts grounded in retrieved knowledge passages."""

    def __init__(
        self,
        document_store: PassageSource,
        top_k: int = RETRIEVAL_TOP_K,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._document_store = document_store
        self._top_k = top_k
        self._logger = logger or structlog.get_logger(__name__)

    async def build(self, sql: str, pattern: QueryPattern) -> str:
        """Retrieve supporting passages for ``pattern`` and render the prompt.

        Errors from the document store propagate unchanged; the engine wraps
        them as retrieval failures.
        """
        search_query = self.build_search_query(pattern)
        passages = await self._document_store.search(search_query, self._top_k)
        prompt = self.render(sql, pattern, passages)

        self._logger.debug(
            "prompt_built",
            query_type=pattern.type.value,
            passage_count=len(passages),
            prompt_length=len(prompt),
        )
        return prompt

    @staticmethod
    def build_search_query(pattern: QueryPattern) -> str:
        parts = [SEARCH_PHRASES.get(pattern.type, _DEFAULT_SEARCH_PHRASE)]
        parts.extend(ANTI_PATTERN_PHRASES[tag] for tag in pattern.anti_patterns if tag in ANTI_PATTERN_PHRASES)
        parts.extend(f"{keyword} optimization" for keyword in pattern.keywords)
        return " ".join(parts)

    @staticmethod
    def render(sql: str, pattern: QueryPattern, passages: list[SearchResult]) -> str:
        lines: list[str] = [
            "You are a database performance expert specializing in SQL optimization. "
            "Analyze the provided slow query and suggest concrete optimizations.",
            "",
            "SLOW QUERY ANALYSIS:",
            f"Query Type: {pattern.type.value}",
            f"Complexity: {pattern.complexity.value}",
            f"Tables: {', '.join(pattern.tables)}",
        ]
        if pattern.anti_patterns:
            lines.append(f"Anti-patterns detected: {', '.join(pattern.anti_patterns)}")
        if pattern.optimization_ops:
            lines.append(f"Optimization opportunities: {', '.join(pattern.optimization_ops)}")

        lines += ["", "ORIGINAL QUERY:", "```sql", sql, "```", ""]

        if passages:
            lines.append("RELEVANT OPTIMIZATION KNOWLEDGE:")
            for number, passage in enumerate(passages[:RETRIEVAL_TOP_K], start=1):
                lines.append(f"{number}. {passage.title} ({passage.category})")
                lines.append(f"   {passage.text}")
                lines.append("")

        lines += [
            "INSTRUCTIONS:",
            "Based on the query analysis and optimization knowledge above, provide a comprehensive optimization.",
            "Focus on the detected anti-patterns and optimization opportunities.",
            "",
            _RESPONSE_CONTRACT,
            "OPTIMIZATION FOCUS:",
        ]
        lines.extend(f"- {bullet}" for bullet in FOCUS_BULLETS.get(pattern.type, _DEFAULT_FOCUS))
        return "\n".join(lines) + "\n"


__all__ = ["PromptBuilder", "RESPONSE_SECTIONS", "RETRIEVAL_TOP_K"]
