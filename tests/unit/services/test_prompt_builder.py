"""Unit tests for the PromptBuilder service."""

import pytest

from sqltune.models.enums import Complexity, QueryType
from sqltune.models.hit import SearchResult
from sqltune.models.pattern import QueryPattern
from sqltune.services.prompt_builder import RESPONSE_SECTIONS, PromptBuilder

SQL = "SELECT * FROM customers c JOIN orders o ON c.id = o.customer_id"


def _passage(title: str, distance: float = 0.2) -> SearchResult:
    return SearchResult.from_distance(
        distance,
        chunk_id=f"chunk-{title}",
        document_id=f"doc-{title}",
        text=f"Text about {title}.",
        title=title,
        category="joins",
    )


class FakeDocumentStore:
    """Returns canned passages and records the queries it receives."""

    def __init__(self, passages: list[SearchResult] | None = None, error: Exception | None = None) -> None:
        self._passages = passages or []
        self._error = error
        self.queries: list[tuple[str, int]] = []

    async def search(self, query: str, top_k: int = 3) -> list[SearchResult]:
        self.queries.append((query, top_k))
        if self._error is not None:
            raise self._error
        return self._passages[:top_k]


def _join_pattern() -> QueryPattern:
    return QueryPattern(
        type=QueryType.SIMPLE_JOIN,
        tables=["customers", "orders"],
        anti_patterns=["select-star", "missing-limit"],
        optimization_ops=["specify-columns", "add-limit-clause", "index-join-columns"],
        complexity=Complexity.SIMPLE,
        keywords=["joins"],
    )


class TestBuildSearchQuery:
    """Derived retrieval query."""

    def test_type_phrase_then_anti_patterns_then_keywords(self) -> None:
        pattern = QueryPattern(
            type=QueryType.PATTERN_SEARCH,
            anti_patterns=["leading-wildcard-like", "select-star", "missing-limit"],
            keywords=["pattern-matching", "sorting"],
        )

        query = PromptBuilder.build_search_query(pattern)

        assert query == (
            "LIKE pattern search index optimization wildcard LIKE index LIMIT result set "
            "pattern-matching optimization sorting optimization"
        )

    @pytest.mark.parametrize(
        ("query_type", "phrase"),
        [
            (QueryType.COMPLEX_JOIN, "JOIN optimization performance"),
            (QueryType.SIMPLE_JOIN, "JOIN optimization performance"),
            (QueryType.AGGREGATION, "GROUP BY aggregation optimization"),
            (QueryType.FULL_SELECT, "SELECT * column projection optimization"),
            (QueryType.FILTERED_SELECT, "SQL query optimization performance"),
            (QueryType.SLEEP_TEST, "SQL query optimization performance"),
        ],
    )
    def test_type_phrases(self, query_type: QueryType, phrase: str) -> None:
        assert PromptBuilder.build_search_query(QueryPattern(type=query_type)) == phrase

    def test_cartesian_and_subquery_phrases(self) -> None:
        pattern = QueryPattern(anti_patterns=["cartesian-join", "subquery-instead-of-join"])

        assert PromptBuilder.build_search_query(pattern) == (
            "SQL query optimization performance Cartesian product JOIN subquery JOIN conversion"
        )


class TestRender:
    """Prompt layout."""

    def test_sections_appear_in_fixed_order(self) -> None:
        prompt = PromptBuilder.render(SQL, _join_pattern(), [_passage("Joins")])

        markers = [
            "database performance expert",
            "SLOW QUERY ANALYSIS:",
            "ORIGINAL QUERY:",
            "RELEVANT OPTIMIZATION KNOWLEDGE:",
            "INSTRUCTIONS:",
            "FORMAT YOUR RESPONSE EXACTLY AS FOLLOWS:",
            "OPTIMIZATION FOCUS:",
        ]
        positions = [prompt.index(marker) for marker in markers]
        assert positions == sorted(positions)

    def test_structural_summary(self) -> None:
        prompt = PromptBuilder.render(SQL, _join_pattern(), [])

        assert "Query Type: simple-join" in prompt
        assert "Complexity: simple" in prompt
        assert "Tables: customers, orders" in prompt
        assert "Anti-patterns detected: select-star, missing-limit" in prompt
        assert "Optimization opportunities: specify-columns, add-limit-clause, index-join-columns" in prompt

    def test_empty_tag_lists_are_omitted(self) -> None:
        prompt = PromptBuilder.render("SELECT 1", QueryPattern(), [])

        assert "Anti-patterns detected" not in prompt
        assert "Optimization opportunities" not in prompt
        assert "RELEVANT OPTIMIZATION KNOWLEDGE:" not in prompt

    def test_original_sql_is_verbatim_in_fence(self) -> None:
        prompt = PromptBuilder.render(SQL, _join_pattern(), [])

        assert f"ORIGINAL QUERY:\n```sql\n{SQL}\n```" in prompt

    def test_at_most_three_passages(self) -> None:
        passages = [_passage(f"Doc {i}") for i in range(1, 5)]

        prompt = PromptBuilder.render(SQL, _join_pattern(), passages)

        assert "1. Doc 1 (joins)" in prompt
        assert "3. Doc 3 (joins)" in prompt
        assert "Doc 4" not in prompt
        assert "   Text about Doc 2." in prompt

    def test_response_contract_lists_all_sections(self) -> None:
        prompt = PromptBuilder.render(SQL, _join_pattern(), [])
        contract = prompt[prompt.index("FORMAT YOUR RESPONSE") :]

        positions = [contract.index(f"{section}:") for section in RESPONSE_SECTIONS]
        assert positions == sorted(positions)
        assert "```sql\n[Your optimized query here]\n```" in contract

    @pytest.mark.parametrize(
        ("query_type", "bullet"),
        [
            (QueryType.COMPLEX_JOIN, "- Optimize JOIN order and algorithms"),
            (QueryType.AGGREGATION, "- Optimize GROUP BY and ORDER BY performance"),
            (QueryType.PATTERN_SEARCH, "- Avoid leading wildcards when possible"),
            (QueryType.SLEEP_TEST, "- Remove artificial delays (SLEEP functions)"),
            (QueryType.BASIC_SELECT, "- Apply general SQL optimization principles"),
        ],
    )
    def test_focus_bullets_depend_on_type(self, query_type: QueryType, bullet: str) -> None:
        prompt = PromptBuilder.render(SQL, QueryPattern(type=query_type), [])

        assert bullet in prompt[prompt.index("OPTIMIZATION FOCUS:") :]


class TestBuild:
    """Retrieval plus rendering."""

    async def test_build_searches_with_derived_query(self) -> None:
        store = FakeDocumentStore([_passage("Joins")])
        builder = PromptBuilder(store)
        pattern = _join_pattern()

        prompt = await builder.build(SQL, pattern)

        assert store.queries == [(PromptBuilder.build_search_query(pattern), 3)]
        assert "1. Joins (joins)" in prompt

    async def test_build_uses_configured_top_k(self) -> None:
        store = FakeDocumentStore([_passage("A"), _passage("B")])
        builder = PromptBuilder(store, top_k=1)

        prompt = await builder.build(SQL, _join_pattern())

        assert store.queries[0][1] == 1
        assert "B (joins)" not in prompt

    async def test_search_errors_propagate(self) -> None:
        builder = PromptBuilder(FakeDocumentStore(error=ConnectionError("down")))

        with pytest.raises(ConnectionError):
            await builder.build(SQL, _join_pattern())
