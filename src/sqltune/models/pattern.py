from pydantic import BaseModel, ConfigDict, Field

from sqltune.models.enums import Complexity, QueryType


class QueryPattern(BaseModel):
    """Structural profile of a SQL statement.

    Derived purely from the statement text. Tag lists are deduplicated and
    keep the order in which the analyzer's rules fired.
    """

    type: QueryType = QueryType.BASIC_SELECT
    tables: list[str] = Field(default_factory=list)
    anti_patterns: list[str] = Field(default_factory=list)
    optimization_ops: list[str] = Field(default_factory=list)
    complexity: Complexity = Complexity.SIMPLE
    keywords: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class ParsedResponse(BaseModel):
    """Structured fields extracted from a generated completion."""

    proposed_sql: str
    rationale: str = ""
    expected_plan_change: str = ""
    caveats: str = ""

    model_config = ConfigDict(frozen=True, extra="forbid")


__all__ = ["QueryPattern", "ParsedResponse"]
