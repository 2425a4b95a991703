from sqltune.models.chunk import DocumentChunk
from sqltune.models.document import Document
from sqltune.models.enums import AntiPattern, Complexity, Opportunity, QueryType, ReviewStatus
from sqltune.models.hit import SearchResult
from sqltune.models.options import GenerationOptions
from sqltune.models.pattern import ParsedResponse, QueryPattern
from sqltune.models.result import OptimizationResult

__all__ = [
    "AntiPattern",
    "Complexity",
    "Document",
    "DocumentChunk",
    "GenerationOptions",
    "OptimizationResult",
    "Opportunity",
    "ParsedResponse",
    "QueryPattern",
    "QueryType",
    "ReviewStatus",
    "SearchResult",
]
