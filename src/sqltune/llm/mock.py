"""Deterministic offline collaborators.

MockEmbedder produces stable unit vectors seeded from the text, with a fixed
dimension per common SQL term. Term dimensions dominate the low-amplitude
noise, so texts sharing SQL vocabulary land close together. MockGenerator
answers with canned, well-formed four-section responses chosen from the
prompt content.
"""

import hashlib
import math
import random
from collections.abc import Mapping
from typing import Any

import structlog

from sqltune.errors import InputError
from sqltune.models.options import GenerationOptions

_SQL_TERMS: dict[str, int] = {
    "select": 0,
    "from": 1,
    "where": 2,
    "join": 3,
    "index": 4,
    "order": 5,
    "group": 6,
    "having": 7,
    "limit": 8,
    "union": 9,
    "insert": 10,
    "update": 11,
    "delete": 12,
    "create": 13,
    "alter": 14,
    "optimiz": 15,
    "performance": 16,
    "slow": 17,
    "fast": 18,
    "query": 19,
    "table": 20,
    "column": 21,
    "primary": 22,
    "foreign": 23,
    "key": 24,
    "aggregat": 25,
    "count": 26,
    "sum": 27,
    "avg": 28,
    "max": 29,
    "min": 30,
    "like": 31,
    "wildcard": 32,
    "subquer": 33,
    "explain": 34,
    "hint": 35,
}
_TERM_BOOST = 1.0


class MockEmbedder:
    """Embedder returning deterministic, normalized pseudo-embeddings."""

    def __init__(
        self,
        model: str = "mock-embedding",
        dimension: int = 1536,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        if dimension <= 0:
            raise InputError("dimension must be positive")
        self._model = model
        self._dimension = dimension
        self._logger = logger or structlog.get_logger(__name__)
        self.call_count = 0

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model(self) -> str:
        return f"{self._model}-mock"

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            raise InputError("embedding input cannot be empty")
        self.call_count += 1
        vectors = [self._embed_one(text) for text in texts]
        self._logger.debug("texts_embedded", model=self.model, count=len(vectors))
        return vectors

    def _embed_one(self, text: str) -> list[float]:
        seed = int.from_bytes(hashlib.md5(text.encode("utf-8")).digest()[:8], "big")
        rng = random.Random(seed)
        # Noise is scaled so its total norm does not grow with the dimension
        scale = 1.0 / math.sqrt(self._dimension)
        vector = [rng.uniform(-1.0, 1.0) * scale for _ in range(self._dimension)]

        lowered = text.lower()
        for term, position in _SQL_TERMS.items():
            if position < self._dimension and term in lowered:
                vector[position] += _TERM_BOOST

        norm = math.sqrt(sum(value * value for value in vector))
        if norm > 0:
            vector = [value / norm for value in vector]
        return vector


_JOIN_RESPONSE = """PROPOSED_SQL:
```sql
SELECT c.email, o.total
FROM customers c
INNER JOIN orders o ON c.id = o.customer_id
WHERE c.city = 'New York'
LIMIT 100;
```

RATIONALE:
• Added LIMIT to bound the size of the joined result set
• Replaced implicit joins with explicit INNER JOIN syntax
• Kept the equality filter on an indexable column

EXPECTED_PLAN_CHANGE:
• Index lookup on customers.city instead of a full table scan
• Smaller intermediate results feeding the join operator
• Lower memory usage because of the LIMIT clause

CAVEATS:
• The result is capped at 100 rows; confirm callers do not need more
• INNER JOIN semantics drop customers without orders
"""

_SELECT_RESPONSE = """PROPOSED_SQL:
```sql
SELECT c.id, c.email, c.first_name, c.last_name
FROM customers c
WHERE c.email LIKE 'john%'
LIMIT 50;
```

RATIONALE:
• Replaced SELECT * with the columns the caller uses to cut data transfer
• Anchored the LIKE pattern so an index on email can serve the prefix
• Added LIMIT to control the result size

EXPECTED_PLAN_CHANGE:
• Index range scan on the email prefix instead of a full scan
• Less I/O thanks to the narrower column projection
• Fewer rows returned to the client

CAVEATS:
• An explicit column list must be kept in sync with schema changes
• Patterns with a leading wildcard still require a full scan
"""

_AGGREGATION_RESPONSE = """PROPOSED_SQL:
```sql
SELECT c.city, COUNT(*) AS customer_count
FROM customers c
WHERE c.created_at >= '2024-01-01'
GROUP BY c.city
ORDER BY customer_count DESC
LIMIT 20;
```

RATIONALE:
• Filtered rows with WHERE before aggregating to shrink the grouped input
• Added LIMIT so the sort only has to keep the top groups
• Grouping on a single indexable column keeps the hash table small

EXPECTED_PLAN_CHANGE:
• Index range scan on created_at feeds fewer rows into the aggregation
• Top-N sort replaces a full sort of every group
• Lower memory use during GROUP BY execution

CAVEATS:
• The date filter changes semantics if older rows were intended
• Only the top 20 groups are returned
"""

_SLEEP_RESPONSE = """PROPOSED_SQL:
```sql
SELECT c.id, c.email
FROM customers c
WHERE c.id = 1
LIMIT 1;
```

RATIONALE:
• Removed the SLEEP() call, which only adds artificial delay
• Added an equality filter on the primary key for a point lookup
• Selected only the columns that are needed

EXPECTED_PLAN_CHANGE:
• Primary key point get replaces function evaluation on every row
• The artificial delay disappears from the execution time
• A single row is read through the clustered index

CAVEATS:
• Verify the delay was only present for testing purposes
• The id filter may need adjusting to the real lookup key
"""

_GENERIC_RESPONSE = """PROPOSED_SQL:
```sql
SELECT t.id, t.name
FROM items t
WHERE t.status = 'active'
LIMIT 100;
```

RATIONALE:
• Filter early with WHERE conditions on indexed columns
• Project only the columns that are needed
• Bound the result set with LIMIT

EXPECTED_PLAN_CHANGE:
• Index range scan replaces a full table scan
• Fewer rows are processed by later operators
• Reduced network transfer

CAVEATS:
• Specific optimizations depend on actual data distribution
• Index recommendations need to be checked against write load
"""


class MockGenerator:
    """Generator returning canned four-section optimization responses."""

    def __init__(
        self,
        model: str = "mock-generator",
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._model = model
        self._logger = logger or structlog.get_logger(__name__)
        self.prompts: list[str] = []
        self.last_options: GenerationOptions | None = None

    @property
    def model(self) -> str:
        return f"{self._model}-mock"

    async def complete(
        self,
        prompt: str,
        options: GenerationOptions | Mapping[str, Any] | None = None,
    ) -> str:
        self.prompts.append(prompt)
        self.last_options = GenerationOptions.coerce(options)
        response = self._pick_response(self._original_query(prompt).lower())
        self._logger.debug("completion_generated", model=self.model, prompt_length=len(prompt))
        return response

    @staticmethod
    def _original_query(prompt: str) -> str:
        # Route on the quoted statement when present, not the whole prompt
        marker = "ORIGINAL QUERY:"
        if marker not in prompt:
            return prompt
        tail = prompt.split(marker, 1)[1]
        return tail.split("```", 2)[1] if tail.count("```") >= 2 else tail

    @staticmethod
    def _pick_response(text: str) -> str:
        if "sleep(" in text:
            return _SLEEP_RESPONSE
        if "join" in text:
            return _JOIN_RESPONSE
        if "select *" in text:
            return _SELECT_RESPONSE
        if "group by" in text or "order by" in text:
            return _AGGREGATION_RESPONSE
        return _GENERIC_RESPONSE
