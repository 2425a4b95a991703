"""Curated SQL performance articles used to seed the knowledge base."""

from sqltune.models.document import Document

_CURATED: tuple[dict[str, str], ...] = (
    {
        "title": "Query Performance Optimization",
        "category": "performance",
        "url": "https://docs.pingcap.com/tidb/stable/sql-tuning-overview",
        "content": """Query optimization focuses on a few key areas:

1. Index Usage: make sure queries use appropriate indexes. Use EXPLAIN to check execution plans.
   - Create composite indexes for multi-column WHERE clauses
   - Consider covering indexes to avoid table lookups
   - Use prefix indexes for long string columns when appropriate

2. JOIN Optimization:
   - Drive the join from the table with the smaller filtered result
   - Use the JOIN type the query actually needs (INNER, LEFT, ...)
   - Consider EXISTS instead of IN for correlated subqueries
   - Avoid Cartesian products by always giving a join condition

3. WHERE Clause Optimization:
   - Push filter conditions down as early as possible
   - Filter on indexed columns
   - Avoid wrapping indexed columns in functions, which prevents index usage
   - Use LIMIT to reduce result sets when the caller does not need every row""",
    },
    {
        "title": "Index Best Practices",
        "category": "indexes",
        "url": "https://docs.pingcap.com/tidb/stable/best-practices-for-indexing",
        "content": """Indexing best practices:

1. Primary Key Design:
   - Use AUTO_RANDOM or UUID keys to spread sequential inserts
   - Avoid write hotspots on monotonically increasing keys
   - Consider SHARD_ROW_ID_BITS for tables without a clustered key

2. Secondary Index Strategy:
   - Index the columns that appear in frequent filters and joins
   - Use composite indexes for multi-column predicates
   - Put the most selective equality columns first in the index
   - Monitor index usage with EXPLAIN ANALYZE

3. Index Types:
   - B-tree indexes serve range and equality predicates
   - Expression indexes support filters on computed values
   - Invisible indexes let you test the effect of dropping an index
   - Leading-wildcard LIKE patterns cannot use a B-tree index""",
    },
    {
        "title": "JOIN Optimization Techniques",
        "category": "joins",
        "url": "https://docs.pingcap.com/tidb/stable/join-reorder",
        "content": """JOIN optimization techniques:

1. JOIN Reordering:
   - The optimizer reorders joins based on table statistics
   - Use STRAIGHT_JOIN to force a specific join order when needed
   - Keep statistics fresh so smaller inputs are joined first

2. JOIN Algorithms:
   - Hash Join: good for large inputs when one side fits in memory
   - Index Nested Loop Join: efficient when the outer side is small
   - Merge Join: optimal when both inputs are sorted on the join key

3. Optimization Tips:
   - Use EXISTS instead of IN for subqueries
   - Convert complex subqueries to JOINs when possible
   - Index the join columns on the inner side
   - Consider denormalization for joins that run on every request""",
    },
    {
        "title": "Aggregation and GROUP BY Optimization",
        "category": "aggregation",
        "url": "https://docs.pingcap.com/tidb/stable/aggregation-optimization",
        "content": """Aggregation optimization:

1. GROUP BY Optimization:
   - Index the GROUP BY columns
   - Order GROUP BY columns to match the index order
   - Use covering indexes to avoid extra row lookups
   - Consider pre-aggregating data in summary tables

2. Aggregate Functions:
   - COUNT(*) is optimized and preferred over COUNT(column)
   - Use APPROX_COUNT_DISTINCT on very large inputs
   - Let the storage layer push partial aggregation down
   - Use window functions for running totals and rankings

3. HAVING vs WHERE:
   - Use WHERE to filter rows before aggregation
   - Use HAVING only for conditions on aggregated values
   - Combine conditions so less data reaches the aggregation""",
    },
    {
        "title": "EXPLAIN ANALYZE and Query Plans",
        "category": "analysis",
        "url": "https://docs.pingcap.com/tidb/stable/explain-analyze",
        "content": """Understanding EXPLAIN ANALYZE:

1. Reading Execution Plans:
   - execution info shows actual runtime statistics
   - estRows and actRows show estimated versus actual row counts
   - time shows the execution time of each operator
   - memory shows the memory each operator used

2. Key Operators:
   - TableFullScan: full table scan, often a missing index
   - IndexRangeScan: index range scan, usually good
   - HashJoin / IndexJoin: the chosen join algorithm
   - Sort and TopN: explicit sorting, TopN when a LIMIT is present
   - Projection: column selection and transformation

3. Optimization Indicators:
   - Large gaps between estimated and actual rows mean stale statistics
   - One slow operator marks the bottleneck
   - High memory use flags spilling sorts and joins
   - Repeated table scans suggest missing indexes""",
    },
    {
        "title": "Query Hints and Optimizer Control",
        "category": "hints",
        "url": "https://docs.pingcap.com/tidb/stable/optimizer-hints",
        "content": """Optimizer hints for query control:

1. Index Hints:
   - USE_INDEX(table, index): prefer an index
   - IGNORE_INDEX(table, index): prevent an index from being used
   - FORCE INDEX(index): strongly prefer an index

2. Join Hints:
   - HASH_JOIN(tables): force a hash join
   - MERGE_JOIN(tables): force a sort merge join
   - INL_JOIN(tables): force an index nested loop join
   - STRAIGHT_JOIN: disable join reordering

3. Other Optimizer Hints:
   - MAX_EXECUTION_TIME(N): set a statement timeout in milliseconds
   - MEMORY_QUOTA(N MB): cap statement memory
   - USE_TOJA(boolean): control IN-subquery to join conversion
   - Hints override statistics, so review them after data changes""",
    },
)


def curated_documents() -> list[Document]:
    """Fresh Document instances for the curated corpus, keyed by title."""
    return [Document(**entry) for entry in _CURATED]


__all__ = ["curated_documents"]
