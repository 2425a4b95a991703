from enum import StrEnum


class QueryType(StrEnum):
    SLEEP_TEST = "sleep-test"
    COMPLEX_JOIN = "complex-join"
    SIMPLE_JOIN = "simple-join"
    AGGREGATION = "aggregation"
    PATTERN_SEARCH = "pattern-search"
    FULL_SELECT = "full-select"
    FILTERED_SELECT = "filtered-select"
    BASIC_SELECT = "basic-select"


class Complexity(StrEnum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class AntiPattern(StrEnum):
    SELECT_STAR = "select-star"
    LEADING_WILDCARD_LIKE = "leading-wildcard-like"
    MISSING_LIMIT = "missing-limit"
    CARTESIAN_JOIN = "cartesian-join"
    FUNCTION_IN_WHERE = "function-in-where"
    SUBQUERY_INSTEAD_OF_JOIN = "subquery-instead-of-join"
    ORDER_WITHOUT_LIMIT = "order-without-limit"


class Opportunity(StrEnum):
    SPECIFY_COLUMNS = "specify-columns"
    OPTIMIZE_LIKE_PATTERNS = "optimize-like-patterns"
    ADD_LIMIT_CLAUSE = "add-limit-clause"
    EXPLICIT_JOIN_SYNTAX = "explicit-join-syntax"
    MOVE_FUNCTIONS_TO_SELECT = "move-functions-to-select"
    CONVERT_TO_JOIN = "convert-to-join"
    ADD_RESULT_LIMITING = "add-result-limiting"
    INDEX_GROUP_BY_COLUMNS = "index-group-by-columns"
    INDEX_JOIN_COLUMNS = "index-join-columns"
    INDEX_WHERE_COLUMNS = "index-where-columns"


class ReviewStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
