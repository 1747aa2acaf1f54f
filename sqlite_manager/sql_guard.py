"""Prefix-based SQL statement classification.

This is a syntactic gate, not a parser: a statement is classified by the
keyword it starts with. Anything after the leading keyword is not inspected,
so "SELECT 1; DROP TABLE t" still classifies as a SELECT.
"""
import re
import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class SQLStatementType(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    CREATE_TABLE = "create_table"


# Anchored at position 0, no whitespace stripping and no word boundary.
_PREFIX_PATTERNS: list[tuple[re.Pattern, SQLStatementType]] = [
    (re.compile(r"^SELECT", re.IGNORECASE), SQLStatementType.SELECT),
    (re.compile(r"^INSERT", re.IGNORECASE), SQLStatementType.INSERT),
    (re.compile(r"^UPDATE", re.IGNORECASE), SQLStatementType.UPDATE),
    (re.compile(r"^DELETE", re.IGNORECASE), SQLStatementType.DELETE),
    (re.compile(r"^CREATE TABLE", re.IGNORECASE), SQLStatementType.CREATE_TABLE),
]

READ_TYPES = frozenset({SQLStatementType.SELECT})
WRITE_TYPES = frozenset(
    {SQLStatementType.INSERT, SQLStatementType.UPDATE, SQLStatementType.DELETE}
)
DDL_TYPES = frozenset({SQLStatementType.CREATE_TABLE})


def classify(sql: str) -> Optional[SQLStatementType]:
    """Return the statement type implied by the leading keyword, if any."""
    for pattern, stmt_type in _PREFIX_PATTERNS:
        if pattern.match(sql):
            return stmt_type
    logger.debug(f"Unrecognized statement prefix: {sql[:40]!r}")
    return None


def check_prefix(sql: str, allowed: frozenset) -> bool:
    return classify(sql) in allowed


def describe_allowed(allowed: frozenset) -> str:
    """Human description of a set of allowed prefixes, e.g. 'INSERT, UPDATE or DELETE'."""
    names = [
        t.value.replace("_", " ").upper()
        for t in SQLStatementType
        if t in allowed
    ]
    if len(names) == 1:
        return names[0]
    return ", ".join(names[:-1]) + " or " + names[-1]
