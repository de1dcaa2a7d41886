from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

import sqlglot
from sqlglot.errors import SqlglotError
from sqlglot.tokens import Token, TokenType

logger = logging.getLogger(__name__)


FORBIDDEN_KEYWORDS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "ALTER",
    "CREATE",
    "TRUNCATE",
    "MERGE",
    "EXEC",
    "EXECUTE",
    "GRANT",
    "REVOKE",
)

WRITE_KEYWORDS = re.compile(
    r"\b(" + "|".join(FORBIDDEN_KEYWORDS) + r")\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class QueryVerdict:
    allowed: bool
    reason: Optional[str] = None


def is_write_query(sql: str) -> bool:
    """Return True if the SQL string contains a write-capable keyword anywhere."""
    return bool(WRITE_KEYWORDS.search(sql))


def starts_with_select(sql: str) -> bool:
    """Lightweight leading-keyword check used by the diagnostic query endpoint."""
    return (sql or "").strip().upper().startswith("SELECT")


def _reject(reason: str) -> QueryVerdict:
    logger.warning("Rejected SQL: %s", reason)
    return QueryVerdict(allowed=False, reason=reason)


class QueryGuard:
    """Read-only, single-statement policy for model-proposed SQL.

    Statement boundaries and the leading keyword come from sqlglot's tokenizer,
    which knows where string literals, quoted identifiers and comments start
    and end. Both boundary and keyword checks also run on the raw text, and a
    query is rejected when either view objects, so a keyword inside a subquery
    or a CTE is caught even behind a valid ``SELECT`` prefix.
    """

    def __init__(self, dialect: str = "mysql"):
        self.dialect = dialect

    def _tokens(self, sql: str) -> List[Token]:
        tokens = sqlglot.tokenize(sql, read=self.dialect)
        while tokens and tokens[-1].token_type == TokenType.SEMICOLON:
            tokens.pop()
        return tokens

    def validate(self, candidate: Optional[str]) -> QueryVerdict:
        sql = (candidate or "").strip()
        if not sql:
            return _reject("empty query")

        try:
            tokens = self._tokens(sql)
        except SqlglotError as e:
            return _reject(f"could not tokenize query: {e}")

        if not tokens:
            return _reject("empty query")

        if any(t.token_type == TokenType.SEMICOLON for t in tokens):
            return _reject("multiple statements are not allowed")
        if ";" in sql.rstrip("; \t\r\n"):
            return _reject("multiple statements are not allowed")

        first = tokens[0]
        if first.token_type != TokenType.SELECT:
            return _reject(f"only SELECT queries are allowed (found '{first.text.upper()}')")

        m = WRITE_KEYWORDS.search(sql)
        if m:
            return _reject(f"forbidden keyword: {m.group(1).upper()}")

        return QueryVerdict(allowed=True)


def validate(candidate: Optional[str]) -> QueryVerdict:
    return QueryGuard().validate(candidate)
