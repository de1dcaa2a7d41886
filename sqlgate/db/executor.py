from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from sqlalchemy.engine import Connection
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from sqlgate.errors import QueryExecutionFailed

logger = logging.getLogger(__name__)


@dataclass
class QueryRunResult:
    """Rows of an executed query; ``truncated`` is set when the row cap cut the result off."""

    rows: List[Dict[str, Any]]
    truncated: bool = False


def _store_message(e: SQLAlchemyError) -> str:
    # Prefer the driver's own text over SQLAlchemy's wrapped repr.
    if isinstance(e, DBAPIError) and e.orig is not None:
        return str(e.orig)
    return str(e)


class QueryExecutor:
    def __init__(self, max_rows: int = 1000):
        """Runs guard-approved SQL; ``max_rows`` of 0 fetches everything."""
        self.max_rows = max_rows

    def run(self, conn: Connection, sql: str) -> QueryRunResult:
        """Execute ``sql`` exactly as given and return rows as column->value dicts."""
        logger.info("Executing approved SQL")
        logger.debug("SQL: %s", sql)
        truncated = False
        try:
            # no_parameters: hand the text to the driver untouched (no bind/pyformat parsing)
            result = conn.exec_driver_sql(sql, execution_options={"no_parameters": True})
            if not result.returns_rows:
                return QueryRunResult(rows=[])
            mappings = result.mappings()
            if self.max_rows:
                # one extra row tells a full result apart from a capped one
                raw = mappings.fetchmany(self.max_rows + 1)
                truncated = len(raw) > self.max_rows
                raw = raw[: self.max_rows]
                result.close()
            else:
                raw = mappings.all()
            rows = [dict(r) for r in raw]
        except SQLAlchemyError as e:
            msg = _store_message(e)
            logger.error("SQL execution failed: %s", msg, exc_info=True)
            raise QueryExecutionFailed(msg) from e

        if truncated:
            logger.warning("Result capped at %s rows", self.max_rows)
        logger.info("SQL executed successfully; rows=%s", len(rows))
        return QueryRunResult(rows=rows, truncated=truncated)

    def execute(self, conn: Connection, sql: str) -> List[Dict[str, Any]]:
        return self.run(conn, sql).rows
