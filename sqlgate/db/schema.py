from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy import inspect
from sqlalchemy.engine import Connection
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from sqlgate.errors import StoreUnavailable, TableNotFound

logger = logging.getLogger(__name__)


class SchemaContextProvider:
    """Read-only view of the store catalog used to ground the prompt."""

    def list_tables(self, conn: Connection) -> List[str]:
        """Return the base-table names visible on ``conn``, sorted."""
        try:
            tables = inspect(conn).get_table_names()
        except SQLAlchemyError as e:
            logger.error("Catalog lookup failed: %s", e, exc_info=True)
            raise StoreUnavailable(f"Catalog lookup failed: {e}") from e
        logger.debug("Catalog tables: %s", tables)
        return sorted(tables)

    def describe_table(self, conn: Connection, table_name: str) -> List[Dict[str, Any]]:
        """Column name, type, nullability and default for one table, in ordinal order."""
        try:
            columns = inspect(conn).get_columns(table_name)
        except NoSuchTableError as e:
            raise TableNotFound(table_name) from e
        except SQLAlchemyError as e:
            logger.error("Column lookup failed for %s: %s", table_name, e, exc_info=True)
            raise StoreUnavailable(f"Catalog lookup failed: {e}") from e

        # Some dialects report a missing table as an empty column list.
        if not columns:
            raise TableNotFound(table_name)

        return [
            {
                "column_name": c["name"],
                "data_type": str(c["type"]),
                "is_nullable": bool(c.get("nullable", True)),
                "column_default": c.get("default"),
            }
            for c in columns
        ]
