from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from sqlgate.errors import StoreUnavailable

load_dotenv()

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBConfig:
    url: str
    pool_size: int = 10
    pool_timeout: float = 30.0
    max_rows: int = 1000


def _url_from_mysql_env() -> str:
    host = os.getenv("MYSQL_HOST", "db")
    port = int(os.getenv("MYSQL_PORT", "3306"))
    database = os.getenv("MYSQL_DATABASE", "sqlgate")
    user = os.getenv("MYSQL_USER", "sqlgate")
    password = os.getenv("MYSQL_PASSWORD", "sqlgate")
    return f"mysql+pymysql://{user}:{password}@{host}:{port}/{database}"


def get_db_config() -> DBConfig:
    return DBConfig(
        url=os.getenv("DATABASE_URL") or _url_from_mysql_env(),
        pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
        pool_timeout=float(os.getenv("DB_POOL_TIMEOUT_SECONDS", "30")),
        max_rows=int(os.getenv("SQL_MAX_ROWS", "1000")),
    )


def get_engine(cfg: Optional[DBConfig] = None) -> Engine:
    """Create the bounded connection pool shared by all requests.

    ``max_overflow=0`` makes ``pool_size`` a hard cap; a saturated pool blocks
    checkout for up to ``pool_timeout`` seconds before failing.
    """
    cfg = cfg or get_db_config()
    return create_engine(
        cfg.url,
        pool_pre_ping=True,
        pool_size=cfg.pool_size,
        max_overflow=0,
        pool_timeout=cfg.pool_timeout,
    )


def acquire(engine: Engine) -> Connection:
    """Check a connection out of the pool, mapping failures to ``StoreUnavailable``."""
    try:
        return engine.connect()
    except SQLAlchemyError as e:
        logger.error("Could not acquire database connection: %s", e, exc_info=True)
        raise StoreUnavailable(f"Database connection failed: {e}") from e


def release(conn: Connection) -> None:
    try:
        conn.close()
    except SQLAlchemyError:
        logger.error("Error releasing database connection", exc_info=True)


@contextmanager
def scoped_connection(engine: Engine) -> Iterator[Connection]:
    conn = acquire(engine)
    try:
        yield conn
    finally:
        release(conn)


def ping(engine: Engine) -> None:
    with scoped_connection(engine) as conn:
        conn.execute(text("SELECT 1"))
