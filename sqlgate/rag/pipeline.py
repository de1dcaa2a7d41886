from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from sqlalchemy.engine import Connection

from sqlgate.db.executor import QueryExecutor, QueryRunResult
from sqlgate.db.schema import SchemaContextProvider
from sqlgate.errors import QueryRejected
from sqlgate.llm.openai_client import ModelClient
from sqlgate.rag.composer import compose
from sqlgate.rag.interpreter import interpret
from sqlgate.rag.prompt_builder import build_context
from sqlgate.rag.schemas import ChatResponse, ConversationTurn
from sqlgate.rag.sql_safety import QueryGuard, starts_with_select

logger = logging.getLogger(__name__)


class ChatPipeline:
    """Message -> prompt -> model -> intent -> [guard -> execute] -> response.

    Store calls are blocking SQLAlchemy calls and run in a worker thread, so the
    event loop only waits on the store and the model service.
    """

    def __init__(
        self,
        model: ModelClient,
        schema: Optional[SchemaContextProvider] = None,
        guard: Optional[QueryGuard] = None,
        executor: Optional[QueryExecutor] = None,
        result_format: str = "json",
    ):
        self.model = model
        self.schema = schema or SchemaContextProvider()
        self.guard = guard or QueryGuard()
        self.executor = executor or QueryExecutor()
        self.result_format = result_format

    async def run(
        self,
        conn: Connection,
        message: str,
        history: Sequence[ConversationTurn] = (),
    ) -> ChatResponse:
        logger.info("Chat request received; history_turns=%s", len(history))

        tables = await asyncio.to_thread(self.schema.list_tables, conn)
        payload = build_context(tables, history, message)
        raw = await self.model.complete(payload)
        intent = interpret(raw)

        if not intent.needs_query:
            return compose(intent, None, result_format=self.result_format)

        result = await self._guarded_execute(conn, intent.query or "")
        return compose(
            intent,
            result.rows,
            result_format=self.result_format,
            truncated=result.truncated,
        )

    async def run_query(self, conn: Connection, sql: str) -> QueryRunResult:
        """Diagnostic path for hand-written SQL."""
        if not starts_with_select(sql):
            logger.warning("Rejected diagnostic SQL: not a SELECT")
            raise QueryRejected("only SELECT queries are allowed")
        return await self._guarded_execute(conn, sql)

    async def _guarded_execute(self, conn: Connection, sql: str) -> QueryRunResult:
        verdict = self.guard.validate(sql)
        if not verdict.allowed:
            raise QueryRejected(verdict.reason or "query not allowed")
        return await asyncio.to_thread(self.executor.run, conn, sql)
