from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Connection, Engine

from sqlgate.db.engine import acquire, get_db_config, get_engine, release
from sqlgate.db.executor import QueryExecutor
from sqlgate.db.schema import SchemaContextProvider
from sqlgate.errors import GatewayError
from sqlgate.llm.openai_client import ModelClient
from sqlgate.rag.composer import utc_timestamp
from sqlgate.rag.pipeline import ChatPipeline
from sqlgate.utils.logging import setup_logging

from .schemas import ChatRequest, ChatResponse, HealthResponse, QueryRequest

load_dotenv()
setup_logging()
logger = logging.getLogger(__name__)

TRUNCATED_HEADER = "X-Result-Truncated"


@dataclass(frozen=True)
class ApiConfig:
    allowed_origins: Tuple[str, ...] = ("*",)
    result_format: str = "json"


def get_api_config() -> ApiConfig:
    origins = os.getenv("ALLOWED_ORIGINS", "*")
    return ApiConfig(
        allowed_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
        result_format=os.getenv("RESULT_FORMAT", "json"),
    )


async def get_connection(request: Request) -> AsyncIterator[Connection]:
    """One pooled connection per request, released on every exit path."""
    conn = await asyncio.to_thread(acquire, request.app.state.engine)
    try:
        yield conn
    finally:
        await asyncio.to_thread(release, conn)


def get_pipeline(request: Request) -> ChatPipeline:
    return request.app.state.pipeline


router = APIRouter()


@router.get("/")
async def root() -> Dict[str, str]:
    return {"message": "sqlgate is running"}


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=utc_timestamp())


@router.get("/tables", response_model=List[str])
async def list_tables(
    conn: Connection = Depends(get_connection),
    pipeline: ChatPipeline = Depends(get_pipeline),
) -> List[str]:
    return await asyncio.to_thread(pipeline.schema.list_tables, conn)


@router.get("/tables/{table_name}/schema")
async def table_schema(
    table_name: str,
    conn: Connection = Depends(get_connection),
    pipeline: ChatPipeline = Depends(get_pipeline),
) -> List[Dict[str, Any]]:
    return await asyncio.to_thread(pipeline.schema.describe_table, conn, table_name)


@router.post("/chat", response_model=ChatResponse)
async def chat(
    req: ChatRequest,
    conn: Connection = Depends(get_connection),
    pipeline: ChatPipeline = Depends(get_pipeline),
) -> ChatResponse:
    return await pipeline.run(conn, req.message, req.conversation_history)


@router.post("/query")
async def query(
    req: QueryRequest,
    response: Response,
    conn: Connection = Depends(get_connection),
    pipeline: ChatPipeline = Depends(get_pipeline),
) -> List[Dict[str, Any]]:
    result = await pipeline.run_query(conn, req.query)
    if result.truncated:
        response.headers[TRUNCATED_HEADER] = "true"
    return result.rows


async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    else:
        logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.client_message()})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(
    engine: Optional[Engine] = None,
    model: Optional[ModelClient] = None,
    cfg: Optional[ApiConfig] = None,
) -> FastAPI:
    cfg = cfg or get_api_config()

    db_cfg = get_db_config()
    if engine is None:
        engine = get_engine(db_cfg)
    executor = QueryExecutor(max_rows=db_cfg.max_rows)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await asyncio.to_thread(app.state.engine.dispose)
        logger.info("Database pool disposed")

    app = FastAPI(title="sqlgate", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.engine = engine
    app.state.pipeline = ChatPipeline(
        model=model or ModelClient(),
        schema=SchemaContextProvider(),
        executor=executor,
        result_format=cfg.result_format,
    )

    app.add_exception_handler(GatewayError, handle_gateway_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(router)
    app.include_router(router, prefix="/api")
    return app


app = create_app()
