import logging
import os
from contextlib import asynccontextmanager

import psycopg
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.actions import SubmissionError
from api.routes import router
from db.postgres import check_postgres, close_pool, create_pool, open_pool
from db.redis import Cache
from implementation.llms.generic_methods import LLMResponseError, create_openai_client

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan handler owning every external handle.

    Builds the Postgres pool, the Redis cache and the OpenAI client on startup,
    stores them on app.state for the route dependencies, and closes them on
    shutdown. A missing DATABASE_URL or an unreachable Postgres aborts startup;
    an unreachable Redis only disables caching.
    """
    pool = create_pool()
    await open_pool(pool)
    cache = Cache.from_env()
    llm_client = None
    try:
        await cache.connect()
        llm_client = create_openai_client()

        app.state.pool = pool
        app.state.cache = cache
        app.state.llm_client = llm_client
        yield
    finally:
        if llm_client is not None:
            await llm_client.close()
        await cache.close()
        await close_pool(pool)


app = FastAPI(title="FilmFriend API", lifespan=lifespan)
app.include_router(router)


# ===============================
#        Error handlers
# ===============================

@app.exception_handler(SubmissionError)
async def submission_error_handler(request: Request, exc: SubmissionError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})


@app.exception_handler(LLMResponseError)
async def llm_error_handler(request: Request, exc: LLMResponseError) -> JSONResponse:
    logger.error("Recommendation request %s failed: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": "Could not generate recommendations."})


@app.exception_handler(psycopg.Error)
async def database_error_handler(request: Request, exc: psycopg.Error) -> JSONResponse:
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Database request failed."})


@app.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint that validates connectivity to all external services.

    Returns a dictionary with status for each service:
    - postgres: 'ok' or error message (checked via connection pool)
    - redis: 'ok', 'disabled' (REDIS_URL unset) or error message
    """
    return {
        "postgres": await check_postgres(request.app.state.pool),
        "redis": await request.app.state.cache.check(),
    }
