import logging
import os
from typing import Any, Dict, List

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from notes_function.db import NotesDatabase, get_database
from notes_function.errors import DATABASE_UNAVAILABLE_ERRORS, InvalidRequestBody, error_response
from notes_function.notes import handle_request

logger = logging.getLogger(__name__)

DEFAULT_NOTES_ROUTE_PATH = "/api/notes"


def _notes_route_path() -> str:
    """Return the configured NOTES_ROUTE_PATH, defaulting to /api/notes."""
    raw = (os.getenv("NOTES_ROUTE_PATH") or "").strip()
    if not raw:
        return DEFAULT_NOTES_ROUTE_PATH
    return raw if raw.startswith("/") else "/" + raw


NOTES_ROUTE_PATH = _notes_route_path()

# Every method is routed to the dispatcher so unsupported ones get its 405.
NOTES_ROUTE_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

openapi_tags = [
    {"name": "Health", "description": "Service health and readiness endpoints."},
    {"name": "Notes", "description": "List and create notes."},
]

app = FastAPI(
    title="Notes API",
    description="Notes endpoint listing and creating notes in a lazily provisioned PostgreSQL table.",
    version="1.0.0",
    openapi_tags=openapi_tags,
)


def _parse_allowed_origins() -> List[str]:
    """
    Parse comma-separated ALLOWED_ORIGINS from env.

    Falls back to localhost dev origins when not set.
    """
    raw = (os.getenv("ALLOWED_ORIGINS") or "").strip()
    if not raw:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]

    origins = [o.strip() for o in raw.split(",")]
    return [o for o in origins if o]


def _parse_allowed_origin_regex() -> str | None:
    """Return the optional ALLOWED_ORIGIN_REGEX override."""
    raw = (os.getenv("ALLOWED_ORIGIN_REGEX") or "").strip()
    return raw or None


app.add_middleware(
    CORSMiddleware,
    allow_origins=_parse_allowed_origins(),
    allow_origin_regex=_parse_allowed_origin_regex(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvalidRequestBody)
async def _invalid_body_handler(request: Request, exc: InvalidRequestBody) -> JSONResponse:
    return error_response(exc)


async def _database_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    return error_response(exc)


for _error_class in DATABASE_UNAVAILABLE_ERRORS:
    app.add_exception_handler(_error_class, _database_unavailable_handler)


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return JSON for unexpected errors instead of an opaque failure."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return error_response(exc)


# PUBLIC_INTERFACE
@app.get("/", tags=["Health"], summary="Health check", description="Returns a simple health payload.")
def health_check() -> Dict[str, str]:
    """Health check endpoint used by previews/monitoring."""
    return {"message": "Healthy"}


# PUBLIC_INTERFACE
@app.get(
    "/health/db",
    tags=["Health"],
    summary="Database health check",
    description=(
        "Verifies database connectivity by running a lightweight read-only query (SELECT 1). "
        "Returns status=up when the query succeeds, otherwise status=down with error details."
    ),
)
def health_check_db(database: NotesDatabase = Depends(get_database)) -> Dict[str, Any]:
    """Database readiness endpoint used to verify DB connectivity."""
    try:
        rows = database.execute("SELECT 1 AS result")
        return {"status": "up", "query": "SELECT 1", "result": int(rows[0]["result"])}
    except Exception as exc:
        return {"status": "down", "error": str(exc)}


# PUBLIC_INTERFACE
@app.api_route(
    NOTES_ROUTE_PATH,
    methods=NOTES_ROUTE_METHODS,
    tags=["Notes"],
    summary="Notes",
    description=(
        "GET lists all notes, most recent first. POST creates a note from a JSON body with "
        "non-empty `title` and `content`. Other methods return 405."
    ),
)
async def notes_endpoint(request: Request, database: NotesDatabase = Depends(get_database)) -> Response:
    """Bootstrap the schema and dispatch on the request method."""
    body = await request.body()
    return await run_in_threadpool(handle_request, request.method, body, database)
