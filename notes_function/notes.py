import json
import logging

from fastapi import status
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.schema import CreateTable

from notes_function.db import NotesDatabase
from notes_function.errors import InvalidRequestBody
from notes_function.models import Note
from notes_function.schemas import NoteCreate, NoteOut

logger = logging.getLogger(__name__)

notes_table = Note.__table__


# PUBLIC_INTERFACE
def ensure_schema(database: NotesDatabase) -> None:
    """
    Create the notes table if it does not exist.

    Sends a single CREATE TABLE IF NOT EXISTS, so repeated and concurrent calls
    are safe. PostgreSQL may still reject one of two exactly simultaneous
    creations with a unique violation on its catalog; the table exists at that
    point, so the error is logged and ignored.
    """
    ddl = str(CreateTable(notes_table, if_not_exists=True).compile(dialect=database.dialect))
    try:
        database.execute(ddl)
    except IntegrityError as exc:
        logger.warning("Concurrent schema bootstrap detected, continuing: %s", exc.orig)


def _parse_body(body) -> object:
    try:
        if isinstance(body, (bytes, bytearray)):
            body = body.decode("utf-8")
        return json.loads(body or "")
    except ValueError as exc:
        raise InvalidRequestBody(str(exc)) from exc


# PUBLIC_INTERFACE
def list_notes(database: NotesDatabase) -> JSONResponse:
    """Return every note, most recent (highest id) first."""
    rows = database.execute(select(notes_table).order_by(notes_table.c.id.desc()))
    notes = [NoteOut.model_validate(row).model_dump() for row in rows]
    return JSONResponse(content=notes)


# PUBLIC_INTERFACE
def create_note(database: NotesDatabase, body) -> JSONResponse:
    """Insert a note from a JSON body carrying non-empty `title` and `content`."""
    try:
        payload = NoteCreate.model_validate(_parse_body(body))
    except ValidationError as exc:
        logger.info("Rejected note payload: %s", [error["loc"] for error in exc.errors()])
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Missing fields"})

    logger.info("Creating note title_len=%s content_len=%s", len(payload.title), len(payload.content))
    database.execute(insert(notes_table), {"title": payload.title, "content": payload.content})
    return JSONResponse(content={"success": True})


# PUBLIC_INTERFACE
def handle_request(method: str, body, database: NotesDatabase) -> Response:
    """
    Serve one notes request.

    The schema is bootstrapped first, whatever the method. GET lists notes,
    POST creates one, and every other method gets a plain-text 405.
    Errors from the body parser or the database propagate to the caller,
    which maps them with `notes_function.errors.error_response`.
    """
    ensure_schema(database)

    method = (method or "").upper()
    if method == "GET":
        return list_notes(database)
    if method == "POST":
        return create_note(database, body)

    return PlainTextResponse("Method Not Allowed", status_code=status.HTTP_405_METHOD_NOT_ALLOWED)
