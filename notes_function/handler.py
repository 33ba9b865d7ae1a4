# notes_function/handler.py
import base64
import binascii
import logging
import os

from notes_function.db import get_database
from notes_function.errors import InvalidRequestBody, error_response
from notes_function.notes import handle_request


def _log_level(raw):
    """Numeric level for a LOG_LEVEL name; unknown names fall back to INFO."""
    level = logging.getLevelName((raw or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


logger = logging.getLogger()
logger.setLevel(_log_level(os.environ.get("LOG_LEVEL")))


def _method(event):
    # HTTP API v2 events carry the method under requestContext.http,
    # REST API v1 and Netlify events at the top level.
    http = (event.get("requestContext") or {}).get("http") or {}
    return http.get("method") or event.get("httpMethod") or "GET"


def _body(event):
    body = event.get("body")
    if body is None:
        return b""
    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True)
        except binascii.Error as exc:
            raise InvalidRequestBody(str(exc)) from exc
    return body.encode("utf-8")


def _to_proxy_response(response):
    return {
        "statusCode": response.status_code,
        "headers": {"Content-Type": response.headers["content-type"]},
        "body": response.body.decode("utf-8"),
    }


def lambda_handler(event, context):
    """
    Serverless entry point for the notes route.

    Accepts API Gateway / Netlify proxy events and returns the matching
    proxy response. Failures are mapped the same way as in the ASGI app.
    """
    method = _method(event)
    path = event.get("rawPath") or event.get("path")
    logger.info("Notes request: %s %s", method, path)

    try:
        response = handle_request(method, _body(event), get_database())
    except Exception as exc:
        response = error_response(exc)
        if response.status_code == 500:
            logger.exception("Unhandled exception on %s %s", method, path)

    return _to_proxy_response(response)
