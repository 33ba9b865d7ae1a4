import logging
import os
from functools import lru_cache
from typing import Any, Dict, List, Mapping

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Checked in order; Netlify DB injects the first one.
DATABASE_URL_ENV_VARS = ("NETLIFY_DATABASE_URL", "DATABASE_URL", "POSTGRES_URL")


def _normalize_sqlalchemy_postgres_url(url: str) -> str:
    """
    Normalize a Postgres URL into a SQLAlchemy psycopg2 URL.

    Accepts:
    - postgres://...
    - postgresql://...
    - postgresql+psycopg2://...

    Returns:
    - postgresql+psycopg2://...
    """
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return url.replace(prefix, "postgresql+psycopg2://", 1)
    return url


def _build_database_url() -> str:
    """
    Build a SQLAlchemy database URL from the environment.

    Preference order:
    1) NETLIFY_DATABASE_URL, DATABASE_URL, POSTGRES_URL (first one set)
    2) POSTGRES_USER/POSTGRES_PASSWORD/POSTGRES_DB/POSTGRES_PORT (compose a URL,
       host from POSTGRES_HOST or localhost)

    Raises RuntimeError when no connection descriptor is available; the hosting
    environment is expected to provide one before the function starts.
    """
    for name in DATABASE_URL_ENV_VARS:
        raw = (os.getenv(name) or "").strip()
        if raw:
            return _normalize_sqlalchemy_postgres_url(raw)

    user = os.getenv("POSTGRES_USER")
    password = os.getenv("POSTGRES_PASSWORD")
    db = os.getenv("POSTGRES_DB")
    port = os.getenv("POSTGRES_PORT")
    if user and password and db and port:
        host = os.getenv("POSTGRES_HOST") or "localhost"
        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"

    raise RuntimeError(
        "No database connection descriptor configured; set one of "
        + ", ".join(DATABASE_URL_ENV_VARS)
        + " or POSTGRES_USER/POSTGRES_PASSWORD/POSTGRES_DB/POSTGRES_PORT."
    )


def _engine_options(url: str) -> Dict[str, Any]:
    """Engine keyword arguments for `url`; SQLite needs thread sharing and in-memory needs one connection."""
    options: Dict[str, Any] = {"pool_pre_ping": True}
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        # In-memory databases live in a single connection.
        if parsed.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    return options


DATABASE_URL = _build_database_url()

# Engine + session configuration, one per execution context
engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


class NotesDatabase:
    """The single database capability the notes endpoint depends on."""

    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    @property
    def dialect(self):
        """SQL dialect of the bound engine, used to render DDL."""
        return self._session_factory.kw["bind"].dialect

    # PUBLIC_INTERFACE
    def execute(self, statement, parameters: Mapping[str, Any] | None = None) -> List[Dict[str, Any]]:
        """
        Run one statement and return its rows as dictionaries.

        `statement` is either a SQL string using named binds (`:title`) or an
        SQLAlchemy executable. The session is committed on success and rolled
        back on failure. Statements that return no rows yield an empty list.
        """
        if isinstance(statement, str):
            statement = text(statement)

        with self._session_factory() as session:
            try:
                result = session.execute(statement, parameters or {})
                rows = [dict(row._mapping) for row in result] if result.returns_rows else []
                session.commit()
            except Exception:
                session.rollback()
                raise
        return rows


# PUBLIC_INTERFACE
@lru_cache(maxsize=None)
def get_database() -> NotesDatabase:
    """Return the process-wide database capability, created on first use."""
    logger.info("Initializing database capability for %s", engine.url.render_as_string(hide_password=True))
    return NotesDatabase()
