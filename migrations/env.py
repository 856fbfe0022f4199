"""Alembic environment for ClaimDesk.

The database URL comes from the same place the app reads it (DATABASE_URL,
loaded from .env by the claimdesk package), so `alembic upgrade head` and
`flask run` always point at one database.
"""

import logging
import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

config = context.config


def _ini_path():
    """alembic.ini, also when alembic is invoked from outside the project root."""
    path = config.config_file_name
    if path and not os.path.isabs(path) and not os.path.exists(path):
        candidate = os.path.join(PROJECT_ROOT, "alembic.ini")
        if os.path.exists(candidate):
            return candidate
    return path


if config.config_file_name is not None:
    fileConfig(_ini_path())

logger = logging.getLogger("alembic.env")

# Importing the package runs load_dotenv(); importing models registers every table.
from claimdesk.extensions import db  # noqa: E402
import claimdesk.models  # noqa: F401,E402

target_metadata = db.metadata

URL_SOURCES = ("DATABASE_URL", "PSQL_URL", "SQLALCHEMY_DATABASE_URI")


def database_url() -> str:
    for name in URL_SOURCES:
        value = os.environ.get(name)
        if value:
            url = value
            break
    else:
        url = config.get_main_option("sqlalchemy.url")

    if not url:
        raise RuntimeError(f"Set one of {', '.join(URL_SOURCES)} (or sqlalchemy.url) before running migrations.")

    # Heroku-style URLs still use the legacy scheme.
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url


def _configure_kwargs(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        # SQLite cannot ALTER most columns; batch mode recreates the table instead.
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    url = database_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = database_url()
    section = dict(config.get_section(config.config_ini_section) or {})
    section["sqlalchemy.url"] = url
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    logger.info("Running migrations against %s", engine.url.render_as_string(hide_password=True))
    with engine.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs(url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
