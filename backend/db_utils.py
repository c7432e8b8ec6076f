"""Store-side SQL expressions shared by the repositories.

Each construct compiles to the native spelling of the current dialect, so
values such as ids and timestamps are produced by the database rather than
by whichever worker process issued the statement.
"""

from __future__ import annotations

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.expression import FunctionElement

# SQLAlchemy's SQLite DATETIME storage format; %f yields milliseconds only
SQLITE_NOW_FORMAT = "%Y-%m-%d %H:%M:%f000"


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class utcnow(FunctionElement):
    """Current time according to the database server."""

    type = sa.DateTime(timezone=True)
    inherit_cache = True
    name = "utcnow"


@compiles(utcnow)
def _utcnow_default(element, compiler, **kw):
    return "CURRENT_TIMESTAMP"


@compiles(utcnow, "sqlite")
def _utcnow_sqlite(element, compiler, **kw):
    return f"strftime('{SQLITE_NOW_FORMAT}', 'now')"


class greatest(FunctionElement):
    """Largest of its arguments (``GREATEST`` / SQLite's scalar ``MAX``)."""

    type = sa.DateTime(timezone=True)
    inherit_cache = True
    name = "greatest"


@compiles(greatest)
def _greatest_default(element, compiler, **kw):
    return "GREATEST(%s)" % compiler.process(element.clauses, **kw)


@compiles(greatest, "sqlite")
def _greatest_sqlite(element, compiler, **kw):
    return "MAX(%s)" % compiler.process(element.clauses, **kw)


class new_uuid(FunctionElement):
    """Random v4-style identifier generated by the database."""

    type = sa.Uuid()
    inherit_cache = True
    name = "new_uuid"


@compiles(new_uuid)
def _new_uuid_default(element, compiler, **kw):
    return "gen_random_uuid()"


@compiles(new_uuid, "sqlite")
def _new_uuid_sqlite(element, compiler, **kw):
    # 32 hex digits, the layout sa.Uuid uses on backends without a uuid type
    return "lower(hex(randomblob(16)))"
