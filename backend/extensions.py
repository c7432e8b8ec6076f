from contextlib import contextmanager
from typing import Iterator

from flask_migrate import Migrate  # type: ignore[import]
from flask_sqlalchemy import SQLAlchemy  # type: ignore[import]
from sqlalchemy.engine import Connection

db = SQLAlchemy()
migrate = Migrate()


@contextmanager
def db_read() -> Iterator[Connection]:
    """Borrow a pooled connection for a read; it goes back to the pool on exit."""
    with db.engine.connect() as conn:
        yield conn


@contextmanager
def db_transaction() -> Iterator[Connection]:
    """Pooled connection inside a transaction: commit on success, rollback on error."""
    with db.engine.begin() as conn:
        yield conn
