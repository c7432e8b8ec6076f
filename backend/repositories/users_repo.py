"""Repository handling user data persistence and retrieval.

Every function issues exactly one statement, built with SQLAlchemy Core
against the ``users`` table definition, on a connection borrowed from the
engine pool. Ids and timestamps come from the database clock. Store errors
(``sqlalchemy.exc.SQLAlchemyError``) propagate to the caller unmodified;
nothing here retries or logs.
"""

import uuid
from datetime import datetime
from typing import List, Optional, Union

import sqlalchemy as sa
from sqlalchemy.sql.elements import ColumnElement

from db_utils import as_utc, greatest, new_uuid, utcnow
from extensions import db_read, db_transaction
from models import User, UserRole
from schemas import USER_COLUMNS, UserRecord

UserId = Union[uuid.UUID, str]

users = User.__table__

# Raises KeyError at import if the record and the table disagree on a column.
_RECORD_COLUMNS = [users.c[name] for name in USER_COLUMNS]

# Lookup selectors in priority order: the first one supplied wins.
_SELECTOR_COLUMNS = (users.c.id, users.c.name, users.c.email, users.c.verification_token)


class RepositoryError(Exception):
    """Base repository error."""


class NotFoundError(RepositoryError):
    """Raised when an update targets a user id that does not exist."""


def _clock() -> Union[ColumnElement, datetime]:
    """Source of "now" for writes; the database clock unless replaced."""
    return utcnow()


def _now() -> ColumnElement:
    value = _clock()
    if isinstance(value, datetime):
        return sa.literal(as_utc(value), type_=sa.DateTime(timezone=True))
    return value


def _touched() -> ColumnElement:
    # updated_at never moves below created_at, whatever the clock says
    return greatest(users.c.created_at, _now())


def _expiry(value: datetime) -> datetime:
    if not isinstance(value, datetime):
        raise ValueError(f"token expiry must be a datetime, got {value!r}")
    return as_utc(value)


def _user_id(value: UserId) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def _present(value: Optional[object]) -> bool:
    return value is not None and value != ""


def get_user(
    user_id: Optional[UserId] = None,
    name: Optional[str] = None,
    email: Optional[str] = None,
    token: Optional[str] = None,
) -> Optional[UserRecord]:
    """Fetch one user by a single selector, returning None when absent.

    Selectors are applied in a fixed priority order: ``user_id``, then
    ``name``, then ``email``, then ``token``. The first one that is neither
    None nor empty is used and the others are ignored. With no selector the
    store is not queried and None is returned.
    """
    candidates = (user_id, name, email, token)
    selected = next(
        (
            (column, value)
            for column, value in zip(_SELECTOR_COLUMNS, candidates)
            if _present(value)
        ),
        None,
    )
    if selected is None:
        return None

    column, value = selected
    if column is users.c.id:
        value = _user_id(value)

    with db_read() as conn:
        row = conn.execute(sa.select(*_RECORD_COLUMNS).where(column == value)).first()

    if not row:
        return None
    return UserRecord.from_row(row._mapping)


def get_users(page: int, limit: int) -> List[UserRecord]:
    """List users newest first; ``page`` is 1-based and 0 behaves like 1."""
    if limit < 0:
        raise ValueError("limit must not be negative")
    offset = (max(int(page), 1) - 1) * int(limit)

    stmt = (
        sa.select(*_RECORD_COLUMNS)
        .order_by(users.c.created_at.desc())
        .limit(int(limit))
        .offset(offset)
    )
    with db_read() as conn:
        rows = conn.execute(stmt).all()

    return [UserRecord.from_row(row._mapping) for row in rows]


def get_user_count() -> int:
    """Return the total number of users (0 for an empty table)."""
    with db_read() as conn:
        count = conn.execute(sa.select(sa.func.count()).select_from(users)).scalar()
    return int(count or 0)


def save_user(
    name: str,
    email: str,
    password: str,
    verification_token: str,
    token_expires_at: datetime,
) -> UserRecord:
    """Insert a new unverified user and return the stored row.

    The database assigns the id and ``created_at``. A duplicate name or
    email raises ``sqlalchemy.exc.IntegrityError``.
    """
    expires = _expiry(token_expires_at)
    now = _now()
    stmt = (
        sa.insert(users)
        .values(
            id=new_uuid(),
            name=name,
            email=email,
            password=password,
            verification_token=verification_token,
            token_expires_at=expires,
            created_at=now,
            updated_at=now,
        )
        .returning(*_RECORD_COLUMNS)
    )
    with db_transaction() as conn:
        row = conn.execute(stmt).one()
    return UserRecord.from_row(row._mapping)


def _update_returning(user_id: UserId, **values: object) -> UserRecord:
    target = _user_id(user_id)
    stmt = (
        sa.update(users)
        .where(users.c.id == target)
        .values(updated_at=_touched(), **values)
        .returning(*_RECORD_COLUMNS)
    )
    with db_transaction() as conn:
        row = conn.execute(stmt).first()
    if not row:
        raise NotFoundError(f"User {target} not found")
    return UserRecord.from_row(row._mapping)


def update_user_name(user_id: UserId, name: str) -> UserRecord:
    """Rename a user and return the updated row."""
    return _update_returning(user_id, name=name)


def update_user_password(user_id: UserId, password: str) -> UserRecord:
    """Replace a user's stored password hash and return the updated row."""
    return _update_returning(user_id, password=password)


def update_user_role(user_id: UserId, role: Union[UserRole, str]) -> UserRecord:
    """Set the user's role; values outside ``UserRole`` raise ValueError."""
    return _update_returning(user_id, role=UserRole.coerce(role))


def verify_token(token: str) -> int:
    """Mark the holder of ``token`` verified and clear the pending token.

    Unknown tokens are a no-op. Expiry is the caller's concern. Returns the
    number of rows affected.
    """
    stmt = (
        sa.update(users)
        .where(users.c.verification_token == token)
        .values(
            verified=True,
            updated_at=_touched(),
            verification_token=None,
            token_expires_at=None,
        )
    )
    with db_transaction() as conn:
        return conn.execute(stmt).rowcount


def add_verification_token(user_id: UserId, token: str, expires_at: datetime) -> int:
    """Store a pending verification token, overwriting any existing one."""
    stmt = (
        sa.update(users)
        .where(users.c.id == _user_id(user_id))
        .values(
            verification_token=token,
            token_expires_at=_expiry(expires_at),
            updated_at=_touched(),
        )
    )
    with db_transaction() as conn:
        return conn.execute(stmt).rowcount
