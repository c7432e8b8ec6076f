from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Optional, Union

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from extensions import db


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"

    @classmethod
    def coerce(cls, value: Union["UserRole", str]) -> "UserRole":
        """Return the member for ``value``; raise ValueError for anything outside the set."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Invalid role: {value!r}")
        try:
            return cls(value.strip().lower())
        except ValueError:
            allowed = ", ".join(member.value for member in cls)
            raise ValueError(f"Invalid role {value!r}; expected one of: {allowed}") from None


# Stored by value ("admin"/"user"); native enum on PostgreSQL, CHECK constraint elsewhere.
user_role_type = sa.Enum(
    UserRole,
    name="user_role",
    values_callable=lambda members: [member.value for member in members],
    create_constraint=True,
    validate_strings=True,
)


class User(db.Model):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True)
    name: Mapped[str] = mapped_column(db.String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(db.String(255), nullable=False)
    verified: Mapped[bool] = mapped_column(
        db.Boolean, nullable=False, server_default=sa.false()
    )
    created_at: Mapped[datetime] = mapped_column(
        db.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        db.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )
    verification_token: Mapped[Optional[str]] = mapped_column(
        db.String(255), unique=True, nullable=True
    )
    token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        db.DateTime(timezone=True), nullable=True
    )
    role: Mapped[UserRole] = mapped_column(
        user_role_type, nullable=False, server_default=UserRole.USER.value
    )

    __table_args__ = (
        sa.Index("idx_users_created_at", "created_at"),
    )

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"<User {self.name} ({self.role.value})>"
