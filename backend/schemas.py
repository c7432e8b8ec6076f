from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from models import UserRole

USER_COLUMNS = (
    "id",
    "name",
    "email",
    "password",
    "verified",
    "created_at",
    "updated_at",
    "verification_token",
    "token_expires_at",
    "role",
)


class UserRecord(BaseModel):
    """Typed view of one ``users`` row as returned by the repository."""

    id: UUID
    name: str
    email: str
    password: str
    verified: bool
    created_at: datetime
    updated_at: datetime
    verification_token: Optional[str] = None
    token_expires_at: Optional[datetime] = None
    role: UserRole

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("created_at", "updated_at", "token_expires_at")
    @classmethod
    def ensure_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands back naive values; everything is written as UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, value: Any) -> UserRole:
        return UserRole.coerce(value)

    @model_validator(mode="after")
    def check_token_pair(self) -> "UserRecord":
        if (self.verification_token is None) != (self.token_expires_at is None):
            raise ValueError("verification_token and token_expires_at must be set together")
        return self

    @classmethod
    def from_row(cls, row: Mapping[str, object]) -> "UserRecord":
        return cls.model_validate(dict(row))

    def public_dict(self) -> Dict[str, Any]:
        """Serializable view without the credential hash or pending token."""
        return self.model_dump(mode="json", exclude={"password", "verification_token"})
