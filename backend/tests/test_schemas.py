import uuid
from datetime import datetime, timezone

import pytest
from models import UserRole
from pydantic import ValidationError
from schemas import USER_COLUMNS, UserRecord


def _row(**overrides):
    row = {
        "id": str(uuid.uuid4()),
        "name": "alice",
        "email": "a@x.com",
        "password": "hash",
        "verified": 0,
        "created_at": "2026-01-01T12:00:00.000000+00:00",
        "updated_at": "2026-01-01T12:00:00.000000+00:00",
        "verification_token": "t1",
        "token_expires_at": "2026-01-01T13:00:00.000000+00:00",
        "role": "user",
    }
    row.update(overrides)
    return row


def test_user_record_coerces_store_values():
    record = UserRecord.from_row(_row(verified=1, role="admin"))

    assert isinstance(record.id, uuid.UUID)
    assert record.verified is True
    assert record.role is UserRole.ADMIN
    assert record.created_at == datetime(2026, 1, 1, 12, tzinfo=timezone.utc)


def test_user_record_naive_timestamps_are_utc():
    record = UserRecord.from_row(_row(created_at=datetime(2026, 1, 1, 12, 0)))
    assert record.created_at.tzinfo is timezone.utc


def test_user_record_rejects_unknown_role():
    with pytest.raises(ValidationError):
        UserRecord.from_row(_row(role="superuser"))


def test_user_record_requires_token_pair():
    with pytest.raises(ValidationError):
        UserRecord.from_row(_row(token_expires_at=None))
    cleared = UserRecord.from_row(_row(verification_token=None, token_expires_at=None))
    assert cleared.verification_token is None


def test_user_record_columns_match_select_list():
    assert set(USER_COLUMNS) == set(UserRecord.model_fields)


def test_public_dict_hides_credentials():
    payload = UserRecord.from_row(_row()).public_dict()
    assert "password" not in payload
    assert "verification_token" not in payload
    assert payload["role"] == "user"
    assert payload["name"] == "alice"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("admin", UserRole.ADMIN),
        (" User ", UserRole.USER),
        (UserRole.ADMIN, UserRole.ADMIN),
    ],
)
def test_user_role_coerce(value, expected):
    assert UserRole.coerce(value) is expected


@pytest.mark.parametrize("value", ["root", "", None, 1])
def test_user_role_coerce_rejects(value):
    with pytest.raises(ValueError):
        UserRole.coerce(value)
