import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="registry-tests-"))
os.environ["DATABASE_URL"] = (
    os.environ.get("TEST_DATABASE_URL") or f"sqlite:///{_TEST_DB_DIR / 'registry.db'}"
)

import pytest  # noqa: E402
from app import app  # noqa: E402
from extensions import db  # noqa: E402
from repositories import users_repo  # noqa: E402


@pytest.fixture()
def registry_db():
    app.config.update({"TESTING": True})

    try:
        with app.app_context():
            db.session.remove()
            db.drop_all()
            db.create_all()
    except Exception as exc:  # pragma: no cover - skip if database unavailable
        pytest.skip(f"Database not available: {exc}")

    with app.app_context():
        yield db

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture()
def clock(monkeypatch):
    """Replace the database clock with one that advances one second per write."""
    state = {"now": datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)}

    def tick() -> datetime:
        state["now"] += timedelta(seconds=1)
        return state["now"]

    monkeypatch.setattr(users_repo, "_clock", tick)
    return state
