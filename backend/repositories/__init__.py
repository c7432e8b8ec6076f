"""Repository package exposing all repository modules."""

from . import users_repo

__all__ = [
    "users_repo",
]
