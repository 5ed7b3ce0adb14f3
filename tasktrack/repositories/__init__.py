"""Persistence access; each repository is built around an injected Session."""

from tasktrack.repositories.tasks import TaskRepository
from tasktrack.repositories.users import UserRepository

__all__ = ["TaskRepository", "UserRepository"]
