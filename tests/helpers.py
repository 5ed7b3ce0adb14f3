"""Shared fixtures: test settings, an in-memory database and a wired application."""

from tasktrack.core.config import Settings
from tasktrack.core.database import Database
from tasktrack.core.security import hash_password
from tasktrack.main import create_app
from tasktrack.models import Base
from tasktrack.repositories.users import UserRepository

TEST_PASSWORD = "Str0ng!Pass"


def make_settings(**overrides) -> Settings:
    values = {
        "APP_ENV": "test",
        "DATABASE_URL": "sqlite://",
        "BCRYPT_ROUNDS": 4,
        "RATE_LIMIT_ENABLED": False,
        "JWT_SECRET": "test-access-secret",
        "JWT_REFRESH_SECRET": "test-refresh-secret",
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


def make_database() -> Database:
    database = Database("sqlite://")
    Base.metadata.create_all(database.engine)
    return database


def make_app(**overrides):
    """Return (app, database) with tables created."""
    database = make_database()
    return create_app(make_settings(**overrides), database), database


def create_user(database: Database, email: str, role: str = "user", password: str = TEST_PASSWORD):
    with database.session() as db:
        user = UserRepository(db).add(
            email=email,
            password_hash=hash_password(password, rounds=4),
            first_name="Test",
            last_name="User",
            role=role,
        )
        db.commit()
        return user
