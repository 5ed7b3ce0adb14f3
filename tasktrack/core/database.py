"""Database handle: engine, session factory and request-scoped sessions."""

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


class Database:
    """
    Owns one engine (and its connection pool) plus the session factory bound to it.

    Built by the application lifespan or injected by tests; never a module global.
    Call dispose() at shutdown to close pooled connections.
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 10,
        pool_timeout: float = 30.0,
    ) -> None:
        self.url = url
        self.engine = _build_engine(url, echo=echo, pool_size=pool_size, pool_timeout=pool_timeout)
        self.session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

    def session(self) -> Session:
        return self.session_factory()

    def is_connected(self) -> bool:
        """Run a trivial query to verify the database is reachable."""
        with self.session() as db:
            return check_db_connected(db)

    def dispose(self) -> None:
        self.engine.dispose()


def _build_engine(url: str, *, echo: bool, pool_size: int, pool_timeout: float) -> Engine:
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        # In-memory databases live inside a single connection; share it across threads.
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=pool_size,
        pool_timeout=pool_timeout,
        echo=echo,
    )


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that yields a DB session from the app's Database and closes it when done."""
    database: Database = request.app.state.db
    db = database.session()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False
