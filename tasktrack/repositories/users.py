"""Credential store: user records with hashed passwords."""

from sqlalchemy.orm import Session

from tasktrack.models.user import User


class UserRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, user_id: str) -> User | None:
        return self.db.query(User).filter(User.id == str(user_id)).first()

    def get_by_email(self, email: str) -> User | None:
        """Look up by email; emails are stored lowercased so the match is case-insensitive."""
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def exists(self, user_id: str) -> bool:
        return self.db.query(User.id).filter(User.id == str(user_id)).first() is not None

    def add(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: str = "user",
    ) -> User:
        """Insert a new active user; flushes so a unique-email violation surfaces here."""
        user = User(
            email=email.strip().lower(),
            password_hash=password_hash,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            role=role,
            is_active=True,
        )
        self.db.add(user)
        self.db.flush()
        return user
