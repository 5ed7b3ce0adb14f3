"""ORM model for application users (auth and RBAC)."""

from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship

from tasktrack.models.base import Base, UTCDateTime, new_id, utcnow


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    email is stored lowercased, so the unique index is case-insensitive in effect.
    role: 'admin' or 'user'. Accounts are deactivated (is_active=False), not deleted.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(String(32), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(UTCDateTime(), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    tasks = relationship(
        "Task",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
