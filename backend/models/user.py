"""User model for registration and authentication."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from database import Base


class User(Base):
    """
    Application user, registered by the frontend after an OAuth sign-in.

    The ``id`` is the opaque subject embedded in issued tokens.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    image = Column(String(1024), nullable=True)
    created_at = Column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
    )

    def __repr__(self):
        return f"<User {self.email}>"
