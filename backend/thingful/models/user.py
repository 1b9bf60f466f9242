"""
Thingful Backend — User SQLAlchemy Model
=========================================

What:  ORM model representing the `thingful_users` table.
Why:   The authenticator looks users up by `user_name` and verifies the
       bcrypt hash stored in `password`.
Who:   Read by AuthService during authentication; referenced by things and
       reviews as their author.

The application never creates or mutates users: rows are provisioned by
migrations/seeding, and the API only reads them.

Table Design Rationale:
    - user_name UNIQUE: one row per login name; also the index the auth lookup uses
    - password: bcrypt hash ("$2b$<cost>$<salt+digest>"), never plaintext
    - date_created / date_modified: UTC with timezone
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from thingful.database import Base


class User(Base):
    """A registered user who can authenticate with HTTP Basic credentials."""

    __tablename__ = "thingful_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        comment="Login name used in the Basic credentials",
    )

    full_name: Mapped[str] = mapped_column(Text, nullable=False)

    nickname: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # bcrypt output is 60 characters
    password: Mapped[str] = mapped_column(
        String(72),
        nullable=False,
        comment="bcrypt hash of the user's password",
    )

    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    date_modified: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    def __repr__(self) -> str:
        # The password hash is intentionally left out
        return f"<User(id={self.id}, user_name='{self.user_name}')>"
