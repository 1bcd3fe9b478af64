"""
User model for identity synchronization and task ownership.

Users are not registered here: they sign in at the external identity
provider, and the sync endpoint mirrors the provider's subject identifier
and profile fields into this table. Every task is owned by exactly one user.

Architecture:
    Identity provider → User → Task
"""

from sqlalchemy import Column, Index, String
from sqlalchemy.orm import relationship, validates

from app.models.base import Base, TimestampMixin, UUIDMixin


class User(Base, UUIDMixin, TimestampMixin):
    """
    Local mirror of an identity provider account.

    The provider's subject identifier (firebase_uid) is the lookup key for
    sync and authentication; it cannot change once the row exists.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_firebase_uid", "firebase_uid", unique=True),
        Index("ix_users_email", "email", unique=True),
    )

    firebase_uid = Column(
        String(128),
        nullable=False,
        comment="Stable subject identifier issued by the identity provider",
    )

    email = Column(
        String(255),
        nullable=False,
        comment="Email address reported by the identity provider",
    )

    name = Column(
        String(255),
        nullable=True,
        comment="Display name from the identity provider profile",
    )

    profile_pic = Column(
        String(2048),
        nullable=True,
        comment="Profile picture URL from the identity provider profile",
    )

    tasks = relationship(
        "Task",
        back_populates="owner",
        cascade="all, delete-orphan",
        doc="Tasks created by this user",
    )

    @validates("firebase_uid")
    def validate_firebase_uid(self, key, value):
        current = self.__dict__.get("firebase_uid")
        if current is not None and value != current:
            raise ValueError("firebase_uid cannot be changed once set")
        return value

    def __repr__(self):
        return f"<User(id={self.id}, firebase_uid='{self.firebase_uid}', email='{self.email}')>"
