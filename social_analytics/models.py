"""SQLAlchemy ORM models for accounts, sign-in sessions and saved analyses."""

from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    email: str = Column(String(320), unique=True, nullable=False)
    password_hash: str = Column(String(255), nullable=False)
    created_at: datetime = Column(DateTime, default=func.now())

    sessions = relationship(
        "AuthSession", back_populates="user", cascade="all, delete-orphan"
    )
    analyses = relationship(
        "Analysis", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email}>"


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    user_id: int = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    # SHA-256 of the bearer token; the raw token is only ever held by the client
    token_hash: str = Column(String(64), unique=True, nullable=False)
    created_at: datetime = Column(DateTime, default=func.now())
    expires_at: datetime = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="sessions")

    def __repr__(self) -> str:
        return f"<AuthSession id={self.id} user_id={self.user_id} expires_at={self.expires_at}>"


class Analysis(Base):
    """A named, saved platform aggregate.

    The aggregate itself is stored as a JSON document in ``payload``; the
    headline totals are copied into columns so listings need not decode it.
    """

    __tablename__ = "analyses"
    __table_args__ = (Index("ix_analyses_user_platform", "user_id", "platform"),)

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    user_id: int = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    platform: str = Column(String(20), nullable=False)
    name: str = Column(String(200), nullable=False)
    upload_date: datetime = Column(DateTime, default=func.now())
    total_posts: int = Column(Integer, default=0)
    total_views: int = Column(Integer, default=0)
    payload: str = Column(Text, nullable=False)
    created_at: datetime = Column(DateTime, default=func.now())

    user = relationship("User", back_populates="analyses")

    def __repr__(self) -> str:
        return f"<Analysis id={self.id} platform={self.platform} name={self.name!r}>"
