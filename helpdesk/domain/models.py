from __future__ import annotations

from typing import Any, Optional
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    # Naive UTC, the way SQLite hands timestamps back
    return datetime.now(timezone.utc).replace(tzinfo=None)


# AUTOINCREMENT: ids are never handed out twice within a table
_TABLE_ARGS = {"sqlite_autoincrement": True}


class User(SQLModel, table=True):
    __table_args__ = _TABLE_ARGS

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    full_name: str
    email: str
    role: str = Field(default="user", index=True)
    department: Optional[str] = None
    avatar_url: Optional[str] = None


class Ticket(SQLModel, table=True):
    __table_args__ = _TABLE_ARGS

    id: Optional[int] = Field(default=None, primary_key=True)
    # Derived from id once the row exists, see ticket_lifecycle.create_ticket
    ticket_number: Optional[str] = Field(default=None, index=True, unique=True)

    title: str
    description: Optional[str] = None

    status: str = Field(default="open", index=True)
    priority: str = Field(default="medium", index=True)

    category: str
    sub_category: Optional[str] = None
    impact: Optional[str] = None
    urgency: Optional[str] = None

    assigned_to_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    reported_by_id: int = Field(foreign_key="user.id", index=True)

    configuration_item: Optional[str] = None
    caller_location: Optional[str] = None
    issue_location: Optional[str] = None
    preferred_contact: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow, index=True)
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None


class Comment(SQLModel, table=True):
    __table_args__ = _TABLE_ARGS

    id: Optional[int] = Field(default=None, primary_key=True)
    ticket_id: int = Field(foreign_key="ticket.id", index=True)
    user_id: int = Field(foreign_key="user.id")
    content: str
    is_internal: bool = False
    created_at: datetime = Field(default_factory=utcnow, index=True)


class Attachment(SQLModel, table=True):
    __table_args__ = _TABLE_ARGS

    id: Optional[int] = Field(default=None, primary_key=True)
    ticket_id: int = Field(foreign_key="ticket.id", index=True)
    filename: str
    file_type: str
    file_size: int
    path: str
    uploaded_by_id: int = Field(foreign_key="user.id")
    created_at: datetime = Field(default_factory=utcnow)


class ActivityLog(SQLModel, table=True):
    __table_args__ = _TABLE_ARGS

    id: Optional[int] = Field(default=None, primary_key=True)
    ticket_id: int = Field(foreign_key="ticket.id", index=True)
    user_id: int = Field(foreign_key="user.id")
    action: str = Field(index=True)
    details: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow, index=True)


class KbArticle(SQLModel, table=True):
    __table_args__ = _TABLE_ARGS

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    content: str
    category_id: Optional[int] = None
    author_id: int = Field(foreign_key="user.id")
    is_published: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
