"""
Shared pieces of the partner/admin conversation threads (feedback, restock, training).
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from app.partnerhub.constants import AUTHOR_ADMIN, THREAD_CLOSED, THREAD_OPEN, THREAD_RESPONDED
from app.partnerhub.errors import ServiceError
from app.partnerhub.utils import clean_str, serialize


class ReplyMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    author_type: Mapped[str] = mapped_column(String(16), nullable=False)  # ADMIN, PARTNER
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    @declared_attr
    def admin_id(cls) -> Mapped[int | None]:
        return mapped_column(ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)

    @declared_attr
    def admin(cls):
        return relationship("Admin", lazy="selectin")


REPLY_FIELDS = (
    ("id", "id"),
    ("authorType", "author_type"),
    ("message", "message"),
    ("createdAt", "created_at"),
)


def reply_to_dict(reply: ReplyMixin) -> dict[str, Any]:
    out = serialize(reply, REPLY_FIELDS)
    out["adminName"] = reply.admin.name if reply.author_type == AUTHOR_ADMIN and reply.admin else None
    return out


def reply_message(payload: dict) -> str:
    message = clean_str(payload.get("message"))
    if not message:
        raise ServiceError("Message is required")
    return message


def ensure_open(thread: Any, label: str) -> None:
    if thread.status == THREAD_CLOSED:
        raise ServiceError(f"{label} thread is closed", 409)


def after_reply(thread: Any, author_type: str) -> None:
    """An admin reply marks the thread RESPONDED; a partner reply reopens it."""
    thread.status = THREAD_RESPONDED if author_type == AUTHOR_ADMIN else THREAD_OPEN
    thread.updated_at = datetime.utcnow()


def parse_thread_status(payload: dict) -> str:
    status = clean_str(payload.get("status"))
    if status not in (THREAD_OPEN, THREAD_CLOSED):
        raise ServiceError("Invalid status")
    return status
