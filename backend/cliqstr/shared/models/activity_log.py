"""
User Activity Log Model

Activity trail for a user (sign-ins, posts, invites). Parents read their
children's trail from Parents HQ.
"""

from typing import Any, Optional
import uuid

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from cliqstr.shared.models.base import Base, TimestampMixin


class UserActivityLog(Base, TimestampMixin):
    """One activity entry."""

    __tablename__ = "user_activity_logs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event: Mapped[str] = mapped_column(String(64), nullable=False)
    detail: Mapped[Optional[dict[str, Any]]] = mapped_column(nullable=True)
