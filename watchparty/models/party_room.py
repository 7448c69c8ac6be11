"""Watch party room database model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from watchparty.core.database import Base


class PartyRoom(Base):
    """Watch party owned by the session token that created it."""

    __tablename__ = "party_rooms"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    room_name: Mapped[str] = mapped_column(String(255), nullable=False)
    room_token: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True
    )
    host_token: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
