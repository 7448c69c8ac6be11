"""Watch party membership database model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from watchparty.core.database import Base


class PartyMember(Base):
    """A session token's membership in one watch party."""

    __tablename__ = "party_members"
    __table_args__ = (
        UniqueConstraint(
            "room_token", "user_token", name="uq_party_members_room_user"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    room_token: Mapped[str] = mapped_column(
        ForeignKey("party_rooms.room_token"), nullable=False, index=True
    )
    # Not a foreign key: users.token is cleared on invalidation.
    user_token: Mapped[str] = mapped_column(String(128), nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
