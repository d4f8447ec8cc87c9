from datetime import datetime

from sqlalchemy import DateTime, LargeBinary, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from generic_avatar.db.base import Base


class AvatarImage(Base):
    """Исходное (каноническое) изображение аватара для пары (тип, id)."""
    __tablename__ = "generic_avatars"
    __table_args__ = (UniqueConstraint("avatar_type", "avatar_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    avatar_type: Mapped[str] = mapped_column(String(64))
    avatar_id: Mapped[str] = mapped_column(String(255))
    content_type: Mapped[str] = mapped_column(String(50))
    data: Mapped[bytes] = mapped_column(LargeBinary)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __str__(self) -> str:
        return f"AvatarImage: {self.avatar_type}/{self.avatar_id}"

    def __repr__(self) -> str:
        return f"AvatarImage(id={self.id}, avatar_type={self.avatar_type}, avatar_id={self.avatar_id})"
