# generic_avatar/repositories/avatar.py
import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from generic_avatar.models.avatar import AvatarImage

logger = logging.getLogger(__name__)


def get_avatar_image(session: Session, avatar_type: str, avatar_id: str) -> Optional[AvatarImage]:
    """Получение сохранённого изображения по паре (тип, id)."""
    stmt = select(AvatarImage).where(
        AvatarImage.avatar_type == avatar_type,
        AvatarImage.avatar_id == avatar_id,
    )
    return session.execute(stmt).scalar_one_or_none()


def save_avatar_image(
        session: Session,
        avatar_type: str,
        avatar_id: str,
        content_type: str,
        data: bytes
) -> AvatarImage:
    """
    Создание нового изображения или замена существующего.
    Если для пары (тип, id) запись уже есть, она будет обновлена.
    """
    existing = get_avatar_image(session, avatar_type, avatar_id)

    if existing:
        existing.content_type = content_type
        existing.data = data
        session.flush()
        return existing

    image = AvatarImage(
        avatar_type=avatar_type,
        avatar_id=avatar_id,
        content_type=content_type,
        data=data
    )
    session.add(image)
    session.flush()
    return image


def delete_avatar_image(session: Session, avatar_type: str, avatar_id: str) -> bool:
    """Удаление изображения. Возвращает False, если удалять было нечего."""
    stmt = delete(AvatarImage).where(
        AvatarImage.avatar_type == avatar_type,
        AvatarImage.avatar_id == avatar_id,
    )
    result = session.execute(stmt)
    return result.rowcount > 0
