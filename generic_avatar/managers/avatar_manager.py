"""
Хранилище аватаров по умолчанию.

Канонические изображения лежат в таблице ``generic_avatars``; изображения нужного
размера строятся при каждом запросе и нигде не кешируются.
"""
import logging
from typing import Optional, Protocol

from PIL import Image
from sqlalchemy.orm import Session, sessionmaker

from generic_avatar.config.settings import AvatarConfig
from generic_avatar.core.exceptions import AvatarNotFoundError, InvalidImageError, NotSquareError
from generic_avatar.repositories.avatar import delete_avatar_image, get_avatar_image, save_avatar_image
from generic_avatar.schemas.avatar import AvatarKey, ImageArtifact
from generic_avatar.utils.db import session_scope
from generic_avatar.utils.image_processing import (
    encode_image,
    is_square,
    mime_type_for,
    render_placeholder,
    render_square,
)

logger = logging.getLogger(__name__)


class AvatarEntity(Protocol):
    def get_file(self, size: int) -> ImageArtifact: ...

    def is_custom_avatar(self) -> bool: ...

    def set(self, image: Image.Image) -> None: ...

    def remove(self) -> None: ...


class AvatarManager(Protocol):
    def get_generic_avatar(self, avatar_type: str, avatar_id: str) -> AvatarEntity: ...


class GenericAvatar:
    def __init__(self, key: AvatarKey, session_factory: sessionmaker[Session], settings: AvatarConfig):
        self.key = key
        self.session_factory = session_factory
        self.settings = settings
        self._data: Optional[bytes] = None
        self._loaded = False

    def _stored_data(self) -> Optional[bytes]:
        if not self._loaded:
            with session_scope(self.session_factory) as session:
                record = get_avatar_image(session, self.key.avatar_type, self.key.avatar_id)
                self._data = record.data if record else None
            self._loaded = True
        return self._data

    def get_file(self, size: int) -> ImageArtifact:
        data = self._stored_data()
        if data is None:
            if not self.settings.placeholders:
                raise AvatarNotFoundError(self.key.avatar_type, self.key.avatar_id)
            content, mime_type = render_placeholder(str(self.key), size)
        else:
            content, mime_type = render_square(data, size)
        return ImageArtifact(data=content, mime_type=mime_type)

    def is_custom_avatar(self) -> bool:
        return self._stored_data() is not None

    def set(self, image: Image.Image) -> None:
        image_format = (image.format or "").upper()
        if image_format not in self.settings.allowed_formats:
            raise InvalidImageError(f"Unknown filetype: {image_format or 'unknown'}")
        if not is_square(image):
            raise NotSquareError(f"Image is not square: {image.size[0]}x{image.size[1]}")

        max_size = self.settings.stored_max_size
        if image.size[0] > max_size:
            image = image.resize((max_size, max_size), Image.LANCZOS)

        data = encode_image(image, image_format)
        with session_scope(self.session_factory) as session:
            save_avatar_image(
                session,
                self.key.avatar_type,
                self.key.avatar_id,
                mime_type_for(image_format),
                data,
            )
        self._data, self._loaded = data, True
        logger.info(f"Avatar {self.key} replaced ({len(data)} bytes, {image_format})")

    def remove(self) -> None:
        with session_scope(self.session_factory) as session:
            deleted = delete_avatar_image(session, self.key.avatar_type, self.key.avatar_id)
        self._data, self._loaded = None, True
        if deleted:
            logger.info(f"Avatar {self.key} removed")


class DatabaseAvatarManager:
    def __init__(self, session_factory: sessionmaker[Session], settings: AvatarConfig):
        self.session_factory = session_factory
        self.settings = settings

    def get_generic_avatar(self, avatar_type: str, avatar_id: str) -> GenericAvatar:
        if not avatar_type or not avatar_id:
            raise AvatarNotFoundError(avatar_type, avatar_id)
        key = AvatarKey(avatar_type=avatar_type, avatar_id=avatar_id)
        return GenericAvatar(key, self.session_factory, self.settings)
