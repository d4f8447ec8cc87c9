import logging
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from PIL import Image

from generic_avatar.core.exceptions import NotSquareError
from generic_avatar.managers.avatar_manager import AvatarManager
from generic_avatar.schemas.avatar import AvatarKey, ImageArtifact
from generic_avatar.utils.image_processing import run_blocking

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Failure(str, Enum):
    NOT_FOUND = "not_found"
    NOT_SQUARE = "not_square"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: Optional[T] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, failure: Failure) -> "Outcome[T]":
        return cls(failure=failure)


@dataclass(frozen=True)
class Rendition:
    artifact: ImageArtifact
    is_custom: bool


class AvatarGateway:
    """
    Связывает AvatarKey с сущностью хранилища и выполняет операцию над ней.

    Любое исключение хранилища сужается до Outcome: при чтении до NOT_FOUND,
    при изменении до NOT_SQUARE или INTERNAL_ERROR. Наружу исключения не выходят.
    """

    def __init__(self, manager: AvatarManager):
        self.manager = manager

    def _fetch(self, key: AvatarKey, size: int) -> Rendition:
        avatar = self.manager.get_generic_avatar(key.avatar_type, key.avatar_id)
        artifact = avatar.get_file(size)
        return Rendition(artifact=artifact, is_custom=bool(avatar.is_custom_avatar()))

    def _replace(self, key: AvatarKey, image: Image.Image) -> None:
        avatar = self.manager.get_generic_avatar(key.avatar_type, key.avatar_id)
        avatar.set(image)

    def _delete(self, key: AvatarKey) -> None:
        avatar = self.manager.get_generic_avatar(key.avatar_type, key.avatar_id)
        avatar.remove()

    async def fetch(self, key: AvatarKey, size: int) -> Outcome[Rendition]:
        try:
            rendition = await run_blocking(self._fetch, key, size)
        except Exception as e:
            logger.debug(f"Avatar {key} at size {size} is not available: {e!r}")
            return Outcome.fail(Failure.NOT_FOUND)
        return Outcome.success(rendition)

    async def replace(self, key: AvatarKey, image: Image.Image) -> Outcome[None]:
        try:
            await run_blocking(self._replace, key, image)
        except NotSquareError:
            return Outcome.fail(Failure.NOT_SQUARE)
        except Exception as e:
            logger.exception(f"Failed to replace avatar {key}: {e}", extra={"app": "core"})
            return Outcome.fail(Failure.INTERNAL_ERROR)
        return Outcome.success()

    async def delete(self, key: AvatarKey) -> Outcome[None]:
        try:
            await run_blocking(self._delete, key)
        except Exception as e:
            logger.exception(f"Failed to delete avatar {key}: {e}", extra={"app": "core"})
            return Outcome.fail(Failure.INTERNAL_ERROR)
        return Outcome.success()
