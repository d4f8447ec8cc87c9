import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from generic_avatar.config.settings import AvatarConfig
from generic_avatar.core.dependencies import ServiceContainer
from generic_avatar.core.exceptions import AvatarNotFoundError, NotSquareError
from generic_avatar.core.l10n import Translator
from generic_avatar.db.base import Base
from generic_avatar.db.session import make_engine, make_session_factory
from generic_avatar.main import create_app
from generic_avatar.managers.avatar_manager import DatabaseAvatarManager
from generic_avatar.schemas.avatar import ImageArtifact


def make_image_bytes(width: int = 32, height: int = 32, fmt: str = "PNG", color=(200, 30, 30)) -> bytes:
    img = Image.new("RGB", (width, height), color=color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


class FakeAvatar:
    def __init__(self, manager: "FakeAvatarManager", key: tuple[str, str]):
        self.manager = manager
        self.key = key

    def get_file(self, size: int) -> ImageArtifact:
        self.manager.calls.append(("get_file", self.key, size))
        if self.manager.fail_render:
            raise RuntimeError("render failed")
        return ImageArtifact(data=f"image-{size}".encode(), mime_type="image/png")

    def is_custom_avatar(self) -> bool:
        return self.manager.custom

    def set(self, image: Image.Image) -> None:
        width, height = image.size
        if width != height:
            raise NotSquareError("not square")
        if self.manager.fail_write:
            raise RuntimeError("storage is read-only")
        self.manager.stored[self.key] = image.size

    def remove(self) -> None:
        if self.manager.fail_write:
            raise RuntimeError("storage is read-only")
        self.manager.stored.pop(self.key, None)


class FakeAvatarManager:
    """Хранилище в памяти: знает только ключи из known."""

    def __init__(self):
        self.known = {("room", "abc123")}
        self.custom = False
        self.fail_render = False
        self.fail_write = False
        self.stored: dict[tuple[str, str], tuple[int, int]] = {}
        self.calls: list[tuple] = []

    def get_generic_avatar(self, avatar_type: str, avatar_id: str) -> FakeAvatar:
        self.calls.append(("resolve", avatar_type, avatar_id))
        if (avatar_type, avatar_id) not in self.known:
            raise AvatarNotFoundError(avatar_type, avatar_id)
        return FakeAvatar(self, (avatar_type, avatar_id))


@pytest.fixture
def fake_manager():
    return FakeAvatarManager()


@pytest.fixture
def client(fake_manager):
    app = create_app(container=ServiceContainer(avatar_manager=fake_manager, translator=Translator("en")))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'avatars.db'}")
    Base.metadata.create_all(bind=engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db_manager(session_factory):
    return DatabaseAvatarManager(session_factory, AvatarConfig())


@pytest.fixture
def square_png():
    return make_image_bytes(32, 32)
