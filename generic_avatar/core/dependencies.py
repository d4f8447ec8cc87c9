# generic_avatar/core/dependencies.py
"""
Контейнер зависимостей для сервисов приложения.
Эндпоинты получают сервисы через Depends; тесты передают свой контейнер в create_app.
"""
from typing import Optional

from fastapi import Depends, Request

from generic_avatar.config import config
from generic_avatar.core.l10n import Translator
from generic_avatar.db.base import Base
from generic_avatar.db.session import SessionLocal, sync_engine
from generic_avatar.managers.avatar_manager import AvatarManager, DatabaseAvatarManager
from generic_avatar.services.gateway import AvatarGateway


class ServiceContainer:
    """Контейнер для всех сервисов приложения"""

    def __init__(self, avatar_manager: Optional[AvatarManager] = None, translator: Optional[Translator] = None):
        self._avatar_manager = avatar_manager
        self._translator = translator
        self._gateway: Optional[AvatarGateway] = None

    def startup(self) -> None:
        """Создаёт таблицы хранилища по умолчанию"""
        if self._avatar_manager is None:
            Base.metadata.create_all(bind=sync_engine)

    @property
    def avatar_manager(self) -> AvatarManager:
        if self._avatar_manager is None:
            self._avatar_manager = DatabaseAvatarManager(SessionLocal, config.avatar)
        return self._avatar_manager

    @property
    def translator(self) -> Translator:
        if self._translator is None:
            self._translator = Translator(config.app.language)
        return self._translator

    @property
    def gateway(self) -> AvatarGateway:
        if self._gateway is None:
            self._gateway = AvatarGateway(self.avatar_manager)
        return self._gateway


# Глобальный экземпляр контейнера
_service_container: Optional[ServiceContainer] = None


def get_service_container() -> ServiceContainer:
    """Получить экземпляр контейнера сервисов"""
    global _service_container
    if _service_container is None:
        _service_container = ServiceContainer()
    return _service_container


# FastAPI Dependencies
def get_container(request: Request) -> ServiceContainer:
    """Контейнер, с которым было создано приложение"""
    return getattr(request.app.state, "container", None) or get_service_container()


def get_gateway(container: ServiceContainer = Depends(get_container)) -> AvatarGateway:
    return container.gateway


def get_translator(container: ServiceContainer = Depends(get_container)) -> Translator:
    return container.translator
