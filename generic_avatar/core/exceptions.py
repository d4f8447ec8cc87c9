from typing import Optional


class BaseApplicationError(Exception):
    """Базовый класс для ошибок приложения"""
    pass


class UploadValidationError(BaseApplicationError):
    """Загруженный файл не прошёл проверку. Ошибку может исправить клиент."""

    message: str = "Invalid file provided"

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(reason or self.message)


class MissingFileError(UploadValidationError):
    """В запросе нет файла"""
    message = "No file provided"


class InvalidFileError(UploadValidationError):
    """Ошибка передачи, подложный или запрещённый файл"""
    message = "Invalid file provided"


class FileTooLargeError(UploadValidationError):
    """Файл больше допустимого размера"""
    message = "File is too big"


class AvatarError(BaseApplicationError):
    """Базовый класс для ошибок хранилища аватаров"""
    pass


class AvatarNotFoundError(AvatarError):
    """Ошибка: аватар не найден"""

    def __init__(self, avatar_type: str, avatar_id: str):
        self.avatar_type = avatar_type
        self.avatar_id = avatar_id
        super().__init__(f"Avatar {avatar_type}/{avatar_id} not found")


class NotSquareError(AvatarError):
    """Ошибка: изображение не квадратное"""
    pass


class InvalidImageError(AvatarError):
    """Ошибка: данные не являются изображением поддерживаемого формата"""
    pass
