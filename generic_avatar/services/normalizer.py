"""
Проверка и нормализация недоверенных входных данных до обращения к хранилищу.

``normalize_size`` приводит запрошенный размер к допустимому диапазону,
``validate_upload`` проверяет загруженный файл. Временный файл загрузки
закрывается (и удаляется) при любом исходе проверки.
"""
import os
import re
from contextlib import closing
from dataclasses import dataclass
from typing import BinaryIO, Optional

from PIL import Image
from starlette.datastructures import UploadFile

from generic_avatar.config import config
from generic_avatar.config.settings import AvatarConfig
from generic_avatar.core.exceptions import (
    FileTooLargeError,
    InvalidFileError,
    InvalidImageError,
    MissingFileError,
)
from generic_avatar.utils.image_processing import load_image

MAX_SIZE = 2048
DEFAULT_SIZE = 64

SIGNATURE_PEEK_BYTES = 16

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_size(raw: str) -> int:
    """Целое число в начале сегмента пути: "12abc" -> 12, "abc" -> 0."""
    match = _LEADING_INT.match(raw)
    return int(match.group(1)) if match else 0


def normalize_size(raw: int) -> int:
    # Нижней границы нет: 1..63 отдаются как есть, только <= 0 заменяется на значение по умолчанию
    if raw > MAX_SIZE:
        return MAX_SIZE
    if raw <= 0:
        return DEFAULT_SIZE
    return raw


@dataclass
class UploadPayload:
    """Файл из multipart-запроса вместе с признаками, которые сообщил транспорт."""
    filename: str
    size_bytes: int
    stream: Optional[BinaryIO]
    transport_ok: bool = True
    genuine: bool = True

    @classmethod
    def from_upload(cls, upload: UploadFile) -> "UploadPayload":
        size = upload.size
        if size is None:
            upload.file.seek(0, os.SEEK_END)
            size = upload.file.tell()
            upload.file.seek(0)
        return cls(filename=upload.filename or "", size_bytes=size, stream=upload.file)

    @classmethod
    def rejected(cls, filename: str = "", transport_ok: bool = True) -> "UploadPayload":
        """Запись формы, которая не является настоящим загруженным файлом."""
        return cls(filename=filename, size_bytes=0, stream=None, transport_ok=transport_ok, genuine=False)

    def head(self, length: int) -> bytes:
        if self.stream is None:
            return b""
        chunk = self.stream.read(length)
        self.stream.seek(0)
        return chunk

    def read(self) -> bytes:
        if self.stream is None:
            return b""
        return self.stream.read()

    def close(self) -> None:
        if self.stream is not None:
            self.stream.close()


@dataclass(frozen=True)
class ValidatedUpload:
    content: bytes
    image: Image.Image


def is_blacklisted(payload: UploadPayload, settings: AvatarConfig) -> bool:
    name = os.path.basename(payload.filename).strip().lower()
    if name in {item.lower() for item in settings.blacklisted_files}:
        return True

    head = payload.head(SIGNATURE_PEEK_BYTES)
    return any(
        head.startswith(bytes.fromhex(signature))
        for signature in settings.blacklisted_signatures
    )


def validate_upload(payload: Optional[UploadPayload], settings: AvatarConfig = config.avatar) -> ValidatedUpload:
    if payload is None:
        raise MissingFileError()

    with closing(payload):
        if not payload.transport_ok:
            raise InvalidFileError("upload transport failed")
        if not payload.genuine or payload.stream is None:
            raise InvalidFileError("not an uploaded file")
        if is_blacklisted(payload, settings):
            raise InvalidFileError(f"blacklisted file: {payload.filename}")
        if payload.size_bytes > settings.max_upload_bytes:
            raise FileTooLargeError(f"{payload.size_bytes} bytes")

        content = payload.read()

    try:
        image = load_image(content)
    except InvalidImageError as e:
        raise InvalidFileError("content is not an image") from e

    return ValidatedUpload(content=content, image=image)
