import asyncio
import hashlib
import io
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Callable, Optional, TypeVar

from loguru import logger
from PIL import Image, ImageOps, UnidentifiedImageError

from generic_avatar.core.exceptions import InvalidImageError

T = TypeVar("T")

_executor: Optional[ThreadPoolExecutor] = None


def get_executor() -> ThreadPoolExecutor:
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(thread_name_prefix="avatar")
    return _executor


def cleanup_executor() -> None:
    """Останавливает пул потоков для обработки изображений."""
    global _executor
    if _executor is not None:
        _executor.shutdown(wait=True)
        _executor = None
        logger.info("Image processing executor stopped")


async def run_blocking(func: Callable[..., T], *args) -> T:
    """Выполняет блокирующую функцию (Pillow, БД) в пуле потоков."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_executor(), partial(func, *args))


def load_image(data: bytes) -> Image.Image:
    """Декодирует байты в изображение, поворачивая его согласно EXIF."""
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        logger.warning(f"Cannot decode image ({len(data)} bytes): {e}")
        raise InvalidImageError("Content is not a valid image") from e

    image_format = img.format
    img = ImageOps.exif_transpose(img)
    # exif_transpose возвращает копию без format
    img.format = image_format
    return img


def is_square(img: Image.Image) -> bool:
    width, height = img.size
    return width == height


def mime_type_for(image_format: str) -> str:
    return Image.MIME.get(image_format.upper(), "application/octet-stream")


def encode_image(img: Image.Image, image_format: str) -> bytes:
    if image_format.upper() == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    with io.BytesIO() as buffer:
        img.save(buffer, format=image_format)
        return buffer.getvalue()


def render_square(data: bytes, size: int) -> tuple[bytes, str]:
    """Масштабирует сохранённое квадратное изображение до size x size."""
    with Image.open(io.BytesIO(data)) as img:
        image_format = img.format or "PNG"
        if img.size != (size, size):
            img = img.resize((size, size), Image.LANCZOS)
        return encode_image(img, image_format), mime_type_for(image_format)


def placeholder_color(seed: str) -> tuple[int, int, int]:
    """Детерминированный цвет по строке-ключу."""
    digest = hashlib.md5(seed.encode("utf-8")).digest()
    return tuple(digest[i] % 200 + 30 for i in range(3))


def render_placeholder(seed: str, size: int) -> tuple[bytes, str]:
    img = Image.new("RGB", (size, size), color=placeholder_color(seed))
    return encode_image(img, "PNG"), mime_type_for("PNG")
