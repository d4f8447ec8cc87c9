# generic_avatar/api/v1/endpoints/avatars.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.responses import Response

from generic_avatar.config import config
from generic_avatar.core.dependencies import get_gateway, get_translator
from generic_avatar.core.exceptions import UploadValidationError
from generic_avatar.core.l10n import Translator
from generic_avatar.schemas.avatar import AvatarKey, ErrorResponse, SuccessResponse
from generic_avatar.services.gateway import AvatarGateway
from generic_avatar.services.normalizer import UploadPayload, normalize_size, parse_size, validate_upload
from generic_avatar.services.responses import (
    delete_response,
    fetch_response,
    replace_response,
    upload_error_response,
)
from generic_avatar.utils.image_processing import run_blocking

logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_FIELDS = ("files", "files[]")

UPLOAD_BODY = {
    "requestBody": {
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {"files": {"type": "string", "format": "binary"}},
                }
            }
        }
    }
}


async def read_upload_payload(request: Request) -> Optional[UploadPayload]:
    """Достаёт первый файл из поля files. None, если файла в запросе нет."""
    try:
        form = await request.form()
    except (HTTPException, MultiPartException) as e:
        logger.warning(f"Failed to parse multipart body: {e}")
        return UploadPayload.rejected(transport_ok=False)

    payload: Optional[UploadPayload] = None
    chosen: Optional[UploadFile] = None
    for field in UPLOAD_FIELDS:
        entries = form.getlist(field)
        if not entries:
            continue
        entry = entries[0]
        if isinstance(entry, UploadFile):
            chosen = entry
            payload = UploadPayload.from_upload(entry)
        else:
            # Строковое поле формы вместо файла, например подставленный путь
            payload = UploadPayload.rejected(filename=str(entry))
        break

    # Выбранный файл закрывает validate_upload, остальные закрываем сразу
    for _, value in form.multi_items():
        if isinstance(value, UploadFile) and value is not chosen:
            await value.close()

    return payload



@router.get(
    "/{avatar_type}/{avatar_id}/{size}",
    summary="Получение аватара нужного размера",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}, "image/jpeg": {}}, "description": "Изображение аватара"},
        404: {"description": "Аватар не найден"},
    },
)
async def get_avatar(
        avatar_type: str,
        avatar_id: str,
        size: str,
        gateway: AvatarGateway = Depends(get_gateway),
) -> Response:
    """
    Возвращает изображение аватара (тип, id) размера size x size.

    Нечисловой хвост сегмента size отбрасывается ("12abc" -> 12, "abc" -> 0).
    Размер больше максимального уменьшается до максимума, размер <= 0 заменяется
    размером по умолчанию. В заголовке X-NC-IsCustomAvatar передаётся 1, если аватар
    был загружен, и 0, если сгенерирован.
    """
    effective_size = normalize_size(parse_size(size))
    key = AvatarKey(avatar_type=avatar_type, avatar_id=avatar_id)
    outcome = await gateway.fetch(key, effective_size)
    return fetch_response(outcome)


@router.post(
    "/{avatar_type}/{avatar_id}",
    summary="Загрузка нового аватара",
    openapi_extra=UPLOAD_BODY,
    responses={200: {"model": SuccessResponse}, 400: {"model": ErrorResponse}},
)
async def set_avatar(
        avatar_type: str,
        avatar_id: str,
        request: Request,
        gateway: AvatarGateway = Depends(get_gateway),
        translator: Translator = Depends(get_translator),
) -> Response:
    """Заменяет исходное изображение аватара. Изображение должно быть квадратным."""
    payload = await read_upload_payload(request)
    try:
        upload = await run_blocking(validate_upload, payload, config.avatar)
    except UploadValidationError as e:
        logger.info(f"Rejected avatar upload for {avatar_type}/{avatar_id}: {e}")
        return upload_error_response(translator, e)

    key = AvatarKey(avatar_type=avatar_type, avatar_id=avatar_id)
    outcome = await gateway.replace(key, upload.image)
    return replace_response(translator, outcome)


@router.delete(
    "/{avatar_type}/{avatar_id}",
    summary="Удаление аватара",
    responses={400: {"model": ErrorResponse}},
)
async def delete_avatar(
        avatar_type: str,
        avatar_id: str,
        gateway: AvatarGateway = Depends(get_gateway),
        translator: Translator = Depends(get_translator),
) -> Response:
    key = AvatarKey(avatar_type=avatar_type, avatar_id=avatar_id)
    outcome = await gateway.delete(key)
    return delete_response(translator, outcome)
