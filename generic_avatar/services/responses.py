from starlette.responses import JSONResponse, Response

from generic_avatar.core.exceptions import UploadValidationError
from generic_avatar.core.l10n import Translator
from generic_avatar.services.gateway import Failure, Outcome, Rendition

NOT_SQUARE_MESSAGE = "Crop is not square"
INTERNAL_ERROR_MESSAGE = "An error occurred. Please contact your admin."

CUSTOM_AVATAR_HEADER = "X-NC-IsCustomAvatar"


def message_response(translator: Translator, message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(
        content={"data": {"message": translator.t(message)}},
        status_code=status_code
    )


def fetch_response(outcome: Outcome[Rendition]) -> Response:
    if not outcome.ok:
        return JSONResponse(content={}, status_code=404)

    rendition = outcome.value
    return Response(
        content=rendition.artifact.data,
        status_code=200,
        media_type=rendition.artifact.mime_type,
        headers={CUSTOM_AVATAR_HEADER: str(int(rendition.is_custom))}
    )


def upload_error_response(translator: Translator, error: UploadValidationError) -> JSONResponse:
    return message_response(translator, error.message)


def replace_response(translator: Translator, outcome: Outcome[None]) -> JSONResponse:
    if outcome.ok:
        return JSONResponse(content={"status": "success"})
    if outcome.failure is Failure.NOT_SQUARE:
        return message_response(translator, NOT_SQUARE_MESSAGE)
    return message_response(translator, INTERNAL_ERROR_MESSAGE)


def delete_response(translator: Translator, outcome: Outcome[None]) -> JSONResponse:
    if outcome.ok:
        return JSONResponse(content={})
    return message_response(translator, INTERNAL_ERROR_MESSAGE)
