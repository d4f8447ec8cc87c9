from pydantic import BaseModel, ConfigDict


class AvatarKey(BaseModel):
    """Адрес аватара: пара (тип, идентификатор), не связанная с пользователем."""
    avatar_type: str
    avatar_id: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.avatar_type}/{self.avatar_id}"


class ImageArtifact(BaseModel):
    data: bytes
    mime_type: str

    model_config = ConfigDict(frozen=True)


class MessageData(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    data: MessageData


class SuccessResponse(BaseModel):
    status: str = "success"
