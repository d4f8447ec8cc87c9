from fastapi import APIRouter
from generic_avatar.api.v1.endpoints import avatars

api_router = APIRouter()

api_router.include_router(avatars.router, prefix="/avatar", tags=["avatar"])
