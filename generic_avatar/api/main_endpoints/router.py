from fastapi import APIRouter

from generic_avatar.api.main_endpoints import app_router

main_router = APIRouter(prefix="/api")

main_router.include_router(app_router.router)
