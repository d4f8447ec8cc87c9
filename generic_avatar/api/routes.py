from fastapi import FastAPI
from generic_avatar.api.main_endpoints.router import main_router
from generic_avatar.api.v1.router import api_router


def include_routers(app: FastAPI):
    app.include_router(main_router)
    app.include_router(api_router)
