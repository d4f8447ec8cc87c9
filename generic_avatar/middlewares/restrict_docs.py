import logging

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

DOCS_PATHS = {"/docs", "/redoc", "/openapi.json"}


class RestrictDocsAccessMiddleware(BaseHTTPMiddleware):
    """Документация доступна только с адресов из allowed_ips."""

    def __init__(self, app: FastAPI, allowed_ips: list[str]):
        super().__init__(app)
        self.allowed_ips = set(allowed_ips)

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else None

        if request.url.path in DOCS_PATHS and client_ip not in self.allowed_ips:
            logger.warning(f"Access denied for IP: {client_ip} to {request.url.path}")
            return JSONResponse(content={"detail": "Access to documentation is restricted"}, status_code=403)

        return await call_next(request)
