import logging
import socket
import sys
import time
import uuid
from typing import Callable, Optional

import graypy
from fastapi import FastAPI, Request, Response
from rfc5424logging import Rfc5424SysLogHandler
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"
# Служебные пути, запросы к которым не логируются
QUIET_PATHS = {"/metrics", "/api/health"}


class ServiceFormatter(logging.Formatter):
    """Форматтер, подставляющий значения по умолчанию для полей из extra."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "app"):
            record.app = "-"
        return super().format(record)


def request_context(request: Request, request_id: str) -> dict:
    """Поля extra для записи о запросе. Ключ аватара берётся из параметров маршрута."""
    params = request.path_params
    if "avatar_type" in params and "avatar_id" in params:
        return {
            "app": "avatar",
            "avatar": f"{params['avatar_type']}/{params['avatar_id']}",
            "request_id": request_id,
        }
    return {"app": "api", "avatar": None, "request_id": request_id}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Пишет одну запись на запрос: метод, ключ аватара (тип/id), статус и длительность.

    Идентификатор запроса берётся из заголовка X-Request-ID или генерируется
    и возвращается клиенту в том же заголовке.
    """

    def __init__(self, app: FastAPI, logger: logging.Logger):
        super().__init__(app)
        self.logger = logger

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            context = request_context(request, request_id)
            self.logger.exception(
                f"{request.method} {context['avatar'] or request.url.path} failed | request_id={request_id}",
                extra=context,
            )
            raise

        # Маршрут уже сопоставлен, параметры пути доступны
        context = request_context(request, request_id)
        elapsed = time.perf_counter() - started
        self.logger.info(
            f"{request.method} {context['avatar'] or request.url.path} -> {response.status_code} "
            f"({elapsed:.4f}s) | request_id={request_id}",
            extra={**context, "status_code": response.status_code},
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _graylog_handler(service_name: str, host: str, port: int) -> logging.Handler:
    return graypy.GELFUDPHandler(host, port, localname=service_name)


def _syslog_handler(service_name: str, host: str, port: int) -> logging.Handler:
    handler = Rfc5424SysLogHandler(
        address=(host, port),
        socktype=socket.SOCK_STREAM,
        appname=service_name,
        msg_as_utf8=True,
    )
    handler.setLevel(logging.DEBUG)
    return handler


def setup_logging(
        app: Optional[FastAPI] = None,
        service_name: str = "generic-avatar",
        log_level: str = "INFO",
        syslog_enabled: bool = False,
        syslog_host: str = "localhost",
        syslog_port: int = 1514,
        graylog_enabled: bool = False,
        graylog_host: str = "localhost",
        graylog_port: int = 12201,
) -> logging.Logger:
    """
    Настраивает корневой логгер сервиса аватаров.

    Вывод всегда идёт в stdout, Graylog (GELF/UDP) и Syslog (RFC 5424/TCP)
    подключаются флагами из LoggingConfig. Если передано приложение, в него
    добавляется RequestLoggingMiddleware.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # %(app)s заполняется через extra={"app": ...}
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ServiceFormatter(
        "%(asctime)s | %(levelname)s | %(name)s:%(lineno)d | "
        f"service={service_name} | app=%(app)s | %(message)s"
    ))
    root_logger.addHandler(console_handler)

    if graylog_enabled:
        root_logger.addHandler(_graylog_handler(service_name, graylog_host, graylog_port))

    if syslog_enabled:
        try:
            root_logger.addHandler(_syslog_handler(service_name, syslog_host, syslog_port))
        except OSError as e:
            root_logger.warning(f"Syslog handler is not available: {e}")

    logger = logging.getLogger(service_name)

    if app is not None:
        app.add_middleware(RequestLoggingMiddleware, logger=logger)

    return logger
