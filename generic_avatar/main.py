import logging
from contextlib import asynccontextmanager
from typing import Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.logging import LoggingIntegration

from generic_avatar.api.routes import include_routers
from generic_avatar.config import Config, config
from generic_avatar.config.logger import setup_logging
from generic_avatar.core.dependencies import ServiceContainer, get_service_container
from generic_avatar.middlewares.restrict_docs import RestrictDocsAccessMiddleware
from generic_avatar.utils.image_processing import cleanup_executor
from generic_avatar.version import APP_VERSION

logger = logging.getLogger(config.app.service_name)


def init_sentry(settings: Config) -> None:
    # Логи не перехватываются, событиями отправляются только ERROR и выше
    sentry_logging = LoggingIntegration(
        level=None,
        event_level=logging.ERROR
    )
    sentry_sdk.init(
        dsn=settings.app.sentry_dsn,
        integrations=[sentry_logging],
        environment=settings.app.environment,
        release=APP_VERSION,
        traces_sample_rate=0.01,
        profiles_sample_rate=0,
        attach_stacktrace=False,
        ignore_errors=[KeyboardInterrupt, SystemExit]
    )


def create_app(settings: Config = config, container: Optional[ServiceContainer] = None) -> FastAPI:
    container = container or get_service_container()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container.startup()
        logger.info(f"Старт {settings.app.service_name} {APP_VERSION}")

        yield

        # Останавливаем пул потоков для обработки изображений
        cleanup_executor()
        logger.info("Завершение работы")

    if settings.app.sentry_dsn:
        init_sentry(settings)

    app = FastAPI(lifespan=lifespan,
                  title="Generic Avatar API",
                  docs_url="/docs" if settings.app.enable_docs else None,
                  redoc_url="/redoc" if settings.app.enable_docs else None,
                  openapi_url="/openapi.json" if settings.app.enable_docs else None,
                  version=APP_VERSION
                  )
    app.state.container = container

    # Настраиваем логирование
    setup_logging(
        app,
        service_name=settings.app.service_name,
        log_level=settings.app.log_level,
        syslog_enabled=settings.logging.syslog_enabled,
        syslog_host=settings.logging.syslog_host,
        syslog_port=settings.logging.syslog_port,
        graylog_enabled=settings.logging.graylog_enabled,
        graylog_host=settings.logging.graylog_host,
        graylog_port=settings.logging.graylog_port,
    )

    if settings.app.is_production:
        app.add_middleware(RestrictDocsAccessMiddleware, allowed_ips=settings.app.allowed_ips)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Подключаем маршруты
    include_routers(app)

    if settings.app.metrics_enabled:
        Instrumentator(excluded_handlers=["/metrics"]).instrument(app).expose(app)

    return app


app = create_app()


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(app, host=config.app.host, port=config.app.port, log_level=config.app.log_level.lower())
