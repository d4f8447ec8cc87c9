import json
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent.parent  # путь до корня проекта


class ConfigBase(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


class AppConfig(ConfigBase):
    model_config = SettingsConfigDict(env_prefix="APP_")

    environment: str = "dev"
    log_level: str = "DEBUG"
    service_name: str = "generic-avatar"
    language: str = "en"
    enable_docs: bool = True
    allowed_ips: list[str] = ["127.0.0.1"]
    metrics_enabled: bool = False
    sentry_dsn: str | None = None
    host: str = "0.0.0.0"
    port: int = 8080

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"

    @field_validator('allowed_ips', mode='before')
    def parse_json(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        return v


class AvatarConfig(ConfigBase):
    model_config = SettingsConfigDict(env_prefix="AVATAR_")

    # Сторона хранимого оригинала. Диапазон отдаваемых размеров (64..2048) задан в normalizer и не настраивается
    stored_max_size: int = Field(2048, ge=64, le=2048)
    max_upload_bytes: int = 20 * 1024 * 1024
    # Имена файлов, которые нельзя принимать как аватар
    blacklisted_files: list[str] = [".htaccess"]
    # Начальные байты (hex) запрещённых форматов: ELF, PE, php-скрипт
    blacklisted_signatures: list[str] = ["7f454c46", "4d5a", "3c3f706870"]
    allowed_formats: list[str] = ["PNG", "JPEG"]
    # Отдавать сгенерированную заглушку, если аватар ещё не загружен
    placeholders: bool = False

    @field_validator('blacklisted_files', 'blacklisted_signatures', 'allowed_formats', mode='before')
    def parse_json(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        return v


class DatabaseConfig(ConfigBase):
    model_config = SettingsConfigDict(env_prefix="DB_")

    url: str = f"sqlite:///{BASE_DIR / 'generic_avatars.db'}"


class LoggingConfig(ConfigBase):
    model_config = SettingsConfigDict(env_prefix="LOG_")

    # Настройки для Syslog
    syslog_host: str = "localhost"
    syslog_port: int = 1514
    syslog_enabled: bool = False

    # GRAYLOG
    graylog_host: str = "localhost"
    graylog_port: int = 12201
    graylog_enabled: bool = False


class Config(BaseSettings):
    app: AppConfig = Field(default_factory=AppConfig)
    avatar: AvatarConfig = Field(default_factory=AvatarConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls) -> "Config":
        return cls()


config = Config.load()
