import os
from functools import lru_cache
from typing import Literal, MutableMapping

from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL


def map_legacy_env(environ: MutableMapping[str, str] = os.environ) -> None:
    """Translate unprefixed deployment variables to the names Settings reads.

    Older deployments configure the database through bare DB_HOST / DB_NAME /
    DB_USER / DB_PASS keys, and hosts set PORT. Prefixed values always win.
    """
    if "DB_HOST" in environ and "VOLUNTEER_DATABASE_URL" not in environ:
        url = URL.create(
            "mysql+aiomysql",
            username=environ.get("DB_USER"),
            password=environ.get("DB_PASS"),
            host=environ["DB_HOST"],
            database=environ.get("DB_NAME"),
            query={"charset": "utf8mb4"},
        )
        environ["VOLUNTEER_DATABASE_URL"] = url.render_as_string(hide_password=False)

    if "PORT" in environ and "VOLUNTEER_PORT" not in environ:
        environ["VOLUNTEER_PORT"] = environ["PORT"]


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./volunteers.db"
    STORAGE_TIMEOUT: float = 5.0
    AUTO_CREATE_TABLES: bool = True
    SESSION_BACKEND: Literal["signed", "memory"] = "signed"
    SESSION_SECRET: str = "dev-secret-change-in-production"
    SESSION_ALGORITHM: str = "HS256"
    SESSION_EXPIRE_MINUTES: int = 1440
    SESSION_COOKIE_NAME: str = "volunteer_session"
    SESSION_COOKIE_SECURE: bool = False
    DASHBOARD_REDIRECT: str = "../pages/volunteer-dashboard.html"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: list[str] = ["http://localhost:8080"]

    model_config = {"env_prefix": "VOLUNTEER_", "env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    map_legacy_env()
    return Settings()
