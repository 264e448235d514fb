# backend/cardiocheck/config.py
from __future__ import annotations
import os
from functools import lru_cache
from typing import List, Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()

# 배포 환경에서는 반드시 JWT_SECRET으로 덮어써야 하는 개발용 기본값
DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"


class Settings(BaseModel):
    """프로세스 전역 설정. 시작 시 한 번 읽고 이후에는 변경하지 않습니다."""

    model_config = ConfigDict(frozen=True)

    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    token_expire_days: int = Field(30, gt=0)

    database_url: str = "sqlite+aiosqlite:///./cardiocheck.db"
    db_auto_create: bool = True

    risk_generator: Literal["openai", "rules"] = "rules"
    openai_model: str = "gpt-4o-mini"
    openai_timeout_s: float = 15.0

    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET


def _split_origins(raw: str) -> List[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


def load_settings_from_env() -> Settings:
    # OPENAI_API_KEY가 있으면 OpenAI 생성기를 기본으로 사용
    default_generator = "openai" if os.getenv("OPENAI_API_KEY") else "rules"
    values = {
        "jwt_secret": os.getenv("JWT_SECRET") or DEFAULT_JWT_SECRET,
        "jwt_algorithm": os.getenv("JWT_ALGORITHM", "HS256"),
        "token_expire_days": int(os.getenv("TOKEN_EXPIRE_DAYS", "30")),
        "database_url": os.getenv("ASYNC_DATABASE_URL", "sqlite+aiosqlite:///./cardiocheck.db"),
        "db_auto_create": os.getenv("DB_AUTO_CREATE", "true").lower() == "true",
        "risk_generator": os.getenv("RISK_GENERATOR", default_generator).lower(),
        "openai_model": os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        "openai_timeout_s": float(os.getenv("OPENAI_TIMEOUT_S", "15")),
        "log_level": os.getenv("LOG_LEVEL", "INFO").upper(),
        "host": os.getenv("HOST", "127.0.0.1"),
        "port": int(os.getenv("PORT", "8000")),
    }
    origins = os.getenv("CORS_ORIGINS")
    if origins:
        values["cors_origins"] = _split_origins(origins)
    return Settings(**values)


@lru_cache
def get_settings() -> Settings:
    return load_settings_from_env()


def get_migration_url() -> str:
    """
    Alembic 이 사용할 DB URL (async 드라이버).
    ALEMBIC_DB_URL 이 있으면 우선, 없으면 앱과 같은 ASYNC_DATABASE_URL 설정을 사용합니다.
    """
    return os.getenv("ALEMBIC_DB_URL") or get_settings().database_url
