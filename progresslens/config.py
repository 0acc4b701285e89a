"""Configuration utilities for the authoring service.

Configuration is loaded with the following rules:
- Primary source: `progresslens_config.json` at the project root.
- Overrides: text files under `config/`, then environment variables.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("progresslens_config.json")
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class AuthConfig(BaseModel):
    jwt_secret: str
    jwt_audience: Optional[str] = None
    jwt_issuer: Optional[str] = None
    algorithms: List[str] = Field(default_factory=lambda: ["HS256"])

    @field_validator("jwt_secret")
    @classmethod
    def secret_must_be_non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("auth.jwt_secret must be a non-empty string")
        return v


class AuthoringConfig(BaseModel):
    option_set_size: int = Field(default=6, gt=0, le=32)
    default_question_title: str = "設問X"
    option_title_prefix: str = "選択肢"
    access_code_batch_size: int = Field(default=5, gt=0)


class CorsConfig(BaseModel):
    origins: List[str] = Field(default_factory=lambda: ["*"])


class AppConfig(BaseModel):
    database: DatabaseConfig
    auth: AuthConfig
    authoring: AuthoringConfig
    cors: CorsConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) progresslens_config.json at project root
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or "sqlite+pysqlite:///:memory:"
    )

    jwt_secret = _env("JWT_SECRET") or _read_config_file("auth.jwt_secret") or _base("auth.jwt_secret") or ""
    jwt_audience = _env("JWT_AUDIENCE") or _read_config_file("auth.jwt_audience") or _base("auth.jwt_audience")
    jwt_issuer = _env("JWT_ISSUER") or _read_config_file("auth.jwt_issuer") or _base("auth.jwt_issuer")

    option_set_size_text = (
        _env("OPTION_SET_SIZE")
        or _read_config_file("authoring.option_set_size")
        or _base("authoring.option_set_size", "6")
    )
    access_code_batch_text = (
        _env("ACCESS_CODE_BATCH_SIZE")
        or _read_config_file("authoring.access_code_batch_size")
        or _base("authoring.access_code_batch_size", "5")
    )
    question_title = _base("authoring.default_question_title", "設問X")
    option_prefix = _base("authoring.option_title_prefix", "選択肢")

    origins_text = _env("CORS_ORIGINS") or _read_config_file("cors.origins") or _base("cors.origins", "*")
    origins = [o.strip() for o in str(origins_text).strip("[]").replace("'", "").split(",") if o.strip()]

    try:
        return AppConfig(
            database=DatabaseConfig(dsn=dsn),
            auth=AuthConfig(jwt_secret=jwt_secret, jwt_audience=jwt_audience, jwt_issuer=jwt_issuer),
            authoring=AuthoringConfig(
                option_set_size=int(str(option_set_size_text).strip()),
                default_question_title=str(question_title),
                option_title_prefix=str(option_prefix),
                access_code_batch_size=int(str(access_code_batch_text).strip()),
            ),
            cors=CorsConfig(origins=origins or ["*"]),
        )
    except (PydanticValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Return the process-wide configuration, loading it on first use."""
    return load_config()


__all__ = [
    "AppConfig",
    "AuthConfig",
    "AuthoringConfig",
    "CorsConfig",
    "DatabaseConfig",
    "get_config",
    "load_config",
]
