"""Runtime configuration for the affiliate API."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Values read from the environment once at startup."""

    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db_name: str = "affiliate_hub"
    jwt_secret: Optional[str] = None
    jwt_expires_seconds: int = 3600
    client_origin: str = "http://localhost:3000"
    port: int = 5000
    rate_limit: str = "100/15minutes"
    bcrypt_rounds: int = 10
    enable_scheduler: bool = True
    log_level: str = "INFO"
    trusted_proxies: str = "127.0.0.1"

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "Settings":
        """Build settings from ``os.environ``, optionally seeded from ``.env``."""

        if dotenv:
            load_dotenv()

        return cls(
            mongo_uri=os.getenv("MONGO_URI", cls.mongo_uri),
            mongo_db_name=os.getenv("MONGO_DB_NAME", cls.mongo_db_name),
            jwt_secret=os.getenv("JWT_SECRET") or None,
            jwt_expires_seconds=_env_int("JWT_EXPIRES_SECONDS", cls.jwt_expires_seconds),
            client_origin=os.getenv("CLIENT_ORIGIN", cls.client_origin),
            port=_env_int("PORT", cls.port),
            rate_limit=os.getenv("RATE_LIMIT", cls.rate_limit),
            bcrypt_rounds=_env_int("BCRYPT_ROUNDS", cls.bcrypt_rounds),
            enable_scheduler=_env_flag(os.getenv("ENABLE_SCHEDULER"), cls.enable_scheduler),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            trusted_proxies=os.getenv("TRUSTED_PROXIES", cls.trusted_proxies),
        )

    def trusted_proxy_hosts(self) -> list[str] | str:
        raw = self.trusted_proxies.strip()
        if raw == "*":
            return "*"
        hosts = [item.strip() for item in raw.split(",") if item.strip()]
        return hosts or "127.0.0.1"

    def require_jwt_secret(self) -> str:
        if not self.jwt_secret:
            raise RuntimeError("JWT_SECRET must be configured to issue and verify tokens")
        return self.jwt_secret


__all__ = ["Settings"]
