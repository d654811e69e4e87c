from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path
from typing import Iterator

import mongomock
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from affiliate_hub.api import create_app
from affiliate_hub.config import Settings
from affiliate_hub.database import Database
from affiliate_hub.limiter import build_limiter
from affiliate_hub.passwords import PasswordHasher
from affiliate_hub.tokens import TokenService

SECRET = "tests-signing-secret-0123456789abcdef"
EMAIL = "user@example.com"
PASSWORD = "super-secret"


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        jwt_secret=SECRET,
        enable_scheduler=False,
        bcrypt_rounds=4,
        client_origin="http://frontend.test",
    )


@pytest.fixture()
def database() -> Database:
    db = Database(mongomock.MongoClient(), "affiliate_hub_tests")
    db.initialize()
    return db


@pytest.fixture()
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture()
def tokens() -> TokenService:
    return TokenService(SECRET, ttl=timedelta(hours=1))


@pytest.fixture()
def app(settings: Settings, database: Database, hasher: PasswordHasher, tokens: TokenService) -> FastAPI:
    return create_app(
        settings=settings,
        database=database,
        hasher=hasher,
        tokens=tokens,
        limiter=build_limiter("1000/minute"),
    )


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
