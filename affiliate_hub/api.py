"""FastAPI application exposing registration, login, platforms and affiliate links."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional

import anyio
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .config import Settings
from .database import Database
from .errors import InvalidCredentialsError, install_error_handlers
from .limiter import build_limiter
from .middleware import AccessLogMiddleware, SecurityHeadersMiddleware
from .models import AffiliateLink, Platform
from .passwords import PasswordHasher
from .scheduler import build_scheduler
from .security import TokenAuth
from .tokens import TokenClaims, TokenService
from .validation import (
    LOGIN_RULES,
    REGISTER_RULES,
    LoginRequest,
    RegisterRequest,
    validate_payload,
)

logger = logging.getLogger("affiliate_hub.api")


class MessageResponse(BaseModel):
    message: str


class CreatedResponse(BaseModel):
    message: str
    id: str


class TokenResponse(BaseModel):
    token: str


class PlatformRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    niches: List[str] = Field(default_factory=list)
    commissionRate: Optional[float] = None
    apiUrl: Optional[str] = None


class AffiliateLinkRequest(BaseModel):
    url: str = Field(..., examples=["https://example.com/offer"])
    platformId: str = Field(
        ...,
        description="Id of an existing platform. A blank id is a 400; an unknown or malformed id is a 422.",
    )


def _json_request_body(model: type[BaseModel]) -> Dict[str, Any]:
    # Handlers read the raw body so every violation can be reported together;
    # this keeps the request schema visible in the generated docs.
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema()}},
        }
    }


async def read_json_body(request: Request) -> Any:
    """Return the decoded JSON body, or an empty payload when it is missing or malformed."""

    try:
        return await request.json()
    except ValueError:
        return {}


def create_app(
    *,
    settings: Settings | None = None,
    database: Database | None = None,
    hasher: PasswordHasher | None = None,
    tokens: TokenService | None = None,
    limiter: Limiter | None = None,
    initialize_database: bool = True,
) -> FastAPI:
    """Create the API application from explicitly constructed collaborators."""

    if settings is None:
        settings = Settings.from_env()

    owns_database = database is None
    if database is None:
        database = Database.connect(settings.mongo_uri, settings.mongo_db_name)

    if hasher is None:
        hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

    if tokens is None:
        tokens = TokenService(
            settings.require_jwt_secret(),
            ttl=timedelta(seconds=settings.jwt_expires_seconds),
        )

    if limiter is None:
        limiter = build_limiter(settings.rate_limit)

    auth = TokenAuth(tokens)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if initialize_database:
            await anyio.to_thread.run_sync(database.initialize)
        scheduler = build_scheduler() if settings.enable_scheduler else None
        if scheduler is not None:
            scheduler.start()
            logger.info("Scheduler started")
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.shutdown(wait=False)
            if owns_database:
                database.close()

    app = FastAPI(
        title="Affiliate Hub API",
        description="Registration, login and affiliate link management",
        version="1.0.0",
        docs_url="/api-docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.hasher = hasher
    app.state.tokens = tokens
    app.state.limiter = limiter

    install_error_handlers(app)

    # Last added runs first.
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=settings.trusted_proxy_hosts())

    def get_db() -> Database:
        return database

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post(
        "/register",
        status_code=status.HTTP_201_CREATED,
        response_model=MessageResponse,
        openapi_extra=_json_request_body(RegisterRequest),
        tags=["auth"],
    )
    async def register(
        payload: Any = Depends(read_json_body),
        db: Database = Depends(get_db),
    ) -> MessageResponse:
        data = validate_payload(REGISTER_RULES, payload, RegisterRequest)
        password_hash = await hasher.hash(data.password)
        user = await anyio.to_thread.run_sync(db.create_user, data.name, data.email, password_hash)
        logger.info("Registered user %s", user.id)
        return MessageResponse(message="User registered successfully")

    @app.post(
        "/login",
        response_model=TokenResponse,
        openapi_extra=_json_request_body(LoginRequest),
        tags=["auth"],
    )
    async def login(
        payload: Any = Depends(read_json_body),
        db: Database = Depends(get_db),
    ) -> TokenResponse:
        data = validate_payload(LOGIN_RULES, payload, LoginRequest)
        record = await anyio.to_thread.run_sync(db.get_credentials, data.email)
        if record is None:
            await hasher.verify_dummy(data.password)
            logger.info("Login rejected: no account for the supplied email")
            raise InvalidCredentialsError()

        user, password_hash = record
        if not await hasher.verify(data.password, password_hash):
            logger.info("Login rejected: wrong password for user %s", user.id)
            raise InvalidCredentialsError()

        token = tokens.issue(TokenClaims(id=user.id, role=user.role))
        return TokenResponse(token=token)

    @app.post(
        "/platform",
        status_code=status.HTTP_201_CREATED,
        response_model=CreatedResponse,
        openapi_extra=_json_request_body(PlatformRequest),
        tags=["platforms"],
    )
    async def create_platform(
        current_user: TokenClaims = Depends(auth),
        payload: Any = Depends(read_json_body),
        db: Database = Depends(get_db),
    ) -> CreatedResponse:
        platform = Platform.from_payload(payload if isinstance(payload, Mapping) else {})
        created = await anyio.to_thread.run_sync(db.create_platform, platform)
        logger.info("User %s created platform %s", current_user.id, created.id)
        return CreatedResponse(message="Platform created successfully", id=str(created.id))

    @app.post(
        "/affiliate",
        status_code=status.HTTP_201_CREATED,
        response_model=CreatedResponse,
        openapi_extra=_json_request_body(AffiliateLinkRequest),
        tags=["affiliate links"],
    )
    async def create_affiliate_link(
        current_user: TokenClaims = Depends(auth),
        payload: Any = Depends(read_json_body),
        db: Database = Depends(get_db),
    ) -> CreatedResponse:
        data: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}
        link = AffiliateLink(url=data.get("url"), platform_id=data.get("platformId"))
        created = await anyio.to_thread.run_sync(db.create_affiliate_link, link)
        logger.info("User %s created affiliate link %s", current_user.id, created.id)
        return CreatedResponse(message="Affiliate link created successfully", id=str(created.id))

    return app


__all__ = ["create_app", "read_json_body"]
