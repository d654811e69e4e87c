"""Bearer token authentication for protected routes."""
from __future__ import annotations

from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import MissingTokenError
from .tokens import TokenClaims, TokenService


class TokenAuth:
    """FastAPI dependency that resolves the caller's token claims.

    A missing header and a bad token are reported differently: the former
    with 401, the latter with 400. Any valid token is accepted regardless of
    its role.
    """

    def __init__(self, tokens: TokenService):
        self._tokens = tokens
        self._bearer = HTTPBearer(auto_error=False)

    async def __call__(self, request: Request) -> TokenClaims:
        credentials: HTTPAuthorizationCredentials | None = await self._bearer(request)  # type: ignore[assignment]
        if credentials is None or credentials.scheme.lower() != "bearer":
            raise MissingTokenError()

        provided = credentials.credentials.strip()
        if not provided:
            raise MissingTokenError()

        claims = self._tokens.verify(provided)
        request.state.user = claims
        return claims


__all__ = ["TokenAuth"]
