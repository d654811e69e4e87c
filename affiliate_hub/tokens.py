"""Issue and verify signed bearer tokens."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from .errors import InvalidTokenError

logger = logging.getLogger("affiliate_hub.tokens")

ALGORITHM = "HS256"
DEFAULT_TTL = timedelta(hours=1)


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried inside a token."""

    id: str
    role: str


class TokenService:
    """HS256 JWTs carrying ``{id, role}`` and an expiry.

    Tokens are stateless: nothing is stored server side, so a token stays
    valid until it expires.
    """

    def __init__(self, secret: str, *, ttl: timedelta = DEFAULT_TTL) -> None:
        if not secret:
            raise ValueError("A signing secret must be provided")
        self._secret = secret
        self._ttl = ttl

    def issue(self, claims: TokenClaims) -> str:
        now = self._now()
        payload: Dict[str, Any] = {
            "id": claims.id,
            "role": claims.role,
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """Return the claims in ``token``.

        Expired, tampered and malformed tokens all raise the same
        :class:`InvalidTokenError` so callers cannot tell which check failed.
        """

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.PyJWTError as exc:
            logger.debug("Rejected token: %s", exc)
            raise InvalidTokenError() from exc

        user_id = payload.get("id")
        role = payload.get("role")
        if not isinstance(user_id, str) or not isinstance(role, str):
            raise InvalidTokenError()
        return TokenClaims(id=user_id, role=role)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)


__all__ = ["ALGORITHM", "DEFAULT_TTL", "TokenClaims", "TokenService"]
