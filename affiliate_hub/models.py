"""Domain records stored by the affiliate API."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from .errors import ValidationError
from .validation import Violation

DEFAULT_ROLE = "user"

URL_PATTERN = re.compile(r"^(ftp|http|https)://[^ \"]+$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class User:
    """Represents an account; the password hash never leaves the store layer."""

    id: str
    name: str
    email: str
    role: str = DEFAULT_ROLE


@dataclass(frozen=True)
class Platform:
    """An affiliate network or merchant programme links point into."""

    name: Optional[str]
    description: Optional[str] = None
    niches: List[str] = field(default_factory=list)
    commission_rate: Optional[float] = None
    api_url: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Platform":
        """Build a platform from a request body, checking only value types."""

        violations: List[Violation] = []

        name = payload.get("name")
        if name is not None and not isinstance(name, str):
            violations.append(Violation("name", "Name must be a string"))

        description = payload.get("description")
        if description is not None and not isinstance(description, str):
            violations.append(Violation("description", "Description must be a string"))

        raw_niches = payload.get("niches")
        niches: List[str] = []
        if raw_niches is not None:
            if isinstance(raw_niches, list) and all(isinstance(item, str) for item in raw_niches):
                niches = list(raw_niches)
            else:
                violations.append(Violation("niches", "Niches must be a list of strings"))

        commission_rate = payload.get("commissionRate")
        if commission_rate is not None:
            if isinstance(commission_rate, bool) or not isinstance(commission_rate, (int, float)):
                violations.append(Violation("commissionRate", "Commission rate must be a number"))
            else:
                commission_rate = float(commission_rate)

        api_url = payload.get("apiUrl")
        if api_url is not None and not isinstance(api_url, str):
            violations.append(Violation("apiUrl", "API URL must be a string"))

        if violations:
            raise ValidationError(violations)

        return cls(
            name=name,
            description=description,
            niches=niches,
            commission_rate=commission_rate,
            api_url=api_url,
        )

    def to_document(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "niches": list(self.niches),
            "commissionRate": self.commission_rate,
            "apiUrl": self.api_url,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class AffiliateLink:
    """A tracked URL belonging to a platform."""

    url: str
    platform_id: str
    created_at: datetime = field(default_factory=_utcnow)
    id: Optional[str] = None

    def __post_init__(self) -> None:
        violations: List[Violation] = []
        if not isinstance(self.url, str) or not URL_PATTERN.match(self.url):
            violations.append(Violation("url", "Please provide a valid URL"))
        if not isinstance(self.platform_id, str) or not self.platform_id.strip():
            violations.append(Violation("platformId", "Platform ID is required"))
        if violations:
            raise ValidationError(violations)

    def to_document(self) -> dict:
        return {
            "url": self.url,
            "platformId": self.platform_id,
            "createdAt": self.created_at,
        }


__all__ = ["AffiliateLink", "DEFAULT_ROLE", "Platform", "URL_PATTERN", "User"]
