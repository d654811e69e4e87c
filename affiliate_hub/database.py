"""MongoDB-backed persistence for users, platforms and affiliate links."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, MongoClient
from pymongo.errors import PyMongoError

from .errors import DuplicateEmailError, PersistenceError, UnknownPlatformError
from .models import DEFAULT_ROLE, AffiliateLink, Platform, User

logger = logging.getLogger("affiliate_hub.database")

USERS = "users"
PLATFORMS = "platforms"
AFFILIATE_LINKS = "affiliatelinks"

_DUPLICATE_KEY = 11000


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class Database:
    """Thin wrapper around a :class:`pymongo.MongoClient`.

    The client (and its connection pool) is created by the caller and
    injected, so tests can hand in an in-memory client. All methods are
    blocking; async callers run them on a worker thread.
    """

    def __init__(self, client: MongoClient, name: str) -> None:
        self._client = client
        self._db = client[name]

    @classmethod
    def connect(cls, uri: str, name: str) -> "Database":
        return cls(MongoClient(uri, tz_aware=True), name)

    def initialize(self) -> None:
        """Create the indexes the store relies on."""

        try:
            self._db[USERS].create_index([("email", ASCENDING)], unique=True, name="email_unique")
            self._db[AFFILIATE_LINKS].create_index([("platformId", ASCENDING)], name="platform_lookup")
        except PyMongoError as exc:
            raise PersistenceError() from exc
        logger.info("Indexes ensured on database %s", self._db.name)

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        *,
        role: str = DEFAULT_ROLE,
    ) -> User:
        if not password_hash:
            raise ValueError("Password hash must not be empty")

        normalized_email = normalize_email(email)
        document = {
            "name": name.strip(),
            "email": normalized_email,
            "password": password_hash,
            "role": role,
            "createdAt": _current_timestamp(),
        }

        try:
            if self._db[USERS].find_one({"email": normalized_email}, {"_id": 1}) is not None:
                raise DuplicateEmailError()
            result = self._db[USERS].insert_one(document)
        except PyMongoError as exc:
            if getattr(exc, "code", None) == _DUPLICATE_KEY:
                raise DuplicateEmailError() from exc
            raise PersistenceError() from exc

        return User(id=str(result.inserted_id), name=document["name"], email=normalized_email, role=role)

    def get_user(self, user_id: str) -> Optional[User]:
        object_id = _object_id(user_id)
        if object_id is None:
            return None
        document = self._find_one(USERS, {"_id": object_id})
        return self._document_to_user(document) if document else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        document = self._find_one(USERS, {"email": normalize_email(email)})
        return self._document_to_user(document) if document else None

    def get_credentials(self, email: str) -> Optional[Tuple[User, str]]:
        """Return the user with ``email`` and its stored password hash."""

        document = self._find_one(USERS, {"email": normalize_email(email)})
        if document is None:
            return None
        return self._document_to_user(document), str(document.get("password") or "")

    # ------------------------------------------------------------------
    # Platforms
    # ------------------------------------------------------------------
    def create_platform(self, platform: Platform) -> Platform:
        try:
            result = self._db[PLATFORMS].insert_one(platform.to_document())
        except PyMongoError as exc:
            raise PersistenceError() from exc
        return Platform(
            id=str(result.inserted_id),
            name=platform.name,
            description=platform.description,
            niches=list(platform.niches),
            commission_rate=platform.commission_rate,
            api_url=platform.api_url,
            created_at=platform.created_at,
        )

    def get_platform(self, platform_id: str) -> Optional[Platform]:
        object_id = _object_id(platform_id)
        if object_id is None:
            return None
        document = self._find_one(PLATFORMS, {"_id": object_id})
        if document is None:
            return None
        return Platform(
            id=str(document["_id"]),
            name=document.get("name"),
            description=document.get("description"),
            niches=list(document.get("niches") or []),
            commission_rate=document.get("commissionRate"),
            api_url=document.get("apiUrl"),
            created_at=document.get("createdAt") or _current_timestamp(),
        )

    # ------------------------------------------------------------------
    # Affiliate links
    # ------------------------------------------------------------------
    def create_affiliate_link(self, link: AffiliateLink) -> AffiliateLink:
        """Persist ``link`` after checking that its platform exists."""

        platform_object_id = _object_id(link.platform_id)
        if platform_object_id is None or self._find_one(PLATFORMS, {"_id": platform_object_id}) is None:
            raise UnknownPlatformError()

        document: Dict[str, Any] = link.to_document()
        document["platformId"] = platform_object_id
        try:
            result = self._db[AFFILIATE_LINKS].insert_one(document)
        except PyMongoError as exc:
            raise PersistenceError() from exc
        return AffiliateLink(
            id=str(result.inserted_id),
            url=link.url,
            platform_id=link.platform_id,
            created_at=link.created_at,
        )

    def count_affiliate_links(self, platform_id: str) -> int:
        object_id = _object_id(platform_id)
        if object_id is None:
            return 0
        try:
            return self._db[AFFILIATE_LINKS].count_documents({"platformId": object_id})
        except PyMongoError as exc:
            raise PersistenceError() from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _find_one(self, collection: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            return self._db[collection].find_one(query)
        except PyMongoError as exc:
            raise PersistenceError() from exc

    def _document_to_user(self, document: Dict[str, Any]) -> User:
        return User(
            id=str(document["_id"]),
            name=str(document.get("name", "")),
            email=str(document["email"]),
            role=str(document.get("role") or DEFAULT_ROLE),
        )


__all__ = ["Database", "normalize_email"]
