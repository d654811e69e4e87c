"""Password hashing backed by passlib's bcrypt scheme."""
from __future__ import annotations

import anyio
from passlib.context import CryptContext

DEFAULT_ROUNDS = 10
_DUMMY_PASSWORD = "affiliate-hub-unknown-account"


class PasswordHasher:
    """Salted, cost-tunable one-way hashing of user passwords.

    bcrypt is deliberately slow, so the async helpers run it on a worker
    thread and keep the event loop free for other requests.
    """

    def __init__(self, *, rounds: int = DEFAULT_ROUNDS) -> None:
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        self._dummy_hash: str | None = None

    def hash_sync(self, password: str) -> str:
        if not password:
            raise ValueError("Password must not be empty")
        return self._context.hash(password)

    def verify_sync(self, password: str, hashed: str | None) -> bool:
        if not password or not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except (ValueError, TypeError):
            return False

    def verify_dummy_sync(self, password: str) -> bool:
        """Spend one verification on a fixed hash; always returns False.

        Used when no account matches so a failed login costs the same
        whether or not the email is registered.
        """

        if self._dummy_hash is None:
            self._dummy_hash = self._context.hash(_DUMMY_PASSWORD)
        self.verify_sync(password, self._dummy_hash)
        return False

    async def hash(self, password: str) -> str:
        return await anyio.to_thread.run_sync(self.hash_sync, password)

    async def verify(self, password: str, hashed: str | None) -> bool:
        return await anyio.to_thread.run_sync(self.verify_sync, password, hashed)

    async def verify_dummy(self, password: str) -> bool:
        return await anyio.to_thread.run_sync(self.verify_dummy_sync, password)


__all__ = ["DEFAULT_ROUNDS", "PasswordHasher"]
