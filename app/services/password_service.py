from argon2.exceptions import HashingError as Argon2HashingError
from fastapi.concurrency import run_in_threadpool
from pwdlib import PasswordHash
from pwdlib.exceptions import PwdlibError

from app.errors import HashingError


class PasswordService:
    """Argon2 password hashing (salted per call, parameters embedded in the hash)."""

    def __init__(self, hasher: PasswordHash | None = None):
        self.hasher = hasher or PasswordHash.recommended()

    def hash(self, plaintext: str) -> str:
        try:
            return self.hasher.hash(plaintext)
        except (Argon2HashingError, PwdlibError) as exc:
            raise HashingError(f"hashing failed: {exc}") from exc

    def verify(self, plaintext: str, hash_string: str) -> bool:
        # A wrong password is a plain False; only an unreadable hash is an error.
        try:
            return self.hasher.verify(plaintext, hash_string)
        except PwdlibError as exc:
            raise HashingError(f"stored hash is not verifiable: {exc}") from exc

    async def hash_async(self, plaintext: str) -> str:
        return await run_in_threadpool(self.hash, plaintext)

    async def verify_async(self, plaintext: str, hash_string: str) -> bool:
        return await run_in_threadpool(self.verify, plaintext, hash_string)
