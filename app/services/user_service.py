import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import transaction
from app.errors import NotFound, UsernameTaken
from app.repositories.user_repo import UserRepository
from app.schemas.user import UserOut
from app.services.password_service import PasswordService
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


class UserService:
    """Account registration and login."""

    def __init__(self, passwords: PasswordService, tokens: TokenService):
        self.repo = UserRepository()
        self.passwords = passwords
        self.tokens = tokens
        self._dummy_hash: str | None = None

    async def _burn_verify(self, password: str) -> None:
        # unknown usernames pay the same Argon2 cost as a wrong password
        if self._dummy_hash is None:
            self._dummy_hash = await self.passwords.hash_async("not-a-real-password")
        await self.passwords.verify_async(password, self._dummy_hash)

    async def register(self, db: AsyncSession, username: str, password: str) -> UserOut:
        async with transaction(db):
            if await self.repo.username_exists(db, username):
                raise UsernameTaken()
            password_hash = await self.passwords.hash_async(password)
            try:
                user = await self.repo.create(db, username, password_hash)
            except IntegrityError as exc:
                # a concurrent registration won the race; the unique constraint caught it
                raise UsernameTaken(str(exc.orig)) from exc
            out = UserOut.model_validate(user)
        logger.info("Registered user id=%s", out.id)
        return out

    async def authenticate(self, db: AsyncSession, username: str, password: str) -> int:
        async with transaction(db):
            user = await self.repo.get_by_username(db, username)
        # unknown user and wrong password look the same to the caller
        if user is None:
            await self._burn_verify(password)
            raise NotFound(INVALID_CREDENTIALS)
        if not await self.passwords.verify_async(password, user.password_hash):
            raise NotFound(INVALID_CREDENTIALS)
        return user.id

    async def login(self, db: AsyncSession, username: str, password: str) -> str:
        user_id = await self.authenticate(db, username, password)
        token = self.tokens.issue(user_id)
        logger.info("User id=%s logged in", user_id)
        return token
