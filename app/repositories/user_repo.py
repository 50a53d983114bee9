from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


class UserRepository:
    async def create(self, db: AsyncSession, username: str, password_hash: str) -> User:
        user = User(username=username, password_hash=password_hash)
        db.add(user)
        # surfaces the unique-constraint violation inside the caller's transaction
        await db.flush()
        return user

    async def username_exists(self, db: AsyncSession, username: str) -> bool:
        stmt = select(func.count()).select_from(User).where(User.username == username)
        res = await db.execute(stmt)
        return int(res.scalar_one()) > 0

    async def get_by_username(self, db: AsyncSession, username: str) -> User | None:
        res = await db.execute(select(User).where(User.username == username))
        return res.scalar_one_or_none()
