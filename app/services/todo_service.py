import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.database import transaction
from app.errors import NotFound
from app.repositories.todo_repo import TodoRepository
from app.schemas.todo import TodoCreate, TodoOut, TodoUpdate

logger = logging.getLogger(__name__)

# ids are INTEGER columns; anything outside that range cannot name a stored row
MAX_TODO_ID = 2**31 - 1


def _storable(todo_id: int) -> bool:
    return 1 <= todo_id <= MAX_TODO_ID


class TodoService:
    def __init__(self):
        self.repo = TodoRepository()

    async def list_todos(self, db: AsyncSession, owner_id: int) -> list[TodoOut]:
        async with transaction(db):
            return await self.repo.list(db, owner_id)

    async def get_todo(self, db: AsyncSession, owner_id: int, todo_id: int) -> TodoOut:
        if not _storable(todo_id):
            raise NotFound("Todo not found")
        async with transaction(db):
            todo = await self.repo.get(db, owner_id, todo_id)
        if todo is None:
            raise NotFound("Todo not found")
        return todo

    async def create_todo(self, db: AsyncSession, owner_id: int, todo_in: TodoCreate) -> TodoOut:
        async with transaction(db):
            todo = await self.repo.create(db, owner_id, todo_in)
        logger.info("Created todo id=%s for user id=%s", todo.id, owner_id)
        return todo

    async def update_todo(self, db: AsyncSession, owner_id: int, todo_id: int, todo_in: TodoUpdate) -> TodoOut:
        matched = 0
        if _storable(todo_id):
            async with transaction(db):
                matched = await self.repo.update(db, owner_id, todo_id, todo_in)
        if not matched:
            logger.debug("Update of todo id=%s by user id=%s matched no row", todo_id, owner_id)
        return TodoOut(**todo_in.model_dump(exclude={"id"}), id=todo_id)

    async def delete_todo(self, db: AsyncSession, owner_id: int, todo_id: int) -> None:
        if not _storable(todo_id):
            raise NotFound("Todo not found")
        async with transaction(db):
            deleted = await self.repo.delete(db, owner_id, todo_id)
            if not deleted:
                raise NotFound("Todo not found")
        logger.info("Deleted todo id=%s for user id=%s", todo_id, owner_id)
