from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

from sqlalchemy import delete as sa_delete, select, update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.todo import Reminder, Todo, repeat_from_db, repeat_to_db
from app.schemas.todo import TodoCreate, TodoOut, TodoUpdate


def _to_out(todo: Todo, reminders: Sequence[datetime]) -> TodoOut:
    return TodoOut(
        id=todo.id,
        title=todo.title,
        description=todo.description,
        due=todo.due,
        reminder=list(reminders),
        repeat=repeat_from_db(todo.repeat),
        completed=todo.completed,
    )


class TodoRepository:
    """Todo rows and their reminder sets.

    Every statement is filtered by owner, either directly or through a todo id
    that has already been checked against the owner. Transactions are opened by
    the caller; nothing here commits.
    """

    async def list(self, db: AsyncSession, owner_id: int) -> list[TodoOut]:
        res = await db.execute(
            select(Todo).where(Todo.owner_id == owner_id).order_by(Todo.id)
        )
        todos = list(res.scalars().all())
        grouped = await self._reminders_by_todo(db, [t.id for t in todos])
        return [_to_out(t, grouped.get(t.id, [])) for t in todos]

    async def get(self, db: AsyncSession, owner_id: int, todo_id: int) -> TodoOut | None:
        todo = await self._owned(db, owner_id, todo_id)
        if todo is None:
            return None
        grouped = await self._reminders_by_todo(db, [todo.id])
        return _to_out(todo, grouped.get(todo.id, []))

    async def create(self, db: AsyncSession, owner_id: int, todo_in: TodoCreate) -> TodoOut:
        todo = Todo(
            owner_id=owner_id,
            title=todo_in.title,
            description=todo_in.description,
            due=todo_in.due,
            repeat=repeat_to_db(todo_in.repeat),
            completed=False,
        )
        db.add(todo)
        await db.flush()
        await self._insert_reminders(db, todo.id, todo_in.reminder)
        return TodoOut(id=todo.id, completed=False, **todo_in.model_dump())

    async def update(self, db: AsyncSession, owner_id: int, todo_id: int, todo_in: TodoUpdate) -> int:
        """Replaces the todo and its reminder set; returns the number of todo rows matched."""
        stmt = (
            sa_update(Todo)
            .where(Todo.id == todo_id, Todo.owner_id == owner_id)
            .values(
                title=todo_in.title,
                description=todo_in.description,
                due=todo_in.due,
                repeat=repeat_to_db(todo_in.repeat),
                completed=todo_in.completed,
            )
            .execution_options(synchronize_session=False)
        )
        res = await db.execute(stmt)
        matched = res.rowcount or 0
        if matched:
            await self._delete_reminders(db, todo_id)
            await self._insert_reminders(db, todo_id, todo_in.reminder)
        return matched

    async def delete(self, db: AsyncSession, owner_id: int, todo_id: int) -> bool:
        if await self._owned(db, owner_id, todo_id) is None:
            return False
        await self._delete_reminders(db, todo_id)
        res = await db.execute(
            sa_delete(Todo)
            .where(Todo.id == todo_id, Todo.owner_id == owner_id)
            .execution_options(synchronize_session=False)
        )
        return (res.rowcount or 0) > 0

    async def _owned(self, db: AsyncSession, owner_id: int, todo_id: int) -> Todo | None:
        res = await db.execute(
            select(Todo).where(Todo.id == todo_id, Todo.owner_id == owner_id)
        )
        return res.scalar_one_or_none()

    async def _reminders_by_todo(self, db: AsyncSession, todo_ids: list[int]) -> dict[int, list[datetime]]:
        grouped: dict[int, list[datetime]] = {todo_id: [] for todo_id in todo_ids}
        if not todo_ids:
            return grouped
        res = await db.execute(
            select(Reminder.todo_id, Reminder.timestamp)
            .where(Reminder.todo_id.in_(todo_ids))
            .order_by(Reminder.id)
        )
        for todo_id, timestamp in res.all():
            grouped[todo_id].append(timestamp)
        return grouped

    async def _insert_reminders(self, db: AsyncSession, todo_id: int, timestamps: Iterable[datetime]) -> None:
        # one flush per row keeps ids, and so list order, in submission order
        for ts in timestamps:
            db.add(Reminder(todo_id=todo_id, timestamp=ts))
            await db.flush()

    async def _delete_reminders(self, db: AsyncSession, todo_id: int) -> None:
        await db.execute(
            sa_delete(Reminder)
            .where(Reminder.todo_id == todo_id)
            .execution_options(synchronize_session=False)
        )
