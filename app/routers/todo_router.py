from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import get_todo_service
from app.database import get_db
from app.middleware.auth_guard import current_user_id
from app.schemas.todo import TodoCreate, TodoOut, TodoUpdate
from app.services.todo_service import TodoService

router = APIRouter()


@router.get("", response_model=list[TodoOut])
async def list_todos(
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
    service: TodoService = Depends(get_todo_service),
):
    return await service.list_todos(db, user_id)


@router.post("", response_model=TodoOut)
async def create_todo(
    todo_in: TodoCreate,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
    service: TodoService = Depends(get_todo_service),
):
    return await service.create_todo(db, user_id, todo_in)


@router.get("/{todo_id}", response_model=TodoOut)
async def get_todo(
    todo_id: int,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
    service: TodoService = Depends(get_todo_service),
):
    return await service.get_todo(db, user_id, todo_id)


@router.put("/{todo_id}", response_model=TodoOut)
async def update_todo(
    todo_id: int,
    todo_in: TodoUpdate,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
    service: TodoService = Depends(get_todo_service),
):
    return await service.update_todo(db, user_id, todo_id, todo_in)


@router.delete("/{todo_id}", status_code=204)
async def delete_todo(
    todo_id: int,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
    service: TodoService = Depends(get_todo_service),
):
    await service.delete_todo(db, user_id, todo_id)
    return Response(status_code=204)
