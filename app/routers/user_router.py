from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import get_user_service
from app.database import get_db
from app.schemas.user import SessionToken, UserCreate, UserLogin, UserOut
from app.services.user_service import UserService

router = APIRouter()


@router.post("/register", response_model=UserOut)
async def register(
    user_in: UserCreate,
    db: AsyncSession = Depends(get_db),
    service: UserService = Depends(get_user_service),
):
    return await service.register(db, user_in.username, user_in.password)


@router.post("/login", response_model=SessionToken)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db),
    service: UserService = Depends(get_user_service),
):
    token = await service.login(db, credentials.username, credentials.password)
    return SessionToken(token=token)
