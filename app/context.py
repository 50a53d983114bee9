import logging
from dataclasses import dataclass
from datetime import timedelta

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import sessionmaker

from app.config import Settings
from app.database import create_engine, create_session_factory
from app.middleware.auth_guard import AuthGuard
from app.services.password_service import PasswordService
from app.services.todo_service import TodoService
from app.services.token_service import TokenService
from app.services.user_service import UserService

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything a request needs, built once per application instance."""

    settings: Settings
    engine: AsyncEngine
    session_factory: sessionmaker
    tokens: TokenService
    guard: AuthGuard
    users: UserService
    todos: TodoService

    @classmethod
    def build(cls, settings: Settings, engine: AsyncEngine | None = None) -> "AppContext":
        if not settings.jwt_secret:
            logger.error("JWT_SECRET is not set; login and /todos will answer with a configuration error")
        engine = engine or create_engine(settings.database_url)
        tokens = TokenService(
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            ttl=timedelta(hours=settings.token_ttl_hours),
        )
        return cls(
            settings=settings,
            engine=engine,
            session_factory=create_session_factory(engine),
            tokens=tokens,
            guard=AuthGuard(tokens),
            users=UserService(PasswordService(), tokens),
            todos=TodoService(),
        )


def get_user_service(request: Request) -> UserService:
    return request.app.state.context.users


def get_todo_service(request: Request) -> TodoService:
    return request.app.state.context.todos
