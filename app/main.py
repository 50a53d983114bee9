from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from app.config import Settings
from app.context import AppContext
from app.database import create_schema
from app.errors import register_exception_handlers
from app.logging_config import configure_logging
from app.middleware.auth_guard import AuthGuardMiddleware
from app.routers import todo_router, user_router


def create_app(
    settings: Settings | None = None,
    *,
    engine: AsyncEngine | None = None,
    include_users: bool = True,
    include_todos: bool = True,
    title: str = "Todo API",
) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    context = AppContext.build(settings, engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.create_tables:
            await create_schema(context.engine)
        yield
        await context.engine.dispose()

    app = FastAPI(title=title, lifespan=lifespan)
    app.state.context = context
    register_exception_handlers(app)

    prefix = settings.api_prefix
    if include_users:
        app.include_router(user_router.router, prefix=f"{prefix}/users", tags=["Users"])
    if include_todos:
        app.include_router(todo_router.router, prefix=f"{prefix}/todos", tags=["Todos"])

    app.add_middleware(AuthGuardMiddleware, guard=context.guard, protected_prefixes=[f"{prefix}/todos"])
    # outermost, so rejected requests still carry CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Root health
    @app.get("/")
    async def read_root():
        return {"status": "ok"}

    return app


app = create_app()
