"""Bearer-token guard run ahead of route dispatch.

`AuthGuard.check` turns a raw Authorization header into either
`Authenticated(user_id)` or `Rejected(error)`. `AuthGuardMiddleware` applies it
to the protected path prefixes and short-circuits rejected requests, so route
handlers only ever see an already authenticated identity via `current_user_id`.
"""
import logging
from dataclasses import dataclass
from typing import Sequence, Union

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.errors import AppError, MissingAuthToken, error_response
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Authenticated:
    user_id: int


@dataclass(frozen=True)
class Rejected:
    error: AppError


AuthResult = Union[Authenticated, Rejected]


class AuthGuard:
    def __init__(self, tokens: TokenService):
        self.tokens = tokens

    @staticmethod
    def extract(header: str | None) -> str | None:
        if not header:
            return None
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return None
        return parts[1]

    def check(self, header: str | None) -> AuthResult:
        token = self.extract(header)
        if token is None:
            return Rejected(MissingAuthToken())
        try:
            return Authenticated(self.tokens.verify(token))
        except AppError as exc:
            # TokenError subclasses and MissingConfig
            return Rejected(exc)


class AuthGuardMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, guard: AuthGuard, protected_prefixes: Sequence[str]):
        super().__init__(app)
        self.guard = guard
        self.protected_prefixes = tuple(protected_prefixes)

    def is_protected(self, request: Request) -> bool:
        if request.method == "OPTIONS":
            return False
        path = request.url.path
        return any(path == p or path.startswith(p + "/") for p in self.protected_prefixes)

    async def dispatch(self, request: Request, call_next):
        if not self.is_protected(request):
            return await call_next(request)
        result = self.guard.check(request.headers.get("Authorization"))
        if isinstance(result, Rejected):
            logger.debug("Rejected %s %s: %s", request.method, request.url.path, type(result.error).__name__)
            return error_response(result.error)
        request.state.user_id = result.user_id
        return await call_next(request)


def current_user_id(request: Request) -> int:
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        # route mounted outside the guarded prefixes
        raise MissingAuthToken()
    return user_id
