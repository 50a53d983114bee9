from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict

import jwt

from app.errors import ExpiredToken, InvalidToken, MalformedToken, MissingConfig


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies stateless JWT bearer tokens.

    There is no revocation list: a token stays valid until its `exp` passes.
    """

    def __init__(
        self,
        secret: str | None,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = ttl
        self.clock = clock

    def _require_secret(self) -> str:
        if not self.secret:
            raise MissingConfig("JWT_SECRET is not set")
        return self.secret

    def issue(self, user_id: int) -> str:
        secret = self._require_secret()
        now = self.clock()
        payload: Dict[str, Any] = {
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        secret = self._require_secret()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"], "verify_exp": False},
            )
        except jwt.DecodeError as exc:
            # also covers bad signatures, which PyJWT reports as a DecodeError subclass
            if isinstance(exc, jwt.InvalidSignatureError):
                raise InvalidToken(f"bad signature: {exc}") from exc
            raise MalformedToken(f"undecodable token: {exc}") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidToken(f"rejected token: {exc}") from exc

        # expiry is checked against the injected clock rather than PyJWT's wall clock
        exp = payload["exp"]
        if not isinstance(exp, (int, float)):
            raise InvalidToken(f"non-numeric exp claim: {exp!r}")
        if exp <= self.clock().timestamp():
            raise ExpiredToken(f"token expired at {exp}")

        try:
            return int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise InvalidToken(f"subject is not a user id: {payload['sub']!r}") from exc
