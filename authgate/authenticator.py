# authgate/authenticator.py

"""
Pluggable-strategy authenticator for FastAPI / Starlette.

`Authenticator` keeps a registry of named strategies (see `authgate.strategies`)
and turns them into the three pieces a request pipeline needs:

- `authenticate(name, session=...)`: a FastAPI dependency that runs one
  strategy and either returns the user or stops the request
- `initialize()`: middleware that prepares `request.state` for authentication
- `session()`: middleware that restores a logged-in user from the session

Outcomes are handled as follows:
- success → `request.state.user` is set (and persisted in the session if asked)
- fail    → HTTP 401 with a `WWW-Authenticate: Bearer` challenge
- error   → the `AuthError` is raised into the app's exception handlers

Session support relies on Starlette's `SessionMiddleware` (itsdangerous-signed
cookie) being installed outside `session()`; `authgate.wiring` does that.
"""

import inspect
import logging
from typing import Any, Callable, Dict

from fastapi import HTTPException, Request, status
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import HTTPConnection
from starlette.responses import JSONResponse

from authgate.exceptions import AuthConfigurationError, AuthError
from authgate.metrics import AUTH_ATTEMPTS
from authgate.strategies.base import AuthResult, BaseStrategy


logger = logging.getLogger("authgate.authenticator")

# Key under which the serialized user lives in the session cookie
SESSION_KEY = "authgate.user"


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def get_user(request: HTTPConnection) -> Any:
    """The user attached to this request, or None."""
    return getattr(request.state, "user", None)


def is_authenticated(request: HTTPConnection) -> bool:
    return get_user(request) is not None


class Authenticator:
    """
    Registry of authentication strategies plus the middleware built on them.

    Example:
        auth = Authenticator()
        auth.use(JwtStrategy(policy, fetch_user))

        @app.get("/me")
        async def me(user = Depends(auth.authenticate("jwt"))):
            return user
    """

    def __init__(self) -> None:
        self._strategies: Dict[str, BaseStrategy] = {}
        self._serializer: Callable[[Any], Any] | None = None
        self._deserializer: Callable[[Any], Any] | None = None

    # ─── Strategy Registry ────────────────────────────────────────────────────
    def use(self, strategy: BaseStrategy, name: str | None = None) -> "Authenticator":
        """Register `strategy` under `name` (defaults to `strategy.name`)."""
        name = name or strategy.name
        if not name:
            raise AuthConfigurationError("authentication strategies must have a name")
        self._strategies[name] = strategy
        logger.debug("strategy registered", extra={"strategy": name})
        return self

    def unuse(self, name: str) -> "Authenticator":
        self._strategies.pop(name, None)
        return self

    def get_strategy(self, name: str) -> BaseStrategy:
        try:
            return self._strategies[name]
        except KeyError:
            raise AuthConfigurationError(f'Unknown authentication strategy "{name}"') from None

    # ─── Session Hooks ────────────────────────────────────────────────────────
    def serialize_user(self, fn: Callable[[Any], Any]) -> Callable[[Any], Any]:
        """Register how a user is reduced to a session value. Usable as a decorator."""
        self._serializer = fn
        return fn

    def deserialize_user(self, fn: Callable[[Any], Any]) -> Callable[[Any], Any]:
        """Register how a session value is turned back into a user. Usable as a decorator."""
        self._deserializer = fn
        return fn

    # ─── Login State ──────────────────────────────────────────────────────────
    async def login(self, request: HTTPConnection, user: Any, session: bool = False) -> None:
        """
        Attach `user` to the request; with `session=True` also persist it.

        Raises:
            AuthConfigurationError: If sessions are requested but no serializer
                is registered or `SessionMiddleware` is not installed.
        """
        if session:
            if self._serializer is None:
                raise AuthConfigurationError("Failed to serialize user into session")
            if "session" not in request.scope:
                raise AuthConfigurationError("session support requires SessionMiddleware")
            request.session[SESSION_KEY] = await _maybe_await(self._serializer(user))
        request.state.user = user

    def logout(self, request: HTTPConnection) -> None:
        request.state.user = None
        if "session" in request.scope:
            request.session.pop(SESSION_KEY, None)

    # ─── Authenticate ─────────────────────────────────────────────────────────
    async def run(self, name: str, request: HTTPConnection) -> AuthResult:
        """Run strategy `name` against `request` and record the outcome."""
        result = await self.get_strategy(name).authenticate(request)
        AUTH_ATTEMPTS.labels(strategy=name, outcome=result.outcome).inc()
        return result

    def authenticate(self, name: str = "jwt", session: bool = False):
        """
        Build a FastAPI dependency that authenticates with strategy `name`.

        Args:
            name (str): Registered strategy name.
            session (bool): Persist the user in the session on success.

        Returns:
            Callable: async dependency resolving to the authenticated user.
        """

        async def dependency(request: Request) -> Any:
            result = await self.run(name, request)

            if result.outcome == "error":
                raise result.error

            if result.outcome == "fail":
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail=result.error.detail,
                    headers={"WWW-Authenticate": "Bearer"},
                )

            await self.login(request, result.user, session=session)
            return result.user

        return dependency

    # ─── Pipeline Middleware ──────────────────────────────────────────────────
    def initialize(self) -> Middleware:
        return Middleware(InitializeMiddleware, authenticator=self)

    def session(self) -> Middleware:
        return Middleware(SessionAuthMiddleware, authenticator=self)

    async def restore(self, request: HTTPConnection) -> None:
        """Load the user stored in the session, if any, onto `request.state`."""
        if "session" not in request.scope or SESSION_KEY not in request.session:
            return
        if self._deserializer is None:
            raise AuthConfigurationError("Failed to deserialize user out of session")

        user = await _maybe_await(self._deserializer(request.session[SESSION_KEY]))
        if user is None:
            # Stale session value, e.g. the user was deleted
            request.session.pop(SESSION_KEY, None)
            return
        request.state.user = user


class InitializeMiddleware(BaseHTTPMiddleware):
    """
    Gives every request a clean authentication state and a handle on the
    authenticator (`request.state.authenticator`).
    """

    def __init__(self, app, authenticator: Authenticator):
        super().__init__(app)
        self.authenticator = authenticator

    async def dispatch(self, request: Request, call_next):
        request.state.authenticator = self.authenticator
        request.state.user = None
        return await call_next(request)


class SessionAuthMiddleware(BaseHTTPMiddleware):
    """
    Restores a previously logged-in user from the session cookie.

    Must sit inside `InitializeMiddleware` and inside Starlette's
    `SessionMiddleware`.
    """

    def __init__(self, app, authenticator: Authenticator):
        super().__init__(app)
        self.authenticator = authenticator

    async def dispatch(self, request: Request, call_next):
        try:
            await self.authenticator.restore(request)
        except AuthError as exc:
            # Runs outside FastAPI's exception handlers, so render here
            logger.error("session restore failed", extra={"path": request.url.path, "detail": exc.detail})
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
        return await call_next(request)
