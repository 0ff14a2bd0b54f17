# authgate/strategies/jwt_strategy.py

"""
JWT bearer strategy.

Per request:
1. extract the token (Authorization header, then `?token=`)
2. verify signature, issuer, audience and expiry through `TokenPolicy`
3. hand the verified payload to the injected `fetch_user` callback

The user store is never touched directly: `fetch_user` is a capability
passed in at construction. It may be a plain function or a coroutine
function, and it may return None to signal "no such user". Any other
value, including an empty mapping, is the authenticated user.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Union

from starlette.requests import HTTPConnection

from authgate.exceptions import AuthConfigurationError, TokenError, UserLookupError
from authgate.strategies.base import AuthResult, BaseStrategy
from authgate.tokens import TokenPolicy


logger = logging.getLogger("authgate.strategies.jwt")

FetchUser = Callable[[Dict[str, Any]], Union[Any, Awaitable[Any]]]


class JwtStrategy(BaseStrategy):
    """
    Authenticates requests carrying a JWT signed under `policy`.

    Args:
        policy (TokenPolicy): Verifies tokens against the fixed configuration.
        fetch_user (FetchUser): Resolves a verified payload to a user object.
    """

    name = "jwt"

    def __init__(self, policy: TokenPolicy, fetch_user: FetchUser) -> None:
        self.policy = policy
        self.fetch_user = fetch_user

    async def authenticate(self, request: HTTPConnection) -> AuthResult:
        token = self.policy.extractor(request)

        try:
            payload = self.policy.verify_claims(token)
        except TokenError as exc:
            logger.info(
                "jwt rejected",
                extra={"path": request.url.path, "reason": type(exc).__name__, "detail": exc.detail},
            )
            return AuthResult.fail(exc)
        except AuthConfigurationError as exc:
            return AuthResult.failed_with_error(exc)

        try:
            user = self.fetch_user(payload)
            if inspect.isawaitable(user):
                user = await user
        except Exception as exc:
            logger.exception("user lookup failed", extra={"path": request.url.path})
            error = UserLookupError(f"user lookup failed: {exc}")
            error.__cause__ = exc
            return AuthResult.failed_with_error(error)

        if user is None:
            logger.info("jwt valid but no user resolved", extra={"path": request.url.path})
            return AuthResult.fail(TokenError("User not found"))

        return AuthResult.success(user)
