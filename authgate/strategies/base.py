# authgate/strategies/base.py

"""
Defines `BaseStrategy`, the contract for every authentication strategy,
and `AuthResult`, the value a strategy hands back to the authenticator.

A strategy answers exactly one question for one request: who is this?
It does not touch the response, the session or `request.state`; that is
the authenticator's job once it has the result.

The three possible answers mirror the outcomes the rest of the app has to
distinguish:
- success: credentials are valid and resolved to a user
- fail:    the request is unauthenticated (missing, bad or expired token)
- error:   something broke while checking (e.g. the user store raised)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal, Optional

from starlette.requests import HTTPConnection

from authgate.exceptions import AuthError, TokenError


@dataclass(frozen=True)
class AuthResult:
    outcome: Literal["success", "fail", "error"]
    user: Any = None
    error: Optional[AuthError] = None

    @classmethod
    def success(cls, user: Any) -> "AuthResult":
        return cls("success", user=user)

    @classmethod
    def fail(cls, error: TokenError) -> "AuthResult":
        return cls("fail", error=error)

    @classmethod
    def failed_with_error(cls, error: AuthError) -> "AuthResult":
        return cls("error", error=error)

    @property
    def ok(self) -> bool:
        return self.outcome == "success"


class BaseStrategy(ABC):
    """
    Abstract base class for authentication strategies.

    Subclasses set `name`, the key the authenticator registers them under.
    """

    name: str = ""

    @abstractmethod
    async def authenticate(self, request: HTTPConnection) -> AuthResult:
        """
        Authenticate a single inbound request.

        Args:
            request (HTTPConnection): The Starlette request being handled.

        Returns:
            AuthResult: success, fail or error. Implementations report
            problems through the result instead of raising.
        """
        ...
