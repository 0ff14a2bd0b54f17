# authgate/exceptions.py

"""
Exception classes for authgate.

Every error carries a human-readable `detail` and the HTTP `status_code`
the application's exception handler answers with.

The hierarchy separates the two outcomes a caller has to tell apart:
- `TokenError` and its subclasses: the request is simply unauthenticated
  (no token, bad signature, expired, wrong issuer/audience). Rendered as 401.
- `UserLookupError`: the token was valid but the user store failed.
  Rendered as 500, never as 401.

Library errors (PyJWT, user-store callbacks) are always chained with
`raise ... from exc` so the original cause stays in the traceback.
"""


class AuthError(Exception):
    """
    Base class for every authgate error.

    Args:
        detail (str): Human-readable description of the error.
        status_code (int): HTTP status code to be returned to the client.
    """
    status_code: int = 500

    def __init__(self, detail: str, status_code: int | None = None):
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        super().__init__(detail)


# ─── Unauthenticated ──────────────────────────────────────────────────────────
class TokenError(AuthError):
    """The presented credentials do not authenticate the request."""
    status_code = 401


class MissingTokenError(TokenError):
    def __init__(self, detail: str = "No auth token"):
        super().__init__(detail)


class MalformedTokenError(TokenError):
    """The token is not a structurally valid JWT."""


class InvalidSignatureError(TokenError):
    """The signature does not match the configured key."""


class ExpiredTokenError(TokenError):
    """The `exp` claim lies in the past."""


class ClaimMismatchError(TokenError):
    """
    Issuer or audience differ from the configured values, or one of the
    required claims (`iss`, `aud`, `exp`) is absent.
    """


# ─── Server-side failures ─────────────────────────────────────────────────────
class TokenSigningError(AuthError):
    """The signing primitive rejected the payload or the key."""


class UserLookupError(AuthError):
    """
    The user-fetch callback raised.

    Raised from the callback's own exception, which is kept as `__cause__`.
    """


class AuthConfigurationError(AuthError):
    """The authenticator was wired incorrectly (unknown strategy, missing serializer)."""
