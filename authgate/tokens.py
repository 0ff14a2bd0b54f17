# authgate/tokens.py

"""
Token policy: signing, verification, inspection and extraction of JWTs.

This module owns every rule about what a valid token looks like:
- which claims the service stamps on a token (`iss`, `aud`, `iat`, `exp`)
- how long a token lives (1 day, or 1 year with "remember me")
- which claims are checked on the way back in
- where a token is looked for on an inbound request

The cryptography itself is PyJWT's job. PyJWT errors are translated into the
typed `TokenError` family from `authgate.exceptions`, chained to the original.

🧠 `decode()` performs no validation whatsoever. It is for inspecting a token
(debug tooling, logging a `sub`), never for deciding whether to trust it.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional

import jwt
from fastapi.security.utils import get_authorization_scheme_param
from starlette.requests import HTTPConnection

from authgate.config import AuthConfig
from authgate.exceptions import (
    AuthConfigurationError,
    ClaimMismatchError,
    ExpiredTokenError,
    InvalidSignatureError,
    MalformedTokenError,
    MissingTokenError,
    TokenError,
    TokenSigningError,
)


logger = logging.getLogger("authgate.tokens")

# Token lifetimes: "1d" by default, "1y" with remember-me
DEFAULT_EXPIRY = timedelta(days=1)
REMEMBER_ME_EXPIRY = timedelta(days=365.25)

# Claims stamped by the policy; callers may not supply their own
RESERVED_CLAIMS = ("iss", "aud", "exp")
REQUIRED_CLAIMS = ["exp", "iss", "aud"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def extract_token(request: HTTPConnection, query_param: str = "token") -> str:
    """
    Pull the bearer token out of an inbound request.

    Lookup order, first match wins:
    1. `Authorization` header whose scheme is `bearer` (any case)
    2. the `token` query parameter (name configurable)

    Args:
        request (HTTPConnection): Starlette request or websocket.
        query_param (str): Name of the query parameter to fall back to.

    Returns:
        str: The raw token, or "" when none was presented.
    """
    scheme, credentials = get_authorization_scheme_param(
        request.headers.get("authorization")
    )
    # only the first credential counts, as in "Bearer <token> <junk>"
    parts = credentials.split()
    if scheme.lower() == "bearer" and parts:
        return parts[0]

    return request.query_params.get(query_param) or ""


class TokenPolicy:
    """
    Signs and verifies tokens against one fixed `AuthConfig`.

    Args:
        config (AuthConfig): Key material, issuer and audience.
        clock (Callable[[], datetime]): Source of "now" for `iat`/`exp`.
            Defaults to the current UTC time.
    """

    def __init__(
        self,
        config: AuthConfig,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.config = config
        self._clock = clock or utcnow

    # ─── Sign ─────────────────────────────────────────────────────────────────
    def sign(self, payload: Mapping[str, Any], remember_me: bool = False) -> str:
        """
        Issue a signed token for the given claims.

        Args:
            payload (Mapping): Caller claims, e.g. {"id": 42}.
            remember_me (bool): Issue a 1 year token instead of a 1 day one.

        Returns:
            str: The compact JWS string.

        Raises:
            TokenSigningError: If the payload is not a mapping, carries a
                reserved claim, or the signing primitive fails.
        """
        if not isinstance(payload, Mapping):
            raise TokenSigningError("payload must be a mapping of claims")

        clashing = [claim for claim in RESERVED_CLAIMS if claim in payload]
        if clashing:
            raise TokenSigningError(
                f"payload already has {', '.join(repr(c) for c in clashing)}; "
                "these claims are set by the token policy"
            )

        now = self._clock()
        claims = dict(payload)
        claims.setdefault("iat", now)
        claims.update(
            iss=self.config.issuer,
            aud=self.config.audience,
            exp=now + (REMEMBER_ME_EXPIRY if remember_me else DEFAULT_EXPIRY),
        )

        try:
            return jwt.encode(claims, self.config.secret, algorithm=self.config.algorithm)
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as exc:
            logger.error("token signing failed", extra={"error": str(exc)})
            raise TokenSigningError(f"unable to sign token: {exc}") from exc

    # ─── Verify ───────────────────────────────────────────────────────────────
    def verify_claims(self, token: str) -> Dict[str, Any]:
        """
        Verify signature, issuer, audience and expiry.

        Returns:
            dict: The verified payload.

        Raises:
            MissingTokenError: If `token` is empty.
            ExpiredTokenError, ClaimMismatchError, InvalidSignatureError,
            MalformedTokenError, TokenError: On any verification failure.
            AuthConfigurationError: If the configured key or algorithm cannot
                be used for verification.
        """
        if not token:
            raise MissingTokenError()

        try:
            return jwt.decode(
                token,
                self.config.secret,
                algorithms=[self.config.algorithm],
                audience=self.config.audience,
                issuer=self.config.issuer,
                leeway=self.config.leeway_seconds,
                options={
                    "require": REQUIRED_CLAIMS,
                    # caller claims are opaque; a numeric sub or jti is legal here
                    "verify_sub": False,
                    "verify_jti": False,
                },
            )
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError(str(exc)) from exc
        except (
            jwt.InvalidIssuerError,
            jwt.InvalidAudienceError,
            jwt.MissingRequiredClaimError,
        ) as exc:
            raise ClaimMismatchError(str(exc)) from exc
        except jwt.InvalidSignatureError as exc:
            raise InvalidSignatureError(str(exc)) from exc
        except jwt.DecodeError as exc:
            raise MalformedTokenError(str(exc)) from exc
        except jwt.InvalidTokenError as exc:
            raise TokenError(str(exc)) from exc
        except jwt.PyJWTError as exc:
            logger.error("token verification misconfigured", extra={"error": str(exc)})
            raise AuthConfigurationError(f"unable to verify token: {exc}") from exc

    def verify(self, token: str):
        """
        Predicate form of `verify_claims`.

        An empty token is reported as False without raising, which lets
        callers pass `extract_token()` output straight through. Any other
        token is fully verified: the payload is returned on success and the
        typed `TokenError` is raised on failure.
        """
        if not token:
            return False
        return self.verify_claims(token)

    # ─── Inspect ──────────────────────────────────────────────────────────────
    def decode(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Read the payload WITHOUT checking signature or claims.

        Returns None when the string is not a structurally valid JWT.
        """
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.DecodeError as exc:
            logger.debug("token could not be decoded", extra={"error": str(exc)})
            return None

    def extractor(self, request: HTTPConnection) -> str:
        """`extract_token` bound to the configured query parameter name."""
        return extract_token(request, self.config.query_param)
