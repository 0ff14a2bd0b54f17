# authgate/wiring.py

"""
Wires JWT authentication into a FastAPI application.

`configure_auth()` builds the token policy and the JWT strategy from one
`AuthConfig` and publishes them on `app.state`:

- `app.state.authenticator`: the `Authenticator` with the "jwt" strategy
- `app.state.jwt`:           the `TokenPolicy` (sign / verify / decode / extractor)
- `app.state.auth`:          the ready-made "authenticate" dependency

`install_auth_middleware()` then adds the authenticator's `initialize` and
`session` middleware to the pipeline, plus Starlette's `SessionMiddleware`
when a session secret is given.

Route handlers depend on `require_user`, which resolves `app.state.auth`
per request, so routes can be declared before auth is configured.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from starlette.middleware.sessions import SessionMiddleware

from authgate.authenticator import Authenticator
from authgate.config import AuthConfig
from authgate.strategies.jwt_strategy import FetchUser, JwtStrategy
from authgate.tokens import TokenPolicy


logger = logging.getLogger("authgate.wiring")


def configure_auth(
    app: FastAPI,
    fetch_user: FetchUser,
    config: AuthConfig,
    session: bool = False,
) -> Authenticator:
    """
    Build the JWT strategy and expose it on `app.state`.

    Args:
        app (FastAPI): Application to configure.
        fetch_user (FetchUser): Resolves a verified token payload to a user.
        config (AuthConfig): Frozen token policy configuration.
        session (bool): Persist authenticated users in the session cookie.

    Returns:
        Authenticator: The configured authenticator (also on `app.state`).
    """
    policy = TokenPolicy(config)
    authenticator = Authenticator().use(JwtStrategy(policy, fetch_user))

    app.state.authenticator = authenticator
    app.state.jwt = policy
    app.state.auth = authenticator.authenticate("jwt", session=session)

    logger.info(
        "jwt authentication configured",
        extra={"issuer": config.issuer, "audience": config.audience, "session": session},
    )
    return authenticator


def install_auth_middleware(app: FastAPI, session_secret: str | None = None) -> None:
    """
    Add `initialize` and `session` middleware for the configured authenticator.

    Starlette wraps later additions around earlier ones, so the order below
    yields: SessionMiddleware → initialize → session → routes.
    """
    authenticator: Authenticator = app.state.authenticator

    for middleware in (authenticator.session(), authenticator.initialize()):
        app.add_middleware(middleware.cls, *middleware.args, **middleware.kwargs)

    if session_secret:
        app.add_middleware(SessionMiddleware, secret_key=session_secret, same_site="lax")


async def require_user(request: Request) -> Any:
    """FastAPI dependency: the user authenticated by `app.state.auth`."""
    return await request.app.state.auth(request)
