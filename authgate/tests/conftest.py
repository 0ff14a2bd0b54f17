import os
from datetime import datetime, timedelta, timezone

import pytest
from starlette.requests import Request

# Settings are read from the environment; make sure a key exists before
# anything calls get_settings()
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-at-least-32-bytes!!")

from authgate.config import AuthConfig, Settings  # noqa: E402
from authgate.tokens import TokenPolicy  # noqa: E402

SECRET = "test-secret-key-with-at-least-32-bytes!!"
ISSUER = "authgate-tests"
AUDIENCE = "authgate-test-clients"

# An asymmetric public key; PyJWT refuses it as an HMAC secret
PEM_PUBLIC_KEY = (
    "-----BEGIN PUBLIC KEY-----\n"
    "MFkwEwYHKoZIzj0CAQYIKoZIzj0DAQcDQgAEEVs/o5+uQbTjL3chynL4wXgUg2R9\n"
    "q9UU8I5mEovUf86QZ7kOBIjJwqnzD1omageEHWwHdBO6B+dFabmdT9POxg==\n"
    "-----END PUBLIC KEY-----\n"
)


def make_request(headers=None, query_string: str = "") -> Request:
    """Build a bare Starlette request without going through an ASGI server."""
    raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in (headers or {}).items()
    ]
    return Request({
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "server": ("testserver", 80),
        "path": "/",
        "headers": raw_headers,
        "query_string": query_string.encode("latin-1"),
    })


def aged_clock(age: timedelta):
    """A clock that runs `age` behind real time, for issuing already-old tokens."""
    return lambda: datetime.now(timezone.utc) - age


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(secret=SECRET, issuer=ISSUER, audience=AUDIENCE)


@pytest.fixture
def policy(auth_config) -> TokenPolicy:
    return TokenPolicy(auth_config)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        jwt_secret_key=SECRET,
        jwt_issuer=ISSUER,
        jwt_audience=AUDIENCE,
    )
