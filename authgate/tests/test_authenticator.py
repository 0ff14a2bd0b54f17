import asyncio

import pytest
from fastapi import HTTPException
from prometheus_client import REGISTRY

from authgate.authenticator import Authenticator, get_user, is_authenticated
from authgate.exceptions import AuthConfigurationError, UserLookupError
from authgate.strategies.base import AuthResult, BaseStrategy
from authgate.strategies.jwt_strategy import JwtStrategy

from conftest import make_request


class StaticStrategy(BaseStrategy):
    name = "static"

    def __init__(self, result):
        self.result = result

    async def authenticate(self, request):
        return self.result


def attempts(strategy, outcome):
    return REGISTRY.get_sample_value(
        "auth_attempts_total", {"strategy": strategy, "outcome": outcome}
    ) or 0.0


def test_use_registers_under_strategy_name(policy):
    strategy = JwtStrategy(policy, lambda payload: payload)
    auth = Authenticator().use(strategy)

    assert auth.get_strategy("jwt") is strategy


def test_use_with_explicit_name(policy):
    auth = Authenticator().use(JwtStrategy(policy, lambda payload: payload), name="api")
    assert isinstance(auth.get_strategy("api"), JwtStrategy)


def test_unknown_strategy_is_a_configuration_error():
    with pytest.raises(AuthConfigurationError):
        Authenticator().get_strategy("jwt")


def test_unuse_removes_strategy():
    auth = Authenticator().use(StaticStrategy(AuthResult.success("u")))
    auth.unuse("static")
    with pytest.raises(AuthConfigurationError):
        auth.get_strategy("static")


def test_authenticate_success_attaches_user():
    auth = Authenticator().use(StaticStrategy(AuthResult.success({"id": 1})))
    request = make_request()

    user = asyncio.run(auth.authenticate("static")(request))

    assert user == {"id": 1}
    assert get_user(request) == {"id": 1}
    assert is_authenticated(request)


def test_authenticate_fail_is_401_with_challenge(policy):
    auth = Authenticator().use(JwtStrategy(policy, lambda payload: payload))
    request = make_request()

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(auth.authenticate("jwt")(request))

    assert excinfo.value.status_code == 401
    assert excinfo.value.headers["WWW-Authenticate"] == "Bearer"
    assert not is_authenticated(request)


def test_authenticate_error_propagates():
    error = UserLookupError("user lookup failed: boom")
    auth = Authenticator().use(StaticStrategy(AuthResult.failed_with_error(error)))

    with pytest.raises(UserLookupError):
        asyncio.run(auth.authenticate("static")(make_request()))


def test_outcomes_are_counted():
    auth = Authenticator().use(StaticStrategy(AuthResult.success("u")), name="counted")
    before = attempts("counted", "success")

    asyncio.run(auth.run("counted", make_request()))

    assert attempts("counted", "success") == before + 1


def test_session_login_requires_serializer():
    auth = Authenticator().use(StaticStrategy(AuthResult.success("u")))
    with pytest.raises(AuthConfigurationError):
        asyncio.run(auth.authenticate("static", session=True)(make_request()))


def test_session_login_requires_session_middleware():
    auth = Authenticator().use(StaticStrategy(AuthResult.success("u")))
    auth.serialize_user(lambda user: user)
    with pytest.raises(AuthConfigurationError):
        asyncio.run(auth.authenticate("static", session=True)(make_request()))


def test_logout_clears_user():
    auth = Authenticator()
    request = make_request()
    asyncio.run(auth.login(request, {"id": 1}))

    auth.logout(request)

    assert get_user(request) is None
