import logging

import pytest
from pydantic import ValidationError
from pythonjsonlogger.json import JsonFormatter

from authgate.config import Settings, get_settings
from authgate.logging_config import configure_logging

from conftest import SECRET


@pytest.mark.parametrize("algorithm", ["HS999", "none"])
def test_rejects_unusable_algorithms(algorithm):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, jwt_secret_key=SECRET, jwt_algorithm=algorithm)


def test_rejects_negative_leeway():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, jwt_secret_key=SECRET, jwt_leeway_seconds=-1)


def test_auth_config_mirrors_settings(settings):
    config = settings.auth_config()

    assert config.secret == settings.jwt_secret_key
    assert config.issuer == settings.jwt_issuer
    assert config.audience == settings.jwt_audience
    assert config.ignore_expiration is False


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("JWT_ISSUER", "env-issuer")
    monkeypatch.setenv("JWT_SESSION", "true")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.jwt_issuer == "env-issuer"
        assert settings.jwt_session is True
    finally:
        get_settings.cache_clear()


def test_configure_logging_installs_json_handler():
    configure_logging("debug")
    root = logging.getLogger()

    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
