import pytest
from pydantic import ValidationError

from vtgrpc.core.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.address == "localhost:15991"
    assert settings.secure is False
    assert settings.default_timeout_seconds is None
    assert not settings.is_production


def test_reads_prefixed_environment(monkeypatch):
    monkeypatch.setenv("VTGATE_ADDRESS", "vtgate.internal:15999")
    monkeypatch.setenv("VTGATE_DEFAULT_TIMEOUT_SECONDS", "7.5")
    monkeypatch.setenv("VTGATE_LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.address == "vtgate.internal:15999"
    assert settings.default_timeout_seconds == 7.5
    assert settings.log_level == "DEBUG"


def test_rejects_unknown_environment():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, environment="qa")


def test_rejects_non_positive_timeout():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, default_timeout_seconds=0)


def test_channel_options():
    settings = Settings(_env_file=None, max_receive_message_length=2048, keepalive_time_ms=30000)

    assert settings.channel_options() == [
        ("grpc.max_receive_message_length", 2048),
        ("grpc.keepalive_time_ms", 30000),
    ]
