import pytest

from kohakutunnel.models.enums import LogLevel
from kohakutunnel.server.config import DEFAULT_UUID, ConfigError, TunnelConfig

from conftest import OTHER_USER_ID


def test_defaults_are_valid():
    cfg = TunnelConfig()
    cfg.validate()
    assert cfg.UUID == DEFAULT_UUID
    assert cfg.PROXY_IP == ""
    assert cfg.STRICT_UUID is False


def test_load_from_env():
    cfg = TunnelConfig().load_from_env(
        {
            "PORT": "9000",
            "UUID": OTHER_USER_ID,
            "PROXYIP": "104.16.0.1",
            "SUB_PATH": "/feed/",
            "STRICT_UUID": "true",
            "DIAL_TIMEOUT": "2.5",
            "LINK_PORT": "8443",
            "RELAY_BUFFER_SIZE": "4096",
            "LOG_LEVEL": "DEBUG",
        }
    )
    assert cfg.PORT == 9000
    assert cfg.UUID == OTHER_USER_ID
    assert cfg.PROXY_IP == "104.16.0.1"
    assert cfg.SUB_PATH == "feed"
    assert cfg.STRICT_UUID is True
    assert cfg.DIAL_TIMEOUT_SECONDS == 2.5
    assert cfg.LINK_PORT == 8443
    assert cfg.RELAY_BUFFER_SIZE == 4096
    assert cfg.LOG_LEVEL == LogLevel.DEBUG


def test_empty_env_values_keep_defaults():
    cfg = TunnelConfig().load_from_env({"PROXYIP": "", "PORT": "  "})
    assert cfg.PROXY_IP == ""
    assert cfg.PORT == 8000


@pytest.mark.parametrize(
    "env",
    [
        {"UUID": "not-a-uuid"},
        {"UUID": "a2056d0dc98e4aeb9aab37f64edd5710"},
        {"PORT": "0"},
        {"PORT": "eighty"},
        {"DIAL_TIMEOUT": "-1"},
        {"LOG_LEVEL": "verbose"},
    ],
)
def test_invalid_env_rejected(env):
    with pytest.raises(ConfigError):
        TunnelConfig().load_from_env(env)


def test_session_config_snapshot():
    cfg = TunnelConfig(
        UUID=OTHER_USER_ID.upper(),
        PROXY_IP=" 1.2.3.4 ",
        STRICT_UUID=True,
        DIAL_TIMEOUT_SECONDS=0,
    )
    settings = cfg.session_config()

    assert settings.user_id == OTHER_USER_ID
    assert settings.override_host == "1.2.3.4"
    assert settings.strict_user_id is True
    assert settings.dial_timeout is None
    assert settings.buffer_size == 32 * 1024

    # Later changes to the global-style config do not leak into the snapshot
    cfg.PROXY_IP = "5.6.7.8"
    assert settings.override_host == "1.2.3.4"
