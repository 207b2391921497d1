import pytest

from ondc_core.config import REQUIRED_VARS, Settings
from ondc_core.errors import ConfigError

BASE_ENV = {
    "ENCRYPTION_PRIVATE_KEY": "enc",
    "ONDC_PUBLIC_KEY": "reg",
    "SIGNING_PRIVATE_KEY": "sign",
    "REQUEST_ID": "req-123",
    "UNIQUE_KEY_ID": "ukid-1",
    "SUBSCRIBER_ID": "buyer.example.com",
}


def test_from_env_defaults():
    s = Settings.from_env(dict(BASE_ENV))
    assert s.subscriber_url == "https://buyer.example.com/bap"
    assert s.callback_path == "/ondc"
    assert s.header_ttl_seconds == 300
    assert s.port == 3000


def test_from_env_overrides():
    s = Settings.from_env({**BASE_ENV, "SUBSCRIBER_URL": "https://api.buyer.example.com/ondc",
                           "CALLBACK_PATH": "/cb/", "GATEWAY_URL": "https://gw.test/", "PORT": "8080"})
    assert s.subscriber_url == "https://api.buyer.example.com/ondc"
    assert s.callback_path == "/cb"
    assert s.gateway_url == "https://gw.test"
    assert s.port == 8080


@pytest.mark.parametrize("name", REQUIRED_VARS)
def test_missing_required(name):
    env = dict(BASE_ENV)
    del env[name]
    with pytest.raises(ConfigError, match=name):
        Settings.from_env(env)


def test_reads_process_environment(monkeypatch):
    for k, v in BASE_ENV.items():
        monkeypatch.setenv(k, v)
    assert Settings.from_env(dotenv=False).request_id == "req-123"


@pytest.mark.parametrize("extra", [
    {"CALLBACK_PATH": "https://buyer.example.com/ondc"},
    {"SUBSCRIBER_PATH": "bap"},
    {"GST_NO": "NOTAGST"},
    {"PORT": "eighty"},
    {"HEADER_TTL_SECONDS": "0"},
])
def test_invalid_values(extra):
    with pytest.raises(ConfigError):
        Settings.from_env({**BASE_ENV, **extra})


def test_valid_gst():
    assert Settings.from_env({**BASE_ENV, "GST_NO": "22AAAAA0000A1Z5"}).gst_no == "22AAAAA0000A1Z5"
