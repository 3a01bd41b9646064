"""Tests for browserclient.core.config."""

from __future__ import annotations

import pytest

from browserclient.core.config import (
    DEFAULT_HEADERS,
    DEFAULT_MAX_CONNS_PER_HOST,
    DEFAULT_TIMEOUT,
    ClientConfig,
)


def test_default_headers_match_chrome():
    assert dict(DEFAULT_HEADERS) == {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Upgrade-Insecure-Requests": "1",
        "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/66.0.3359.181 Safari/537.36",
    }


def test_default_headers_are_read_only():
    with pytest.raises(TypeError):
        DEFAULT_HEADERS["User-Agent"] = "changed"  # type: ignore[index]


def test_defaults():
    config = ClientConfig()
    assert config.timeout == DEFAULT_TIMEOUT
    assert config.max_conns_per_host == DEFAULT_MAX_CONNS_PER_HOST == 10
    assert config.proxy == ""
    assert config.request_timeout == (DEFAULT_TIMEOUT, DEFAULT_TIMEOUT)
    assert dict(config.headers) == dict(DEFAULT_HEADERS)


def test_configs_do_not_share_header_dicts():
    first = ClientConfig()
    second = ClientConfig()
    assert first.headers is not second.headers


@pytest.mark.parametrize(
    "kwargs",
    [
        {"timeout": 0},
        {"connect_timeout": -1},
        {"max_conns_per_host": 0},
        {"max_idle_hosts": 0},
    ],
)
def test_invalid_values(kwargs):
    with pytest.raises(ValueError):
        ClientConfig(**kwargs)


def test_with_headers():
    config = ClientConfig().with_headers(Accept_Language="de-DE", X_Requested_With="XMLHttpRequest")
    assert config.headers["Accept-Language"] == "de-DE"
    assert config.headers["X-Requested-With"] == "XMLHttpRequest"
    assert ClientConfig().headers["Accept-Language"] == "en-US,en;q=0.9"


def test_from_env():
    config = ClientConfig.from_env(
        {
            "BROWSERCLIENT_TIMEOUT": "45",
            "BROWSERCLIENT_CONNECT_TIMEOUT": "5",
            "BROWSERCLIENT_MAX_CONNS_PER_HOST": "4",
            "BROWSERCLIENT_MAX_IDLE_HOSTS": "8",
            "BROWSERCLIENT_PROXY": " http://proxy.local:3128 ",
            "BROWSERCLIENT_VERIFY_TLS": "no",
            "BROWSERCLIENT_USER_AGENT": "crawler/2.0",
        }
    )
    assert config.timeout == 45.0
    assert config.request_timeout == (5.0, 45.0)
    assert config.max_conns_per_host == 4
    assert config.max_idle_hosts == 8
    assert config.proxy == "http://proxy.local:3128"
    assert config.verify is False
    assert config.headers["User-Agent"] == "crawler/2.0"
    assert config.headers["Accept"] == DEFAULT_HEADERS["Accept"]


def test_from_env_empty_uses_defaults():
    config = ClientConfig.from_env({})
    assert config == ClientConfig()


@pytest.mark.parametrize(
    "name, value",
    [
        ("BROWSERCLIENT_TIMEOUT", "soon"),
        ("BROWSERCLIENT_MAX_CONNS_PER_HOST", "1.5"),
        ("BROWSERCLIENT_VERIFY_TLS", "maybe"),
    ],
)
def test_from_env_invalid(name, value):
    with pytest.raises(ValueError, match=name):
        ClientConfig.from_env({name: value})


def test_from_env_reads_dotenv(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("BROWSERCLIENT_PROXY=socks5://localhost:9000\n", encoding="utf-8")
    # setenv first so the value loaded from the file is undone on teardown
    monkeypatch.setenv("BROWSERCLIENT_PROXY", "unused")
    monkeypatch.delenv("BROWSERCLIENT_PROXY")
    monkeypatch.setenv("BROWSERCLIENT_TIMEOUT", "12")

    config = ClientConfig.from_env(env_file=env_file)

    assert config.proxy == "socks5://localhost:9000"
    assert config.timeout == 12.0
