"""Client configuration and the browser-like header defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Dict, Mapping, Optional

from browserclient.core.env_loader import load_env_file

if TYPE_CHECKING:
    from requests import PreparedRequest
    from requests.adapters import BaseAdapter

ENV_PREFIX = "BROWSERCLIENT_"

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_CONNS_PER_HOST = 10
DEFAULT_MAX_IDLE_HOSTS = 100

# Headers sent by a desktop Chrome; sites scraped with earlier releases rely on
# these exact values.
DEFAULT_HEADERS: Mapping[str, str] = MappingProxyType(
    {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Upgrade-Insecure-Requests": "1",
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/66.0.3359.181 Safari/537.36"
        ),
    }
)

BeforeRequest = Callable[["PreparedRequest"], None]
TransportFactory = Callable[["ClientConfig"], "BaseAdapter"]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _default_headers() -> Dict[str, str]:
    return dict(DEFAULT_HEADERS)


@dataclass(frozen=True)
class ClientConfig:
    """Settings a BrowserClient is constructed from.

    Build one config and hand it to every ``new_client`` call that should
    share the same defaults; clients copy what they need and never write back.

    ``timeout`` is the per-read socket timeout and ``connect_timeout`` bounds
    connection setup. Neither caps the total duration of a request.
    """

    timeout: float = DEFAULT_TIMEOUT
    connect_timeout: Optional[float] = None
    headers: Mapping[str, str] = field(default_factory=_default_headers)
    max_conns_per_host: int = DEFAULT_MAX_CONNS_PER_HOST
    max_idle_hosts: int = DEFAULT_MAX_IDLE_HOSTS
    proxy: str = ""
    verify: bool = True
    before_request: Optional[BeforeRequest] = None
    transport_factory: Optional[TransportFactory] = None

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.connect_timeout is not None and self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive")
        if self.max_conns_per_host < 1:
            raise ValueError("max_conns_per_host must be at least 1")
        if self.max_idle_hosts < 1:
            raise ValueError("max_idle_hosts must be at least 1")

    @property
    def request_timeout(self) -> tuple[float, float]:
        """``(connect, read)`` pair in the form requests expects."""

        connect = self.connect_timeout if self.connect_timeout is not None else self.timeout
        return connect, self.timeout

    def with_headers(self, **headers: str) -> "ClientConfig":
        """Return a copy whose default headers are extended with ``headers``.

        Keyword names use underscores in place of dashes, so
        ``with_headers(Accept_Language="de")`` sets ``Accept-Language``.
        """

        merged = dict(self.headers)
        for name, value in headers.items():
            merged[name.replace("_", "-")] = value
        return replace(self, headers=merged)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Path | None = None,
    ) -> "ClientConfig":
        """Resolve a config from ``BROWSERCLIENT_*`` environment variables."""

        if environ is None:
            load_env_file(env_file)
            environ = os.environ

        headers = _default_headers()
        user_agent = environ.get(f"{ENV_PREFIX}USER_AGENT")
        if user_agent:
            headers["User-Agent"] = user_agent

        connect_timeout = environ.get(f"{ENV_PREFIX}CONNECT_TIMEOUT")
        return cls(
            timeout=_env_number(environ, "TIMEOUT", float, DEFAULT_TIMEOUT),
            connect_timeout=(
                _env_number(environ, "CONNECT_TIMEOUT", float, DEFAULT_TIMEOUT)
                if connect_timeout
                else None
            ),
            headers=headers,
            max_conns_per_host=_env_number(
                environ, "MAX_CONNS_PER_HOST", int, DEFAULT_MAX_CONNS_PER_HOST
            ),
            max_idle_hosts=_env_number(
                environ, "MAX_IDLE_HOSTS", int, DEFAULT_MAX_IDLE_HOSTS
            ),
            proxy=environ.get(f"{ENV_PREFIX}PROXY", "").strip(),
            verify=_env_flag(environ, "VERIFY_TLS", True),
        )


def _env_number(environ: Mapping[str, str], name: str, cast, default):
    raw = environ.get(f"{ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from exc


def _env_flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(f"{ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")


__all__ = [
    "BeforeRequest",
    "ClientConfig",
    "DEFAULT_HEADERS",
    "DEFAULT_MAX_CONNS_PER_HOST",
    "DEFAULT_MAX_IDLE_HOSTS",
    "DEFAULT_TIMEOUT",
    "TransportFactory",
]
