"""HTTP client that makes outgoing requests look like a desktop browser's.

Built on top of requests: a private ``requests.Session`` owns the transport
adapters and a public-suffix aware cookie jar, and :class:`BrowserClient`
forwards only the operations it wraps.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from http.cookiejar import CookieJar
from types import TracebackType
from typing import IO, Any, Dict, Mapping, Optional, Sequence, Tuple, Type, Union
from urllib.parse import urlencode, urlparse

import requests
from requests import PreparedRequest, Request, Response
from requests.adapters import BaseAdapter, HTTPAdapter
from requests.cookies import RequestsCookieJar, merge_cookies
from requests.sessions import merge_hooks
from requests.structures import CaseInsensitiveDict
from urllib3.exceptions import LocationParseError
from urllib3.util import parse_url

from browserclient.core.config import BeforeRequest, ClientConfig
from browserclient.core.cookies import copy_cookie_jar, new_cookie_jar
from browserclient.core.errors import (
    EmptyRequestError,
    ProxyConfigError,
    SerializationError,
)

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"

PROXY_SCHEMES = frozenset({"http", "https", "socks4", "socks4a", "socks5", "socks5h"})

Body = Union[bytes, str, IO[bytes], None]
FormData = Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]


def build_transport(config: ClientConfig) -> BaseAdapter:
    """Pooled urllib3 adapter sized from ``config``; never retries."""

    return HTTPAdapter(
        pool_connections=config.max_idle_hosts,
        pool_maxsize=config.max_conns_per_host,
        max_retries=0,
    )


def resolve_proxy(proxy: Optional[str]) -> Optional[str]:
    """Validate ``proxy`` and return it, or ``None`` for a direct connection."""

    if not proxy:
        return None
    try:
        parsed = parse_url(proxy)
    except LocationParseError as exc:
        raise ProxyConfigError(proxy, str(exc)) from exc
    if not parsed.scheme:
        raise ProxyConfigError(proxy, "missing scheme")
    if parsed.scheme.lower() not in PROXY_SCHEMES:
        raise ProxyConfigError(proxy, f"unsupported scheme {parsed.scheme!r}")
    if not parsed.host:
        raise ProxyConfigError(proxy, "missing host")
    return proxy


class BrowserClient:
    """Sends requests with browser-like default headers and persistent cookies.

    One client is meant to be long-lived and shared: the session's connection
    pools and the cookie jar are safe to use from several threads at once.
    ``headers``, ``proxy`` and ``before_request`` are plain attributes; changing
    them while other threads have requests in flight is the caller's problem.

    Attributes:
        headers: Headers added to every request that does not already carry
            them (names compare case-insensitively).
        proxy: URL of a proxy used for all requests. Empty means no proxy.
            The value is only validated when a request is sent.
        before_request: Optional callable invoked with each fully prepared
            request right before it goes to the transport. It may modify the
            request in place; raising ``InterceptorRejection`` (or any other
            exception) cancels the request.
        timeout: ``(connect, read)`` timeout in seconds passed to the transport.
            This is not a total deadline: the read limit applies to each socket
            read, so a server that keeps trickling bytes can take longer.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        cookies: Optional[RequestsCookieJar] = None,
    ) -> None:
        config = config or ClientConfig()
        self._config = config

        self.headers: CaseInsensitiveDict = CaseInsensitiveDict(config.headers)
        self.proxy: str = config.proxy
        self.before_request: Optional[BeforeRequest] = config.before_request
        self.timeout: Tuple[float, float] = config.request_timeout
        self.verify: bool = config.verify

        session = requests.Session()
        # Only our own defaults and explicitly configured proxy apply.
        session.trust_env = False
        session.headers = CaseInsensitiveDict()
        session.cookies = cookies if cookies is not None else new_cookie_jar()

        factory = config.transport_factory or build_transport
        transport = factory(config)
        session.mount("http://", transport)
        session.mount("https://", transport)
        self._session = session

    def __repr__(self) -> str:
        return f"<BrowserClient proxy={self.proxy!r} timeout={self.timeout!r}>"

    def __enter__(self) -> "BrowserClient":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.close()

    @property
    def cookies(self) -> RequestsCookieJar:
        """The jar shared by every request sent through this client."""

        return self._session.cookies

    def close(self) -> None:
        """Release pooled connections held by the transport."""

        self._session.close()

    def copy(self) -> "BrowserClient":
        """Return an independent client with the same configuration.

        The copy gets its own transport and a new cookie jar pre-filled with
        copies of this client's cookies. Headers are copied; the proxy string
        and ``before_request`` hook are shared by value.
        """

        config = replace(
            self._config,
            headers=dict(self.headers),
            proxy=self.proxy,
            before_request=self.before_request,
            connect_timeout=self.timeout[0],
            timeout=self.timeout[1],
            verify=self.verify,
        )
        clone = type(self)(config, cookies=copy_cookie_jar(self.cookies))
        logger.debug("Copied client with %d cookies", len(clone.cookies))
        return clone

    def do(self, request: Optional[Request]) -> Response:
        """Send ``request`` and return the response.

        Default headers are merged in without overriding the request's own,
        ``before_request`` runs on the prepared request, and the exchange is
        delegated to the transport. Transport errors (timeouts, connection and
        TLS failures) are raised unchanged.

        Raises:
            EmptyRequestError: ``request`` is None.
            InterceptorRejection: The ``before_request`` hook vetoed the request.
            ProxyConfigError: ``proxy`` is not a valid URL.
            requests.RequestException: Any failure reported by the transport.
        """

        prepared = self.prepare_request(request)

        if self.before_request is not None:
            try:
                self.before_request(prepared)
            except Exception as exc:
                logger.debug(
                    "Request %s %s cancelled by before_request: %s",
                    prepared.method,
                    prepared.url,
                    exc,
                )
                raise

        proxy = resolve_proxy(self.proxy)
        proxies: Dict[str, str] = {"http": proxy, "https": proxy} if proxy else {}
        if proxy:
            logger.debug("Routing %s through proxy %s", prepared.url, proxy)

        logger.debug("%s %s", prepared.method, prepared.url)
        response = self._session.send(
            prepared,
            timeout=self.timeout,
            proxies=proxies,
            verify=self.verify,
            allow_redirects=True,
        )
        logger.debug(
            "%s %s returned %s",
            prepared.method,
            prepared.url,
            response.status_code,
        )
        return response

    def prepare_request(self, request: Optional[Request]) -> PreparedRequest:
        """Merge default headers and cookies into ``request`` and prepare it."""

        if request is None:
            raise EmptyRequestError()
        if not isinstance(request, Request):
            raise TypeError(
                f"expected requests.Request, got {type(request).__name__}"
            )
        request.headers = self._merge_headers(request.headers)

        # requests copies cookies into a jar with the stock policy; keep ours so
        # the Cookie header follows the same matching rules used to store them.
        cookies = copy_cookie_jar(self.cookies)
        if isinstance(request.cookies, CookieJar):
            merge_cookies(cookies, request.cookies)
        elif request.cookies:
            host = urlparse(request.url).hostname or ""
            for name, value in request.cookies.items():
                cookies.set(name, value, domain=host, path="/")

        prepared = PreparedRequest()
        prepared.prepare(
            method=request.method.upper(),
            url=request.url,
            headers=request.headers,
            files=request.files,
            data=request.data,
            json=request.json,
            params=request.params,
            auth=request.auth,
            cookies=cookies,
            hooks=merge_hooks(request.hooks, self._session.hooks),
        )
        return prepared

    def _merge_headers(self, headers: Optional[Mapping[str, str]]) -> CaseInsensitiveDict:
        """Add default headers that ``headers`` does not already set."""

        merged = CaseInsensitiveDict(headers or {})
        for name, value in self.headers.items():
            if not merged.get(name):
                merged[name] = value
        return merged

    def get(self, url: str) -> Response:
        """Make a GET request."""

        return self.do(Request("GET", url))

    def head(self, url: str) -> Response:
        """Make a HEAD request."""

        return self.do(Request("HEAD", url))

    def post(self, url: str, content_type: str, body: Body) -> Response:
        """Make a POST request with ``body`` sent as ``content_type``."""

        request = Request("POST", url, data=body, headers={"Content-Type": content_type})
        return self.do(request)

    def post_form(self, url: str, data: FormData) -> Response:
        """POST ``data`` URL-encoded as a form.

        Sequence values are sent as repeated keys.
        """

        return self.post(url, FORM_CONTENT_TYPE, urlencode(data, doseq=True))

    def post_json(self, url: str, value: Any) -> Response:
        """POST ``value`` encoded as compact JSON."""

        try:
            body = json.dumps(
                value,
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
            )
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Cannot encode request body as JSON: {exc}") from exc
        return self.post(url, JSON_CONTENT_TYPE, body.encode("utf-8"))


def new_client(config: Optional[ClientConfig] = None) -> BrowserClient:
    """Create a client from ``config``, or from the built-in defaults."""

    return BrowserClient(config)


__all__ = [
    "BrowserClient",
    "FORM_CONTENT_TYPE",
    "JSON_CONTENT_TYPE",
    "build_transport",
    "new_client",
    "resolve_proxy",
]
