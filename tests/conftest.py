"""Shared fixtures for the browser client tests."""

from __future__ import annotations

from email.message import Message
from http.client import HTTPMessage
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

import pytest
from requests import PreparedRequest, Response
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from browserclient.core.config import ClientConfig
from browserclient.core.http_client import BrowserClient


class RecordingAdapter(BaseAdapter):
    """Transport double that records what it is asked to send.

    Responses are canned per URL; ``Set-Cookie`` headers are exposed the way
    urllib3 exposes them so the session's cookie extraction runs for real.
    """

    def __init__(self) -> None:
        super().__init__()
        self.sent: List[Tuple[PreparedRequest, Dict[str, Any]]] = []
        self.routes: Dict[str, Tuple[int, List[Tuple[str, str]], bytes]] = {}
        self.closed = False

    @property
    def calls(self) -> int:
        return len(self.sent)

    @property
    def last_request(self) -> PreparedRequest:
        return self.sent[-1][0]

    @property
    def last_kwargs(self) -> Dict[str, Any]:
        return self.sent[-1][1]

    def add(
        self,
        url: str,
        status: int = 200,
        headers: Optional[List[Tuple[str, str]]] = None,
        body: bytes = b"",
    ) -> None:
        self.routes[url] = (status, headers or [], body)

    def send(self, request: PreparedRequest, **kwargs: Any) -> Response:
        self.sent.append((request, kwargs))
        status, headers, body = self.routes.get(request.url, (200, [], b""))

        message: Message = HTTPMessage()
        for name, value in headers:
            message[name] = value

        response = Response()
        response.status_code = status
        response.reason = "OK" if status < 400 else "Error"
        response.headers = CaseInsensitiveDict(headers)
        response.url = request.url
        response.request = request
        response.encoding = "utf-8"
        response._content = body
        response.raw = SimpleNamespace(_original_response=SimpleNamespace(msg=message))
        return response

    def close(self) -> None:
        self.closed = True


class AdapterFactory:
    """transport_factory that remembers every adapter it built."""

    def __init__(self) -> None:
        self.built: List[RecordingAdapter] = []

    def __call__(self, config: ClientConfig) -> RecordingAdapter:
        adapter = RecordingAdapter()
        self.built.append(adapter)
        return adapter

    @property
    def last(self) -> RecordingAdapter:
        return self.built[-1]


@pytest.fixture
def factory() -> AdapterFactory:
    return AdapterFactory()


@pytest.fixture
def client(factory: AdapterFactory) -> BrowserClient:
    return BrowserClient(ClientConfig(transport_factory=factory))


@pytest.fixture
def transport(client: BrowserClient, factory: AdapterFactory) -> RecordingAdapter:
    return factory.last
