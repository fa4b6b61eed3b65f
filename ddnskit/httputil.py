"""HTTP client construction, a small request model and response handling."""

import json
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import parse_qs, unquote, urlsplit

import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict

from ddnskit.messages import log_str

DEFAULT_TIMEOUT = 30.0
MAX_BODY_SIZE = 1024000


class _TLSSettings:
    verify = True


_tls_settings = _TLSSettings()


class HTTPResponseError(Exception):
    """Raised when a response carries a status code of 300 or above."""

    def __init__(self, body: bytes, status_code: int) -> None:
        self.body = body
        self.status_code = status_code
        super().__init__(
            log_str(
                "返回内容: %s ,返回状态码: %d",
                body.decode("utf-8", errors="replace"),
                status_code,
            )
        )


@dataclass
class Request:
    """An outgoing HTTP request that signers read from and add headers to."""

    method: str
    url: str
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: Optional[bytes] = None

    def __post_init__(self) -> None:
        self.headers = CaseInsensitiveDict(self.headers)

    @property
    def host(self) -> str:
        return urlsplit(self.url).netloc

    def path(self) -> str:
        """Return the unescaped URL path."""
        return unquote(urlsplit(self.url).path)

    def query(self) -> dict[str, list[str]]:
        """Return the query parameters, each with all its values."""
        return parse_qs(urlsplit(self.url).query, keep_blank_values=True)


class _Client(requests.Session):
    """A session with a default timeout that honours the TLS verify setting."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        super().__init__()
        self.timeout = timeout

    def request(self, method, url, **kwargs):
        kwargs.setdefault("timeout", self.timeout)
        if not _tls_settings.verify:
            kwargs["verify"] = False
        return super().request(method, url, **kwargs)


class _FamilyAdapter(HTTPAdapter):
    """Binds outgoing sockets to a wildcard address of one address family."""

    def __init__(self, source_host: str, **kwargs) -> None:
        self._source_address = (source_host, 0)
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        kwargs["source_address"] = self._source_address
        super().init_poolmanager(*args, **kwargs)


def create_http_client() -> requests.Session:
    """Return a client that uses proxies from the environment."""
    return _Client()


def create_no_proxy_http_client(network: str) -> requests.Session:
    """Return a client without proxies or keep-alive, restricted to IPv4 or IPv6."""
    client = _Client()
    client.trust_env = False
    client.headers["Connection"] = "close"
    source_host = "::" if network == "tcp6" else "0.0.0.0"
    for prefix in ("http://", "https://"):
        client.mount(prefix, _FamilyAdapter(source_host))
    return client


def set_insecure_skip_verify() -> None:
    """Disable TLS certificate verification for every client."""
    _tls_settings.verify = False


def get_http_response_org(resp: requests.Response) -> bytes:
    """Read at most ``MAX_BODY_SIZE`` bytes of the body; raise on status >= 300."""
    try:
        chunks = []
        size = 0
        for chunk in resp.iter_content(65536):
            chunks.append(chunk)
            size += len(chunk)
            if size >= MAX_BODY_SIZE:
                break
        body = b"".join(chunks)[:MAX_BODY_SIZE]
    finally:
        resp.close()

    if resp.status_code >= 300:
        raise HTTPResponseError(body, resp.status_code)
    return body


def get_http_response(resp: requests.Response) -> Any:
    """Return the decoded JSON body, or None when the body is empty."""
    body = get_http_response_org(resp)
    if not body:
        return None
    return json.loads(body)