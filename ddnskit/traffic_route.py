"""Request signing for the Volcengine TrafficRoute DNS API (HMAC-SHA256)."""

import hashlib
import hmac
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Optional, Union
from urllib.parse import quote_plus

from ddnskit.httputil import Request

VERSION = "2018-08-01"
SERVICE = "DNS"
REGION = "cn-north-1"
HOST = "open.volcengineapi.com"

CONTENT_TYPE = "application/json"
SIGNED_HEADERS = "content-type;host;x-content-sha256;x-date"
DATE_FORMAT = "%Y%m%dT%H%M%SZ"

QueryValues = Mapping[str, Union[str, Iterable[str]]]


def hash_sha256(content: Optional[bytes]) -> str:
    """Return the hex SHA-256 of ``content``; None counts as empty."""
    return hashlib.sha256(content or b"").hexdigest()


def _hmac_sha256(key: bytes, content: str) -> bytes:
    return hmac.new(key, content.encode(), hashlib.sha256).digest()


def _encode_query(values: Mapping[str, list[str]]) -> str:
    parts = []
    for key in sorted(values):
        escaped_key = quote_plus(key, safe="")
        parts.extend(f"{escaped_key}={quote_plus(v, safe='')}" for v in values[key])
    return "&".join(parts)


def _as_list(value: Union[str, Iterable[str]]) -> list[str]:
    return [value] if isinstance(value, str) else list(value)


def traffic_route_signer(
    method: str,
    query: Optional[QueryValues],
    header: Optional[Mapping[str, str]],
    ak: str,
    sk: str,
    action: str,
    body: Optional[bytes] = None,
    now: Optional[datetime] = None,
) -> Request:
    """Build a signed request for ``action`` against the TrafficRoute endpoint."""
    method = method or "GET"
    body = body or b""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)

    values = {key: _as_list(value) for key, value in (query or {}).items()}
    values["Action"] = [action]
    values["Version"] = [VERSION]
    raw_query = _encode_query(values)

    request = Request(method=method, url=f"https://{HOST}/?{raw_query}", body=body)
    for key, value in (header or {}).items():
        request.headers[key] = value

    x_date = now.strftime(DATE_FORMAT)
    short_date = x_date[:8]
    content_sha256 = hash_sha256(body)

    canonical_headers = "\n".join(
        [
            f"content-type:{CONTENT_TYPE}",
            f"host:{HOST}",
            f"x-content-sha256:{content_sha256}",
            f"x-date:{x_date}",
        ]
    )
    canonical_request = "\n".join(
        [method, "/", raw_query, canonical_headers, "", SIGNED_HEADERS, content_sha256]
    )

    credential_scope = "/".join([short_date, REGION, SERVICE, "request"])
    string_to_sign = "\n".join(
        ["HMAC-SHA256", x_date, credential_scope, hash_sha256(canonical_request.encode())]
    )

    k_date = _hmac_sha256(sk.encode(), short_date)
    k_region = _hmac_sha256(k_date, REGION)
    k_service = _hmac_sha256(k_region, SERVICE)
    k_signing = _hmac_sha256(k_service, "request")
    signature = _hmac_sha256(k_signing, string_to_sign).hex()

    request.headers["Host"] = HOST
    request.headers["Content-Type"] = CONTENT_TYPE
    request.headers["X-Date"] = x_date
    request.headers["X-Content-Sha256"] = content_sha256
    request.headers["Authorization"] = (
        f"HMAC-SHA256 Credential={ak}/{credential_scope}, "
        f"SignedHeaders={SIGNED_HEADERS}, Signature={signature}"
    )
    return request