"""Request signing for the Huawei Cloud API gateway (SDK-HMAC-SHA256)."""

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from ddnskit.escape import escape
from ddnskit.httputil import Request

BASIC_DATE_FORMAT = "%Y%m%dT%H%M%SZ"
ALGORITHM = "SDK-HMAC-SHA256"
HEADER_X_DATE = "X-Sdk-Date"
HEADER_HOST = "host"
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_SHA256 = "X-Sdk-Content-Sha256"


def _utc(t: datetime) -> datetime:
    # Naive datetimes are taken to be UTC already.
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def canonical_request(r: Request, signed_headers: list[str]) -> str:
    """Build the canonical request string that is hashed for signing."""
    hexencode = r.headers.get(HEADER_CONTENT_SHA256) or hex_encode_sha256_hash(request_payload(r))
    return "\n".join(
        [
            r.method,
            canonical_uri(r),
            canonical_query_string(r),
            canonical_headers(r, signed_headers),
            ";".join(signed_headers),
            hexencode,
        ]
    )


def canonical_uri(r: Request) -> str:
    """Return the escaped request path, always ending with a slash."""
    path = "/".join(escape(segment) for segment in r.path().split("/"))
    if not path.endswith("/"):
        path += "/"
    return path


def canonical_query_string(r: Request) -> str:
    """Return the sorted, escaped query and write it back into the request URL."""
    query = r.query()
    pairs = [
        f"{escape(key)}={escape(value)}"
        for key in sorted(query)
        for value in sorted(query[key])
    ]
    query_str = "&".join(pairs)
    r.url = urlunsplit(urlsplit(r.url)._replace(query=query_str))
    return query_str


def canonical_headers(r: Request, signer_headers: list[str]) -> str:
    """Return the signed headers as ``name:value`` lines, newline terminated."""
    lowered = {k.lower(): v for k, v in r.headers.items()}
    lines = []
    for key in signer_headers:
        if key.lower() == HEADER_HOST:
            values = [r.host]
        else:
            values = [lowered[key]] if key in lowered else []
        lines.extend(f"{key}:{v.strip()}" for v in sorted(values))
    return "\n".join(lines) + "\n"


def signed_headers(r: Request) -> list[str]:
    """Return the request's header names, lower-cased and sorted."""
    return sorted(key.lower() for key in r.headers)


def request_payload(r: Request) -> bytes:
    """Return the request body, or empty bytes when there is none."""
    return r.body or b""


def string_to_sign(canonical_request: str, t: datetime) -> str:
    """Build the string to sign from the canonical request and its time."""
    digest = hashlib.sha256(canonical_request.encode()).hexdigest()
    return f"{ALGORITHM}\n{_utc(t).strftime(BASIC_DATE_FORMAT)}\n{digest}"


def sign_string_to_sign(string_to_sign: str, signing_key: bytes) -> str:
    """Return the hex HMAC-SHA256 of the string to sign."""
    return hmac.new(signing_key, string_to_sign.encode(), hashlib.sha256).hexdigest()


def hex_encode_sha256_hash(body: Optional[bytes]) -> str:
    """Return the hex SHA-256 of ``body``; None counts as empty."""
    return hashlib.sha256(body or b"").hexdigest()


def auth_header_value(signature: str, access_key: str, signed_headers: list[str]) -> str:
    """Return the value of the Authorization header."""
    return (
        f"{ALGORITHM} Access={access_key}, "
        f"SignedHeaders={';'.join(signed_headers)}, Signature={signature}"
    )


@dataclass
class Signer:
    """Signs requests with an access key and secret."""

    key: str
    secret: str

    def sign(self, r: Request) -> None:
        """Set the date header if missing or invalid, then the Authorization header."""
        t: Optional[datetime] = None
        date_header = r.headers.get(HEADER_X_DATE, "")
        if date_header:
            try:
                t = datetime.strptime(date_header, BASIC_DATE_FORMAT).replace(tzinfo=timezone.utc)
            except ValueError:
                t = None
        if t is None:
            t = datetime.now(timezone.utc)
            r.headers[HEADER_X_DATE] = t.strftime(BASIC_DATE_FORMAT)

        headers = signed_headers(r)
        canonical = canonical_request(r, headers)
        signature = sign_string_to_sign(string_to_sign(canonical, t), self.secret.encode())
        r.headers[HEADER_AUTHORIZATION] = auth_header_value(signature, self.key, headers)