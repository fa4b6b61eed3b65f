"""Request signing for the Baidu Cloud API (bce-auth-v1)."""

import hashlib
import hmac
from datetime import datetime, timezone
from typing import Optional

from ddnskit.httputil import Request
from ddnskit.huawei import HEADER_AUTHORIZATION, canonical_uri

BAIDU_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
EXPIRATION_PERIOD = "1800"


def hmac_sha256_hex(secret: str, message: str) -> str:
    """Return the hex HMAC-SHA256 of ``message`` keyed with ``secret``."""
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def baidu_canonical_uri(r: Request) -> str:
    """Return the escaped request path without a trailing slash."""
    return canonical_uri(r)[:-1]


def baidu_signer(
    access_key_id: str,
    access_secret: str,
    r: Request,
    now: Optional[datetime] = None,
) -> None:
    """Set the Authorization header on ``r``; ``now`` defaults to the current time."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    prefix = f"bce-auth-v1/{access_key_id}/{now.strftime(BAIDU_DATE_FORMAT)}/{EXPIRATION_PERIOD}"
    # Only fixed POST endpoints are called, so the query and headers are constant.
    canonical = f"{r.method}\n{baidu_canonical_uri(r)}\n\nhost:bcd.baidubce.com"
    signing_key = hmac_sha256_hex(access_secret, prefix)
    signature = hmac_sha256_hex(signing_key, canonical)
    r.headers[HEADER_AUTHORIZATION] = f"{prefix}/host/{signature}"