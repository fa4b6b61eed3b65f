"""Request signing for the Tencent Cloud API (TC3-HMAC-SHA256)."""

import hashlib
import hmac
import time
from datetime import datetime, timezone
from typing import Optional

from ddnskit.escape import write_string
from ddnskit.httputil import Request

ALGORITHM = "TC3-HMAC-SHA256"
SERVICE = "dnspod"
HOST = write_string(SERVICE, ".tencentcloudapi.com")
SIGNED_HEADERS = "content-type;host;x-tc-action"


def sha256_hex(s: str) -> str:
    """Return the hex SHA-256 of ``s``."""
    return hashlib.sha256(s.encode()).hexdigest()


def _hmac_sha256(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode(), hashlib.sha256).digest()


def tencent_cloud_signer(
    secret_id: str,
    secret_key: str,
    r: Request,
    action: str,
    payload: str,
    timestamp: Optional[int] = None,
) -> None:
    """Sign a JSON POST for ``action`` and set the TC3 headers on ``r``."""
    if timestamp is None:
        timestamp = int(time.time())
    timestamp_str = str(timestamp)

    canonical_headers = (
        f"content-type:application/json\nhost:{HOST}\nx-tc-action:{action.lower()}\n"
    )
    canonical_request = (
        f"POST\n/\n\n{canonical_headers}\n{SIGNED_HEADERS}\n{sha256_hex(payload)}"
    )

    date = datetime.fromtimestamp(timestamp, timezone.utc).strftime("%Y-%m-%d")
    credential_scope = f"{date}/{SERVICE}/tc3_request"
    string_to_sign = "\n".join(
        [ALGORITHM, timestamp_str, credential_scope, sha256_hex(canonical_request)]
    )

    secret_date = _hmac_sha256(("TC3" + secret_key).encode(), date)
    secret_service = _hmac_sha256(secret_date, SERVICE)
    secret_signing = _hmac_sha256(secret_service, "tc3_request")
    signature = _hmac_sha256(secret_signing, string_to_sign).hex()

    r.headers["Authorization"] = (
        f"{ALGORITHM} Credential={secret_id}/{credential_scope}, "
        f"SignedHeaders={SIGNED_HEADERS}, Signature={signature}"
    )
    r.headers["Host"] = HOST
    r.headers["X-TC-Action"] = action
    r.headers["X-TC-Timestamp"] = timestamp_str