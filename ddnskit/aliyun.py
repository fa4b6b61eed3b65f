"""Request signing for the Aliyun RPC-style API."""

import base64
import hashlib
import hmac
import re
import time
from collections.abc import Iterable, Mapping, MutableMapping
from typing import Union
from urllib.parse import quote_plus

_SIGN_METHODS = {
    "HMAC-SHA1": hashlib.sha1,
    "HMAC-SHA256": hashlib.sha256,
    "HMAC-MD5": hashlib.md5,
}

_SPECIAL = re.compile(r"%7E|[%*/&=+]")

Values = Mapping[str, Union[str, Iterable[str]]]


def _special_replace(match: re.Match) -> str:
    text = match.group()
    if text == "%7E":
        return "~"
    if text == "+":
        return "%20"
    return f"%{ord(text):02X}"


def special_url_encode(s: str) -> str:
    """Re-encode a query-escaped string the way Aliyun expects."""
    return _SPECIAL.sub(_special_replace, s)


def _encode_values(vals: Values) -> str:
    parts = []
    for key in sorted(vals):
        value = vals[key]
        values = [value] if isinstance(value, str) else list(value)
        escaped_key = quote_plus(key, safe="")
        parts.extend(f"{escaped_key}={quote_plus(v, safe='')}" for v in values)
    return "&".join(parts)


def hmac_sign(sign_method: str, http_method: str, app_key_secret: str, vals: Values) -> bytes:
    """Return the raw HMAC over the canonical string; unknown methods use SHA1."""
    digest = _SIGN_METHODS.get(sign_method, hashlib.sha1)
    data = "&".join(
        [http_method, special_url_encode("/"), special_url_encode(_encode_values(vals))]
    )
    key = (app_key_secret + "&").encode()
    return hmac.new(key, data.encode(), digest).digest()


def hmac_sign_to_b64(sign_method: str, http_method: str, app_key_secret: str, vals: Values) -> str:
    """Return the signature as standard base64."""
    return base64.b64encode(hmac_sign(sign_method, http_method, app_key_secret, vals)).decode()


def aliyun_signer(access_key_id: str, access_secret: str, params: MutableMapping[str, str]) -> None:
    """Add the common parameters and the signature to ``params`` in place."""
    params["SignatureMethod"] = "HMAC-SHA1"
    params["SignatureNonce"] = str(time.time_ns())
    params["AccessKeyId"] = access_key_id
    params["SignatureVersion"] = "1.0"
    params["Timestamp"] = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    params["Format"] = "JSON"
    params["Version"] = "2015-01-09"
    params["Signature"] = hmac_sign_to_b64("HMAC-SHA1", "GET", access_secret, params)