import re
from datetime import datetime, timezone

from ddnskit.httputil import Request
from ddnskit.huawei import (
    Signer,
    auth_header_value,
    canonical_headers,
    canonical_query_string,
    canonical_request,
    canonical_uri,
    hex_encode_sha256_hash,
    request_payload,
    sign_string_to_sign,
    signed_headers,
    string_to_sign,
)

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def _request():
    return Request(
        "POST",
        "https://dns.example.com/v2/zones?b=2&a=1",
        headers={"Content-Type": "application/json", "X-Sdk-Date": "20240102T030405Z"},
        body=b"{}",
    )


def test_hex_encode_empty_and_none():
    assert hex_encode_sha256_hash(b"") == EMPTY_SHA256
    assert hex_encode_sha256_hash(None) == EMPTY_SHA256


def test_request_payload_defaults_to_empty():
    assert request_payload(Request("GET", "https://example.com/")) == b""
    assert request_payload(_request()) == b"{}"


def test_canonical_uri_adds_trailing_slash_and_escapes():
    assert canonical_uri(Request("GET", "https://example.com/v2/zones")) == "/v2/zones/"
    assert canonical_uri(Request("GET", "https://example.com/a%20b/")) == "/a%20b/"


def test_canonical_query_string_sorts_and_rewrites_url():
    r = Request("GET", "https://example.com/v2?b=2&a=1&a=0")
    assert canonical_query_string(r) == "a=0&a=1&b=2"
    assert r.url == "https://example.com/v2?a=0&a=1&b=2"


def test_signed_headers_sorted_lowercase():
    assert signed_headers(_request()) == ["content-type", "x-sdk-date"]


def test_canonical_headers_uses_url_host():
    r = _request()
    text = canonical_headers(r, ["content-type", "host"])
    assert text == "content-type:application/json\nhost:dns.example.com\n"


def test_canonical_request_prefers_content_sha_header():
    r = _request()
    r.headers["X-Sdk-Content-Sha256"] = "UNSIGNED-PAYLOAD"
    assert canonical_request(r, signed_headers(r)).split("\n")[-1] == "UNSIGNED-PAYLOAD"


def test_canonical_request_hashes_body():
    r = _request()
    lines = canonical_request(r, signed_headers(r)).split("\n")
    assert lines[0] == "POST"
    assert lines[1] == "/v2/zones/"
    assert lines[-1] == hex_encode_sha256_hash(b"{}")


def test_string_to_sign_layout():
    t = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    algorithm, stamp, digest = string_to_sign("request", t).split("\n")
    assert algorithm == "SDK-HMAC-SHA256"
    assert stamp == "20240102T030405Z"
    assert re.fullmatch(r"[0-9a-f]{64}", digest)


def test_auth_header_value_format():
    value = auth_header_value("abc", "key-id", ["content-type", "x-sdk-date"])
    assert value == "SDK-HMAC-SHA256 Access=key-id, SignedHeaders=content-type;x-sdk-date, Signature=abc"


def test_sign_keeps_valid_date_and_is_consistent():
    r = _request()
    Signer(key="key-id", secret="secret").sign(r)
    assert r.headers["X-Sdk-Date"] == "20240102T030405Z"

    fresh = _request()
    headers = signed_headers(fresh)
    t = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    signature = sign_string_to_sign(string_to_sign(canonical_request(fresh, headers), t), b"secret")
    assert r.headers["Authorization"] == auth_header_value(signature, "key-id", headers)


def test_sign_is_deterministic_and_depends_on_secret():
    a, b, c = _request(), _request(), _request()
    Signer("key-id", "secret").sign(a)
    Signer("key-id", "secret").sign(b)
    Signer("key-id", "token").sign(c)
    assert a.headers["Authorization"] == b.headers["Authorization"]
    assert a.headers["Authorization"] != c.headers["Authorization"]


def test_sign_replaces_invalid_date():
    r = Request("GET", "https://example.com/", headers={"X-Sdk-Date": "garbage"})
    Signer("key-id", "secret").sign(r)
    assert re.fullmatch(r"\d{8}T\d{6}Z", r.headers["X-Sdk-Date"])
    assert r.headers["Authorization"].startswith("SDK-HMAC-SHA256 Access=key-id, SignedHeaders=x-sdk-date, ")