# ddnskit

Building blocks for a dynamic DNS updater, in plain Python.

## Installation

```
pip install ddnskit
pip install "ddnskit[test]"   # with the test requirements
```

## What is inside

### Request signers

- `ddnskit.aliyun`: `aliyun_signer(access_key_id, access_secret, params)`
  adds the common parameters (`SignatureMethod`, `SignatureNonce`,
  `Timestamp`, `Version`, ...) and the `Signature` to a parameter mapping in
  place. `hmac_sign`, `hmac_sign_to_b64` and `special_url_encode` are the
  pieces it is built from.
- `ddnskit.huawei`: `Signer(key, secret).sign(request)` sets the
  `X-Sdk-Date` header when it is missing or invalid and then the
  `Authorization` header. The canonical request helpers
  (`canonical_request`, `canonical_uri`, `canonical_query_string`,
  `canonical_headers`, `signed_headers`, `string_to_sign`, ...) are public.
- `ddnskit.baidu`: `baidu_signer(access_key_id, access_secret, request, now=None)`
  sets a `bce-auth-v1` `Authorization` header.
- `ddnskit.tencent`: `tencent_cloud_signer(secret_id, secret_key, request, action, payload, timestamp=None)`
  sets the TC3-HMAC-SHA256 headers (`Authorization`, `Host`, `X-TC-Action`,
  `X-TC-Timestamp`).
- `ddnskit.traffic_route`: `traffic_route_signer(method, query, header, ak, sk, action, body=None, now=None)`
  builds and returns a signed `Request` for the Volcengine DNS endpoint.

The signers work on `ddnskit.httputil.Request`, a small dataclass holding a
method, a URL, case-insensitive headers and an optional body.

### HTTP

`ddnskit.httputil` creates `requests` sessions with a 30 second default
timeout: `create_http_client()` uses proxies from the environment, and
`create_no_proxy_http_client("tcp4" | "tcp6")` ignores proxies, closes
connections after each request and binds to an IPv4 or IPv6 wildcard
address. `set_insecure_skip_verify()` turns off certificate checks for all
these sessions. `get_http_response_org(resp)` reads at most 1,024,000 bytes
and raises `HTTPResponseError` for status codes of 300 and above;
`get_http_response(resp)` also decodes the body as JSON (`None` when empty).

### Network

`ddnskit.network`:

- `is_private_network(remote_addr)` is true for loopback, private and
  link-local addresses, with or without a port (`"[::1]:9876"`,
  `"192.168.1.18:9876"`).
- `get_request_ip_str(remote_addr, headers)` describes a request's origin,
  including `X-Real-IP` and `X-Forwarded-For`.
- `set_dns("[udp|tcp://]host[:port]")` makes `lookup_host(url)` query that
  server through dnspython; otherwise the system resolver is used.
- `init_backup_dns(custom_dns, lang)` and `backup_dns()` manage the servers
  that `wait_internet(addresses)` switches to while it blocks until one of
  the addresses resolves, retrying every 5 seconds.

### Passwords and tokens

`ddnskit.passwords` hashes passwords with bcrypt (`hash_password`, cost 10),
checks them (`password_ok`), recognises bcrypt hashes
(`is_hashed_password`) and creates random login tokens (`generate_token`).

### Address cache

`ddnskit.ip_cache.IpCache.check(new_addr)` returns True when the provider
has to be queried: when the address changed or after a number of unchanged
rounds taken from `DDNS_IP_CACHE_TIMES` (default 5).

### Environment

`ddnskit.environment` has `is_run_in_docker()`, `is_termux()`,
`get_config_file_path()` (honouring `DDNS_CONFIG_FILE_PATH`, otherwise
`~/.ddns_go_config.yaml`), `fix_timezone()` for Android, and
`copy_url_params(src, dest, keys=None)`.

### Messages and formatting

`ddnskit.messages` writes log lines in English or Chinese through the
`ddnskit` logger (`init_log_lang`, `current_lang`, `log`, `log_str`).
`ddnskit.ordinal.ordinal(x, lang)` formats ordinals ("1st", "12th").
`ddnskit.escape` holds the percent-escaping used by the signers and a few
string helpers. `ddnskit.semver` parses versions (`new_version`) into
`Version` objects compared on major, minor and patch; it raises
`VersionError` for anything else.

### Self-update

`ddnskit.update`:

- `detect.detect_latest(repo)` fetches the latest release of `owner/name`
  from the GitHub releases API and returns the `Latest` asset for this OS
  and architecture, or None.
- `decompress.decompress_command(src, url, cmd)` extracts the executable
  from a `.zip` or `.tar.gz` archive, raising `CannotDecompressFileError` or
  `ExecutableNotFoundInArchiveError`; other files pass through unchanged.
- `apply.apply_update(stream, target_path)` replaces a file on disk via
  `<target>.new` and `<target>.old`, moving the old file back if the final
  rename fails.
- `package.self_update(version)` ties these together for the running
  program. The repository comes from the `DDNS_UPDATE_REPO` environment
  variable; it returns True when an update was installed.

### Web helpers

`ddnskit.web.logs` keeps the latest log lines in memory (`MemoryLogs`,
with a module-level `memory_logs` that receives the `ddnskit` logger's
records once the module is imported) and builds JSON bodies with
`return_ok(msg, data)` and `return_error(msg)`.

## Example

```python
from ddnskit.httputil import Request
from ddnskit.huawei import Signer
from ddnskit.network import is_private_network
from ddnskit.semver import new_version

assert new_version("v1.2").greater_than(new_version("1.1.9"))
assert is_private_network("192.168.1.18:9876")

request = Request(method="GET", url="https://dns.example.com/v2/zones")
Signer(key="placeholder", secret="secret").sign(request)
print(request.headers["Authorization"])
```

## What it does not do

This is a library of parts. It has no command-line program, no web server
or pages, no configuration file reading or writing, no webhooks, and no
code that talks to DNS providers to create or update records; it only
signs the requests such code would send.

## Running the tests

```
pytest
```