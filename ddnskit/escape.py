"""Percent-escaping and small string helpers used by request signers."""

_HEX = "0123456789ABCDEF"


def should_escape(c: int) -> bool:
    """Return True if the byte ``c`` must be percent-encoded."""
    if (
        ord("A") <= c <= ord("Z")
        or ord("a") <= c <= ord("z")
        or ord("0") <= c <= ord("9")
        or c in b"_-~."
    ):
        return False
    return True


def escape(s: str) -> str:
    """Percent-encode every byte of ``s`` outside the unreserved set."""
    data = s.encode("utf-8")
    if not any(should_escape(c) for c in data):
        return s
    parts = []
    for c in data:
        if should_escape(c):
            parts.append("%" + _HEX[c >> 4] + _HEX[c & 15])
        else:
            parts.append(chr(c))
    return "".join(parts)


def write_string(*args: str) -> str:
    """Concatenate the given strings."""
    return "".join(args)


def to_hostname(url: str) -> str:
    """Reduce a URL with an optional https scheme to its host part."""
    stripped = url.removeprefix("https://")
    return stripped.split("/")[0]


def split_lines(s: str) -> list[str]:
    """Split ``s`` into lines on CRLF if present, otherwise on LF."""
    if "\r\n" in s:
        return s.split("\r\n")
    return s.split("\n")