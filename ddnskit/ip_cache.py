"""Remembers the last published address to skip needless provider queries."""

import os
import re
from dataclasses import dataclass

IP_CACHE_TIMES_ENV = "DDNS_IP_CACHE_TIMES"
DEFAULT_CACHE_TIMES = 5

_INTEGER = re.compile(r"[+-]?[0-9]+")


def _cache_times() -> int:
    raw = os.environ.get(IP_CACHE_TIMES_ENV, "")
    if _INTEGER.fullmatch(raw) is None:
        return DEFAULT_CACHE_TIMES
    return int(raw)


@dataclass
class IpCache:
    """The cached address, the checks left before a forced compare, and failures."""

    addr: str = ""
    times: int = 0
    times_failed_ip: int = 0

    def check(self, new_addr: str) -> bool:
        """Return True if the provider must be queried for ``new_addr``."""
        if not new_addr:
            return True
        if self.addr != new_addr or self.times <= 1:
            self.addr = new_addr
            self.times = _cache_times() + 1
            return True
        self.addr = new_addr
        self.times -= 1
        return False