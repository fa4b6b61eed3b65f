"""Address classification, DNS server selection and waiting for connectivity."""

import ipaddress
import socket
import time
from dataclasses import dataclass
from collections.abc import Iterable, Mapping
from typing import Optional, Union
from urllib.parse import urlsplit

import dns.exception
import dns.resolver
from requests.structures import CaseInsensitiveDict

from ddnskit.escape import to_hostname
from ddnskit.messages import log

BACKUP_DNS = ["1.1.1.1", "8.8.8.8", "9.9.9.9", "223.5.5.5"]
_CHINESE_DNS = ["223.5.5.5", "114.114.114.114", "119.29.29.29"]

_RETRY_DELAY = 5.0
_LOOKUP_TIMEOUT = 30.0
_DNS_ERROR_MARK = "[::1]:53: read: connection refused"

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_LOOPBACK = tuple(ipaddress.ip_network(n) for n in ("127.0.0.0/8", "::1/128"))
_PRIVATE = tuple(
    ipaddress.ip_network(n)
    for n in ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16", "fc00::/7")
)
_LINK_LOCAL = tuple(ipaddress.ip_network(n) for n in ("169.254.0.0/16", "fe80::/10"))


@dataclass(frozen=True)
class _DnsServer:
    host: str
    port: int
    tcp: bool


_dns_server: Optional[_DnsServer] = None


def _parse_ip(text: str) -> Optional[IPAddress]:
    if "%" in text:
        return None
    try:
        ip = ipaddress.ip_address(text)
    except ValueError:
        return None
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def is_private_network(remote_addr: str) -> bool:
    """Return True for loopback, private and link-local addresses, with or without a port."""
    if remote_addr.startswith("["):
        end = remote_addr.rfind("]")
        if end == -1:
            return False
        remote_addr = remote_addr[1:end]
    else:
        colon = remote_addr.rfind(":")
        if colon != -1:
            remote_addr = remote_addr[:colon]

    ip = _parse_ip(remote_addr)
    if ip is None:
        return False
    return any(ip in net for net in (*_LOOPBACK, *_PRIVATE, *_LINK_LOCAL))


def get_request_ip_str(remote_addr: str, headers: Optional[Mapping[str, str]] = None) -> str:
    """Describe where a request came from, including proxy headers when present."""
    lookup = CaseInsensitiveDict(headers or {})
    addr = "Remote: " + remote_addr
    real_ip = lookup.get("X-Real-IP", "")
    if real_ip:
        addr += " ,Real-IP: " + real_ip
    forwarded = lookup.get("X-Forwarded-For", "")
    if forwarded:
        addr += " ,Forwarded-For: " + forwarded
    return addr


def init_backup_dns(custom_dns: str, lang: str) -> None:
    """Use ``custom_dns`` as the only backup, or servers suited to Chinese users."""
    global BACKUP_DNS
    if custom_dns:
        BACKUP_DNS = [custom_dns]
        return
    if lang == "zh":
        BACKUP_DNS = list(_CHINESE_DNS)


def backup_dns() -> list[str]:
    """Return the DNS servers tried when lookups fail."""
    return list(BACKUP_DNS)


def set_dns(dns: str) -> None:
    """Route host lookups through ``dns``, given as ``[udp|tcp://]host[:port]``."""
    global _dns_server
    if "://" not in dns:
        dns = "udp://" + dns
    parsed = urlsplit(dns)
    if not parsed.hostname:
        raise ValueError(f"no DNS server host in {dns!r}")
    port = parsed.port or 53
    _dns_server = _DnsServer(
        host=parsed.hostname,
        port=port,
        tcp=parsed.scheme.lower() == "tcp",
    )


def _server_address(host: str) -> str:
    if _parse_ip(host) is not None:
        return host
    return socket.getaddrinfo(host, None, type=socket.SOCK_DGRAM)[0][4][0]


def _lookup_with_server(name: str, server: _DnsServer) -> list[str]:
    resolver = dns.resolver.Resolver(configure=False)
    resolver.port = server.port
    resolver.nameservers = [_server_address(server.host)]
    resolver.lifetime = _LOOKUP_TIMEOUT

    addresses: list[str] = []
    last_error: Optional[Exception] = None
    for rdtype in ("A", "AAAA"):
        try:
            answer = resolver.resolve(name, rdtype, tcp=server.tcp)
        except dns.exception.DNSException as exc:
            last_error = exc
            continue
        addresses.extend(str(record) for record in answer)
    if not addresses:
        reason = last_error if last_error is not None else "no such host"
        raise OSError(f"lookup {name} on {server.host}:{server.port}: {reason}")
    return addresses


def _lookup_with_system(name: str) -> list[str]:
    infos = socket.getaddrinfo(name, None, type=socket.SOCK_STREAM)
    addresses: list[str] = []
    for info in infos:
        address = info[4][0]
        if address not in addresses:
            addresses.append(address)
    if not addresses:
        raise OSError(f"lookup {name}: no such host")
    return addresses


def lookup_host(url: str) -> list[str]:
    """Resolve the host part of ``url``; raise OSError when it cannot be resolved."""
    name = to_hostname(url)
    if not name:
        raise OSError("lookup: no such host")
    if _parse_ip(name) is not None:
        return [name]
    if _dns_server is not None:
        return _lookup_with_server(name, _dns_server)
    return _lookup_with_system(name)


def is_dns_error(error: BaseException) -> bool:
    """Return True if ``error`` shows the local DNS resolver refusing connections."""
    return _DNS_ERROR_MARK in str(error)


def wait_internet(addresses: Iterable[str]) -> None:
    """Block until one of ``addresses`` resolves, switching to backup DNS on failure."""
    addresses = list(addresses)
    retry_times = 0
    failed = False

    while True:
        for addr in addresses:
            try:
                lookup_host(addr)
            except OSError as err:
                failed = True
                log("等待网络连接: %s", err)
                log("%s 后重试...", f"{_RETRY_DELAY:g}s")

                if is_dns_error(err) or retry_times > 0:
                    server = BACKUP_DNS[retry_times % len(BACKUP_DNS)]
                    log("本机DNS异常! 将默认使用 %s, 可参考文档通过 -dns 自定义 DNS 服务器", server)
                    set_dns(server)
                    retry_times += 1

                time.sleep(_RETRY_DELAY)
            else:
                if failed:
                    log("网络已连接")
                return