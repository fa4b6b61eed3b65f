import logging
import socket
from unittest import mock

import dns.resolver
import pytest

from ddnskit import network
from ddnskit.messages import init_log_lang
from ddnskit.network import (
    backup_dns,
    get_request_ip_str,
    init_backup_dns,
    is_dns_error,
    is_private_network,
    lookup_host,
    set_dns,
    wait_internet,
)

TEST_DNS = "1.1.1.1"
TEST_URL = "https://cloudflare.com"
SYSTEM_RESULT = [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("104.16.132.229", 0))]


@pytest.fixture(autouse=True)
def _isolated(monkeypatch):
    monkeypatch.setattr(network, "BACKUP_DNS", list(network.BACKUP_DNS))
    monkeypatch.setattr(network, "_dns_server", None)


PRIVATE_CASES = {
    "127.0.0.1": True,
    "127.0.0.1:9876": True,
    "[::1]": True,
    "[::1]:9876": True,
    "192.168.1.18:9876": True,
    "172.16.1.18:9876": True,
    "10.1.1.18:9876": True,
    "[fe80::1]:9876": True,
    "[fd00::1]:9876": True,
    "100.0.0.1": False,
    "100.0.0.1:9876": False,
    "[2409::1]": False,
    "[2409::1]:9876": False,
    "223.5.5.5:9876": False,
}


@pytest.mark.parametrize("addr,expected", sorted(PRIVATE_CASES.items()))
def test_is_private_network(addr, expected):
    assert is_private_network(addr) is expected


def test_is_private_network_rejects_garbage():
    assert is_private_network("[::1") is False
    assert is_private_network("not-an-ip:80") is False


def test_get_request_ip_str():
    headers = {"X-Real-IP": "10.0.0.1", "X-Forwarded-For": "10.0.0.2"}
    assert (
        get_request_ip_str("192.168.1.1", headers)
        == "Remote: 192.168.1.1 ,Real-IP: 10.0.0.1 ,Forwarded-For: 10.0.0.2"
    )


def test_get_request_ip_str_without_headers():
    assert get_request_ip_str("192.168.1.1") == "Remote: 192.168.1.1"
    assert get_request_ip_str("1.2.3.4", {"x-real-ip": "5.6.7.8"}) == "Remote: 1.2.3.4 ,Real-IP: 5.6.7.8"


def test_backup_dns_defaults_and_chinese():
    assert backup_dns() == ["1.1.1.1", "8.8.8.8", "9.9.9.9", "223.5.5.5"]
    init_backup_dns("", "en")
    assert backup_dns() == ["1.1.1.1", "8.8.8.8", "9.9.9.9", "223.5.5.5"]
    init_backup_dns("", "zh")
    assert backup_dns() == ["223.5.5.5", "114.114.114.114", "119.29.29.29"]


def test_backup_dns_custom():
    init_backup_dns("8.8.4.4", "zh")
    assert backup_dns() == ["8.8.4.4"]


def test_lookup_host_valid_url():
    with mock.patch("socket.getaddrinfo", return_value=SYSTEM_RESULT), mock.patch.object(
        dns.resolver.Resolver, "resolve", autospec=True, return_value=["104.16.132.229"]
    ):
        assert lookup_host(TEST_URL) == ["104.16.132.229"]


def test_lookup_host_invalid_url():
    with mock.patch("socket.getaddrinfo", side_effect=socket.gaierror("no such host")), mock.patch.object(
        dns.resolver.Resolver, "resolve", autospec=True, side_effect=dns.resolver.NXDOMAIN()
    ):
        with pytest.raises(OSError):
            lookup_host("invalidurl")


def test_lookup_host_ip_literal():
    assert lookup_host("https://9.9.9.9/path") == ["9.9.9.9"]


def test_set_dns_then_lookup_uses_server():
    set_dns(TEST_DNS)
    with mock.patch.object(
        dns.resolver.Resolver, "resolve", autospec=True, return_value=["104.16.132.229"]
    ) as resolve:
        assert lookup_host(TEST_URL) == ["104.16.132.229", "104.16.132.229"]
    resolver, name = resolve.call_args.args[:2]
    assert name == "cloudflare.com"
    assert resolver.port == 53
    assert resolve.call_args.kwargs["tcp"] is False


def test_set_dns_tcp_with_port():
    set_dns("tcp://8.8.8.8:5353")
    with mock.patch.object(
        dns.resolver.Resolver, "resolve", autospec=True, return_value=["1.2.3.4"]
    ) as resolve:
        result = lookup_host(TEST_URL)
    assert result == ["1.2.3.4", "1.2.3.4"]
    assert resolve.call_args.args[0].port == 5353
    assert resolve.call_args.kwargs["tcp"] is True


def test_set_dns_without_host_raises():
    with pytest.raises(ValueError):
        set_dns("udp://")


def test_is_dns_error():
    assert is_dns_error(OSError("dial udp [::1]:53: read: connection refused")) is True
    assert is_dns_error(OSError("no such host")) is False


def test_wait_internet_connected_at_once(caplog):
    init_log_lang("en")
    caplog.set_level(logging.INFO, logger="ddnskit")
    with mock.patch("socket.getaddrinfo", return_value=SYSTEM_RESULT) as getaddrinfo, mock.patch(
        "time.sleep"
    ) as sleep:
        result = wait_internet([TEST_URL])
    assert result is None
    assert getaddrinfo.call_count == 1
    assert sleep.call_count == 0
    assert "The network is connected" not in caplog.messages


def test_wait_internet_retries_then_logs_connected(caplog):
    init_log_lang("en")
    caplog.set_level(logging.INFO, logger="ddnskit")
    with mock.patch(
        "socket.getaddrinfo", side_effect=[OSError("temporary failure"), SYSTEM_RESULT]
    ), mock.patch("time.sleep") as sleep:
        wait_internet([TEST_URL])
    assert sleep.call_args_list == [mock.call(5.0)]
    assert "The network is connected" in caplog.messages
    assert "Retry after 5s" in caplog.messages


def test_wait_internet_switches_to_backup_dns_on_dns_error(monkeypatch, caplog):
    init_log_lang("en")
    caplog.set_level(logging.INFO, logger="ddnskit")
    monkeypatch.setattr(network, "BACKUP_DNS", ["9.9.9.9"])
    with mock.patch(
        "socket.getaddrinfo",
        side_effect=OSError("dial udp [::1]:53: read: connection refused"),
    ) as getaddrinfo, mock.patch.object(
        dns.resolver.Resolver, "resolve", autospec=True, return_value=["1.2.3.4"]
    ) as resolve, mock.patch("time.sleep") as sleep:
        result = wait_internet([TEST_URL])
    assert result is None
    assert getaddrinfo.call_count == 1
    assert resolve.call_count >= 1
    assert resolve.call_args.args[0].port == 53
    assert sleep.call_count == 1
    assert (
        "Local DNS exception! Will use 9.9.9.9 by default, you can use -dns to customize DNS server"
        in caplog.messages
    )
    assert "The network is connected" in caplog.messages