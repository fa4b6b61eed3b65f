"""Finding the newest release asset for the running platform."""

import logging
import platform
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from ddnskit.httputil import HTTPResponseError, create_http_client, get_http_response
from ddnskit.messages import log
from ddnskit.semver import Version, VersionError, new_version

logger = logging.getLogger(__name__)

MIN_ARM = 5
MAX_ARM = 7
_LATEST_RELEASE_URL = "https://api.github.com/repos/{repo}/releases/latest"
_EXTENSIONS = (".zip", ".tar.gz")

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "mipsel": "mipsle",
    "mips64el": "mips64le",
    "loongarch64": "loong64",
}


@dataclass(frozen=True)
class Asset:
    """A file attached to a release."""

    name: str
    url: str


@dataclass
class Release:
    """A tagged release and its assets."""

    tag_name: str
    assets: list[Asset] = field(default_factory=list)


@dataclass(frozen=True)
class Latest:
    """The newest asset for this platform and the version it belongs to."""

    name: str
    url: str
    version: Version


def new_release(data: Any) -> Release:
    """Build a Release from a decoded release API response."""
    if not isinstance(data, Mapping):
        raise ValueError("release data must be a JSON object")
    assets = [
        Asset(name=item.get("name", ""), url=item.get("browser_download_url", ""))
        for item in data.get("assets") or []
    ]
    return Release(tag_name=data.get("tag_name", ""), assets=assets)


def get_latest(repo: str) -> Release:
    """Fetch the latest release of ``repo`` given as ``owner/name``."""
    resp = create_http_client().get(_LATEST_RELEASE_URL.format(repo=repo))
    try:
        return new_release(get_http_response(resp) or {})
    except (HTTPResponseError, ValueError, requests.RequestException) as err:
        log("异常信息: %s", err)
        raise


def generate_additional_arch(goarch: str, goarm: int) -> list[str]:
    """Return more specific architecture names to try before ``goarch``."""
    if goarch == "arm" and MIN_ARM <= goarm <= MAX_ARM:
        return [f"armv{v}" for v in range(goarm, MIN_ARM - 1, -1)]
    if goarch == "amd64":
        return ["x86_64"]
    return []


def current_arch() -> str:
    """Return the architecture of this machine in release naming."""
    machine = platform.machine().lower()
    if machine.startswith("arm") and machine != "arm64":
        return "arm"
    return _ARCH_ALIASES.get(machine, machine)


def _current_goarm() -> int:
    match = re.match(r"armv(\d+)", platform.machine().lower())
    return int(match.group(1)) if match else 0


def _current_os() -> str:
    return platform.system().lower()


def get_suffixes(arch: str) -> list[str]:
    """Return the asset name endings that fit this OS and ``arch``."""
    goos = _current_os()
    return [f"{goos}_{arch}{ext}" for ext in _EXTENSIONS]


def asset_match_suffixes(name: str, suffixes: list[str]) -> bool:
    """Return True if ``name`` ends with any of ``suffixes``."""
    return any(name.endswith(suffix) for suffix in suffixes)


def find_asset_from_release(
    rel: Optional[Release], suffixes: list[str]
) -> Optional[tuple[Asset, Version]]:
    """Return the first asset matching ``suffixes`` and the release version."""
    if rel is None:
        logger.info("There is no source release information")
        return None

    try:
        version = new_version(rel.tag_name)
    except VersionError:
        logger.info("Cannot parse semantic version: %s", rel.tag_name)
        return None

    for asset in rel.assets:
        if asset_match_suffixes(asset.name, suffixes):
            return asset, version

    logger.info("Can't find suitable asset in release %s", rel.tag_name)
    return None


def find_asset(rel: Optional[Release]) -> Optional[tuple[Asset, Version]]:
    """Return the asset for this platform, trying specific architectures first."""
    goarch = current_arch()
    for arch in [*generate_additional_arch(goarch, _current_goarm()), goarch]:
        found = find_asset_from_release(rel, get_suffixes(arch))
        if found is not None:
            return found
        logger.info("Cannot find any release for %s/%s", _current_os(), goarch)
    return None


def detect_latest(repo: str) -> Optional[Latest]:
    """Return the newest asset of ``repo`` for this platform, or None."""
    found = find_asset(get_latest(repo))
    if found is None:
        return None
    asset, version = found
    return Latest(name=asset.name, url=asset.url, version=version)