"""Updating the running program to the newest release."""

import logging
import os
import platform
import sys
from typing import BinaryIO

import requests

from ddnskit.httputil import HTTPResponseError, create_http_client
from ddnskit.semver import VersionError, new_version
from ddnskit.update.apply import apply_update
from ddnskit.update.decompress import (
    CannotDecompressFileError,
    ExecutableNotFoundInArchiveError,
    decompress_command,
)
from ddnskit.update.detect import current_arch, detect_latest

logger = logging.getLogger(__name__)

RELEASE_REPO_ENV = "DDNS_UPDATE_REPO"


def _executable_path() -> str:
    path = sys.argv[0] if sys.argv else ""
    if not path:
        return ""
    path = os.path.realpath(path)
    return path if os.path.isfile(path) else ""


def self_update(version: str) -> bool:
    """Update the running program to the newest release; return True on success.

    The repository is read from the ``DDNS_UPDATE_REPO`` environment variable
    as ``owner/name``.
    """
    try:
        current = new_version(version)
    except VersionError as err:
        logger.info("Cannot update because: %s", err)
        return False

    repo = os.environ.get(RELEASE_REPO_ENV, "")
    if not repo:
        logger.info("Cannot update because %s is not set", RELEASE_REPO_ENV)
        return False

    try:
        latest = detect_latest(repo)
    except (requests.RequestException, HTTPResponseError, ValueError) as err:
        logger.info("Error happened when detecting latest version: %s", err)
        return False
    if latest is None:
        logger.info(
            "Cannot find any release for %s/%s", platform.system().lower(), current_arch()
        )
        return False
    if current.greater_than_or_equal(latest.version):
        logger.info("Current version (%s) is the latest", version)
        return False

    exe = _executable_path()
    if not exe:
        logger.info("Cannot find executable path")
        return False

    try:
        to(latest.url, latest.name, exe)
    except (OSError, CannotDecompressFileError, ExecutableNotFoundInArchiveError) as err:
        logger.info("Error happened when updating binary: %s", err)
        return False

    logger.info("Success update to v%s", latest.version)
    return True


def to(asset_url: str, asset_file_name: str, cmd_path: str) -> None:
    """Download the asset at ``asset_url`` and install it over ``cmd_path``."""
    src = download_asset_from_url(asset_url)
    try:
        decompress_and_update(src, asset_file_name, cmd_path)
    finally:
        src.close()


def download_asset_from_url(url: str) -> BinaryIO:
    """Return a stream of the body at ``url``; raise OSError on failure."""
    try:
        resp = create_http_client().get(url, stream=True)
    except requests.RequestException as err:
        raise OSError(f"could not download release from {url}: {err}") from err
    if resp.status_code >= 300:
        resp.close()
        raise OSError(
            f"could not download release from {url}. Response code: {resp.status_code}"
        )
    raw = resp.raw
    if hasattr(raw, "decode_content"):
        raw.decode_content = True
    return raw


def decompress_and_update(src: BinaryIO, asset_name: str, cmd_path: str) -> None:
    """Extract the executable named like ``cmd_path`` from ``src`` and install it."""
    cmd = os.path.basename(cmd_path)
    asset = decompress_command(src, asset_name, cmd)
    apply_update(asset, cmd_path)