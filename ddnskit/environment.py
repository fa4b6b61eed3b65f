"""Facts about the runtime environment and small request parameter helpers."""

import os
import subprocess
import time
import zoneinfo
from collections.abc import Mapping, MutableMapping, Sequence
from typing import Optional, Union

DOCKER_ENV_FILE = "/.dockerenv"
CONFIG_FILE_PATH_ENV = "DDNS_CONFIG_FILE_PATH"
CONFIG_FILE_NAME = ".ddns_go_config.yaml"
TERMUX_PREFIX = "/data/data/com.termux/files/usr"
_GETPROP = "/system/bin/getprop"

ParamValue = Union[str, Sequence[str]]


def is_run_in_docker() -> bool:
    """Return True if the Docker marker file exists."""
    try:
        os.stat(DOCKER_ENV_FILE)
    except OSError:
        return False
    return True


def is_termux() -> bool:
    """Return True when running inside Termux."""
    return os.environ.get("PREFIX") == TERMUX_PREFIX


def get_config_file_path() -> str:
    """Return the config path from the environment, or the default one."""
    return os.environ.get(CONFIG_FILE_PATH_ENV) or get_config_file_path_default()


def get_config_file_path_default() -> str:
    """Return the config file in the user's home directory."""
    home = os.environ.get("USERPROFILE" if os.name == "nt" else "HOME", "")
    if not home:
        return "../" + CONFIG_FILE_NAME
    return home + os.sep + CONFIG_FILE_NAME


def fix_timezone() -> Optional[str]:
    """Adopt the Android system timezone; return its name, or None if unavailable."""
    try:
        result = subprocess.run(
            [_GETPROP, "persist.sys.timezone"],
            capture_output=True,
            check=True,
            text=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None

    name = result.stdout.strip()
    try:
        zoneinfo.ZoneInfo(name)
    except (ValueError, zoneinfo.ZoneInfoNotFoundError):
        return None

    os.environ["TZ"] = name
    if hasattr(time, "tzset"):
        time.tzset()
    return name


def _first(value: Optional[ParamValue]) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return value[0] if value else ""


def copy_url_params(
    src: Mapping[str, ParamValue],
    dest: MutableMapping[str, list[str]],
    keys: Optional[Sequence[str]] = None,
) -> None:
    """Copy the first value of each key; with ``keys`` given, only non-empty ones."""
    if not keys:
        for key in src:
            dest[key] = [_first(src[key])]
        return
    for key in keys:
        value = _first(src.get(key))
        if value:
            dest[key] = [value]