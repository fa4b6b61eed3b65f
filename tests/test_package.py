import io
import json
import sys
import zipfile
from unittest import mock

import pytest
import requests

from ddnskit.update.decompress import ExecutableNotFoundInArchiveError
from ddnskit.update.detect import current_arch, get_suffixes
from ddnskit.update.package import (
    RELEASE_REPO_ENV,
    decompress_and_update,
    download_asset_from_url,
    self_update,
    to,
)

OLD = b"old program"
NEW = b"new program"


def _response(status, body):
    resp = requests.Response()
    resp.status_code = status
    resp.raw = io.BytesIO(body)
    return resp


def _zip(name, data):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        archive.writestr(name, data)
    return buf.getvalue()


@pytest.fixture
def program(tmp_path):
    path = tmp_path / "app"
    path.write_bytes(OLD)
    return path


def test_decompress_and_update_zip(program):
    decompress_and_update(io.BytesIO(_zip("dist/app", NEW)), "release.zip", str(program))
    assert program.read_bytes() == NEW


def test_decompress_and_update_plain(program):
    decompress_and_update(io.BytesIO(NEW), "app", str(program))
    assert program.read_bytes() == NEW


def test_decompress_and_update_missing_executable(program):
    with pytest.raises(ExecutableNotFoundInArchiveError):
        decompress_and_update(io.BytesIO(_zip("other", NEW)), "release.zip", str(program))
    assert program.read_bytes() == OLD


def test_download_asset_from_url():
    with mock.patch("requests.Session.request", return_value=_response(200, NEW)):
        stream = download_asset_from_url("https://example.com/asset")
    assert stream.read() == NEW


def test_download_asset_error_status():
    with mock.patch("requests.Session.request", return_value=_response(404, b"")):
        with pytest.raises(OSError) as info:
            download_asset_from_url("https://example.com/asset")
    assert "Response code: 404" in str(info.value)


def test_to(program):
    with mock.patch(
        "requests.Session.request", return_value=_response(200, _zip("app", NEW))
    ):
        to("https://example.com/app.zip", "app.zip", str(program))
    assert program.read_bytes() == NEW


def test_self_update_invalid_version():
    assert self_update("not a version") is False


def test_self_update_without_repo(monkeypatch):
    monkeypatch.delenv(RELEASE_REPO_ENV, raising=False)
    assert self_update("1.0.0") is False


def _release(tag, asset_name):
    payload = {
        "tag_name": tag,
        "assets": [{"name": asset_name, "browser_download_url": "https://example.com/dl"}],
    }
    return _response(200, json.dumps(payload).encode())


def test_self_update_already_latest(monkeypatch, program):
    monkeypatch.setenv(RELEASE_REPO_ENV, "example/ddns")
    monkeypatch.setattr(sys, "argv", [str(program)])
    asset_name = "app_" + get_suffixes(current_arch())[0]
    with mock.patch("requests.Session.request", return_value=_release("v1.0.0", asset_name)):
        assert self_update("2.0.0") is False
    assert program.read_bytes() == OLD


def test_self_update_installs_newer(monkeypatch, program):
    monkeypatch.setenv(RELEASE_REPO_ENV, "example/ddns")
    monkeypatch.setattr(sys, "argv", [str(program)])
    asset_name = "app_" + get_suffixes(current_arch())[0]
    responses = [_release("v99.0.0", asset_name), _response(200, _zip("app", NEW))]
    with mock.patch("requests.Session.request", side_effect=responses):
        assert self_update("1.0.0") is True
    assert program.read_bytes() == NEW