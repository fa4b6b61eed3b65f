"""Extracting the program's executable from a downloaded release asset."""

import io
import logging
import tarfile
import zipfile
import zlib
from typing import BinaryIO, Callable

logger = logging.getLogger(__name__)


class CannotDecompressFileError(Exception):
    """Raised when an archive cannot be read."""


class ExecutableNotFoundInArchiveError(Exception):
    """Raised when an archive holds no file named after the executable."""


def match_executable_name(cmd: str, target: str) -> bool:
    """Return True if ``target`` is ``cmd`` or ``cmd`` with an ``.exe`` suffix."""
    return target in (cmd, cmd + ".exe")


def _base_name(name: str) -> str:
    return name.rsplit("/", 1)[-1]


def _unzip(src: BinaryIO, cmd: str) -> BinaryIO:
    # The zip format needs random access, so the whole archive is buffered first.
    try:
        data = src.read()
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, OSError) as err:
        raise CannotDecompressFileError(f"failed to decompress zip file: {err}") from err

    with archive:
        for info in archive.infolist():
            if info.is_dir() or not match_executable_name(cmd, _base_name(info.filename)):
                continue
            try:
                return io.BytesIO(archive.read(info))
            except (zipfile.BadZipFile, OSError, zlib.error) as err:
                raise CannotDecompressFileError(
                    f"failed to decompress zip file: {err}"
                ) from err

    raise ExecutableNotFoundInArchiveError(f"executable not found in zip file: {cmd!r}")


def _untar(src: BinaryIO, cmd: str) -> BinaryIO:
    try:
        with tarfile.open(fileobj=src, mode="r|gz") as archive:
            for member in archive:
                if member.isfile() and match_executable_name(cmd, _base_name(member.name)):
                    extracted = archive.extractfile(member)
                    return io.BytesIO(extracted.read() if extracted is not None else b"")
    except (tarfile.TarError, OSError, EOFError, zlib.error) as err:
        raise CannotDecompressFileError(f"failed to decompress tar.gz file: {err}") from err

    raise ExecutableNotFoundInArchiveError(
        f"executable not found in tar.gz file: {cmd!r}"
    )


_FILE_TYPES: dict[str, Callable[[BinaryIO, str], BinaryIO]] = {
    ".zip": _unzip,
    ".tar.gz": _untar,
}


def decompress_command(src: BinaryIO, url: str, cmd: str) -> BinaryIO:
    """Return a reader for ``cmd`` inside the archive named by ``url``.

    The format is taken from the extension of ``url``; anything that is not
    a ``.zip`` or ``.tar.gz`` is returned unchanged.
    """
    for ext, decompress in _FILE_TYPES.items():
        if url.endswith(ext):
            return decompress(src, cmd)
    logger.info("It's not a compressed file, skip decompressing")
    return src