"""Replacing an executable file with new contents, with rollback."""

import contextlib
import os
import subprocess
import sys
from typing import BinaryIO


def apply_update(update: BinaryIO, target_path: str) -> None:
    """Replace ``target_path`` with the contents read from ``update``.

    The new contents are written to ``<target>.new``, the target is moved to
    ``<target>.old``, and the new file is moved into place.  If that last move
    fails the old file is moved back and the error is raised.
    """
    data = update.read()

    directory, filename = os.path.split(target_path)
    new_path = os.path.join(directory, f"{filename}.new")
    fd = os.open(new_path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o755)
    with os.fdopen(fd, "wb") as fp:
        fp.write(data)

    old_path = os.path.join(directory, f"{filename}.old")
    # A leftover old file would make the rename below fail on Windows.
    with contextlib.suppress(OSError):
        os.remove(old_path)

    os.rename(target_path, old_path)
    try:
        os.rename(new_path, target_path)
    except OSError:
        with contextlib.suppress(OSError):
            os.rename(old_path, target_path)
        raise

    try:
        os.remove(old_path)
    except OSError:
        if sys.platform == "win32":
            # The running program cannot delete its own image; do it once it exits.
            subprocess.Popen(["cmd.exe", "/c", f"ping 127.0.0.1 -n 2 > NUL & del {old_path}"])
            return
        raise