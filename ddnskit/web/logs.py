"""In-memory log buffer and JSON result bodies for the web interface."""

import json
import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Union

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _marshal(value: Any) -> str:
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return "".join(_HTML_ESCAPES.get(ch, ch) for ch in text)


@dataclass
class MemoryLogs:
    """Keeps the most recent ``max_num`` log entries."""

    max_num: int = 50
    logs: list[str] = field(default_factory=list)

    def write(self, p: Union[str, bytes]) -> int:
        """Append an entry, dropping the oldest ones over the limit."""
        text = p.decode("utf-8", errors="replace") if isinstance(p, (bytes, bytearray)) else p
        self.logs.append(text)
        excess = len(self.logs) - self.max_num
        if excess > 0:
            del self.logs[:excess]
        return len(p)

    def to_json(self) -> str:
        """Return the entries as a JSON array."""
        return _marshal(self.logs)

    def clear(self) -> None:
        """Drop every entry."""
        self.logs.clear()


@dataclass
class Result:
    """A status code, a message and optional data for a JSON reply."""

    code: int
    msg: str
    data: Any = None

    def to_json(self) -> str:
        """Return the result as a JSON object followed by a newline."""
        return _marshal({"Code": self.code, "Msg": self.msg, "Data": self.data}) + "\n"


def return_error(msg: str) -> str:
    """Return the JSON body of an error reply."""
    return Result(code=HTTPStatus.INTERNAL_SERVER_ERROR.value, msg=msg).to_json()


def return_ok(msg: str, data: Any = None) -> str:
    """Return the JSON body of a successful reply."""
    return Result(code=HTTPStatus.OK.value, msg=msg, data=data).to_json()


class _MemoryLogHandler(logging.Handler):
    def __init__(self, target: MemoryLogs) -> None:
        super().__init__()
        self.target = target
        self.setFormatter(logging.Formatter("%(asctime)s %(message)s", "%Y/%m/%d %H:%M:%S"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.target.write(self.format(record) + "\n")
        except Exception:
            self.handleError(record)


memory_logs = MemoryLogs(max_num=50)

_package_logger = logging.getLogger("ddnskit")
_package_logger.addHandler(_MemoryLogHandler(memory_logs))
if _package_logger.level == logging.NOTSET:
    _package_logger.setLevel(logging.INFO)