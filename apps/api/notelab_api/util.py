from __future__ import annotations

import os
import threading
import time
from collections.abc import Container
from datetime import datetime, timezone
from pathlib import Path


def rfc3339_from_datetime(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def rfc3339_now() -> str:
    return rfc3339_from_datetime(datetime.now(timezone.utc))


def atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp.{os.getpid()}")
    tmp_path.write_text(content, encoding="utf-8")
    tmp_path.replace(path)


class TimestampIds:
    """
    Ids are a type prefix plus creation time in milliseconds ("p1700000000000").
    Values never repeat within a process and skip anything already taken.
    """

    def __init__(self, clock=time.time) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def new_id(self, prefix: str, taken: Container[str] = ()) -> str:
        with self._lock:
            stamp = max(int(self._clock() * 1000), self._last + 1)
            while f"{prefix}{stamp}" in taken:
                stamp += 1
            self._last = stamp
            return f"{prefix}{stamp}"


_ids = TimestampIds()


def new_id(prefix: str, taken: Container[str] = ()) -> str:
    return _ids.new_id(prefix, taken)
