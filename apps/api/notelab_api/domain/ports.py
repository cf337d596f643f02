from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SnapshotStore(Protocol):
    def read(self) -> str | None:
        ...

    def write(self, text: str) -> None:
        ...
