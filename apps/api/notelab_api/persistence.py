from __future__ import annotations

import logging
import threading
import time
from pathlib import Path

import yaml

from .domain.entities import DEFAULT_LANGUAGE, Tree
from .domain.exceptions import NoteLabError, ParseError
from .domain.ports import SnapshotStore
from .parsing import parse_json_document
from .transfer import dumps_document, export_backup, tree_from_document
from .util import atomic_write_text

logger = logging.getLogger("notelab.persistence")

SEED_PATH = Path(__file__).with_name("seed.yaml")


class FileSnapshotStore:
    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> str | None:
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Snapshot is not valid UTF-8: {e}") from e

    def write(self, text: str) -> None:
        atomic_write_text(self.path, text)


class MemorySnapshotStore:
    def __init__(self, text: str | None = None) -> None:
        self.text = text
        self.writes: list[str] = []

    def read(self) -> str | None:
        return self.text

    def write(self, text: str) -> None:
        self.text = text
        self.writes.append(text)


def serialize_tree(tree: Tree) -> str:
    return dumps_document(export_backup(tree))


def load_seed_tree(default_language: str = DEFAULT_LANGUAGE) -> Tree:
    document = yaml.safe_load(SEED_PATH.read_text(encoding="utf-8"))
    return tree_from_document(document, default_language)


def load_tree(store: SnapshotStore, default_language: str = DEFAULT_LANGUAGE) -> Tree:
    """
    Read the saved workspace. A missing snapshot or one that cannot be read,
    parsed or validated falls back to the seed content; failures are only
    logged.
    """
    try:
        text = store.read()
        if text is None:
            logger.info("snapshot_missing_using_seed")
            return load_seed_tree(default_language)
        return tree_from_document(parse_json_document(text), default_language)
    except (OSError, ValueError, NoteLabError):
        logger.exception("snapshot_load_failed")
        return load_seed_tree(default_language)


class DebouncedWriter:
    """
    Single-slot deferred save. `schedule` replaces whatever is pending and
    pushes the deadline back, so only the newest tree is ever written and at
    most one write is pending. One worker thread serves a burst of schedules
    and exits once nothing is left to write. Writes never overlap.
    """

    def __init__(self, store: SnapshotStore, delay: float = 0.5) -> None:
        self.store = store
        self.delay = delay
        self._cond = threading.Condition()
        self._write_lock = threading.Lock()
        self._worker: threading.Thread | None = None
        self._pending: Tree | None = None
        self._deadline: float | None = None

    @property
    def pending(self) -> bool:
        with self._cond:
            return self._pending is not None

    def schedule(self, tree: Tree) -> None:
        with self._cond:
            self._pending = tree
            self._deadline = time.monotonic() + self.delay
            if self._worker is None:
                self._worker = threading.Thread(target=self._run, name="notelab-snapshot-writer", daemon=True)
                self._worker.start()
            self._cond.notify()

    def cancel(self) -> None:
        with self._cond:
            self._pending = None
            self._deadline = None
            self._cond.notify()

    def _run(self) -> None:
        while True:
            with self._cond:
                while self._deadline is not None:
                    remaining = self._deadline - time.monotonic()
                    if remaining <= 0:
                        break
                    self._cond.wait(remaining)
                if self._deadline is None:
                    self._worker = None
                    return
            self._fire()

    def _fire(self) -> None:
        with self._write_lock:
            with self._cond:
                # A schedule, flush or cancel got here first.
                if self._deadline is None or self._deadline > time.monotonic():
                    return
                tree = self._pending
                if tree is None:
                    self._deadline = None
                    return
            try:
                self._write(tree)
            except OSError:
                logger.exception("snapshot_write_failed")
                # Keep the tree for the next flush; stop retrying on the timer.
                with self._cond:
                    if self._pending is tree:
                        self._deadline = None
                return
            self._settle(tree)

    def _settle(self, tree: Tree) -> None:
        with self._cond:
            if self._pending is tree:
                self._pending = None
                self._deadline = None
                self._cond.notify()

    def flush(self) -> bool:
        """Write the pending tree now. On failure the tree stays pending and the error propagates."""
        with self._write_lock:
            with self._cond:
                tree = self._pending
            if tree is None:
                return False
            self._write(tree)
            self._settle(tree)
            return True

    def write_now(self, tree: Tree) -> None:
        """Write `tree` immediately; the pending write is dropped only once this succeeds."""
        with self._write_lock:
            self._write(tree)
            with self._cond:
                self._pending = None
                self._deadline = None
                self._cond.notify()

    def _write(self, tree: Tree) -> None:
        self.store.write(serialize_tree(tree))
        logger.debug("snapshot_written", extra={"projects": len(tree.projects)})
