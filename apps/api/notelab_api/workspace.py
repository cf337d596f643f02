from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from . import tree as ops
from .domain.entities import DEFAULT_LANGUAGE, Note, Tree, Version
from .domain.exceptions import ReferenceNotFound
from .domain.ports import SnapshotStore
from .parsing import detect_language
from .persistence import DebouncedWriter, load_tree
from .search import filter_tree
from .transfer import export_ai_context, export_backup, import_document
from .tree import Kind, NodeRef
from .versions import latest_version_number, list_checkpoints, save_checkpoint

logger = logging.getLogger("notelab.workspace")


@dataclass(frozen=True)
class ImportSummary:
    projects: int
    sections: int
    notes: int


@dataclass(frozen=True)
class EditorState:
    note: Note
    language: str

    @property
    def content(self) -> str:
        return self.note.content


class NoteLab:
    """
    The single in-process workspace: current tree, selected note and the
    debounced writer. Calls are serialized so one mutation finishes before
    the next starts.
    """

    def __init__(
        self,
        store: SnapshotStore,
        *,
        save_delay: float = 0.5,
        default_language: str = DEFAULT_LANGUAGE,
        tree: Tree | None = None,
    ) -> None:
        self.store = store
        self.default_language = default_language
        self.writer = DebouncedWriter(store, delay=save_delay)
        self._lock = threading.RLock()
        self._tree = tree if tree is not None else load_tree(store, default_language)
        first = self._tree.first_note()
        self._selected_id: str | None = first.id if first else None

    @property
    def tree(self) -> Tree:
        return self._tree

    @property
    def selected_note_id(self) -> str | None:
        return self._selected_id

    def selected_note(self) -> Note | None:
        if self._selected_id is None:
            return None
        return ops.find_note(self._tree, self._selected_id)

    def select(self, note_id: str | None) -> Note | None:
        with self._lock:
            if note_id is None:
                self._selected_id = None
                return None
            note = ops.find_note(self._tree, note_id)
            if note is None:
                raise ReferenceNotFound(note_id)
            self._selected_id = note_id
            return note

    def _apply(self, op: str, fn: Callable[[Tree], Tree]) -> bool:
        with self._lock:
            before = self._tree
            after = fn(before)
            if after is before:
                logger.debug("tree_mutation_noop", extra={"op": op})
                return False
            self._tree = after
            if self._selected_id is not None and ops.find_note(after, self._selected_id) is None:
                self._selected_id = None
            self.writer.schedule(after)
            logger.debug("tree_mutation", extra={"op": op})
            return True

    def _created_id(self, before: set[str]) -> str | None:
        created = ops.all_ids(self._tree) - before
        return created.pop() if created else None

    def add_project(self, name: str) -> str | None:
        with self._lock:
            before = ops.all_ids(self._tree)
            if not self._apply("add_project", lambda t: ops.add_project(t, name)):
                return None
            return self._created_id(before)

    def add_section(self, project_id: str, name: str) -> str | None:
        with self._lock:
            before = ops.all_ids(self._tree)
            if not self._apply("add_section", lambda t: ops.add_section(t, project_id, name)):
                return None
            return self._created_id(before)

    def add_note(self, project_id: str, section_id: str, title: str) -> str | None:
        with self._lock:
            before = ops.all_ids(self._tree)
            changed = self._apply(
                "add_note",
                lambda t: ops.add_note(t, project_id, section_id, title, language=self.default_language),
            )
            if not changed:
                return None
            note_id = self._created_id(before)
            self._selected_id = note_id
            return note_id

    def rename(self, kind: Kind, ref: NodeRef, new_name: str) -> bool:
        return self._apply(f"rename_{kind}", lambda t: ops.rename(t, kind, ref, new_name))

    def delete(self, kind: Kind, ref: NodeRef) -> bool:
        return self._apply(f"delete_{kind}", lambda t: ops.delete(t, kind, ref))

    def add_tag(self, note_id: str, tag: str) -> bool:
        return self._apply("add_tag", lambda t: ops.add_tag(t, note_id, tag))

    def remove_tag(self, note_id: str, tag: str) -> bool:
        return self._apply("remove_tag", lambda t: ops.remove_tag(t, note_id, tag))

    def update_content(self, note_id: str, content: str) -> bool:
        return self._apply("update_content", lambda t: ops.update_content(t, note_id, content))

    def save_checkpoint(self, note_id: str) -> int | None:
        """Returns the new checkpoint number, or None when the note is unknown."""
        with self._lock:
            if not self._apply("save_checkpoint", lambda t: save_checkpoint(t, note_id)):
                return None
            number = latest_version_number(self._tree, note_id)
            logger.info("checkpoint_saved", extra={"id": note_id, "version": number})
            return number

    def checkpoints(self, note_id: str) -> tuple[Version, ...]:
        return list_checkpoints(self._tree, note_id)

    def editor_state(self, note_id: str) -> EditorState:
        note = ops.find_note(self._tree, note_id)
        if note is None:
            raise ReferenceNotFound(note_id)
        return EditorState(note=note, language=detect_language(note.content, note.language))

    def view(self, query: str = "") -> Tree:
        return filter_tree(self._tree, query)

    def export_backup(self) -> dict:
        return export_backup(self._tree)

    def export_ai_context(self, now: datetime | None = None) -> dict:
        return export_ai_context(self._tree, now or datetime.now(timezone.utc))

    def import_document(self, text: str | bytes) -> ImportSummary:
        """
        Replace the whole tree from an external document. Any parse or
        validation error propagates before anything changes; on success the
        new tree is persisted at once and the first note is selected.
        """
        with self._lock:
            try:
                imported = import_document(text, self.default_language)
            except ValueError as e:
                logger.warning("import_rejected", extra={"error": str(e)})
                raise
            self.writer.write_now(imported)
            self._tree = imported
            first = imported.first_note()
            self._selected_id = first.id if first else None
            projects, sections, notes = ops.count_nodes(imported)
            logger.info("import_ok", extra={"projects": projects, "sections": sections, "notes": notes})
            return ImportSummary(projects=projects, sections=sections, notes=notes)

    def close(self) -> None:
        self.writer.flush()
