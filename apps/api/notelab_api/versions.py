from __future__ import annotations

from dataclasses import replace

from .domain.entities import Note, Tree, Version
from .domain.exceptions import ReferenceNotFound
from .tree import find_note, update_note
from .util import rfc3339_now


def save_checkpoint(tree: Tree, note_id: str, now: str | None = None) -> Tree:
    """
    Append a snapshot of the note's current content. Numbering is
    `len(versions) + 1`, so history stays gapless; identical snapshots are
    kept and there is no cap.
    """
    stamp = now or rfc3339_now()

    def on_note(note: Note) -> Note:
        snapshot = Version(version=len(note.versions) + 1, content=note.content, date=stamp)
        return replace(note, versions=note.versions + (snapshot,))

    return update_note(tree, note_id, on_note)


def list_checkpoints(tree: Tree, note_id: str) -> tuple[Version, ...]:
    note = find_note(tree, note_id)
    if note is None:
        raise ReferenceNotFound(note_id)
    return note.versions


def latest_version_number(tree: Tree, note_id: str) -> int:
    note = find_note(tree, note_id)
    return len(note.versions) if note else 0
