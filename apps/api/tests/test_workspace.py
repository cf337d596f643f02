from __future__ import annotations

import json

import pytest

from notelab_api.domain.entities import Note, Project, Section, Tree
from notelab_api.domain.exceptions import ParseError, ReferenceNotFound, ValidationError
from notelab_api.persistence import MemorySnapshotStore, serialize_tree
from notelab_api.tree import NodeRef
from notelab_api.workspace import NoteLab


def _tree() -> Tree:
    n1 = Note(id="N1", title="First", content="hello")
    n2 = Note(id="N2", title="Second", content="import os")
    return Tree(projects=(Project(id="P1", name="Proj", sections=(Section(id="S1", name="Sec", notes=(n1, n2)),)),))


@pytest.fixture
def store() -> MemorySnapshotStore:
    return MemorySnapshotStore(serialize_tree(_tree()))


@pytest.fixture
def lab(store):
    lab = NoteLab(store, save_delay=60)
    yield lab
    lab.writer.cancel()


def test_loads_from_store_and_selects_first_note(lab) -> None:
    assert lab.tree == _tree()
    assert lab.selected_note_id == "N1"
    assert lab.selected_note().content == "hello"


def test_scenario_tags_checkpoints_export_import(lab) -> None:
    lab.add_tag("N1", "x")
    lab.add_tag("N1", "x")
    assert lab.selected_note().tags == ("x",)

    assert lab.save_checkpoint("N1") == 1
    assert lab.save_checkpoint("N1") == 2
    assert [v.version for v in lab.checkpoints("N1")] == [1, 2]

    lab.update_content("N1", "bye")
    lab.import_document(json.dumps(lab.export_backup()))
    note = lab.selected_note()
    assert note.content == "bye"
    assert len(note.versions) == 2


def test_missing_project_is_silent_noop(lab, store) -> None:
    before = lab.tree
    assert lab.add_section("nonexistent-project-id", "S") is None
    assert lab.tree is before
    assert not lab.writer.pending
    assert store.writes == []


def test_mutation_schedules_save_and_selected_note_is_fresh(lab, store) -> None:
    held = lab.selected_note()
    assert lab.update_content("N1", "new text")
    assert held.content == "hello"
    assert lab.selected_note().content == "new text"
    assert lab.writer.pending
    lab.close()
    assert json.loads(store.text)["projects"][0]["sections"][0]["notes"][0]["content"] == "new text"


def test_add_operations_return_ids_and_select_new_note(lab) -> None:
    pid = lab.add_project("New")
    sid = lab.add_section(pid, "Sec")
    nid = lab.add_note(pid, sid, "Note")
    assert pid.startswith("p") and sid.startswith("s") and nid.startswith("n")
    assert lab.selected_note_id == nid
    assert lab.add_project("  ") is None


def test_delete_clears_selection(lab) -> None:
    lab.select("N1")
    assert lab.delete("note", NodeRef("P1", "S1", "N2"))
    assert lab.selected_note_id == "N1"
    assert lab.delete("project", NodeRef("P1"))
    assert lab.selected_note_id is None
    assert lab.selected_note() is None


def test_select_unknown_raises(lab) -> None:
    with pytest.raises(ReferenceNotFound):
        lab.select("missing")
    assert lab.select(None) is None
    assert lab.selected_note_id is None


def test_editor_state_language_hint(lab) -> None:
    assert lab.editor_state("N1").language == "html"
    assert lab.editor_state("N2").language == "python"
    assert lab.editor_state("N2").content == "import os"
    with pytest.raises(ReferenceNotFound):
        lab.editor_state("missing")


def test_rejected_import_leaves_everything_untouched(lab, store) -> None:
    lab.update_content("N1", "draft")
    lab.writer.flush()
    tree_before = lab.tree
    persisted_before = store.text
    writes_before = len(store.writes)

    bad = {"projects": [{"id": "p", "name": "P", "sections": [{"id": "s", "name": "S", "notes": [
        {"id": "n", "content": "no title"},
    ]}]}]}
    with pytest.raises(ValidationError):
        lab.import_document(json.dumps(bad))
    with pytest.raises(ParseError):
        lab.import_document("not json")

    assert lab.tree is tree_before
    assert store.text == persisted_before
    assert len(store.writes) == writes_before
    assert lab.selected_note_id == "N1"


def test_import_replaces_tree_persists_and_resets_selection(lab, store) -> None:
    lab.update_content("N1", "pending edit")
    summary = lab.import_document('[{"id":"p9","name":"X","sections":[{"id":"s9","name":"Y","notes":[]}]}]')
    assert (summary.projects, summary.sections, summary.notes) == (1, 1, 0)
    assert lab.selected_note_id is None
    assert not lab.writer.pending
    assert json.loads(store.text) == {"projects": [{"id": "p9", "name": "X", "sections": [
        {"id": "s9", "name": "Y", "notes": []},
    ]}]}


def test_view_filters(lab) -> None:
    view = lab.view("import")
    assert [n.id for n in view.projects[0].sections[0].notes] == ["N2"]
    assert lab.view("") == lab.tree
