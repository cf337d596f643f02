from __future__ import annotations

import pytest

from notelab_api.domain.entities import Note, Project, Section, Tree
from notelab_api.domain.exceptions import ReferenceNotFound
from notelab_api.search import filter_tree, matches
from notelab_api.tree import find_note, update_content
from notelab_api.versions import latest_version_number, list_checkpoints, save_checkpoint


def _tree() -> Tree:
    notes_a = (
        Note(id="n1", title="HSRP Basics", content="standby 1 ip", tags=("cisco",)),
        Note(id="n2", title="Flexbox", content="display: flex", tags=("css",)),
    )
    notes_b = (Note(id="n3", title="Hooks", content="useState", tags=("React", "frontend")),)
    return Tree(
        projects=(
            Project(
                id="p1",
                name="Mixed",
                sections=(Section(id="s1", name="Net", notes=notes_a), Section(id="s2", name="Empty")),
            ),
            Project(id="p2", name="React", sections=(Section(id="s3", name="Basics", notes=notes_b),)),
            Project(id="p3", name="Nothing"),
        )
    )


def test_checkpoints_number_sequentially_across_edits() -> None:
    t = _tree()
    t = save_checkpoint(t, "n1", now="2026-01-01T00:00:00.000Z")
    t = update_content(t, "n1", "edited")
    t = save_checkpoint(t, "n1")
    t = save_checkpoint(t, "n1")
    versions = list_checkpoints(t, "n1")
    assert [v.version for v in versions] == [1, 2, 3]
    assert versions[0].content == "standby 1 ip"
    assert versions[0].date == "2026-01-01T00:00:00.000Z"
    assert versions[1].content == "edited"
    assert versions[2].content == "edited"
    assert latest_version_number(t, "n1") == 3


def test_checkpoint_does_not_touch_other_notes_or_old_tree() -> None:
    before = _tree()
    after = save_checkpoint(before, "n2")
    assert find_note(before, "n2").versions == ()
    assert find_note(after, "n1").versions == ()
    assert len(find_note(after, "n2").versions) == 1


def test_checkpoint_unknown_note() -> None:
    before = _tree()
    assert save_checkpoint(before, "missing") is before
    with pytest.raises(ReferenceNotFound):
        list_checkpoints(before, "missing")
    assert latest_version_number(before, "missing") == 0


def test_matches_title_content_and_tags_case_insensitive() -> None:
    note = Note(id="n", title="HSRP Basics", content="standby 1 ip", tags=("Cisco",))
    assert matches(note, "")
    assert matches(note, "hsrp")
    assert matches(note, "STANDBY")
    assert matches(note, "cis")
    assert not matches(note, "ospf")


def test_filter_tree_empty_query_is_identity() -> None:
    t = _tree()
    assert filter_tree(t, "") == t


def test_filter_tree_prunes_empty_sections_and_projects() -> None:
    t = _tree()
    view = filter_tree(t, "react")
    assert [p.id for p in view.projects] == ["p2"]
    assert [n.id for n in view.projects[0].sections[0].notes] == ["n3"]

    view = filter_tree(t, "flex")
    assert [p.id for p in view.projects] == ["p1"]
    assert [s.id for s in view.projects[0].sections] == ["s1"]
    assert [n.id for n in view.projects[0].sections[0].notes] == ["n2"]


@pytest.mark.parametrize("query", ["s", "ip", "css", "zzz", "HOOK"])
def test_filter_tree_results_all_match(query: str) -> None:
    t = _tree()
    view = filter_tree(t, query)
    for project in view.projects:
        assert project.sections
        for section in project.sections:
            assert section.notes
            assert all(matches(n, query) for n in section.notes)
    assert filter_tree(t, "") == _tree()
