from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Iterator, Literal

from .domain.entities import DEFAULT_LANGUAGE, Note, Project, Section, Tree
from .util import new_id

Kind = Literal["project", "section", "note"]


@dataclass(frozen=True)
class NodeRef:
    project_id: str
    section_id: str | None = None
    note_id: str | None = None


@dataclass(frozen=True)
class NoteLocation:
    project: Project
    section: Section
    note: Note


def note_template(title: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
  <title>{title}</title>
  <style>
    body {{ font-family: Arial, sans-serif; padding: 20px; }}
    h1 {{ color: #6366f1; }}
  </style>
</head>
<body>
  <h1>{title}</h1>
  <p>Start editing your note here...</p>
</body>
</html>"""


def iter_notes(tree: Tree) -> Iterator[NoteLocation]:
    for project in tree.projects:
        for section in project.sections:
            for note in section.notes:
                yield NoteLocation(project=project, section=section, note=note)


def all_ids(tree: Tree) -> set[str]:
    ids: set[str] = set()
    for project in tree.projects:
        ids.add(project.id)
        for section in project.sections:
            ids.add(section.id)
            ids.update(n.id for n in section.notes)
    return ids


def find_note_location(tree: Tree, note_id: str) -> NoteLocation | None:
    for loc in iter_notes(tree):
        if loc.note.id == note_id:
            return loc
    return None


def find_note(tree: Tree, note_id: str) -> Note | None:
    loc = find_note_location(tree, note_id)
    return loc.note if loc else None


def _index_of(items, item_id: str) -> int:
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    return -1


def _swap(items: tuple, idx: int, new) -> tuple:
    return items[:idx] + (new,) + items[idx + 1 :]


def _update_project(tree: Tree, project_id: str, fn: Callable[[Project], Project]) -> Tree:
    pi = _index_of(tree.projects, project_id)
    if pi < 0:
        return tree
    old = tree.projects[pi]
    new = fn(old)
    if new is old:
        return tree
    return replace(tree, projects=_swap(tree.projects, pi, new))


def _update_section(tree: Tree, project_id: str, section_id: str, fn: Callable[[Section], Section]) -> Tree:
    def on_project(project: Project) -> Project:
        si = _index_of(project.sections, section_id)
        if si < 0:
            return project
        old = project.sections[si]
        new = fn(old)
        if new is old:
            return project
        return replace(project, sections=_swap(project.sections, si, new))

    return _update_project(tree, project_id, on_project)


def update_note(tree: Tree, note_id: str, fn: Callable[[Note], Note]) -> Tree:
    """
    Apply `fn` to the first note with `note_id`, rebuilding only the path from
    the root. Unknown ids and unchanged notes return `tree` itself.
    """
    # Walk by position so repeated project or section ids cannot misroute the edit.
    for pi, project in enumerate(tree.projects):
        for si, section in enumerate(project.sections):
            ni = _index_of(section.notes, note_id)
            if ni < 0:
                continue
            old = section.notes[ni]
            new = fn(old)
            if new is old:
                return tree
            section = replace(section, notes=_swap(section.notes, ni, new))
            project = replace(project, sections=_swap(project.sections, si, section))
            return replace(tree, projects=_swap(tree.projects, pi, project))
    return tree


def add_project(tree: Tree, name: str) -> Tree:
    if not name or not name.strip():
        return tree
    project = Project(id=new_id("p", all_ids(tree)), name=name)
    return replace(tree, projects=tree.projects + (project,))


def add_section(tree: Tree, project_id: str, name: str) -> Tree:
    if not name or not name.strip():
        return tree
    taken = all_ids(tree)

    def on_project(project: Project) -> Project:
        section = Section(id=new_id("s", taken), name=name)
        return replace(project, sections=project.sections + (section,))

    return _update_project(tree, project_id, on_project)


def add_note(tree: Tree, project_id: str, section_id: str, title: str, *, language: str = DEFAULT_LANGUAGE) -> Tree:
    if not title or not title.strip():
        return tree
    taken = all_ids(tree)

    def on_section(section: Section) -> Section:
        note = Note(
            id=new_id("n", taken),
            title=title,
            content=note_template(title),
            language=language,
        )
        return replace(section, notes=section.notes + (note,))

    return _update_section(tree, project_id, section_id, on_section)


def rename(tree: Tree, kind: Kind, ref: NodeRef, new_name: str) -> Tree:
    if not new_name or not new_name.strip():
        return tree

    if kind == "project":
        return _update_project(tree, ref.project_id, lambda p: replace(p, name=new_name))
    if kind == "section" and ref.section_id:
        return _update_section(tree, ref.project_id, ref.section_id, lambda s: replace(s, name=new_name))
    if kind == "note" and ref.section_id and ref.note_id:
        note_id = ref.note_id

        def on_section(section: Section) -> Section:
            ni = _index_of(section.notes, note_id)
            if ni < 0:
                return section
            return replace(section, notes=_swap(section.notes, ni, replace(section.notes[ni], title=new_name)))

        return _update_section(tree, ref.project_id, ref.section_id, on_section)
    return tree


def delete(tree: Tree, kind: Kind, ref: NodeRef) -> Tree:
    if kind == "project":
        if _index_of(tree.projects, ref.project_id) < 0:
            return tree
        return replace(tree, projects=tuple(p for p in tree.projects if p.id != ref.project_id))

    if kind == "section" and ref.section_id:
        section_id = ref.section_id

        def drop_section(project: Project) -> Project:
            if _index_of(project.sections, section_id) < 0:
                return project
            return replace(project, sections=tuple(s for s in project.sections if s.id != section_id))

        return _update_project(tree, ref.project_id, drop_section)

    if kind == "note" and ref.section_id and ref.note_id:
        note_id = ref.note_id

        def drop_note(section: Section) -> Section:
            if _index_of(section.notes, note_id) < 0:
                return section
            return replace(section, notes=tuple(n for n in section.notes if n.id != note_id))

        return _update_section(tree, ref.project_id, ref.section_id, drop_note)
    return tree


def add_tag(tree: Tree, note_id: str, tag: str) -> Tree:
    cleaned = (tag or "").strip()
    if not cleaned:
        return tree

    def on_note(note: Note) -> Note:
        if cleaned in note.tags:
            return note
        return replace(note, tags=note.tags + (cleaned,))

    return update_note(tree, note_id, on_note)


def remove_tag(tree: Tree, note_id: str, tag: str) -> Tree:
    def on_note(note: Note) -> Note:
        if tag not in note.tags:
            return note
        return replace(note, tags=tuple(t for t in note.tags if t != tag))

    return update_note(tree, note_id, on_note)


def update_content(tree: Tree, note_id: str, content: str) -> Tree:
    return update_note(tree, note_id, lambda note: replace(note, content=content))


def count_nodes(tree: Tree) -> tuple[int, int, int]:
    sections = sum(len(p.sections) for p in tree.projects)
    notes = sum(len(s.notes) for p in tree.projects for s in p.sections)
    return len(tree.projects), sections, notes
