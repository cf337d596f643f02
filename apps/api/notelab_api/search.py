from __future__ import annotations

from dataclasses import replace

from .domain.entities import Note, Tree


def matches(note: Note, query: str) -> bool:
    if not query:
        return True
    needle = query.lower()
    return (
        needle in note.title.lower()
        or needle in note.content.lower()
        or any(needle in tag.lower() for tag in note.tags)
    )


def filter_tree(tree: Tree, query: str) -> Tree:
    if not query:
        return tree

    projects = []
    for project in tree.projects:
        sections = []
        for section in project.sections:
            notes = tuple(n for n in section.notes if matches(n, query))
            if notes:
                sections.append(replace(section, notes=notes))
        if sections:
            projects.append(replace(project, sections=tuple(sections)))
    return Tree(projects=tuple(projects))
