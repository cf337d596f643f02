from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_LANGUAGE = "html"


@dataclass(frozen=True)
class Version:
    version: int
    content: str
    date: str

    def to_dict(self) -> dict:
        return {"version": self.version, "content": self.content, "date": self.date}


@dataclass(frozen=True)
class Note:
    id: str
    title: str
    content: str
    tags: tuple[str, ...] = ()
    versions: tuple[Version, ...] = ()
    translations: dict[str, str] = field(default_factory=dict)
    language: str = DEFAULT_LANGUAGE

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags),
            "versions": [v.to_dict() for v in self.versions],
            "translations": dict(self.translations),
            "language": self.language,
        }


@dataclass(frozen=True)
class Section:
    id: str
    name: str
    notes: tuple[Note, ...] = ()

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "notes": [n.to_dict() for n in self.notes]}


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    sections: tuple[Section, ...] = ()

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "sections": [s.to_dict() for s in self.sections]}


@dataclass(frozen=True)
class Tree:
    projects: tuple[Project, ...] = ()

    def to_dict(self) -> dict:
        return {"projects": [p.to_dict() for p in self.projects]}

    def first_note(self) -> Note | None:
        if self.projects and self.projects[0].sections and self.projects[0].sections[0].notes:
            return self.projects[0].sections[0].notes[0]
        return None
