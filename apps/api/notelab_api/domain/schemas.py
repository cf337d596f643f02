from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class VersionOut(BaseModel):
    version: int
    content: str
    date: str


class NoteOut(BaseModel):
    id: str
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    versions: list[VersionOut] = Field(default_factory=list)
    translations: dict[str, str] = Field(default_factory=dict)
    language: str


class SectionOut(BaseModel):
    id: str
    name: str
    notes: list[NoteOut] = Field(default_factory=list)


class ProjectOut(BaseModel):
    id: str
    name: str
    sections: list[SectionOut] = Field(default_factory=list)


class TreeOut(BaseModel):
    projects: list[ProjectOut] = Field(default_factory=list)


class NoteGetOut(BaseModel):
    note: NoteOut
    editor_language: str
    selected: bool


class NameIn(BaseModel):
    name: str = ""


class TitleIn(BaseModel):
    title: str = ""


class ContentIn(BaseModel):
    content: str


class TagIn(BaseModel):
    tag: str = ""


class SelectionIn(BaseModel):
    noteId: Optional[str] = None


class SelectionOut(BaseModel):
    noteId: Optional[str] = None
    note: Optional[NoteOut] = None


class MutationOut(BaseModel):
    changed: bool
    id: Optional[str] = None


class CheckpointOut(BaseModel):
    changed: bool
    version: Optional[int] = None
    message: str


class CheckpointsOut(BaseModel):
    items: list[VersionOut] = Field(default_factory=list)


class ImportOut(BaseModel):
    ok: bool
    projects: int
    sections: int
    notes: int
    message: str
