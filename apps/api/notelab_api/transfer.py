from __future__ import annotations

import json
from collections import Counter
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Literal

from .domain.entities import DEFAULT_LANGUAGE, Note, Project, Section, Tree, Version
from .domain.exceptions import UnsupportedShapeError, ValidationError
from .parsing import parse_json_document
from .tree import count_nodes, iter_notes
from .util import rfc3339_from_datetime

APP_NAME = "EduNoteLab"
APP_VERSION = "1.0.0"
AI_CONTEXT_PURPOSE = "AI learning context: complete study snapshot for an assistant"

ExportKind = Literal["backup", "ai-context"]


def export_backup(tree: Tree) -> dict:
    return tree.to_dict()


def export_ai_context(tree: Tree, now: datetime | None = None) -> dict:
    """
    Backup tree plus read-only statistics. `completeStructure` is the same
    projects list, so the document is accepted back by `import_document`;
    everything else is ignored on import.
    """
    moment = now or datetime.now(timezone.utc)
    total_projects, total_sections, total_notes = count_nodes(tree)

    tag_counts: Counter[str] = Counter()
    notes_meta: list[dict] = []
    total_checkpoints = 0
    for loc in iter_notes(tree):
        note = loc.note
        tag_counts.update(note.tags)
        total_checkpoints += len(note.versions)
        notes_meta.append(
            {
                "id": note.id,
                "title": note.title,
                "project": loc.project.name,
                "section": loc.section.name,
                "language": note.language,
                "tags": list(note.tags),
                "contentLength": len(note.content),
                "checkpointCount": len(note.versions),
                "lastCheckpointDate": note.versions[-1].date if note.versions else None,
            }
        )

    ranked_tags = sorted(tag_counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return {
        "metadata": {
            "exportDate": rfc3339_from_datetime(moment),
            "appName": APP_NAME,
            "appVersion": APP_VERSION,
            "purpose": AI_CONTEXT_PURPOSE,
        },
        "overview": {
            "totalProjects": total_projects,
            "totalSections": total_sections,
            "totalNotes": total_notes,
            "totalCheckpoints": total_checkpoints,
        },
        "completeStructure": [p.to_dict() for p in tree.projects],
        "analytics": {
            "tagFrequency": {tag: count for tag, count in ranked_tags},
            "notes": notes_meta,
        },
    }


def export_filename(kind: ExportKind, now: datetime | None = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return f"edunotelab-{kind}-{moment.date().isoformat()}.json"


def dumps_document(document: Any) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def detect_projects(document: Any) -> list:
    # Order matters: a full backup, then the AI-context envelope, then a bare list.
    if isinstance(document, Mapping) and isinstance(document.get("projects"), list):
        return document["projects"]
    if isinstance(document, Mapping) and isinstance(document.get("completeStructure"), list):
        return document["completeStructure"]
    if isinstance(document, list):
        return document
    raise UnsupportedShapeError(
        "Invalid format: expected { projects: [...] } or { completeStructure: [...] } or a list of projects"
    )


def _required(obj: Mapping, key: str) -> str | None:
    value = obj.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value:
        return value
    return None


def _list_or_empty(value: Any) -> list:
    return value if isinstance(value, list) else []


def _normalize_tags(raw: Any) -> tuple[str, ...]:
    tags: list[str] = []
    for t in _list_or_empty(raw):
        if isinstance(t, str) and t not in tags:
            tags.append(t)
    return tuple(tags)


def _normalize_versions(raw: Any) -> tuple[Version, ...]:
    entries = [v for v in _list_or_empty(raw) if isinstance(v, Mapping)]
    return tuple(
        Version(
            version=i + 1,
            content=v["content"] if isinstance(v.get("content"), str) else "",
            date=v["date"] if isinstance(v.get("date"), str) else "",
        )
        for i, v in enumerate(entries)
    )


def _normalize_translations(raw: Any) -> dict[str, str]:
    if not isinstance(raw, Mapping):
        return {}
    return {k: v for k, v in raw.items() if isinstance(k, str) and isinstance(v, str)}


def _normalize_note(raw: Any, index: int, section_name: str, default_language: str) -> Note:
    note = raw if isinstance(raw, Mapping) else {}
    note_id = _required(note, "id")
    title = _required(note, "title")
    content = note.get("content")
    if not note_id or not title or not isinstance(content, str):
        raise ValidationError(f'Note #{index} in "{section_name}" missing id/title/content')
    language = note.get("language")
    return Note(
        id=note_id,
        title=title,
        content=content,
        tags=_normalize_tags(note.get("tags")),
        versions=_normalize_versions(note.get("versions")),
        translations=_normalize_translations(note.get("translations")),
        language=language if isinstance(language, str) and language else default_language,
    )


def _normalize_section(raw: Any, index: int, project_name: str, default_language: str) -> Section:
    section = raw if isinstance(raw, Mapping) else {}
    section_id = _required(section, "id")
    name = _required(section, "name")
    if not section_id or not name:
        raise ValidationError(f'Section #{index} in "{project_name}" missing id/name')
    notes = tuple(
        _normalize_note(n, ni, name, default_language) for ni, n in enumerate(_list_or_empty(section.get("notes")))
    )
    return Section(id=section_id, name=name, notes=notes)


def normalize_projects(projects: list, default_language: str = DEFAULT_LANGUAGE) -> Tree:
    """
    Validate and fill defaults for a detected projects list. Raises
    `ValidationError` on the first missing required field; nothing is
    applied anywhere until the whole list has been converted.
    """
    out: list[Project] = []
    for pi, raw in enumerate(projects):
        project = raw if isinstance(raw, Mapping) else {}
        project_id = _required(project, "id")
        name = _required(project, "name")
        if not project_id or not name:
            raise ValidationError(f"Project #{pi} missing id/name")
        sections = tuple(
            _normalize_section(s, si, name, default_language)
            for si, s in enumerate(_list_or_empty(project.get("sections")))
        )
        out.append(Project(id=project_id, name=name, sections=sections))
    return Tree(projects=tuple(out))


def tree_from_document(document: Any, default_language: str = DEFAULT_LANGUAGE) -> Tree:
    return normalize_projects(detect_projects(document), default_language)


def import_document(text: str | bytes, default_language: str = DEFAULT_LANGUAGE) -> Tree:
    return tree_from_document(parse_json_document(text), default_language)
