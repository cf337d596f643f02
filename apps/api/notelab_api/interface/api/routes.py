import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from notelab_api.config import Settings
from notelab_api.dependencies import get_lab, get_settings
from notelab_api.domain.exceptions import ReferenceNotFound
from notelab_api.domain.schemas import (
    CheckpointOut,
    CheckpointsOut,
    ContentIn,
    ImportOut,
    MutationOut,
    NameIn,
    NoteGetOut,
    NoteOut,
    SelectionIn,
    SelectionOut,
    TagIn,
    TitleIn,
    TreeOut,
    VersionOut,
)
from notelab_api.transfer import export_filename
from notelab_api.tree import NodeRef
from notelab_api.workspace import NoteLab

router = APIRouter()
logger = logging.getLogger("notelab.api")


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _download(document: dict, filename: str) -> JSONResponse:
    return JSONResponse(content=document, headers={"Content-Disposition": f'attachment; filename="{filename}"'})


@router.get("/health")
def health(settings: Settings = Depends(get_settings)):
    return {"ok": True, "storage": settings.storage}


@router.get("/tree", response_model=TreeOut)
def get_tree(q: Optional[str] = None, lab: NoteLab = Depends(get_lab)):
    return TreeOut(**lab.view(q or "").to_dict())


@router.post("/projects", response_model=MutationOut)
def create_project(payload: NameIn, request: Request, lab: NoteLab = Depends(get_lab)):
    project_id = lab.add_project(payload.name)
    logger.info("project_create", extra={"rid": _rid(request), "id": project_id})
    return MutationOut(changed=project_id is not None, id=project_id)


@router.patch("/projects/{project_id}", response_model=MutationOut)
def rename_project(project_id: str, payload: NameIn, lab: NoteLab = Depends(get_lab)):
    changed = lab.rename("project", NodeRef(project_id), payload.name)
    return MutationOut(changed=changed, id=project_id)


@router.delete("/projects/{project_id}", response_model=MutationOut)
def delete_project(project_id: str, request: Request, lab: NoteLab = Depends(get_lab)):
    changed = lab.delete("project", NodeRef(project_id))
    logger.info("project_delete", extra={"rid": _rid(request), "id": project_id, "changed": changed})
    return MutationOut(changed=changed, id=project_id)


@router.post("/projects/{project_id}/sections", response_model=MutationOut)
def create_section(project_id: str, payload: NameIn, request: Request, lab: NoteLab = Depends(get_lab)):
    section_id = lab.add_section(project_id, payload.name)
    logger.info("section_create", extra={"rid": _rid(request), "id": section_id, "project": project_id})
    return MutationOut(changed=section_id is not None, id=section_id)


@router.patch("/projects/{project_id}/sections/{section_id}", response_model=MutationOut)
def rename_section(project_id: str, section_id: str, payload: NameIn, lab: NoteLab = Depends(get_lab)):
    changed = lab.rename("section", NodeRef(project_id, section_id), payload.name)
    return MutationOut(changed=changed, id=section_id)


@router.delete("/projects/{project_id}/sections/{section_id}", response_model=MutationOut)
def delete_section(project_id: str, section_id: str, request: Request, lab: NoteLab = Depends(get_lab)):
    changed = lab.delete("section", NodeRef(project_id, section_id))
    logger.info("section_delete", extra={"rid": _rid(request), "id": section_id, "changed": changed})
    return MutationOut(changed=changed, id=section_id)


@router.post("/projects/{project_id}/sections/{section_id}/notes", response_model=MutationOut)
def create_note(project_id: str, section_id: str, payload: TitleIn, request: Request, lab: NoteLab = Depends(get_lab)):
    note_id = lab.add_note(project_id, section_id, payload.title)
    logger.info("note_create", extra={"rid": _rid(request), "id": note_id, "section": section_id})
    return MutationOut(changed=note_id is not None, id=note_id)


@router.patch("/projects/{project_id}/sections/{section_id}/notes/{note_id}", response_model=MutationOut)
def rename_note(project_id: str, section_id: str, note_id: str, payload: TitleIn, lab: NoteLab = Depends(get_lab)):
    changed = lab.rename("note", NodeRef(project_id, section_id, note_id), payload.title)
    return MutationOut(changed=changed, id=note_id)


@router.delete("/projects/{project_id}/sections/{section_id}/notes/{note_id}", response_model=MutationOut)
def delete_note(project_id: str, section_id: str, note_id: str, request: Request, lab: NoteLab = Depends(get_lab)):
    changed = lab.delete("note", NodeRef(project_id, section_id, note_id))
    logger.info("note_delete", extra={"rid": _rid(request), "id": note_id, "changed": changed})
    return MutationOut(changed=changed, id=note_id)


@router.get("/notes/{note_id}", response_model=NoteGetOut)
def get_note(note_id: str, lab: NoteLab = Depends(get_lab)):
    try:
        editor = lab.editor_state(note_id)
    except ReferenceNotFound as e:
        raise HTTPException(status_code=404, detail="note_not_found") from e
    return NoteGetOut(
        note=NoteOut(**editor.note.to_dict()),
        editor_language=editor.language,
        selected=lab.selected_note_id == note_id,
    )


@router.put("/notes/{note_id}/content", response_model=MutationOut)
def update_content(note_id: str, payload: ContentIn, lab: NoteLab = Depends(get_lab)):
    return MutationOut(changed=lab.update_content(note_id, payload.content), id=note_id)


@router.post("/notes/{note_id}/tags", response_model=MutationOut)
def add_tag(note_id: str, payload: TagIn, lab: NoteLab = Depends(get_lab)):
    return MutationOut(changed=lab.add_tag(note_id, payload.tag), id=note_id)


@router.delete("/notes/{note_id}/tags/{tag:path}", response_model=MutationOut)
def remove_tag(note_id: str, tag: str, lab: NoteLab = Depends(get_lab)):
    return MutationOut(changed=lab.remove_tag(note_id, tag), id=note_id)


@router.get("/notes/{note_id}/checkpoints", response_model=CheckpointsOut)
def list_checkpoints(note_id: str, lab: NoteLab = Depends(get_lab)):
    try:
        versions = lab.checkpoints(note_id)
    except ReferenceNotFound as e:
        raise HTTPException(status_code=404, detail="note_not_found") from e
    return CheckpointsOut(items=[VersionOut(**v.to_dict()) for v in versions])


@router.post("/notes/{note_id}/checkpoints", response_model=CheckpointOut)
def save_checkpoint(note_id: str, request: Request, lab: NoteLab = Depends(get_lab)):
    number = lab.save_checkpoint(note_id)
    if number is None:
        return CheckpointOut(changed=False, message="Checkpoint not saved: note not found")
    logger.info("checkpoint_create", extra={"rid": _rid(request), "id": note_id, "version": number})
    return CheckpointOut(changed=True, version=number, message=f"Checkpoint #{number} saved!")


@router.get("/selection", response_model=SelectionOut)
def get_selection(lab: NoteLab = Depends(get_lab)):
    note = lab.selected_note()
    return SelectionOut(noteId=lab.selected_note_id, note=NoteOut(**note.to_dict()) if note else None)


@router.put("/selection", response_model=SelectionOut)
def set_selection(payload: SelectionIn, lab: NoteLab = Depends(get_lab)):
    try:
        note = lab.select(payload.noteId)
    except ReferenceNotFound as e:
        raise HTTPException(status_code=404, detail="note_not_found") from e
    return SelectionOut(noteId=lab.selected_note_id, note=NoteOut(**note.to_dict()) if note else None)


@router.get("/export/backup")
def export_backup(lab: NoteLab = Depends(get_lab)):
    return _download(lab.export_backup(), export_filename("backup"))


@router.get("/export/ai-context")
def export_ai_context(lab: NoteLab = Depends(get_lab)):
    return _download(lab.export_ai_context(), export_filename("ai-context"))


@router.post("/import", response_model=ImportOut)
async def import_tree(request: Request, lab: NoteLab = Depends(get_lab)):
    body = await request.body()
    try:
        summary = lab.import_document(body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    logger.info("import", extra={"rid": _rid(request), "projects": summary.projects})
    return ImportOut(
        ok=True,
        projects=summary.projects,
        sections=summary.sections,
        notes=summary.notes,
        message=f"Import successful! {summary.projects} project(s) loaded.",
    )
