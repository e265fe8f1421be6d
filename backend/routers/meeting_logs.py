import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from models.schemas import MeetingLogDraft
from routers.deps import get_client_sync, get_gemini_service, require_client
from services.assistant import (
    AssistantError,
    LogNotFound,
    delete_meeting_log,
    extract_tasks,
    save_meeting_log,
    transcribe_file,
)
from services.client_store import StoreError
from services.client_sync import ClientSync
from services.gemini_service import GeminiService
from services.projection import sorted_meeting_logs

logger = logging.getLogger(__name__)

router = APIRouter()


def _store(sync: ClientSync, client) -> dict | None:
    try:
        sync.replace_client(client)
    except StoreError as e:
        logger.error("Error saving meeting logs: %s", e)
        return {"status": "error", "message": "Failed to save the meeting log."}
    return None


@router.get("/clients/{client_id}/logs")
async def list_logs(client_id: str, sync: ClientSync = Depends(get_client_sync)):
    client = require_client(sync, client_id)
    return {"logs": [log.model_dump(by_alias=True) for log in sorted_meeting_logs(client)]}


@router.post("/clients/{client_id}/logs")
async def save_log(
    client_id: str, draft: MeetingLogDraft, sync: ClientSync = Depends(get_client_sync)
):
    if not draft.title or not draft.content:
        raise HTTPException(status_code=422, detail="Title and content are required")
    client = require_client(sync, client_id)
    try:
        updated = save_meeting_log(client, draft)
    except LogNotFound:
        raise HTTPException(status_code=404, detail="Meeting log not found")
    return _store(sync, updated) or {"status": "ok"}


@router.delete("/clients/{client_id}/logs/{log_id}")
async def delete_log(
    client_id: str, log_id: str, sync: ClientSync = Depends(get_client_sync)
):
    client = require_client(sync, client_id)
    try:
        updated = delete_meeting_log(client, log_id)
    except LogNotFound:
        raise HTTPException(status_code=404, detail="Meeting log not found")
    return _store(sync, updated) or {"status": "ok"}


@router.post("/clients/{client_id}/logs/extract")
async def extract_and_save(
    client_id: str,
    draft: MeetingLogDraft,
    sync: ClientSync = Depends(get_client_sync),
    gemini: GeminiService | None = Depends(get_gemini_service),
):
    """Save the draft and append the next actions the model finds in it."""
    if not draft.content:
        raise HTTPException(status_code=422, detail="Content is required")
    client = require_client(sync, client_id)
    try:
        updated = await extract_tasks(gemini, client, draft)
    except LogNotFound:
        raise HTTPException(status_code=404, detail="Meeting log not found")
    except AssistantError as e:
        logger.error("Task extraction for %s failed: %s", client_id, e)
        return {"status": "error", "message": "An error occurred while extracting tasks."}

    added = len(updated.tasks) - len(client.tasks)
    return _store(sync, updated) or {
        "status": "ok",
        "message": "Saved the minutes and extracted tasks.",
        "added_tasks": added,
    }


@router.post("/logs/transcribe")
async def transcribe(
    file: UploadFile = File(...),
    draft_content: str = Form(""),
    gemini: GeminiService | None = Depends(get_gemini_service),
):
    """Transcribe an uploaded PDF/image/text file into the draft content."""
    raw = await file.read()
    mime_type = file.content_type or "application/octet-stream"
    try:
        content = await transcribe_file(gemini, draft_content, raw, mime_type)
    except AssistantError as e:
        logger.error("Transcription of %s failed: %s", file.filename, e)
        return {
            "status": "error",
            "message": "Failed to read the file.",
            "content": draft_content,
        }
    return {"status": "ok", "content": content}
