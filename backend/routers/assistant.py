import logging

from fastapi import APIRouter, Depends

from routers.deps import get_client_sync, get_gemini_service, require_client
from services.assistant import AssistantError, generate_agenda, suggest_tasks
from services.client_store import StoreError
from services.client_sync import ClientSync
from services.gemini_service import GeminiService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{client_id}/agenda")
async def agenda(
    client_id: str,
    sync: ClientSync = Depends(get_client_sync),
    gemini: GeminiService | None = Depends(get_gemini_service),
):
    client = require_client(sync, client_id)
    return {"agenda": await generate_agenda(gemini, client)}


@router.post("/{client_id}/suggest-tasks")
async def suggest(
    client_id: str,
    sync: ClientSync = Depends(get_client_sync),
    gemini: GeminiService | None = Depends(get_gemini_service),
):
    client = require_client(sync, client_id)
    try:
        updated = await suggest_tasks(gemini, client)
    except AssistantError as e:
        logger.error("Task suggestion for %s failed: %s", client_id, e)
        return {"status": "error", "message": "Failed to generate task suggestions."}

    try:
        sync.replace_client(updated)
    except StoreError as e:
        logger.error("Error saving suggested tasks: %s", e)
        return {"status": "error", "message": "Failed to save the suggested tasks."}

    new_tasks = updated.tasks[len(client.tasks):]
    return {"status": "ok", "tasks": [t.model_dump(by_alias=True) for t in new_tasks]}
