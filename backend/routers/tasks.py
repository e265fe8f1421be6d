import logging

from fastapi import APIRouter, Depends, HTTPException

from models.schemas import Client, CompletionFilter, TaskCreate, TaskFieldUpdate
from routers.deps import get_client_sync
from services.client_store import StoreError
from services.client_sync import ClientSync
from services.task_board import (
    ALL,
    ClientNotFound,
    TaskNotFound,
    add_task,
    delete_task,
    filter_tasks,
    find_client,
    flatten_tasks,
    is_overdue,
    list_assignees,
    toggle_task,
    update_task_field,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _apply(sync: ClientSync, client_id: str, change) -> dict:
    """Run a task mutation and write back the whole client record."""
    try:
        client = find_client(sync.snapshot, client_id)
        updated: Client = change(client)
    except ClientNotFound:
        raise HTTPException(status_code=404, detail="Client not found")
    except TaskNotFound:
        raise HTTPException(status_code=404, detail="Task not found")

    try:
        sync.replace_client(updated)
    except StoreError as e:
        logger.error("Error updating client tasks: %s", e)
        return {"status": "error"}
    return {"status": "ok", "tasks": [t.model_dump(by_alias=True) for t in updated.tasks]}


@router.get("")
async def list_tasks(
    assignee: str = ALL,
    completion: CompletionFilter = CompletionFilter.ALL,
    search: str = "",
    sync: ClientSync = Depends(get_client_sync),
):
    flat = flatten_tasks(sync.snapshot)
    shown = filter_tasks(flat, assignee, completion, search)
    return {
        "tasks": [
            {**t.model_dump(by_alias=True), "overdue": is_overdue(t)} for t in shown
        ],
        "assignees": list_assignees(flat),
        "shown": len(shown),
        "total": len(flat),
    }


@router.post("/{client_id}")
async def create_task(
    client_id: str, data: TaskCreate, sync: ClientSync = Depends(get_client_sync)
):
    if not data.text.strip():
        raise HTTPException(status_code=422, detail="Task text must not be blank")
    return _apply(sync, client_id, lambda c: add_task(c, data))


@router.post("/{client_id}/{task_id}/toggle")
async def toggle(client_id: str, task_id: str, sync: ClientSync = Depends(get_client_sync)):
    return _apply(sync, client_id, lambda c: toggle_task(c, task_id))


@router.patch("/{client_id}/{task_id}")
async def update_task(
    client_id: str,
    task_id: str,
    update: TaskFieldUpdate,
    sync: ClientSync = Depends(get_client_sync),
):
    return _apply(
        sync,
        client_id,
        lambda c: update_task_field(c, task_id, update.field, update.value),
    )


@router.delete("/{client_id}/{task_id}")
async def remove_task(
    client_id: str, task_id: str, sync: ClientSync = Depends(get_client_sync)
):
    return _apply(sync, client_id, lambda c: delete_task(c, task_id))
