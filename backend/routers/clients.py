import logging

from fastapi import APIRouter, Depends, Response

from models.schemas import (
    Client,
    ClientCreate,
    ClientFieldUpdate,
    ClientReplace,
    SortOption,
    StatusFilter,
)
from routers.deps import get_client_sync, require_client
from services.client_store import StoreError
from services.client_sync import ClientSync
from services.projection import client_summary, compute_stats, project_clients

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_clients(
    search: str = "",
    status: StatusFilter = StatusFilter.ALL,
    sort: SortOption = SortOption.NEXT_MEETING,
    sync: ClientSync = Depends(get_client_sync),
):
    clients = project_clients(sync.snapshot, search, status.value, sort)
    return {
        "clients": [client_summary(c) for c in clients],
        "loading": sync.loading,
        "error": sync.error,
    }


@router.get("/stats")
async def stats(sync: ClientSync = Depends(get_client_sync)):
    return compute_stats(sync.snapshot).model_dump(by_alias=True)


@router.get("/{client_id}")
async def get_client(client_id: str, sync: ClientSync = Depends(get_client_sync)):
    return client_summary(require_client(sync, client_id))


@router.post("")
async def create_client(data: ClientCreate, sync: ClientSync = Depends(get_client_sync)):
    try:
        client = sync.create_client(data)
    except StoreError as e:
        logger.error("Error adding client: %s", e)
        return {
            "status": "error",
            "message": "Failed to save the client. Check the data directory permissions.",
        }
    return {"status": "ok", "client": client.to_document()}


@router.patch("/{client_id}")
async def update_client_field(
    client_id: str,
    update: ClientFieldUpdate,
    sync: ClientSync = Depends(get_client_sync),
):
    require_client(sync, client_id)
    try:
        sync.update_client_field(client_id, update.field, update.value)
    except StoreError as e:
        logger.error("Error updating client field: %s", e)
        return {"status": "error"}
    return {"status": "ok"}


@router.put("/{client_id}")
async def replace_client(
    client_id: str, body: ClientReplace, sync: ClientSync = Depends(get_client_sync)
):
    client = Client.model_validate({**body.model_dump(), "id": client_id})
    try:
        sync.replace_client(client)
    except StoreError as e:
        logger.error("Error updating client: %s", e)
        return {"status": "error"}
    return {"status": "ok"}


@router.delete("/{client_id}", status_code=204)
async def delete_client(client_id: str, sync: ClientSync = Depends(get_client_sync)):
    try:
        sync.delete_client(client_id)
    except StoreError as e:
        logger.error("Error deleting client: %s", e)
    return Response(status_code=204)
