import os

from fastapi import HTTPException, Request

from models.schemas import Client
from services.client_sync import ClientSync
from services.gemini_service import DEFAULT_MODEL, GeminiService


def get_client_sync(request: Request) -> ClientSync:
    return request.app.state.client_sync


def get_gemini_service() -> GeminiService | None:
    api_key = os.getenv("GEMINI_API_KEY", "")
    if not api_key:
        return None
    return GeminiService(api_key, os.getenv("GEMINI_MODEL", DEFAULT_MODEL))


def require_client(sync: ClientSync, client_id: str) -> Client:
    client = sync.get_client(client_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return client
