import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from models.schemas import ClientStatus
from routers import assistant, clients, meeting_logs, settings, tasks
from services.client_store import ClientStore
from services.client_sync import ClientSync
from services.gemini_service import DEFAULT_MODEL

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    data_dir = os.getenv("DATA_DIR", "./data")
    os.makedirs(data_dir, exist_ok=True)

    client_sync = ClientSync(ClientStore(data_dir))
    client_sync.start()
    app.state.client_sync = client_sync
    try:
        yield
    finally:
        client_sync.stop()


app = FastAPI(title="Client Board", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(clients.router, prefix="/api/clients")
app.include_router(tasks.router, prefix="/api/tasks")
app.include_router(meeting_logs.router, prefix="/api")
app.include_router(assistant.router, prefix="/api/assistant")
app.include_router(settings.router, prefix="/api/settings")


@app.get("/api/health")
async def health():
    return {"status": "healthy"}


@app.get("/api/config")
async def config():
    """Return non-secret config values the frontend needs."""
    return {
        "gemini_model": os.getenv("GEMINI_MODEL", DEFAULT_MODEL),
        "statuses": [s.value for s in ClientStatus],
    }
