import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from pydantic import ValidationError

from models.schemas import Client, ClientCreate, ClientField
from services.client_store import ClientStore

logger = logging.getLogger(__name__)


class ClientSync:
    """Keeps the latest snapshot of all clients in memory.

    Every store notification replaces the snapshot wholesale. Nothing is
    merged with locally issued writes; the most recent notification wins.
    """

    def __init__(self, store: ClientStore):
        self.store = store
        self.loading = True
        self.error: str | None = None
        self._clients: list[Client] = []
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def snapshot(self) -> list[Client]:
        return list(self._clients)

    def start(self):
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_snapshot, self._on_error)

    def stop(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_snapshot(self, documents: list[dict]):
        clients = []
        for doc in documents:
            try:
                clients.append(Client.model_validate(doc))
            except ValidationError as e:
                logger.warning("Skipping malformed client %s: %s", doc.get("id"), e)
        self._clients = clients
        self.error = None
        self.loading = False

    def _on_error(self, error: Exception):
        logger.error("Client subscription failed: %s", error)
        self.error = str(error)
        self.loading = False

    # ---- Store operations ----

    def get_client(self, client_id: str) -> Client | None:
        for client in self._clients:
            if client.id == client_id:
                return client
        return None

    def create_client(self, data: ClientCreate) -> Client:
        client = Client(
            id=str(uuid.uuid4()),
            **data.model_dump(),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self.store.set_document(client.id, client.to_document())
        return client

    def replace_client(self, client: Client):
        self.store.set_document(client.id, client.to_document())

    def update_client_field(self, client_id: str, field: ClientField, value: str):
        self.store.update_fields(client_id, {field.value: value})

    def delete_client(self, client_id: str):
        self.store.delete_document(client_id)
