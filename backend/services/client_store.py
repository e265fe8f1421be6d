import json
import logging
import os
import threading
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[list[dict]], None]
ErrorListener = Callable[[Exception], None]


class StoreError(Exception):
    """A read or write against the document store failed."""


class DocumentNotFound(StoreError):
    pass


class ClientStore:
    """JSON document store for client records.

    Each document lives in ``<data_dir>/clients/<id>.json``. Listeners get the
    full set of documents when they subscribe and again after every write,
    so readers only ever see whole snapshots.
    """

    def __init__(self, data_dir: str):
        self.collection_dir = Path(data_dir) / "clients"
        self._lock = threading.RLock()
        self._listeners: list[tuple[SnapshotListener, ErrorListener | None]] = []

    def _path(self, doc_id: str) -> Path:
        if not doc_id or "/" in doc_id or "\\" in doc_id or doc_id.startswith("."):
            raise StoreError(f"Invalid document id: {doc_id!r}")
        return self.collection_dir / f"{doc_id}.json"

    def _read_all(self) -> list[dict]:
        if not self.collection_dir.is_dir():
            return []
        documents = []
        for doc_file in sorted(self.collection_dir.glob("*.json")):
            data = json.loads(doc_file.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(f"{doc_file.name} does not hold a JSON object")
            data["id"] = doc_file.stem
            documents.append(data)
        return documents

    def _write(self, doc_id: str, data: dict):
        os.makedirs(self.collection_dir, exist_ok=True)
        path = self._path(doc_id)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, path)

    # ---- Subscription ----

    def subscribe(
        self,
        on_snapshot: SnapshotListener,
        on_error: ErrorListener | None = None,
    ) -> Callable[[], None]:
        """Register a listener and deliver the current snapshot to it.

        Returns a function that removes the listener.
        """
        entry = (on_snapshot, on_error)
        with self._lock:
            self._listeners.append(entry)
            self._deliver([entry])

        def unsubscribe():
            with self._lock:
                if entry in self._listeners:
                    self._listeners.remove(entry)

        return unsubscribe

    def _deliver(self, listeners):
        try:
            snapshot = self._read_all()
        except (OSError, ValueError) as e:
            logger.error("Failed to read client documents: %s", e)
            for _, on_error in listeners:
                if on_error:
                    self._call_safely(on_error, StoreError(str(e)))
            return

        for on_snapshot, _ in listeners:
            self._call_safely(on_snapshot, snapshot)

    @staticmethod
    def _call_safely(listener, arg):
        try:
            listener(arg)
        except Exception:
            logger.exception("Snapshot listener raised")

    def _notify(self):
        self._deliver(list(self._listeners))

    # ---- Writes ----

    def set_document(self, doc_id: str, data: dict):
        """Create or replace a whole document."""
        with self._lock:
            try:
                self._write(doc_id, {**data, "id": doc_id})
            except OSError as e:
                raise StoreError(f"Failed to write client {doc_id}: {e}") from e
            self._notify()

    def update_fields(self, doc_id: str, fields: dict):
        """Patch named top-level fields of an existing document."""
        with self._lock:
            path = self._path(doc_id)
            if not path.exists():
                raise DocumentNotFound(f"Client {doc_id} not found")
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                if not isinstance(data, dict):
                    raise ValueError(f"{path.name} does not hold a JSON object")
                data.update(fields)
                self._write(doc_id, data)
            except (OSError, ValueError) as e:
                raise StoreError(f"Failed to update client {doc_id}: {e}") from e
            self._notify()

    def delete_document(self, doc_id: str):
        with self._lock:
            try:
                self._path(doc_id).unlink(missing_ok=True)
            except OSError as e:
                raise StoreError(f"Failed to delete client {doc_id}: {e}") from e
            self._notify()
