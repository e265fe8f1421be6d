"""
Test configuration: puts backend/ on sys.path so tests import models.*,
services.* and routers.* the same way main.py does.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

BACKEND_DIR = Path(__file__).parent.parent / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from models.schemas import Client, Task  # noqa: E402

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def iso_day(days: int) -> str:
    return (NOW + timedelta(days=days)).date().isoformat()


def make_client(
    client_id: str,
    name: str | None = None,
    status: str = "active",
    next_meeting: str = "",
    open_tasks: int = 0,
    done_tasks: int = 0,
    created_at: str = "",
) -> Client:
    tasks = [
        Task(id=f"{client_id}-open-{i}", text=f"open {i}", completed=False)
        for i in range(open_tasks)
    ] + [
        Task(id=f"{client_id}-done-{i}", text=f"done {i}", completed=True)
        for i in range(done_tasks)
    ]
    return Client(
        id=client_id,
        name=name or client_id,
        status=status,
        next_meeting=next_meeting,
        tasks=tasks,
        created_at=created_at,
    )


@pytest.fixture
def now():
    return NOW
