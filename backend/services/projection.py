import math
from datetime import date, datetime, timedelta, timezone

from models.schemas import (
    Client,
    ClientStatus,
    DashboardStats,
    MeetingLog,
    SortOption,
    TaskProgress,
)

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)
DAY = timedelta(days=1)


def parse_date(value: str | None) -> datetime | None:
    """Parse an ISO date or datetime string. Naive values are read as UTC.

    Returns None for empty or unparseable input.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(value), datetime.min.time())
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def open_task_count(client: Client) -> int:
    return sum(1 for t in client.tasks if not t.completed)


def project_clients(
    clients: list[Client],
    search: str = "",
    status: ClientStatus | str = "all",
    sort_by: SortOption = SortOption.NEXT_MEETING,
) -> list[Client]:
    """Filter and sort a copy of the snapshot for the dashboard."""
    result = list(clients)

    if search:
        needle = search.lower()
        result = [c for c in result if needle in c.name.lower()]

    if status != "all":
        result = [c for c in result if c.status == ClientStatus(status)]

    if sort_by == SortOption.CREATED:
        result.sort(key=lambda c: parse_date(c.created_at) or _EARLIEST, reverse=True)
    elif sort_by == SortOption.NEXT_MEETING:

        def meeting_key(c: Client):
            d = parse_date(c.next_meeting)
            return (d is None, d or _EARLIEST)

        result.sort(key=meeting_key)
    elif sort_by == SortOption.TASK_PRIORITY:
        result.sort(key=open_task_count, reverse=True)

    return result


def compute_stats(clients: list[Client], now: datetime | None = None) -> DashboardStats:
    """Counters over the whole snapshot, independent of any filter."""
    now = now or datetime.now(timezone.utc)
    week_end = now + 7 * DAY

    this_week = 0
    for client in clients:
        d = parse_date(client.next_meeting)
        if d is not None and now <= d < week_end:
            this_week += 1

    return DashboardStats(
        total_clients=len(clients),
        pending_tasks=sum(open_task_count(c) for c in clients),
        this_week_meetings=this_week,
    )


def task_progress(client: Client) -> TaskProgress:
    total = len(client.tasks)
    completed = total - open_task_count(client)
    percentage = 0 if total == 0 else math.floor(completed / total * 100 + 0.5)
    return TaskProgress(completed=completed, total=total, percentage=percentage)


def is_meeting_soon(client: Client, now: datetime | None = None) -> bool:
    """True when the next meeting is 0-3 days away, counting partial days as whole."""
    d = parse_date(client.next_meeting)
    if d is None:
        return False
    now = now or datetime.now(timezone.utc)
    days = math.ceil((d - now) / DAY)
    return 0 <= days <= 3


def sorted_meeting_logs(client: Client) -> list[MeetingLog]:
    return sorted(
        client.meeting_logs,
        key=lambda log: parse_date(log.date) or _EARLIEST,
        reverse=True,
    )


def client_summary(client: Client, now: datetime | None = None) -> dict:
    return {
        **client.to_document(),
        "openTasks": open_task_count(client),
        "progress": task_progress(client).model_dump(by_alias=True),
        "meetingSoon": is_meeting_soon(client, now),
    }
