import uuid
from datetime import date, datetime, timezone

from models.schemas import (
    Client,
    CompletionFilter,
    FlatTask,
    Task,
    TaskCreate,
    TaskField,
)
from services.projection import parse_date

UNASSIGNED = "unassigned"
ALL = "all"


class ClientNotFound(LookupError):
    pass


class TaskNotFound(LookupError):
    pass


def flatten_tasks(clients: list[Client]) -> list[FlatTask]:
    """One entry per task across all clients, tagged with its owner."""
    return [
        FlatTask(**task.model_dump(), client_id=client.id, client_name=client.name)
        for client in clients
        for task in client.tasks
    ]


def list_assignees(tasks: list[FlatTask]) -> list[str]:
    return sorted({t.assignee for t in tasks if t.assignee})


def _matches_assignee(task: FlatTask, assignee: str) -> bool:
    if assignee == ALL:
        return True
    if assignee == UNASSIGNED:
        return not task.assignee
    return task.assignee == assignee


def _matches_completion(task: FlatTask, completion: CompletionFilter) -> bool:
    if completion == CompletionFilter.PENDING:
        return not task.completed
    if completion == CompletionFilter.COMPLETED:
        return task.completed
    return True


def sort_tasks(tasks: list[FlatTask]) -> list[FlatTask]:
    """Open tasks first; inside each group earliest due date first, undated last."""

    def key(t: FlatTask):
        due = parse_date(t.due_date)
        return (t.completed, due is None, due or datetime.min.replace(tzinfo=timezone.utc))

    return sorted(tasks, key=key)


def filter_tasks(
    tasks: list[FlatTask],
    assignee: str = ALL,
    completion: CompletionFilter = CompletionFilter.ALL,
    search: str = "",
) -> list[FlatTask]:
    needle = search.lower()
    matched = [
        t
        for t in tasks
        if _matches_assignee(t, assignee)
        and _matches_completion(t, completion)
        and (needle in t.text.lower() or needle in t.client_name.lower())
    ]
    return sort_tasks(matched)


def is_overdue(task: Task, today: date | None = None) -> bool:
    if task.completed:
        return False
    due = parse_date(task.due_date)
    if due is None:
        return False
    today = today or datetime.now(timezone.utc).date()
    return due.date() < today


# ---- Mutations ----
#
# Each returns a new Client with a rebuilt task list. The caller replaces the
# whole client document; task arrays are never patched element by element.


def find_client(clients: list[Client], client_id: str) -> Client:
    for client in clients:
        if client.id == client_id:
            return client
    raise ClientNotFound(client_id)


def _require_task(client: Client, task_id: str):
    if not any(t.id == task_id for t in client.tasks):
        raise TaskNotFound(task_id)


def new_task(text: str, due_date: str = "", assignee: str = "") -> Task:
    return Task(
        id=str(uuid.uuid4()),
        text=text,
        completed=False,
        due_date=due_date,
        assignee=assignee,
    )


def add_task(client: Client, data: TaskCreate) -> Client:
    task = new_task(data.text.strip(), data.due_date, data.assignee)
    return client.model_copy(update={"tasks": [*client.tasks, task]})


def append_tasks(client: Client, texts: list[str]) -> Client:
    return client.model_copy(
        update={"tasks": [*client.tasks, *(new_task(text) for text in texts)]}
    )


def toggle_task(client: Client, task_id: str) -> Client:
    _require_task(client, task_id)
    tasks = [
        t.model_copy(update={"completed": not t.completed}) if t.id == task_id else t
        for t in client.tasks
    ]
    return client.model_copy(update={"tasks": tasks})


_TASK_ATTRS = {
    TaskField.TEXT: "text",
    TaskField.COMPLETED: "completed",
    TaskField.DUE_DATE: "due_date",
    TaskField.ASSIGNEE: "assignee",
}


def update_task_field(
    client: Client, task_id: str, field: TaskField, value: str | bool
) -> Client:
    _require_task(client, task_id)
    attr = _TASK_ATTRS[field]
    tasks = [
        t.model_copy(update={attr: value}) if t.id == task_id else t
        for t in client.tasks
    ]
    return client.model_copy(update={"tasks": tasks})


def delete_task(client: Client, task_id: str) -> Client:
    _require_task(client, task_id)
    tasks = list(client.tasks)
    index = next(i for i, t in enumerate(tasks) if t.id == task_id)
    del tasks[index]
    return client.model_copy(update={"tasks": tasks})
