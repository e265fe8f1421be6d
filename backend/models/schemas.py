from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Documents are stored and served with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ClientStatus(str, Enum):
    ONBOARDING = "onboarding"
    ACTIVE = "active"
    PENDING = "pending"
    COMPLETED = "completed"


class StatusFilter(str, Enum):
    ALL = "all"
    ONBOARDING = "onboarding"
    ACTIVE = "active"
    PENDING = "pending"
    COMPLETED = "completed"


class SortOption(str, Enum):
    NEXT_MEETING = "nextMeeting"
    TASK_PRIORITY = "taskPriority"
    CREATED = "created"


class CompletionFilter(str, Enum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"


class ClientField(str, Enum):
    NAME = "name"
    STATUS = "status"
    CONTRACT_START = "contractStart"
    CONTRACT_END = "contractEnd"
    LAST_MEETING = "lastMeeting"
    NEXT_MEETING = "nextMeeting"


class TaskField(str, Enum):
    TEXT = "text"
    COMPLETED = "completed"
    DUE_DATE = "dueDate"
    ASSIGNEE = "assignee"


class Task(CamelModel):
    id: str
    text: str
    completed: bool = False
    due_date: str = ""
    assignee: str = ""

    @field_validator("due_date", "assignee", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""


class MeetingLog(CamelModel):
    id: str
    date: str = ""
    title: str = ""
    content: str = ""
    created_at: str = ""


class Client(CamelModel):
    id: str
    name: str
    status: ClientStatus = ClientStatus.ONBOARDING
    contract_start: str = ""
    contract_end: str = ""
    last_meeting: str = ""
    next_meeting: str = ""
    tasks: list[Task] = []
    meeting_logs: list[MeetingLog] = []
    created_at: str = ""

    @field_validator("tasks", "meeting_logs", mode="before")
    @classmethod
    def _missing_collection(cls, v):
        # Older documents may carry null or no collection at all.
        return v if v is not None else []

    @field_validator(
        "contract_start",
        "contract_end",
        "last_meeting",
        "next_meeting",
        "created_at",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ClientReplace(Client):
    """Whole-record body for PUT; the id comes from the path."""

    id: str | None = None


class FlatTask(Task):
    client_id: str
    client_name: str


class DashboardStats(CamelModel):
    total_clients: int
    pending_tasks: int
    this_week_meetings: int


class TaskProgress(CamelModel):
    completed: int
    total: int
    percentage: int


# ---- Request bodies ----


class ClientCreate(CamelModel):
    name: str = Field(min_length=1)
    status: ClientStatus = ClientStatus.ONBOARDING
    contract_start: str = ""
    contract_end: str = ""
    last_meeting: str = ""
    next_meeting: str = ""

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v


class ClientFieldUpdate(BaseModel):
    field: ClientField
    value: str

    @model_validator(mode="after")
    def _check_status(self):
        if self.field == ClientField.STATUS:
            ClientStatus(self.value)
        if self.field == ClientField.NAME and not self.value.strip():
            raise ValueError("name must not be blank")
        return self


class TaskCreate(CamelModel):
    text: str = Field(min_length=1)
    due_date: str = ""
    assignee: str = ""


class TaskFieldUpdate(BaseModel):
    field: TaskField
    value: str | bool

    @model_validator(mode="after")
    def _check_value_type(self):
        if self.field == TaskField.COMPLETED:
            if not isinstance(self.value, bool):
                raise ValueError("completed must be a boolean")
        elif not isinstance(self.value, str):
            raise ValueError(f"{self.field.value} must be a string")
        return self


class MeetingLogDraft(CamelModel):
    """A log being written. ``id`` is set when editing an existing log."""

    id: str | None = None
    date: str = ""
    title: str = ""
    content: str = ""
    created_at: str | None = None


class SettingsUpdate(BaseModel):
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str | None = None
    DATA_DIR: str | None = None
