import json
import re

from models.schemas import Client

UNASSIGNED_LABEL = "unassigned"

TRANSCRIPTION_PROMPT = (
    "Read the attached file (PDF, image, text, etc.) and transcribe its "
    "contents as meeting minutes. Do not summarize; keep as much detail as "
    "possible. Format it for readability using headings and bullet points."
)

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


class TaskParseError(ValueError):
    """The model's reply was not a JSON array of task strings."""


def build_agenda_prompt(client: Client) -> str:
    open_tasks = [
        f"- {t.text} ({t.assignee or UNASSIGNED_LABEL})"
        for t in client.tasks
        if not t.completed
    ]
    task_lines = "\n".join(open_tasks) or "none"

    return f"""You are a capable project manager at an AI consulting firm.
Draft the agenda for the next regular meeting with the client "{client.name}".

[Situation]
- Status: {client.status.value}
- Open tasks:
{task_lines}

[Output format]
Answer concisely in the format below. No greeting.

## {client.name} Regular Meeting Agenda

1. [Topic 1]
2. [Topic 2]
3. ...

### Items to confirm
- [Point 1]
- [Point 2]
"""


def build_task_suggestion_prompt(client: Client) -> str:
    return f"""You are an assistant to an AI consultant.
The client "{client.name}" currently has the status "{client.status.value}".
Suggest exactly three concrete next tasks for this client, each as a short sentence.
Return only a JSON array. Example: ["Task 1", "Task 2", "Task 3"]
No markdown and no explanations.
"""


def build_task_extraction_prompt(content: str) -> str:
    return f"""You are an AI consultant.
From the meeting minutes below, extract the next actions (to-dos) that either
we (the consultants) or the client need to carry out, and output them as a
JSON array of short text items.

[Minutes]
{content}

[Example output]
["Schedule the regular meeting", "Issue accounts", "Revise the kickoff deck"]

Note: return only the pure JSON array, with no extra explanation or markdown.
"""


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text).strip()


def parse_task_list(text: str | None) -> list[str]:
    """Parse a reply expected to hold nothing but a JSON array of strings."""
    if not text:
        raise TaskParseError("empty response")
    try:
        parsed = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise TaskParseError(f"response is not JSON: {e}") from e
    if not isinstance(parsed, list):
        raise TaskParseError("response is not a JSON array")

    tasks = []
    for item in parsed:
        if item is None or isinstance(item, (bool, dict, list)):
            raise TaskParseError("task items must be strings")
        item = str(item).strip()
        if item:
            tasks.append(item)
    return tasks


def append_transcription(draft: str, text: str) -> str:
    if not draft:
        return text
    return f"{draft}\n\n{text}"
