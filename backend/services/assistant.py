import logging
import uuid
from datetime import datetime, timezone

from models.schemas import Client, MeetingLog, MeetingLogDraft
from services.gemini_service import FilePayload, GeminiService, file_to_base64
from services.prompt_composer import (
    TRANSCRIPTION_PROMPT,
    TaskParseError,
    append_transcription,
    build_agenda_prompt,
    build_task_extraction_prompt,
    build_task_suggestion_prompt,
    parse_task_list,
)
from services.task_board import append_tasks

logger = logging.getLogger(__name__)

AGENDA_FAILED_MESSAGE = "Generation failed. Please try again."


class AssistantError(Exception):
    pass


class GenerationFailed(AssistantError):
    pass


class MalformedResponse(AssistantError):
    pass


class LogNotFound(LookupError):
    pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _generate(gemini: GeminiService | None, prompt: str, attachment=None) -> str:
    if gemini is None:
        raise GenerationFailed("Gemini API key not configured. Go to Settings to add it.")
    text = await gemini.generate(prompt, attachment)
    if not text:
        raise GenerationFailed("Generation failed. Please try again.")
    return text


async def _generate_tasks(gemini: GeminiService | None, prompt: str) -> list[str]:
    text = await _generate(gemini, prompt)
    try:
        return parse_task_list(text)
    except TaskParseError as e:
        logger.warning("Could not parse task list from model reply: %s", e)
        raise MalformedResponse(str(e)) from e


async def generate_agenda(gemini: GeminiService | None, client: Client) -> str:
    try:
        return await _generate(gemini, build_agenda_prompt(client))
    except GenerationFailed as e:
        logger.warning("Agenda generation for %s failed: %s", client.id, e)
        return AGENDA_FAILED_MESSAGE


async def suggest_tasks(gemini: GeminiService | None, client: Client) -> Client:
    """Return the client with three suggested tasks appended."""
    texts = await _generate_tasks(gemini, build_task_suggestion_prompt(client))
    return append_tasks(client, texts)


# ---- Meeting logs ----


def save_meeting_log(client: Client, draft: MeetingLogDraft) -> Client:
    """Add a new log, or replace the log with the draft's id when editing."""
    if draft.id:
        existing = next((log for log in client.meeting_logs if log.id == draft.id), None)
        if existing is None:
            raise LogNotFound(draft.id)
        saved = MeetingLog(
            id=draft.id,
            date=draft.date,
            title=draft.title,
            content=draft.content,
            created_at=draft.created_at or existing.created_at,
        )
        logs = [saved if log.id == draft.id else log for log in client.meeting_logs]
    else:
        saved = MeetingLog(
            id=str(uuid.uuid4()),
            date=draft.date,
            title=draft.title,
            content=draft.content,
            created_at=draft.created_at or _now(),
        )
        logs = [*client.meeting_logs, saved]
    return client.model_copy(update={"meeting_logs": logs})


def delete_meeting_log(client: Client, log_id: str) -> Client:
    if not any(log.id == log_id for log in client.meeting_logs):
        raise LogNotFound(log_id)
    return client.model_copy(
        update={"meeting_logs": [log for log in client.meeting_logs if log.id != log_id]}
    )


async def extract_tasks(
    gemini: GeminiService | None, client: Client, draft: MeetingLogDraft
) -> Client:
    """Save the draft log and append the tasks extracted from it.

    Nothing is returned for storage unless the reply parses, so a failed
    extraction leaves both the logs and the tasks as they were.
    """
    texts = await _generate_tasks(gemini, build_task_extraction_prompt(draft.content))
    with_log = save_meeting_log(client, draft)
    return append_tasks(with_log, texts)


async def transcribe_file(
    gemini: GeminiService | None, draft_content: str, raw: bytes, mime_type: str
) -> str:
    """Transcribe an uploaded file and append the text to the draft."""
    payload = FilePayload(mime_type=mime_type, data=file_to_base64(raw))
    text = await _generate(gemini, TRANSCRIPTION_PROMPT, payload)
    return append_transcription(draft_content, text)
