"""
Tests for the Gemini-backed workflows: agenda, task suggestion, task
extraction and file transcription. The Gemini service is mocked.
"""

import asyncio
import base64
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import make_client
from models.schemas import Client, MeetingLog, MeetingLogDraft
from services.assistant import (
    AGENDA_FAILED_MESSAGE,
    GenerationFailed,
    LogNotFound,
    MalformedResponse,
    delete_meeting_log,
    extract_tasks,
    generate_agenda,
    save_meeting_log,
    suggest_tasks,
    transcribe_file,
)
from services.gemini_service import FilePayload, GeminiService, file_to_base64


def async_test(coro):
    """Decorator to run async tests with asyncio.run."""

    def wrapper(*args, **kwargs):
        return asyncio.run(coro(*args, **kwargs))

    return wrapper


def gemini_returning(text):
    gemini = MagicMock()
    gemini.generate = AsyncMock(return_value=text)
    return gemini


class TestAgenda:
    @async_test
    async def test_returns_generated_text(self):
        gemini = gemini_returning("## Acme agenda")
        assert await generate_agenda(gemini, make_client("a", "Acme")) == "## Acme agenda"
        prompt = gemini.generate.await_args.args[0]
        assert "Acme" in prompt

    @async_test
    async def test_failure_placeholder(self):
        assert await generate_agenda(gemini_returning(None), make_client("a")) == AGENDA_FAILED_MESSAGE

    @async_test
    async def test_not_configured(self):
        assert await generate_agenda(None, make_client("a")) == AGENDA_FAILED_MESSAGE


class TestSuggestTasks:
    @async_test
    async def test_fenced_reply_appends_two_tasks(self):
        client = make_client("a", open_tasks=1)
        gemini = gemini_returning('```json\n["call client", "send invoice"]\n```')
        updated = await suggest_tasks(gemini, client)

        new = updated.tasks[len(client.tasks):]
        assert [t.text for t in new] == ["call client", "send invoice"]
        assert all(not t.completed and t.due_date == "" and t.assignee == "" for t in new)
        assert updated.tasks[: len(client.tasks)] == client.tasks

    @async_test
    async def test_malformed_reply_leaves_tasks(self):
        client = make_client("a", open_tasks=2)
        with pytest.raises(MalformedResponse):
            await suggest_tasks(gemini_returning("Sorry, I cannot help"), client)
        assert len(client.tasks) == 2

    @async_test
    async def test_absent_reply(self):
        with pytest.raises(GenerationFailed):
            await suggest_tasks(gemini_returning(None), make_client("a"))


class TestMeetingLogs:
    def test_save_new_log(self):
        client = make_client("a")
        updated = save_meeting_log(client, MeetingLogDraft(date="2026-03-01", title="Kickoff", content="notes"))
        log = updated.meeting_logs[0]
        assert (log.title, log.content, log.date) == ("Kickoff", "notes", "2026-03-01")
        assert log.id and log.created_at

    def test_edit_keeps_created_at(self):
        client = Client(
            id="a",
            name="A",
            meeting_logs=[MeetingLog(id="l1", title="old", content="x", created_at="2026-01-01T00:00:00+00:00")],
        )
        updated = save_meeting_log(client, MeetingLogDraft(id="l1", title="new", content="y"))
        assert len(updated.meeting_logs) == 1
        assert updated.meeting_logs[0].title == "new"
        assert updated.meeting_logs[0].created_at == "2026-01-01T00:00:00+00:00"

    def test_edit_unknown_log(self):
        with pytest.raises(LogNotFound):
            save_meeting_log(make_client("a"), MeetingLogDraft(id="ghost", title="t", content="c"))

    def test_delete_log(self):
        client = Client(id="a", name="A", meeting_logs=[MeetingLog(id="l1"), MeetingLog(id="l2")])
        assert [log.id for log in delete_meeting_log(client, "l1").meeting_logs] == ["l2"]


class TestExtractTasks:
    @async_test
    async def test_saves_log_and_appends_tasks(self):
        client = make_client("a", open_tasks=1)
        draft = MeetingLogDraft(date="2026-03-01", title="Weekly", content="Ship on Friday")
        gemini = gemini_returning('["Ship build", "Email recap", "Book room"]')

        updated = await extract_tasks(gemini, client, draft)

        assert [log.title for log in updated.meeting_logs] == ["Weekly"]
        assert [t.text for t in updated.tasks[1:]] == ["Ship build", "Email recap", "Book room"]
        assert "Ship on Friday" in gemini.generate.await_args.args[0]

    @async_test
    async def test_parse_failure_applies_nothing(self):
        client = make_client("a")
        with pytest.raises(MalformedResponse):
            await extract_tasks(gemini_returning("no tasks here"), client, MeetingLogDraft(content="c"))
        assert client.meeting_logs == [] and client.tasks == []


class TestTranscribe:
    @async_test
    async def test_appends_to_draft_and_sends_payload(self):
        gemini = gemini_returning("# Minutes")
        content = await transcribe_file(gemini, "existing", b"%PDF-1.4", "application/pdf")
        assert content == "existing\n\n# Minutes"

        payload = gemini.generate.await_args.args[1]
        assert payload.mime_type == "application/pdf"
        assert base64.b64decode(payload.data) == b"%PDF-1.4"

    @async_test
    async def test_failure_raises(self):
        with pytest.raises(GenerationFailed):
            await transcribe_file(gemini_returning(""), "draft", b"x", "text/plain")


class TestGeminiService:
    def test_file_to_base64(self):
        assert file_to_base64(b"hello") == "aGVsbG8="

    @async_test
    async def test_exception_returns_none(self):
        with patch("services.gemini_service.genai.Client") as client_cls:
            client_cls.return_value.aio.models.generate_content = AsyncMock(side_effect=RuntimeError("down"))
            service = GeminiService("key")
            assert await service.generate("prompt") is None

    @async_test
    async def test_attachment_sent_as_inline_part(self):
        with patch("services.gemini_service.genai.Client") as client_cls:
            generate = AsyncMock(return_value=MagicMock(text="done"))
            client_cls.return_value.aio.models.generate_content = generate
            service = GeminiService("key", "gemini-test")

            result = await service.generate("read this", FilePayload("text/plain", file_to_base64(b"abc")))

            assert result == "done"
            kwargs = generate.await_args.kwargs
            assert kwargs["model"] == "gemini-test"
            assert kwargs["contents"][0] == "read this"
            assert kwargs["contents"][1].inline_data.data == b"abc"
            assert kwargs["contents"][1].inline_data.mime_type == "text/plain"

    @async_test
    async def test_empty_text_returns_none(self):
        with patch("services.gemini_service.genai.Client") as client_cls:
            client_cls.return_value.aio.models.generate_content = AsyncMock(return_value=MagicMock(text=""))
            assert await GeminiService("key").generate("prompt") is None
