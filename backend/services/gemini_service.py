import base64
import logging
from dataclasses import dataclass

from google import genai
from google.genai import types

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"


@dataclass
class FilePayload:
    mime_type: str
    data: str  # base64


def file_to_base64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


class GeminiService:
    def __init__(self, api_key: str, model: str = DEFAULT_MODEL):
        self.client = genai.Client(api_key=api_key)
        self.model = model or DEFAULT_MODEL

    async def generate(
        self, prompt: str, attachment: FilePayload | None = None
    ) -> str | None:
        """Send one prompt, optionally with an inline file, and return the text.

        Returns None when the call fails or comes back empty. There is no
        retry; the caller reports the failure and the user tries again.
        """
        contents: list = [prompt]
        if attachment:
            contents.append(
                types.Part.from_bytes(
                    data=base64.b64decode(attachment.data),
                    mime_type=attachment.mime_type,
                )
            )

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=contents,
            )
        except Exception as e:
            logger.error("Gemini generation failed: %s", e)
            return None

        text = response.text
        if not text:
            logger.warning("Gemini returned an empty response")
            return None
        return text
