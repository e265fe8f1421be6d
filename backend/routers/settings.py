import os
from pathlib import Path

from dotenv import dotenv_values, set_key
from fastapi import APIRouter

from models.schemas import SettingsUpdate
from services.gemini_service import DEFAULT_MODEL

router = APIRouter()

ENV_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env")

# .env key -> value used when the key is unset
DEFAULTS = {
    "GEMINI_API_KEY": "",
    "GEMINI_MODEL": DEFAULT_MODEL,
    "DATA_DIR": "./data",
}

SECRET_KEYS = {"GEMINI_API_KEY"}

# Applied by the lifespan, so a change only shows after a restart.
RESTART_KEYS = {"DATA_DIR"}


def _stored() -> dict[str, str]:
    if not os.path.exists(ENV_PATH):
        return {}
    return {k: v for k, v in dotenv_values(ENV_PATH).items() if v is not None}


def _effective(key: str, stored: dict[str, str]) -> str:
    return os.getenv(key) or stored.get(key) or DEFAULTS[key]


def _redact(value: str) -> str:
    if not value:
        return ""
    return "****" + value[-4:] if len(value) > 8 else "****"


@router.get("")
async def get_settings():
    """Effective settings, with the API key redacted."""
    stored = _stored()
    result = {}
    for key in DEFAULTS:
        value = _effective(key, stored)
        result[key] = _redact(value) if key in SECRET_KEYS else value
    return result


@router.post("")
async def update_settings(update: SettingsUpdate):
    """Persist the given keys to .env and apply them to this process."""
    changes = update.model_dump(exclude_none=True)
    if changes:
        Path(ENV_PATH).touch()
    for key, value in changes.items():
        # Always quoted so values with spaces or '#' read back intact.
        set_key(ENV_PATH, key, value, quote_mode="always")
        os.environ[key] = value
    return {
        "status": "ok",
        "restart_required": sorted(RESTART_KEYS & changes.keys()),
    }


@router.get("/setup-status")
async def setup_status():
    gemini_ok = bool(_effective("GEMINI_API_KEY", _stored()))
    return {
        "ready": gemini_ok,
        "gemini_configured": gemini_ok,
    }
