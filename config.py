# config.py
import os
from dotenv import load_dotenv

from errors import ConfigurationError

load_dotenv()

DEEPGRAM_API_KEY = os.getenv("DEEPGRAM_API_KEY")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

TRANSCRIPTION_PROVIDER = os.getenv("TRANSCRIPTION_PROVIDER", "deepgram").lower()
DEEPGRAM_MODEL = os.getenv("DEEPGRAM_MODEL", "nova-2")
WHISPER_MODEL = os.getenv("WHISPER_MODEL", "whisper-1")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "en-US")

REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "60"))
MOCK_MODE = os.getenv("MOCK_MODE", "0") == "1"

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def require_live_credentials(provider: str = None, deepgram_key: str = None, openai_key: str = None):
    """
    Check that the keys needed for live (non-mocked) services are present.
    Arguments default to the values read from the environment.
    """
    provider = (provider or TRANSCRIPTION_PROVIDER).lower()
    deepgram_key = DEEPGRAM_API_KEY if deepgram_key is None else deepgram_key
    openai_key = OPENAI_API_KEY if openai_key is None else openai_key

    if provider not in ("deepgram", "openai"):
        raise ConfigurationError(
            "Server configuration error.",
            details=f"Unknown TRANSCRIPTION_PROVIDER '{provider}' (expected 'deepgram' or 'openai').",
        )

    missing = []
    if provider == "deepgram" and not deepgram_key:
        missing.append("DEEPGRAM_API_KEY")
    if not openai_key:
        missing.append("OPENAI_API_KEY")

    if missing:
        raise ConfigurationError(
            "Server configuration error.",
            details=f"Missing environment variables: {', '.join(missing)}. Set them in .env or use MOCK_MODE=1.",
        )
