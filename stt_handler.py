# stt_handler.py
import logging
from typing import Optional

import openai
import requests

from errors import TranscriptionError, TranscriptionRateLimitError

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

DEEPGRAM_URL = "https://api.deepgram.com/v1/listen"

MOCK_TRANSCRIPT = """Agent: Hello, thank you for calling Company X, my name is Alex. How can I help you today?
Customer: Hi Alex, I'm calling about a charge on my bill that I don't understand. It's for $25.
Agent: I can certainly look into that for you. Could I please have your account number or the phone number associated with your account?
Customer: Sure, my phone number is 555-123-4567.
Agent: Thank you. One moment while I pull up your account... Okay, I see the charge. It appears to be for the premium widget service you signed up for last month.
Customer: I don't remember signing up for that! Can you tell me more?
Agent: Yes, it looks like it was added on the 15th. Our records show it was an online activation.
Customer: I definitely didn't do that. I want it removed and a refund.
Agent: I understand your frustration. Let me see what I can do about removing the service and processing a credit for you. I need to check a few things.
Customer: Okay, please do. I expect this to be resolved.
Agent: I appreciate your patience. Yes, I can remove the premium widget service immediately and I've processed a credit of $25 back to your account. It should reflect in 3-5 business days. Is there anything else I can assist you with today?
Customer: No, that's great. Thank you for fixing it, Alex.
Agent: You're very welcome! Thank you for calling Company X. Have a great day!
Customer: You too, bye."""


class DeepgramTranscriber:
    """
    Transcribe audio with Deepgram's pre-recorded /v1/listen endpoint.
    The raw upload bytes are posted as-is; Deepgram sniffs the container.
    """

    service = "deepgram"

    def __init__(self, api_key: str, model: str = "nova-2", language: str = "en-US", timeout: float = 60.0):
        self.api_key = api_key
        self.model = model
        self.language = language
        self.timeout = timeout

    def transcribe(self, audio_bytes: bytes, filename: str = "audio", content_type: Optional[str] = None) -> str:
        headers = {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": content_type or "application/octet-stream",
        }
        params = {
            "model": self.model,
            "language": self.language,
            "smart_format": "true",
            "punctuate": "true",
        }

        try:
            response = requests.post(
                DEEPGRAM_URL, params=params, headers=headers, data=audio_bytes, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.exception("Deepgram request failed: %s", e)
            raise TranscriptionError(
                "Failed to transcribe audio.", details=f"Deepgram request failed: {e}", service=self.service
            ) from e

        if response.status_code != 200:
            logger.error("Deepgram API Error (%s): %s", response.status_code, response.text[:300])
            error_cls = TranscriptionRateLimitError if response.status_code == 429 else TranscriptionError
            raise error_cls(
                "Failed to transcribe audio.",
                details=f"Deepgram returned {response.status_code}: {response.text[:300]}",
                service=self.service,
                upstream_status=response.status_code,
            )

        try:
            data = response.json()
            transcript_text = data["results"]["channels"][0]["alternatives"][0]["transcript"].strip()
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            # ValueError covers a non-JSON body
            logger.error("Deepgram response missing transcript: %s", response.text[:300])
            raise TranscriptionError(
                "Failed to transcribe audio.",
                details="Deepgram response did not contain a transcript.",
                service=self.service,
            ) from e

        logger.info(f"Deepgram Transcribed: {transcript_text[:50]}...")
        return transcript_text


class WhisperTranscriber:
    """
    Transcribe audio using OpenAI Whisper.
    """

    service = "openai"

    def __init__(self, client: openai.OpenAI, model: str = "whisper-1", language: str = "en-US"):
        self.client = client
        self.model = model
        # OpenAI language codes are 2-letter (e.g., "en" not "en-US")
        self.language = language[:2] if language else "en"

    def transcribe(self, audio_bytes: bytes, filename: str = "audio", content_type: Optional[str] = None) -> str:
        try:
            transcript_obj = self.client.audio.transcriptions.create(
                model=self.model,
                file=(filename, audio_bytes),
                language=self.language,
            )
        except openai.RateLimitError as e:
            logger.error("OpenAI STT rate limited: %s", e)
            raise TranscriptionRateLimitError(
                "Failed to transcribe audio.",
                details=f"OpenAI transcription quota exceeded: {e}",
                service=self.service,
                upstream_status=429,
            ) from e
        except openai.OpenAIError as e:
            logger.exception(f"OpenAI STT Error: {e}")
            raise TranscriptionError(
                "Failed to transcribe audio.",
                details=f"OpenAI transcription failed: {e}",
                service=self.service,
                upstream_status=getattr(e, "status_code", None),
            ) from e

        transcript_text = transcript_obj.text.strip()
        logger.info(f"Whisper Transcribed: {transcript_text[:50]}...")
        return transcript_text


class FakeTranscriber:
    """Deterministic stand-in used in MOCK_MODE and tests."""

    service = "fake"

    def __init__(self, transcript: str = MOCK_TRANSCRIPT, error: Optional[Exception] = None):
        self.transcript = transcript
        self.error = error
        self.calls = 0

    def transcribe(self, audio_bytes: bytes, filename: str = "audio", content_type: Optional[str] = None) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        logger.info("Using MOCKED transcript for %s (%d bytes).", filename, len(audio_bytes))
        return self.transcript
