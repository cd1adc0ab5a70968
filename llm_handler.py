# llm_handler.py
import logging
from typing import Dict, List, Optional, Union

import openai

from errors import CompletionError, CompletionRateLimitError

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

SYSTEM_PROMPT = "You are a strict call-center quality auditor. Follow the output format you are given exactly."


class OpenAICompletionClient:
    """
    Text completion through OpenAI chat completions.
    Returns the raw reply text; quota/rate-limit and transport failures are
    raised as CompletionRateLimitError / CompletionError.
    """

    service = "openai"

    def __init__(self, client: openai.OpenAI, model: str = "gpt-4o-mini", temperature: float = 0.0, max_tokens: int = 256):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def complete(self, prompt: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.RateLimitError as e:
            logger.warning("OpenAI quota/rate limit hit: %s", e)
            raise CompletionRateLimitError(
                "Completion quota exceeded.", details=str(e), service=self.service, upstream_status=429
            ) from e
        except openai.OpenAIError as e:
            logger.error("OpenAI completion failed: %s", e)
            raise CompletionError(
                "Completion request failed.",
                details=str(e),
                service=self.service,
                upstream_status=getattr(e, "status_code", None),
            ) from e

        if not response.choices:
            logger.error("OpenAI completion returned no choices.")
            raise CompletionError(
                "Completion request failed.", details="Response contained no choices.", service=self.service
            )
        return (response.choices[0].message.content or "").strip()


# Canned replies keyed by a marker that appears in the prompt
MOCK_REPLIES: Dict[str, str] = {
    "Parameter: Greeting\n": "5",
    "Parameter: Collection Urgency\n": "Score: 11",
    "Parameter: Rebuttal Handling\n": "10",
    "Parameter: Call Etiquette\n": "12",
    "Parameter: Call Disclaimer\n": "PASS",
    "Parameter: Correct Disposition\n": "10",
    "Parameter: Call Closing\n": "5",
    "Parameter: Identification\n": "Yes",
    "Parameter: Tape Disclosure\n": "0",
    "Parameter: Tone & Language\n": "15",
    "TASK: OVERALL FEEDBACK": (
        "MOCKED: The agent handled the call professionally and resolved the customer's issue "
        "effectively regarding the bill charge. Tone was empathetic."
    ),
    "TASK: CUSTOMER OBSERVATION": (
        "MOCKED: Customer was initially frustrated about an incorrect charge but was satisfied "
        "after the agent provided a quick resolution and refund."
    ),
}


class FakeCompletionClient:
    """Deterministic completion stand-in used in MOCK_MODE and tests."""

    service = "fake"

    def __init__(
        self,
        replies: Optional[Dict[str, Union[str, Exception]]] = None,
        default_reply: str = "0",
    ):
        self.replies = dict(MOCK_REPLIES if replies is None else replies)
        self.default_reply = default_reply
        self.prompts: List[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        for marker, reply in self.replies.items():
            if marker in prompt:
                if isinstance(reply, Exception):
                    raise reply
                return reply
        return self.default_reply
