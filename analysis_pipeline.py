# analysis_pipeline.py
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Sequence

from errors import ClientInputError, CompletionError, RateLimitError
from rubric import CALL_EVALUATION_PARAMETERS, EvaluationParameter, InputKind

logger = logging.getLogger(__name__)

# Replies substituted for failed completion calls before parsing
ERROR_QUOTA = "ERROR_QUOTA"
ERROR_API = "ERROR_API"
ERROR_SENTINELS = (ERROR_QUOTA, ERROR_API)

QUOTA_FEEDBACK = "Overall feedback was not generated because the AI service quota was exceeded."
QUOTA_OBSERVATION = "Observation was not generated because the AI service quota was exceeded."
FEEDBACK_FAILED = "Overall feedback could not be generated due to an AI service error."
OBSERVATION_FAILED = "Observation could not be generated due to an AI service error."

_INT_PATTERN = re.compile(r"(-?)(\d+)")
# Any longer digit run is far above every weight
_MAX_DIGITS = 9


def build_score_prompt(parameter: EvaluationParameter, transcript: str) -> str:
    if parameter.input_kind is InputKind.PASS_FAIL:
        scale = f"0 or {parameter.weight} (0 = fail, {parameter.weight} = pass)"
    else:
        scale = f"0 to {parameter.weight} (any whole number in this range)"

    return f"""You are auditing a call-center conversation against one rubric parameter.

Parameter: {parameter.name}
Description: {parameter.description}
Input type: {parameter.input_kind.value}
Allowed score: {scale}

CALL TRANSCRIPT:
\"\"\"
{transcript}
\"\"\"

Return ONLY the score as a number, with no other text."""


def build_feedback_prompt(transcript: str) -> str:
    return f"""TASK: OVERALL FEEDBACK
You are a call-center quality coach. In 2-3 sentences, give the agent overall
feedback on this call: what went well and what to improve.

CALL TRANSCRIPT:
\"\"\"
{transcript}
\"\"\""""


def build_observation_prompt(transcript: str) -> str:
    return f"""TASK: CUSTOMER OBSERVATION
In 1-2 sentences, describe the customer's situation, mood and how the call
ended for them.

CALL TRANSCRIPT:
\"\"\"
{transcript}
\"\"\""""


def parse_score(reply: str, weight: int, input_kind: InputKind) -> int:
    """
    Turn a free-text model reply into an integer score in [0, weight].

    The first signed integer in the reply wins. PASS_FAIL replies without
    digits fall back to pass/yes and fail/no keywords. PASS_FAIL is binary:
    anything above zero is the full weight. SCORE is clamped into range.
    Error sentinels and unreadable replies score 0.
    """
    text = (reply or "").strip()
    if text in ERROR_SENTINELS:
        return 0

    match = _INT_PATTERN.search(text)
    if match:
        sign, digits = match.groups()
        digits = digits.lstrip("0") or "0"
        if len(digits) > _MAX_DIGITS:
            digits = "9" * _MAX_DIGITS
        candidate = int(sign + digits)
    elif input_kind is InputKind.PASS_FAIL:
        lowered = text.lower()
        if "pass" in lowered or "yes" in lowered:
            candidate = weight
        else:
            # "fail", "no" or nothing recognisable
            candidate = 0
    else:
        candidate = 0

    if input_kind is InputKind.PASS_FAIL:
        return weight if candidate > 0 else 0
    return max(0, min(candidate, weight))


@dataclass
class AnalysisResult:
    transcript: str
    scores: Dict[str, int]
    overall_feedback: str
    observation: str
    degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transcript": self.transcript,
            "scores": dict(self.scores),
            "overallFeedback": self.overall_feedback,
            "observation": self.observation,
        }


@dataclass
class _ScoringState:
    scores: Dict[str, int] = field(default_factory=dict)
    degraded: bool = False


class CallAnalyzer:
    """
    Runs one uploaded call through transcription, rubric scoring and
    summarization. Calls are made strictly one after another.

    Transcription errors propagate and abort the request. Completion errors
    never do: a quota error switches to degraded mode, where remaining
    parameters score 0 without calling the service again and the summaries
    are replaced by fixed notices.
    """

    def __init__(self, transcriber, completion, parameters: Sequence[EvaluationParameter] = CALL_EVALUATION_PARAMETERS):
        self.transcriber = transcriber
        self.completion = completion
        self.parameters = tuple(parameters)

    def analyze(self, audio_bytes: bytes, filename: str = "audio", content_type: str = None) -> AnalysisResult:
        if not audio_bytes:
            raise ClientInputError("Uploaded audio file is empty.")

        logger.info("Transcribing %s (%d bytes) via %s", filename, len(audio_bytes), self.transcriber.service)
        transcript = self.transcriber.transcribe(audio_bytes, filename=filename, content_type=content_type)

        state = self._score_all(transcript)

        if state.degraded:
            logger.warning("Quota exhausted during scoring; skipping feedback generation.")
            overall_feedback, observation = QUOTA_FEEDBACK, QUOTA_OBSERVATION
        else:
            overall_feedback = self._summarize(build_feedback_prompt(transcript), FEEDBACK_FAILED)
            observation = self._summarize(build_observation_prompt(transcript), OBSERVATION_FAILED)

        return AnalysisResult(
            transcript=transcript,
            scores=state.scores,
            overall_feedback=overall_feedback,
            observation=observation,
            degraded=state.degraded,
        )

    def _score_all(self, transcript: str) -> _ScoringState:
        state = _ScoringState()
        for parameter in self.parameters:
            if state.degraded:
                reply = ERROR_QUOTA
            else:
                reply = self._ask(build_score_prompt(parameter, transcript))
                if reply == ERROR_QUOTA:
                    state.degraded = True

            state.scores[parameter.key] = parse_score(reply, parameter.weight, parameter.input_kind)
            logger.info("Scored %s: %s/%s", parameter.key, state.scores[parameter.key], parameter.weight)
        return state

    def _ask(self, prompt: str) -> str:
        try:
            return self.completion.complete(prompt)
        except RateLimitError:
            return ERROR_QUOTA
        except CompletionError as e:
            logger.error("Completion call failed: %s", e.details or e.message)
            return ERROR_API

    def _summarize(self, prompt: str, fallback: str) -> str:
        reply = self._ask(prompt)
        if reply in ERROR_SENTINELS or not reply.strip():
            return fallback
        return reply.strip()
