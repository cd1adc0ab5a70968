# rubric.py
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple


class InputKind(str, Enum):
    PASS_FAIL = "PASS_FAIL"
    SCORE = "SCORE"


@dataclass(frozen=True)
class EvaluationParameter:
    key: str
    name: str
    weight: int
    description: str
    input_kind: InputKind

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "weight": self.weight,
            "description": self.description,
            "inputType": self.input_kind.value,
        }


# Fixed call-center rubric; weights add up to 100
CALL_EVALUATION_PARAMETERS: Tuple[EvaluationParameter, ...] = (
    EvaluationParameter("greeting", "Greeting", 5, "Call opening within 5 seconds", InputKind.PASS_FAIL),
    EvaluationParameter("collectionUrgency", "Collection Urgency", 15, "Create urgency, cross-questioning", InputKind.SCORE),
    EvaluationParameter("rebuttalCustomerHandling", "Rebuttal Handling", 15, "Address penalties, objections", InputKind.SCORE),
    EvaluationParameter("callEtiquette", "Call Etiquette", 15, "Tone, empathy, clear speech", InputKind.SCORE),
    EvaluationParameter("callDisclaimer", "Call Disclaimer", 5, "Take permission before ending", InputKind.PASS_FAIL),
    EvaluationParameter("correctDisposition", "Correct Disposition", 10, "Use correct category with remark", InputKind.PASS_FAIL),
    EvaluationParameter("callClosing", "Call Closing", 5, "Thank the customer properly", InputKind.PASS_FAIL),
    EvaluationParameter("fatalIdentification", "Identification", 5, "Missing agent/customer info", InputKind.PASS_FAIL),
    EvaluationParameter("fatalTapeDiscloser", "Tape Disclosure", 10, "Inform customer about recording", InputKind.PASS_FAIL),
    EvaluationParameter("fatalToneLanguage", "Tone & Language", 15, "No abusive or threatening speech", InputKind.PASS_FAIL),
)


def max_total_score(parameters=CALL_EVALUATION_PARAMETERS) -> int:
    return sum(p.weight for p in parameters)
