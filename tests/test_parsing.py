import pytest

from analysis_pipeline import ERROR_API, ERROR_QUOTA, build_score_prompt, parse_score
from rubric import CALL_EVALUATION_PARAMETERS, EvaluationParameter, InputKind


@pytest.mark.parametrize("sentinel", [ERROR_QUOTA, ERROR_API])
@pytest.mark.parametrize("kind", [InputKind.PASS_FAIL, InputKind.SCORE])
def test_error_sentinels_score_zero(sentinel, kind):
    assert parse_score(sentinel, 15, kind) == 0


@pytest.mark.parametrize("reply,expected", [
    ("Score: 18", 15),
    ("7", 7),
    ("The agent earns 0 points", 0),
    ("-4", 0),
    ("15", 15),
    ("I'd give it 9 out of 15", 9),
])
def test_score_kind_clamps_first_number(reply, expected):
    assert parse_score(reply, 15, InputKind.SCORE) == expected


@pytest.mark.parametrize("reply,expected", [
    ("1", 5),
    ("5", 5),
    ("42", 5),
    ("0", 0),
    ("-3", 0),
])
def test_pass_fail_is_binary(reply, expected):
    assert parse_score(reply, 5, InputKind.PASS_FAIL) == expected


def test_pass_fail_keywords_without_digits():
    assert parse_score("PASS", 10, InputKind.PASS_FAIL) == 10
    assert parse_score("Yes, the agent did.", 10, InputKind.PASS_FAIL) == 10
    assert parse_score("Fail", 10, InputKind.PASS_FAIL) == 0
    assert parse_score("unclear", 10, InputKind.PASS_FAIL) == 0


def test_no_signal_scores_zero():
    assert parse_score("cannot determine", 15, InputKind.SCORE) == 0
    assert parse_score("pass", 15, InputKind.SCORE) == 0
    assert parse_score("", 15, InputKind.SCORE) == 0


def test_very_long_digit_runs_are_clamped():
    assert parse_score("9" * 5000, 15, InputKind.SCORE) == 15
    assert parse_score("9" * 5000, 5, InputKind.PASS_FAIL) == 5
    assert parse_score("-" + "9" * 5000, 15, InputKind.SCORE) == 0
    assert parse_score("-" + "9" * 5000, 5, InputKind.PASS_FAIL) == 0
    assert parse_score("0" * 5000 + "7", 15, InputKind.SCORE) == 7


def test_only_first_number_counts():
    assert parse_score("3, maybe 12", 15, InputKind.SCORE) == 3
    assert parse_score("0 (could be 5)", 5, InputKind.PASS_FAIL) == 0


def test_parse_is_idempotent():
    first = parse_score("Score: 11 of 15", 15, InputKind.SCORE)
    assert parse_score("Score: 11 of 15", 15, InputKind.SCORE) == first == 11


def test_score_prompt_contents():
    param = EvaluationParameter("callEtiquette", "Call Etiquette", 15, "Tone, empathy, clear speech", InputKind.SCORE)
    prompt = build_score_prompt(param, "Agent: Hello there.")
    assert "Call Etiquette" in prompt
    assert "Tone, empathy, clear speech" in prompt
    assert "Agent: Hello there." in prompt
    assert "SCORE" in prompt
    assert "0 to 15" in prompt
    assert prompt.rstrip().endswith("Return ONLY the score as a number, with no other text.")
    assert build_score_prompt(param, "Agent: Hello there.") == prompt


def test_pass_fail_prompt_range():
    greeting = CALL_EVALUATION_PARAMETERS[0]
    prompt = build_score_prompt(greeting, "x")
    assert "PASS_FAIL" in prompt
    assert "0 or 5" in prompt


def test_rubric_table():
    keys = [p.key for p in CALL_EVALUATION_PARAMETERS]
    assert len(keys) == 10
    assert len(set(keys)) == 10
    assert all(p.weight > 0 for p in CALL_EVALUATION_PARAMETERS)
    assert sum(p.weight for p in CALL_EVALUATION_PARAMETERS) == 100
