from types import SimpleNamespace

import httpx
import openai
import pytest
import requests

import stt_handler
from errors import TranscriptionError, TranscriptionRateLimitError
from stt_handler import DeepgramTranscriber, WhisperTranscriber


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        return self._payload


def _deepgram_payload(transcript):
    return {"results": {"channels": [{"alternatives": [{"transcript": transcript, "confidence": 0.98}]}]}}


def test_deepgram_success(monkeypatch):
    sent = {}

    def fake_post(url, params=None, headers=None, data=None, timeout=None):
        sent.update(url=url, params=params, headers=headers, data=data, timeout=timeout)
        return FakeResponse(200, _deepgram_payload("  Agent: Hello, thanks for calling.  "))

    monkeypatch.setattr(stt_handler.requests, "post", fake_post)
    text = DeepgramTranscriber("dg-key", timeout=12).transcribe(b"bytes", filename="a.wav", content_type="audio/wav")

    assert text == "Agent: Hello, thanks for calling."
    assert sent["url"] == stt_handler.DEEPGRAM_URL
    assert sent["headers"]["Authorization"] == "Token dg-key"
    assert sent["headers"]["Content-Type"] == "audio/wav"
    assert sent["params"]["model"] == "nova-2"
    assert sent["data"] == b"bytes"
    assert sent["timeout"] == 12


def test_deepgram_http_error(monkeypatch):
    monkeypatch.setattr(stt_handler.requests, "post", lambda *a, **k: FakeResponse(401, text="Invalid credentials"))
    with pytest.raises(TranscriptionError) as exc:
        DeepgramTranscriber("bad").transcribe(b"bytes")
    assert exc.value.upstream_status == 401
    assert "401" in exc.value.details
    assert exc.value.status_code == 502


def test_deepgram_rate_limit(monkeypatch):
    monkeypatch.setattr(stt_handler.requests, "post", lambda *a, **k: FakeResponse(429, text="Too many requests"))
    with pytest.raises(TranscriptionRateLimitError) as exc:
        DeepgramTranscriber("key").transcribe(b"bytes")
    assert exc.value.status_code == 429


def test_deepgram_timeout_is_transport_error(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(stt_handler.requests, "post", fake_post)
    with pytest.raises(TranscriptionError):
        DeepgramTranscriber("key").transcribe(b"bytes")


def test_deepgram_malformed_body(monkeypatch):
    monkeypatch.setattr(stt_handler.requests, "post", lambda *a, **k: FakeResponse(200, {"results": {}}))
    with pytest.raises(TranscriptionError):
        DeepgramTranscriber("key").transcribe(b"bytes")


def test_deepgram_non_json_body(monkeypatch):
    class HtmlResponse(FakeResponse):
        def json(self):
            raise ValueError("Expecting value: line 1 column 1 (char 0)")

    monkeypatch.setattr(stt_handler.requests, "post", lambda *a, **k: HtmlResponse(200, text="<html>oops</html>"))
    with pytest.raises(TranscriptionError) as exc:
        DeepgramTranscriber("key").transcribe(b"bytes")
    assert exc.value.status_code == 502


def _whisper_client(create):
    return SimpleNamespace(audio=SimpleNamespace(transcriptions=SimpleNamespace(create=create)))


def test_whisper_success():
    calls = {}

    def create(**kwargs):
        calls.update(kwargs)
        return SimpleNamespace(text=" Customer: hi ")

    text = WhisperTranscriber(_whisper_client(create), language="en-US").transcribe(b"abc", filename="c.mp3")
    assert text == "Customer: hi"
    assert calls["language"] == "en"
    assert calls["file"] == ("c.mp3", b"abc")


def test_whisper_rate_limit():
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")

    def create(**kwargs):
        raise openai.RateLimitError("quota", response=httpx.Response(429, request=request), body=None)

    with pytest.raises(TranscriptionRateLimitError):
        WhisperTranscriber(_whisper_client(create)).transcribe(b"abc")


def test_whisper_connection_error():
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")

    def create(**kwargs):
        raise openai.APIConnectionError(request=request)

    with pytest.raises(TranscriptionError):
        WhisperTranscriber(_whisper_client(create)).transcribe(b"abc")
