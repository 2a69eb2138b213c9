import pytest
import requests

from interviewpro.errors import UpstreamError
from interviewpro.upstream import ChatCompletionService, SpeechSynthesisService, parse_chat_completion

API_KEY = "sk-unit-test-key-123"


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, content=b"", text=""):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._json = json_data
        self.content = content
        self.text = text

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


def recording_post(response, sink):
    def _post(url, json=None, timeout=None):
        sink.append({"url": url, "json": json, "timeout": timeout})
        if isinstance(response, Exception):
            raise response
        return response

    return _post


def chat_service():
    return ChatCompletionService(api_key=API_KEY, base_url="https://llm.example.com/v1/", timeout=12.0)


def test_complete_sends_system_prompt_first(monkeypatch):
    sent = []
    body = {
        "choices": [{"message": {"role": "assistant", "content": "Tell me about yourself."}}],
        "usage": {"prompt_tokens": 310, "completion_tokens": 22},
    }
    service = chat_service()
    monkeypatch.setattr(service.session, "post", recording_post(FakeResponse(json_data=body), sent))

    turns = [{"role": "user", "content": "Hi"}]
    result = service.complete("SYSTEM", turns, 512)

    assert result.text == "Tell me about yourself."
    assert result.usage.input_tokens == 310
    assert result.usage.output_tokens == 22
    assert sent[0]["url"] == "https://llm.example.com/v1/chat/completions"
    assert sent[0]["timeout"] == 12.0
    payload = sent[0]["json"]
    assert payload["messages"] == [{"role": "system", "content": "SYSTEM"}, {"role": "user", "content": "Hi"}]
    assert payload["max_tokens"] == 512
    assert payload["model"] == "gpt-4o"
    assert payload["temperature"] == 0.7


def test_bearer_header_is_set():
    assert chat_service().session.headers["Authorization"] == f"Bearer {API_KEY}"


def test_rate_limited_upstream_is_overloaded(monkeypatch):
    service = chat_service()
    error_body = {"error": {"message": f"Rate limit reached for key {API_KEY}"}}
    monkeypatch.setattr(service.session, "post", recording_post(FakeResponse(429, error_body), []))

    with pytest.raises(UpstreamError) as exc:
        service.complete("SYSTEM", [], 200)
    assert exc.value.overloaded
    assert exc.value.status_code == 429
    assert API_KEY not in exc.value.message
    assert "[REDACTED]" in exc.value.message


def test_server_error_with_text_body(monkeypatch):
    service = chat_service()
    monkeypatch.setattr(service.session, "post", recording_post(FakeResponse(503, text="upstream down"), []))

    with pytest.raises(UpstreamError) as exc:
        service.complete("SYSTEM", [], 200)
    assert not exc.value.overloaded
    assert "503" in exc.value.message
    assert "upstream down" in exc.value.message


def test_transport_failure_has_no_status(monkeypatch):
    service = chat_service()
    monkeypatch.setattr(service.session, "post", recording_post(requests.exceptions.ConnectionError("refused"), []))

    with pytest.raises(UpstreamError) as exc:
        service.complete("SYSTEM", [], 200)
    assert exc.value.status_code is None
    assert not exc.value.overloaded


def test_non_json_success_body(monkeypatch):
    service = chat_service()
    monkeypatch.setattr(service.session, "post", recording_post(FakeResponse(200, text="<html>"), []))
    with pytest.raises(UpstreamError):
        service.complete("SYSTEM", [], 200)


def test_parse_tolerates_missing_parts():
    empty = parse_chat_completion({})
    assert empty.text == ""
    assert empty.usage.input_tokens == 0
    assert empty.usage.output_tokens == 0

    no_content = parse_chat_completion({"choices": [{"message": {"content": None}}], "usage": None})
    assert no_content.text == ""


def test_synthesize_posts_speech_request(monkeypatch):
    sent = []
    service = SpeechSynthesisService(api_key=API_KEY, base_url="https://llm.example.com/v1")
    monkeypatch.setattr(service.session, "post", recording_post(FakeResponse(content=b"mp3-bytes"), sent))

    assert service.synthesize("Hello", "fable") == b"mp3-bytes"
    assert sent[0]["url"] == "https://llm.example.com/v1/audio/speech"
    assert sent[0]["json"] == {
        "model": "tts-1",
        "voice": "fable",
        "input": "Hello",
        "response_format": "mp3",
        "speed": 1.0,
    }
