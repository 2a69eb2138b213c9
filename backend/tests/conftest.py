import time

import pytest
from fastapi.testclient import TestClient

from interviewpro.config import Settings
from interviewpro.main import create_app
from interviewpro.ratelimit import limiter
from interviewpro.schemas import ChatCompletion, Usage

TEST_API_KEY = "sk-test-0123456789abcdef"


class StubChat:
    """Records every completion request and replays a canned reply."""

    def __init__(self, text="Thanks for joining. Can you walk me through your current role?", error=None, delay=0.0):
        self.text = text
        self.error = error
        self.delay = delay
        self.calls = []

    def complete(self, system_prompt, turns, max_tokens):
        self.calls.append({"system_prompt": system_prompt, "turns": turns, "max_tokens": max_tokens})
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return ChatCompletion(text=self.text, usage=Usage(input_tokens=120, output_tokens=40))


class StubSpeech:
    def __init__(self, audio=b"ID3-fake-mp3-bytes", error=None):
        self.audio = audio
        self.error = error
        self.calls = []

    def synthesize(self, text, voice):
        self.calls.append({"text": text, "voice": voice})
        if self.error:
            raise self.error
        return self.audio


def make_settings(**overrides):
    values = {"openai_api_key": TEST_API_KEY, "api_secret": None, "allowed_origins": ""}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def gateway():
    """Factory: build a TestClient around stub collaborators, with fresh rate limit counters."""

    def _build(chat=None, speech=None, **overrides):
        limiter.reset()
        chat = chat or StubChat()
        speech = speech or StubSpeech()
        app = create_app(make_settings(**overrides), chat_service=chat, speech_service=speech)
        return TestClient(app), chat, speech

    return _build


def conversation(user_turns):
    """Alternating assistant/user history ending on the candidate's latest answer."""
    messages = []
    for i in range(user_turns):
        messages.append({"role": "assistant", "content": f"Question {i + 1}?"})
        messages.append({"role": "user", "content": f"Answer {i + 1}."})
    return messages
