"""HTTP clients for the OpenAI-compatible chat completion and speech APIs.

One instance of each service is built at startup and shared by every
request. They hold configuration and a pooled ``requests.Session`` only,
never per-request state. Retries for transient 5xx failures happen in the
transport adapter; a 429 is never retried here and surfaces as
``UpstreamError`` with ``status_code == 429``.
"""
import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import UpstreamError, extract_error_message, mask_secret
from .schemas import ChatCompletion, Usage

logger = logging.getLogger("interviewpro.upstream")

RETRY_STATUSES = (500, 502, 503, 504)


def build_session(api_key: str, max_retries: int) -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=max_retries,
        backoff_factor=0.5,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset({"POST"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"Authorization": f"Bearer {api_key}"})
    return session


class _OpenAIService:
    def __init__(self, api_key: str, base_url: str, model: str, timeout: float = 30.0, max_retries: int = 1):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.session = build_session(api_key, max_retries)

    def _post(self, path: str, payload: dict, label: str) -> requests.Response:
        try:
            res = self.session.post(self.base_url + path, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"Upstream request failed ({label}): {mask_secret(e, [self.api_key])}")
        if not res.ok:
            try:
                response_data = res.json()
            except ValueError:
                response_data = {"message": res.text}
            error_msg = mask_secret(extract_error_message(response_data), [self.api_key])
            raise UpstreamError(f"{label} API error {res.status_code}: {error_msg}", status_code=res.status_code)
        return res

    def close(self) -> None:
        self.session.close()


class ChatCompletionService(_OpenAIService):
    def __init__(self, api_key: str, base_url: str, model: str = "gpt-4o", temperature: float = 0.7, **kwargs):
        super().__init__(api_key, base_url, model, **kwargs)
        self.temperature = temperature

    def complete(self, system_prompt: str, turns: list[dict], max_tokens: int) -> ChatCompletion:
        """Run one chat completion; ``turns`` are forwarded in the order given."""
        payload = {
            "model": self.model,
            "messages": [{"role": "system", "content": system_prompt}, *turns],
            "max_tokens": max_tokens,
            "temperature": self.temperature,
        }
        res = self._post("/chat/completions", payload, "chat")
        try:
            response_data = res.json()
        except ValueError:
            raise UpstreamError("chat API returned a non-JSON body", status_code=res.status_code)
        return parse_chat_completion(response_data)


class SpeechSynthesisService(_OpenAIService):
    def __init__(self, api_key: str, base_url: str, model: str = "tts-1", **kwargs):
        super().__init__(api_key, base_url, model, **kwargs)

    def synthesize(self, text: str, voice: str) -> bytes:
        payload = {
            "model": self.model,
            "voice": voice,
            "input": text,
            "response_format": "mp3",
            "speed": 1.0,
        }
        res = self._post("/audio/speech", payload, "tts")
        return res.content


def parse_chat_completion(response_data) -> ChatCompletion:
    """Pull text and token usage out of a chat completion body, tolerating missing parts."""
    text = ""
    choices = response_data.get("choices") if isinstance(response_data, dict) else None
    if choices and isinstance(choices[0], dict):
        message = choices[0].get("message") or {}
        text = message.get("content") or ""
    usage = (response_data.get("usage") if isinstance(response_data, dict) else None) or {}
    return ChatCompletion(
        text=text,
        usage=Usage(
            input_tokens=usage.get("prompt_tokens") or 0,
            output_tokens=usage.get("completion_tokens") or 0,
        ),
    )
