"""HTTP clients for the Gemini and OpenAI text generation APIs.

Each client makes one blocking request per call. Responses are decoded as
JSON and inspected structurally: a top-level ``error`` member without text
at the provider's success path means the provider refused the request.
Anything else must carry that text.
"""

import logging
from typing import Any, Dict, Optional

import requests

from commit_ai.config import GEMINI, OPENAI, Credentials, Settings, mask
from commit_ai.errors import ExtractionError, MalformedResponseError, NetworkError, ProviderError

logger = logging.getLogger("commit_ai")

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"


class ProviderClient:
    """Base class for a single text generation provider."""

    name = ""

    def __init__(self, api_key: str, model: str, temperature: float, timeout: float,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self.session = session or requests.Session()

    def build_request(self, prompt: str) -> Dict[str, Any]:
        """Returns keyword arguments for session.post."""
        raise NotImplementedError

    def extract_text(self, payload: Dict[str, Any]) -> str:
        raise NotImplementedError

    def generate(self, prompt: str) -> str:
        """Sends the prompt and returns the generated text."""
        request = self.build_request(prompt)
        logger.info(f"Sending request to {self.name} (model: {self.model}, prompt length: {len(prompt)})")
        try:
            response = self.session.post(timeout=self.timeout, **request)
        except requests.exceptions.Timeout as e:
            raise NetworkError(self.name, f"request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            # str(e) carries the request URL, and with it the Gemini key
            raise NetworkError(self.name, f"request failed ({type(e).__name__})") from e

        payload = self.decode(response)
        error = payload.get("error")
        if error:
            # an error member only counts when the success path is missing
            try:
                text = self.extract_text(payload)
            except ExtractionError:
                raise ProviderError(self.name, self.scrub(self.error_message(error)), response.status_code)
            logger.warning(f"{self.name} response has an error member next to its text; using the text")
        elif not response.ok:
            raise ProviderError(self.name, response.reason or "request was not successful", response.status_code)
        else:
            text = self.extract_text(payload)

        logger.debug(f"Raw response text from {self.name}: {text!r}")
        return text

    def scrub(self, message: str) -> str:
        """Masks the API key wherever it appears in message."""
        return message.replace(self.api_key, mask(self.api_key)) if self.api_key else message

    def decode(self, response: requests.Response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(self.name, "response is not valid JSON", response.status_code) from e
        if not isinstance(payload, dict):
            raise MalformedResponseError(self.name, "response is not a JSON object", response.status_code)
        return payload

    @staticmethod
    def error_message(error: Any) -> str:
        if isinstance(error, dict):
            return str(error.get("message") or error.get("status") or error)
        return str(error)


def _text_at(payload: Any, path, provider: str) -> str:
    """Follows path (keys and list indices) through payload to a string."""
    node = payload
    for step in path:
        try:
            node = node[step]
        except (KeyError, IndexError, TypeError):
            raise ExtractionError(f"{provider} response has no text at {_format_path(path)}")
    if not isinstance(node, str) or not node.strip():
        raise ExtractionError(f"{provider} response text at {_format_path(path)} is empty")
    return node


def _format_path(path) -> str:
    out = ""
    for step in path:
        out += f"[{step}]" if isinstance(step, int) else f".{step}"
    return out.lstrip(".")


class GeminiClient(ProviderClient):
    name = GEMINI
    text_path = ("candidates", 0, "content", "parts", 0, "text")

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "url": GEMINI_API_URL.format(model=self.model),
            "params": {"key": self.api_key},
            "headers": {"Content-Type": "application/json"},
            "json": {
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {"temperature": self.temperature},
            },
        }

    def extract_text(self, payload: Dict[str, Any]) -> str:
        return _text_at(payload, self.text_path, self.name)


class OpenAIClient(ProviderClient):
    name = OPENAI
    text_path = ("choices", 0, "message", "content")

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "url": OPENAI_API_URL,
            "headers": {
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            "json": {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": self.temperature,
            },
        }

    def extract_text(self, payload: Dict[str, Any]) -> str:
        return _text_at(payload, self.text_path, self.name)


CLIENTS = {GEMINI: GeminiClient, OPENAI: OpenAIClient}


def create_client(provider: str, credentials: Credentials, settings: Settings,
                  session: Optional[requests.Session] = None) -> ProviderClient:
    """Builds the client for provider using its key from credentials."""
    api_key = credentials.key_for(provider)
    if not api_key:
        raise ValueError(f"No API key available for {provider}")
    model = settings.gemini_model if provider == GEMINI else settings.openai_model
    return CLIENTS[provider](api_key, model, settings.temperature, settings.timeout, session=session)
