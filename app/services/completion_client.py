# /app/services/completion_client.py

"""
Streaming client for the chat-completions endpoint.

One call to `CompletionClient.stream_completion` opens exactly one streaming
POST, decodes the server-sent event frames into text increments and hands
each increment to `on_token` in arrival order. The call never raises for
slot-level problems: it returns a StreamOutcome that is completed,
cancelled or errored.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

import httpx

from ..core import config
from ..core.errors import MissingCredentialError, TransportError
from ..models.settings_model import VerifyResponse
from ..models.workbench_model import GenerationConfig, Message
from .run_helpers.cancellation import CancellationToken

logger = logging.getLogger(__name__)

# The SSE field name; the single space after the colon is optional.
DATA_FIELD = "data:"
DONE_SENTINEL = "[DONE]"
# Non-JSON error bodies shorter than this are appended to the error message.
MAX_RAW_ERROR_LENGTH = 200


# --- OUTCOME TYPE ---

class OutcomeKind(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ERRORED = "errored"


@dataclass(frozen=True)
class StreamOutcome:
    kind: OutcomeKind
    error: Optional[str] = None

    @classmethod
    def completed(cls) -> "StreamOutcome":
        return cls(OutcomeKind.COMPLETED)

    @classmethod
    def cancelled(cls) -> "StreamOutcome":
        return cls(OutcomeKind.CANCELLED)

    @classmethod
    def errored(cls, message: str) -> "StreamOutcome":
        return cls(OutcomeKind.ERRORED, message)


# --- WIRE HELPERS ---

def resolve_credential(explicit: Optional[str]) -> str:
    """Explicit value first, then the environment, then ''."""
    return explicit or config.resolve_env_credential()


def build_payload(messages: List[Message], gen_config: GenerationConfig, stream: bool = True) -> Dict[str, Any]:
    return {
        "model": gen_config.model,
        "messages": [m.model_dump(mode="json") for m in messages],
        "stream": stream,
        "temperature": gen_config.temperature,
        "frequency_penalty": gen_config.frequency_penalty,
        "presence_penalty": gen_config.presence_penalty,
        "thinking": {"type": gen_config.thinking.type.value},
    }


def parse_frame(line: str) -> Optional[str]:
    """
    Returns the text increment carried by one event frame, or None for
    anything that is not a content frame: other event fields, the [DONE]
    sentinel, keep-alives and malformed JSON.
    """
    trimmed = line.strip()
    if not trimmed.startswith(DATA_FIELD):
        return None
    data = trimmed[len(DATA_FIELD):].strip()
    if data == DONE_SENTINEL:
        return None
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError:
        return None

    if not isinstance(parsed, dict):
        return None
    choices = parsed.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    if isinstance(content, str) and content:
        return content
    return None


async def iter_text_deltas(lines: AsyncIterator[str]) -> AsyncIterator[str]:
    """Lazily turns a stream of body lines into text increments."""
    async for line in lines:
        delta = parse_frame(line)
        if delta is not None:
            yield delta


def _message_from_error_body(body_text: str, include_code: bool = False) -> Optional[str]:
    """Pulls `error.message`, then `message` (then `code`) out of a JSON error body."""
    try:
        parsed = json.loads(body_text)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(parsed, dict):
        return None
    error = parsed.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if parsed.get("message"):
        return str(parsed["message"])
    if include_code and parsed.get("code"):
        return str(parsed["code"])
    return None


def streaming_error_message(status_code: int, body_text: str) -> str:
    default = f"API Error {status_code}"
    message = _message_from_error_body(body_text)
    if message:
        return message
    try:
        json.loads(body_text)
    except (json.JSONDecodeError, TypeError):
        if body_text and len(body_text) < MAX_RAW_ERROR_LENGTH:
            return f"{default}: {body_text}"
    return default


# --- CLIENT ---

class CompletionClient:
    def __init__(self, api_url: str = config.COMPLETION_API_URL, http_client: Optional[httpx.AsyncClient] = None):
        self.api_url = api_url
        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            # No read timeout: a slow stream is only ever ended by abort.
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(None, connect=config.COMPLETION_CONNECT_TIMEOUT)
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _headers(api_key: str) -> Dict[str, str]:
        return {"Content-Type": "application/json", "Authorization": f"Bearer {api_key}"}

    async def stream_completion(
        self,
        messages: List[Message],
        gen_config: GenerationConfig,
        credential: Optional[str],
        token: CancellationToken,
        on_token: Callable[[str], None],
    ) -> StreamOutcome:
        """
        Streams one completion. Cancellation, whether before the request or
        mid-read, yields a cancelled outcome and never an error.
        """
        if token.is_cancelled:
            return StreamOutcome.cancelled()
        try:
            api_key = resolve_credential(credential)
            if not api_key:
                raise MissingCredentialError()
            finished = await token.run(self._stream(messages, gen_config, api_key, on_token))
        except (MissingCredentialError, TransportError) as e:
            if token.is_cancelled:
                return StreamOutcome.cancelled()
            return StreamOutcome.errored(e.message)
        except httpx.HTTPError as e:
            if token.is_cancelled:
                return StreamOutcome.cancelled()
            logger.warning("Completion request failed: %r", e)
            return StreamOutcome.errored(str(e) or "Unknown error occurred")

        return StreamOutcome.completed() if finished else StreamOutcome.cancelled()

    async def _stream(self, messages: List[Message], gen_config: GenerationConfig, api_key: str, on_token: Callable[[str], None]) -> None:
        payload = build_payload(messages, gen_config, stream=True)
        async with self._get_client().stream("POST", self.api_url, json=payload, headers=self._headers(api_key)) as response:
            if not response.is_success:
                body = (await response.aread()).decode("utf-8", errors="replace")
                raise TransportError(streaming_error_message(response.status_code, body), status_code=response.status_code)
            async for delta in iter_text_deltas(response.aiter_lines()):
                on_token(delta)

    async def verify_connection(self, api_key: Optional[str], model: str) -> VerifyResponse:
        """
        Checks a credential and model pair with a minimal non-streaming
        request (`max_tokens: 1`).
        """
        if not api_key:
            return VerifyResponse(success=False, message="No API Key provided")
        payload = {
            "model": model,
            "messages": [{"role": "user", "content": "test"}],
            "stream": False,
            "max_tokens": 1,
        }
        try:
            response = await self._get_client().post(self.api_url, json=payload, headers=self._headers(api_key))
        except httpx.HTTPError as e:
            return VerifyResponse(success=False, message=str(e) or "Connection failed")

        if not response.is_success:
            message = _message_from_error_body(response.text, include_code=True) or f"HTTP {response.status_code}"
            return VerifyResponse(success=False, message=message)
        return VerifyResponse(success=True, message="Connected successfully")
