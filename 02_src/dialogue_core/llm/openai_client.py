"""Live dialogue backend speaking the OpenAI chat-completions protocol."""

import math

import httpx

from ..config import ProviderSettings
from ..logging_config import get_logger
from ..models import (
    ConnectionState,
    DialogueRequest,
    ProviderCallError,
    ProviderFailure,
    RateLimited,
)
from .prompts import build_messages

logger = get_logger(__name__)

DEFAULT_RATE_LIMIT_BACKOFF = 10.0
EMPTY_COMPLETION_ERROR = "OpenAI returned an empty completion for dialogue request"


def parse_retry_after(headers: httpx.Headers) -> float | None:
    """Seconds from a Retry-After header.

    Only finite, non-negative numbers are honoured; HTTP-date values are not
    supported.
    """
    value = headers.get("retry-after")
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(seconds) or seconds < 0.0:
        return None
    return seconds


def describe_error_body(response: httpx.Response) -> str | None:
    """Structured provider error message, if the body decodes as one."""
    try:
        body = response.json()
        error = body["error"]
        message = error["message"]
        error_type = error["type"]
    except (ValueError, KeyError, TypeError):
        return None

    code = error.get("code")
    if code is None:
        return f"{message} (type: {error_type})"
    return f"{message} (type: {error_type}, code: {code})"


def extract_completion(body: object) -> str | None:
    """First non-empty choice content, stripped."""
    if not isinstance(body, dict):
        return None
    for choice in body.get("choices") or []:
        try:
            content = choice["message"]["content"]
        except (KeyError, TypeError):
            continue
        if isinstance(content, str) and content.strip():
            return content.strip()
    return None


class OpenAIChatClient:
    """Sends one chat-completion call per dialogue request."""

    connection_state = ConnectionState.LIVE

    def __init__(
        self,
        settings: ProviderSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not settings.api_key:
            raise ValueError("OPENAI_API_KEY not set")

        self._settings = settings
        self._url = settings.chat_url
        self._http = httpx.AsyncClient(
            timeout=settings.timeout_seconds,
            transport=transport,
            headers={"Authorization": f"Bearer {settings.api_key}"},
        )

    def build_payload(self, request: DialogueRequest) -> dict:
        return {
            "model": self._settings.model,
            "messages": build_messages(request),
            "max_tokens": self._settings.max_output_tokens,
            "temperature": self._settings.temperature,
        }

    async def send(self, request: DialogueRequest) -> str:
        """Return the completion text or raise ProviderCallError."""
        logger.debug("POST %s (model %s)", self._url, self._settings.model)
        try:
            response = await self._http.post(self._url, json=self.build_payload(request))
        except httpx.HTTPError as e:
            raise ProviderCallError(ProviderFailure(str(e) or type(e).__name__)) from e

        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            retry_after = parse_retry_after(response.headers)
            if retry_after is None:
                retry_after = DEFAULT_RATE_LIMIT_BACKOFF
            raise ProviderCallError(RateLimited(retry_after))

        if not response.is_success:
            message = describe_error_body(response)
            if message is None:
                message = f"HTTP {response.status_code} from OpenAI"
            raise ProviderCallError(ProviderFailure(message))

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderCallError(ProviderFailure(str(e))) from e

        content = extract_completion(body)
        if content is None:
            raise ProviderCallError(ProviderFailure(EMPTY_COMPLETION_ERROR))
        return content

    async def aclose(self) -> None:
        await self._http.aclose()
