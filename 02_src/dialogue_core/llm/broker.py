"""Dialogue broker: one facade over a live provider or the local fallback."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from ..config import PROVIDER_ANTHROPIC, ProviderSettings, is_valid_base_url
from ..logging_config import get_logger
from ..models import (
    ConnectionState,
    DialogueError,
    DialogueRequest,
    DialogueResponse,
    ProviderCallError,
    ProviderKind,
    RequestId,
)
from .anthropic_client import AnthropicChatClient
from .openai_client import OpenAIChatClient
from .prompts import compose_fallback_text, validate_request

logger = get_logger(__name__)


class DialogueBackend(Protocol):
    """A single way of turning a validated request into response text."""

    connection_state: ConnectionState

    async def send(self, request: DialogueRequest) -> str:
        """Return response text or raise ProviderCallError."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...


class FallbackResponder:
    """Deterministic, network-free responses."""

    connection_state = ConnectionState.FALLBACK

    async def send(self, request: DialogueRequest) -> str:
        return compose_fallback_text(request)

    async def aclose(self) -> None:
        return


class IDialogueBroker(Protocol):
    """What the dispatch scheduler needs from a broker."""

    @property
    def provider_kind(self) -> ProviderKind:
        """Provider reported on responses and errors."""
        ...

    async def process(
        self, request_id: RequestId, request: DialogueRequest
    ) -> DialogueResponse:
        """Produce a response or raise DialogueError."""
        ...


@dataclass(frozen=True)
class BrokerStatus:
    """Snapshot of the active broker for status endpoints and logs."""

    provider: ProviderKind
    connection_state: ConnectionState

    def to_dict(self) -> dict[str, str]:
        return {
            "provider": self.provider.value,
            "connection_state": self.connection_state.value,
        }


def select_backend(
    settings: ProviderSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> DialogueBackend:
    """Pick the live backend when configuration allows it, else the fallback."""
    if settings.provider == PROVIDER_ANTHROPIC:
        if not settings.api_key:
            logger.warning(
                "ANTHROPIC_API_KEY not set; dialogue broker using local fallback responses."
            )
            return FallbackResponder()
        try:
            return AnthropicChatClient(settings)
        except Exception as e:
            logger.warning(
                "Failed to construct Anthropic client (%s). Falling back to local responses.",
                e,
            )
            return FallbackResponder()

    if not settings.api_key:
        logger.warning(
            "OPENAI_API_KEY not set; dialogue broker using local fallback responses."
        )
        return FallbackResponder()

    if not is_valid_base_url(settings.base_url):
        logger.warning(
            "OPENAI_BASE_URL %r is not a valid http(s) URL. Falling back to local responses.",
            settings.base_url,
        )
        return FallbackResponder()

    try:
        return OpenAIChatClient(settings, transport=transport)
    except Exception as e:
        logger.warning(
            "Failed to construct OpenAI HTTP client (%s). Falling back to local responses.",
            e,
        )
        return FallbackResponder()


class DialogueBroker:
    """Validates requests and delegates them to the backend chosen at construction.

    The backend never changes for the broker's lifetime and the broker keeps
    no per-call state, so one instance is shared by every in-flight dispatch.
    """

    def __init__(
        self,
        settings: ProviderSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        backend: DialogueBackend | None = None,
    ):
        settings = settings or ProviderSettings.from_env()
        self._provider_kind = ProviderKind(settings.provider)
        self._backend = backend or select_backend(settings, transport)

    @property
    def provider_kind(self) -> ProviderKind:
        return self._provider_kind

    @property
    def status(self) -> BrokerStatus:
        return BrokerStatus(self._provider_kind, self._backend.connection_state)

    async def process(
        self, request_id: RequestId, request: DialogueRequest
    ) -> DialogueResponse:
        """Produce a response or raise DialogueError."""
        kind = validate_request(request)
        if kind is not None:
            raise DialogueError(request_id, self._provider_kind, kind)

        try:
            content = await self._backend.send(request)
        except ProviderCallError as e:
            raise DialogueError(request_id, self._provider_kind, e.kind) from e

        return DialogueResponse(
            request_id=request_id,
            provider=self._provider_kind,
            speaker=request.speaker,
            target=request.target,
            content=content,
        )

    async def close(self) -> None:
        await self._backend.aclose()
