"""Live dialogue backend using the Anthropic Messages API."""

import anthropic

from ..config import ProviderSettings
from ..models import (
    ConnectionState,
    DialogueRequest,
    ProviderCallError,
    ProviderFailure,
    RateLimited,
)
from .openai_client import DEFAULT_RATE_LIMIT_BACKOFF, parse_retry_after
from .prompts import SYSTEM_PROMPT, build_user_lines

EMPTY_COMPLETION_ERROR = "Anthropic returned an empty completion for dialogue request"


class AnthropicChatClient:
    """Anthropic Claude API backend."""

    connection_state = ConnectionState.LIVE

    def __init__(self, settings: ProviderSettings):
        if not settings.api_key:
            raise ValueError("ANTHROPIC_API_KEY not set")

        self._settings = settings
        # Retries are owned by the dispatch scheduler.
        self._client = anthropic.AsyncAnthropic(
            api_key=settings.api_key,
            timeout=settings.timeout_seconds,
            max_retries=0,
        )

    async def send(self, request: DialogueRequest) -> str:
        """Return the completion text or raise ProviderCallError."""
        try:
            response = await self._client.messages.create(
                model=self._settings.model,
                system=SYSTEM_PROMPT,
                messages=[
                    {
                        "role": "user",
                        "content": "\n".join(build_user_lines(request, live=True)),
                    }
                ],
                max_tokens=self._settings.max_output_tokens,
                temperature=self._settings.temperature,
            )
        except anthropic.RateLimitError as e:
            retry_after = parse_retry_after(e.response.headers)
            if retry_after is None:
                retry_after = DEFAULT_RATE_LIMIT_BACKOFF
            raise ProviderCallError(RateLimited(retry_after)) from e
        except anthropic.APIStatusError as e:
            raise ProviderCallError(
                ProviderFailure(f"{e.message} (status: {e.status_code})")
            ) from e
        except anthropic.APIError as e:
            raise ProviderCallError(ProviderFailure(str(e))) from e

        text = "".join(
            getattr(block, "text", "") or "" for block in response.content
        ).strip()
        if not text:
            raise ProviderCallError(ProviderFailure(EMPTY_COMPLETION_ERROR))
        return text

    async def aclose(self) -> None:
        await self._client.close()
