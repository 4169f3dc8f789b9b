"""LLM module."""

from .anthropic_client import AnthropicChatClient
from .broker import (
    BrokerStatus,
    DialogueBackend,
    DialogueBroker,
    FallbackResponder,
    IDialogueBroker,
    select_backend,
)
from .openai_client import OpenAIChatClient

__all__ = [
    "AnthropicChatClient",
    "BrokerStatus",
    "DialogueBackend",
    "DialogueBroker",
    "FallbackResponder",
    "IDialogueBroker",
    "OpenAIChatClient",
    "select_backend",
]
