from .ai import (
    AnthropicChatBackend,
    OpenAIChatBackend,
    coerce_anthropic_text,
    coerce_completion_text,
    provider_error_message,
)
from .line import LineMessagingClient

__all__ = [
    "AnthropicChatBackend",
    "LineMessagingClient",
    "OpenAIChatBackend",
    "coerce_anthropic_text",
    "coerce_completion_text",
    "provider_error_message",
]
