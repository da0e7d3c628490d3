"""Providers module initialization"""
from .base import (
    BaseLLMProvider,
    LLMResponse,
    Message,
    Role,
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ToolMessage,
    ToolCall,
    ToolDefinition,
)
from .openai_compatible import OpenAICompatibleProvider, create_xai_provider

__all__ = [
    "BaseLLMProvider",
    "LLMResponse",
    "Message",
    "Role",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolMessage",
    "ToolCall",
    "ToolDefinition",
    "OpenAICompatibleProvider",
    "create_xai_provider",
]
