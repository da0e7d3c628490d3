"""
OpenAI-Compatible LLM Provider
A unified provider for any API following the OpenAI chat-completions format.
Used with xAI (api.x.ai/v1) by default; OpenAI, DeepSeek, vLLM etc. also work.
"""
from typing import List, Optional, Dict, Any
import openai
from openai import AsyncOpenAI

from .base import (
    BaseLLMProvider,
    Message,
    LLMResponse,
    ToolCall,
    ToolDefinition,
    AssistantMessage,
    Role,
)
from ..config import config
from ..errors import ConfigError, UpstreamError, UpstreamTimeoutError


class OpenAICompatibleProvider(BaseLLMProvider):
    """
    Provider for OpenAI-compatible chat-completion APIs.

    The client is created with ``max_retries=0``: a failed model call fails
    the whole job rather than being retried mid-turn.
    """

    def __init__(
        self,
        provider_name: str,
        model: str,
        api_key: str,
        base_url: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 6000,
        timeout_seconds: float = 120.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize the OpenAI-compatible provider.

        Args:
            provider_name: Name identifier for this provider (e.g., "xai", "openai")
            model: Model identifier (e.g., "grok-4")
            api_key: API key for authentication
            base_url: Base URL for the API (None for OpenAI default)
            temperature: Default temperature for generation
            max_tokens: Default max tokens for generation
            timeout_seconds: Deadline for a single completion call
            client: Pre-built client (tests)
        """
        self._name = provider_name
        self._model = model
        self._default_temperature = temperature
        self._default_max_tokens = max_tokens

        if not api_key and client is None:
            raise ConfigError(f"{provider_name} API key not configured")

        if client is None:
            client_kwargs: Dict[str, Any] = {
                "api_key": api_key,
                "timeout": timeout_seconds,
                "max_retries": 0,
            }
            if base_url:
                client_kwargs["base_url"] = base_url
            client = AsyncOpenAI(**client_kwargs)
        self._client = client

    @property
    def name(self) -> str:
        return self._name

    @property
    def model(self) -> str:
        return self._model

    def _convert_messages(self, messages: List[Message]) -> List[Dict[str, Any]]:
        """Convert transcript messages to the OpenAI wire format"""
        result = []
        for msg in messages:
            message_dict: Dict[str, Any] = {
                "role": msg.role.value,
                "content": msg.content,
            }
            if msg.role == Role.TOOL:
                message_dict["tool_call_id"] = msg.tool_call_id
                if msg.name:
                    message_dict["name"] = msg.name
            elif msg.role == Role.ASSISTANT and msg.tool_calls:
                message_dict["tool_calls"] = [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {
                            "name": tc.name,
                            "arguments": tc.arguments,
                        }
                    }
                    for tc in msg.tool_calls
                ]
            result.append(message_dict)
        return result

    def _convert_tools(self, tools: List[ToolDefinition]) -> List[Dict[str, Any]]:
        """Convert tool definitions to OpenAI format"""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters
                }
            }
            for tool in tools
        ]

    async def generate(
        self,
        messages: List[Message],
        tools: Optional[List[ToolDefinition]] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """Generate response using OpenAI-compatible API"""
        kwargs: Dict[str, Any] = {
            "model": self._model,
            "messages": self._convert_messages(messages),
            "temperature": temperature if temperature is not None else self._default_temperature,
            "max_tokens": max_tokens if max_tokens is not None else self._default_max_tokens,
        }

        if tools:
            kwargs["tools"] = self._convert_tools(tools)
            kwargs["tool_choice"] = "auto"

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APITimeoutError as e:
            raise UpstreamTimeoutError(f"{self._name} API timed out") from e
        except openai.APIStatusError as e:
            raise UpstreamError(
                f"{self._name} API error",
                status=e.status_code,
                body=e.response.text if e.response is not None else str(e),
            ) from e
        except openai.APIConnectionError as e:
            raise UpstreamError(f"{self._name} API unreachable: {e}") from e

        if not response.choices:
            raise UpstreamError(f"{self._name} API returned no choices")

        choice = response.choices[0]
        message = choice.message

        tool_calls = [
            ToolCall(
                id=tc.id,
                name=tc.function.name,
                arguments=tc.function.arguments or "{}",
            )
            for tc in (message.tool_calls or [])
        ]

        return LLMResponse(
            message=AssistantMessage(content=message.content, tool_calls=tool_calls),
            finish_reason=choice.finish_reason or "stop",
            usage={
                "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
                "completion_tokens": response.usage.completion_tokens if response.usage else 0,
            }
        )


def create_xai_provider(
    model: Optional[str] = None,
    api_key: Optional[str] = None,
) -> OpenAICompatibleProvider:
    """Create the provider described by the ``llm`` config section"""
    return OpenAICompatibleProvider(
        provider_name=config.llm.provider,
        model=model or config.llm.model,
        api_key=api_key or config.llm.api_key,
        base_url=config.llm.base_url,
        temperature=config.llm.temperature,
        max_tokens=config.llm.max_tokens,
        timeout_seconds=config.llm.timeout_seconds,
    )
