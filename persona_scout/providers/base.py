"""
Base LLM Provider Interface
Transcript message types and the abstract provider.
"""
import json
from abc import ABC, abstractmethod
from typing import Annotated, List, Dict, Any, Optional, Union, Literal
from pydantic import BaseModel, Field
from enum import Enum

from ..errors import MalformedToolArgumentsError


class Role(str, Enum):
    """Message roles"""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCall(BaseModel):
    """Tool call requested by the model. ``arguments`` is the raw JSON text."""
    id: str
    name: str
    arguments: str = "{}"

    def parsed_arguments(self) -> Dict[str, Any]:
        """Decode the argument JSON; anything but an object is malformed."""
        try:
            value = json.loads(self.arguments or "{}")
        except json.JSONDecodeError as e:
            raise MalformedToolArgumentsError(self.name, str(e)) from e
        if not isinstance(value, dict):
            raise MalformedToolArgumentsError(self.name, "arguments must be a JSON object")
        return value


class SystemMessage(BaseModel):
    role: Literal[Role.SYSTEM] = Role.SYSTEM
    content: str


class UserMessage(BaseModel):
    role: Literal[Role.USER] = Role.USER
    content: str


class AssistantMessage(BaseModel):
    role: Literal[Role.ASSISTANT] = Role.ASSISTANT
    content: Optional[str] = None
    tool_calls: List[ToolCall] = []


class ToolMessage(BaseModel):
    role: Literal[Role.TOOL] = Role.TOOL
    tool_call_id: str
    content: str
    name: Optional[str] = None


Message = Annotated[
    Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage],
    Field(discriminator="role"),
]


class LLMResponse(BaseModel):
    """Response from LLM"""
    message: AssistantMessage
    finish_reason: str = "stop"
    usage: Dict[str, int] = {}

    @property
    def content(self) -> Optional[str]:
        return self.message.content

    @property
    def tool_calls(self) -> List[ToolCall]:
        return self.message.tool_calls


class ToolDefinition(BaseModel):
    """Tool definition for LLM"""
    name: str
    description: str
    parameters: Dict[str, Any]  # JSON Schema


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name"""
        pass

    @property
    @abstractmethod
    def model(self) -> str:
        """Model identifier"""
        pass

    @abstractmethod
    async def generate(
        self,
        messages: List[Message],
        tools: Optional[List[ToolDefinition]] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """
        Generate the next assistant message.

        Args:
            messages: Conversation history
            tools: Available tools for function calling
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response

        Returns:
            LLMResponse wrapping the assistant message

        Raises:
            UpstreamError: if the provider does not answer successfully
        """
        pass
