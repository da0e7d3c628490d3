"""
Base Tool Interface
Abstract base class for the evidence tools.
"""
import json
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, Type
from pydantic import BaseModel, ValidationError

from ..errors import MalformedToolArgumentsError


class ToolResult(BaseModel):
    """Result from tool execution. ``output`` is what the model sees."""
    success: bool
    output: str
    data: Optional[Any] = None

    @classmethod
    def from_data(cls, data: Any) -> "ToolResult":
        """Serialize evidence (models or lists of models) into a tool result."""
        return cls(success=True, output=json.dumps(_to_jsonable(data)), data=data)

    @classmethod
    def from_error(cls, message: str) -> "ToolResult":
        return cls(success=False, output=json.dumps({"error": message}), data=None)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    return value


class BaseTool(ABC):
    """Abstract base class for tools"""

    #: pydantic model the raw arguments are validated against
    args_model: Type[BaseModel]

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name (used in function calling)"""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Tool description for LLM"""
        pass

    @property
    @abstractmethod
    def parameters(self) -> Dict[str, Any]:
        """JSON Schema for tool parameters"""
        pass

    @abstractmethod
    async def run(self, args: BaseModel) -> Any:
        """
        Execute the tool with validated arguments.

        Returns:
            Evidence models (or a list of them)

        Raises:
            UpstreamError: when the backing service fails
        """
        pass

    def validate_arguments(self, arguments: Dict[str, Any]) -> BaseModel:
        """Check arguments against ``args_model``; only optional fields get defaults."""
        try:
            return self.args_model(**arguments)
        except ValidationError as e:
            raise MalformedToolArgumentsError(self.name, str(e)) from e

    async def execute(self, **kwargs) -> ToolResult:
        """Validate, run and serialize."""
        args = self.validate_arguments(kwargs)
        return ToolResult.from_data(await self.run(args))

    def to_definition(self) -> Dict[str, Any]:
        """Convert to tool definition for LLM"""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters
        }
