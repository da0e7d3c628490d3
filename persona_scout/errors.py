"""
Error Types
Exception hierarchy shared by the tools, the agent loop and the API layer.
"""
from typing import Optional


class PersonaScoutError(Exception):
    """Base class for all service errors."""
    pass


class InputValidationError(PersonaScoutError):
    """Bad or missing request input (user-facing 400)."""
    pass


class ConfigError(PersonaScoutError):
    """A required credential or setting is missing."""
    pass


class UpstreamError(PersonaScoutError):
    """
    A downstream HTTP service failed.

    Carries the response status (when there was a response) and a truncated
    excerpt of the body for diagnosis.
    """

    EXCERPT_CHARS = 200

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        self.status = status
        self.excerpt = (body or "")[:self.EXCERPT_CHARS]
        if status is not None:
            message = f"{message} (status {status})"
        if self.excerpt:
            message = f"{message}: {self.excerpt}"
        super().__init__(message)


class UpstreamTimeoutError(UpstreamError):
    """An outbound call exceeded its deadline."""
    pass


class MalformedOutputError(PersonaScoutError):
    """The model's final answer could not be recovered as a JSON object."""
    pass


class MalformedToolArgumentsError(PersonaScoutError):
    """The model sent tool arguments that are not valid for the tool."""

    def __init__(self, tool_name: str, detail: str):
        self.tool_name = tool_name
        super().__init__(f"Malformed arguments for tool '{tool_name}': {detail}")


class UnknownToolError(PersonaScoutError):
    """The model asked for a tool that is not in the catalog."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class TurnBudgetExceededError(PersonaScoutError):
    """The agent loop ran out of turns without a final answer."""

    def __init__(self, max_turns: int):
        self.max_turns = max_turns
        super().__init__(f"No final content after {max_turns} turns")
