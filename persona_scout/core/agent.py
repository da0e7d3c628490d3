"""
Agent Executor
Bounded tool-calling loop: the model plans, the tools gather evidence,
the loop ends on the first answer without tool calls.
"""
import asyncio
import time
from dataclasses import dataclass, field
from typing import List, Dict, Optional

from .logging import agent_logger
from .transcript import Transcript
from ..config import config
from ..errors import (
    MalformedToolArgumentsError,
    TurnBudgetExceededError,
    UnknownToolError,
    UpstreamError,
)
from ..providers.base import BaseLLMProvider, ToolCall, ToolMessage
from ..tools.base import ToolResult
from ..tools.catalog import ToolCatalog


@dataclass
class AgentRun:
    """Outcome of a finished loop."""
    content: str
    turns: int
    tool_calls: List[Dict[str, str]] = field(default_factory=list)


class AgentExecutor:
    """
    Runs the model against a transcript until it answers.

    Each turn sends the whole transcript and the tool catalog to the model.
    Tool calls from one turn run concurrently; their results are appended in
    the order the model listed them, each tagged with its call id, before the
    next turn. The loop gives up after ``max_turns`` model calls.

    Failure policy: by default any tool failure or malformed argument aborts
    the run. Unknown tool names never abort; the model gets
    ``{"error": "Unknown tool"}`` back. With ``recover_tool_errors`` every
    failure is reported to the model the same way.
    """

    def __init__(
        self,
        provider: BaseLLMProvider,
        catalog: ToolCatalog,
        max_turns: Optional[int] = None,
        recover_tool_errors: Optional[bool] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        self.provider = provider
        self.catalog = catalog
        self.max_turns = max_turns if max_turns is not None else config.agent.max_turns
        if self.max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.recover_tool_errors = (
            recover_tool_errors if recover_tool_errors is not None else config.agent.recover_tool_errors
        )
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.logger = agent_logger()

    async def run(self, transcript: Transcript) -> AgentRun:
        """
        Drive the model until it produces a final answer.

        Args:
            transcript: Seeded transcript; the loop appends to it

        Returns:
            AgentRun with the final content

        Raises:
            TurnBudgetExceededError: no final answer within ``max_turns``
            UpstreamError: the model call or (by default) a tool failed
            MalformedToolArgumentsError: (by default) bad tool arguments
        """
        definitions = self.catalog.definitions()
        executed: List[Dict[str, str]] = []

        for turn in range(1, self.max_turns + 1):
            llm_start = time.time()
            response = await self.provider.generate(
                messages=transcript.snapshot(),
                tools=definitions,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            llm_duration = (time.time() - llm_start) * 1000

            message = response.message
            transcript.append(message)

            if not message.tool_calls:
                self.logger.info(
                    f"Final answer on turn {turn}",
                    extra={"fields": {"turn": turn, "llm_ms": round(llm_duration)}},
                )
                return AgentRun(content=message.content or "", turns=turn, tool_calls=executed)

            self.logger.info(
                f"Turn {turn}: {len(message.tool_calls)} tool call(s)",
                extra={"fields": {
                    "turn": turn,
                    "tools": [tc.name for tc in message.tool_calls],
                    "llm_ms": round(llm_duration),
                }},
            )

            results = await self._execute_calls(message.tool_calls)
            for tool_call, result in zip(message.tool_calls, results):
                transcript.append(ToolMessage(
                    tool_call_id=tool_call.id,
                    name=tool_call.name,
                    content=result.output,
                ))
                executed.append({"id": tool_call.id, "name": tool_call.name})

        self.logger.warning(f"Turn budget of {self.max_turns} exhausted")
        raise TurnBudgetExceededError(self.max_turns)

    async def _execute_calls(self, tool_calls: List[ToolCall]) -> List[ToolResult]:
        """Run one turn's calls concurrently; the first failure in call order is raised."""
        outcomes = await asyncio.gather(
            *(self._execute_tool(tc) for tc in tool_calls),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return outcomes

    async def _execute_tool(self, tool_call: ToolCall) -> ToolResult:
        """Execute a tool call by name"""
        tool_start = time.time()
        try:
            result = await self.catalog.dispatch(tool_call)
        except UnknownToolError:
            self.logger.warning(f"Model requested unknown tool '{tool_call.name}'")
            return ToolResult.from_error("Unknown tool")
        except (MalformedToolArgumentsError, UpstreamError) as e:
            self.logger.error(f"Tool '{tool_call.name}' failed: {e}")
            if not self.recover_tool_errors:
                raise
            return ToolResult.from_error(str(e))

        tool_duration = (time.time() - tool_start) * 1000
        self.logger.info(f"Tool '{tool_call.name}' completed successfully ({tool_duration:.2f}ms)")
        return result
