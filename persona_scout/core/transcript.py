"""
Transcript
Append-only message history for one agent run.
"""
from typing import Iterable, Iterator, List, Set

from ..providers.base import Message, Role, ToolMessage


class TranscriptError(RuntimeError):
    """A message would break the assistant/tool pairing."""
    pass


class Transcript:
    """
    Ordered message list that keeps tool results paired with their calls.

    After an assistant message with N tool calls, exactly N tool messages
    (one per call id, any order) must be appended before anything else.
    """

    def __init__(self, messages: Iterable[Message] = ()):
        self._messages: List[Message] = []
        self._pending: Set[str] = set()
        for message in messages:
            self.append(message)

    def append(self, message: Message) -> None:
        if message.role == Role.TOOL:
            if message.tool_call_id not in self._pending:
                raise TranscriptError(
                    f"Tool result '{message.tool_call_id}' does not answer a pending call"
                )
            self._pending.discard(message.tool_call_id)
        elif self._pending:
            raise TranscriptError(
                f"{len(self._pending)} tool call(s) still waiting for results"
            )
        elif message.role == Role.ASSISTANT:
            ids = [tc.id for tc in message.tool_calls]
            if len(set(ids)) != len(ids):
                raise TranscriptError("Duplicate tool call ids in one assistant message")
            self._pending = set(ids)

        self._messages.append(message)

    @property
    def pending_calls(self) -> Set[str]:
        return set(self._pending)

    @property
    def ready_for_model(self) -> bool:
        return not self._pending

    def snapshot(self) -> List[Message]:
        """Copy of the messages to hand to the provider."""
        if self._pending:
            raise TranscriptError("Cannot call the model while tool results are pending")
        return list(self._messages)

    def tool_results_after(self, assistant_index: int) -> List[ToolMessage]:
        """Tool messages that directly follow the message at ``assistant_index``."""
        results = []
        for message in self._messages[assistant_index + 1:]:
            if message.role != Role.TOOL:
                break
            results.append(message)
        return results

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]
