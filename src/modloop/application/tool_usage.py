"""
ToolUsageTally: per-step file read and command counts from model tool calls.

Feeds the file_read_counts and command_retry_counts of the guardrail context.
A call with a command argument counts as a command run; a read tool with a
path argument counts as a file read.
"""

from collections.abc import Iterable

from modloop.domain.models import ToolCall

PATH_ARGUMENTS = ("path", "file_path", "file")
COMMAND_ARGUMENTS = ("command", "cmd")


def _first_argument(call: ToolCall, keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = call.argument(key)
        if value is not None:
            return value
    return None


class ToolUsageTally:
    def __init__(self) -> None:
        self._reads: dict[str, int] = {}
        self._runs: dict[str, int] = {}

    def record(self, calls: Iterable[ToolCall]) -> None:
        for call in calls:
            command = _first_argument(call, COMMAND_ARGUMENTS)
            if command is not None:
                self._runs[command] = self._runs.get(command, 0) + 1
                continue
            if "read" not in call.name.lower():
                continue
            path = _first_argument(call, PATH_ARGUMENTS)
            if path is not None:
                self._reads[path] = self._reads.get(path, 0) + 1

    def reset(self) -> None:
        self._reads.clear()
        self._runs.clear()

    @property
    def file_read_counts(self) -> tuple[tuple[str, int], ...]:
        return tuple(sorted(self._reads.items()))

    @property
    def command_retry_counts(self) -> tuple[tuple[str, int], ...]:
        """Runs beyond the first, for commands run more than once."""
        return tuple(
            (command, runs - 1) for command, runs in sorted(self._runs.items()) if runs > 1
        )
