"""
Tool discipline guardrail.

Detects wasteful tool call patterns and surfaces corrective instructions.
Never blocks.
"""

from modloop.domain.interfaces import GuardrailInterface
from modloop.domain.models import GuardrailContext, GuardrailResult

DEFAULT_TOOL_CALL_THRESHOLD = 50
DEFAULT_MAX_FILE_READS = 3
DEFAULT_MAX_COMMAND_RETRIES = 3


class ToolDisciplineGuardrail(GuardrailInterface):
    """Warns on repeated file reads, repeated commands and tool call volume."""

    def __init__(
        self,
        tool_call_threshold: int = DEFAULT_TOOL_CALL_THRESHOLD,
        max_file_reads: int = DEFAULT_MAX_FILE_READS,
        max_command_retries: int = DEFAULT_MAX_COMMAND_RETRIES,
    ):
        if tool_call_threshold <= 0:
            raise ValueError("tool_call_threshold must be positive")
        if max_file_reads <= 0:
            raise ValueError("max_file_reads must be positive")
        if max_command_retries <= 0:
            raise ValueError("max_command_retries must be positive")

        self._tool_call_threshold = tool_call_threshold
        self._max_file_reads = max_file_reads
        self._max_command_retries = max_command_retries

    @property
    def order(self) -> int:
        return 400

    @property
    def short_circuit(self) -> bool:
        return False

    def evaluate(self, context: GuardrailContext) -> GuardrailResult:
        warnings: list[str] = []

        for path, count in context.file_read_counts:
            if count > self._max_file_reads:
                warnings.append(
                    f"File '{path}' read {count} times (max {self._max_file_reads}). "
                    "Read once and reference the content instead of re-reading."
                )

        for command, count in context.command_retry_counts:
            if count > self._max_command_retries:
                warnings.append(
                    f"Command retried {count} times (max {self._max_command_retries}): "
                    f"'{command}'. Analyze the error before retrying."
                )

        calls = context.tool_call_count
        if calls > self._tool_call_threshold * 2:
            warnings.append(
                f"Excessive tool calls ({calls}) in this iteration. "
                "Read files once, make targeted changes, and verify."
            )
        elif calls > self._tool_call_threshold:
            warnings.append(
                f"High tool call count ({calls}/{self._tool_call_threshold}). "
                "Ensure each tool call serves a purpose."
            )

        if not warnings:
            return GuardrailResult.passed()
        return GuardrailResult.warn(" ".join(warnings))
