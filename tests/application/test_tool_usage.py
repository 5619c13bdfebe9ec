"""Tests for ToolUsageTally - file reads and repeated commands per step."""

from modloop.application import ToolUsageTally
from modloop.domain.models import ToolCall


def read(path: str, tool: str = "read_file") -> ToolCall:
    return ToolCall(tool, f'{{"path": "{path}"}}')


def run(command: str) -> ToolCall:
    return ToolCall("run_command", f'{{"command": "{command}"}}')


class TestFileReads:
    def test_counts_reads_per_path(self) -> None:
        tally = ToolUsageTally()

        tally.record([read("b.py"), read("a.py"), read("b.py")])

        assert tally.file_read_counts == (("a.py", 1), ("b.py", 2))

    def test_accumulates_across_records(self) -> None:
        tally = ToolUsageTally()

        tally.record([read("a.py")])
        tally.record([read("a.py"), ToolCall("read_spec", '{"file_path": "a.py"}')])

        assert tally.file_read_counts == (("a.py", 3),)

    def test_only_read_tools_count(self) -> None:
        """A path argument on a non-read tool is not a read."""
        tally = ToolUsageTally()

        tally.record([ToolCall("write_file", '{"path": "a.py"}'), ToolCall("read_plan")])

        assert tally.file_read_counts == ()


class TestCommandRetries:
    def test_first_run_is_not_a_retry(self) -> None:
        tally = ToolUsageTally()

        tally.record([run("pytest"), run("ruff check")])

        assert tally.command_retry_counts == ()

    def test_retries_are_runs_beyond_the_first(self) -> None:
        tally = ToolUsageTally()

        tally.record([run("pytest"), run("pytest"), run("pytest"), run("ruff check")])

        assert tally.command_retry_counts == (("pytest", 2),)

    def test_command_takes_precedence_over_path(self) -> None:
        tally = ToolUsageTally()

        tally.record([ToolCall("read_output", '{"command": "cat log", "path": "log"}')] * 2)

        assert tally.command_retry_counts == (("cat log", 1),)
        assert tally.file_read_counts == ()


def test_reset_clears_both_tallies() -> None:
    tally = ToolUsageTally()
    tally.record([read("a.py"), run("pytest"), run("pytest")])

    tally.reset()

    assert tally.file_read_counts == ()
    assert tally.command_retry_counts == ()
