"""
Mock test runner and worker for testing without external tools.

Both return predefined responses in sequence.
"""

from collections.abc import Callable
from pathlib import Path

from cycleguard.domain.interfaces import CommandRunnerInterface, WorkerInterface
from cycleguard.domain.models import WorkerResult


class MockCommandRunner(CommandRunnerInterface):
    """Returns predefined test outputs for testing."""

    def __init__(self, outputs: list[str]):
        """
        Args:
            outputs: Combined test outputs to return in sequence
        """
        self._outputs = outputs
        self._call_count = 0
        self.calls: list[tuple[str, Path]] = []

    def run(self, command: str, cwd: Path) -> str:
        """Return the next predefined output."""
        if self._call_count >= len(self._outputs):
            raise RuntimeError("MockCommandRunner exhausted outputs")
        output = self._outputs[self._call_count]
        self._call_count += 1
        self.calls.append((command, cwd))
        return output

    @property
    def call_count(self) -> int:
        """Number of times run() has been called."""
        return self._call_count


class MockWorker(WorkerInterface):
    """Replays predefined transcripts; records every context it was given."""

    def __init__(
        self,
        transcripts: list[str] | None = None,
        exit_code: int = 0,
        side_effect: Callable[[], None] | None = None,
    ):
        """
        Args:
            transcripts: Transcript per invocation (empty if exhausted or None)
            exit_code: Exit code reported for every invocation
            side_effect: Called during each invocation (e.g. to touch records)
        """
        self._transcripts = transcripts or []
        self._exit_code = exit_code
        self._side_effect = side_effect
        self.contexts: list[str] = []

    def invoke(
        self,
        context: str,
        on_line: Callable[[str], None] | None = None,
    ) -> WorkerResult:
        index = len(self.contexts)
        self.contexts.append(context)
        if self._side_effect is not None:
            self._side_effect()
        transcript = (
            self._transcripts[index] if index < len(self._transcripts) else ""
        )
        if on_line is not None:
            for line in transcript.splitlines(keepends=True):
                on_line(line)
        return WorkerResult(exit_code=self._exit_code, transcript=transcript)

    @property
    def call_count(self) -> int:
        return len(self.contexts)
