"""
Subprocess adapters for the test command and the external worker.

Both run in the agent workspace and merge stderr into stdout, so the
metrics parser and the transcript scraper see what a terminal would show.
"""

import contextlib
import logging
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

from cycleguard.domain.exceptions import WorkerLaunchError
from cycleguard.domain.interfaces import CommandRunnerInterface, WorkerInterface
from cycleguard.domain.models import WorkerResult

logger = logging.getLogger(__name__)


class SubprocessCommandRunner(CommandRunnerInterface):
    """Runs a shell command line; a non-zero exit is just output."""

    def __init__(self, timeout: float | None = None):
        """
        Args:
            timeout: Seconds before the command is killed (None = no limit)
        """
        self.timeout = timeout

    def run(self, command: str, cwd: Path) -> str:
        logger.debug("Running test command %r in %s", command, cwd)
        try:
            result = subprocess.run(
                command,
                shell=True,
                cwd=str(cwd),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            partial = e.output or ""
            if isinstance(partial, bytes):
                partial = partial.decode(errors="replace")
            logger.warning("Test command timed out after %ss", self.timeout)
            return partial + f"\nTest command timed out after {self.timeout}s\n"
        logger.debug("Test command exited with %d", result.returncode)
        return result.stdout


class SubprocessWorker(WorkerInterface):
    """
    Launches the worker CLI, writes the context to its stdin and streams
    its combined output line by line.
    """

    def __init__(self, argv: Sequence[str], cwd: Path):
        """
        Args:
            argv: Worker command line (e.g. ``["claude", "--dangerously-skip-permissions"]``)
            cwd: Workspace the worker operates on
        """
        if not argv:
            raise ValueError("Worker command cannot be empty")
        self._argv = list(argv)
        self._cwd = Path(cwd)

    def invoke(
        self,
        context: str,
        on_line: Callable[[str], None] | None = None,
    ) -> WorkerResult:
        """
        Raises:
            WorkerLaunchError: If the worker process cannot be started
        """
        logger.info("Invoking worker: %s", " ".join(self._argv))
        try:
            process = subprocess.Popen(
                self._argv,
                cwd=str(self._cwd),
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise WorkerLaunchError(self._argv[0], e) from e

        lines: list[str] = []
        with process:
            try:
                self._send_context(process, context)
                for line in process.stdout:
                    lines.append(line)
                    if on_line is not None:
                        on_line(line)
            except BaseException:
                # A worker must not outlive a failed invocation
                logger.warning("Killing worker (pid %d) after an error", process.pid)
                process.kill()
                raise
            exit_code = process.wait()
        return WorkerResult(exit_code=exit_code, transcript="".join(lines))

    @staticmethod
    def _send_context(process: subprocess.Popen, context: str) -> None:
        try:
            process.stdin.write(context)
            process.stdin.close()
        except BrokenPipeError:
            logger.warning("Worker closed stdin before reading the full context")
            # Closing again only marks the pipe closed; the flush error is known
            with contextlib.suppress(BrokenPipeError):
                process.stdin.close()
