"""
MetricsExtractor: run the test command and scrape its summary.

Never raises for unrecognized output or a command that cannot be launched;
both yield zero metrics so a parser mismatch cannot block convergence.
"""

import logging
from pathlib import Path

from cycleguard.domain.interfaces import CommandRunnerInterface, MetricsParserInterface
from cycleguard.domain.metrics import RegexSummaryParser
from cycleguard.domain.models import SuiteMetrics, SuiteRun

logger = logging.getLogger(__name__)


class MetricsExtractor:
    """Runs a test command and turns its combined output into SuiteMetrics."""

    def __init__(
        self,
        runner: CommandRunnerInterface,
        parser: MetricsParserInterface | None = None,
    ):
        """
        Args:
            runner: Executes the external test command
            parser: Summary parser (default pattern family if None)
        """
        self._runner = runner
        self._parser = parser or RegexSummaryParser()

    def run(self, command: str, cwd: Path) -> SuiteRun:
        try:
            output = self._runner.run(command, cwd)
        except OSError as e:
            logger.error("Could not run test command %r in %s: %s", command, cwd, e)
            output = f"Failed to run test command: {e}\n"

        metrics = self._parser.parse(output)
        if metrics is None:
            logger.warning("No recognized test summary in output of %r", command)
            metrics = SuiteMetrics()
        logger.info("Test results: %s", metrics.summary())
        return SuiteRun(metrics=metrics, output=output)
