"""Tests for MetricsExtractor."""

from pathlib import Path

from cycleguard.application.extractor import MetricsExtractor
from cycleguard.domain.metrics import RegexSummaryParser
from cycleguard.domain.models import SuiteMetrics
from cycleguard.infrastructure.runners.mock import MockCommandRunner


class FailingRunner:
    """Runner whose command cannot be launched."""

    def run(self, command: str, cwd: Path) -> str:
        raise FileNotFoundError(f"No such directory: {cwd}")


class TestMetricsExtractor:
    def test_parses_summary(self, jest) -> None:  # noqa: ANN001
        runner = MockCommandRunner([jest(passed=8, failed=2)])

        run = MetricsExtractor(runner).run("npm test", Path("/workspace"))

        assert run.metrics == SuiteMetrics(passed=8, failed=2)
        assert "Tests:" in run.output
        assert runner.calls == [("npm test", Path("/workspace"))]

    def test_unrecognized_output_is_zero(self) -> None:
        runner = MockCommandRunner(["Segmentation fault\n"])

        run = MetricsExtractor(runner).run("npm test", Path("."))

        assert run.metrics == SuiteMetrics()
        assert run.metrics.pass_rate == 0
        assert run.output == "Segmentation fault\n"

    def test_launch_failure_is_zero(self) -> None:
        run = MetricsExtractor(FailingRunner()).run("npm test", Path("/missing"))

        assert run.metrics == SuiteMetrics()
        assert "Failed to run test command" in run.output

    def test_custom_parser(self) -> None:
        runner = MockCommandRunner(["Tests: 3 passing, 1 failing, 4 total\n"])
        parser = RegexSummaryParser.preset("strict")

        run = MetricsExtractor(runner, parser).run("npm test", Path("."))

        assert run.metrics == SuiteMetrics()
