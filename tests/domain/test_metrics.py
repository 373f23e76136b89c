"""Tests for best-effort test summary parsing."""

import pytest

from cycleguard.domain.metrics import RegexSummaryParser
from cycleguard.domain.models import SuiteMetrics


class TestDefaultParser:
    """The default pattern family: Jest, mocha, pytest."""

    def setup_method(self) -> None:
        self.parser = RegexSummaryParser()

    def test_jest_summary(self) -> None:
        output = "Tests:       2 failed, 10 passed, 12 total\n"

        assert self.parser.parse(output) == SuiteMetrics(passed=10, failed=2)

    def test_jest_all_passing(self) -> None:
        output = "Test Suites: 3 passed, 3 total\nTests:       8 passed, 8 total\n"

        assert self.parser.parse(output) == SuiteMetrics(passed=8, failed=0)

    def test_jest_passing_wording(self) -> None:
        output = "Tests: 4 passing, 1 failing\n"

        assert self.parser.parse(output) == SuiteMetrics(passed=4, failed=1)

    def test_mocha_summary(self) -> None:
        output = "  cart\n    ok\n\n  7 passing (45ms)\n  3 failing\n"

        assert self.parser.parse(output) == SuiteMetrics(passed=7, failed=3)

    def test_pytest_summary(self) -> None:
        output = "==== 1 failed, 9 passed in 0.12s ====\n"

        assert self.parser.parse(output) == SuiteMetrics(passed=9, failed=1)

    def test_unrecognized_output_is_none(self) -> None:
        assert self.parser.parse("npm ERR! missing script: test") is None

    def test_empty_output_is_none(self) -> None:
        assert self.parser.parse("") is None

    def test_first_summary_wins(self) -> None:
        output = "Tests: 1 failed, 2 passed\nTests: 5 failed, 50 passed\n"

        assert self.parser.parse(output) == SuiteMetrics(passed=2, failed=1)


class TestStrictParser:
    def test_ignores_passing_wording(self) -> None:
        parser = RegexSummaryParser.preset("strict")

        assert parser.parse("Tests: 4 passing, 1 failing\n") is None

    def test_parses_jest(self) -> None:
        parser = RegexSummaryParser.preset("strict")

        assert parser.parse("Tests: 1 failed, 3 passed, 4 total") == SuiteMetrics(
            passed=3, failed=1
        )

    def test_unknown_preset(self) -> None:
        with pytest.raises(KeyError):
            RegexSummaryParser.preset("junit")
