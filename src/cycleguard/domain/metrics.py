"""
Best-effort extraction of pass/fail counts from test-runner output.

No structured result protocol is assumed: the parser looks for a small
family of textual summary lines. A miss yields None, and callers default
to zero so that parser mismatch never blocks convergence.
"""

import re
from dataclasses import dataclass

from cycleguard.domain.interfaces import MetricsParserInterface
from cycleguard.domain.models import SuiteMetrics


@dataclass(frozen=True)
class SummaryPattern:
    """One recognized summary format: a regex per counted field."""

    name: str
    passed: re.Pattern[str]
    failed: re.Pattern[str]

    def extract(self, output: str) -> SuiteMetrics | None:
        """First pass/fail counts in output, or None if neither field matches."""
        passed = self.passed.search(output)
        failed = self.failed.search(output)
        if passed is None and failed is None:
            return None
        return SuiteMetrics(
            passed=int(passed.group(1)) if passed else 0,
            failed=int(failed.group(1)) if failed else 0,
        )


# Jest: "Tests:       2 failed, 10 passed, 12 total" (some reporters say passing/failing)
JEST = SummaryPattern(
    name="jest",
    passed=re.compile(r"Tests:.*?\b(\d+) pass(?:ed|ing)\b"),
    failed=re.compile(r"Tests:.*?\b(\d+) fail(?:ed|ing)\b"),
)

JEST_STRICT = SummaryPattern(
    name="jest-strict",
    passed=re.compile(r"Tests:.*?\b(\d+) passed\b"),
    failed=re.compile(r"Tests:.*?\b(\d+) failed\b"),
)

# Mocha: "  10 passing (45ms)" / "  2 failing"
MOCHA = SummaryPattern(
    name="mocha",
    passed=re.compile(r"^\s*(\d+) passing\b", re.MULTILINE),
    failed=re.compile(r"^\s*(\d+) failing\b", re.MULTILINE),
)

# pytest: "===== 2 failed, 10 passed in 0.12s =====" or "10 passed in 0.12s"
PYTEST = SummaryPattern(
    name="pytest",
    passed=re.compile(r"\b(\d+) passed\b"),
    failed=re.compile(r"\b(\d+) failed\b"),
)

DEFAULT_PATTERNS: tuple[SummaryPattern, ...] = (JEST, MOCHA, PYTEST)
STRICT_PATTERNS: tuple[SummaryPattern, ...] = (JEST_STRICT,)

PARSER_PRESETS: dict[str, tuple[SummaryPattern, ...]] = {
    "default": DEFAULT_PATTERNS,
    "strict": STRICT_PATTERNS,
}


class RegexSummaryParser(MetricsParserInterface):
    """
    Tries each summary pattern in order; the first one that matches wins.

    Within the winning pattern a missing field counts as zero.
    """

    def __init__(self, patterns: tuple[SummaryPattern, ...] = DEFAULT_PATTERNS):
        """
        Args:
            patterns: Summary formats, most specific first
        """
        self.patterns = patterns

    @classmethod
    def preset(cls, name: str) -> "RegexSummaryParser":
        """
        Build a parser from a named pattern set (``default`` or ``strict``).

        Raises:
            KeyError: If the preset is unknown
        """
        return cls(PARSER_PRESETS[name])

    def parse(self, output: str) -> SuiteMetrics | None:
        for pattern in self.patterns:
            metrics = pattern.extract(output)
            if metrics is not None:
                return metrics
        return None
