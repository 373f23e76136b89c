"""Tests for worker context rendering."""

from cycleguard.domain.models import SuiteMetrics, WorkerContext
from cycleguard.domain.prompts import ContextTemplate, tail_lines


def _context(**overrides) -> WorkerContext:
    values = dict(
        agent="schema-impl",
        description="Mobile commerce app",
        cycle=2,
        max_cycles=5,
        target_pass_rate=85,
        metrics=SuiteMetrics(passed=6, failed=4),
        test_output="\n".join(f"line {i}" for i in range(200)),
    )
    values.update(overrides)
    return WorkerContext(**values)


class TestTailLines:
    def test_keeps_last_lines(self) -> None:
        assert tail_lines("a\nb\nc", 2) == "b\nc"

    def test_zero_count(self) -> None:
        assert tail_lines("a\nb", 0) == ""


class TestContextTemplate:
    def test_normal_mode_contains_status_and_metrics(self) -> None:
        text = ContextTemplate().render(_context())

        assert "You are working on schema-impl for Mobile commerce app." in text
        assert "cycle 2 of 5" in text
        assert "- Tests passing: 6" in text
        assert "- Pass rate: 60%" in text
        assert "- Target: 85%" in text

    def test_normal_mode_keeps_last_100_output_lines(self) -> None:
        text = ContextTemplate().render(_context())

        assert "line 199" in text
        assert "line 100" in text
        assert "line 99\n" not in text

    def test_feedback_comes_first(self) -> None:
        text = ContextTemplate().render(_context(feedback="Use zod for validation"))

        assert text.startswith("## IMPORTANT FEEDBACK - READ THIS FIRST:")
        assert text.index("Use zod") < text.index("You are working on")
        assert "Follow the feedback above" in text

    def test_instructions_appended(self) -> None:
        text = ContextTemplate().render(_context(instructions="Write schemas in src/schemas."))

        assert text.rstrip().endswith("Write schemas in src/schemas.")

    def test_debug_mode_is_read_only(self) -> None:
        text = ContextTemplate().render(_context(debug=True))

        assert text.startswith("# DEBUG MODE")
        assert "DO NOT modify any source code" in text
        assert "line 150" in text
        assert "line 149\n" not in text

    def test_no_output_yet(self) -> None:
        text = ContextTemplate().render(_context(test_output=""))

        assert "No test output yet" in text
