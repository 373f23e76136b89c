"""
Context bundle rendering for the external worker.

Three shapes, chosen from the WorkerContext:
- normal: status preamble, metrics, recent test output, task instructions
- feedback: as normal, with operator feedback placed first
- debug: read-only analysis instructions; the workspace must not change
"""

from dataclasses import dataclass

from cycleguard.domain.models import WorkerContext


def tail_lines(text: str, count: int) -> str:
    """Last ``count`` lines of text."""
    if count <= 0:
        return ""
    return "\n".join(text.splitlines()[-count:])


# =============================================================================
# CONTEXT TEMPLATE
# =============================================================================


@dataclass(frozen=True)
class ContextTemplate:
    """Renders a WorkerContext into the text handed to the worker."""

    output_tail_lines: int = 100
    debug_output_tail_lines: int = 50
    feedback_header: str = "## IMPORTANT FEEDBACK - READ THIS FIRST:"

    def render(self, context: WorkerContext) -> str:
        if context.debug:
            return self._render_debug(context)

        parts = []
        if context.feedback:
            parts.append(f"{self.feedback_header}\n{context.feedback.strip()}")
            parts.append("## CURRENT STATUS:")
        parts.append(self._preamble(context))
        parts.append(self._metrics(context))
        parts.append(
            "Test output from last run:\n"
            + (
                tail_lines(context.test_output, self.output_tail_lines)
                or "No test output yet"
            )
        )
        if context.feedback:
            task = "Follow the feedback above and implement the required functionality to make tests pass."
        else:
            task = "Analyze the failures and implement the required functionality to make tests pass."
        parts.append(
            f"Your task: {task}\n"
            f"Focus on making tests pass - this is cycle {context.cycle}."
        )
        if context.instructions:
            parts.append(context.instructions.strip())
        return "\n\n".join(parts)

    def _preamble(self, context: WorkerContext) -> str:
        return (
            f"You are working on {context.agent} for {context.description}.\n"
            f"This is self-improvement cycle {context.cycle} of {context.max_cycles}."
        )

    def _metrics(self, context: WorkerContext) -> str:
        metrics = context.metrics
        return (
            "Current test results:\n"
            f"- Tests passing: {metrics.passed}\n"
            f"- Tests failing: {metrics.failed}\n"
            f"- Pass rate: {metrics.pass_rate}%\n"
            f"- Target: {context.target_pass_rate}%"
        )

    def _render_debug(self, context: WorkerContext) -> str:
        output = tail_lines(context.test_output, self.debug_output_tail_lines)
        return "\n\n".join(
            [
                "# DEBUG MODE - Safe Analysis Only",
                f"You are running in DEBUG mode for {context.agent} in {context.description}.\n"
                f"This is test cycle {context.cycle} of {context.max_cycles}.",
                "## Your DEBUG tasks:\n"
                "1. Analyze the current test state\n"
                + self._metrics(context).replace("Current test results:\n", ""),
                "2. Report findings without modifying code\n"
                "- Analyze test failures\n"
                "- Identify what needs to be implemented",
                "3. DO NOT modify any source code\n"
                "- Only read and analyze\n"
                "- Only write to the shared record directory",
                "4. Test output from last run:\n" + (output or "No test output yet"),
                "Remember: This is DEBUG mode. Do NOT modify any source code.",
            ]
        )
