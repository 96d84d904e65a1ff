"""Console output formatting utilities for matrixci."""

from __future__ import annotations

import sys
import threading
from typing import Iterable, Optional

from ..aggregate import RunVerdict
from ..model import JobInstance


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
                   and the captured output of failed commands
        """
        self.debug = debug
        # instances report from worker threads
        self._lock = threading.Lock()

    def _emit(self, *lines: str, err: bool = False) -> None:
        stream = sys.stderr if err else sys.stdout
        with self._lock:
            for line in lines:
                print(line, file=stream)

    def print_header(self, title: str) -> None:
        """Print a section header."""
        self._emit(f"\n{title}", "-" * len(title))

    def print_run_started(
        self,
        run_id: str,
        workflow: str,
        event: str,
        revision: Optional[str],
        job_count: int,
    ) -> None:
        """Print run start information."""
        self._emit(
            "\nRUN STARTED",
            f"Run: {run_id}",
            f"Workflow: {workflow}",
            f"Event: {event}",
            f"Revision: {revision or '<working tree>'}",
            f"Jobs: {job_count}",
            "",
        )

    def print_ignored(self, event: str) -> None:
        self._emit(f"Event '{event}' does not trigger this workflow; nothing to run.")

    def print_plan(self, instances: Iterable[JobInstance]) -> None:
        """Print the expanded matrix, grouped by family."""
        current = None
        for inst in instances:
            if inst.family != current:
                current = inst.family
                self._emit(f"{inst.family}:")
            self._emit(f"  {inst.name} ({len(inst.steps)} steps)")

    def print_instance_step(self, job: str, step: str) -> None:
        self._emit(f"[{job}] ▶ {step}")

    def print_instance_failure(
        self,
        job: str,
        step: Optional[str],
        reason: str,
        output: Optional[str],
    ) -> None:
        """
        Print failure message.

        In non-debug mode only the first line of the reason is shown.
        """
        where = f"[{job}] step '{step}'" if step else f"[{job}]"
        if self.debug:
            lines = [f"{where} FAILED", reason]
            if output:
                lines.append(output.rstrip())
            self._emit(*lines)
        else:
            first = reason.split("\n")[0] if reason else "Unknown error"
            self._emit(f"{where} FAILED: {first}")

    def print_instance_done(self, job: str, outcome: str) -> None:
        mark = "✓" if outcome == "success" else "✗"
        self._emit(f"{mark} {job}")

    def print_results(self, verdict: RunVerdict) -> None:
        """Print final results summary."""
        lines = ["", "=" * 40, "RESULTS", "=" * 40]
        for report in verdict.reports:
            lines.append(f"  {report.name}: {report.outcome.value.upper()}")
        lines.append("-" * 40)
        failed = len(verdict.failures)
        lines.append(f"RUN: {verdict.status.upper()} ({len(verdict.reports) - failed}/{len(verdict.reports)} succeeded)")
        for report in verdict.failures:
            first = (report.reason or "not completed").split("\n")[0]
            lines.append(f"  ✗ {report.name}: {first}")
        self._emit(*lines)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        lines = [f"\nERROR: {title}", message]
        for detail in details or []:
            lines.append(f"  {detail}")
        if suggestion:
            lines.append(f"\n{suggestion}")
        self._emit(*lines, err=True)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            self._emit(f"Error: {exc}", err=True)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        self._emit(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            self._emit(f"[DEBUG] {message}", err=True)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
