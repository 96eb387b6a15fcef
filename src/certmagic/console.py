"""
Operator I/O.

Commands write machine-consumable output (the CSR) to a primary channel
and status messages to a diagnostic channel, and ask for confirmation
through an injected callable so they can run without a terminal.
"""

import sys
from typing import Callable, Optional, TextIO

# Returns the operator's answer, or None when no input is available
Confirmer = Callable[[str], Optional[str]]

AFFIRMATIVE_ANSWERS = ("y", "yes")


def is_affirmative(answer: Optional[str]) -> bool:
    """Only an explicit yes counts; anything else, including no input, declines."""
    if answer is None:
        return False
    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


class OutputSink:
    """Primary and diagnostic output streams."""

    def __init__(self, primary: Optional[TextIO] = None, diagnostic: Optional[TextIO] = None):
        self.primary_stream = primary or sys.stdout
        self.diagnostic_stream = diagnostic or sys.stderr

    def primary(self, text: str) -> None:
        print(text, file=self.primary_stream)

    def diagnostic(self, text: str) -> None:
        print(text, file=self.diagnostic_stream)


class RecordingOutput(OutputSink):
    """Output sink that keeps lines in memory."""

    def __init__(self):
        self.primary_lines: list[str] = []
        self.diagnostic_lines: list[str] = []

    def primary(self, text: str) -> None:
        self.primary_lines.append(text)

    def diagnostic(self, text: str) -> None:
        self.diagnostic_lines.append(text)


def terminal_confirm(prompt: str) -> Optional[str]:
    """Ask on stderr and read the answer from stdin."""
    sys.stderr.write(prompt)
    sys.stderr.flush()
    try:
        return input()
    except EOFError:
        return None
