"""Run output: debug lines, success notes and the failure signal.

Debug and error lines are GitHub workflow commands so the runner can fold
and annotate them; everything else is plain rich console output.
"""

from rich.console import Console
from rich.markup import escape


def escape_command_data(value: str) -> str:
    """Escape text for the data part of a workflow command."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class Reporter:
    def __init__(self, console: Console | None = None):
        self.console = console or Console(soft_wrap=True, highlight=False, emoji=False)

    def _command(self, command: str, message: str) -> None:
        self.console.print(
            f"::{command}::{escape_command_data(message)}", markup=False, emoji=False
        )

    def debug(self, label: str, message: str | None) -> None:
        """Emit a labeled debug block: blank, [LABEL], message, blank."""
        for line in ("", f"[{label.upper()}]", message or "", ""):
            self._command("debug", line)

    def success(self, message: str) -> None:
        self.console.print(f"[green]✅ {escape(message)}[/green]")

    def fail(self, message: str) -> None:
        self._command("error", message)
