"""Main CLI entry point for ticket-check."""

import os

from cyclopts import App
from rich.console import Console
from rich.markup import escape

from .checker import TicketChecker
from .config import load_settings
from .context import load_pull_request
from .github import GitHubClient, host_from_server_url
from .identifier import extract_id
from .reporter import Reporter
from .title import rewrite_title

app = App(
    help="Makes sure every pull request references a ticket.\n\n"
    "Use 'ticket-check COMMAND --help' for detailed command options.",
    version_flags=["--version", "-v"],
)
console = Console(soft_wrap=True, highlight=False, emoji=False)


@app.default
def run(*, event_path: str | None = None):
    """Check the triggering pull request: run [--event-path PATH]

    Looks for a ticket reference in the branch name, body and title (in that
    order), normalizes the title and optionally links the ticket. Inputs are
    read from INPUT_* environment variables as set by GitHub Actions.

    Parameters
    ----------
    event_path : str
        Event payload JSON (default: $GITHUB_EVENT_PATH)
    """
    reporter = Reporter(console)
    try:
        settings = load_settings()
        pull_request = load_pull_request(event_path)
        client = GitHubClient(
            settings.token,
            pull_request.owner,
            pull_request.repo,
            pull_request.number,
            host=host_from_server_url(os.getenv("GITHUB_SERVER_URL")),
        )
        outcome = TicketChecker(settings, pull_request, client, reporter).run()
    except Exception as e:
        reporter.fail(str(e))
        raise SystemExit(1)

    if not outcome.passed:
        reporter.fail(outcome.message)
        raise SystemExit(1)
    reporter.success(outcome.message)


@app.command
def extract(text: str):
    """Extract a ticket ID: extract TEXT

    Prints the ticket identifier found in a branch name, title or URL.

    Parameters
    ----------
    text : str
        Text to search
    """
    ticket_id = extract_id(text)
    if ticket_id is None:
        console.print("[yellow]No ticket identifier found[/yellow]")
        raise SystemExit(1)
    console.print(escape(ticket_id))


@app.command
def rewrite(
    title: str,
    *,
    ticket_id: str,
    title_format: str = "[%id%] %title%",
    prefix: str = "",
):
    """Preview a title: rewrite TITLE --ticket-id ID [--title-format FMT] [--prefix P]

    Parameters
    ----------
    title : str
        Current pull request title
    ticket_id : str
        Ticket identifier to put in the title
    title_format : str
        Template using %id%, %title% and %prefix%
    prefix : str
        Value substituted for %prefix%
    """
    console.print(escape(rewrite_title(title, ticket_id, title_format, prefix or None)))


if __name__ == "__main__":
    app()
