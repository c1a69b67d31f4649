"""Ticket reference check for a single pull request event.

Evidence is examined in a fixed priority order, each step either ending the
run with an ``Outcome`` or falling through to the next:

1. branch name      -> rewrite title, friendly comment, link
2. exempt sender    -> pass
3. body missing     -> fail
4. body             -> rewrite title, friendly comment, link
5. title            -> link
6. no body URL regex -> fail
7. body URL         -> rewrite title, friendly comment
8. nothing matched  -> fail

Only one title update and one friendly comment can happen per run.
"""

import json
from dataclasses import dataclass

from .config import Settings
from .context import PullRequestContext
from .github import GitHubClient
from .identifier import extract_id
from .linker import TicketLinker
from .patterns import TicketMatch, compile_pattern, scan
from .reporter import Reporter
from .title import rewrite_title

NO_TICKET_MESSAGE = "No ticket was referenced in this pull request"
NO_BODY_MESSAGE = "Could not retrieve the Pull Request body"

UPDATED_TITLE_COMMENT = (
    "Hey! I noticed that your PR contained a reference to the ticket {where} "
    "but not in the title. I went ahead and updated that for you. "
    "Hope you don't mind! ☺️"
)
WHERE_BY_SOURCE = {
    "branch": "in the branch name",
    "body": "in the body",
    "body url": "URL in the body",
}


@dataclass(frozen=True)
class Outcome:
    passed: bool
    message: str
    source: str | None = None


class TicketChecker:
    """Decide what to do with one pull request.

    All configured patterns are compiled up front so a malformed pattern
    fails the run before any API call is made.
    """

    def __init__(
        self,
        settings: Settings,
        pull_request: PullRequestContext,
        client: GitHubClient,
        reporter: Reporter,
    ):
        self.settings = settings
        self.pr = pull_request
        self.client = client
        self.reporter = reporter
        self.linker = TicketLinker(client, reporter, settings.ticket_link)

        self.title_pattern = compile_pattern(settings.title_pattern)
        self.branch_pattern = compile_pattern(settings.branch_pattern)
        self.body_pattern = compile_pattern(settings.body_pattern)
        self.body_url_pattern = (
            compile_pattern(settings.body_url_pattern)
            if settings.body_url_pattern
            else None
        )

        self.title_match: TicketMatch | None = None
        self.branch_match: TicketMatch | None = None
        self.body_match: TicketMatch | None = None
        self.body_url_match: TicketMatch | None = None

    def run(self) -> Outcome:
        self.reporter.debug("context", json.dumps(self.pr.payload))
        self.title_match = scan(self.title_pattern, self.pr.title)

        steps = (
            self._check_branch,
            self._check_exempt,
            self._check_body_present,
            self._check_body,
            self._check_title,
            self._check_body_url_configured,
        )
        for step in steps:
            outcome = step()
            if outcome is not None:
                return outcome
        return self._check_body_url()

    def update_title(self, ticket_id: str | None, source: str) -> None:
        """Persist the rewritten title when it differs from the current one."""
        updated = rewrite_title(
            self.pr.title, ticket_id, self.settings.title_format, self.settings.ticket_prefix
        )
        if updated != self.pr.title:
            self.client.update_title(updated)
            self.reporter.debug("success", f"Title updated for {source}")
        else:
            self.reporter.debug("info", f"No update needed for the title from {source}")

    def _comment_updated(self, source: str) -> None:
        if self.settings.quiet:
            return
        body = UPDATED_TITLE_COMMENT.format(where=WHERE_BY_SOURCE[source])
        self.client.create_review(body, event="COMMENT")

    def _check_branch(self) -> Outcome | None:
        self.branch_match = scan(self.branch_pattern, self.pr.branch)
        if self.branch_match is None:
            return None

        self.reporter.debug(
            "success", "Branch name contains a reference to a ticket, updating title"
        )
        self.update_title(extract_id(self.pr.branch), "branch")
        self._comment_updated("branch")
        self.linker.link(self.branch_match)
        return Outcome(True, "Branch name references a ticket", "branch")

    def _check_exempt(self) -> Outcome | None:
        sender = self.pr.sender
        self.reporter.debug("sender", sender)
        self.reporter.debug("sender type", self.pr.author_type)
        self.reporter.debug("quiet mode", str(self.settings.quiet).lower())
        self.reporter.debug("exempt users", ",".join(self.settings.exempt_users))
        self.reporter.debug("ticket link", self.settings.ticket_link or "")

        if sender and sender in self.settings.exempt_users:
            self.reporter.debug("success", "User is listed as exempt")
            return Outcome(True, f"{sender} is exempt from ticket references", "exempt")
        return None

    def _check_body_present(self) -> Outcome | None:
        if self.pr.body is None:
            self.reporter.debug("failure", "Body is undefined")
            return Outcome(False, NO_BODY_MESSAGE)
        self.reporter.debug("body contents", self.pr.body)
        return None

    def _check_body(self) -> Outcome | None:
        self.body_match = scan(self.body_pattern, self.pr.body)
        if self.body_match is None:
            return None

        self.reporter.debug("success", "Body contains a reference to a ticket, updating title")
        self.update_title(extract_id(self.body_match.text), "body")
        self._comment_updated("body")
        self.linker.link(self.body_match)
        return Outcome(True, "Body references a ticket", "body")

    def _check_title(self) -> Outcome | None:
        self.reporter.debug("title", self.pr.title)
        if self.title_match is None:
            return None

        self.reporter.debug("success", "Title includes a ticket ID")
        self.linker.link(self.title_match)
        return Outcome(True, "Title references a ticket", "title")

    def _check_body_url_configured(self) -> Outcome | None:
        if self.body_url_pattern is not None:
            return None
        self.reporter.debug(
            "failure",
            "Title, branch, and body do not contain a reference to a ticket, "
            "and no body URL regex was set",
        )
        return Outcome(False, NO_TICKET_MESSAGE)

    def _check_body_url(self) -> Outcome:
        self.body_url_match = scan(self.body_url_pattern, self.pr.body)
        if self.body_url_match is not None:
            self.reporter.debug("success", "Body contains a ticket URL, updating title")
            self.update_title(extract_id(self.body_url_match.text), "body url")
            self._comment_updated("body url")

        matches = (self.title_match, self.branch_match, self.body_match, self.body_url_match)
        if all(match is None for match in matches):
            self.reporter.debug(
                "failure", "Title, branch, and body do not contain a reference to a ticket"
            )
            return Outcome(False, NO_TICKET_MESSAGE)
        return Outcome(True, "Body contains a ticket URL", "body url")
