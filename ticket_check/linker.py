"""Ticket link comments on pull requests."""

import json

from .github import GitHubClient
from .patterns import TicketMatch
from .reporter import Reporter

TICKET_NUMBER_PLACEHOLDER = "%ticketNumber%"
LINK_COMMENT = "See the ticket for this pull request: {link}"


class TicketLinker:
    """Post a "see ticket" review comment for a match, at most once per PR.

    Linking is best effort: a missing template, a match without a
    ``ticketNumber`` group or a template without the placeholder all skip
    quietly. API errors propagate.
    """

    def __init__(self, client: GitHubClient, reporter: Reporter, ticket_link: str | None):
        self.client = client
        self.reporter = reporter
        self.ticket_link = ticket_link

    def build_link(self, ticket_number: str) -> str:
        return self.ticket_link.replace(TICKET_NUMBER_PLACEHOLDER, ticket_number, 1)

    def link(self, match: TicketMatch) -> None:
        self.reporter.debug("match array for linkTicket", json.dumps(match.as_list()))
        self.reporter.debug("match array groups for linkTicket", json.dumps(match.groups))

        if not self.ticket_link:
            return

        ticket_number = match.ticket_number
        if not ticket_number:
            self.reporter.debug(
                "ticketNumber not found", "ticketNumber group not found in match array."
            )
            return

        if TICKET_NUMBER_PLACEHOLDER not in self.ticket_link:
            self.reporter.debug(
                "invalid ticketLink",
                f'ticketLink must include "{TICKET_NUMBER_PLACEHOLDER}" variable to post ticket link.',
            )
            return

        link = self.build_link(ticket_number)
        reviews = self.client.list_reviews()
        self.reporter.debug("current reviews", json.dumps(reviews))

        if any(link in (review.get("body") or "") for review in reviews):
            self.reporter.debug(
                "already posted ticketLink",
                "found an existing review that contains the ticket link",
            )
            return

        self.client.create_review(LINK_COMMENT.format(link=link), event="COMMENT")
