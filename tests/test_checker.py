"""Tests for the ticket reference decision sequence.

Following FIRST principles:
- Fast: No gh calls (client mocked)
- Isolated: Each test builds its own settings and pull request
- Self-Checking: Assertions on outcome and on every API write
"""

from dataclasses import replace
from unittest.mock import ANY, Mock, call

import pytest

from ticket_check.checker import NO_BODY_MESSAGE, NO_TICKET_MESSAGE, TicketChecker
from ticket_check.config import PatternConfig, Settings
from ticket_check.context import PullRequestContext
from ticket_check.github import GitHubAPIError, GitHubClient
from ticket_check.patterns import PatternError
from ticket_check.reporter import Reporter

LINK_TEMPLATE = "https://tracker.example.com/browse/%ticketNumber%"


def make_settings(**overrides) -> Settings:
    settings = Settings(
        title_pattern=PatternConfig(r"^\[?(?<ticketNumber>[A-Z]{3,4}-\d+)", "i"),
        branch_pattern=PatternConfig(r"(?<ticketNumber>[A-Z]{3,4}-\d+)", "i"),
        body_pattern=PatternConfig(r"Ticket: (?<ticketNumber>[A-Z]{3,4}-\d+)", "i"),
        body_url_pattern=None,
        title_format="[%id%] %title%",
        ticket_prefix=None,
        ticket_link=None,
        exempt_users=(),
        quiet=False,
        token="ghs_token",
    )
    return replace(settings, **overrides)


def make_pr(**overrides) -> PullRequestContext:
    pr = PullRequestContext(
        title="Add login page",
        branch="main",
        body="Nothing to see here",
        author_login="octocat",
        author_type="User",
        owner="acme",
        repo="widgets",
        number=17,
        payload={"action": "opened"},
    )
    return replace(pr, **overrides)


class TestTicketChecker:
    """Test evidence priority: branch, exemption, body, title, body URL."""

    @pytest.fixture
    def client(self):
        client = Mock(spec=GitHubClient)
        client.list_reviews.return_value = []
        return client

    @pytest.fixture
    def reporter(self):
        return Mock(spec=Reporter)

    def check(self, client, reporter, settings=None, **pr_overrides):
        checker = TicketChecker(settings or make_settings(), make_pr(**pr_overrides), client, reporter)
        return checker.run()

    # --- branch -------------------------------------------------------------

    def test_branch_reference_updates_title(self, client, reporter):
        """BEHAVIOR: A ticket in the branch wins and rewrites the title."""
        outcome = self.check(client, reporter, branch="feature/JIRA-42-login")

        assert outcome.passed is True
        assert outcome.source == "branch"
        assert client.method_calls == [
            call.update_title("[JIRA-42] Add login page"),
            call.create_review(ANY, event="COMMENT"),
        ]
        comment = client.create_review.call_args[0][0]
        assert "reference to the ticket in the branch name but not in the title" in comment

    def test_branch_reference_quiet(self, client, reporter):
        """BEHAVIOR: Quiet mode still updates the title but skips the comment."""
        outcome = self.check(
            client, reporter, settings=make_settings(quiet=True), branch="feature/JIRA-42-login"
        )

        assert outcome.passed is True
        assert client.method_calls == [call.update_title("[JIRA-42] Add login page")]

    def test_branch_reference_normalizes_existing_title_id(self, client, reporter):
        self.check(
            client, reporter, settings=make_settings(quiet=True),
            branch="jira-42-login", title="jira-42: add login",
        )

        client.update_title.assert_called_once_with("JIRA-42: add login")

    def test_branch_reference_title_already_canonical(self, client, reporter):
        """BEHAVIOR: No title update when nothing changes."""
        self.check(
            client, reporter, settings=make_settings(quiet=True),
            branch="jira-42-login", title="[JIRA-42] Add login",
        )

        client.update_title.assert_not_called()
        reporter.debug.assert_any_call("info", "No update needed for the title from branch")

    def test_branch_reference_with_prefix(self, client, reporter):
        settings = make_settings(
            quiet=True,
            branch_pattern=PatternConfig(r"^\d+-", "g"),
            title_format="%prefix%%id% %title%",
            ticket_prefix="GH-",
        )

        self.check(client, reporter, settings=settings, branch="123-fix-login")

        client.update_title.assert_called_once_with("GH-123 Add login page")

    def test_branch_reference_links_ticket(self, client, reporter):
        """BEHAVIOR: Friendly comment first, then the ticket link."""
        self.check(
            client, reporter, settings=make_settings(ticket_link=LINK_TEMPLATE),
            branch="feature/JIRA-42-login",
        )

        assert client.method_calls == [
            call.update_title("[JIRA-42] Add login page"),
            call.create_review(ANY, event="COMMENT"),
            call.list_reviews(),
            call.create_review(
                "See the ticket for this pull request: "
                "https://tracker.example.com/browse/JIRA-42",
                event="COMMENT",
            ),
        ]

    def test_branch_wins_over_exemption(self, client, reporter):
        settings = make_settings(quiet=True, exempt_users=("octocat",))

        outcome = self.check(client, reporter, settings=settings, branch="JIRA-1")

        assert outcome.source == "branch"
        client.update_title.assert_called_once()

    # --- exemption ----------------------------------------------------------

    def test_exempt_sender_short_circuits(self, client, reporter):
        """BEHAVIOR: Exempt users pass without body, title or URL checks."""
        settings = make_settings(exempt_users=("dependabot", "renovate"))

        outcome = self.check(
            client, reporter, settings=settings,
            author_login="dependabot[bot]", author_type="Bot", body=None,
        )

        assert outcome.passed is True
        assert outcome.source == "exempt"
        assert client.method_calls == []
        labels = [c[0][0] for c in reporter.debug.call_args_list]
        assert "body contents" not in labels
        assert "title" not in labels

    def test_exemption_is_exact_match(self, client, reporter):
        settings = make_settings(exempt_users=("Octocat",))

        outcome = self.check(client, reporter, settings=settings)

        assert outcome.passed is False

    # --- body ---------------------------------------------------------------

    def test_missing_body_fails(self, client, reporter):
        """BEHAVIOR: Undefined body fails with its own message, not "no ticket"."""
        outcome = self.check(client, reporter, body=None, title="ABC-1 fix")

        assert outcome.passed is False
        assert outcome.message == NO_BODY_MESSAGE
        assert client.method_calls == []

    def test_empty_body_is_checked(self, client, reporter):
        outcome = self.check(client, reporter, body="", title="ABC-1 fix")

        assert outcome.passed is True
        assert outcome.source == "title"

    def test_body_reference_updates_title(self, client, reporter):
        outcome = self.check(client, reporter, body="Closes stuff\nTicket: abc-12\n", title="Fix")

        assert outcome.passed is True
        assert outcome.source == "body"
        assert client.method_calls == [
            call.update_title("[ABC-12] Fix"),
            call.create_review(ANY, event="COMMENT"),
        ]
        assert "in the body but not in the title" in client.create_review.call_args[0][0]

    def test_body_reference_links_ticket(self, client, reporter):
        settings = make_settings(quiet=True, ticket_link=LINK_TEMPLATE)

        self.check(client, reporter, settings=settings, body="Ticket: ABC-12", title="Fix")

        client.create_review.assert_called_once_with(
            "See the ticket for this pull request: https://tracker.example.com/browse/ABC-12",
            event="COMMENT",
        )

    def test_body_wins_over_title(self, client, reporter):
        settings = make_settings(quiet=True)

        outcome = self.check(
            client, reporter, settings=settings, body="Ticket: ABC-12", title="DEF-3 Fix"
        )

        assert outcome.source == "body"
        client.update_title.assert_called_once_with("[ABC-12] DEF-3 Fix")

    # --- title --------------------------------------------------------------

    def test_title_reference_passes_without_rewrite(self, client, reporter):
        """BEHAVIOR: A title that already references a ticket is left alone."""
        outcome = self.check(client, reporter, title="[ABC-1] Add login page")

        assert outcome.passed is True
        assert outcome.source == "title"
        assert client.method_calls == []

    def test_title_reference_links_ticket(self, client, reporter):
        settings = make_settings(ticket_link=LINK_TEMPLATE)
        client.list_reviews.return_value = [
            {"body": "See the ticket for this pull request: "
                     "https://tracker.example.com/browse/ABC-1"}
        ]

        self.check(client, reporter, settings=settings, title="ABC-1 Add login page")

        client.list_reviews.assert_called_once_with()
        client.create_review.assert_not_called()

    # --- body URL and failure ----------------------------------------------

    def test_no_reference_without_body_url_pattern(self, client, reporter):
        outcome = self.check(client, reporter)

        assert outcome.passed is False
        assert outcome.message == NO_TICKET_MESSAGE
        assert client.method_calls == []

    def test_body_url_reference_updates_title(self, client, reporter):
        """BEHAVIOR: Body URL is the last resort; it rewrites but never links."""
        settings = make_settings(
            ticket_link=LINK_TEMPLATE,
            body_url_pattern=PatternConfig(
                r"https://tracker\.example\.com/browse/(?<ticketNumber>[A-Z]+-\d+)", "g"
            ),
        )

        outcome = self.check(
            client, reporter, settings=settings,
            body="Details: https://tracker.example.com/browse/PROJ-9", title="Fix",
        )

        assert outcome.passed is True
        assert outcome.source == "body url"
        assert client.method_calls == [
            call.update_title("[PROJ-9] Fix"),
            call.create_review(ANY, event="COMMENT"),
        ]
        assert "URL in the body but not in the title" in client.create_review.call_args[0][0]

    def test_body_url_without_match_fails(self, client, reporter):
        settings = make_settings(body_url_pattern=PatternConfig(r"https://t/\d+", "g"))

        outcome = self.check(client, reporter, settings=settings)

        assert outcome.passed is False
        assert outcome.message == NO_TICKET_MESSAGE
        assert client.method_calls == []

    # --- errors -------------------------------------------------------------

    def test_malformed_pattern_fails_before_api_calls(self, client, reporter):
        """BEHAVIOR: Invalid regex is a fatal configuration error."""
        settings = make_settings(body_pattern=PatternConfig("(unclosed", "g"))

        with pytest.raises(PatternError):
            self.check(client, reporter, settings=settings, branch="JIRA-1")

        assert client.method_calls == []

    def test_malformed_flags_fail(self, client, reporter):
        settings = make_settings(title_pattern=PatternConfig(r"\d+", "gq"))

        with pytest.raises(PatternError):
            self.check(client, reporter, settings=settings)

    def test_api_errors_propagate(self, client, reporter):
        client.update_title.side_effect = GitHubAPIError("HTTP 403")

        with pytest.raises(GitHubAPIError):
            self.check(client, reporter, branch="JIRA-1")

    def test_logs_context_first(self, client, reporter):
        self.check(client, reporter)

        assert reporter.debug.call_args_list[0] == call("context", '{"action": "opened"}')
