"""Pull request snapshot read from the triggering GitHub event."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from .config import ConfigError

BOT_SUFFIX = "[bot]"


@dataclass(frozen=True)
class PullRequestContext:
    title: str
    branch: str
    body: str | None
    author_login: str
    author_type: str
    owner: str
    repo: str
    number: int
    payload: dict = field(default_factory=dict, repr=False)

    @property
    def sender(self) -> str:
        """Author login, without the "[bot]" marker for bot accounts."""
        if self.author_type == "Bot":
            return self.author_login.replace(BOT_SUFFIX, "")
        return self.author_login


def read_event(event_path: str | None = None) -> dict:
    """Load the event payload JSON written by the runner.

    Raises
    ------
    ConfigError
        When no event path is known or the file can't be parsed
    """
    path = event_path or os.getenv("GITHUB_EVENT_PATH")
    if not path:
        raise ConfigError("GITHUB_EVENT_PATH is not set; pass --event-path")
    try:
        return json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read event payload {path}: {e}") from e


def _repository(payload: dict) -> tuple[str, str]:
    repository = payload.get("repository") or {}
    owner = (repository.get("owner") or {}).get("login")
    name = repository.get("name")
    if owner and name:
        return owner, name

    # Fall back to the runner's owner/repo slug
    slug = os.getenv("GITHUB_REPOSITORY", "")
    if "/" not in slug:
        raise ConfigError("Could not determine the repository for this event")
    owner, name = slug.split("/", 1)
    return owner, name


def context_from_payload(payload: dict) -> PullRequestContext:
    """Build the snapshot from an event payload.

    A body key that is missing altogether maps to None; an explicit null
    (GitHub's empty description) maps to "".
    """
    pull_request = payload.get("pull_request")
    if not isinstance(pull_request, dict):
        raise ConfigError("Event payload does not contain a pull request")

    user = pull_request.get("user") or {}
    owner, repo = _repository(payload)
    body = (pull_request["body"] or "") if "body" in pull_request else None

    return PullRequestContext(
        title=pull_request.get("title") or "",
        branch=(pull_request.get("head") or {}).get("ref") or "",
        body=body,
        author_login=user.get("login") or "",
        author_type=user.get("type") or "",
        owner=owner,
        repo=repo,
        number=int(pull_request.get("number") or payload.get("number") or 0),
        payload=payload,
    )


def load_pull_request(event_path: str | None = None) -> PullRequestContext:
    return context_from_payload(read_event(event_path))
