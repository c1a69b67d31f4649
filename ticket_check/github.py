"""GitHub pull request API access for ticket-check.

Every call goes through the ``gh`` CLI (preinstalled on GitHub-hosted
runners), authenticated with the action's token via GH_TOKEN.
"""

import json
import os
import subprocess
from urllib.parse import urlparse


class GitHubAPIError(Exception):
    """Raised when a gh api call exits non-zero."""
    pass


def host_from_server_url(server_url: str | None) -> str | None:
    """Return the GH_HOST for a GitHub Enterprise server, None for github.com."""
    if not server_url:
        return None
    host = urlparse(server_url).netloc
    return host if host and host != "github.com" else None


class GitHubClient:
    """Thin wrapper over ``gh api`` scoped to one pull request.

    Parameters
    ----------
    token : str
        Token exported as GH_TOKEN for every call
    owner : str
        Repository owner
    repo : str
        Repository name
    number : int
        Pull request number
    host : str
        Optional GitHub Enterprise host
    """

    def __init__(
        self, token: str, owner: str, repo: str, number: int, host: str | None = None
    ):
        self.token = token
        self.owner = owner
        self.repo = repo
        self.number = number
        self.host = host

    @property
    def pull_path(self) -> str:
        return f"repos/{self.owner}/{self.repo}/pulls/{self.number}"

    def _env(self) -> dict[str, str]:
        env = {**os.environ, "GH_TOKEN": self.token}
        if self.host:
            env["GH_HOST"] = self.host
        return env

    def _api(self, path: str, method: str = "GET", fields: dict[str, str] | None = None):
        cmd = ["gh", "api", "--method", method, path]
        for key, value in (fields or {}).items():
            cmd.extend(["-f", f"{key}={value}"])

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                env=self._env(),
            )
        except subprocess.CalledProcessError as e:
            message = (e.stderr or "").strip() or str(e)
            raise GitHubAPIError(message) from e

        output = result.stdout.strip()
        return json.loads(output) if output else None

    def update_title(self, title: str) -> dict:
        return self._api(self.pull_path, method="PATCH", fields={"title": title})

    def list_reviews(self) -> list[dict]:
        """List reviews on the pull request (first page only)."""
        data = self._api(f"{self.pull_path}/reviews?per_page=100")
        return list(data) if isinstance(data, list) else []

    def create_review(self, body: str, event: str = "COMMENT") -> dict:
        return self._api(
            f"{self.pull_path}/reviews",
            method="POST",
            fields={"body": body, "event": event},
        )
