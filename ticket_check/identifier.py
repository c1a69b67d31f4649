"""Ticket identifier detection.

Simple function with CC=1 for pulling a ticket reference out of free text.
"""

import re

# Optional 3-4 letter project key + hyphen, then the ticket number
TICKET_ID_PATTERN = re.compile(r"([A-Za-z]{3,4}-)?\d+")


def extract_id(value: str) -> str | None:
    """Extract a ticket identifier from a string.

    Works on shorthand references and full URLs alike. The first match wins
    and is returned with its original casing.

    Examples:
    - "feature/JIRA-42-login" -> "JIRA-42"
    - "https://tracker.example.com/browse/abc-7" -> "abc-7"
    - "fixes #123" -> "123"
    - "no ticket here" -> None

    Cyclomatic Complexity: 1 (single regex search)
    """
    match = TICKET_ID_PATTERN.search(value)
    return match.group(0) if match else None
