"""Pull request title normalization."""

import re

ID_PLACEHOLDER = "%id%"
TITLE_PLACEHOLDER = "%title%"
PREFIX_PLACEHOLDER = "%prefix%"


def rewrite_title(
    title: str,
    ticket_id: str | None,
    title_format: str,
    prefix: str | None = None,
) -> str:
    """Compute the normalized title for a detected ticket identifier.

    An identifier already present in the title (any casing, whole word) is
    upper-cased in place. A missing identifier is injected through
    ``title_format``. ``%prefix%`` is substituted whenever the format uses it,
    with an empty string when no prefix is configured.

    Parameters
    ----------
    title : str
        Current pull request title
    ticket_id : str | None
        Identifier found in the evidence, or None
    title_format : str
        Template with %id%, %title% and optionally %prefix%
    prefix : str | None
        Value for %prefix%

    Returns
    -------
    str
        New title with whitespace runs collapsed and ends trimmed
    """
    updated = title

    if ticket_id:
        upper_id = ticket_id.upper()
        id_regex = re.compile(rf"\b{re.escape(upper_id)}\b", re.IGNORECASE | re.ASCII)

        if id_regex.search(title):
            updated = id_regex.sub(lambda _: upper_id, title, count=1)
        else:
            updated = title_format.replace(ID_PLACEHOLDER, upper_id, 1).replace(
                TITLE_PLACEHOLDER, title, 1
            )

    if PREFIX_PLACEHOLDER in title_format:
        updated = updated.replace(PREFIX_PLACEHOLDER, prefix or "", 1)

    return re.sub(r"\s+", " ", updated.strip())
