"""Action inputs and run settings.

GitHub Actions hands ``with:`` inputs to the process as ``INPUT_<NAME>``
environment variables. Everything is read once into a frozen ``Settings``.
"""

import os
from dataclasses import dataclass


class ConfigError(Exception):
    """Raised when the run cannot be configured from its inputs."""
    pass


@dataclass(frozen=True)
class PatternConfig:
    source: str
    flags: str = ""


@dataclass(frozen=True)
class Settings:
    title_pattern: PatternConfig
    branch_pattern: PatternConfig
    body_pattern: PatternConfig
    body_url_pattern: PatternConfig | None
    title_format: str
    ticket_prefix: str | None
    ticket_link: str | None
    exempt_users: tuple[str, ...]
    quiet: bool
    token: str


def get_input(name: str, required: bool = False) -> str:
    """Read one action input, trimmed.

    Raises
    ------
    ConfigError
        When ``required`` and the input is empty or missing
    """
    value = os.getenv(f"INPUT_{name.replace(' ', '_').upper()}", "").strip()
    if required and not value:
        raise ConfigError(f"Input required and not supplied: {name}")
    return value


def _pattern(name: str) -> PatternConfig:
    return PatternConfig(
        source=get_input(f"{name}Regex", required=True),
        flags=get_input(f"{name}RegexFlags", required=True),
    )


def parse_user_list(value: str) -> tuple[str, ...]:
    return tuple(u.strip() for u in value.split(",") if u.strip())


def load_settings() -> Settings:
    """Load settings from action inputs.

    bodyURLRegexFlags is only required once bodyURLRegex is set.
    """
    body_url_pattern = None
    if get_input("bodyURLRegex"):
        body_url_pattern = _pattern("bodyURL")

    return Settings(
        title_pattern=_pattern("title"),
        branch_pattern=_pattern("branch"),
        body_pattern=_pattern("body"),
        body_url_pattern=body_url_pattern,
        title_format=get_input("titleFormat", required=True),
        ticket_prefix=get_input("ticketPrefix") or None,
        ticket_link=get_input("ticketLink") or None,
        exempt_users=parse_user_list(get_input("exemptUsers")),
        quiet=get_input("quiet") == "true",
        token=get_input("token", required=True),
    )
