"""Operator-supplied ticket patterns.

Patterns are written for the JavaScript regex dialect (the one GitHub
Actions users already know), so sources and flags are translated into their
Python ``re`` equivalents before compiling.
"""

import re
from dataclasses import dataclass, field

from .config import ConfigError, PatternConfig

# JS flags that change how a single first-match execution behaves
_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}
# Accepted but irrelevant for one exec() from index 0
_NOOP_FLAGS = set("gudv")
STICKY_FLAG = "y"

_NAMED_BACKREF = re.compile(r"\\k<([A-Za-z_][A-Za-z0-9_]*)>")


class PatternError(ConfigError):
    """Raised when a configured pattern or its flags cannot be compiled."""
    pass


@dataclass(frozen=True)
class TicketPattern:
    regex: re.Pattern
    sticky: bool = False


@dataclass(frozen=True)
class TicketMatch:
    """Result of one pattern execution: the full match plus named groups."""

    text: str
    groups: dict[str, str | None] = field(default_factory=dict)

    @property
    def ticket_number(self) -> str | None:
        return self.groups.get("ticketNumber")

    def as_list(self) -> list:
        return [self.text, *self.groups.values()]


def translate_flags(flags: str) -> tuple[int, bool]:
    """Map a JS flags string to ``re`` flags and a sticky marker.

    Raises
    ------
    PatternError
        On unknown or repeated flags
    """
    seen = set()
    re_flags = re.ASCII
    for flag in flags:
        known = flag in _FLAG_MAP or flag in _NOOP_FLAGS or flag == STICKY_FLAG
        if flag in seen or not known:
            raise PatternError(f"Invalid flags supplied to RegExp constructor '{flags}'")
        seen.add(flag)
        re_flags |= _FLAG_MAP.get(flag, 0)
    return re_flags, STICKY_FLAG in seen


def translate_source(source: str, multiline: bool = False) -> str:
    """Rewrite JS-only syntax in a pattern source to Python syntax.

    - ``(?<name>`` -> ``(?P<name>`` (lookbehinds ``(?<=`` / ``(?<!`` kept)
    - ``\\k<name>`` -> ``(?P=name)``
    - ``$`` -> ``\\Z`` without the m flag; JS ``$`` never matches before a
      trailing newline

    Escaped characters and ``[...]`` classes are copied verbatim.
    """
    out = []
    in_class = False
    i = 0
    while i < len(source):
        ch = source[i]
        if ch == "\\":
            backref = None if in_class else _NAMED_BACKREF.match(source, i)
            if backref:
                out.append(f"(?P={backref.group(1)})")
                i = backref.end()
            else:
                out.append(source[i:i + 2])
                i += 2
            continue

        if in_class:
            in_class = ch != "]"
        elif ch == "[":
            in_class = True
        elif source.startswith("(?<", i) and source[i + 3:i + 4] not in ("=", "!"):
            out.append("(?P<")
            i += 3
            continue
        elif ch == "$" and not multiline:
            out.append(r"\Z")
            i += 1
            continue

        out.append(ch)
        i += 1
    return "".join(out)


def compile_pattern(config: PatternConfig) -> TicketPattern:
    re_flags, sticky = translate_flags(config.flags)
    try:
        multiline = bool(re_flags & re.MULTILINE)
        regex = re.compile(translate_source(config.source, multiline), re_flags)
    except re.error as e:
        raise PatternError(f"Invalid regular expression /{config.source}/: {e}") from e
    return TicketPattern(regex=regex, sticky=sticky)


def scan(pattern: TicketPattern, text: str) -> TicketMatch | None:
    """Execute the pattern once against text.

    Cyclomatic Complexity: 2 (sticky vs. search, match vs. none)
    """
    run = pattern.regex.match if pattern.sticky else pattern.regex.search
    match = run(text)
    if match is None:
        return None
    return TicketMatch(text=match.group(0), groups=match.groupdict())
