
# best-effort extraction of labelled sections from a post body.

# Service health posts are free text with conventional headings, e.g.
#   "User impact: ... Current status: ... Scope of impact: ... Root cause: ..."
# Each label is matched case-insensitively and its text runs lazily up to the
# first of its stop labels (or end of string). A missing label is not an
# error: the field is just an empty string.

import re
from dataclasses import dataclass

_SCOPE_RE = re.compile(
    r"Scope of impact:\s*(.*?)(?=Root cause:|Next update by:|Final status:|$)",
    re.IGNORECASE | re.DOTALL,
)
_ROOT_CAUSE_RE = re.compile(
    r"Root cause:\s*(.*?)(?=Next update by:|Final status:|Scope of impact:|$)",
    re.IGNORECASE | re.DOTALL,
)
_USER_IMPACT_RE = re.compile(
    r"User impact:\s*(.*?)(?=Current status:|More info:|$)",
    re.IGNORECASE | re.DOTALL,
)


@dataclass(frozen=True)
class ExtractedSections:
    scope_of_impact: str = ""
    root_cause: str = ""
    user_impact: str = ""


def _section(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def extract_sections(text: str | None) -> ExtractedSections:
    """Pull scope of impact, root cause and user impact out of a post body."""
    if not text:
        return ExtractedSections()

    return ExtractedSections(
        scope_of_impact=_section(_SCOPE_RE, text),
        root_cause=_section(_ROOT_CAUSE_RE, text),
        user_impact=_section(_USER_IMPACT_RE, text),
    )
