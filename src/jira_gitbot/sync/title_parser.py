"""Parse Jira issue keys out of pull request titles.

Accepted forms (case-insensitive, surrounding whitespace ignored):
    TEST-7: fix bug
    TEST-7 - fix bug
    [TEST-7] - fix bug
    [TEST-7]: fix bug

A `-` or `:` separator after the key is required.
"""

import re
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class ParsedTitle:
    """Issue key and remaining text of a title.

    Both values are empty strings when the title carries no issue key.
    """

    issue_key: str = ""
    description: str = ""


@lru_cache(maxsize=32)
def _title_pattern(project_key: str) -> re.Pattern[str]:
    return re.compile(
        rf"^\s*\[?\s*({re.escape(project_key)}-\d+)\s*\]?\s*[-:]\s*(.+?)\s*$",
        re.IGNORECASE,
    )


def parse_title(title: str, project_key: str) -> ParsedTitle:
    """Split a title into its issue key and description.

    Args:
        title: Free-form PR title
        project_key: Jira project key prefix (e.g. "TEST")

    Returns:
        ParsedTitle with the key upper-cased, or empty values on no match
    """
    if not title or not project_key:
        return ParsedTitle()

    match = _title_pattern(project_key).match(title)
    if not match:
        return ParsedTitle()

    return ParsedTitle(issue_key=match.group(1).upper(), description=match.group(2).strip())
