"""
Markdown helpers for specification documents.
"""

import hashlib
import re

_CHECKBOX = re.compile(r"^\s*[-*+]\s+\[( |x|X)\]", re.MULTILINE)
_HEADING = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")


def count_checkboxes(content: str) -> tuple[int, int]:
    """Return (total, ticked) task-list checkboxes."""
    marks = _CHECKBOX.findall(content)
    return len(marks), sum(1 for mark in marks if mark.lower() == "x")


def extract_sections(content: str) -> tuple[tuple[str, str], ...]:
    """
    Split markdown into (header, body) pairs, one per heading.

    Text before the first heading is ignored. Headings inside fenced code
    blocks are not treated as headings.
    """
    sections: list[tuple[str, str]] = []
    header: str | None = None
    body: list[str] = []
    in_fence = False

    for line in content.splitlines():
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
        match = None if in_fence else _HEADING.match(line)
        if match:
            if header is not None:
                sections.append((header, "\n".join(body).strip()))
            header = match.group(2)
            body = []
        elif header is not None:
            body.append(line)

    if header is not None:
        sections.append((header, "\n".join(body).strip()))
    return tuple(sections)


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
