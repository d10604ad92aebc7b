"""
Markdown Section Parser

Splits a markdown note into heading-delimited sections. Each section knows
its heading level and its breadcrumb path (ancestor headings joined by
"/"), so that a section can be embedded together with its context.
"""

from __future__ import annotations

import re
from typing import List, Optional

from .models import Section

HEADING_PATTERN = re.compile(r"^(#+)\s*(.*)")
LINE_PATTERN = re.compile(r"(?<=\n)")

DEFAULT_MIN_VIABLE_CONTENT_LENGTH = 15


def _is_viable(section: Section, min_viable_content_length: int) -> bool:
    trimmed = section.content.strip()
    return bool(trimmed) and len(trimmed) > len(section.heading) + min_viable_content_length


def parse_markdown_sections(
    markdown: str,
    min_viable_content_length: int = DEFAULT_MIN_VIABLE_CONTENT_LENGTH,
) -> List[Section]:
    """
    Parse markdown text into an ordered list of sections.

    A section closed by a following heading is kept only if its trimmed
    content is longer than its heading plus ``min_viable_content_length``.
    The section still open at end of input is kept whenever it is
    non-empty. Text before the first heading belongs to no section.
    """
    sections: List[Section] = []
    path_stack: List[str] = []
    current: Optional[Section] = None

    # Split on "\n" only; other Unicode line breaks stay inside the line.
    for line in LINE_PATTERN.split(markdown):
        if not line:
            continue
        match = HEADING_PATTERN.match(line.rstrip("\r\n"))

        if match is None:
            if current is not None:
                current.content += line
            continue

        marks, heading = match.groups()
        heading = heading.strip()
        level = len(marks)

        if current is not None and _is_viable(current, min_viable_content_length):
            sections.append(current)

        # Close siblings and deeper headings, tolerating level jumps.
        while len(path_stack) >= level:
            path_stack.pop()
        path_stack.append(heading)

        current = Section(
            heading=heading,
            level=level,
            path="/".join(path_stack),
            content=line if line.endswith("\n") else f"{line}\n",
        )

    if current is not None and current.content.strip():
        sections.append(current)

    return sections


def render_section(section: Section) -> str:
    """Format a section as embedding input, prefixed with its breadcrumb."""
    return f"Parents: {section.path}\nContent: {section.content}"
