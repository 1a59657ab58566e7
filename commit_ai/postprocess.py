import re
from typing import List

from commit_ai.errors import ExtractionError

# "Functions Added:", "**Functions Removed:**", "- Functions Modified:" ...
LIST_HEADER = re.compile(r"^\s*(?:[-*]\s+)?(?:\*\*)?functions\s+(?:added|removed|modified)\s*:\s*(?:\*\*)?\s*$", re.I)
PLACEHOLDER = re.compile(r"^\s*(?:[-*]\s*)?(?:none|n/a)\.?\s*$", re.I)


def _ends_section(lines: List[str], index: int) -> bool:
    """True when lines[index] does not continue the current list."""
    return index >= len(lines) or not lines[index].strip() or bool(LIST_HEADER.match(lines[index]))


def strip_placeholder_sections(text: str) -> str:
    """Removes list headers whose only entry is a placeholder such as '- None'."""
    lines = text.splitlines()
    kept = []
    i = 0
    while i < len(lines):
        if (
            LIST_HEADER.match(lines[i])
            and i + 1 < len(lines)
            and PLACEHOLDER.match(lines[i + 1])
            and _ends_section(lines, i + 2)
        ):
            i += 2
            # keep a single blank line between the neighbouring paragraphs
            if kept and not kept[-1].strip() and i < len(lines) and not lines[i].strip():
                i += 1
            continue
        kept.append(lines[i])
        i += 1
    return "\n".join(kept)


def clean_message(text: str, strip_placeholders: bool = True) -> str:
    """Turns the raw model output into the final commit message.

    Raises ExtractionError if nothing is left.
    """
    if strip_placeholders:
        text = strip_placeholder_sections(text)
    lines = text.splitlines()
    while lines and not lines[-1].strip():
        lines.pop()
    while lines and not lines[0].strip():
        lines.pop(0)
    if not lines:
        raise ExtractionError("The generated commit message is empty.")
    lines[-1] = lines[-1].rstrip()
    return "\n".join(lines)
