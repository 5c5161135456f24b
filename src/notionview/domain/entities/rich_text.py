"""Helpers for Notion's rich value encoding.

A rich value is a list of fragments. Each fragment is ``[text]`` or
``[text, marks]`` where ``marks`` is a list of ``[tag]`` / ``[tag, arg]``
pairs, e.g. ``[["Hello ", [["b"]]], ["world", [["a", "https://x.y"]]]]``.
Structured payloads (users, dates, files, relations) are carried as the
argument of the first mark.
"""

from typing import Any

RichValue = list[list[Any]]
Mark = list[Any]


def fragment_text(fragment: Any) -> str:
    """Return the text of a fragment, or an empty string for malformed input."""
    if isinstance(fragment, (list, tuple)) and fragment:
        text = fragment[0]
        return text if isinstance(text, str) else str(text)
    return ""


def fragment_marks(fragment: Any) -> list[Mark]:
    """Return the mark list of a fragment (empty when the fragment is unformatted)."""
    if isinstance(fragment, (list, tuple)) and len(fragment) > 1:
        marks = fragment[1]
        if isinstance(marks, list):
            return [mark for mark in marks if isinstance(mark, (list, tuple)) and mark]
    return []


def first_mark_arg(fragment: Any) -> Any:
    """Return the argument of a fragment's first mark, or None."""
    marks = fragment_marks(fragment)
    if marks and len(marks[0]) > 1:
        return marks[0][1]
    return None


def get_text_content(value: Any) -> str:
    """Concatenate all fragment texts, ignoring marks."""
    if not isinstance(value, list):
        return ""
    return "".join(fragment_text(fragment) for fragment in value)
