"""Scripture reference formatting."""

import re


def format_reference(reference: str) -> str:
    """
    Format a scripture reference for display.

    "Malachi 3:1-4|Hebrews 2:14-18" -> "Malachi 3:1-4 & Hebrews 2:14-18"
    """
    if not reference:
        return ""
    return re.sub(r"\s*\|\s*", " & ", reference)


def split_reference(reference: str) -> list[str]:
    """Split a pipe-separated reference into its parts."""
    if not reference:
        return []
    return [part.strip() for part in reference.split("|")]
