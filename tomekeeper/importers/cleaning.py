"""
Source text cleanup applied before extraction prompts.
"""

import re


CITATION_TAG = re.compile(r"\[.*?\]")
EXCESS_NEWLINES = re.compile(r"\n{3,}")


def clean_source_text(text: str) -> str:
    """
    Strip citation tags such as "[PHB]" and normalize blank lines.

    Args:
        text: Raw pasted or fetched text

    Returns:
        Text with bracketed tags removed, CRLF turned into LF, and runs of
        three or more newlines collapsed to exactly two
    """
    cleaned = CITATION_TAG.sub("", text or "")
    cleaned = cleaned.replace("\r\n", "\n")
    return EXCESS_NEWLINES.sub("\n\n", cleaned)
