"""Utilities for extracting text from PDF resumes."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

import pymupdf

from .errors import ResumeParseError


def extract_text(
    content: bytes,
    *,
    exclude_patterns: Sequence[str] | None = None,
) -> str:
    """Return the plain text of every page of an in-memory PDF, in page order.

    Parameters
    ----------
    content:
        Raw bytes of the uploaded PDF.
    exclude_patterns:
        Optional substrings (case-sensitive); any line containing one is dropped,
        together with a trailing page counter such as ``" 1 / 3"``.

    Raises
    ------
    ResumeParseError
        When the bytes are not a readable PDF or no text can be extracted.
    """

    if not content:
        raise ResumeParseError("Resume file is empty")
    try:
        document = pymupdf.open(stream=content, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise ResumeParseError(f"Unable to open PDF: {exc}") from exc

    try:
        raw = "\n".join(page.get_text("text") for page in document)
    except (RuntimeError, ValueError) as exc:
        raise ResumeParseError(f"Unable to extract PDF text: {exc}") from exc
    finally:
        document.close()

    patterns = _build_patterns(exclude_patterns or ())
    lines = [
        line.rstrip()
        for line in raw.splitlines()
        if not any(pattern.search(line) for pattern in patterns)
    ]
    text = "\n".join(lines).strip()
    if not text:
        raise ResumeParseError("No readable text found in PDF")
    return text


def _build_patterns(excludes: Iterable[str]) -> list[re.Pattern[str]]:
    patterns: list[re.Pattern[str]] = []
    for text in excludes:
        escaped = re.escape(text)
        # Allow optional whitespace and page counter suffix like " 1 / 63".
        patterns.append(re.compile(rf"{escaped}(?:\s+\d+\s*/\s*\d+)?"))
    return patterns


__all__ = ["extract_text"]
