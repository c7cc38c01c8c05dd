"""Trim model chatter around the patch envelope."""
from __future__ import annotations

from .constants import BEGIN_PATCH, END_PATCH
from .errors import FormatError


def delete_before_begin_patch(text: str) -> str:
    """Drop everything before the first ``*** Begin Patch``."""
    idx = text.find(BEGIN_PATCH)
    if idx != -1:
        return text[idx:]
    return text


def delete_after_end_patch(text: str) -> str:
    """Drop everything after the first ``*** End Patch`` (the sentinel is kept)."""
    idx = text.find(END_PATCH)
    if idx != -1:
        return text[: idx + len(END_PATCH)]
    return text


def normalize_patch_text(text: str) -> str:
    """Return the patch envelope contained in ``text``.

    Raises:
        FormatError: If no ``*** Begin Patch`` sentinel is present.
    """
    text = delete_after_end_patch(delete_before_begin_patch(text))
    if not text.startswith(BEGIN_PATCH):
        raise FormatError(
            f"patch text must start with {BEGIN_PATCH}",
            hint=f"Wrap the patch in '{BEGIN_PATCH}' / '{END_PATCH}' lines",
        )
    return text
