"""Text processing utilities: markup stripping, whitespace normalization, truncation."""

import html
import re

_BLOCK_BREAK_RE = re.compile(r"<\s*(br\s*/?|/\s*(p|div|li|h[1-6]|blockquote))\s*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")


def normalize_text(text: str) -> str:
    """Normalize whitespace and newlines into single spaces."""
    if not text or not isinstance(text, str):
        return ""
    text = text.replace("\r\n", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def strip_markup(markup: str | None) -> str:
    """Reduce a rich-text (HTML) blob to plain text.

    Line-breaking elements become newlines, all other tags are removed and
    entities are unescaped. Blank lines and runs of spaces are collapsed.
    """
    if not markup or not isinstance(markup, str):
        return ""
    text = _BLOCK_BREAK_RE.sub("\n", markup)
    text = _TAG_RE.sub("", text)
    text = html.unescape(text).replace("\xa0", " ")
    lines = [re.sub(r"[ \t]+", " ", line).strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


def truncate_text(text: str, max_length: int = 100, ellipsis: str = "...") -> str:
    """Truncate text to max_length, appending ellipsis if truncated."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ellipsis)] + ellipsis
