"""One-line "my day" summaries via LiteLLM.

Requires litellm (``pip install daybook[llm]``). Generation never raises:
any failure degrades to a fixed fallback string.
"""

from __future__ import annotations

from loguru import logger

from daybook.core.utils.text import normalize_text, strip_markup, truncate_text

from .models import Entry

DEFAULT_MODEL = "gemini/gemini-2.5-flash"

FALLBACK_SUMMARY = "An ordinary day, and a special one too"
FAILED_SUMMARY = "Summary unavailable, please try again later"
RATE_LIMITED_SUMMARY = "Summary quota reached, please try again later"
UNAVAILABLE_SUMMARY = "Summary generation is not installed"

_INSTRUCTIONS = """You are a diary assistant with an eye for the small details of everyday life.
Write a single-line summary of the user's day from the record below.

Rules:
1. At most 25 words.
2. Do not cover everything; pick the one moment or mood that best represents the day.
3. Any tone fits the content: playful, warm, literary or sharp.
4. Sound like a friend, never official or formulaic.
5. Reply with the summary text only, no quotes, no trailing punctuation, no explanation."""


def describe_entry(entry: Entry) -> str:
    """Plain-text rendering of an entry used as model input."""
    todos = "\n".join(f"- {t.text} ({'done' if t.completed else 'not done'})" for t in entry.todos)
    expenses = "\n".join(f"- {e.item}: {e.amount:.2f}" for e in entry.expenses)
    thoughts = strip_markup(entry.insight)
    return (
        f"[Todos]\n{todos or 'none'}\n\n"
        f"[Expenses]\n{expenses or 'none'}\n\n"
        f"[Thoughts]\n{thoughts or 'none'}"
    )


def _is_rate_limit(error: Exception) -> bool:
    if getattr(error, "status_code", None) == 429 or getattr(error, "status", None) == 429:
        return True
    return "429" in str(error) or type(error).__name__ == "RateLimitError"


class SummaryGenerator:
    """Implements ``SummaryService`` with a single LiteLLM completion call."""

    def __init__(self, model: str = DEFAULT_MODEL, max_chars: int = 120, timeout: int = 60, temperature: float = 0.9):
        self.model = model
        self.max_chars = max_chars
        self.timeout = timeout
        self.temperature = temperature

    def build_messages(self, entry: Entry) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": _INSTRUCTIONS},
            {"role": "user", "content": f"Today's record:\n{describe_entry(entry)}"},
        ]

    async def generate(self, entry: Entry) -> str:
        try:
            import litellm
        except ImportError:
            logger.error("litellm is not installed; install with: pip install daybook[llm]")
            return UNAVAILABLE_SUMMARY

        try:
            response = await litellm.acompletion(
                model=self.model,
                messages=self.build_messages(entry),
                temperature=self.temperature,
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning(f"Summary generation failed for {entry.date}: {e}")
            return RATE_LIMITED_SUMMARY if _is_rate_limit(e) else FAILED_SUMMARY

        try:
            text = response.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError):
            text = ""
        text = normalize_text(text).strip('"').strip()
        return truncate_text(text, self.max_chars, ellipsis="") if text else FALLBACK_SUMMARY
