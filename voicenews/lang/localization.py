from __future__ import annotations

from voicenews.lang.vocab import FALLBACK_LANGUAGE, language_prefix
from voicenews.telemetry.logging import get_logger

LOGGER = get_logger(__name__)

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "paused": "Listening paused.",
        "paused_long": "Listening paused. Say 'resume listening' to continue.",
        "resumed": "Resumed listening.",
        "start_first": "Start listening first.",
        "ask_read": "Should I read the headline?",
        "ok": "Okay.",
        "invalid_selection": "Invalid selection. Please say a valid number.",
        "fetched_count": "Fetched {n} articles.",
        "fetched_one": "Fetched 1 article.",
        "loading": "Loading news...",
        "no_news": "No news loaded yet.",
        "no_articles_found": "No news articles found.",
        "error_news": "Error fetching news.",
        "not_recognized": "Command not recognized. Try: 'latest news', 'read the headlines', 'summarize 2', or 'open 3'.",
        "mic_error": "Mic error: {code}",
        "mic_denied": "Microphone permission denied. Allow access and press Start to retry.",
        "summarizing": "Summarizing…",
        "summary_ready": "Summary for article {n}.",
        "summary_failed": "AI summary failed. Try again later.",
        "key_points_running": "Extracting key points…",
        "key_points_failed": "AI key points failed. Try again later.",
        "sentiment_running": "Analyzing sentiment…",
        "sentiment_failed": "AI sentiment failed. Try again later.",
        "thinking": "Thinking…",
        "answer_ready": "Answer ready for article {n}.",
        "answer_failed": "AI Q&A failed. Try again later.",
    },
    "hi": {
        "paused": "सुनना रोका गया।",
        "paused_long": "सुनना रोका गया। जारी रखने के लिए 'resume listening' कहें।",
        "resumed": "फिर से सुन रहा हूँ।",
        "start_first": "पहले सुनना शुरू करें।",
        "ask_read": "क्या मैं शीर्षक पढ़ूँ?",
        "ok": "ठीक है।",
        "invalid_selection": "अमान्य चयन। कृपया सही संख्या बोलें।",
        "fetched_count": "{n} समाचार मिले।",
        "fetched_one": "1 समाचार मिला।",
        "loading": "समाचार लोड हो रहे हैं...",
        "no_news": "अभी कोई समाचार लोड नहीं हुआ।",
        "no_articles_found": "कोई समाचार नहीं मिला।",
        "error_news": "समाचार लाने में त्रुटि।",
        "summary_ready": "लेख {n} का सारांश।",
        "answer_ready": "लेख {n} का उत्तर तैयार है।",
    },
}


def localize(language_key: str | None, key: str, **variables: object) -> str:
    """Look up *key* for the active language, falling back to English."""
    table = MESSAGES.get(language_prefix(language_key), {})
    template = table.get(key) or MESSAGES[FALLBACK_LANGUAGE].get(key)
    if template is None:
        LOGGER.warning("localization.missing_key", key=key, language=language_key)
        return ""
    if not variables:
        return template
    try:
        return template.format(**variables)
    except (KeyError, IndexError):
        LOGGER.warning("localization.format_failed", key=key, language=language_key)
        return template


def articles_message(language_key: str | None, count: int) -> str:
    if count == 1:
        return localize(language_key, "fetched_one")
    return localize(language_key, "fetched_count", n=count)


__all__ = ["MESSAGES", "articles_message", "localize"]
