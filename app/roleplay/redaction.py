from __future__ import annotations

import re
from typing import Any, Iterable


# Applied in order; earlier placeholders never match later patterns.
PII_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (
        re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
        "[EMAIL_REDACTED]",
    ),
    (
        re.compile(r"(?:\+?\b1[-.\s]?)?(?:\(\d{3}\)|\b\d{3})[-.\s]?\d{3}[-.\s]?\d{4}\b"),
        "[PHONE_REDACTED]",
    ),
    (
        re.compile(r"\b\d{3}-?\d{2}-?\d{4}\b"),
        "[SSN_REDACTED]",
    ),
    (
        re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b"),
        "[CARD_REDACTED]",
    ),
    # Coarse name heuristic: any two capitalised words ("Google Ads" included).
    (
        re.compile(r"\b[A-Z][a-z]+ [A-Z][a-z]+\b"),
        "[NAME_REDACTED]",
    ),
]


def redact(text: Any) -> Any:
    """Replace e-mails, phone numbers, SSNs, card numbers and likely names.

    Non-string input (including ``None``) is returned unchanged.
    """
    if not isinstance(text, str):
        return text
    for pattern, placeholder in PII_PATTERNS:
        text = pattern.sub(placeholder, text)
    return text


def redact_history(history: Iterable[Any]) -> list:
    """Redact the ``message`` of every turn, keeping everything else as is.

    Accepts turn models or plain dicts; items of any other shape pass through
    so the metrics engine can decide what to do with them.
    """
    redacted: list = []
    for turn in history or []:
        if isinstance(turn, dict):
            item = dict(turn)
            item["message"] = redact(item.get("message"))
            redacted.append(item)
        elif hasattr(turn, "model_copy") and hasattr(turn, "message"):
            redacted.append(turn.model_copy(update={"message": redact(turn.message)}))
        else:
            redacted.append(turn)
    return redacted
