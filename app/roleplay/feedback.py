from __future__ import annotations

import logging
from typing import Iterable, Optional

from openai import OpenAI

from .llm_client import request_chat_completion
from .models import ConversationTurn, Scenario, Speaker
from .prompts.coaching import (
    COACHING_PROMPT_VERSION,
    FEEDBACK_FALLBACK,
    MAX_CONVERSATION_CHARS,
    SCENARIO_SYSTEM_PROMPT_TEMPLATE,
    SYSTEM_PROMPT,
    USER_PROMPT_TEMPLATE,
)


logger = logging.getLogger("uvicorn.error")
MAX_FEEDBACK_TOKENS = 300
MAX_SCENARIO_FEEDBACK_TOKENS = 400


def format_conversation(history: Iterable[ConversationTurn], transcript: Optional[str] = None) -> str:
    lines = [
        f"{'Salesperson' if turn.speaker is Speaker.TRAINEE else 'Customer'}: {turn.message}"
        for turn in history
    ]
    if lines:
        text = "\n".join(lines)
    else:
        text = (transcript or "").strip()
    return text[:MAX_CONVERSATION_CHARS]


def build_messages(conversation_text: str, scenario: Optional[Scenario] = None) -> list[dict]:
    if scenario is not None:
        system_prompt = SCENARIO_SYSTEM_PROMPT_TEMPLATE.format(
            title=scenario.title,
            sales_skill_area=scenario.sales_skill_area,
            buyer_persona=scenario.buyer_persona or "Not specified",
        )
    else:
        system_prompt = SYSTEM_PROMPT
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": USER_PROMPT_TEMPLATE.format(conversation_text=conversation_text)},
    ]


def generate_feedback(
    history: Iterable[ConversationTurn],
    transcript: Optional[str] = None,
    scenario: Optional[Scenario] = None,
    client: Optional[OpenAI] = None,
) -> str:
    """Ask the coach persona for short feedback on an already-redacted conversation.

    Returns :data:`FEEDBACK_FALLBACK` instead of raising.
    """
    conversation_text = format_conversation(history, transcript)
    if not conversation_text:
        return FEEDBACK_FALLBACK

    max_tokens = MAX_SCENARIO_FEEDBACK_TOKENS if scenario is not None else MAX_FEEDBACK_TOKENS
    try:
        return request_chat_completion(
            build_messages(conversation_text, scenario),
            max_tokens=max_tokens,
            label="Coaching feedback",
            client=client,
        )
    except Exception as exc:
        logger.warning(
            "coaching_feedback_fallback version=%s error=%s",
            COACHING_PROMPT_VERSION,
            exc,
        )
        return FEEDBACK_FALLBACK
