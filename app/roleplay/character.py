from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from openai import OpenAI
from pydantic import ValidationError

from .llm_client import request_chat_completion
from .models import SPEAKER_ALIASES, ConversationTurn, Scenario, Speaker
from .prompts.character import (
    CHARACTER_PROMPT_VERSION,
    CONNECTION_FALLBACK_REPLY,
    DEFAULT_OBJECTIONS,
    INSTRUCTOR_VOICE_PHRASES,
    NEUTRAL_IN_CHARACTER_QUESTIONS,
    SYSTEM_PROMPT_TEMPLATE,
)


logger = logging.getLogger("uvicorn.error")
HISTORY_WINDOW = 8
MAX_REPLY_TOKENS = 120
REPLY_TEMPERATURE = 0.8


@dataclass(frozen=True)
class CharacterReply:
    text: str
    character: str
    skill_area: Optional[str]
    error: bool = False
    filtered: bool = False


def build_system_prompt(scenario: Scenario) -> str:
    objections = scenario.key_objections or DEFAULT_OBJECTIONS
    return SYSTEM_PROMPT_TEMPLATE.format(
        character_name=scenario.character_name,
        character_role=scenario.character_role,
        character_personality=scenario.character_personality or "Not specified",
        character_background=scenario.character_background or "Not specified",
        business_vertical=scenario.business_vertical or "Not specified",
        buyer_persona=scenario.buyer_persona or "Not specified",
        focus_area=scenario.focus_area or "Not specified",
        key_objections=", ".join(objections),
        sales_skill_area=scenario.sales_skill_area,
        instructions=scenario.instructions or "Stay realistic and guarded.",
        objection_lines="\n".join(f'- "{objection}"' for objection in objections),
    )


def coerce_history(items: Iterable[Any]) -> list[ConversationTurn]:
    """Turn loose client history into chat turns.

    Any speaker the trainee aliases do not cover is sent as the counterpart.
    Items that still fail validation are skipped.
    """
    turns: list[ConversationTurn] = []
    for item in items:
        if isinstance(item, ConversationTurn):
            turns.append(item)
            continue
        if not isinstance(item, dict):
            continue
        speaker = str(item.get("speaker") or "").strip().lower()
        if speaker not in SPEAKER_ALIASES:
            item = {**item, "speaker": Speaker.COUNTERPART}
        try:
            turns.append(ConversationTurn.model_validate(item))
        except ValidationError:
            continue
    return turns


def build_messages(
    scenario: Scenario,
    user_message: str,
    history: Iterable[ConversationTurn],
) -> list[dict]:
    recent = list(history)[-HISTORY_WINDOW:]
    messages = [{"role": "system", "content": build_system_prompt(scenario)}]
    for turn in recent:
        role = "user" if turn.speaker is Speaker.TRAINEE else "assistant"
        messages.append({"role": role, "content": turn.message})
    messages.append({"role": "user", "content": user_message})
    return messages


def breaks_character(reply: str) -> bool:
    lowered = reply.lower()
    return any(phrase in lowered for phrase in INSTRUCTOR_VOICE_PHRASES)


def neutral_question(turn_index: int) -> str:
    return NEUTRAL_IN_CHARACTER_QUESTIONS[turn_index % len(NEUTRAL_IN_CHARACTER_QUESTIONS)]


def generate_reply(
    scenario: Scenario,
    user_message: str,
    history: Iterable[Any] = (),
    client: Optional[OpenAI] = None,
) -> CharacterReply:
    """Produce the counterpart's next line. Always returns a reply."""
    turns = coerce_history(history)
    try:
        text = request_chat_completion(
            build_messages(scenario, user_message, turns),
            max_tokens=MAX_REPLY_TOKENS,
            temperature=REPLY_TEMPERATURE,
            label="Character reply",
            client=client,
        )
    except Exception as exc:
        logger.warning(
            "scenario_id=%s character_reply_fallback version=%s error=%s",
            scenario.scenario_id,
            CHARACTER_PROMPT_VERSION,
            exc,
        )
        return CharacterReply(
            text=CONNECTION_FALLBACK_REPLY,
            character=scenario.character_name,
            skill_area=scenario.sales_skill_area,
            error=True,
        )

    if breaks_character(text):
        logger.info(
            "scenario_id=%s character_reply_filtered version=%s",
            scenario.scenario_id,
            CHARACTER_PROMPT_VERSION,
        )
        return CharacterReply(
            text=neutral_question(len(turns)),
            character=scenario.character_name,
            skill_area=scenario.sales_skill_area,
            filtered=True,
        )

    return CharacterReply(
        text=text,
        character=scenario.character_name,
        skill_area=scenario.sales_skill_area,
    )
