from __future__ import annotations

import pytest

from app.roleplay import character
from app.roleplay.character import (
    breaks_character,
    build_messages,
    build_system_prompt,
    coerce_history,
    generate_reply,
)
from app.roleplay.models import ConversationTurn, Scenario, Speaker
from app.roleplay.prompts.character import (
    CONNECTION_FALLBACK_REPLY,
    DEFAULT_OBJECTIONS,
    NEUTRAL_IN_CHARACTER_QUESTIONS,
)


def _turns(count: int) -> list[ConversationTurn]:
    return [
        ConversationTurn(
            speaker=Speaker.TRAINEE if index % 2 == 0 else Speaker.COUNTERPART,
            message=f"message {index}",
        )
        for index in range(count)
    ]


class TestPrompt:
    def test_system_prompt_uses_scenario(self, scenario) -> None:
        prompt = build_system_prompt(scenario)

        assert prompt.startswith("You are Mike Johnson, a Business Owner.")
        assert "I tried Google Ads before and lost money" in prompt
        assert "Objection Handling" in prompt

    def test_default_objections_when_scenario_has_none(self) -> None:
        bare = Scenario(scenario_id="bare", title="Bare", character_name="Pat", character_role="Buyer")

        prompt = build_system_prompt(bare)

        for objection in DEFAULT_OBJECTIONS:
            assert objection in prompt

    def test_history_window_and_roles(self, scenario) -> None:
        messages = build_messages(scenario, "Can I ask about your goals?", _turns(10))

        assert len(messages) == 1 + character.HISTORY_WINDOW + 1
        assert messages[0]["role"] == "system"
        assert messages[1] == {"role": "user", "content": "message 2"}
        assert messages[2] == {"role": "assistant", "content": "message 3"}
        assert messages[-1] == {"role": "user", "content": "Can I ask about your goals?"}


class TestBreaksCharacter:
    @pytest.mark.parametrize(
        "reply",
        [
            "As a sales coach, I'd suggest slowing down.",
            "Great discovery question! Now ask about budget.",
            "Tip: mention ROI earlier.",
        ],
    )
    def test_instructor_voice_detected(self, reply) -> None:
        assert breaks_character(reply) is True

    def test_buyer_line_passes(self) -> None:
        assert breaks_character("I tried Google Ads before and lost money.") is False


class TestGenerateReply:
    def test_success(self, monkeypatch, scenario) -> None:
        captured = {}

        def fake_completion(messages, **kwargs):
            captured.update(kwargs)
            return "Why would this time be any different?"

        monkeypatch.setattr(character, "request_chat_completion", fake_completion)

        reply = generate_reply(scenario, "We can help you grow.", _turns(2))

        assert reply.text == "Why would this time be any different?"
        assert reply.character == "Mike Johnson"
        assert reply.error is False
        assert reply.filtered is False
        assert captured["max_tokens"] == 120
        assert captured["temperature"] == 0.8

    def test_fallback_on_failure(self, monkeypatch, scenario) -> None:
        def failing_completion(messages, **kwargs):
            raise RuntimeError("Failed to connect to LLM provider")

        monkeypatch.setattr(character, "request_chat_completion", failing_completion)

        reply = generate_reply(scenario, "Hello?")

        assert reply.text == CONNECTION_FALLBACK_REPLY
        assert reply.error is True

    def test_instructor_voice_replaced(self, monkeypatch, scenario) -> None:
        monkeypatch.setattr(
            character,
            "request_chat_completion",
            lambda messages, **kwargs: "As a sales coach, you should ask about my budget.",
        )

        reply = generate_reply(scenario, "Hello", _turns(3))

        assert reply.filtered is True
        assert reply.error is False
        assert reply.text == NEUTRAL_IN_CHARACTER_QUESTIONS[3 % len(NEUTRAL_IN_CHARACTER_QUESTIONS)]


class TestCoerceHistory:
    def test_unknown_speakers_become_counterpart(self) -> None:
        turns = coerce_history([{"speaker": "system", "message": "start"}, {"message": "no speaker"}])

        assert [turn.speaker for turn in turns] == [Speaker.COUNTERPART, Speaker.COUNTERPART]

    def test_unusable_items_skipped(self) -> None:
        turns = coerce_history([42, {"speaker": "user", "message": ["not", "text"]}, {"speaker": "user", "message": "ok"}])

        assert turns == [ConversationTurn(speaker=Speaker.TRAINEE, message="ok")]

    def test_unparseable_timestamp_dropped(self) -> None:
        turns = coerce_history([{"speaker": "user", "message": "Hi", "timestamp": "10:30 AM"}])

        assert turns[0].timestamp is None
        assert turns[0].message == "Hi"
