from __future__ import annotations

import logging
import math
import re
from typing import Any, Iterable, Optional, Sequence

from .models import ConversationTurn, MetricsRecord, Speaker
from .scoring import DEFAULT_PROFILE, ScoringProfile, clamp, round_half_up


logger = logging.getLogger("uvicorn.error")

CONFIDENCE_FLOOR = 20
CONFIDENCE_CEILING = 100
NEUTRAL_CONFIDENCE_SCORE = 50
NEUTRAL_TALK_TIME_RATIO = 50
NEUTRAL_SUB_SCORE = 2
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


def _overall_score(sub_scores: Sequence[int]) -> int:
    average = sum(sub_scores) / len(sub_scores)
    return int(clamp(math.ceil(average), 1, 5))


def default_metrics() -> MetricsRecord:
    """Record returned when there is nothing to analyze or analysis fails."""
    return MetricsRecord(
        word_count=0,
        average_sentence_length=0.0,
        filler_word_count=0,
        confidence_score=NEUTRAL_CONFIDENCE_SCORE,
        talk_time_ratio=NEUTRAL_TALK_TIME_RATIO,
        conversation_length=0,
        trainee_message_count=0,
        counterpart_message_count=0,
        discovery_question_count=0,
        objection_handling_count=0,
        business_value_mention_count=0,
        concepts_recognized=[],
        discovery_score=NEUTRAL_SUB_SCORE,
        product_knowledge_score=NEUTRAL_SUB_SCORE,
        objection_handling_score=NEUTRAL_SUB_SCORE,
        business_value_score=NEUTRAL_SUB_SCORE,
        overall_effectiveness_score=_overall_score([NEUTRAL_SUB_SCORE] * 4),
    )


def _coerce_turns(history: Optional[Iterable[Any]]) -> list[ConversationTurn]:
    if history is None:
        return []
    turns: list[ConversationTurn] = []
    for item in history:
        if isinstance(item, ConversationTurn):
            turns.append(item)
        else:
            turns.append(ConversationTurn.model_validate(item))
    return turns


def _contains_any(text: str, phrases: Iterable[str]) -> bool:
    return any(phrase in text for phrase in phrases)


def count_filler_words(words: Sequence[str], filler_words: Iterable[str]) -> int:
    """Count tokens containing a single-word filler, plus adjacent pairs
    containing a multi-word filler such as "you know"."""
    single = [filler for filler in filler_words if " " not in filler]
    multi = [filler for filler in filler_words if " " in filler]

    count = sum(1 for word in words if _contains_any(word, single))
    if multi:
        for left, right in zip(words, words[1:]):
            if _contains_any(f"{left} {right}", multi):
                count += 1
    return count


def compute_confidence_score(filler_count: int, word_count: int, penalty: float) -> int:
    if word_count <= 0:
        return NEUTRAL_CONFIDENCE_SCORE
    filler_ratio = filler_count / word_count
    raw = round_half_up(100 - filler_ratio * penalty)
    return int(clamp(raw, CONFIDENCE_FLOOR, CONFIDENCE_CEILING))


def compute_talk_time_ratio(
    turns: Sequence[ConversationTurn],
    word_count: int,
    profile: ScoringProfile,
) -> int:
    if turns:
        trainee = sum(1 for turn in turns if turn.speaker is Speaker.TRAINEE)
        return int(round_half_up(100 * trainee / len(turns)))
    # Without turn structure the share is only estimated from volume.
    low, high = profile.estimated_talk_time_range
    estimate = round_half_up(word_count / profile.words_per_talk_time_point)
    return int(clamp(estimate, low, high))


def _analyze(
    transcript: Optional[str],
    history: Optional[Iterable[Any]],
    profile: ScoringProfile,
) -> MetricsRecord:
    turns = _coerce_turns(history)
    trainee_turns = [turn for turn in turns if turn.speaker is Speaker.TRAINEE]

    if turns:
        text = " ".join(turn.message for turn in trainee_turns)
    else:
        text = transcript if isinstance(transcript, str) else ""
        if not text.strip():
            return default_metrics()

    lowered = text.lower()
    words = lowered.split()
    sentences = [part for part in SENTENCE_SPLIT_RE.split(lowered) if part.strip()]
    word_count = len(words)

    filler_count = count_filler_words(words, profile.filler_words)
    confidence_score = compute_confidence_score(filler_count, word_count, profile.filler_penalty)
    average_sentence_length = round_half_up(word_count / len(sentences), 1) if sentences else 0.0
    talk_time_ratio = compute_talk_time_ratio(turns, word_count, profile)

    concepts = [concept for concept in profile.domain_concepts if concept in lowered]

    trainee_messages = [turn.message.lower() for turn in trainee_turns]
    discovery_count = sum(
        1
        for message in trainee_messages
        if "?" in message and _contains_any(message, profile.discovery_keywords)
    )
    objection_count = sum(
        1 for message in trainee_messages if _contains_any(message, profile.objection_phrases)
    )
    business_value_count = sum(
        1 for message in trainee_messages if _contains_any(message, profile.business_value_keywords)
    )

    discovery_score = profile.discovery_curve.score(discovery_count)
    product_knowledge_score = profile.product_knowledge_curve.score(len(concepts))
    objection_handling_score = profile.objection_handling_curve.score(objection_count)
    business_value_score = profile.business_value_curve.score(business_value_count)

    return MetricsRecord(
        word_count=word_count,
        average_sentence_length=average_sentence_length,
        filler_word_count=filler_count,
        confidence_score=confidence_score,
        talk_time_ratio=talk_time_ratio,
        conversation_length=len(turns),
        trainee_message_count=len(trainee_turns),
        counterpart_message_count=len(turns) - len(trainee_turns),
        discovery_question_count=discovery_count,
        objection_handling_count=objection_count,
        business_value_mention_count=business_value_count,
        concepts_recognized=concepts,
        discovery_score=discovery_score,
        product_knowledge_score=product_knowledge_score,
        objection_handling_score=objection_handling_score,
        business_value_score=business_value_score,
        overall_effectiveness_score=_overall_score(
            [
                discovery_score,
                product_knowledge_score,
                objection_handling_score,
                business_value_score,
            ]
        ),
    )


def analyze(
    transcript: Optional[str] = None,
    history: Optional[Iterable[Any]] = None,
    profile: ScoringProfile = DEFAULT_PROFILE,
) -> MetricsRecord:
    """Score a role-play conversation.

    When ``history`` has turns, only the trainee's messages are analyzed and
    ``transcript`` is ignored. Never raises: malformed input yields
    :func:`default_metrics`.
    """
    try:
        return _analyze(transcript, history, profile)
    except Exception as exc:
        # Exception text may echo turn content, so only the type is logged.
        logger.warning("metrics_analysis_fallback error_type=%s", type(exc).__name__)
        return default_metrics()


RECOMMENDATIONS = (
    (
        "discovery_score",
        "Practice asking more discovery questions about client goals, budget and current marketing.",
    ),
    (
        "product_knowledge_score",
        "Study the product line (Performance Max, Smart Campaigns, Search Campaigns) and name them when relevant.",
    ),
    (
        "objection_handling_score",
        "Work on addressing budget and ROI concerns with examples and case studies.",
    ),
    (
        "business_value_score",
        "Tie the conversation back to business outcomes: revenue, customers and measurable results.",
    ),
)


def coaching_recommendations(record: MetricsRecord) -> list[str]:
    return [advice for field_name, advice in RECOMMENDATIONS if getattr(record, field_name) < 3]
