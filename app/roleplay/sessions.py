from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError

from .feedback import generate_feedback
from .metrics import analyze, coaching_recommendations
from .models import (
    ConversationTurn,
    EndSessionRequest,
    EndSessionResponse,
    ExchangeResponse,
    HistorySummary,
    Pagination,
    Scenario,
    SessionAnalysis,
    SessionDetailResponse,
    SessionFeedbackSummary,
    SessionHistoryResponse,
    SessionRecord,
    SessionSummary,
    utc_now,
)
from .redaction import redact, redact_history
from .scenarios import get_scenario
from .scoring import round_half_up
from .storage import SessionStore


logger = logging.getLogger("uvicorn.error")
FeedbackFn = Callable[[list, Optional[str], Optional[Scenario]], str]


def new_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def start_session(
    store: SessionStore,
    *,
    user_id: str,
    scenario_id: str,
    room_url: Optional[str] = None,
) -> SessionRecord:
    session = store.create_session(
        new_session_id(),
        user_id=user_id,
        scenario_id=scenario_id,
        room_url=room_url,
    )
    logger.info("session_id=%s session_started scenario_id=%s", session.session_id, scenario_id)
    return session


def record_exchange(store: SessionStore, session_id: Optional[str], user_message: str, ai_response: str) -> None:
    """Keep the redacted exchange on the session; a missing session is not fatal."""
    if not session_id:
        return
    try:
        store.append_exchange(session_id, user_message=redact(user_message), ai_response=ai_response)
    except KeyError:
        logger.warning("session_id=%s exchange_not_saved reason=session_not_found", session_id)


def _valid_turns(history: Iterable[Any]) -> list[ConversationTurn]:
    turns: list[ConversationTurn] = []
    for item in history:
        try:
            turns.append(item if isinstance(item, ConversationTurn) else ConversationTurn.model_validate(item))
        except ValidationError:
            continue
    return turns


def _default_feedback(turns: list, transcript: Optional[str], scenario: Optional[Scenario]) -> str:
    return generate_feedback(turns, transcript, scenario)


def end_session(
    store: SessionStore,
    request: EndSessionRequest,
    feedback_fn: FeedbackFn = _default_feedback,
) -> EndSessionResponse:
    session = store.get_session(request.session_id)
    scenario = get_scenario(session.scenario_id) if session else None

    redacted_transcript = redact(request.transcript)
    redacted_history = redact_history(request.conversation_history)
    metrics = analyze(redacted_transcript, redacted_history)

    if request.include_feedback:
        ai_feedback = feedback_fn(_valid_turns(redacted_history), redacted_transcript, scenario)
    else:
        ai_feedback = ""

    if session is not None:
        store.update_session(
            request.session_id,
            status="completed",
            end_time=utc_now(),
            duration_ms=max(0, int(request.duration or 0)),
            transcript=redacted_transcript,
            metrics=metrics.model_dump(),
            ai_feedback=ai_feedback,
        )
    else:
        logger.warning("session_id=%s session_end_not_stored reason=session_not_found", request.session_id)

    logger.info(
        "session_id=%s session_end_analyzed word_count=%s conversation_length=%s overall=%s",
        request.session_id,
        metrics.word_count,
        metrics.conversation_length,
        metrics.overall_effectiveness_score,
    )
    return EndSessionResponse(
        session_id=request.session_id,
        status="completed",
        analysis=SessionAnalysis(
            metrics=metrics,
            ai_feedback=ai_feedback,
            coaching_recommendations=coaching_recommendations(metrics),
            skill_area=scenario.sales_skill_area if scenario else "Sales Skills",
            scenario_title=scenario.title if scenario else "Practice Session",
        ),
    )


def _feedback_summary(session: SessionRecord) -> Optional[SessionFeedbackSummary]:
    if not isinstance(session.metrics, dict):
        return None
    metrics = session.metrics
    return SessionFeedbackSummary(
        talk_time_ratio=int(metrics.get("talk_time_ratio") or 0),
        filler_word_count=int(metrics.get("filler_word_count") or 0),
        confidence_score=int(metrics.get("confidence_score") or 0),
        conversation_length=int(metrics.get("conversation_length") or 0),
        ai_feedback=session.ai_feedback,
    )


def _summarize(session: SessionRecord) -> SessionSummary:
    scenario = get_scenario(session.scenario_id)
    return SessionSummary(
        session_id=session.session_id,
        scenario_id=session.scenario_id,
        scenario_title=scenario.title if scenario else "Unknown Scenario",
        scenario_category=scenario.category if scenario else "General",
        scenario_difficulty=scenario.difficulty if scenario else "Medium",
        start_time=session.start_time,
        end_time=session.end_time,
        duration_ms=session.duration_ms,
        status=session.status,
        feedback=_feedback_summary(session),
    )


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def session_history(
    store: SessionStore,
    user_id: str,
    *,
    scenario_id: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    limit: int = 10,
    offset: int = 0,
) -> SessionHistoryResponse:
    sessions = store.list_sessions(user_id)
    if scenario_id and scenario_id != "all":
        sessions = [session for session in sessions if session.scenario_id == scenario_id]
    if date_from is not None:
        sessions = [session for session in sessions if session.start_time >= _as_utc(date_from)]
    if date_to is not None:
        sessions = [session for session in sessions if session.start_time <= _as_utc(date_to)]

    total = len(sessions)
    page = sessions[offset : offset + limit]

    completed = [session for session in sessions if session.status == "completed"]
    if completed:
        confidence_total = sum(
            int((session.metrics or {}).get("confidence_score") or 0) for session in completed
        )
        avg_confidence = int(round_half_up(confidence_total / len(completed)))
        avg_duration = int(round_half_up(sum(session.duration_ms for session in completed) / len(completed) / 60000))
    else:
        avg_confidence = 0
        avg_duration = 0

    return SessionHistoryResponse(
        sessions=[_summarize(session) for session in page],
        pagination=Pagination(total=total, offset=offset, limit=limit, has_more=total > offset + limit),
        summary=HistorySummary(
            total_sessions=total,
            completed_sessions=len(completed),
            avg_confidence_score=avg_confidence,
            avg_duration_minutes=avg_duration,
        ),
    )


def session_detail(store: SessionStore, session_id: str, user_id: str) -> Optional[SessionDetailResponse]:
    """Detail of one of the user's own sessions, or None."""
    session = store.get_session(session_id)
    if session is None or session.user_id != user_id:
        return None
    return SessionDetailResponse(
        session_id=session.session_id,
        user_id=session.user_id,
        scenario=get_scenario(session.scenario_id),
        start_time=session.start_time,
        end_time=session.end_time,
        duration_ms=session.duration_ms,
        status=session.status,
        transcript=session.transcript,
        metrics=session.metrics,
        ai_feedback=session.ai_feedback,
        exchanges=[
            ExchangeResponse(
                timestamp=exchange.timestamp,
                user_message=exchange.user_message,
                ai_response=exchange.ai_response,
            )
            for exchange in sorted(session.exchanges, key=lambda exchange: exchange.timestamp)
        ],
    )
