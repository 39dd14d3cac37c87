from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Speaker(str, Enum):
    TRAINEE = "trainee"
    COUNTERPART = "counterpart"


# Older clients tag turns the way the chat UI does.
SPEAKER_ALIASES = {
    "trainee": Speaker.TRAINEE,
    "user": Speaker.TRAINEE,
    "salesperson": Speaker.TRAINEE,
    "seller": Speaker.TRAINEE,
    "counterpart": Speaker.COUNTERPART,
    "ai": Speaker.COUNTERPART,
    "assistant": Speaker.COUNTERPART,
    "customer": Speaker.COUNTERPART,
    "buyer": Speaker.COUNTERPART,
}


class ConversationTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    speaker: Speaker
    message: str
    timestamp: Optional[datetime] = None

    @field_validator("speaker", mode="before")
    @classmethod
    def _normalize_speaker(cls, value):
        if isinstance(value, Speaker):
            return value
        key = str(value or "").strip().lower()
        if key not in SPEAKER_ALIASES:
            raise ValueError(f'Unknown speaker "{value}".')
        return SPEAKER_ALIASES[key]

    @field_validator("message", mode="before")
    @classmethod
    def _coerce_message(cls, value):
        if value is None:
            return ""
        return value

    # Timestamps are display-only; one that does not parse is dropped.
    @field_validator("timestamp", mode="wrap")
    @classmethod
    def _lenient_timestamp(cls, value, handler):
        try:
            return handler(value)
        except ValidationError:
            return None


class MetricsRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    word_count: int = Field(ge=0)
    average_sentence_length: float = Field(ge=0)
    filler_word_count: int = Field(ge=0)
    confidence_score: int = Field(ge=20, le=100)
    talk_time_ratio: int = Field(ge=0, le=100)
    conversation_length: int = Field(ge=0)
    trainee_message_count: int = Field(ge=0)
    counterpart_message_count: int = Field(ge=0)
    discovery_question_count: int = Field(ge=0)
    objection_handling_count: int = Field(ge=0)
    business_value_mention_count: int = Field(ge=0)
    concepts_recognized: List[str] = Field(default_factory=list)
    discovery_score: int = Field(ge=1, le=5)
    product_knowledge_score: int = Field(ge=1, le=5)
    objection_handling_score: int = Field(ge=1, le=5)
    business_value_score: int = Field(ge=1, le=5)
    overall_effectiveness_score: int = Field(ge=1, le=5)


class Scenario(BaseModel):
    scenario_id: str
    title: str
    description: str = ""
    category: str = "General"
    difficulty: str = "Medium"
    objectives: List[str] = Field(default_factory=list)
    character_name: str
    character_role: str
    character_personality: str = ""
    character_background: str = ""
    business_vertical: str = ""
    buyer_persona: str = ""
    focus_area: str = ""
    key_objections: List[str] = Field(default_factory=list)
    sales_skill_area: str = "Sales Skills"
    instructions: str = ""


@dataclass
class ExchangeRecord:
    timestamp: datetime
    user_message: str
    ai_response: str


@dataclass
class SessionRecord:
    session_id: str
    user_id: str
    scenario_id: str
    start_time: datetime
    status: str
    room_url: Optional[str] = None
    end_time: Optional[datetime] = None
    duration_ms: int = 0
    transcript: Optional[str] = None
    metrics: Optional[dict] = None
    ai_feedback: Optional[str] = None
    exchanges: List[ExchangeRecord] = field(default_factory=list)


class ChatRequest(BaseModel):
    session_id: Optional[str] = None
    scenario_id: str
    user_message: str
    conversation_history: List[Any] = Field(default_factory=list)


class ChatResponse(BaseModel):
    response: str
    character: str
    skill_area: Optional[str] = None
    error: bool = False


class StartSessionRequest(BaseModel):
    user_id: str
    scenario_id: str
    room_url: Optional[str] = None


class StartSessionResponse(BaseModel):
    session_id: str
    status: str


# History stays loosely typed here; the metrics engine validates items itself
# and falls back to defaults for malformed ones.
class EndSessionRequest(BaseModel):
    session_id: str
    transcript: Optional[str] = None
    duration: int = 0
    conversation_history: List[Any] = Field(default_factory=list)
    include_feedback: bool = True


class SessionAnalysis(BaseModel):
    metrics: MetricsRecord
    ai_feedback: str
    coaching_recommendations: List[str]
    skill_area: str
    scenario_title: str


class EndSessionResponse(BaseModel):
    session_id: str
    status: str
    analysis: SessionAnalysis


class SessionFeedbackSummary(BaseModel):
    talk_time_ratio: int
    filler_word_count: int
    confidence_score: int
    conversation_length: int
    ai_feedback: Optional[str]


class SessionSummary(BaseModel):
    session_id: str
    scenario_id: str
    scenario_title: str
    scenario_category: str
    scenario_difficulty: str
    start_time: datetime
    end_time: Optional[datetime]
    duration_ms: int
    status: str
    feedback: Optional[SessionFeedbackSummary]


class Pagination(BaseModel):
    total: int
    offset: int
    limit: int
    has_more: bool


class HistorySummary(BaseModel):
    total_sessions: int
    completed_sessions: int
    avg_confidence_score: int
    avg_duration_minutes: int


class SessionHistoryResponse(BaseModel):
    sessions: List[SessionSummary]
    pagination: Pagination
    summary: HistorySummary


class ExchangeResponse(BaseModel):
    timestamp: datetime
    user_message: str
    ai_response: str


class SessionDetailResponse(BaseModel):
    session_id: str
    user_id: str
    scenario: Optional[Scenario]
    start_time: datetime
    end_time: Optional[datetime]
    duration_ms: int
    status: str
    transcript: Optional[str]
    metrics: Optional[Dict[str, object]]
    ai_feedback: Optional[str]
    exchanges: List[ExchangeResponse]
