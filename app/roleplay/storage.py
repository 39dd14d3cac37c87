import copy
import threading
from typing import Dict, List, Optional, Protocol

from .constants import UNSET
from .models import ExchangeRecord, SessionRecord, utc_now


class SessionStore(Protocol):
    storage_name: str

    def create_session(
        self,
        session_id: str,
        *,
        user_id: str,
        scenario_id: str,
        room_url: Optional[str] = None,
    ) -> SessionRecord:
        pass

    def get_session(self, session_id: str) -> Optional[SessionRecord]:
        pass

    def update_session(
        self,
        session_id: str,
        *,
        status: Optional[str] = None,
        end_time: object = UNSET,
        duration_ms: Optional[int] = None,
        transcript: object = UNSET,
        metrics: object = UNSET,
        ai_feedback: object = UNSET,
    ) -> None:
        pass

    def append_exchange(self, session_id: str, *, user_message: str, ai_response: str) -> None:
        pass

    def list_sessions(self, user_id: str) -> List[SessionRecord]:
        pass


class InMemorySessionStore:
    storage_name = "memory"

    def __init__(self) -> None:
        self._sessions: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def create_session(
        self,
        session_id: str,
        *,
        user_id: str,
        scenario_id: str,
        room_url: Optional[str] = None,
    ) -> SessionRecord:
        record = SessionRecord(
            session_id=session_id,
            user_id=user_id,
            scenario_id=scenario_id,
            room_url=room_url,
            start_time=utc_now(),
            status="active",
        )
        with self._lock:
            if session_id in self._sessions:
                raise ValueError(f"Session {session_id} already exists.")
            self._sessions[session_id] = record
            return copy.deepcopy(record)

    def get_session(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            record = self._sessions.get(session_id)
            return copy.deepcopy(record) if record is not None else None

    def update_session(
        self,
        session_id: str,
        *,
        status: Optional[str] = None,
        end_time: object = UNSET,
        duration_ms: Optional[int] = None,
        transcript: object = UNSET,
        metrics: object = UNSET,
        ai_feedback: object = UNSET,
    ) -> None:
        with self._lock:
            if session_id not in self._sessions:
                raise KeyError(f"Session {session_id} not found.")
            session = self._sessions[session_id]
            if status is not None:
                session.status = status
            if end_time is not UNSET:
                session.end_time = end_time  # type: ignore[assignment]
            if duration_ms is not None:
                session.duration_ms = duration_ms
            if transcript is not UNSET:
                session.transcript = transcript  # type: ignore[assignment]
            if metrics is not UNSET:
                session.metrics = metrics  # type: ignore[assignment]
            if ai_feedback is not UNSET:
                session.ai_feedback = ai_feedback  # type: ignore[assignment]

    def append_exchange(self, session_id: str, *, user_message: str, ai_response: str) -> None:
        with self._lock:
            if session_id not in self._sessions:
                raise KeyError(f"Session {session_id} not found.")
            self._sessions[session_id].exchanges.append(
                ExchangeRecord(timestamp=utc_now(), user_message=user_message, ai_response=ai_response)
            )

    def list_sessions(self, user_id: str) -> List[SessionRecord]:
        with self._lock:
            matches = [copy.deepcopy(s) for s in self._sessions.values() if s.user_id == user_id]
        return sorted(matches, key=lambda session: session.start_time, reverse=True)


def build_session_store() -> SessionStore:
    return InMemorySessionStore()
