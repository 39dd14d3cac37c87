import logging
import os
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .character import generate_reply
from .constants import DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT, MAX_REQUEST_BYTES
from .models import (
    ChatRequest,
    ChatResponse,
    EndSessionRequest,
    EndSessionResponse,
    Scenario,
    SessionDetailResponse,
    SessionHistoryResponse,
    StartSessionRequest,
    StartSessionResponse,
    utc_now,
)
from .scenarios import get_scenario, get_scenarios
from .sessions import end_session, record_exchange, session_detail, session_history, start_session
from .storage import build_session_store


logger = logging.getLogger("uvicorn.error")

app = FastAPI(title="Sales Role-Play Coach Backend")
session_store = build_session_store()

frontend_origins = os.getenv(
    "FRONTEND_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in frontend_origins.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def enforce_request_size(request, call_next):
    if request.method in ("POST", "PUT") and request.url.path.startswith("/api/"):
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                if int(content_length) > MAX_REQUEST_BYTES:
                    return JSONResponse(
                        status_code=413,
                        content={"detail": f"Request too large. Max size is {MAX_REQUEST_BYTES} bytes."},
                    )
            except ValueError:
                pass
    return await call_next(request)


@app.get("/health")
def health() -> dict:
    return {
        "status": "ok",
        "storage": session_store.storage_name,
        "timestamp": utc_now().isoformat(),
    }


@app.get("/api/scenarios", response_model=List[Scenario])
def list_scenarios() -> List[Scenario]:
    return list(get_scenarios().values())


@app.post("/api/ai/chat", response_model=ChatResponse)
def chat(request: ChatRequest) -> ChatResponse:
    scenario = get_scenario(request.scenario_id)
    if scenario is None:
        raise HTTPException(status_code=404, detail="Scenario not found.")

    reply = generate_reply(scenario, request.user_message, request.conversation_history)
    if not reply.error:
        record_exchange(session_store, request.session_id, request.user_message, reply.text)

    return ChatResponse(
        response=reply.text,
        character=reply.character,
        skill_area=reply.skill_area,
        error=reply.error,
    )


@app.post("/api/sessions/start", response_model=StartSessionResponse)
def start_practice_session(request: StartSessionRequest) -> StartSessionResponse:
    if get_scenario(request.scenario_id) is None:
        raise HTTPException(status_code=404, detail="Scenario not found.")
    session = start_session(
        session_store,
        user_id=request.user_id,
        scenario_id=request.scenario_id,
        room_url=request.room_url,
    )
    return StartSessionResponse(session_id=session.session_id, status="started")


@app.post("/api/sessions/end", response_model=EndSessionResponse)
def end_practice_session(request: EndSessionRequest) -> EndSessionResponse:
    return end_session(session_store, request)


@app.get("/api/sessions/history", response_model=SessionHistoryResponse)
def get_session_history(
    user_id: str,
    scenario: Optional[str] = None,
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=MAX_HISTORY_LIMIT),
    offset: int = Query(0, ge=0),
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> SessionHistoryResponse:
    return session_history(
        session_store,
        user_id,
        scenario_id=scenario,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )


@app.get("/api/sessions/{session_id}", response_model=SessionDetailResponse)
def get_session_details(session_id: str, user_id: str) -> SessionDetailResponse:
    detail = session_detail(session_store, session_id, user_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="Session not found.")
    return detail
