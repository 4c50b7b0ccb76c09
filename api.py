"""
FastAPI REST API for Insurance Chat

Exposes chat sessions, knowledge base search and analytics over HTTP.
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from main import initialize_system
from insurance_chat.config import HISTORY_STORAGE_KEY
from insurance_chat.schemas import Message
from insurance_chat.session import ChatSession

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# =============================================================
# FASTAPI APP INITIALIZATION
# =============================================================

app = FastAPI(
    title="Insurance Chat API",
    description="Insurance question answering with knowledge base fallback",
    version="1.0.0"
)

# Global state - initialized once at startup
service = None
store = None
sessions: dict[str, ChatSession] = {}


@app.on_event("startup")
async def startup_event():
    """Initialize all system components once at startup."""
    global service, store

    logger.info("Starting Insurance Chat API...")
    service, store = initialize_system()
    logger.info("API startup complete. Ready to handle requests.")


# =============================================================
# REQUEST/RESPONSE MODELS
# =============================================================

class MessageRequest(BaseModel):
    """Request model for sending a message."""
    content: str = Field(
        ...,
        description="The user's message",
        examples=["What is the difference between term and whole life insurance?"]
    )


class ModelRequest(BaseModel):
    model: Optional[str] = Field(None, description="Model to use; null clears the override")


class MessageModel(BaseModel):
    role: str
    content: str
    timestamp: datetime
    category: Optional[str] = None
    suggestions: Optional[list[str]] = None


class SessionResponse(BaseModel):
    """Snapshot of a chat session."""
    session_id: str
    messages: list[MessageModel]
    is_loading: bool
    error: Optional[str] = None
    suggestions: list[str]
    model_override: Optional[str] = None


class TurnResponse(BaseModel):
    """Response model for a completed turn."""
    session_id: str
    reply: MessageModel
    suggestions: list[str] = Field(..., description="Follow-up questions for the next turn")


class KnowledgeEntryModel(BaseModel):
    term: str
    definition: str
    category: str
    related_terms: list[str]


class AnalyticsResponse(BaseModel):
    average_response_time: float
    average_confidence_score: float
    user_satisfaction_rate: float
    total_interactions: int
    top_questions: dict[str, int]
    category_distribution: dict[str, int]


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""
    status: str = Field(..., description="Health status of the API")


# =============================================================
# HELPERS
# =============================================================

def require_service():
    if service is None or store is None:
        logger.error("System not initialized - components are None")
        raise HTTPException(
            status_code=503,
            detail="System not initialized. Please wait for startup to complete."
        )


def storage_key(session_id: str) -> str:
    return f"{HISTORY_STORAGE_KEY}:{session_id}"


def get_session(session_id: str, create: bool = False) -> ChatSession:
    """
    Look up a session, restoring it from the store if it was persisted.

    Raises:
        HTTPException: 404 if the session is unknown and create is False.
    """
    require_service()

    if session_id in sessions:
        return sessions[session_id]

    if not create and store.get(storage_key(session_id)) is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")

    session = ChatSession(
        service,
        store=store,
        session_id=session_id,
        storage_key=storage_key(session_id),
    )
    sessions[session_id] = session
    return session


def to_message_model(message: Message) -> MessageModel:
    return MessageModel(**message.to_dict())


def to_session_response(session_id: str, session: ChatSession) -> SessionResponse:
    state = session.state
    return SessionResponse(
        session_id=session_id,
        messages=[to_message_model(m) for m in state.messages],
        is_loading=state.is_loading,
        error=str(state.error) if state.error else None,
        suggestions=list(state.suggestions),
        model_override=state.model_override,
    )


def to_turn_response(session_id: str, session: ChatSession, result) -> TurnResponse:
    if not result.ok:
        detail = f"Error processing message: {result.error}" if result.error else "Nothing to send"
        status_code = 500 if result.error else 400
        raise HTTPException(status_code=status_code, detail=detail)

    return TurnResponse(
        session_id=session_id,
        reply=to_message_model(result.messages[-1]),
        suggestions=list(session.suggestions),
    )


# =============================================================
# API ENDPOINTS
# =============================================================

@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    return {"status": "ok"}


@app.get("/sessions/{session_id}", response_model=SessionResponse, tags=["Sessions"])
async def get_session_endpoint(session_id: str):
    session = get_session(session_id)
    return to_session_response(session_id, session)


@app.post("/sessions/{session_id}/messages", response_model=TurnResponse, tags=["Sessions"])
async def send_message(session_id: str, request: MessageRequest):
    """
    Send a user message and return the assistant reply.

    The session is created on first use. Model failures fall back to the
    knowledge base; only pipeline errors produce a 500.
    """
    content = request.content.strip()

    if not content:
        raise HTTPException(
            status_code=400,
            detail="Message cannot be empty"
        )

    session = get_session(session_id, create=True)
    logger.info(f"Received message for session {session_id}: {content}")

    result = session.send(content)
    return to_turn_response(session_id, session, result)


@app.post("/sessions/{session_id}/retry", response_model=TurnResponse, tags=["Sessions"])
async def retry_message(session_id: str):
    session = get_session(session_id)
    result = session.retry_last()
    return to_turn_response(session_id, session, result)


@app.delete("/sessions/{session_id}", response_model=SessionResponse, tags=["Sessions"])
async def reset_session(session_id: str):
    """Clear the session's transcript, suggestions and model override."""
    session = get_session(session_id)
    session.reset()
    return to_session_response(session_id, session)


@app.put("/sessions/{session_id}/model", response_model=SessionResponse, tags=["Sessions"])
async def set_model(session_id: str, request: ModelRequest):
    session = get_session(session_id, create=True)
    session.set_model_override(request.model)
    return to_session_response(session_id, session)


@app.get("/knowledge-base/search", response_model=list[KnowledgeEntryModel], tags=["Knowledge Base"])
async def search_knowledge_base(q: str = Query(..., min_length=1, description="Search text")):
    require_service()
    return [KnowledgeEntryModel(**entry.to_dict()) for entry in service.search_knowledge_base(q)]


@app.get("/analytics", response_model=AnalyticsResponse, tags=["Analytics"])
async def get_analytics():
    require_service()

    if service.analytics is None:
        raise HTTPException(status_code=404, detail="Analytics are not enabled")

    metrics = service.analytics.get_performance_metrics()
    return AnalyticsResponse(
        **metrics.to_dict(),
        top_questions=service.analytics.get_top_questions(),
        category_distribution=service.analytics.get_category_distribution(),
    )


# =============================================================
# RUN INSTRUCTIONS
# =============================================================

if __name__ == "__main__":
    import uvicorn

    print("\n=== Insurance Chat API ===")
    print("\nStarting FastAPI server...")
    print("API will be available at: http://localhost:8000")
    print("Interactive docs: http://localhost:8000/docs")
    print("\nPress CTRL+C to stop\n")

    uvicorn.run(
        "api:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info"
    )
