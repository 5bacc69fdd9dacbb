"""API endpoints for the contract review service."""

import os
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse, StreamingResponse
from pydantic import ValidationError

from contract_guard import __version__
from contract_guard.models.conversation import (
    ChatRequest,
    DebugContractRequest,
    HealthResponse,
    HistoryResponse,
    KeyCheckResponse,
    ToolDecisionRequest,
)
from contract_guard.models.messages import ToolInvocationPart
from contract_guard.models.session import Session
from contract_guard.services.chat_agent import ChatAgent, get_chat_agent
from contract_guard.services.session_manager import session_manager
from contract_guard.services.streaming import encode_sse
from contract_guard.services.tool_calls import ToolCallNotFoundError, ToolCallNotPendingError
from contract_guard.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _require_session(session_id: str) -> Session:
    session = session_manager.get_session(session_id)
    if not session:
        logger.warning(f"Unknown session ID: {session_id}")
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return session


@router.get("/check-open-ai-key", response_model=KeyCheckResponse, tags=["Diagnostics"])
async def check_openai_key() -> KeyCheckResponse:
    """Report whether the OpenAI API key is configured."""
    return KeyCheckResponse(success=bool(os.getenv("OPENAI_API_KEY")))


async def _debug_contract(request: Request, agent: ChatAgent) -> PlainTextResponse:
    try:
        body = await request.json()
        payload = DebugContractRequest.model_validate(body if isinstance(body, dict) else {})
    except (ValueError, ValidationError):
        # No body or not JSON: fall back to the sample contract
        payload = DebugContractRequest()

    logger.info(f"Matched debug-contract route for path: {request.url.path}")
    text = await agent.debug_review(payload.contract_text)
    return PlainTextResponse(text)


@router.api_route("/debug-contract", methods=["GET", "POST"], tags=["Diagnostics"])
async def debug_contract(request: Request, agent: ChatAgent = Depends(get_chat_agent)) -> PlainTextResponse:
    """Non-streaming plain-text risk answer for a contract snippet."""
    return await _debug_contract(request, agent)


@router.api_route("/{prefix:path}/debug-contract", methods=["GET", "POST"], tags=["Diagnostics"])
async def prefixed_debug_contract(
    prefix: str, request: Request, agent: ChatAgent = Depends(get_chat_agent)
) -> PlainTextResponse:
    """Same as ``/debug-contract``, for any path ending in it."""
    return await _debug_contract(request, agent)


@router.post("/agents/chat/{session_id}", tags=["Conversation"])
async def chat(session_id: str, request: ChatRequest, agent: ChatAgent = Depends(get_chat_agent)) -> StreamingResponse:
    """Add the user's message and stream the assistant reply as Server-Sent Events."""
    session = session_manager.get_or_create_session(session_id)
    logger.info(f"Using session: {session.session_id}, {len(session.messages)} stored messages")

    try:
        if request.messages is not None:
            agent.replace_history(session, request.messages)
        if request.message is not None:
            logger.info(f"Processing message for session {session.session_id}: {request.message[:50]}...")
            agent.add_user_message(session, request.message)
    except ValueError as e:
        logger.warning(f"Message validation error for session {session.session_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e

    return StreamingResponse(
        encode_sse(agent.stream_reply(session)),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/agents/chat/{session_id}/messages", response_model=HistoryResponse, tags=["Conversation"])
async def get_messages(session_id: str) -> HistoryResponse:
    """Return the stored conversation history."""
    session = _require_session(session_id)
    return HistoryResponse(**session.as_dict())


@router.delete("/agents/chat/{session_id}", tags=["Conversation"])
async def clear_session(session_id: str) -> dict[str, str]:
    """Forget a conversation."""
    if not session_manager.delete_session(session_id):
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return {"status": "ok"}


@router.post("/agents/chat/{session_id}/tool-decision", response_model=ToolInvocationPart, tags=["Conversation"])
async def tool_decision(
    session_id: str, request: ToolDecisionRequest, agent: ChatAgent = Depends(get_chat_agent)
) -> ToolInvocationPart:
    """Approve or deny a tool call that is waiting for the user."""
    session = _require_session(session_id)
    try:
        return await agent.apply_tool_decision(session, request.tool_call_id, request.approved)
    except ToolCallNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ToolCallNotPendingError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )
