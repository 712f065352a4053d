# backend/rev/api/endpoints/chat.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Dict, Any, Optional
from pydantic import BaseModel

from rev import models
from rev.db.session import get_db
from rev.api import deps
from rev.services.ai_orchestrator import process_user_message

router = APIRouter()


class ChatRequest(BaseModel):
    message: str
    history: Optional[List[Dict[str, Any]]] = []


class ChatResponse(BaseModel):
    reply: str
    history: List[Dict[str, Any]]
    follow_up_question: Optional[str] = None


@router.post("/", response_model=ChatResponse)
async def handle_chat_message(
    request_data: ChatRequest,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
):
    """
    Handles a user's chat message, interacts with the AI orchestrator,
    and returns the AI's response.
    """
    ai_reply, updated_history, followup_q = await process_user_message(
        db=db,
        user_message=request_data.message,
        conversation_history=request_data.history or [],
        current_user=current_user,
    )

    return ChatResponse(
        reply=ai_reply,
        history=updated_history,
        follow_up_question=followup_q
    )
