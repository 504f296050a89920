from fastapi import APIRouter, Depends, HTTPException, status

import models, schemas
from oauth import get_current_user
from services.chatbot import reply_to

router = APIRouter(prefix="/api/chatbot", tags=["chatbot"])


@router.post("/message", response_model=schemas.ChatResponse)
def send_message(payload: schemas.ChatRequest, current_user: models.User = Depends(get_current_user)):
    if not payload.message or not payload.message.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required")
    return {"message": reply_to(payload.message)}
