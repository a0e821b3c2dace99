# modules/messaging/routes.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database.connection import get_db
from modules.messaging import schemas, services
from modules.security.deps import get_current_user
from modules.users.models import User

api_router = APIRouter()


@api_router.post("/conversations", response_model=schemas.ConversationInDB, status_code=status.HTTP_201_CREATED)
def create_conversation_route(
    payload: schemas.ConversationCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return services.create_conversation(db, payload, user)


@api_router.get("/conversations", response_model=List[schemas.ConversationSummary])
def read_conversations_route(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return services.list_conversations(db, user)


@api_router.get("/conversations/{conversation_id}/messages", response_model=List[schemas.MessageInDB])
def read_messages_route(
    conversation_id: int,
    skip: int = 0,
    limit: int = 100,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return services.list_messages(db, conversation_id, user, skip=skip, limit=limit)


@api_router.post(
    "/conversations/{conversation_id}/messages",
    response_model=schemas.MessageInDB,
    status_code=status.HTTP_201_CREATED,
)
def send_message_route(
    conversation_id: int,
    payload: schemas.MessageCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return services.send_message(db, conversation_id, payload, user)


@api_router.post("/conversations/{conversation_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_read_route(conversation_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    services.mark_read(db, conversation_id, user)


@api_router.put("/messages/{message_id}", response_model=schemas.MessageInDB)
def edit_message_route(
    message_id: int,
    payload: schemas.MessageEdit,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return services.edit_message(db, message_id, payload.content, user)


@api_router.delete("/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_message_route(message_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    services.delete_message(db, message_id, user)
