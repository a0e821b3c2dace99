# modules/messaging/schemas.py
from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import ConversationType, MessageType, ParticipantRole


class ConversationCreate(BaseModel):
    type: ConversationType = ConversationType.DIRECT
    name: Optional[str] = None
    participant_ids: List[int] = Field(min_length=1)


class ParticipantInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    user_id: int
    role: ParticipantRole
    last_read_at: Optional[datetime] = None


class ConversationInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: ConversationType
    name: Optional[str] = None
    created_by_id: int
    is_active: bool
    last_message_at: Optional[datetime] = None
    last_message_preview: Optional[str] = None
    participants: List[ParticipantInDB] = []
    created_at: datetime


class ConversationSummary(ConversationInDB):
    unread_count: int = 0


class MessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
    message_type: MessageType = MessageType.TEXT
    is_high_priority: bool = False
    is_emergency: bool = False


class MessageEdit(BaseModel):
    content: str = Field(min_length=1, max_length=5000)


class MessageInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    conversation_id: int
    sender_id: int
    content: str
    message_type: MessageType
    is_high_priority: bool
    is_emergency: bool
    is_edited: bool
    created_at: datetime
