# modules/messaging/services.py
from __future__ import annotations

from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.errors import BadRequestError, ForbiddenError, NotFoundError
from database.base import utcnow
from modules.messaging import schemas
from modules.messaging.models import (
    Conversation, ConversationParticipant, ConversationType, Message, ParticipantRole,
)
from modules.users.models import User

PREVIEW_LENGTH = 120


def _participant(db: Session, conversation_id: int, user_id: int) -> ConversationParticipant:
    if not db.get(Conversation, conversation_id):
        raise NotFoundError("Conversation not found")
    p = (
        db.query(ConversationParticipant)
        .filter(ConversationParticipant.conversation_id == conversation_id, ConversationParticipant.user_id == user_id)
        .first()
    )
    if not p:
        raise ForbiddenError("You are not a participant in this conversation")
    return p


def _find_direct(db: Session, a: int, b: int):
    mine = (
        db.query(ConversationParticipant.conversation_id)
        .join(Conversation, Conversation.id == ConversationParticipant.conversation_id)
        .filter(Conversation.type == ConversationType.DIRECT, ConversationParticipant.user_id == a)
    )
    return (
        db.query(Conversation)
        .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
        .filter(Conversation.id.in_(mine), ConversationParticipant.user_id == b)
        .first()
    )


def create_conversation(db: Session, payload: schemas.ConversationCreate, creator: User) -> Conversation:
    ids = list(dict.fromkeys([creator.id, *payload.participant_ids]))
    found = {uid for (uid,) in db.query(User.id).filter(User.id.in_(ids))}
    missing = [uid for uid in ids if uid not in found]
    if missing:
        raise NotFoundError(f"Users not found: {missing}")

    if payload.type == ConversationType.DIRECT:
        if len(ids) != 2:
            raise BadRequestError("A direct conversation has exactly two participants")
        existing = _find_direct(db, ids[0], ids[1])
        if existing:
            return existing

    conv = Conversation(type=payload.type, name=payload.name, created_by_id=creator.id)
    conv.participants = [
        ConversationParticipant(
            user_id=uid,
            role=ParticipantRole.ADMIN if uid == creator.id else ParticipantRole.MEMBER,
        )
        for uid in ids
    ]
    db.add(conv)
    db.commit()
    db.refresh(conv)
    return conv


def list_conversations(db: Session, user: User) -> List[dict]:
    rows = (
        db.query(Conversation, ConversationParticipant.last_read_at)
        .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
        .filter(ConversationParticipant.user_id == user.id, Conversation.is_active.is_(True))
        .order_by(Conversation.last_message_at.desc(), Conversation.id.desc())
        .all()
    )
    out = []
    for conv, last_read in rows:
        q = db.query(func.count(Message.id)).filter(
            Message.conversation_id == conv.id,
            Message.is_deleted.is_(False),
            Message.sender_id != user.id,
        )
        if last_read is not None:
            q = q.filter(Message.created_at > last_read)
        item = schemas.ConversationSummary.model_validate(conv)
        item.unread_count = q.scalar() or 0
        out.append(item)
    return out


def send_message(db: Session, conversation_id: int, payload: schemas.MessageCreate, sender: User) -> Message:
    me = _participant(db, conversation_id, sender.id)
    conv = db.get(Conversation, conversation_id)
    if not conv.is_active:
        raise BadRequestError("Conversation is closed")

    msg = Message(conversation_id=conversation_id, sender_id=sender.id, **payload.model_dump())
    db.add(msg)
    db.flush()
    conv.last_message_at = msg.created_at
    conv.last_message_preview = payload.content[:PREVIEW_LENGTH]
    me.last_read_at = msg.created_at
    db.commit()
    db.refresh(msg)
    return msg


def list_messages(db: Session, conversation_id: int, user: User, skip: int = 0, limit: int = 100) -> List[Message]:
    _participant(db, conversation_id, user.id)
    return (
        db.query(Message)
        .filter(Message.conversation_id == conversation_id, Message.is_deleted.is_(False))
        .order_by(Message.created_at, Message.id)
        .offset(skip)
        .limit(limit)
        .all()
    )


def _own_message(db: Session, message_id: int, user: User) -> Message:
    msg = db.get(Message, message_id)
    if not msg or msg.is_deleted:
        raise NotFoundError("Message not found")
    if msg.sender_id != user.id:
        raise ForbiddenError("You can only change your own messages")
    return msg


def edit_message(db: Session, message_id: int, content: str, user: User) -> Message:
    msg = _own_message(db, message_id, user)
    msg.content = content
    msg.is_edited = True
    db.commit()
    db.refresh(msg)
    return msg


def delete_message(db: Session, message_id: int, user: User) -> None:
    msg = _own_message(db, message_id, user)
    msg.is_deleted = True
    db.commit()


def mark_read(db: Session, conversation_id: int, user: User) -> ConversationParticipant:
    p = _participant(db, conversation_id, user.id)
    p.last_read_at = utcnow()
    db.commit()
    db.refresh(p)
    return p
