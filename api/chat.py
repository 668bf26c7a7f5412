from typing import Optional

from fastapi import APIRouter, Depends

import crud
import schemas
from dependencies import get_current_admin, get_db, optional_token, resolve_user_id
from errors import NotFound, ValidationError

router = APIRouter(prefix="/api/chat", tags=["chat"])

ADMIN_ID = "admin"


def group_conversations(messages):
    """Fold newest-first messages into per-conversation summaries."""
    conversations = {}
    for msg in messages:
        conv = conversations.get(msg["conversation_id"])
        if conv is None:
            conv = {
                "conversation_id": msg["conversation_id"],
                "customer_id": msg["recipient_id"] if msg["sender_id"] == ADMIN_ID else msg["sender_id"],
                "customer_name": msg["sender_name"],
                "last_message": msg["message"],
                "last_message_time": msg["timestamp"],
                "unread_count": 0,
                "messages": [],
            }
            conversations[msg["conversation_id"]] = conv
        conv["messages"].append(msg)
        if not msg["is_read"] and msg["recipient_id"] == ADMIN_ID:
            conv["unread_count"] += 1

    return sorted(conversations.values(), key=lambda c: c["last_message_time"], reverse=True)


@router.post("/send", response_model=schemas.MessageSentResponse, status_code=201)
async def send_message(
    body: schemas.MessageCreate,
    db=Depends(get_db),
    claims: Optional[dict] = Depends(optional_token),
):
    sender_id = body.sender_id or resolve_user_id(claims, None)
    if not sender_id:
        raise ValidationError("Missing required fields")
    msg = await crud.create_message(db, body.model_copy(update={"sender_id": sender_id}))
    return {
        "success": True,
        "message": "Message sent successfully",
        "message_id": msg["id"],
        "conversation_id": msg["conversation_id"],
    }


@router.get("/conversation/{conversation_id}", response_model=schemas.ConversationResponse)
async def read_conversation(conversation_id: str, db=Depends(get_db)):
    messages = await crud.get_conversation(db, conversation_id)
    return {
        "success": True,
        "conversation_id": conversation_id,
        "message_count": len(messages),
        "messages": messages,
    }


# ========== ADMIN ROUTES ==========
@router.get("/admin/conversations", response_model=schemas.ConversationListResponse)
async def read_all_conversations(db=Depends(get_db), current_admin: dict = Depends(get_current_admin)):
    conversations = group_conversations(await crud.get_all_messages(db))
    return {"success": True, "count": len(conversations), "conversations": conversations}


@router.put("/{message_id}/read", response_model=schemas.Envelope)
async def mark_as_read(message_id: int, db=Depends(get_db), current_admin: dict = Depends(get_current_admin)):
    if await crud.mark_message_read(db, message_id) is None:
        raise NotFound("Message not found")
    return {"success": True, "message": "Message marked as read"}


@router.delete("/{message_id}", response_model=schemas.Envelope)
async def delete_message(message_id: int, db=Depends(get_db), current_admin: dict = Depends(get_current_admin)):
    if not await crud.delete_message(db, message_id):
        raise NotFound("Message not found")
    return {"success": True, "message": "Message deleted successfully"}
