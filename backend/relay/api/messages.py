# relay/api/messages.py

from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
from pydantic import BaseModel
from relay.infra.postgres import get_db
from relay.services.relay_service import submit_message, fetch_messages, purge_messages
from relay.utils.clock import format_server_instant

router = APIRouter(prefix="/api")


class SendMessageSchema(BaseModel):
    # Optional so a missing field is our 400, not FastAPI's 422
    senderKey: Optional[str] = None
    recipientKey: Optional[str] = None
    encryptedData: Optional[str] = None
    timestamp: Optional[str] = None


@router.post("/message")
def send_message(
    payload: SendMessageSchema,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    receipt = submit_message(
        db,
        payload.senderKey,
        payload.recipientKey,
        payload.encryptedData,
        payload.timestamp,
        schedule=background_tasks.add_task,
    )

    return {
        "success": True,
        "messageId": receipt.message_id,
        "timestamp": format_server_instant(receipt.server_instant)
    }


@router.get("/messages/{device_key}")
def receive_messages(device_key: str, db: Session = Depends(get_db)):
    return fetch_messages(db, device_key)


@router.delete("/messages/{device_key}")
def delete_messages(device_key: str, db: Session = Depends(get_db)):
    purge_messages(db, device_key)
    return {"success": True, "message": "Messages deleted"}
