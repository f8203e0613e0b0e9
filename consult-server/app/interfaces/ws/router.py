"""WebSocket endpoint pushing billing state changes to participants."""
import json
import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect

from app.core.security import decode_access_token
from app.interfaces.ws.manager import manager

logger = logging.getLogger(__name__)

router = APIRouter()

MESSAGE_HEARTBEAT = "heartbeat"
MESSAGE_HEARTBEAT_ACK = "heartbeat_ack"
MESSAGE_ERROR = "error"


@router.websocket("/ws/billing")
async def billing_socket(websocket: WebSocket, token: str = Query(...)):
    try:
        account_id = decode_access_token(token).account_id
    except HTTPException as exc:
        logger.error("WebSocket token invalid: %s", exc.detail)
        await websocket.close(code=1008, reason="Invalid token")
        return

    await manager.connect(account_id, websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_text(json.dumps({"type": MESSAGE_ERROR, "data": {"detail": "Invalid JSON"}}))
                continue
            if isinstance(message, dict) and message.get("type") == MESSAGE_HEARTBEAT:
                manager.update_heartbeat(websocket)
                await websocket.send_text(json.dumps({"type": MESSAGE_HEARTBEAT_ACK}))
    except WebSocketDisconnect:
        logger.info("Account %s disconnected", account_id)
    finally:
        await manager.disconnect(account_id, websocket)
