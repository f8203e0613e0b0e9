"""Connection manager for account websocket clients receiving billing pushes."""
import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Set

from fastapi import WebSocket

from app.core.config import get_settings
from app.modules.billing import BillingEvent

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks sockets per account; one account may hold several open clients."""

    def __init__(self, timeout: int = 300, check_interval: int = 30) -> None:
        self.connections: Dict[str, Set[WebSocket]] = {}
        self.heartbeat_tasks: Dict[WebSocket, asyncio.Task] = {}
        self.last_heartbeat: Dict[WebSocket, datetime] = {}
        self.timeout = timedelta(seconds=timeout)
        self.check_interval = check_interval

    async def connect(self, account_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self.register(account_id, websocket)

    def register(self, account_id: str, websocket: WebSocket) -> None:
        self.connections.setdefault(account_id, set()).add(websocket)
        self.last_heartbeat[websocket] = datetime.now(timezone.utc)
        self._start_heartbeat_monitor(account_id, websocket)
        logger.info("Account %s connected for billing updates", account_id)

    async def disconnect(self, account_id: str, websocket: WebSocket) -> None:
        sockets = self.connections.get(account_id)
        if sockets is not None:
            sockets.discard(websocket)
            if not sockets:
                self.connections.pop(account_id, None)
        self.last_heartbeat.pop(websocket, None)
        task = self.heartbeat_tasks.pop(websocket, None)
        if task and task is not asyncio.current_task():
            task.cancel()
        logger.info("Account %s websocket closed", account_id)

    async def send_message(self, account_id: str, message: dict) -> int:
        """Send to every socket of the account; returns how many received it."""
        delivered = 0
        for websocket in list(self.connections.get(account_id, ())):
            try:
                await websocket.send_text(json.dumps(message, default=str))
                delivered += 1
            except Exception as exc:  # pylint: disable=broad-except
                logger.error("Sending to account %s failed: %s", account_id, exc)
                await self.disconnect(account_id, websocket)
        return delivered

    async def push_billing_event(self, event: BillingEvent) -> None:
        message = {
            "type": f"session_{event.kind}",
            "data": {"session_id": event.session_id, **event.payload},
        }
        for account_id in event.account_ids:
            await self.send_message(account_id, message)

    def is_online(self, account_id: str) -> bool:
        return bool(self.connections.get(account_id))

    def get_online_count(self) -> int:
        return len(self.connections)

    def update_heartbeat(self, websocket: WebSocket) -> None:
        self.last_heartbeat[websocket] = datetime.now(timezone.utc)

    def _start_heartbeat_monitor(self, account_id: str, websocket: WebSocket) -> None:
        task = self.heartbeat_tasks.get(websocket)
        if task:
            task.cancel()
        self.heartbeat_tasks[websocket] = asyncio.create_task(self._heartbeat_monitor(account_id, websocket))

    async def _heartbeat_monitor(self, account_id: str, websocket: WebSocket) -> None:
        try:
            while True:
                await asyncio.sleep(self.check_interval)
                last = self.last_heartbeat.get(websocket)
                if last and datetime.now(timezone.utc) - last > self.timeout:
                    logger.warning("Account %s heartbeat timed out, closing socket", account_id)
                    await self.disconnect(account_id, websocket)
                    await websocket.close(code=1001)
                    break
        except asyncio.CancelledError:
            logger.debug("Heartbeat monitor for %s cancelled", account_id)


_settings = get_settings()
manager = ConnectionManager(timeout=_settings.ws_timeout, check_interval=_settings.ws_heartbeat_interval)
