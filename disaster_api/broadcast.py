"""
Live update broadcaster
=======================
WebSocket connection manager.  Every connected client receives every event
as ``{"type": <event>, "data": <payload>}``; there is no filtering, replay
or delivery confirmation.

Events
------
- disaster_updated      : full record, or ``{"deleted": <id>}``
- social_media_updated  : list of mock feed posts
"""

import asyncio
import logging
from typing import Any, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)

DISASTER_UPDATED = "disaster_updated"
SOCIAL_MEDIA_UPDATED = "social_media_updated"


class WSManager:
    """WebSocket connection manager for real-time updates."""

    def __init__(self):
        self.active: Set[WebSocket] = set()
        self._pending: Set[asyncio.Task] = set()

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self.active.add(ws)
        logger.info(f"🔌 Socket connected ({len(self.active)} active)")

    def disconnect(self, ws: WebSocket):
        self.active.discard(ws)
        logger.info(f"Socket disconnected ({len(self.active)} active)")

    async def broadcast(self, event: str, payload: Any):
        message = {"type": event, "data": payload}
        dead: Set[WebSocket] = set()
        for ws in list(self.active):
            try:
                await ws.send_json(message)
            except Exception as e:
                logger.debug(f"Dropping subscriber after send failure: {e}")
                dead.add(ws)
        self.active -= dead

    def publish(self, event: str, payload: Any):
        """Schedule a broadcast on the running loop and return immediately."""
        task = asyncio.get_running_loop().create_task(self.broadcast(event, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def close(self):
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        for ws in list(self.active):
            try:
                await ws.close()
            except Exception as e:
                logger.debug(f"Error closing socket: {e}")
        self.active.clear()
