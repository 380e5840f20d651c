"""
Push-based change subscriptions over Supabase Realtime.

``ChangeFeed.subscribe`` registers a postgres_changes listener on one table and
returns a ``ChangeSubscription`` handle; ``cancel()`` removes the channel.
Callbacks run on the event loop in the order the realtime socket delivers
them. Nothing is guaranteed about ordering across two subscriptions.
"""

import asyncio
import logging
import uuid
from typing import Any, Callable, Dict

from fastapi import WebSocket, status
from fastapi.encoders import jsonable_encoder
from starlette.concurrency import run_in_threadpool
from supabase import AsyncClient, Client

from app.core.errors import GovernanceError
from app.core.results import ok
from app.database.supabase_client import get_async_supabase
from app.modules.auth.service import AuthService

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Dict[str, Any]], None]


class ChangeSubscription:
    def __init__(self, client: AsyncClient, channel: Any, table: str):
        self._client = client
        self._channel = channel
        self.table = table
        self.active = True

    async def cancel(self) -> None:
        """Stop delivery; safe to call more than once"""
        if not self.active:
            return
        self.active = False
        await self._client.remove_channel(self._channel)
        logger.debug(f"Unsubscribed from {self.table} changes")


class ChangeFeed:
    def __init__(self, client: AsyncClient, schema: str = "public"):
        self.client = client
        self.schema = schema

    async def subscribe(self, table: str, callback: ChangeCallback) -> ChangeSubscription:
        channel = self.client.channel(f"{table}-changes-{uuid.uuid4().hex[:8]}")
        subscription = ChangeSubscription(self.client, channel, table)

        def dispatch(payload: Dict[str, Any]) -> None:
            # Events already queued on the socket may still arrive after cancel()
            if subscription.active:
                callback(payload)

        channel.on_postgres_changes("*", callback=dispatch, schema=self.schema, table=table)
        await channel.subscribe()
        logger.debug(f"Subscribed to {table} changes")
        return subscription


async def get_change_feed() -> ChangeFeed:
    return ChangeFeed(await get_async_supabase())


async def authenticate_websocket(websocket: WebSocket, token: str, supabase: Client) -> bool:
    """Validate the ?token= bearer; closes the socket and returns False when invalid"""
    try:
        await run_in_threadpool(AuthService(supabase).get_current_user, token)
        return True
    except GovernanceError as e:
        logger.info(f"Rejected stream connection: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return False


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def stream_listing(websocket: WebSocket, feed: ChangeFeed, table: str, snapshot: Callable[[], Any]) -> None:
    """
    Send ``snapshot()`` once, then again after every change on ``table``,
    until the client disconnects. Bursts of changes collapse into one send.
    """
    await websocket.accept()
    changes: asyncio.Queue = asyncio.Queue()
    subscription = await feed.subscribe(table, changes.put_nowait)
    disconnect = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        data = await run_in_threadpool(snapshot)
        await websocket.send_json(jsonable_encoder(ok(data)))
        while True:
            change = asyncio.create_task(changes.get())
            done, _ = await asyncio.wait({disconnect, change}, return_when=asyncio.FIRST_COMPLETED)
            if disconnect in done:
                change.cancel()
                break
            while not changes.empty():
                changes.get_nowait()
            data = await run_in_threadpool(snapshot)
            await websocket.send_json(jsonable_encoder(ok(data)))
    finally:
        disconnect.cancel()
        await subscription.cancel()
