"""Live change feed over a websocket, so open dashboards refresh themselves."""
import asyncio
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from food_portal.errors import AuthError
from food_portal.models.user import User
from food_portal.rbac import can
from food_portal.services import events as topics
from food_portal.services.session import Session

logger = logging.getLogger(__name__)

router = APIRouter()

# Topic prefix -> resource the subscriber must be allowed to view
TOPIC_RESOURCES = {
    "beneficiary.": "beneficiaries",
    "schedule.": "schedules",
    "center.": "centers",
    "user.": "users",
}


def visible_to(principal: User | None, topic: str, payload: dict[str, Any]) -> bool:
    """Whether an event may be forwarded to this principal's feed."""
    if principal is None:
        return False
    if topic == topics.SESSION_CHANGED:
        return payload.get("user_id") == str(principal.id)
    for prefix, resource in TOPIC_RESOURCES.items():
        if topic.startswith(prefix):
            return can(principal, "view", resource)
    return False


async def _forward(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        await websocket.send_json(await queue.get())


@router.websocket("/ws")
async def event_stream(websocket: WebSocket, token: str = ""):
    """Authenticate with ``?token=<access token>`` then receive the changes this user may view."""
    app = websocket.app
    try:
        session = await Session.restore(token, events=app.state.events, inflight=app.state.inflight)
    except AuthError as e:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.message)
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def enqueue(topic: str, payload: dict[str, Any]) -> None:
        if not visible_to(session.principal, topic, payload):
            return
        # Publishers may run on another loop
        loop.call_soon_threadsafe(queue.put_nowait, {"topic": topic, "payload": payload})

    unsubscribe = app.state.events.subscribe(topics.WILDCARD, enqueue)
    logger.info(f"Event stream opened for {session.principal.email}")
    try:
        await websocket.accept()
        sender = asyncio.create_task(_forward(websocket, queue))
        try:
            # Clients only listen; reading just notices the disconnect
            while (await websocket.receive())["type"] != "websocket.disconnect":
                pass
        finally:
            sender.cancel()
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        logger.info(f"Event stream closed for {session.principal.email}")
