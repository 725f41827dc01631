"""Firebase Cloud Messaging: push the outcome of an action to the user who did it."""
import logging
from typing import Any, Callable, Optional

import firebase_admin
from beanie import PydanticObjectId
from firebase_admin import credentials, messaging

from food_portal.config import settings
from food_portal.models.user import User
from food_portal.services import events as topics
from food_portal.services.events import EventBus

logger = logging.getLogger(__name__)

_firebase_app = None


def _get_firebase_app():
    global _firebase_app
    if _firebase_app is not None:
        return _firebase_app

    if not settings.firebase_credentials_path:
        logger.warning("FIREBASE_CREDENTIALS_PATH not set. FCM will be disabled.")
        return None

    try:
        cred = credentials.Certificate(settings.firebase_credentials_path)
        _firebase_app = firebase_admin.initialize_app(cred)
        return _firebase_app
    except Exception as e:
        logger.error(f"Failed to initialize Firebase app: {e}")
        return None


def _beneficiary_created(p: dict[str, Any]) -> tuple[str, str]:
    b = p["beneficiary"]
    return "Beneficiary registered", f"{b['name']} ({b['cnic']}) registered successfully"


def _beneficiary_updated(p: dict[str, Any]) -> tuple[str, str]:
    return "Beneficiary updated", f"{p['beneficiary']['name']} updated successfully"


def _status_changed(p: dict[str, Any]) -> tuple[str, str]:
    b = p["beneficiary"]
    return f"Beneficiary {b['status']}", f"{b['name']} ({b['cnic']}) {b['status']} successfully"


def _schedule_created(p: dict[str, Any]) -> tuple[str, str]:
    s = p["schedule"]
    return "Schedule created", f"Schedule created with token: {s['token']}"


def _schedule_distributed(p: dict[str, Any]) -> tuple[str, str]:
    return "Package distributed", f"Package {p['schedule']['token']} marked as distributed"


def _center_changed(verb: str) -> Callable[[dict[str, Any]], tuple[str, str]]:
    def build(p: dict[str, Any]) -> tuple[str, str]:
        return f"Center {verb}", f"{p['center']['name']} {verb}"

    return build


def _user_created(p: dict[str, Any]) -> tuple[str, str]:
    return "Account created", f"{p['role']} account {p['email']} created successfully"


MESSAGES: dict[str, Callable[[dict[str, Any]], tuple[str, str]]] = {
    topics.BENEFICIARY_CREATED: _beneficiary_created,
    topics.BENEFICIARY_UPDATED: _beneficiary_updated,
    topics.BENEFICIARY_STATUS_CHANGED: _status_changed,
    topics.SCHEDULE_CREATED: _schedule_created,
    topics.SCHEDULE_DISTRIBUTED: _schedule_distributed,
    topics.CENTER_CREATED: _center_changed("added"),
    topics.CENTER_UPDATED: _center_changed("updated"),
    topics.CENTER_DELETED: _center_changed("deleted"),
    topics.USER_CREATED: _user_created,
}


async def _actor_tokens(actor_id: Optional[str]) -> list[str]:
    if not actor_id or not PydanticObjectId.is_valid(actor_id):
        return []
    actor = await User.get(PydanticObjectId(actor_id))
    return list(actor.fcm_tokens) if actor else []


async def send_outcome_push(topic: str, payload: dict[str, Any]) -> None:
    """Event handler: notify the acting user's devices. Never raises."""
    build = MESSAGES.get(topic)
    if build is None:
        return
    app = _get_firebase_app()
    if not app:
        return

    tokens = await _actor_tokens(payload.get("actor_id"))
    if not tokens:
        return

    title, body = build(payload)
    message = messaging.MulticastMessage(
        notification=messaging.Notification(title=title, body=body),
        data={"type": topic},
        tokens=tokens,
    )
    try:
        response = messaging.send_each_for_multicast(message)
        logger.info(f"Sent {topic} notification to {response.success_count} devices. Errors: {response.failure_count}")
    except Exception as e:
        logger.error(f"FCM send failed for {topic}: {e}")


def register(bus: EventBus) -> None:
    for topic in MESSAGES:
        bus.subscribe(topic, send_outcome_push)
