"""User management: roles, activation, beneficiary-creation flag, deletion."""
from __future__ import annotations

import logging
from datetime import datetime

from food_portal.errors import NotFound, ValidationError
from food_portal.models.user import User, UserOut, UserRole, UserStatus
from food_portal.rbac import ensure
from food_portal.services import events as topics
from food_portal.services.centers import safe_object_id
from food_portal.services.session import Session

logger = logging.getLogger(__name__)

MAX_PUSH_TOKENS = 5


async def list_users(session: Session) -> list[User]:
    ensure(session.principal, "view", "users")
    return await User.find_all().sort("name").to_list()


async def get_user(session: Session, user_id: str) -> User:
    ensure(session.principal, "view", "users")
    oid = safe_object_id(user_id)
    u = await User.get(oid) if oid else None
    if not u:
        raise NotFound("user", user_id)
    return u


async def _publish_update(session: Session, u: User) -> None:
    await session.events.publish(
        topics.USER_UPDATED,
        {"user": UserOut.from_document(u).model_dump(mode="json"), "actor_id": session.actor_id},
    )


async def change_role(session: Session, user_id: str, role: UserRole | str) -> User:
    u = await get_user(session, user_id)
    ensure(session.principal, "manage", "users", target=u)
    u.role = UserRole(role)
    u.updated_at = datetime.utcnow()
    await u.save()
    logger.info(f"Role of {u.email} set to {u.role.value} by {session.principal.email}")
    await _publish_update(session, u)
    return u


async def set_status(session: Session, user_id: str, status: UserStatus | str) -> User:
    """Activate or deactivate; inactive principals cannot sign in."""
    u = await get_user(session, user_id)
    ensure(session.principal, "manage", "users", target=u)
    u.status = UserStatus(status)
    u.updated_at = datetime.utcnow()
    await u.save()
    # Revoke at the identity layer too, so outstanding tokens stop verifying
    await session.provider.set_disabled(u.uid, u.status == UserStatus.INACTIVE)
    logger.info(f"User {u.email} marked {u.status.value} by {session.principal.email}")
    await _publish_update(session, u)
    return u


async def set_can_create_beneficiaries(session: Session, user_id: str, allowed: bool) -> User:
    u = await get_user(session, user_id)
    ensure(session.principal, "manage", "users", target=u)
    if u.role != UserRole.STAFF:
        raise ValidationError("can_create_beneficiaries", "Only applies to staff accounts")
    u.can_create_beneficiaries = bool(allowed)
    u.updated_at = datetime.utcnow()
    await u.save()
    await _publish_update(session, u)
    return u


async def delete_user(session: Session, user_id: str) -> None:
    """Remove the principal and its identity account."""
    u = await get_user(session, user_id)
    ensure(session.principal, "delete", "users", target=u)
    await u.delete()
    await session.provider.delete_account(u.uid)
    logger.info(f"User {u.email} deleted by {session.principal.email}")
    await session.events.publish(topics.USER_DELETED, {"user_id": user_id, "actor_id": session.actor_id})


async def register_push_token(session: Session, token: str) -> None:
    """Remember a device for push notifications, keeping the most recent few."""
    user = session.principal
    if user is None:
        raise NotFound("user", "current")
    token = (token or "").strip()
    if not token:
        raise ValidationError("token", "Device token is required")
    if token not in user.fcm_tokens:
        user.fcm_tokens.append(token)
        if len(user.fcm_tokens) > MAX_PUSH_TOKENS:
            user.fcm_tokens = user.fcm_tokens[-MAX_PUSH_TOKENS:]
        await user.save()
