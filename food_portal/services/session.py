"""Session store: the signed-in principal plus sign-in/out and account provisioning."""
from __future__ import annotations

import logging

from pymongo.errors import ConnectionFailure, DuplicateKeyError

from food_portal.errors import AuthError, AuthErrorKind, PermissionDenied, ValidationError
from food_portal.models.account import Credential
from food_portal.models.user import User, UserRole
from food_portal.rbac import ensure
from food_portal.services import events as topics
from food_portal.services.events import EventBus
from food_portal.services.identity import IdentityProvider, validate_email_address
from food_portal.services.inflight import InFlightRegistry

logger = logging.getLogger(__name__)


class Session:
    """Explicit session context handed to every repository and workflow call.

    Carries the application-scoped event bus and in-flight registry so that
    services never reach for module globals.
    """

    def __init__(
        self,
        events: EventBus | None = None,
        inflight: InFlightRegistry | None = None,
        provider: IdentityProvider | None = None,
    ) -> None:
        self.events = events or EventBus()
        self.inflight = inflight or InFlightRegistry()
        self.provider = provider or IdentityProvider()
        self.principal: User | None = None
        self.credential: Credential | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None

    @property
    def role(self) -> UserRole | None:
        return self.principal.role if self.principal else None

    @property
    def actor_id(self) -> str | None:
        return str(self.principal.id) if self.principal else None

    async def _load_principal(self, uid: str) -> User:
        try:
            user = await User.find_one(User.uid == uid)
        except ConnectionFailure as e:
            raise AuthError(AuthErrorKind.NETWORK_FAILURE, "Unable to load your profile. Please try again.") from e
        if not user:
            raise AuthError(AuthErrorKind.ACCOUNT_NOT_FOUND, "User data not found")
        return user

    @classmethod
    async def restore(
        cls,
        token: str,
        events: EventBus | None = None,
        inflight: InFlightRegistry | None = None,
    ) -> "Session":
        """Rebuild a session from a bearer token (one per request)."""
        session = cls(events=events, inflight=inflight)
        credential = await session.provider.restore(token)
        user = await session._load_principal(credential.uid)
        if not user.is_active:
            raise AuthError(AuthErrorKind.ACCOUNT_DISABLED, "Your account has been deactivated")
        session.principal = user
        session.credential = credential
        return session

    async def sign_in(self, email: str, password: str) -> User:
        credential = await self.provider.authenticate(email, password)
        try:
            user = await self._load_principal(credential.uid)
            if not user.is_active:
                raise AuthError(AuthErrorKind.ACCOUNT_DISABLED, "Your account has been deactivated")
        except AuthError:
            # Do not leave a provider session behind for a rejected principal
            await self.provider.invalidate(credential)
            raise
        self.principal = user
        self.credential = credential
        logger.info(f"User {user.email} signed in as {user.role.value}")
        await self.events.publish(topics.SESSION_CHANGED, {"user_id": str(user.id), "signed_in": True})
        return user

    async def refresh(self, refresh_token: str) -> Credential:
        credential = await self.provider.refresh(refresh_token)
        user = await self._load_principal(credential.uid)
        if not user.is_active:
            raise AuthError(AuthErrorKind.ACCOUNT_DISABLED, "Your account has been deactivated")
        self.principal = user
        self.credential = credential
        return credential

    async def sign_out(self) -> None:
        """Clear local state; the remote revoke is best-effort."""
        credential, user = self.credential, self.principal
        self.principal = None
        self.credential = None
        if credential:
            try:
                await self.provider.invalidate(credential)
            except (AuthError, ConnectionFailure) as e:
                logger.warning(f"Remote sign-out failed, local session cleared anyway: {e}")
        if user:
            logger.info(f"User {user.email} signed out")
            await self.events.publish(topics.SESSION_CHANGED, {"user_id": str(user.id), "signed_in": False})

    async def provision_account(
        self,
        email: str,
        password: str,
        name: str,
        role: UserRole | str | None = None,
    ) -> User:
        """Create an identity account and its principal record.

        Without a signed-in principal this is self-service sign-up and the
        role is always staff.  Otherwise the caller needs ``users.create``.
        The caller's own session is never touched: the account is created
        in an isolated provider context that is thrown away afterwards.
        """
        if self.principal is None:
            role = UserRole.STAFF
        else:
            ensure(self.principal, "create", "users")
            role = UserRole(role) if role else UserRole.STAFF
            if role == UserRole.SUPER_ADMIN and self.principal.role != UserRole.SUPER_ADMIN:
                raise PermissionDenied(
                    action="create super_admin",
                    role=self.principal.role.value,
                    message="Only a super admin can create another super admin",
                )

        name = (name or "").strip()
        if not name:
            raise ValidationError("name", "Name is required")
        email = validate_email_address(email)

        try:
            existing = await User.find_one(User.email == email)
        except ConnectionFailure as e:
            raise AuthError(AuthErrorKind.NETWORK_FAILURE, "Unable to reach the user directory") from e
        if existing:
            raise AuthError(AuthErrorKind.EMAIL_IN_USE, "Email already exists", field="email")

        snapshot = (self.principal, self.credential, self.provider.current)
        try:
            async with self.provider.isolated() as scoped:
                credential = await scoped.create_credential(email, password)
                user = User(uid=credential.uid, email=email, name=name, role=role)
                try:
                    await user.insert()
                except Exception as e:
                    await scoped.delete_account(credential.uid)
                    if isinstance(e, DuplicateKeyError):
                        raise AuthError(AuthErrorKind.EMAIL_IN_USE, "Email already exists", field="email") from e
                    raise
        finally:
            self.principal, self.credential, self.provider.current = snapshot

        logger.info(f"Provisioned {role.value} account {email} (by {self.principal.email if self.principal else 'sign-up'})")
        await self.events.publish(
            topics.USER_CREATED,
            {"user_id": str(user.id), "email": email, "role": role.value, "actor_id": self.actor_id},
        )
        return user
