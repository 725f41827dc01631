"""Identity provider: credential storage, password checks and JWT issuance.

A provider instance behaves like a hosted auth client: it has a *current*
credential, and creating a new account signs that account in on the same
instance.  Anything that must create accounts without disturbing an active
sign-in goes through :meth:`IdentityProvider.isolated`, which hands out a
throwaway instance and discards it on every exit path.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator

import bcrypt
from beanie import PydanticObjectId
from jose import JWTError, jwt
from pydantic import EmailStr, TypeAdapter
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from food_portal.config import settings
from food_portal.errors import AuthError, AuthErrorKind, ValidationError
from food_portal.models.account import AuthAccount, Credential

logger = logging.getLogger(__name__)


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def create_access_token(subject: str, epoch: int) -> str:
    expire = datetime.utcnow() + timedelta(minutes=settings.jwt_access_token_expire_minutes)
    to_encode = {"sub": subject, "epoch": epoch, "exp": expire, "type": "access"}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_refresh_token(subject: str, epoch: int) -> str:
    expire = datetime.utcnow() + timedelta(days=settings.jwt_refresh_token_expire_days)
    to_encode = {"sub": subject, "epoch": epoch, "exp": expire, "type": "refresh"}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _network_failure(exc: Exception) -> AuthError:
    logger.error(f"Identity store unreachable: {exc}")
    return AuthError(
        AuthErrorKind.NETWORK_FAILURE,
        "Unable to reach the authentication service. Please try again.",
    )


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


_email_adapter = TypeAdapter(EmailStr)


def validate_email_address(email: str) -> str:
    """Normalized address, or ``ValidationError`` on the email field."""
    email = _normalize_email(email)
    try:
        _email_adapter.validate_python(email)
    except ValueError:
        raise ValidationError("email", "Please enter a valid email address")
    return email


class IdentityProvider:
    def __init__(self) -> None:
        self.current: Credential | None = None
        self._discarded = False

    def _issue(self, account: AuthAccount) -> Credential:
        uid = str(account.id)
        return Credential(
            uid=uid,
            email=account.email,
            access_token=create_access_token(uid, account.session_epoch),
            refresh_token=create_refresh_token(uid, account.session_epoch),
            epoch=account.session_epoch,
        )

    def _check_usable(self) -> None:
        if self._discarded:
            raise RuntimeError("Isolated identity context used after it was discarded")

    async def authenticate(self, email: str, password: str) -> Credential:
        self._check_usable()
        email = _normalize_email(email)
        if not email:
            raise AuthError(AuthErrorKind.INVALID_CREDENTIALS, "Email is required", field="email")
        if not password:
            raise AuthError(AuthErrorKind.INVALID_CREDENTIALS, "Password is required", field="password")
        try:
            account = await AuthAccount.find_one(AuthAccount.email == email)
        except ConnectionFailure as e:
            raise _network_failure(e) from e
        if not account:
            raise AuthError(AuthErrorKind.ACCOUNT_NOT_FOUND, "No account found with this email", field="email")
        if not verify_password(password, account.hashed_password):
            raise AuthError(AuthErrorKind.INVALID_CREDENTIALS, "Incorrect password", field="password")
        if account.disabled:
            raise AuthError(AuthErrorKind.ACCOUNT_DISABLED, "This account has been disabled", field="email")
        account.last_sign_in_at = datetime.utcnow()
        try:
            await account.save()
        except ConnectionFailure as e:
            raise _network_failure(e) from e
        self.current = self._issue(account)
        return self.current

    async def create_credential(self, email: str, password: str) -> Credential:
        """Create an account and make it this context's current credential."""
        self._check_usable()
        email = validate_email_address(email)
        if len(password or "") < settings.min_password_length:
            raise AuthError(
                AuthErrorKind.WEAK_PASSWORD,
                f"Password must be at least {settings.min_password_length} characters",
                field="password",
            )
        try:
            if await AuthAccount.find_one(AuthAccount.email == email):
                raise AuthError(AuthErrorKind.EMAIL_IN_USE, "Email already exists", field="email")
            account = AuthAccount(email=email, hashed_password=get_password_hash(password))
            await account.insert()
        except DuplicateKeyError as e:
            raise AuthError(AuthErrorKind.EMAIL_IN_USE, "Email already exists", field="email") from e
        except ConnectionFailure as e:
            raise _network_failure(e) from e
        self.current = self._issue(account)
        return self.current

    async def invalidate(self, credential: Credential) -> None:
        """Revoke every token issued for the credential's account so far."""
        if self.current and self.current.uid == credential.uid:
            self.current = None
        try:
            account = await AuthAccount.get(PydanticObjectId(credential.uid))
            if account and account.session_epoch == credential.epoch:
                account.session_epoch += 1
                await account.save()
        except ConnectionFailure as e:
            raise _network_failure(e) from e

    async def verify(self, token: str, token_type: str = "access") -> AuthAccount:
        """Return the account a token belongs to, or raise ``AuthError``."""
        try:
            payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        except JWTError:
            raise AuthError(AuthErrorKind.INVALID_CREDENTIALS, "Invalid or expired token")
        if payload.get("type") != token_type:
            raise AuthError(AuthErrorKind.INVALID_CREDENTIALS, "Invalid token type")
        uid = payload.get("sub")
        if not uid or not PydanticObjectId.is_valid(uid):
            raise AuthError(AuthErrorKind.INVALID_CREDENTIALS, "Invalid token")
        try:
            account = await AuthAccount.get(PydanticObjectId(uid))
        except ConnectionFailure as e:
            raise _network_failure(e) from e
        if not account:
            raise AuthError(AuthErrorKind.ACCOUNT_NOT_FOUND, "Account no longer exists")
        if account.disabled:
            raise AuthError(AuthErrorKind.ACCOUNT_DISABLED, "This account has been disabled")
        if payload.get("epoch", 0) != account.session_epoch:
            raise AuthError(AuthErrorKind.INVALID_CREDENTIALS, "Session has been signed out")
        return account

    async def restore(self, token: str) -> Credential:
        """Adopt an existing access token as this context's current credential."""
        account = await self.verify(token)
        self.current = Credential(
            uid=str(account.id),
            email=account.email,
            access_token=token,
            refresh_token="",
            epoch=account.session_epoch,
        )
        return self.current

    async def refresh(self, refresh_token: str) -> Credential:
        account = await self.verify(refresh_token, token_type="refresh")
        self.current = self._issue(account)
        return self.current

    async def set_disabled(self, uid: str, disabled: bool) -> None:
        try:
            account = await AuthAccount.get(PydanticObjectId(uid))
            if account and account.disabled != disabled:
                account.disabled = disabled
                await account.save()
        except ConnectionFailure as e:
            raise _network_failure(e) from e

    async def delete_account(self, uid: str) -> None:
        if self.current and self.current.uid == uid:
            self.current = None
        try:
            account = await AuthAccount.get(PydanticObjectId(uid))
            if account:
                await account.delete()
        except ConnectionFailure as e:
            raise _network_failure(e) from e

    @asynccontextmanager
    async def isolated(self) -> AsyncIterator["IdentityProvider"]:
        """Yield a disposable provider context that never touches ``self``."""
        scoped = IdentityProvider()
        try:
            yield scoped
        finally:
            scoped.current = None
            scoped._discarded = True
