"""Seed the configured super admin if not present."""
import logging

from food_portal.config import settings
from food_portal.models.account import AuthAccount
from food_portal.models.user import User, UserRole
from food_portal.services.identity import IdentityProvider

logger = logging.getLogger(__name__)


async def seed_super_admin():
    email = settings.super_admin_email.strip().lower()
    existing = await User.find_one(User.email == email)
    if existing:
        return
    account = await AuthAccount.find_one(AuthAccount.email == email)
    if account:
        # Left behind by an interrupted earlier run; keep its password
        logger.warning(f"Identity account for {email} has no principal, linking it")
        uid = str(account.id)
    else:
        provider = IdentityProvider()
        async with provider.isolated() as scoped:
            credential = await scoped.create_credential(email, settings.super_admin_password)
        uid = credential.uid
    await User(
        uid=uid,
        email=email,
        name=settings.super_admin_name,
        role=UserRole.SUPER_ADMIN,
    ).insert()
    logger.info(f"Seeded super admin {email}")
