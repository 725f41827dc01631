"""MongoDB connection and Beanie document registration."""
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from food_portal.config import settings
from food_portal.models import DOCUMENT_MODELS


_client = None


async def init_models(database) -> None:
    """Register every document model against an already-open database."""
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)


async def db_startup():
    """Connect to MongoDB and initialize Beanie ODM."""
    global _client
    _client = AsyncIOMotorClient(settings.mongodb_url)
    await init_models(_client[settings.mongodb_db_name])


async def db_shutdown():
    """Close MongoDB connection."""
    global _client
    if _client:
        _client.close()
        _client = None
