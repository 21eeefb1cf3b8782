# beneficiary_api/services/db.py
# Centralized MongoDB client access, shared by the app lifespan and the scripts.
from pymongo import AsyncMongoClient
from typing import Optional
from beanie import init_beanie

from beneficiary_api.configs import env
from beneficiary_api.models import DOCUMENT_MODELS

db_client: Optional[AsyncMongoClient] = None


async def get_database_client() -> AsyncMongoClient:
    """Returns the MongoDB async client."""
    global db_client
    if db_client is None:
        db_client = AsyncMongoClient(env.get("MONGO_URI"))
    return db_client


async def init_db() -> AsyncMongoClient:
    """Connects and initializes Beanie with every document model."""
    client = await get_database_client()
    await init_beanie(database=client[env.get("MONGO_DB")], document_models=DOCUMENT_MODELS)
    return client


async def close_db() -> None:
    global db_client
    if db_client is not None:
        await db_client.close()
        db_client = None
