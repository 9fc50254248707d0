import logging

from bson import ObjectId
from pymongo import AsyncMongoClient, ASCENDING

from app.core.config import Settings
from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

def connect(settings: Settings) -> AsyncMongoClient:
    logger.info("Connecting to MongoDB database %s", settings.mongo_db)
    return AsyncMongoClient(settings.mongo_uri)

async def ensure_indexes(users_collection) -> None:
    await users_collection.create_index([("email", ASCENDING)], unique=True)

def parse_object_id(raw: str) -> ObjectId:
    """Malformed ids are a client error, never a store error."""
    if not isinstance(raw, str) or not ObjectId.is_valid(raw):
        raise ValidationError("ID inválido.", details={"id": raw})
    return ObjectId(raw)
