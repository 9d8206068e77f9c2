from motor.motor_asyncio import AsyncIOMotorClient
from snapvault.config import get_settings
import logging
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConfigurationError

logger = logging.getLogger(__name__)
settings = get_settings()

DEFAULT_DB_NAME = "snapvault"
IMAGES_COLLECTION = "images"

def database_name(url: str) -> str:
    """Database name from the path of a MongoDB URL, falling back to the default."""
    rest = url.split("://", 1)[-1]
    if '/' not in rest:
        return DEFAULT_DB_NAME
    db_name = rest.split('/', 1)[1].split('?')[0]
    return db_name or DEFAULT_DB_NAME

class Database:
    def __init__(self):
        self.client = None
        self.db = None

    async def connect(self):
        try:
            self.client = AsyncIOMotorClient(settings.mongodb_url)
            db_name = database_name(settings.mongodb_url)
            self.db = self.client[db_name]
            logger.info(f"Connected to MongoDB database: {db_name}")

            await self._ensure_indexes()
        except ConfigurationError as ce:
            logger.error(f"Configuration error: {str(ce)}")
            raise
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {str(e)}")
            raise

    @property
    def images(self):
        return self.db[IMAGES_COLLECTION]

    async def close(self):
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed")

    async def _ensure_indexes(self):
        try:
            await self.images.create_index([("created_at", DESCENDING)])
            # Not unique: duplicate slugs are allowed and resolve to the first match
            await self.images.create_index([("slug", ASCENDING)])
            await self.images.create_index([("category", ASCENDING)])
            logger.info("Database indexes created")
        except Exception as e:
            logger.error(f"Failed to create indexes: {str(e)}")

# Database instance to be imported
database = Database()
