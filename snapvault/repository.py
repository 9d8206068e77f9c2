import logging
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING
from snapvault.models import ImageCreate, ImageRecord
from typing import List, Optional

logger = logging.getLogger(__name__)

def _object_id(image_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(image_id)
    except (InvalidId, TypeError):
        return None

class CatalogRepository:
    """Query and mutation boundary over the images collection.

    Driver errors are not caught here. Read-only callers decide whether to
    degrade to an empty result; write callers surface them.
    """

    def __init__(self, collection):
        self.collection = collection

    async def list_all(self) -> List[ImageRecord]:
        images = []
        cursor = self.collection.find({}).sort("created_at", DESCENDING)
        async for doc in cursor:
            images.append(ImageRecord.from_document(doc))
        return images

    async def get_by_id(self, image_id: str) -> Optional[ImageRecord]:
        oid = _object_id(image_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        return ImageRecord.from_document(doc) if doc else None

    async def get_by_slug(self, slug: str) -> Optional[ImageRecord]:
        doc = await self.collection.find_one({"slug": slug})
        return ImageRecord.from_document(doc) if doc else None

    async def save(self, image: ImageCreate) -> str:
        if await self.collection.find_one({"slug": image.slug}):
            logger.warning(f"Slug '{image.slug}' is already in use; lookups will return the first match")
        result = await self.collection.insert_one(image.model_dump())
        logger.info(f"Saved image {result.inserted_id} ({image.slug})")
        return str(result.inserted_id)

    async def delete(self, image_id: str) -> bool:
        oid = _object_id(image_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    async def increment_download_count(self, image_id: str) -> bool:
        oid = _object_id(image_id)
        if oid is None:
            return False
        # $inc runs on the server so concurrent downloads never lose an update
        result = await self.collection.update_one({"_id": oid}, {"$inc": {"download_count": 1}})
        return result.matched_count > 0
