from fastapi import APIRouter
from snapvault.config import get_settings
from snapvault.models import Category
from typing import List

router = APIRouter()
settings = get_settings()

@router.get("", response_model=List[Category])
async def get_categories():
    return [Category(id=name, name=name) for name in settings.categories]
