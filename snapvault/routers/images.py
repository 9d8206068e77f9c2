import logging
from fastapi import APIRouter, Depends, Query, HTTPException, Response, status
from snapvault.config import get_settings
from snapvault.dependencies import get_repository
from snapvault.models import ImagePublic, ImageRecord, PaginatedResponse, RelatedImage
from snapvault.repository import CatalogRepository
from snapvault.services.relevance import filter_images, rank_related
from typing import List, Optional

router = APIRouter()
logger = logging.getLogger(__name__)
settings = get_settings()

async def _list_or_empty(repo: CatalogRepository) -> List[ImageRecord]:
    # Browsing stays up when the catalog is unreachable; the page is just empty
    try:
        return await repo.list_all()
    except Exception as e:
        logger.error(f"Error fetching images: {str(e)}")
        return []

@router.get("/", response_model=PaginatedResponse)
@router.get("", response_model=PaginatedResponse)
async def get_images(
    q: str = Query("", description="Matches title, description or keywords"),
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(24, ge=1, le=100),
    repo: CatalogRepository = Depends(get_repository),
):
    images = filter_images(await _list_or_empty(repo), q, category)
    skip = (page - 1) * per_page
    return PaginatedResponse(
        total_count=len(images),
        page=page,
        per_page=per_page,
        items=[ImagePublic.from_record(img) for img in images[skip:skip + per_page]],
    )

@router.get("/slug/{slug}", response_model=ImagePublic)
async def get_image_by_slug(slug: str, repo: CatalogRepository = Depends(get_repository)):
    try:
        image = await repo.get_by_slug(slug)
    except Exception as e:
        logger.error(f"Error fetching image by slug: {str(e)}")
        image = None
    if image is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
    return ImagePublic.from_record(image)

@router.get("/{image_id}", response_model=ImagePublic)
async def get_image(image_id: str, repo: CatalogRepository = Depends(get_repository)):
    try:
        image = await repo.get_by_id(image_id)
    except Exception as e:
        logger.error(f"Error fetching image by ID: {str(e)}")
        image = None
    if image is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
    return ImagePublic.from_record(image)

@router.get("/{image_id}/related", response_model=List[RelatedImage])
async def get_related_images(
    image_id: str,
    limit: Optional[int] = Query(None, ge=1, le=50),
    repo: CatalogRepository = Depends(get_repository),
):
    try:
        reference = await repo.get_by_id(image_id)
    except Exception as e:
        logger.error(f"Error fetching image by ID: {str(e)}")
        reference = None
    if reference is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")

    ranked = rank_related(reference, await _list_or_empty(repo), limit or settings.related_limit)
    return [RelatedImage(image=ImagePublic.from_record(img), score=score) for img, score in ranked]

@router.post("/{image_id}/downloads", status_code=status.HTTP_204_NO_CONTENT)
async def record_download(image_id: str, repo: CatalogRepository = Depends(get_repository)):
    try:
        matched = await repo.increment_download_count(image_id)
    except Exception as e:
        logger.error(f"Failed to record download for {image_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error recording download: {str(e)}"
        )
    if not matched:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
