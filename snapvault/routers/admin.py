import os
import aiofiles
import logging
import tempfile
from fastapi import APIRouter, UploadFile, Form, File, Depends, HTTPException, Response, status
from pydantic import ValidationError
from snapvault.config import get_settings
from snapvault.dependencies import get_repository
from snapvault.models import ImageCreate, ImageRecord, MetadataSuggestion, now_ms
from snapvault.repository import CatalogRepository
from snapvault.services import suggestions
from snapvault.services.cloudinary import AssetHostError, destroy_asset, parse_credentials, upload_asset
from snapvault.utils.security import verify_api_key
from typing import List, Optional

router = APIRouter(dependencies=[Depends(verify_api_key)])
logger = logging.getLogger(__name__)
settings = get_settings()

def parse_keywords(raw: str) -> List[str]:
    return [k.strip() for k in raw.split(",") if k.strip()] if raw else []

async def _read_image(file: UploadFile) -> bytes:
    if file.content_type not in settings.allowed_content_types:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Only JPG, JPEG, PNG are allowed."
        )
    content = await file.read()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please select an image first"
        )
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File size exceeds {settings.max_upload_bytes // (1024 * 1024)} MB limit"
        )
    return content

@router.post("/analyze", response_model=Optional[MetadataSuggestion])
async def analyze_image(file: UploadFile = File(...)):
    content = await _read_image(file)
    try:
        return await suggestions.suggest_metadata(content, file.content_type)
    except Exception as e:
        # Suggestions are advisory; the admin can still fill the form by hand
        logger.warning(f"AI analysis failed: {str(e)}")
        return None

@router.post("", response_model=ImageRecord, status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    title: str = Form(...),
    description: str = Form(...),
    category: str = Form(...),
    keywords: str = Form(""),
    slug: str = Form(""),
    author: str = Form(""),
    upload_credentials: Optional[str] = Form(None),
    repo: CatalogRepository = Depends(get_repository),
):
    if category not in settings.categories:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown category: {category}"
        )
    if not title.strip() or not description.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title and description are required"
        )
    try:
        credentials = parse_credentials(upload_credentials)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    content = await _read_image(file)

    file_ext = os.path.splitext(file.filename or "")[1] or ".jpg"
    fd, temp_file_path = tempfile.mkstemp(suffix=file_ext)
    os.close(fd)

    try:
        async with aiofiles.open(temp_file_path, "wb") as temp_file:
            await temp_file.write(content)

        asset = await upload_asset(temp_file_path, credentials=credentials)
        created_at = now_ms()
        image = ImageCreate(
            **asset,
            title=title,
            description=description,
            category=category,
            keywords=parse_keywords(keywords),
            slug=slug.strip() or f"img-{created_at}",
            author=author,
            created_at=created_at,
        )
        image_id = await repo.save(image)
        return ImageRecord(id=image_id, **image.model_dump())
    except AssetHostError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Upload failed: {str(e)}"
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Upload failed: {str(e)}"
        )
    except Exception as e:
        logger.exception(f"Image upload failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Upload failed: {str(e)}"
        )
    finally:
        if os.path.exists(temp_file_path):
            os.remove(temp_file_path)
            logger.debug(f"Removed temp file: {temp_file_path}")

@router.delete("/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_image(image_id: str, repo: CatalogRepository = Depends(get_repository)):
    try:
        image = await repo.get_by_id(image_id)
        deleted = image is not None and await repo.delete(image_id)
    except Exception as e:
        logger.exception(f"Image delete failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Delete failed: {str(e)}"
        )
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")

    if image.delete_url:
        try:
            await destroy_asset(image.delete_url)
        except AssetHostError as e:
            logger.warning(f"Record {image_id} deleted but asset removal failed: {str(e)}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
