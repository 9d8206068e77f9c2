import cloudinary
import cloudinary.uploader
import cloudinary.utils
from fastapi.concurrency import run_in_threadpool
from snapvault.config import get_settings
from typing import Optional, Tuple
import logging

logger = logging.getLogger(__name__)
settings = get_settings()

THUMBNAIL_SIZE = 400

class AssetHostError(Exception):
    """Raised when Cloudinary rejects an upload or a delete."""

def configure_cloudinary():
    cloudinary.config(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        secure=True
    )
    logger.info("Cloudinary configured successfully")

def thumbnail_url(public_id: str) -> str:
    url, _ = cloudinary.utils.cloudinary_url(
        public_id,
        width=THUMBNAIL_SIZE,
        height=THUMBNAIL_SIZE,
        crop="fill",
        quality="auto",
        fetch_format="auto",
        secure=True,
    )
    return url

def parse_credentials(raw: Optional[str]) -> Optional[Tuple[str, str]]:
    """Split an ``api_key:api_secret`` override. Blank means use the configured account."""
    raw = (raw or "").strip()
    if not raw:
        return None
    api_key, sep, api_secret = raw.partition(":")
    if not sep or not api_key.strip() or not api_secret.strip():
        raise ValueError("Upload credentials must be given as api_key:api_secret")
    return api_key.strip(), api_secret.strip()

async def upload_asset(file_path: str, credentials: Optional[Tuple[str, str]] = None) -> dict:
    """Upload a local image and return its url, thumbnail url and deletion credential."""
    options = {
        "folder": settings.cloudinary_folder,
        "resource_type": "image",
        "allowed_formats": ["jpg", "jpeg", "png"],
        "transformation": [{"quality": "auto", "fetch_format": "auto"}],
    }
    if credentials:
        options["api_key"], options["api_secret"] = credentials
    try:
        result = await run_in_threadpool(cloudinary.uploader.upload, file_path, **options)
    except Exception as e:
        logger.error(f"Cloudinary upload failed: {str(e)}")
        raise AssetHostError(str(e)) from e

    public_id = result.get("public_id")
    if not result.get("secure_url") or not public_id:
        raise AssetHostError("Cloudinary response did not include a URL")
    return {
        "url": result["secure_url"],
        "thumbnail_url": thumbnail_url(public_id),
        "delete_url": public_id,
    }

async def destroy_asset(public_id: str) -> None:
    try:
        result = await run_in_threadpool(cloudinary.uploader.destroy, public_id, resource_type="image")
    except Exception as e:
        logger.error(f"Cloudinary delete failed for {public_id}: {str(e)}")
        raise AssetHostError(str(e)) from e
    if result.get("result") not in ("ok", "not found"):
        raise AssetHostError(f"Cloudinary delete returned {result.get('result')!r}")
