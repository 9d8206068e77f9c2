import httpx
import os
import logging
from typing import List, Optional
from urllib.parse import quote
from pathlib import Path
from datetime import datetime, timedelta
from dotenv import load_dotenv

# Load environment variables from project root
project_root = Path(__file__).parent.parent
env_path = project_root / '.env'
load_dotenv(env_path)

logger = logging.getLogger(__name__)

BACKEND_URL = os.getenv("VIEWER_BACKEND_URL", "http://127.0.0.1:8000/api/v1")
REQUEST_TIMEOUT = 30.0

# ---- Cache storage ----
_cache = {
    "categories": {"data": None, "timestamp": None},
}
CACHE_DURATION = timedelta(minutes=5)


def _client(**kwargs) -> httpx.AsyncClient:
    return httpx.AsyncClient(follow_redirects=True, timeout=REQUEST_TIMEOUT, **kwargs)


def _get_headers(token: Optional[str] = None):
    headers = {}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def error_detail(response: Optional[httpx.Response]) -> str:
    """Best human-readable error text from a failed API response."""
    if response is None:
        return "No response"
    try:
        detail = response.json().get("detail")
    except (ValueError, AttributeError):
        detail = None
    return str(detail) if detail else f"{response.status_code} {response.text}"


async def get_categories():
    now = datetime.now()
    if (
        _cache["categories"]["data"]
        and _cache["categories"]["timestamp"]
        and now - _cache["categories"]["timestamp"] < CACHE_DURATION
    ):
        return _cache["categories"]["data"]

    try:
        async with _client() as client:
            response = await client.get(f"{BACKEND_URL}/categories")
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch categories: {e}")
        return _cache["categories"]["data"]
    if response.status_code != 200:
        logger.error(f"Failed to fetch categories: {response.status_code} - {response.text}")
        # fallback to last cached
        return _cache["categories"]["data"]

    data = response.json()
    _cache["categories"]["data"] = data
    _cache["categories"]["timestamp"] = now
    return data


async def get_images(query: str = "", category: Optional[str] = None, page: int = 1, per_page: int = 24):
    params = {"q": query, "page": page, "per_page": per_page}
    if category:
        params["category"] = category
    try:
        async with _client() as client:
            response = await client.get(f"{BACKEND_URL}/images", params=params)
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch images: {e}")
        return None
    if response.status_code != 200:
        logger.error(f"Failed to fetch images: {response.status_code} - {response.text}")
        return None
    return response.json()


async def _get_image(path: str) -> Optional[dict]:
    try:
        async with _client() as client:
            response = await client.get(f"{BACKEND_URL}/images/{path}")
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch image {path}: {e}")
        return None
    if response.status_code == 404:
        return None
    if response.status_code != 200:
        logger.error(f"Failed to fetch image {path}: {response.status_code} - {response.text}")
        return None
    return response.json()


async def get_image(image_id: str) -> Optional[dict]:
    return await _get_image(image_id)


async def get_image_by_slug(slug: str) -> Optional[dict]:
    return await _get_image(f"slug/{quote(slug, safe='')}")


async def get_related(image_id: str, limit: Optional[int] = None) -> List[dict]:
    params = {"limit": limit} if limit else None
    try:
        async with _client() as client:
            response = await client.get(f"{BACKEND_URL}/images/{image_id}/related", params=params)
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch related images: {e}")
        return []
    if response.status_code != 200:
        logger.error(f"Failed to fetch related images: {response.status_code} - {response.text}")
        return []
    return response.json()


async def record_download(image_id: str) -> bool:
    try:
        async with _client() as client:
            response = await client.post(f"{BACKEND_URL}/images/{image_id}/downloads")
    except httpx.HTTPError as e:
        logger.error(f"Failed to record download: {e}")
        return False
    if response.status_code != 204:
        logger.error(f"Failed to record download: {response.status_code} - {response.text}")
        return False
    return True


async def login(password: str) -> Optional[str]:
    try:
        async with _client() as client:
            response = await client.post(f"{BACKEND_URL}/auth/login", json={"password": password})
    except httpx.HTTPError as e:
        logger.error(f"Login request failed: {e}")
        return None
    if response.status_code != 200:
        logger.warning(f"Login rejected: {error_detail(response)}")
        return None
    return response.json()["token"]


async def analyze_image(file_path: str, token: str) -> Optional[dict]:
    """Metadata suggestion for a local image, or None when the service had nothing to offer."""
    try:
        with open(file_path, "rb") as f:
            files = {"file": (os.path.basename(file_path), f, _content_type(file_path))}
            async with _client() as client:
                response = await client.post(
                    f"{BACKEND_URL}/images/analyze",
                    files=files,
                    headers=_get_headers(token),
                )
    except (OSError, httpx.HTTPError) as e:
        logger.error(f"Error analyzing image: {str(e)}")
        return None
    if response.status_code != 200:
        logger.error(f"Analyze failed: {response.status_code} - {response.text}")
        return None
    return response.json()


async def upload_image(file_path: str, data: dict, token: str) -> Optional[httpx.Response]:
    try:
        with open(file_path, "rb") as f:
            files = {"file": (os.path.basename(file_path), f, _content_type(file_path))}
            async with _client() as client:
                response = await client.post(
                    f"{BACKEND_URL}/images",
                    data=data,
                    files=files,
                    headers=_get_headers(token),
                )
                logger.info(f"Upload response: {response.status_code}")
                return response
    except (OSError, httpx.HTTPError) as e:
        logger.error(f"Error uploading image: {str(e)}")
        return None


async def delete_image(image_id: str, token: str) -> Optional[httpx.Response]:
    try:
        async with _client() as client:
            return await client.delete(f"{BACKEND_URL}/images/{image_id}", headers=_get_headers(token))
    except httpx.HTTPError as e:
        logger.error(f"Error deleting image: {str(e)}")
        return None


def _content_type(file_path: str) -> str:
    return "image/png" if file_path.lower().endswith(".png") else "image/jpeg"
