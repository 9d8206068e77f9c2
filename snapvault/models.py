import time
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List

ANONYMOUS_AUTHOR = "Anonymous"

def now_ms() -> int:
    return int(time.time() * 1000)

class Category(BaseModel):
    id: str = Field(..., description="Category value stored on images")
    name: str = Field(..., description="Human-readable name of the category")

class ImageCreate(BaseModel):
    url: str = Field(..., min_length=1, description="Public URL of the full image")
    thumbnail_url: str = Field(..., min_length=1, description="Public URL of the derived preview")
    delete_url: str = Field(..., description="Asset host credential used to remove the image")
    title: str = Field(..., description="Display title")
    description: str = Field(..., description="Caption shown on the detail page")
    category: str = Field(..., description="One of the configured categories")
    keywords: List[str] = Field(default_factory=list, description="Free-text tags, compared case-insensitively")
    slug: str = Field(..., min_length=1, description="URL-safe identifier used in p/<slug> links")
    author: str = Field(ANONYMOUS_AUTHOR, description="Uploader name")
    created_at: int = Field(default_factory=now_ms, description="Creation time in epoch milliseconds")
    download_count: int = Field(0, ge=0, description="Completed downloads")

    @field_validator('title', 'description')
    @classmethod
    def reject_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator('author', mode='before')
    @classmethod
    def default_author(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return ANONYMOUS_AUTHOR
        return v

class ImageRecord(ImageCreate):
    id: str = Field(..., description="Identifier assigned by the catalog")

    @classmethod
    def from_document(cls, doc: dict) -> "ImageRecord":
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        return cls(**data)

class ImagePublic(BaseModel):
    """Image as shown to visitors; the deletion credential is left out."""
    id: str
    url: str
    thumbnail_url: str
    title: str
    description: str
    category: str
    keywords: List[str]
    slug: str
    author: str
    created_at: int
    download_count: int

    @classmethod
    def from_record(cls, record: ImageRecord) -> "ImagePublic":
        return cls(**record.model_dump(exclude={"delete_url"}))

class RelatedImage(BaseModel):
    image: ImagePublic
    score: int

class PaginatedResponse(BaseModel):
    total_count: int
    page: int
    per_page: int
    items: List[ImagePublic]

class MetadataSuggestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    keywords: List[str]
    suggested_slug: str = Field(..., alias="suggestedSlug")

class LoginRequest(BaseModel):
    password: str

class LoginResponse(BaseModel):
    token: str
