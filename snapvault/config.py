from pydantic_settings import BaseSettings, NoDecode
from pydantic import Field, field_validator
from typing import Annotated, List, Optional

DEFAULT_CATEGORIES = [
    "Nature", "Architecture", "People", "Animals", "Food",
    "Travel", "Technology", "Abstract",
]

class Settings(BaseSettings):
    backend_host: str = "0.0.0.0"
    backend_port: int = 8000

    use_https: bool = Field(False, description="Use HTTPS for serving")
    ssl_keyfile: Optional[str] = Field(None, description="SSL key file path")
    ssl_certfile: Optional[str] = Field(None, description="SSL certificate file path")

    mongodb_url: str = Field(..., description="MongoDB connection string")

    cloudinary_cloud_name: str = Field(...)
    cloudinary_api_key: str = Field(...)
    cloudinary_api_secret: str = Field(...)
    cloudinary_folder: str = "snapvault"

    gemini_api_key: Optional[str] = Field(None, description="Google Gen AI key; suggestions are disabled without it")
    gemini_model: str = "gemini-2.5-flash"

    # Plain password for the admin login and the bearer token handed back on success
    admin_password: str = Field(...)
    admin_api_key: str = Field(...)

    categories: Annotated[List[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    related_limit: int = Field(5, ge=1)
    max_upload_bytes: int = 8 * 1024 * 1024
    allowed_content_types: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/jpg"]
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @field_validator('categories', 'allowed_content_types', mode='before')
    @classmethod
    def parse_comma_separated(cls, v):
        """Parse comma-separated strings from the environment into lists"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            return [x.strip() for x in v.split(",") if x.strip()]
        return [str(v)]

def get_settings() -> Settings:
    return Settings()
