from pydantic_settings import BaseSettings
from typing import List, Optional, Union
import os
import json
import re


class Settings(BaseSettings):
    database_url: str
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60
    bcrypt_rounds: int = 12
    log_level: str = "INFO"
    environment: str = "local"
    api_prefix: str = "/api"
    # CORS origins - can be JSON array or comma-separated string
    # For localhost wildcard, use "localhost:*" which will match any port
    cors_origins: Union[List[str], str] = ["localhost:*"]
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_schema: str = "public"

    # Media host (S3-compatible bucket)
    media_bucket: str = ""
    media_folder: str = "products"
    media_public_base_url: str = ""
    media_endpoint_url: Optional[str] = None
    aws_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    max_upload_size_mb: int = 5
    allowed_image_types: Union[List[str], str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    ]

    # Single-image variant: create requires an uploaded image
    require_product_image: bool = False

    def get_cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list, handling wildcard localhost patterns."""
        return _as_list(self.cors_origins)

    def get_allowed_image_types(self) -> List[str]:
        return [t.lower() for t in _as_list(self.allowed_image_types)]

    class Config:
        env_file = f"config/{os.getenv('ENV', 'local')}.env"
        case_sensitive = False


def _as_list(value: Union[List[str], str]) -> List[str]:
    if isinstance(value, str):
        # Try to parse as JSON
        try:
            items = json.loads(value)
        except (json.JSONDecodeError, ValueError):
            # Comma-separated
            items = [v.strip() for v in value.split(",") if v.strip()]
    else:
        items = value

    return items if isinstance(items, list) else [items]


settings = Settings()


def get_cors_origin_regex() -> Optional[str]:
    """
    Build a regex covering the wildcard entries of CORS_ORIGINS.

    Supports:
    - "localhost:*" - any localhost port (http://localhost:5173, etc.)
    - "127.0.0.1:*" - any 127.0.0.1 port
    - Generic patterns like "https://*.example.com"
    """
    patterns = []
    for allowed in settings.get_cors_origins_list():
        if allowed == "localhost:*":
            patterns.append(r"https?://localhost(:\d+)?")
        elif allowed == "127.0.0.1:*":
            patterns.append(r"https?://127\.0\.0\.1(:\d+)?")
        elif "*" in allowed:
            patterns.append(re.escape(allowed).replace(r"\*", ".*"))

    if not patterns:
        return None
    return "^(" + "|".join(patterns) + ")$"


def get_cors_exact_origins() -> List[str]:
    return [o for o in settings.get_cors_origins_list() if "*" not in o]
