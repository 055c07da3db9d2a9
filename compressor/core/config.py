import os
from pydantic import BaseModel
from typing import Optional

class Settings(BaseModel):
    """for reading environment-driven configuration.

    Values default to the production bucket in ap-south-1; point
    `AWS_ENDPOINT_URL` at LocalStack for local development.
    """
    aws_access_key_id: str = os.getenv("AWS_ACCESS_KEY_ID", "test")
    aws_secret_access_key: str = os.getenv("AWS_SECRET_ACCESS_KEY", "test")
    aws_region: str = os.getenv("AWS_REGION", "ap-south-1")
    aws_endpoint_url: Optional[str] = os.getenv("AWS_ENDPOINT_URL")
    bucket_name: str = os.getenv("BUCKET_NAME", "studenhub-media")
    key_prefix: str = os.getenv("KEY_PREFIX", "uploads")
    public_base_url: Optional[str] = os.getenv("PUBLIC_BASE_URL")
    max_workers: int = int(os.getenv("MAX_WORKERS", "4"))
    # "abort" fails the whole batch on the first bad file, "isolate" reports per file
    failure_policy: str = os.getenv("FAILURE_POLICY", "abort")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    default_format: str = os.getenv("DEFAULT_FORMAT", "jpeg")
    default_quality: int = int(os.getenv("DEFAULT_QUALITY", "60"))
    default_max_width: int = int(os.getenv("DEFAULT_MAX_WIDTH", "1280"))
    default_max_height: int = int(os.getenv("DEFAULT_MAX_HEIGHT", "1280"))

settings = Settings()
