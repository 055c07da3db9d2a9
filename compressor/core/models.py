from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from .config import settings


class ResizeConfig(BaseModel):
    """Maximum bounding box; images are only ever scaled down into it."""
    width: int = Field(default_factory=lambda: settings.default_max_width, gt=0)
    height: int = Field(default_factory=lambda: settings.default_max_height, gt=0)


class CompressionConfig(BaseModel):
    # Free-form so unknown formats fail in the encoder instead of at parse time
    format: str = Field(default_factory=lambda: settings.default_format)
    quality: int = Field(default_factory=lambda: settings.default_quality, ge=0, le=100)
    resize: Optional[ResizeConfig] = Field(default_factory=ResizeConfig)


class FileInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    raw_base64: str = Field(alias="fileBase64")
    file_name: str = Field("", alias="fileName")
    mime_type: Optional[str] = Field(None, alias="mimeType")
    config: Optional[CompressionConfig] = None


class BatchRequest(BaseModel):
    username: Optional[str] = None
    files: List[FileInput]


class ProbedMetadata(BaseModel):
    format: str
    width: int
    height: int


class UploadedFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(alias="fileName")
    key: str
    url: str


class FailedFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    index: int
    file_name: str = Field(alias="fileName")
    error: str


class BatchResult(BaseModel):
    uploaded: List[UploadedFile]
    failed: Optional[List[FailedFile]] = None


class ErrorResponse(BaseModel):
    message: str
    error: Optional[str] = None
