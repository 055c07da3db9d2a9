from fastapi import FastAPI
from .core.config import settings
from .core.logging import configure_logging
from .routers.images import router as images_router

configure_logging(settings.log_level)

tags_metadata = [
    {
        "name": "images",
        "description": (
            "Compress a batch of base64 images and store them in S3.\n\n"
            "- JPEG/PNG output with per-file quality and resize settings.\n"
            "- HEIC/HEIF input is converted to JPEG first.\n"
            "- Returns the storage key and public URL of every stored file."
        ),
    }
]

app = FastAPI(
    title="Image Batch Compressor",
    description=(
        "How to Use:\n\n"
        "1) POST /images/compress with `{\"username\": \"...\", \"files\": [...]}`.\n"
        "2) Each file is probed, converted from HEIC if needed, shrunk to fit the resize box and "
        "compressed to the requested format.\n"
        "3) The response lists `fileName`, `key` and `url` for every upload, in request order.\n\n"
        "Notes: by default one failing file fails the whole batch with a 500; files stored before "
        "the failure are kept in the bucket but not listed. Set FAILURE_POLICY=isolate to get a "
        "per-file `failed` list instead."
    ),
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.include_router(images_router)
