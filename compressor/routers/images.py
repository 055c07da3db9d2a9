from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from ..core.models import BatchResult, ErrorResponse
from ..services.responses import build_raw_response

router = APIRouter(prefix="/images", tags=["images"])


# The body is read raw so that a missing `files` list answers with our own
# 400, and a non-JSON body with the same 500 as the function entry point.
@router.post(
    "/compress",
    response_model=BatchResult,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Compress and upload a batch of images",
    description=(
        "Send a JSON body with `files`, a list of base64 images (data-URI prefixes are fine).\n\n"
        "Per file:\n"
        "- `fileBase64` (required): the image bytes.\n"
        "- `fileName` (optional): appended to the generated storage key.\n"
        "- `mimeType` (optional): stored as the object's Content-Type.\n"
        "- `config` (optional): `{format: jpeg|jpg|png, quality: 0-100, resize: {width, height}}`; "
        "missing fields fall back to jpeg / 60 / 1280x1280.\n\n"
        "HEIC/HEIF photos are converted before compression. Images larger than the resize box "
        "are scaled down to fit inside it; smaller ones are never enlarged."
    ),
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": {"type": "object"}}},
        }
    },
)
async def compress_images(request: Request):
    raw = await request.body()
    status, body = await run_in_threadpool(build_raw_response, raw)
    return JSONResponse(status_code=status, content=body)
